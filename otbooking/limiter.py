# otbooking/limiter.py
# The rate limiter lives in its own module so main.py and the routers can
# both import it without a cycle.

from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import get_settings

limiter = Limiter(
    key_func=get_remote_address,
    enabled=get_settings().rate_limit_enabled,
)


def booking_rate_limit() -> str:
    return get_settings().booking_rate_limit
