# otbooking/exceptions.py
from typing import Optional


class BookingError(Exception):
    """Base class for errors raised by the booking service layer."""

    status_code = 400

    def __init__(self, message: str, *, retryable: bool = False):
        super().__init__(message)
        self.message = message
        self.retryable = retryable


class ValidationError(BookingError):
    """Malformed input. Never reaches the store."""
    status_code = 422


class ConflictError(BookingError):
    """The candidate slot overlaps an existing active booking."""
    status_code = 409

    def __init__(self, message: str, conflicting_ids: Optional[list] = None):
        super().__init__(message)
        self.conflicting_ids = list(conflicting_ids or [])


class NotFoundError(BookingError):
    status_code = 404


class InvalidTransitionError(BookingError):
    """Status change attempted from a terminal state."""
    status_code = 409


class TransientStoreError(BookingError):
    status_code = 503

    def __init__(self, message: str = "The booking store is temporarily unavailable. Please retry."):
        super().__init__(message, retryable=True)
