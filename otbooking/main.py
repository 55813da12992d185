import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .config import get_settings
from .core.logging import setup_logging
from .database import prepare_schema
from .exceptions import BookingError, ConflictError
from .limiter import limiter
from .routers import auth, bookings, doctors, health, logs, patients

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    prepare_schema()
    logger.info("OT booking service started")
    yield


settings = get_settings()
app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    """Every service-layer failure is recoverable: report it and keep serving."""
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    content = {"detail": exc.message, "error": type(exc).__name__, "retryable": exc.retryable}
    if isinstance(exc, ConflictError):
        content["conflicting_booking_ids"] = exc.conflicting_ids
    headers = {"Retry-After": "5"} if exc.retryable else None
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


app.include_router(auth.router, prefix="/api/v1")
app.include_router(doctors.router, prefix="/api/v1")
app.include_router(patients.router, prefix="/api/v1")
app.include_router(bookings.router, prefix="/api/v1")
app.include_router(logs.router, prefix="/api/v1")
app.include_router(health.router, prefix="/api/v1")


if __name__ == "__main__":
    uvicorn.run("otbooking.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
