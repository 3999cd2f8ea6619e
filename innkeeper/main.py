from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager
import logging
import uuid

from . import __version__
from .config import settings
from .database import create_tables
from .exceptions import (
    AlreadyExists,
    BookingConflict,
    InnkeeperError,
    InvalidDateRange,
    InvalidStateTransition,
    NotFound,
    ResourceLocked,
    RoomInUse,
    RoomNotReady,
    StayRuleViolation,
)
from .schemas.reservation import ConflictInfo
from .utils.logging_config import setup_logging, set_request_context, clear_request_context

# Import all routers
from .routers import rooms, reservations, pricing, calendar, reports, health

logger = logging.getLogger(__name__)

# Domain error -> HTTP status
ERROR_STATUS = {
    InvalidDateRange: status.HTTP_400_BAD_REQUEST,
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidStateTransition: status.HTTP_409_CONFLICT,
    BookingConflict: status.HTTP_409_CONFLICT,
    RoomNotReady: status.HTTP_409_CONFLICT,
    ResourceLocked: status.HTTP_409_CONFLICT,
    AlreadyExists: status.HTTP_409_CONFLICT,
    RoomInUse: status.HTTP_409_CONFLICT,
    StayRuleViolation: 422,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    setup_logging(level=settings.log_level, json_format=settings.log_json)
    logger.info(f"Starting innkeeper {__version__} ({settings.environment})")

    create_tables()

    yield

    logger.info("Shutting down innkeeper")


# Create FastAPI app
app = FastAPI(
    title="Innkeeper API",
    description="Availability and pricing engine for small hotels and guesthouses",
    version=__version__,
    lifespan=lifespan
)

if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )


# Request ID Middleware
class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])
        request.state.request_id = request_id
        set_request_context(request_id)
        try:
            response = await call_next(request)
        finally:
            clear_request_context()
        response.headers["X-Request-ID"] = request_id
        return response


app.add_middleware(RequestIdMiddleware)


def error_status(exc: InnkeeperError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS:
            return ERROR_STATUS[cls]
    return status.HTTP_400_BAD_REQUEST


@app.exception_handler(InnkeeperError)
async def domain_error_handler(request: Request, exc: InnkeeperError):
    content = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, BookingConflict):
        content["conflicts"] = [ConflictInfo.from_result(c).model_dump() for c in exc.conflicts]
    elif isinstance(exc, StayRuleViolation):
        content["violations"] = exc.violations
    elif isinstance(exc, InvalidStateTransition):
        content["current_status"] = exc.current
        content["target_status"] = exc.target
    elif isinstance(exc, RoomNotReady):
        content["reason"] = exc.reason
    elif isinstance(exc, RoomInUse):
        content["live_reservations"] = exc.live_reservations

    code = error_status(exc)
    logger.info(f"{request.method} {request.url.path} -> {code} {exc.code}: {exc.message}")
    return JSONResponse(status_code=code, content=jsonable_encoder(content))


# Include routers
app.include_router(rooms.router)
app.include_router(reservations.router)
app.include_router(pricing.router)
app.include_router(calendar.router)
app.include_router(reports.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {
        "message": "Innkeeper API",
        "version": __version__,
        "docs": "/docs",
        "status": "running",
    }
