"""Dependency injection for FastAPI endpoints"""

from fastapi import HTTPException, Request

from buddy_booking.api.v1.schemas import ErrorDetail
from buddy_booking.domain.exceptions import (
    AccountExistsError,
    AccountNotFoundError,
    DomainException,
    InsufficientCreditError,
    InvalidTransitionError,
    SessionNotFoundError,
    SlotAlreadyBookedError,
    SlotUnavailableError,
    UnauthorizedTransitionError,
)
from buddy_booking.infrastructure.clients.notifications import NotificationClient
from buddy_booking.services.container import BookingCore

# Domain error -> HTTP status; anything else derived from DomainException is a 400
ERROR_STATUS = {
    AccountNotFoundError: 404,
    SessionNotFoundError: 404,
    AccountExistsError: 409,
    SlotUnavailableError: 422,
    SlotAlreadyBookedError: 409,
    InsufficientCreditError: 402,
    InvalidTransitionError: 409,
    UnauthorizedTransitionError: 403,
}


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_core(request: Request) -> BookingCore:
    """Provide the application's shared booking core"""
    return request.app.state.core


def get_notification_client() -> NotificationClient:
    """Provide notification webhook client instance"""
    return NotificationClient()


def domain_http_error(error: DomainException) -> HTTPException:
    """Translate a domain exception into an HTTP error with a stable code"""
    status_code = next(
        (status for error_type, status in ERROR_STATUS.items() if isinstance(error, error_type)),
        400,
    )
    detail = ErrorDetail(code=error.code, message=str(error))
    return HTTPException(status_code=status_code, detail=detail.model_dump())
