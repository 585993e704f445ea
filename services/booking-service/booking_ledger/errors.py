"""
Booking domain errors and their HTTP mapping.

Every error the ledger raises on purpose derives from BookingError and
carries enough detail for the caller to act on it (e.g. the full list of
missing fields). Anything else reaching the handler is an infrastructure
failure.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import Request, status
from fastapi.responses import JSONResponse

from .log import get_logger, get_request_id

logger = get_logger(__name__)


class BookingError(Exception):
    """Base class for expected, recoverable booking errors."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"message": self.message}
        if self.code:
            body["code"] = self.code
        body.update(self.details)
        return body


class ValidationError(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST

    @classmethod
    def missing(cls, fields: List[str], message: str = "Missing required fields", code: str = "missing_fields"):
        return cls(message, code=code, details={"missingFields": list(fields)})

    @classmethod
    def invalid(cls, fields: List[str], message: str = "Invalid field values"):
        return cls(message, code="invalid_fields", details={"invalidFields": list(fields)})

    @property
    def missing_fields(self) -> List[str]:
        return self.details.get("missingFields", [])

    @property
    def invalid_fields(self) -> List[str]:
        return self.details.get("invalidFields", [])


class AuthorizationError(BookingError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(BookingError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        super().__init__(
            f"{resource} not found",
            code="not_found",
            details={"resource": resource, "resourceId": resource_id},
        )


class StateError(BookingError):
    status_code = status.HTTP_409_CONFLICT


class AvailabilityConflict(StateError):
    def __init__(self, listing_id: str, conflicts: int):
        super().__init__(
            "Listing is not available for the requested dates",
            code="unavailable",
            details={"listing": listing_id, "conflictingBookings": conflicts},
        )


class ListingLookupError(BookingError):
    status_code = status.HTTP_502_BAD_GATEWAY


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    level = logging.WARNING if exc.status_code < 500 else logging.ERROR
    logger.log(
        level,
        f"Booking error: {exc.message}",
        extra={
            "extra_fields": {
                "code": exc.code,
                "status_code": exc.status_code,
                "method": request.method,
                "path": request.url.path,
            }
        },
    )
    body = exc.to_dict()
    body["requestId"] = get_request_id()
    return JSONResponse(status_code=exc.status_code, content=body)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        f"Unhandled error: {exc}",
        exc_info=exc,
        extra={"extra_fields": {"method": request.method, "path": request.url.path}},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal server error", "requestId": get_request_id()},
    )
