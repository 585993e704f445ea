from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from .config import LOG_JSON, LOG_LEVEL
from .errors import BookingError, booking_error_handler, unhandled_exception_handler
from .listings import listing_client
from .log import get_logger, setup_logging
from .middleware import RequestLoggingMiddleware
from .publisher import publisher
from .routes import router
from .validation import request_validation_error

setup_logging(level=LOG_LEVEL, json_format=LOG_JSON)
logger = get_logger(__name__)

OPENAPI_TAGS = [
    {"name": "System", "description": "Operational endpoints."},
    {"name": "Bookings", "description": "Booking creation, status transitions and party-scoped reads."},
    {"name": "Availability", "description": "Listing date-range availability."},
    {"name": "Earnings", "description": "Owner earnings derived from completed bookings."},
]

app = FastAPI(title="Booking Service", openapi_tags=OPENAPI_TAGS)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    payload = exc.body if request.method == "POST" and request.url.path == "/bookings" else None
    return await booking_error_handler(request, request_validation_error(exc.errors(), payload))


app.add_middleware(RequestLoggingMiddleware)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(BookingError, booking_error_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)
app.include_router(router)


@app.get("/health", tags=["System"])
async def health():
    return {
        "status": "ok",
        "service": "booking-service",
        "events_enabled": publisher.enabled,
        "listing_lookups_enabled": listing_client.enabled,
    }


@app.on_event("startup")
async def startup():
    # Never crash service if RabbitMQ is temporarily unavailable
    try:
        await publisher.connect()
    except Exception as e:
        logger.warning(f"RabbitMQ connect failed at startup; continuing without events: {e}")


@app.on_event("shutdown")
async def shutdown():
    try:
        await publisher.close()
    except Exception as e:
        logger.warning(f"RabbitMQ close failed: {e}")
