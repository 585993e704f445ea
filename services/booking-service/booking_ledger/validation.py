import math
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .availability import as_utc, find_conflicts
from .config import ENFORCE_AVAILABILITY
from .errors import AvailabilityConflict, NotFoundError, ValidationError
from .listings import ListingClient
from .log import get_logger, log_with_context
from .models import Booking
from .schemas import BOOKING_TYPES, LISTING_MODELS, PAYMENT_METHODS, CreateBookingRequest

logger = get_logger(__name__)

# attribute -> wire name, in the order errors report them
REQUIRED_FIELDS = {
    "booking_type": "bookingType",
    "start_date": "startDate",
    "end_date": "endDate",
    "total_amount": "totalAmount",
    "payment_method": "paymentMethod",
    "booker": "booker",
    "booker_name": "bookerName",
    "booker_email": "bookerEmail",
    "booker_phone": "bookerPhone",
    "listing": "listing",
    "listing_model": "listingModel",
    "listing_title": "listingTitle",
    "listing_price": "listingPrice",
    "owner": "owner",
    "owner_name": "ownerName",
}


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def missing_fields(data: CreateBookingRequest) -> list[str]:
    return [wire for attr, wire in REQUIRED_FIELDS.items() if _blank(getattr(data, attr))]


def invalid_fields(data: CreateBookingRequest) -> list[str]:
    invalid = []
    if data.booking_type not in BOOKING_TYPES:
        invalid.append("bookingType")
    if not math.isfinite(data.total_amount) or data.total_amount <= 0:
        invalid.append("totalAmount")
    if data.payment_method not in PAYMENT_METHODS:
        invalid.append("paymentMethod")
    if data.listing_model not in LISTING_MODELS.values() or (
        data.booking_type in LISTING_MODELS and LISTING_MODELS[data.booking_type] != data.listing_model
    ):
        invalid.append("listingModel")
    if not math.isfinite(data.listing_price) or data.listing_price <= 0:
        invalid.append("listingPrice")
    return invalid


def type_specific_missing(data: CreateBookingRequest) -> list[str]:
    if data.booking_type == "room":
        if data.number_of_guests is None or data.number_of_guests < 1:
            return ["numberOfGuests"]
        return []
    return [
        wire
        for attr, wire in (("pickup_location", "pickupLocation"), ("dropoff_location", "dropoffLocation"))
        if _blank(getattr(data, attr))
    ]


def validate_create(data: CreateBookingRequest) -> None:
    """Raise ValidationError for the first failing check group.

    Each group reports all of its offending fields at once: required fields,
    then enum/range values, then type-specific fields, then date order.
    """
    missing = missing_fields(data)
    if missing:
        raise ValidationError.missing(missing)

    invalid = invalid_fields(data)
    if invalid:
        raise ValidationError.invalid(invalid)

    type_missing = type_specific_missing(data)
    if type_missing:
        raise ValidationError.missing(
            type_missing,
            message=f"Missing required fields for {data.booking_type} booking",
            code="type_fields",
        )

    if as_utc(data.start_date) >= as_utc(data.end_date):
        raise ValidationError(
            "End date must be after start date",
            code="date_order",
            details={"invalidFields": ["endDate"]},
        )


def payload_missing_fields(payload: dict) -> list[str]:
    # booker is filled from the token on the HTTP path
    return [
        wire
        for attr, wire in REQUIRED_FIELDS.items()
        if wire != "booker" and _blank(payload.get(wire, payload.get(attr)))
    ]


def request_validation_error(errors: list[dict], payload: Optional[dict] = None) -> ValidationError:
    """Fold request parsing errors into a single ValidationError.

    Malformed values become invalidFields. When the raw booking payload is
    given, required fields absent from it are reported in the same error.
    """
    missing: list[str] = []
    invalid: list[str] = []
    for err in errors:
        loc = [part for part in err.get("loc", ()) if part not in ("body", "query", "path", "header")]
        name = loc[0] if loc and isinstance(loc[0], str) else "body"
        target = missing if err.get("type") == "missing" else invalid
        if name not in target:
            target.append(name)

    if isinstance(payload, dict):
        missing += [f for f in payload_missing_fields(payload) if f not in invalid and f not in missing]

    if not invalid:
        return ValidationError.missing(missing)

    details = {"invalidFields": invalid}
    if missing:
        details["missingFields"] = missing
    return ValidationError("Invalid field values", code="invalid_fields", details=details)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def build_booking(data: CreateBookingRequest) -> Booking:
    is_room = data.booking_type == "room"
    return Booking(
        booking_id=str(uuid.uuid4()),
        booking_type=data.booking_type,
        status="pending",
        payment_status="pending",
        start_date=as_utc(data.start_date),
        end_date=as_utc(data.end_date),
        total_amount=data.total_amount,
        payment_method=data.payment_method,
        booker_id=data.booker.strip(),
        booker_name=data.booker_name.strip(),
        booker_email=data.booker_email.strip(),
        booker_phone=data.booker_phone.strip(),
        booker_address=_clean(data.booker_address),
        listing_id=data.listing.strip(),
        listing_model=data.listing_model,
        listing_title=data.listing_title.strip(),
        listing_price=data.listing_price,
        owner_id=data.owner.strip(),
        owner_name=data.owner_name.strip(),
        owner_email=_clean(data.owner_email),
        owner_phone=_clean(data.owner_phone),
        special_requests=_clean(data.special_requests),
        number_of_guests=data.number_of_guests if is_room else None,
        pickup_location=None if is_room else data.pickup_location.strip(),
        dropoff_location=None if is_room else data.dropoff_location.strip(),
    )


async def create_booking(
    db: AsyncSession,
    data: CreateBookingRequest,
    listings: Optional[ListingClient] = None,
    enforce_availability: bool = ENFORCE_AVAILABILITY,
) -> Booking:
    validate_create(data)
    booking = build_booking(data)

    if listings is not None:
        snapshot = await listings.lookup(booking.listing_id, booking.listing_model)
        if snapshot is None and listings.enabled:
            raise NotFoundError("Listing", booking.listing_id)
        if snapshot is not None:
            if snapshot.owner_id and snapshot.owner_id != booking.owner_id:
                raise ValidationError.invalid(["owner"], message="Owner does not match the listing")
            if snapshot.title:
                booking.listing_title = snapshot.title
            if math.isfinite(snapshot.price) and snapshot.price > 0:
                booking.listing_price = snapshot.price
            booking.listing_image = snapshot.first_image

    if enforce_availability:
        conflicts = await find_conflicts(db, booking.listing_id, booking.start_date, booking.end_date)
        if conflicts:
            raise AvailabilityConflict(booking.listing_id, len(conflicts))

    db.add(booking)
    await db.commit()

    log_with_context(
        logger,
        "info",
        "Booking created",
        booking_id=booking.booking_id,
        booking_type=booking.booking_type,
        listing_id=booking.listing_id,
        booker_id=booking.booker_id,
        owner_id=booking.owner_id,
    )
    return booking
