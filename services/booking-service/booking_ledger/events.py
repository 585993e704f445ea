import json
import uuid
from datetime import datetime, timezone

from .models import Booking


def build_event(event_type: str, data: dict) -> dict:
    return {
        "event_id": str(uuid.uuid4()),
        "event_type": event_type,
        "occurred_at": datetime.now(timezone.utc).isoformat(),
        "data": data,
    }


def to_json(event: dict) -> str:
    return json.dumps(event, separators=(",", ":"), ensure_ascii=False)


def booking_data(booking: Booking) -> dict:
    return {
        "booking_id": booking.booking_id,
        "booking_type": booking.booking_type,
        "status": booking.status,
        "payment_status": booking.payment_status,
        "listing_id": booking.listing_id,
        "listing_model": booking.listing_model,
        "booker_id": booking.booker_id,
        "owner_id": booking.owner_id,
        "total_amount": booking.total_amount,
        "start_date": booking.start_date.isoformat(),
        "end_date": booking.end_date.isoformat(),
    }
