from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

BOOKING_TYPES = ("room", "vehicle")
BOOKING_STATUSES = ("pending", "confirmed", "cancelled", "completed")
PAYMENT_METHODS = ("cash", "card", "upi")
PAYMENT_STATUSES = ("pending", "paid", "refunded")
LISTING_MODELS = {"room": "Room", "vehicle": "Vehicle"}


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class CreateBookingRequest(CamelModel):
    # Everything is optional here so that the validator can report every
    # missing field in one error instead of failing on the first.
    booking_type: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    total_amount: Optional[float] = None
    payment_method: Optional[str] = None

    booker: Optional[str] = None
    booker_name: Optional[str] = None
    booker_email: Optional[str] = None
    booker_phone: Optional[str] = None
    booker_address: Optional[str] = None

    listing: Optional[str] = None
    listing_model: Optional[str] = None
    listing_title: Optional[str] = None
    listing_price: Optional[float] = None

    owner: Optional[str] = None
    owner_name: Optional[str] = None
    owner_email: Optional[str] = None
    owner_phone: Optional[str] = None

    number_of_guests: Optional[int] = None
    pickup_location: Optional[str] = None
    dropoff_location: Optional[str] = None
    special_requests: Optional[str] = None


class UpdateStatusRequest(CamelModel):
    status: str


class UpdatePaymentStatusRequest(CamelModel):
    payment_status: str


class BookingResponse(CamelModel):
    booking_id: str
    booking_type: str
    status: str
    start_date: datetime
    end_date: datetime
    total_amount: float
    payment_status: str
    payment_method: str

    booker_id: str
    booker_name: str
    booker_email: str
    booker_phone: str
    booker_address: str

    listing_id: str
    listing_model: str
    listing_title: str
    listing_price: float
    listing_image: Optional[str] = None

    owner_id: str
    owner_name: str
    owner_email: str
    owner_phone: str

    special_requests: str
    number_of_guests: Optional[int] = None
    pickup_location: Optional[str] = None
    dropoff_location: Optional[str] = None

    created_at: datetime
    updated_at: datetime


class _BookingSummary(CamelModel):
    booking_id: str
    booking_type: str
    status: str
    start_date: datetime
    end_date: datetime
    total_amount: float
    payment_status: str
    payment_method: str
    listing_id: str
    listing_title: str
    listing_price: float
    listing_image: Optional[str] = None
    special_requests: str
    number_of_guests: Optional[int] = None
    pickup_location: Optional[str] = None
    dropoff_location: Optional[str] = None
    created_at: datetime


class BookerBookingView(_BookingSummary):
    """A booking as seen by its booker: who to contact about it."""

    owner_name: str
    owner_email: str
    owner_phone: str


class OwnerBookingView(_BookingSummary):
    """A booking as seen by the listing owner."""

    booker_name: str
    booker_email: str
    booker_phone: str
    booker_address: str


class AvailabilityResponse(CamelModel):
    listing_id: str
    start_date: datetime
    end_date: datetime
    available: bool


class EarningsSummary(CamelModel):
    total_earnings: float = 0
    completed_bookings: int = 0
    pending_payout: float = 0
    total_payout: float = 0


class EarningsSummaryResponse(CamelModel):
    earnings: EarningsSummary


class EarningsEntryResponse(CamelModel):
    booking_id: str
    amount: float
    booking_type: str
    listing_title: str
    completed_at: datetime
    status: str


class Pagination(CamelModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


class EarningsHistoryResponse(CamelModel):
    earnings_history: List[EarningsEntryResponse]
    pagination: Pagination
