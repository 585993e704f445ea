from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Index, Integer, String, Text
from .db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True)
    booking_id = Column(String, unique=True, nullable=False, index=True)

    booking_type = Column(String, nullable=False)  # room/vehicle
    status = Column(String, nullable=False, default="pending")  # pending/confirmed/cancelled/completed

    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)

    total_amount = Column(Float, nullable=False)
    payment_method = Column(String, nullable=False)  # cash/card/upi
    payment_status = Column(String, nullable=False, default="pending")  # pending/paid/refunded

    # contact details are a point-in-time snapshot, not a join
    booker_id = Column(String, nullable=False)
    booker_name = Column(String, nullable=False)
    booker_email = Column(String, nullable=False)
    booker_phone = Column(String, nullable=False)
    booker_address = Column(String, nullable=False, default="")

    listing_id = Column(String, nullable=False)
    listing_model = Column(String, nullable=False)  # Room/Vehicle
    listing_title = Column(String, nullable=False)
    listing_price = Column(Float, nullable=False)
    listing_image = Column(String, nullable=True)

    owner_id = Column(String, nullable=False)
    owner_name = Column(String, nullable=False)
    owner_email = Column(String, nullable=False, default="")
    owner_phone = Column(String, nullable=False, default="")

    special_requests = Column(Text, nullable=False, default="")
    number_of_guests = Column(Integer, nullable=True)
    pickup_location = Column(String, nullable=True)
    dropoff_location = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_bookings_booker_status", "booker_id", "status"),
        Index("ix_bookings_owner_status", "owner_id", "status"),
        Index("ix_bookings_listing_status", "listing_id", "status"),
        Index("ix_bookings_dates", "start_date", "end_date"),
    )


class OwnerEarnings(Base):
    __tablename__ = "owner_earnings"

    owner_id = Column(String, primary_key=True)
    total_earnings = Column(Float, nullable=False, default=0)
    completed_bookings = Column(Integer, nullable=False, default=0)
    pending_payout = Column(Float, nullable=False, default=0)
    total_payout = Column(Float, nullable=False, default=0)


class EarningsEntry(Base):
    """Append-only: one row per completed booking."""

    __tablename__ = "earnings_history"

    id = Column(Integer, primary_key=True)
    owner_id = Column(String, nullable=False, index=True)
    booking_id = Column(String, unique=True, nullable=False)

    amount = Column(Float, nullable=False)
    booking_type = Column(String, nullable=False)
    listing_title = Column(String, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    status = Column(String, nullable=False, default="earned")  # earned/paid
