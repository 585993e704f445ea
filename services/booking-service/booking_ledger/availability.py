from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Booking

# cancelled and completed bookings no longer hold the listing
BLOCKING_STATUSES = ("pending", "confirmed")


def as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


async def find_conflicts(
    db: AsyncSession,
    listing_id: str,
    start: datetime,
    end: datetime,
    exclude_booking_id: Optional[str] = None,
) -> List[Booking]:
    """Pending/confirmed bookings of the listing whose dates overlap [start, end)."""
    stmt = select(Booking).where(
        Booking.listing_id == listing_id,
        Booking.status.in_(BLOCKING_STATUSES),
        Booking.start_date < as_utc(end),
        Booking.end_date > as_utc(start),
    )
    if exclude_booking_id:
        stmt = stmt.where(Booking.booking_id != exclude_booking_id)

    res = await db.execute(stmt.order_by(Booking.start_date))
    return list(res.scalars().all())


async def is_available(db: AsyncSession, listing_id: str, start: datetime, end: datetime) -> bool:
    if as_utc(end) <= as_utc(start):
        return False
    return not await find_conflicts(db, listing_id, start, end)
