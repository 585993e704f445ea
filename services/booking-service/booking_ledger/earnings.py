import math
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from .log import get_logger, log_with_context
from .models import Booking, EarningsEntry, OwnerEarnings, utcnow

logger = get_logger(__name__)


# one account row per owner even when first accruals race
_UPSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


async def _ensure_account(db: AsyncSession, owner_id: str) -> None:
    insert = _UPSERTS.get(db.bind.dialect.name, pg_insert)
    await db.execute(
        insert(OwnerEarnings)
        .values(
            owner_id=owner_id,
            total_earnings=0,
            completed_bookings=0,
            pending_payout=0,
            total_payout=0,
        )
        .on_conflict_do_nothing(index_elements=[OwnerEarnings.owner_id])
    )


async def accrue(db: AsyncSession, booking: Booking) -> Optional[EarningsEntry]:
    """Credit a completed booking to its owner.

    Runs inside the caller's transaction and does not commit. Returns None
    when the booking was already credited.
    """
    res = await db.execute(select(EarningsEntry.id).where(EarningsEntry.booking_id == booking.booking_id))
    if res.scalar_one_or_none() is not None:
        logger.warning(f"Earnings already accrued for booking {booking.booking_id}")
        return None

    await _ensure_account(db, booking.owner_id)

    amount = booking.total_amount
    await db.execute(
        update(OwnerEarnings)
        .where(OwnerEarnings.owner_id == booking.owner_id)
        .values(
            total_earnings=OwnerEarnings.total_earnings + amount,
            completed_bookings=OwnerEarnings.completed_bookings + 1,
            pending_payout=OwnerEarnings.pending_payout + amount,
        )
        .execution_options(synchronize_session=False)
    )

    entry = EarningsEntry(
        owner_id=booking.owner_id,
        booking_id=booking.booking_id,
        amount=amount,
        booking_type=booking.booking_type,
        listing_title=booking.listing_title,
        completed_at=utcnow(),
        status="earned",
    )
    db.add(entry)
    # unique booking_id rejects a concurrent second accrual here
    await db.flush()

    log_with_context(
        logger,
        "info",
        "Earnings accrued",
        booking_id=booking.booking_id,
        owner_id=booking.owner_id,
        amount=amount,
    )
    return entry


async def get_summary(db: AsyncSession, owner_id: str) -> dict:
    res = await db.execute(
        select(OwnerEarnings)
        .where(OwnerEarnings.owner_id == owner_id)
        .execution_options(populate_existing=True)
    )
    account = res.scalar_one_or_none()
    if account is None:
        return {"total_earnings": 0, "completed_bookings": 0, "pending_payout": 0, "total_payout": 0}

    return {
        "total_earnings": account.total_earnings,
        "completed_bookings": account.completed_bookings,
        "pending_payout": account.pending_payout,
        "total_payout": account.total_payout,
    }


async def list_history(db: AsyncSession, owner_id: str, page: int = 1, limit: int = 10) -> dict:
    page = max(page, 1)
    limit = max(limit, 1)

    total = await db.scalar(select(func.count(EarningsEntry.id)).where(EarningsEntry.owner_id == owner_id))
    res = await db.execute(
        select(EarningsEntry)
        .where(EarningsEntry.owner_id == owner_id)
        .order_by(EarningsEntry.completed_at.desc(), EarningsEntry.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )

    return {
        "earnings_history": list(res.scalars().all()),
        "pagination": {
            "current_page": page,
            "total_pages": math.ceil((total or 0) / limit),
            "total_items": total or 0,
            "items_per_page": limit,
        },
    }
