"""
Booking status and payment status transitions.

Statuses only move forward:

    pending   -> confirmed | cancelled
    confirmed -> completed | cancelled

cancelled and completed are terminal. The owner drives the booking through
update_status; the booker may only cancel, through cancel_booking. Both go
through _transition, which holds the terminal-state guard, writes the new
status with a compare-and-set and, on completion, credits the owner's
earnings in the same transaction.
"""
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from . import earnings
from .errors import AuthorizationError, NotFoundError, StateError, ValidationError
from .log import get_logger, log_with_context
from .models import Booking, utcnow
from .schemas import BOOKING_STATUSES, PAYMENT_STATUSES
from .security import Principal

logger = get_logger(__name__)

BOOKING_TRANSITIONS = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"completed", "cancelled"},
    "cancelled": set(),
    "completed": set(),
}

PAYMENT_TRANSITIONS = {
    "pending": {"paid"},
    "paid": {"refunded"},
    "refunded": set(),
}


def is_terminal(status: str) -> bool:
    return not BOOKING_TRANSITIONS.get(status)


def can_transition(current: str, target: str) -> bool:
    return target in BOOKING_TRANSITIONS.get(current, set())


async def get_booking(db: AsyncSession, booking_id: str) -> Booking:
    res = await db.execute(select(Booking).where(Booking.booking_id == booking_id))
    booking = res.scalar_one_or_none()
    if not booking:
        raise NotFoundError("Booking", booking_id)
    return booking


async def _transition(db: AsyncSession, booking: Booking, target: str) -> Booking:
    current = booking.status

    if is_terminal(current):
        raise StateError(
            f"Booking is already {current}",
            code="terminal_state",
            details={"status": current, "requestedStatus": target},
        )
    if not can_transition(current, target):
        raise StateError(
            f"Cannot change booking status from {current} to {target}",
            code="invalid_transition",
            details={"status": current, "requestedStatus": target},
        )

    res = await db.execute(
        update(Booking)
        .where(Booking.booking_id == booking.booking_id, Booking.status == current)
        .values(status=target, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        await db.rollback()
        raise StateError(
            "Booking status changed concurrently, reload and retry",
            code="concurrent_update",
            details={"status": current, "requestedStatus": target},
        )

    if target == "completed":
        await earnings.accrue(db, booking)

    await db.commit()
    await db.refresh(booking)

    log_with_context(
        logger,
        "info",
        "Booking status updated",
        booking_id=booking.booking_id,
        from_status=current,
        to_status=target,
    )
    return booking


async def update_status(db: AsyncSession, booking_id: str, new_status: str, principal: Principal) -> Booking:
    booking = await get_booking(db, booking_id)

    if booking.owner_id != principal.id:
        raise AuthorizationError("Not authorized to update this booking", code="not_owner")

    if new_status not in BOOKING_STATUSES:
        raise ValidationError(
            "Invalid status",
            code="invalid_status",
            details={"allowedStatuses": list(BOOKING_STATUSES)},
        )

    return await _transition(db, booking, new_status)


async def cancel_booking(db: AsyncSession, booking_id: str, principal: Principal) -> Booking:
    booking = await get_booking(db, booking_id)

    if booking.booker_id != principal.id:
        raise AuthorizationError("Not authorized to cancel this booking", code="not_booker")

    return await _transition(db, booking, "cancelled")


async def update_payment_status(
    db: AsyncSession, booking_id: str, new_payment_status: str, principal: Principal
) -> Booking:
    """Record a payment status change by hand. No gateway is involved."""
    booking = await get_booking(db, booking_id)

    if booking.owner_id != principal.id:
        raise AuthorizationError("Not authorized to update this booking", code="not_owner")

    if new_payment_status not in PAYMENT_STATUSES:
        raise ValidationError(
            "Invalid payment status",
            code="invalid_payment_status",
            details={"allowedPaymentStatuses": list(PAYMENT_STATUSES)},
        )

    current = booking.payment_status
    if new_payment_status not in PAYMENT_TRANSITIONS.get(current, set()):
        raise StateError(
            f"Cannot change payment status from {current} to {new_payment_status}",
            code="invalid_payment_transition",
            details={"paymentStatus": current, "requestedPaymentStatus": new_payment_status},
        )

    res = await db.execute(
        update(Booking)
        .where(Booking.booking_id == booking.booking_id, Booking.payment_status == current)
        .values(payment_status=new_payment_status, updated_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        await db.rollback()
        raise StateError(
            "Booking payment status changed concurrently, reload and retry",
            code="concurrent_update",
        )

    await db.commit()
    await db.refresh(booking)
    logger.info(f"Payment status of booking {booking.booking_id}: {current} -> {new_payment_status}")
    return booking
