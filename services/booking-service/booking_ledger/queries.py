from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .errors import AuthorizationError
from .models import Booking
from .security import Principal
from .state_machine import get_booking


async def list_by_booker(db: AsyncSession, user_id: str) -> List[Booking]:
    res = await db.execute(
        select(Booking)
        .where(Booking.booker_id == user_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(res.scalars().all())


async def list_by_owner(db: AsyncSession, user_id: str) -> List[Booking]:
    res = await db.execute(
        select(Booking)
        .where(Booking.owner_id == user_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(res.scalars().all())


async def get_by_id(db: AsyncSession, booking_id: str, principal: Principal) -> Booking:
    booking = await get_booking(db, booking_id)
    if principal.id not in (booking.booker_id, booking.owner_id):
        raise AuthorizationError("Not authorized to view this booking", code="not_a_party")
    return booking
