from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from . import earnings, queries, state_machine
from .availability import is_available
from .db import SessionLocal
from .errors import AuthorizationError
from .listings import ListingClient, get_listing_client
from .publisher import publisher
from .schemas import (
    AvailabilityResponse,
    BookerBookingView,
    BookingResponse,
    CreateBookingRequest,
    EarningsHistoryResponse,
    EarningsSummaryResponse,
    OwnerBookingView,
    UpdatePaymentStatusRequest,
    UpdateStatusRequest,
)
from .security import Principal, get_current_user
from .validation import create_booking

router = APIRouter()


async def get_db():
    async with SessionLocal() as session:
        yield session


# ================= BOOKINGS =================

@router.post("/bookings", response_model=BookingResponse, status_code=201, tags=["Bookings"])
async def create_booking_endpoint(
    data: CreateBookingRequest,
    db: AsyncSession = Depends(get_db),
    listings: ListingClient = Depends(get_listing_client),
    user: Principal = Depends(get_current_user),
):
    if data.booker is None or not data.booker.strip():
        data.booker = user.id
    elif data.booker.strip() != user.id:
        raise AuthorizationError("Cannot book on behalf of another user", code="not_booker")

    booking = await create_booking(db, data, listings=listings)

    await publisher.booking_event("booking.created", booking)

    return booking


@router.get("/bookings/user", response_model=List[BookerBookingView], tags=["Bookings"])
async def my_bookings(db: AsyncSession = Depends(get_db), user: Principal = Depends(get_current_user)):
    return await queries.list_by_booker(db, user.id)


@router.get("/bookings/owner", response_model=List[OwnerBookingView], tags=["Bookings"])
async def owner_bookings(db: AsyncSession = Depends(get_db), user: Principal = Depends(get_current_user)):
    return await queries.list_by_owner(db, user.id)


@router.get("/bookings/{booking_id}", response_model=BookingResponse, tags=["Bookings"])
async def get_booking(
    booking_id: str,
    db: AsyncSession = Depends(get_db),
    user: Principal = Depends(get_current_user),
):
    return await queries.get_by_id(db, booking_id, user)


@router.put("/bookings/{booking_id}/status", response_model=BookingResponse, tags=["Bookings"])
async def update_booking_status(
    booking_id: str,
    data: UpdateStatusRequest,
    db: AsyncSession = Depends(get_db),
    user: Principal = Depends(get_current_user),
):
    booking = await state_machine.update_status(db, booking_id, data.status, user)

    await publisher.booking_event("booking.status_updated", booking)

    if booking.status == "completed":
        await publisher.publish_event(
            "earnings.accrued",
            {
                "booking_id": booking.booking_id,
                "owner_id": booking.owner_id,
                "amount": booking.total_amount,
            },
        )

    return booking


@router.post("/bookings/{booking_id}/cancel", response_model=BookingResponse, tags=["Bookings"])
async def cancel_booking(
    booking_id: str,
    db: AsyncSession = Depends(get_db),
    user: Principal = Depends(get_current_user),
):
    booking = await state_machine.cancel_booking(db, booking_id, user)

    await publisher.booking_event("booking.cancelled", booking)

    return booking


@router.put("/bookings/{booking_id}/payment-status", response_model=BookingResponse, tags=["Bookings"])
async def update_payment_status(
    booking_id: str,
    data: UpdatePaymentStatusRequest,
    db: AsyncSession = Depends(get_db),
    user: Principal = Depends(get_current_user),
):
    booking = await state_machine.update_payment_status(db, booking_id, data.payment_status, user)

    await publisher.booking_event("booking.payment_updated", booking)

    return booking


# ================= AVAILABILITY =================

@router.get("/listings/{listing_id}/availability", response_model=AvailabilityResponse, tags=["Availability"])
async def listing_availability(
    listing_id: str,
    start_date: datetime = Query(..., alias="startDate"),
    end_date: datetime = Query(..., alias="endDate"),
    db: AsyncSession = Depends(get_db),
    user: Principal = Depends(get_current_user),
):
    available = await is_available(db, listing_id, start_date, end_date)
    return AvailabilityResponse(
        listing_id=listing_id,
        start_date=start_date,
        end_date=end_date,
        available=available,
    )


# ================= EARNINGS =================

@router.get("/earnings", response_model=EarningsSummaryResponse, tags=["Earnings"])
async def my_earnings(db: AsyncSession = Depends(get_db), user: Principal = Depends(get_current_user)):
    return {"earnings": await earnings.get_summary(db, user.id)}


@router.get("/earnings/history", response_model=EarningsHistoryResponse, tags=["Earnings"])
async def my_earnings_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user: Principal = Depends(get_current_user),
):
    return await earnings.list_history(db, user.id, page=page, limit=limit)
