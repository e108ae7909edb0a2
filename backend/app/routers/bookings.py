"""Bookings router: quotes, guest bookings and hotel-side booking management."""

import logging
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user, require_management
from app.models.booking import Booking
from app.models.hotel import Hotel
from app.models.user import User
from app.schemas.booking import (
    BookingResponse,
    CancelBookingRequest,
    CreateBookingRequest,
    QuoteRequest,
    StatusUpdateRequest,
    UpdateBookingRequest,
)
from app.services.access_control import access_control
from app.services.booking_service import booking_service
from app.services.pricing_service import RoomRequest, pricing_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _room_requests(req: QuoteRequest) -> list[RoomRequest]:
    return [RoomRequest(room_id=r.room_id, quantity=r.quantity) for r in req.rooms]


@router.post("/quote")
async def quote_booking(req: QuoteRequest, db: AsyncSession = Depends(get_db)):
    """Price a stay without booking it."""
    quote = await pricing_service.calculate(
        db,
        _room_requests(req),
        req.check_in,
        req.check_out,
        promo_code=req.promo_code,
        hotel_id=req.hotel_id,
    )
    return quote.to_dict()


@router.get("/my-bookings", response_model=list[BookingResponse])
async def my_bookings(
    status: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = select(Booking).where(Booking.user_id == user.id)
    if status:
        query = query.where(Booking.status == status)
    result = await db.execute(query.order_by(Booking.created_at.desc()))
    return [BookingResponse.model_validate(b) for b in result.scalars().all()]


@router.get("/manage/list", response_model=list[BookingResponse])
async def list_hotel_bookings(
    hotel_id: uuid.UUID | None = Query(None),
    status: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_management),
):
    """Bookings of the hotels the caller manages; admins see every hotel."""
    query = select(Booking)
    if hotel_id:
        await access_control.ensure_can_manage_hotel(db, user, hotel_id)
        query = query.where(Booking.hotel_id == hotel_id)
    elif not access_control.is_admin(user):
        managed = select(Hotel.id).where(Hotel.manager_id == user.id)
        query = query.where(Booking.hotel_id.in_(managed))
    if status:
        query = query.where(Booking.status == status)
    result = await db.execute(query.order_by(Booking.check_in))
    return [BookingResponse.model_validate(b) for b in result.scalars().all()]


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    booking = await booking_service.get(db, booking_id)
    await access_control.ensure_can_view_booking(db, user, booking)
    return BookingResponse.model_validate(booking)


@router.post("", status_code=201, response_model=BookingResponse)
async def create_booking(
    req: CreateBookingRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    booking = await booking_service.create(
        db,
        user,
        hotel_id=req.hotel_id,
        rooms=_room_requests(req),
        check_in=req.check_in,
        check_out=req.check_out,
        guest_first_name=req.guest_first_name,
        guest_last_name=req.guest_last_name,
        guest_email=req.guest_email,
        guest_phone=req.guest_phone,
        adults=req.adults,
        children=req.children,
        infants=req.infants,
        special_requests=req.special_requests,
        promo_code=req.promo_code,
    )
    return BookingResponse.model_validate(booking)


@router.put("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: uuid.UUID,
    req: UpdateBookingRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    booking = await booking_service.get(db, booking_id)
    access_control.ensure_owner(user, booking)
    booking = await booking_service.update(db, booking, req.model_dump(exclude_unset=True))
    return BookingResponse.model_validate(booking)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: uuid.UUID,
    req: CancelBookingRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    booking = await booking_service.get(db, booking_id)
    await access_control.ensure_can_view_booking(db, user, booking)
    booking = await booking_service.cancel(db, booking, req.reason)
    return BookingResponse.model_validate(booking)


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: uuid.UUID,
    req: StatusUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_management),
):
    booking = await booking_service.get(db, booking_id)
    await access_control.ensure_can_manage_hotel(db, user, booking.hotel_id)
    booking = await booking_service.set_status(db, booking, req.status)
    return BookingResponse.model_validate(booking)
