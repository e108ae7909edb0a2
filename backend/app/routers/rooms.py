"""Room catalog router: room types and their rate plans."""

import logging
import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.dependencies import require_management
from app.exceptions import Conflict, NotFound
from app.models.booking import Booking, BookingRoom, BookingStatus
from app.models.hotel import Room
from app.models.rate_plan import RatePlan
from app.models.user import User
from app.schemas.catalog import (
    RatePlanCreate,
    RatePlanResponse,
    RatePlanUpdate,
    RoomCreate,
    RoomResponse,
    RoomUpdate,
)
from app.services.access_control import access_control
from app.services.inventory_ledger import inventory_ledger

logger = logging.getLogger(__name__)

ACTIVE_BOOKING_STATUSES = (
    BookingStatus.PENDING.value,
    BookingStatus.CONFIRMED.value,
    BookingStatus.CHECKED_IN.value,
)

router = APIRouter()


async def _get_room(db: AsyncSession, room_id: uuid.UUID) -> Room:
    room = await db.get(Room, room_id)
    if room is None:
        raise NotFound("Room")
    return room


@router.post("", status_code=201, response_model=RoomResponse)
async def create_room(
    req: RoomCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_management),
):
    """Create a room type and open its inventory over the configured horizon."""
    await access_control.ensure_can_manage_hotel(db, user, req.hotel_id)
    existing = await db.execute(
        select(Room.id).where(Room.hotel_id == req.hotel_id, Room.slug == req.slug)
    )
    if existing.scalar_one_or_none():
        raise Conflict(f"Room slug {req.slug} already in use for this hotel")

    try:
        room = Room(**req.model_dump())
        db.add(room)
        await db.flush()
        days = await inventory_ledger.seed(db, room, date.today(), settings.inventory_horizon_days)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Room {room.name} created with {days} days of inventory")
    return RoomResponse.model_validate(room)


@router.get("/{room_id}", response_model=RoomResponse)
async def get_room(room_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    room = await _get_room(db, room_id)
    if not room.is_active:
        raise NotFound("Room")
    return RoomResponse.model_validate(room)


@router.put("/{room_id}", response_model=RoomResponse)
async def update_room(
    room_id: uuid.UUID,
    req: RoomUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_management),
):
    """Catalog edit; existing ledger rows keep their nightly price and units."""
    room = await _get_room(db, room_id)
    await access_control.ensure_can_manage_hotel(db, user, room.hotel_id)
    changes = req.model_dump(exclude_unset=True)
    if changes.get("slug") and changes["slug"] != room.slug:
        taken = await db.execute(
            select(Room.id).where(
                Room.hotel_id == room.hotel_id, Room.slug == changes["slug"], Room.id != room.id
            )
        )
        if taken.scalar_one_or_none():
            raise Conflict(f"Room slug {changes['slug']} already in use for this hotel")

    for field, value in changes.items():
        setattr(room, field, value)
    await db.commit()
    await db.refresh(room)
    return RoomResponse.model_validate(room)


@router.delete("/{room_id}")
async def deactivate_room(
    room_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_management),
):
    """Soft delete: the room drops out of availability search and quoting."""
    room = await _get_room(db, room_id)
    await access_control.ensure_can_manage_hotel(db, user, room.hotel_id)

    active = await db.execute(
        select(func.count(func.distinct(Booking.id)))
        .select_from(Booking)
        .join(BookingRoom, BookingRoom.booking_id == Booking.id)
        .where(BookingRoom.room_id == room.id, Booking.status.in_(ACTIVE_BOOKING_STATUSES))
    )
    if active.scalar_one():
        raise Conflict("Cannot deactivate a room with active bookings")

    room.is_active = False
    await db.commit()
    logger.info(f"Room {room.id} deactivated by {user.email}")
    return {"id": str(room.id), "is_active": False}


@router.get("/{room_id}/rate-plans", response_model=list[RatePlanResponse])
async def list_rate_plans(room_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    await _get_room(db, room_id)
    result = await db.execute(
        select(RatePlan)
        .where(RatePlan.room_id == room_id, RatePlan.is_active == True)  # noqa: E712
        .order_by(RatePlan.priority.desc(), RatePlan.created_at)
    )
    return [RatePlanResponse.model_validate(p) for p in result.scalars().all()]


@router.post("/{room_id}/rate-plans", status_code=201, response_model=RatePlanResponse)
async def create_rate_plan(
    room_id: uuid.UUID,
    req: RatePlanCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_management),
):
    room = await _get_room(db, room_id)
    await access_control.ensure_can_manage_hotel(db, user, room.hotel_id)

    plan = RatePlan(room_id=room.id, **req.model_dump())
    db.add(plan)
    await db.commit()
    await db.refresh(plan)
    logger.info(f"Rate plan {plan.name} (priority {plan.priority}) added to room {room.id}")
    return RatePlanResponse.model_validate(plan)


@router.put("/rate-plans/{plan_id}", response_model=RatePlanResponse)
async def update_rate_plan(
    plan_id: uuid.UUID,
    req: RatePlanUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_management),
):
    plan = await db.get(RatePlan, plan_id)
    if plan is None:
        raise NotFound("Rate plan")
    room = await _get_room(db, plan.room_id)
    await access_control.ensure_can_manage_hotel(db, user, room.hotel_id)

    for field, value in req.model_dump(exclude_unset=True).items():
        setattr(plan, field, value)
    if plan.discount is not None and plan.markup is not None:
        raise HTTPException(status_code=422, detail="A rate plan may set discount or markup, not both")
    if plan.end_date < plan.start_date:
        raise HTTPException(status_code=422, detail="end_date must not be before start_date")
    await db.commit()
    await db.refresh(plan)
    return RatePlanResponse.model_validate(plan)


@router.delete("/rate-plans/{plan_id}")
async def deactivate_rate_plan(
    plan_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_management),
):
    plan = await db.get(RatePlan, plan_id)
    if plan is None:
        raise NotFound("Rate plan")
    room = await _get_room(db, plan.room_id)
    await access_control.ensure_can_manage_hotel(db, user, room.hotel_id)
    plan.is_active = False
    await db.commit()
    return {"id": str(plan.id), "is_active": False}
