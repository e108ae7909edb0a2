"""Availability router: stay search, room calendars and manager inventory edits."""

import logging
import uuid
from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import require_management
from app.exceptions import InvalidDateRange, NotFound
from app.models.hotel import Hotel, Room
from app.models.user import User
from app.schemas.inventory import (
    BlockRequest,
    BulkInventoryUpdate,
    InventoryRecordResponse,
    InventoryUpdate,
)
from app.services.access_control import access_control
from app.services.inventory_ledger import inventory_ledger
from app.services.pricing_service import pricing_service

logger = logging.getLogger(__name__)

router = APIRouter()


async def _managed_room(db: AsyncSession, user: User, room_id: uuid.UUID) -> Room:
    room = await db.get(Room, room_id)
    if room is None:
        raise NotFound("Room")
    await access_control.ensure_can_manage_hotel(db, user, room.hotel_id)
    return room


@router.get("/check")
async def check_availability(
    hotel_id: uuid.UUID,
    check_in: date,
    check_out: date,
    quantity: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db),
):
    """Availability and stay price for every active room of a hotel."""
    if check_out <= check_in:
        raise InvalidDateRange("Check-out date must be after check-in date")
    hotel = await db.get(Hotel, hotel_id)
    if hotel is None or not hotel.is_active:
        raise NotFound("Hotel")

    rooms = await pricing_service.search_hotel(db, hotel_id, check_in, check_out, quantity)
    return {
        "hotel_id": str(hotel_id),
        "check_in": check_in.isoformat(),
        "check_out": check_out.isoformat(),
        "nights": (check_out - check_in).days,
        "rooms": [r.to_dict() for r in rooms],
    }


@router.get("/calendar/{room_id}", response_model=list[InventoryRecordResponse])
async def room_calendar(
    room_id: uuid.UUID,
    start_date: date | None = None,
    end_date: date | None = None,
    db: AsyncSession = Depends(get_db),
):
    start = start_date or date.today()
    end = end_date or start + timedelta(days=30)
    if end < start:
        raise InvalidDateRange("end_date must not be before start_date")
    if await db.get(Room, room_id) is None:
        raise NotFound("Room")
    records = await inventory_ledger.calendar(db, room_id, start, end)
    return [InventoryRecordResponse.model_validate(r) for r in records]


@router.put("", response_model=InventoryRecordResponse)
async def update_inventory(
    req: InventoryUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_management),
):
    room = await _managed_room(db, user, req.room_id)
    record = await inventory_ledger.upsert(db, room, req.date, req.changes())
    await db.commit()
    logger.info(f"Inventory for room {room.id} on {req.date} updated by {user.email}")
    return InventoryRecordResponse.model_validate(record)


@router.put("/bulk")
async def bulk_update_inventory(
    req: BulkInventoryUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_management),
):
    room = await _managed_room(db, user, req.room_id)
    try:
        count = await inventory_ledger.bulk_upsert(db, room, req.start_date, req.end_date, req.changes())
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info(
        f"Bulk inventory update room={room.id} {req.start_date}..{req.end_date} by {user.email}"
    )
    return {"updated": count}


@router.post("/block")
async def block_dates(
    req: BlockRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_management),
):
    room = await _managed_room(db, user, req.room_id)
    count = await inventory_ledger.set_blocked(
        db, room.id, req.start_date, req.end_date, req.is_blocked, req.reason
    )
    await db.commit()
    return {"updated": count, "is_blocked": req.is_blocked}


@router.get("/stats/{hotel_id}")
async def inventory_stats(
    hotel_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_management),
):
    await access_control.ensure_can_manage_hotel(db, user, hotel_id)
    stats = await inventory_ledger.stats(db, hotel_id, date.today())
    return stats.to_dict()
