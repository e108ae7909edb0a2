"""Hotel catalog router."""

import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user, require_management
from app.exceptions import Conflict, NotFound
from app.models.hotel import Hotel, Room
from app.models.user import ADMIN_ROLES, User
from app.schemas.catalog import HotelCreate, HotelResponse, HotelUpdate, RoomResponse
from app.services.access_control import access_control
from app.services.review_service import review_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", status_code=201, response_model=HotelResponse)
async def create_hotel(
    req: HotelCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    access_control.require_role(user, *ADMIN_ROLES)
    existing = await db.execute(select(Hotel.id).where(Hotel.slug == req.slug))
    if existing.scalar_one_or_none():
        raise Conflict(f"Hotel slug {req.slug} already in use")

    hotel = Hotel(**req.model_dump())
    db.add(hotel)
    await db.commit()
    await db.refresh(hotel)
    logger.info(f"Hotel {hotel.name} created by {user.email}")
    return HotelResponse.model_validate(hotel)


@router.get("/{hotel_id}")
async def get_hotel(hotel_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    hotel = await db.get(Hotel, hotel_id)
    if hotel is None or not hotel.is_active:
        raise NotFound("Hotel")

    result = await db.execute(
        select(Room)
        .where(Room.hotel_id == hotel_id, Room.is_active == True)  # noqa: E712
        .order_by(Room.name)
    )
    summary = await review_service.ratings(db, hotel_id)
    return {
        **HotelResponse.model_validate(hotel).model_dump(mode="json"),
        **summary,
        "rooms": [RoomResponse.model_validate(r).model_dump(mode="json") for r in result.scalars().all()],
    }


@router.put("/{hotel_id}", response_model=HotelResponse)
async def update_hotel(
    hotel_id: uuid.UUID,
    req: HotelUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_management),
):
    hotel = await access_control.ensure_can_manage_hotel(db, user, hotel_id)
    changes = req.model_dump(exclude_unset=True)
    if "manager_id" in changes:
        access_control.require_role(user, *ADMIN_ROLES)
    if changes.get("slug") and changes["slug"] != hotel.slug:
        taken = await db.execute(
            select(Hotel.id).where(Hotel.slug == changes["slug"], Hotel.id != hotel_id)
        )
        if taken.scalar_one_or_none():
            raise Conflict(f"Hotel slug {changes['slug']} already in use")

    for field, value in changes.items():
        setattr(hotel, field, value)
    await db.commit()
    await db.refresh(hotel)
    logger.info(f"Hotel {hotel.id} updated by {user.email}: {sorted(changes)}")
    return HotelResponse.model_validate(hotel)
