"""Capability checks shared by routers: who may touch which hotel or booking."""

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import Forbidden, NotFound
from app.models.booking import Booking
from app.models.hotel import Hotel
from app.models.user import ADMIN_ROLES, ROLE_HOTEL_MANAGER, User


class AccessControl:
    @staticmethod
    def require_role(user: User, *roles: str) -> None:
        if user.role not in roles:
            raise Forbidden("Insufficient permissions")

    @staticmethod
    def is_admin(user: User) -> bool:
        return user.role in ADMIN_ROLES

    async def ensure_can_manage_hotel(
        self, db: AsyncSession, user: User, hotel_id: uuid.UUID
    ) -> Hotel:
        """Admins manage every hotel; a hotel manager only the hotels assigned to them."""
        hotel = await db.get(Hotel, hotel_id)
        if hotel is None:
            raise NotFound("Hotel")
        if self.is_admin(user):
            return hotel
        if user.role == ROLE_HOTEL_MANAGER and hotel.manager_id == user.id:
            return hotel
        raise Forbidden("Not authorized to manage this hotel")

    async def ensure_can_view_booking(self, db: AsyncSession, user: User, booking: Booking) -> None:
        if booking.user_id == user.id or self.is_admin(user):
            return
        if user.role == ROLE_HOTEL_MANAGER:
            hotel = await db.get(Hotel, booking.hotel_id)
            if hotel is not None and hotel.manager_id == user.id:
                return
        raise Forbidden("Not authorized to access this booking")

    @staticmethod
    def ensure_owner(user: User, booking: Booking) -> None:
        if booking.user_id != user.id:
            raise Forbidden("Not authorized to access this booking")


access_control = AccessControl()
