"""Inventory ledger: per-room, per-night unit counts and prices.

All mutations run inside the caller's transaction. ``decrement`` locks the
range before checking it and then applies a conditional update, so two
concurrent bookings can never both take the last unit of a night.
"""

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InsufficientInventory
from app.models.booking import Booking, BookingStatus
from app.models.hotel import Room
from app.models.inventory import InventoryRecord

logger = logging.getLogger(__name__)

# Fields a manager may set on a ledger row
EDITABLE_FIELDS = ("available", "price", "currency", "min_stay", "max_stay", "is_blocked", "reason")


def date_range(start: date, end: date) -> list[date]:
    """Dates of the half-open interval [start, end)."""
    return [start + timedelta(days=i) for i in range((end - start).days)]


@dataclass
class HotelInventoryStats:
    total_rooms: int
    available_today: int
    booked_today: int
    blocked_today: int
    occupancy_rate: float
    avg_availability_next_month: float

    def to_dict(self) -> dict:
        return {
            "total_rooms": self.total_rooms,
            "available_today": self.available_today,
            "booked_today": self.booked_today,
            "blocked_today": self.blocked_today,
            "occupancy_rate": self.occupancy_rate,
            "avg_availability_next_month": self.avg_availability_next_month,
        }


class InventoryLedger:
    """Reads and mutates inventory rows for a room's stay range."""

    async def get_range(
        self,
        db: AsyncSession,
        room_id: uuid.UUID,
        check_in: date,
        check_out: date,
        for_update: bool = False,
    ) -> list[InventoryRecord]:
        query = (
            select(InventoryRecord)
            .where(
                InventoryRecord.room_id == room_id,
                InventoryRecord.date >= check_in,
                InventoryRecord.date < check_out,
            )
            .order_by(InventoryRecord.date)
        )
        if for_update:
            query = query.with_for_update()
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    def is_available(records: Sequence[InventoryRecord], nights: int, quantity: int) -> bool:
        """A stay is sellable only when every night exists, is open, and has enough units."""
        if len(records) != nights:
            return False
        return all(not r.is_blocked and r.available >= quantity for r in records)

    async def decrement(
        self,
        db: AsyncSession,
        room_id: uuid.UUID,
        check_in: date,
        check_out: date,
        quantity: int,
    ) -> None:
        nights = (check_out - check_in).days
        records = await self.get_range(db, room_id, check_in, check_out, for_update=True)
        if not self.is_available(records, nights, quantity):
            raise InsufficientInventory(
                f"Not enough inventory for room {room_id} between {check_in} and {check_out}"
            )

        result = await db.execute(
            update(InventoryRecord)
            .where(
                InventoryRecord.room_id == room_id,
                InventoryRecord.date >= check_in,
                InventoryRecord.date < check_out,
                InventoryRecord.available >= quantity,
                InventoryRecord.is_blocked == False,  # noqa: E712
            )
            .values(available=InventoryRecord.available - quantity)
            .execution_options(synchronize_session="evaluate")
        )
        if result.rowcount != nights:
            # Another writer got in between the read and the update; the
            # enclosing transaction must be rolled back by the caller.
            raise InsufficientInventory(
                f"Inventory for room {room_id} changed while booking, please retry"
            )
        logger.info(f"Ledger decrement room={room_id} {check_in}..{check_out} qty={quantity}")

    async def increment(
        self,
        db: AsyncSession,
        room_id: uuid.UUID,
        check_in: date,
        check_out: date,
        quantity: int,
    ) -> int:
        result = await db.execute(
            update(InventoryRecord)
            .where(
                InventoryRecord.room_id == room_id,
                InventoryRecord.date >= check_in,
                InventoryRecord.date < check_out,
            )
            .values(available=InventoryRecord.available + quantity)
            .execution_options(synchronize_session="evaluate")
        )
        nights = (check_out - check_in).days
        if result.rowcount != nights:
            logger.warning(
                f"Ledger increment room={room_id} touched {result.rowcount} of {nights} nights"
            )
        logger.info(f"Ledger increment room={room_id} {check_in}..{check_out} qty={quantity}")
        return result.rowcount

    async def set_blocked(
        self,
        db: AsyncSession,
        room_id: uuid.UUID,
        start: date,
        end: date,
        blocked: bool,
        reason: str | None = None,
    ) -> int:
        """Block or unblock an inclusive date range.

        Blocking zeroes the available count. Unblocking leaves the count at
        whatever it is; the manager restores it explicitly.
        """
        values: dict = {"is_blocked": blocked, "reason": reason if blocked else None}
        if blocked:
            values["available"] = 0

        result = await db.execute(
            update(InventoryRecord)
            .where(
                InventoryRecord.room_id == room_id,
                InventoryRecord.date >= start,
                InventoryRecord.date <= end,
            )
            .values(**values)
            .execution_options(synchronize_session="evaluate")
        )
        logger.info(
            f"Ledger {'block' if blocked else 'unblock'} room={room_id} {start}..{end} "
            f"rows={result.rowcount}"
        )
        return result.rowcount

    async def seed(self, db: AsyncSession, room: Room, start: date, days: int) -> int:
        """Create ledger rows for a newly defined room."""
        for offset in range(days):
            db.add(
                InventoryRecord(
                    hotel_id=room.hotel_id,
                    room_id=room.id,
                    date=start + timedelta(days=offset),
                    available=room.total_units,
                    price=room.base_price,
                    currency=room.currency,
                    is_blocked=False,
                )
            )
        await db.flush()
        return days

    async def upsert(self, db: AsyncSession, room: Room, day: date, fields: dict) -> InventoryRecord:
        result = await db.execute(
            select(InventoryRecord)
            .where(InventoryRecord.room_id == room.id, InventoryRecord.date == day)
            .with_for_update()
        )
        record = result.scalar_one_or_none()
        if record is None:
            record = InventoryRecord(
                hotel_id=room.hotel_id,
                room_id=room.id,
                date=day,
                available=room.total_units,
                price=room.base_price,
                currency=room.currency,
                is_blocked=False,
            )
            db.add(record)

        for field in EDITABLE_FIELDS:
            if field in fields:
                setattr(record, field, fields[field])
        if not record.is_blocked:
            record.reason = None
        await db.flush()
        return record

    async def bulk_upsert(
        self, db: AsyncSession, room: Room, start: date, end: date, fields: dict
    ) -> int:
        """Apply the same edit to every night of an inclusive range."""
        days = date_range(start, end + timedelta(days=1))
        existing = {
            r.date: r
            for r in await self.get_range(db, room.id, start, end + timedelta(days=1), for_update=True)
        }
        for day in days:
            record = existing.get(day)
            if record is None:
                record = InventoryRecord(
                    hotel_id=room.hotel_id,
                    room_id=room.id,
                    date=day,
                    available=room.total_units,
                    price=room.base_price,
                    currency=room.currency,
                    is_blocked=False,
                )
                db.add(record)
            for field in EDITABLE_FIELDS:
                if field in fields:
                    setattr(record, field, fields[field])
            if not record.is_blocked:
                record.reason = None
        await db.flush()
        return len(days)

    async def calendar(
        self, db: AsyncSession, room_id: uuid.UUID, start: date, end: date
    ) -> list[InventoryRecord]:
        result = await db.execute(
            select(InventoryRecord)
            .where(
                InventoryRecord.room_id == room_id,
                InventoryRecord.date >= start,
                InventoryRecord.date <= end,
            )
            .order_by(InventoryRecord.date)
        )
        return list(result.scalars().all())

    async def stats(self, db: AsyncSession, hotel_id: uuid.UUID, today: date) -> HotelInventoryStats:
        next_month = today + timedelta(days=30)

        total_rooms = (
            await db.execute(
                select(func.count(Room.id)).where(Room.hotel_id == hotel_id, Room.is_active == True)  # noqa: E712
            )
        ).scalar_one()

        available_today = (
            await db.execute(
                select(func.coalesce(func.sum(InventoryRecord.available), 0)).where(
                    InventoryRecord.hotel_id == hotel_id,
                    InventoryRecord.date == today,
                    InventoryRecord.is_blocked == False,  # noqa: E712
                )
            )
        ).scalar_one()

        booked_today = (
            await db.execute(
                select(func.count(Booking.id)).where(
                    Booking.hotel_id == hotel_id,
                    Booking.check_in <= today,
                    Booking.check_out > today,
                    Booking.status.in_([BookingStatus.CONFIRMED.value, BookingStatus.CHECKED_IN.value]),
                )
            )
        ).scalar_one()

        blocked_today = (
            await db.execute(
                select(func.count(InventoryRecord.id)).where(
                    InventoryRecord.hotel_id == hotel_id,
                    InventoryRecord.date == today,
                    InventoryRecord.is_blocked == True,  # noqa: E712
                )
            )
        ).scalar_one()

        avg_next_month = (
            await db.execute(
                select(func.avg(InventoryRecord.available)).where(
                    InventoryRecord.hotel_id == hotel_id,
                    InventoryRecord.date >= today,
                    InventoryRecord.date < next_month,
                )
            )
        ).scalar_one()

        total_units = (
            await db.execute(
                select(func.coalesce(func.sum(Room.total_units), 0)).where(
                    Room.hotel_id == hotel_id, Room.is_active == True  # noqa: E712
                )
            )
        ).scalar_one()

        occupancy = 0.0
        if total_units:
            occupancy = (total_units - int(available_today)) / total_units * 100

        return HotelInventoryStats(
            total_rooms=int(total_rooms),
            available_today=int(available_today),
            booked_today=int(booked_today),
            blocked_today=int(blocked_today),
            occupancy_rate=round(occupancy, 2),
            avg_availability_next_month=round(float(avg_next_month or 0), 2),
        )


inventory_ledger = InventoryLedger()
