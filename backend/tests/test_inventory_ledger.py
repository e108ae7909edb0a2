"""Ledger reads and mutations."""

from datetime import timedelta
from decimal import Decimal

import pytest

from app.exceptions import InsufficientInventory
from app.services.inventory_ledger import date_range, inventory_ledger
from tests.factories import TODAY, make_hotel, make_room

CHECK_IN = TODAY + timedelta(days=5)
CHECK_OUT = CHECK_IN + timedelta(days=3)


async def counts(db, room, start=CHECK_IN, end=CHECK_OUT):
    return [r.available for r in await inventory_ledger.get_range(db, room.id, start, end)]


@pytest.fixture
async def room(db):
    hotel = await make_hotel(db)
    return await make_room(db, hotel, total_units=4, days=30)


class TestDateRange:
    def test_half_open(self):
        assert date_range(TODAY, TODAY + timedelta(days=2)) == [TODAY, TODAY + timedelta(days=1)]

    def test_empty(self):
        assert date_range(TODAY, TODAY) == []


class TestGetRange:
    async def test_half_open_and_ordered(self, db, room):
        records = await inventory_ledger.get_range(db, room.id, CHECK_IN, CHECK_OUT)
        assert [r.date for r in records] == date_range(CHECK_IN, CHECK_OUT)

    async def test_is_available_requires_every_night(self, db, room):
        records = await inventory_ledger.get_range(db, room.id, CHECK_IN, CHECK_OUT)
        assert inventory_ledger.is_available(records, 3, 4)
        assert not inventory_ledger.is_available(records, 3, 5)
        assert not inventory_ledger.is_available(records[:2], 3, 1)


class TestDecrementIncrement:
    async def test_round_trip_restores_counts(self, db, room):
        before = await counts(db, room)
        await inventory_ledger.decrement(db, room.id, CHECK_IN, CHECK_OUT, 3)
        await db.commit()
        assert await counts(db, room) == [1, 1, 1]

        await inventory_ledger.increment(db, room.id, CHECK_IN, CHECK_OUT, 3)
        await db.commit()
        assert await counts(db, room) == before

    async def test_insufficient_changes_nothing(self, db, room):
        await inventory_ledger.upsert(db, room, CHECK_IN + timedelta(days=1), {"available": 1})
        await db.commit()

        with pytest.raises(InsufficientInventory):
            await inventory_ledger.decrement(db, room.id, CHECK_IN, CHECK_OUT, 2)
        await db.rollback()
        assert await counts(db, room) == [4, 1, 4]

    async def test_sequential_overbooking_fails(self, db, room):
        await inventory_ledger.decrement(db, room.id, CHECK_IN, CHECK_OUT, 3)
        await db.commit()
        with pytest.raises(InsufficientInventory):
            await inventory_ledger.decrement(db, room.id, CHECK_IN, CHECK_OUT, 2)
        await db.rollback()
        assert await counts(db, room) == [1, 1, 1]

    async def test_missing_nights(self, db, room):
        with pytest.raises(InsufficientInventory):
            await inventory_ledger.decrement(
                db, room.id, TODAY + timedelta(days=28), TODAY + timedelta(days=32), 1
            )


class TestBlocking:
    async def test_block_zeroes_and_unblock_keeps_zero(self, db, room):
        updated = await inventory_ledger.set_blocked(db, room.id, CHECK_IN, CHECK_IN + timedelta(days=1), True, "Refit")
        await db.commit()
        assert updated == 2

        records = await inventory_ledger.get_range(db, room.id, CHECK_IN, CHECK_OUT)
        assert [(r.available, r.is_blocked, r.reason) for r in records] == [
            (0, True, "Refit"),
            (0, True, "Refit"),
            (4, False, None),
        ]

        await inventory_ledger.set_blocked(db, room.id, CHECK_IN, CHECK_IN + timedelta(days=1), False)
        await db.commit()
        records = await inventory_ledger.get_range(db, room.id, CHECK_IN, CHECK_OUT)
        assert [(r.available, r.is_blocked, r.reason) for r in records[:2]] == [(0, False, None), (0, False, None)]


class TestManagerEdits:
    async def test_upsert_creates_missing_date(self, db, room):
        day = TODAY + timedelta(days=40)
        record = await inventory_ledger.upsert(db, room, day, {"price": Decimal("150.00")})
        await db.commit()
        assert record.available == 4
        assert record.price == Decimal("150.00")

    async def test_bulk_upsert_is_inclusive(self, db, room):
        count = await inventory_ledger.bulk_upsert(
            db, room, CHECK_IN, CHECK_IN + timedelta(days=2), {"available": 2, "price": Decimal("120.00")}
        )
        await db.commit()
        assert count == 3
        records = await inventory_ledger.calendar(db, room.id, CHECK_IN, CHECK_IN + timedelta(days=2))
        assert [(r.available, r.price) for r in records] == [(2, Decimal("120.00"))] * 3

    async def test_bulk_unblock_clears_reason(self, db, room):
        last = CHECK_IN + timedelta(days=1)
        await inventory_ledger.bulk_upsert(db, room, CHECK_IN, last, {"is_blocked": True, "reason": "Renovation"})
        await db.commit()
        await inventory_ledger.bulk_upsert(db, room, CHECK_IN, last, {"is_blocked": False})
        await db.commit()
        records = await inventory_ledger.calendar(db, room.id, CHECK_IN, last)
        assert [(r.is_blocked, r.reason) for r in records] == [(False, None)] * 2

    async def test_stats(self, db, room):
        await inventory_ledger.set_blocked(db, room.id, TODAY, TODAY, True, "Closed")
        await db.commit()
        stats = await inventory_ledger.stats(db, room.hotel_id, TODAY)
        assert stats.total_rooms == 1
        assert stats.available_today == 0
        assert stats.blocked_today == 1
        assert stats.occupancy_rate == 100.0
