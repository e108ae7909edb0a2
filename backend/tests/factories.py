"""Row builders shared by the test modules."""

import uuid
from datetime import date, timedelta
from decimal import Decimal

from app.models.hotel import Hotel, Room
from app.models.promotion import Promotion
from app.models.rate_plan import RatePlan
from app.models.user import User
from app.services.inventory_ledger import inventory_ledger

TODAY = date(2026, 3, 1)


async def make_user(db, role="guest", email=None) -> User:
    user = User(
        email=email or f"{uuid.uuid4().hex[:8]}@example.com",
        password_hash="not-a-real-hash",
        first_name="Test",
        last_name=role.title(),
        role=role,
    )
    db.add(user)
    await db.commit()
    return user


async def make_hotel(db, manager: User | None = None, slug=None) -> Hotel:
    hotel = Hotel(
        name="Coral Lagoon",
        slug=slug or f"hotel-{uuid.uuid4().hex[:8]}",
        currency="USD",
        manager_id=manager.id if manager else None,
    )
    db.add(hotel)
    await db.commit()
    return hotel


async def make_room(
    db,
    hotel: Hotel,
    base_price="100.00",
    total_units=5,
    start: date = TODAY,
    days=60,
) -> Room:
    """A room with ``days`` nights of ledger rows from ``start``."""
    room = Room(
        hotel_id=hotel.id,
        name="Beach Villa",
        slug=f"room-{uuid.uuid4().hex[:8]}",
        base_price=Decimal(base_price),
        currency="USD",
        total_units=total_units,
    )
    db.add(room)
    await db.flush()
    await inventory_ledger.seed(db, room, start, days)
    await db.commit()
    return room


async def make_rate_plan(db, room: Room, **overrides) -> RatePlan:
    fields = dict(
        room_id=room.id,
        name="Rate plan",
        base_price=Decimal("90.00"),
        start_date=TODAY,
        end_date=TODAY + timedelta(days=60),
        priority=0,
    )
    fields.update(overrides)
    plan = RatePlan(**fields)
    db.add(plan)
    await db.commit()
    return plan


async def make_promotion(db, code="SAVE20", **overrides) -> Promotion:
    fields = dict(
        title="Promo",
        code=code,
        discount_type="PERCENTAGE",
        discount_value=Decimal("20"),
        start_date=TODAY - timedelta(days=30),
        end_date=TODAY + timedelta(days=30),
    )
    fields.update(overrides)
    promotion = Promotion(**fields)
    db.add(promotion)
    await db.commit()
    return promotion
