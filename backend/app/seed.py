"""Seed script for the resort booking development database."""

import asyncio
from datetime import date, timedelta
from decimal import Decimal

from passlib.context import CryptContext
from sqlalchemy import select

from app.config import settings
from app.database import async_session_factory
from app.models.hotel import Hotel, Room
from app.models.promotion import DiscountType, Promotion
from app.models.rate_plan import RatePlan
from app.models.user import User
from app.services.inventory_ledger import inventory_ledger

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# ── Users ──────────────────────────────────────────────────────────────────────

USERS = [
    {
        "email": "guest@resorts.mv",
        "password": "password123",
        "first_name": "Aishath",
        "last_name": "Naseem",
        "role": "guest",
    },
    {
        "email": "manager@resorts.mv",
        "password": "password123",
        "first_name": "Ibrahim",
        "last_name": "Rasheed",
        "role": "hotel_manager",
    },
    {
        "email": "admin@resorts.mv",
        "password": "password123",
        "first_name": "Admin",
        "last_name": "User",
        "role": "admin",
    },
]

# ── Hotel and rooms ────────────────────────────────────────────────────────────

HOTEL = {
    "name": "Coral Lagoon Resort",
    "slug": "coral-lagoon",
    "description": "House reef, overwater villas and a sandbank lunch spot.",
    "island": "Maafushi",
    "atoll": "Kaafu",
    "star_rating": 5,
    "currency": "USD",
}

ROOMS = [
    {
        "name": "Beach Villa",
        "slug": "beach-villa",
        "type": "BEACH_VILLA",
        "capacity": 3,
        "bed_type": "King",
        "view": "Beach",
        "base_price": Decimal("420.00"),
        "total_units": 8,
    },
    {
        "name": "Water Villa",
        "slug": "water-villa",
        "type": "WATER_VILLA",
        "capacity": 2,
        "bed_type": "King",
        "view": "Lagoon",
        "base_price": Decimal("650.00"),
        "total_units": 5,
    },
    {
        "name": "Garden Room",
        "slug": "garden-room",
        "type": "STANDARD_ROOM",
        "capacity": 2,
        "bed_type": "Queen",
        "view": "Garden",
        "base_price": Decimal("180.00"),
        "total_units": 12,
    },
]


async def seed():
    async with async_session_factory() as db:
        # Check if already seeded
        result = await db.execute(select(User).limit(1))
        if result.scalar_one_or_none():
            print("Database already seeded. Skipping.")
            return

        # ── Users ──
        users = {}
        for u in USERS:
            user = User(
                email=u["email"],
                password_hash=pwd_context.hash(u["password"]),
                first_name=u["first_name"],
                last_name=u["last_name"],
                role=u["role"],
            )
            db.add(user)
            users[u["role"]] = user
        await db.flush()  # get user ids
        print(f"Created {len(USERS)} users")

        # ── Hotel ──
        hotel = Hotel(**HOTEL, manager_id=users["hotel_manager"].id)
        db.add(hotel)
        await db.flush()

        # ── Rooms with a year of inventory ──
        today = date.today()
        rooms = []
        for r in ROOMS:
            room = Room(hotel_id=hotel.id, currency=hotel.currency, **r)
            db.add(room)
            await db.flush()
            await inventory_ledger.seed(db, room, today, settings.inventory_horizon_days)
            rooms.append(room)
        print(f"Created {len(rooms)} rooms with {settings.inventory_horizon_days} days of inventory")

        # ── Rate plan: long stays in the water villas ──
        db.add(RatePlan(
            room_id=rooms[1].id,
            name="Stay 5, save 15%",
            base_price=rooms[1].base_price,
            start_date=today,
            end_date=today + timedelta(days=settings.inventory_horizon_days),
            min_stay=5,
            discount=Decimal("15"),
            priority=10,
        ))

        # ── Promotion ──
        db.add(Promotion(
            hotel_id=hotel.id,
            title="Monsoon escape",
            code="MONSOON10",
            discount_type=DiscountType.PERCENTAGE.value,
            discount_value=Decimal("10"),
            max_discount=Decimal("300"),
            start_date=today,
            end_date=today + timedelta(days=180),
            usage_limit=100,
            min_nights=3,
        ))

        await db.commit()
        print("Seed complete.")


if __name__ == "__main__":
    asyncio.run(seed())
