"""Booking price calculator: availability check, room pricing, promo, tax and fee.

Money is accumulated as unrounded Decimals and only rounded (half-up, two
places) when a quote is serialized or persisted.
"""

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import InvalidDateRange, InvalidPromotion, NotFound, Unavailable
from app.models.hotel import Room
from app.models.promotion import Promotion
from app.models.rate_plan import RatePlan
from app.services.inventory_ledger import inventory_ledger
from app.services.promotion_service import promotion_service
from app.services.rate_plan_resolver import rate_plan_resolver

logger = logging.getLogger(__name__)

TAX_RATE = Decimal("0.12")
SERVICE_FEE = Decimal("50")
CENT = Decimal("0.01")


def round_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def stay_nights(check_in: date, check_out: date) -> int:
    return (check_out - check_in).days


@dataclass
class RoomRequest:
    room_id: uuid.UUID
    quantity: int = 1


@dataclass
class RoomLine:
    room_id: uuid.UUID
    quantity: int
    average_price: Decimal
    total: Decimal
    rate_plan_id: uuid.UUID | None = None

    def to_dict(self) -> dict:
        return {
            "room_id": str(self.room_id),
            "quantity": self.quantity,
            "price": float(round_money(self.average_price)),
            "total": float(round_money(self.total)),
            "rate_plan_id": str(self.rate_plan_id) if self.rate_plan_id else None,
        }


@dataclass
class PriceQuote:
    hotel_id: uuid.UUID
    check_in: date
    check_out: date
    nights: int
    currency: str
    subtotal: Decimal
    taxes: Decimal
    fees: Decimal
    discount: Decimal
    total: Decimal
    lines: list[RoomLine] = field(default_factory=list)
    promotion: Promotion | None = None

    def to_dict(self) -> dict:
        return {
            "hotel_id": str(self.hotel_id),
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "nights": self.nights,
            "currency": self.currency,
            "subtotal": float(round_money(self.subtotal)),
            "taxes": float(round_money(self.taxes)),
            "fees": float(round_money(self.fees)),
            "discount": float(round_money(self.discount)),
            "total": float(round_money(self.total)),
            "rooms": [line.to_dict() for line in self.lines],
            "promo_code": self.promotion.code if self.promotion else None,
        }


@dataclass
class RoomAvailability:
    room: Room
    is_available: bool
    total_price: Decimal = Decimal("0")
    price_per_night: Decimal = Decimal("0")
    rate_plan: RatePlan | None = None
    nights: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "room_id": str(self.room.id),
            "name": self.room.name,
            "type": self.room.type,
            "capacity": self.room.capacity,
            "currency": self.room.currency,
            "is_available": self.is_available,
            "total_price": float(round_money(self.total_price)),
            "price_per_night": float(round_money(self.price_per_night)),
            "applicable_rate_plan": (
                {
                    "id": str(self.rate_plan.id),
                    "name": self.rate_plan.name,
                    "priority": self.rate_plan.priority,
                }
                if self.rate_plan
                else None
            ),
            "availability": self.nights,
        }


class PricingService:
    """Prices a multi-room stay against the ledger, rate plans and promotions."""

    async def _price_room(
        self,
        db: AsyncSession,
        room: Room,
        check_in: date,
        check_out: date,
        nights: int,
        quantity: int,
    ) -> tuple[Decimal, RatePlan | None]:
        """Per-unit stay price; raises Unavailable when the range cannot be sold."""
        records = await inventory_ledger.get_range(db, room.id, check_in, check_out)
        if len(records) != nights:
            raise Unavailable(f"Availability data incomplete for room {room.name}")
        if not inventory_ledger.is_available(records, nights, quantity):
            raise Unavailable(f"Not enough rooms available for {room.name}")

        ledger_sum = sum((Decimal(r.price) for r in records), Decimal("0"))
        plans = await rate_plan_resolver.eligible_plans(db, room.id, check_in, check_out)
        return rate_plan_resolver.price_stay(plans, ledger_sum, nights)

    async def calculate(
        self,
        db: AsyncSession,
        rooms: Sequence[RoomRequest],
        check_in: date,
        check_out: date,
        promo_code: str | None = None,
        hotel_id: uuid.UUID | None = None,
        today: date | None = None,
    ) -> PriceQuote:
        nights = stay_nights(check_in, check_out)
        if nights <= 0:
            raise InvalidDateRange("Check-out date must be after check-in date")
        if not rooms:
            raise Unavailable("At least one room is required")

        subtotal = Decimal("0")
        lines: list[RoomLine] = []
        currency = None

        for req in rooms:
            room = await db.get(Room, req.room_id)
            if room is None or not room.is_active:
                raise NotFound(f"Room {req.room_id}")
            if hotel_id is None:
                hotel_id = room.hotel_id
            elif room.hotel_id != hotel_id:
                raise NotFound(f"Room {req.room_id} in hotel {hotel_id}")
            currency = currency or room.currency

            unit_total, plan = await self._price_room(
                db, room, check_in, check_out, nights, req.quantity
            )
            room_total = unit_total * req.quantity
            subtotal += room_total
            lines.append(
                RoomLine(
                    room_id=room.id,
                    quantity=req.quantity,
                    average_price=unit_total / nights,
                    total=room_total,
                    rate_plan_id=plan.id if plan else None,
                )
            )

        discount = Decimal("0")
        promotion = None
        if promo_code:
            evaluation = await promotion_service.evaluate(
                db, promo_code, hotel_id, subtotal, nights, today=today
            )
            if not evaluation.valid:
                raise InvalidPromotion(evaluation.reason or "Invalid or expired promo code")
            discount = evaluation.discount
            promotion = evaluation.promotion

        taxes = subtotal * TAX_RATE
        fees = SERVICE_FEE
        # Not floored at zero: a large fixed discount can make this negative.
        total = subtotal + taxes + fees - discount

        return PriceQuote(
            hotel_id=hotel_id,
            check_in=check_in,
            check_out=check_out,
            nights=nights,
            currency=currency or settings.default_currency,
            subtotal=subtotal,
            taxes=taxes,
            fees=fees,
            discount=discount,
            total=total,
            lines=lines,
            promotion=promotion,
        )

    async def search_hotel(
        self,
        db: AsyncSession,
        hotel_id: uuid.UUID,
        check_in: date,
        check_out: date,
        quantity: int = 1,
    ) -> list[RoomAvailability]:
        """Availability and stay price of every active room in a hotel."""
        nights = stay_nights(check_in, check_out)
        if nights <= 0:
            raise InvalidDateRange("Check-out date must be after check-in date")

        result = await db.execute(
            select(Room)
            .where(Room.hotel_id == hotel_id, Room.is_active == True)  # noqa: E712
            .order_by(Room.name)
        )
        rooms = result.scalars().all()

        out: list[RoomAvailability] = []
        for room in rooms:
            records = await inventory_ledger.get_range(db, room.id, check_in, check_out)
            if not inventory_ledger.is_available(records, nights, quantity):
                out.append(RoomAvailability(room=room, is_available=False))
                continue

            ledger_sum = sum((Decimal(r.price) for r in records), Decimal("0"))
            plans = await rate_plan_resolver.eligible_plans(db, room.id, check_in, check_out)
            total, plan = rate_plan_resolver.price_stay(plans, ledger_sum, nights)
            out.append(
                RoomAvailability(
                    room=room,
                    is_available=True,
                    total_price=total,
                    price_per_night=total / nights,
                    rate_plan=plan,
                    nights=[
                        {
                            "date": r.date.isoformat(),
                            "available": r.available,
                            "price": float(r.price),
                        }
                        for r in records
                    ],
                )
            )
        return out


pricing_service = PricingService()
