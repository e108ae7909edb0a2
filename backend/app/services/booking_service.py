"""Booking lifecycle: create, modify, cancel, status changes and payment outcome.

Creating a booking and taking its inventory is one transaction, and so is
cancelling and giving the inventory back. Any failure rolls back the
booking row together with the ledger changes.
"""

import logging
import math
import secrets
import string
import time
import uuid
from datetime import date, datetime, time as dt_time, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import Conflict, InvalidBookingState, InvalidDateRange, NotFound, PaymentFailed
from app.models.booking import Booking, BookingRoom, BookingStatus, Payment, PaymentStatus
from app.models.hotel import Hotel
from app.models.user import User
from app.services.inventory_ledger import inventory_ledger
from app.services.payment_gateway import PaymentIntentResult, StripeGateway
from app.services.pricing_service import RoomRequest, pricing_service, round_money
from app.services.promotion_service import promotion_service

logger = logging.getLogger(__name__)

# Cancellation policy: days before check-in -> share of the total refunded
FULL_REFUND_DAYS = 7
HALF_REFUND_DAYS = 3

# Fields a guest may still change once the booking exists
MUTABLE_FIELDS = (
    "adults",
    "children",
    "infants",
    "special_requests",
    "guest_first_name",
    "guest_last_name",
    "guest_email",
    "guest_phone",
)

# Manager-driven status changes; cancellation goes through cancel()
STATUS_TRANSITIONS: dict[str, set[str]] = {
    BookingStatus.PENDING.value: {BookingStatus.CONFIRMED.value, BookingStatus.NO_SHOW.value},
    BookingStatus.CONFIRMED.value: {BookingStatus.CHECKED_IN.value, BookingStatus.NO_SHOW.value},
    BookingStatus.CHECKED_IN.value: {BookingStatus.CHECKED_OUT.value},
    BookingStatus.CHECKED_OUT.value: set(),
    BookingStatus.CANCELLED.value: set(),
    BookingStatus.NO_SHOW.value: set(),
}

_BASE36 = string.digits + string.ascii_uppercase


def _base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_booking_number() -> str:
    """e.g. MHB-LXK3Q2ZC-4F9A1B: millisecond timestamp plus a random suffix."""
    timestamp = _base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"MHB-{timestamp}-{suffix}"


def days_until(check_in: date, now: datetime) -> int:
    """Whole days from ``now`` to check-in, rounded up."""
    arrival = datetime.combine(check_in, dt_time.min, tzinfo=timezone.utc)
    return math.ceil((arrival - now).total_seconds() / 86400)


def refund_for(total: Decimal, check_in: date, now: datetime) -> Decimal:
    # A promotion can push the total below zero; nothing is owed back then
    if total <= 0:
        return Decimal("0.00")
    days = days_until(check_in, now)
    if days >= FULL_REFUND_DAYS:
        return round_money(total)
    if days >= HALF_REFUND_DAYS:
        return round_money(Decimal(total) * Decimal("0.5"))
    return Decimal("0.00")


def paid_status_after_cancel(refund: Decimal | None, total: Decimal) -> str:
    """Payment status of a paid booking once its refund is known."""
    if refund is not None and refund > 0:
        if refund >= total:
            return PaymentStatus.REFUNDED.value
        return PaymentStatus.PARTIALLY_REFUNDED.value
    return PaymentStatus.COMPLETED.value


class BookingService:
    """Owns every state change of a booking and its side effects on inventory."""

    async def get(self, db: AsyncSession, booking_id: uuid.UUID) -> Booking:
        result = await db.execute(
            select(Booking)
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        booking = result.scalar_one_or_none()
        if booking is None:
            raise NotFound("Booking")
        return booking

    async def _unique_booking_number(self, db: AsyncSession) -> str:
        for _ in range(settings.booking_number_attempts):
            number = generate_booking_number()
            taken = await db.execute(select(Booking.id).where(Booking.booking_number == number))
            if taken.scalar_one_or_none() is None:
                return number
            logger.warning(f"Booking number collision on {number}, regenerating")
        raise Conflict("Could not allocate a booking number, please retry")

    async def create(
        self,
        db: AsyncSession,
        user: User,
        *,
        hotel_id: uuid.UUID,
        rooms: list[RoomRequest],
        check_in: date,
        check_out: date,
        guest_first_name: str,
        guest_last_name: str,
        guest_email: str,
        guest_phone: str,
        adults: int = 1,
        children: int = 0,
        infants: int = 0,
        special_requests: str | None = None,
        promo_code: str | None = None,
        today: date | None = None,
    ) -> Booking:
        today = today or datetime.now(timezone.utc).date()
        if check_in <= today:
            raise InvalidDateRange("Check-in date must be in the future")
        if check_out <= check_in:
            raise InvalidDateRange("Check-out date must be after check-in date")

        try:
            if await db.get(Hotel, hotel_id) is None:
                raise NotFound("Hotel")

            quote = await pricing_service.calculate(
                db, rooms, check_in, check_out,
                promo_code=promo_code, hotel_id=hotel_id, today=today,
            )

            booking = Booking(
                booking_number=await self._unique_booking_number(db),
                user_id=user.id,
                hotel_id=hotel_id,
                promotion_id=quote.promotion.id if quote.promotion else None,
                guest_first_name=guest_first_name,
                guest_last_name=guest_last_name,
                guest_email=guest_email,
                guest_phone=guest_phone,
                check_in=check_in,
                check_out=check_out,
                nights=quote.nights,
                adults=adults,
                children=children,
                infants=infants,
                subtotal=round_money(quote.subtotal),
                taxes=round_money(quote.taxes),
                fees=round_money(quote.fees),
                discount=round_money(quote.discount),
                total=round_money(quote.total),
                currency=quote.currency,
                status=BookingStatus.PENDING.value,
                payment_status=PaymentStatus.PENDING.value,
                special_requests=special_requests,
            )
            booking.rooms = [
                BookingRoom(
                    room_id=line.room_id,
                    rate_plan_id=line.rate_plan_id,
                    quantity=line.quantity,
                    price=round_money(line.average_price),
                    total=round_money(line.total),
                )
                for line in quote.lines
            ]
            db.add(booking)
            await db.flush()

            for line in quote.lines:
                await inventory_ledger.decrement(db, line.room_id, check_in, check_out, line.quantity)

            if quote.promotion is not None:
                await promotion_service.redeem(db, quote.promotion)

            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            f"Booking {booking.booking_number} created: hotel={hotel_id} "
            f"{check_in}..{check_out} total={booking.total} {booking.currency}"
        )
        return await self.get(db, booking.id)

    async def update(self, db: AsyncSession, booking: Booking, changes: dict) -> Booking:
        if booking.status == BookingStatus.CANCELLED:
            raise InvalidBookingState("Cannot modify cancelled booking")
        if booking.status == BookingStatus.CHECKED_OUT:
            raise InvalidBookingState("Cannot modify completed booking")
        if changes.get("check_in") is not None or changes.get("check_out") is not None:
            raise InvalidDateRange("Date changes require creating a new booking")

        try:
            for field in MUTABLE_FIELDS:
                if field in changes:
                    setattr(booking, field, changes[field])
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return await self.get(db, booking.id)

    async def cancel(
        self,
        db: AsyncSession,
        booking: Booking,
        reason: str | None = None,
        now: datetime | None = None,
    ) -> Booking:
        now = now or datetime.now(timezone.utc)
        if booking.status == BookingStatus.CANCELLED:
            raise InvalidBookingState("Booking is already cancelled")
        if booking.status == BookingStatus.CHECKED_OUT:
            raise InvalidBookingState("Cannot cancel completed booking")

        refund = refund_for(booking.total, booking.check_in, now)
        try:
            booking.status = BookingStatus.CANCELLED.value
            booking.cancelled_at = now
            booking.cancellation_reason = reason
            booking.refund_amount = refund
            if booking.payment_status == PaymentStatus.COMPLETED:
                booking.payment_status = paid_status_after_cancel(refund, booking.total)

            # Restore from the booking's own lines, not from current ledger state
            for line in booking.rooms:
                await inventory_ledger.increment(
                    db, line.room_id, booking.check_in, booking.check_out, line.quantity
                )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(f"Booking {booking.booking_number} cancelled, refund={refund}")
        return await self.get(db, booking.id)

    async def set_status(
        self, db: AsyncSession, booking: Booking, status: str, now: datetime | None = None
    ) -> Booking:
        if status == BookingStatus.CANCELLED:
            return await self.cancel(db, booking, now=now)

        allowed = STATUS_TRANSITIONS.get(booking.status, set())
        if status not in allowed:
            raise InvalidBookingState(f"Cannot change booking status from {booking.status} to {status}")

        booking.status = status
        await db.commit()
        logger.info(f"Booking {booking.booking_number} status -> {status}")
        return await self.get(db, booking.id)

    async def start_payment(
        self, db: AsyncSession, booking: Booking, gateway: StripeGateway
    ) -> PaymentIntentResult:
        if booking.payment_status == PaymentStatus.COMPLETED:
            raise InvalidBookingState("Booking is already paid")
        if booking.status == BookingStatus.CANCELLED:
            raise InvalidBookingState("Cannot pay for a cancelled booking")

        intent = await gateway.create_intent(
            booking.total,
            booking.currency,
            metadata={"booking_id": str(booking.id), "user_id": str(booking.user_id)},
            description=f"Booking {booking.booking_number}",
        )
        db.add(
            Payment(
                booking_id=booking.id,
                amount=booking.total,
                currency=booking.currency,
                method="STRIPE",
                status=PaymentStatus.PENDING.value,
                stripe_payment_id=intent.intent_id,
            )
        )
        booking.payment_status = PaymentStatus.PROCESSING.value
        await db.commit()
        return intent

    async def record_payment(
        self,
        db: AsyncSession,
        booking: Booking,
        intent: PaymentIntentResult,
        raise_on_failure: bool = True,
    ) -> Booking:
        """Record the gateway outcome. Success confirms a pending booking; failure leaves it pending."""
        result = await db.execute(select(Payment).where(Payment.stripe_payment_id == intent.intent_id))
        payments = result.scalars().all()
        new_status = PaymentStatus.COMPLETED.value if intent.succeeded else PaymentStatus.FAILED.value
        for payment in payments:
            payment.status = new_status
            payment.gateway_response = intent.raw

        if intent.succeeded:
            booking.stripe_payment_id = intent.intent_id
            if booking.status == BookingStatus.CANCELLED:
                # Cancelled while the charge was in flight: settle against the recorded refund
                booking.payment_status = paid_status_after_cancel(booking.refund_amount, booking.total)
                logger.warning(
                    f"Payment {intent.intent_id} settled after booking {booking.booking_number} "
                    f"was cancelled, payment status {booking.payment_status}"
                )
            elif booking.status == BookingStatus.PENDING:
                booking.payment_status = PaymentStatus.COMPLETED.value
                booking.status = BookingStatus.CONFIRMED.value
            else:
                booking.payment_status = PaymentStatus.COMPLETED.value
                logger.warning(
                    f"Payment succeeded for booking {booking.booking_number} in status {booking.status}"
                )
        else:
            booking.payment_status = PaymentStatus.FAILED.value
            logger.warning(f"Payment {intent.intent_id} failed for booking {booking.booking_number}")

        await db.commit()
        if not intent.succeeded and raise_on_failure:
            raise PaymentFailed(f"Payment {intent.status}")
        return await self.get(db, booking.id)


booking_service = BookingService()
