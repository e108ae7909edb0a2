"""Booking lifecycle: create, update, cancel, status and payment outcome."""

import re
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from app.exceptions import (
    InsufficientInventory,
    InvalidBookingState,
    InvalidDateRange,
    InvalidPromotion,
    PaymentFailed,
    Unavailable,
)
from app.models.booking import Booking, BookingStatus, Payment, PaymentStatus
from app.schemas.booking import UpdateBookingRequest
from app.services.booking_service import booking_service, days_until, generate_booking_number, refund_for
from app.services.inventory_ledger import inventory_ledger
from app.services.payment_gateway import PaymentIntentResult
from app.services.pricing_service import RoomRequest, pricing_service
from tests.factories import TODAY, make_hotel, make_promotion, make_room, make_user

CHECK_IN = TODAY + timedelta(days=14)
CHECK_OUT = CHECK_IN + timedelta(days=5)
ARRIVAL = datetime.combine(CHECK_IN, time.min, tzinfo=timezone.utc)


@pytest.fixture
async def setup(db):
    guest = await make_user(db)
    hotel = await make_hotel(db)
    room = await make_room(db, hotel, base_price="100.00", total_units=2)
    return guest, hotel, room


async def book(db, guest, hotel, room, quantity=1, promo_code=None, check_in=CHECK_IN, check_out=CHECK_OUT):
    return await booking_service.create(
        db,
        guest,
        hotel_id=hotel.id,
        rooms=[RoomRequest(room_id=room.id, quantity=quantity)],
        check_in=check_in,
        check_out=check_out,
        guest_first_name="Aishath",
        guest_last_name="Naseem",
        guest_email="aishath@example.com",
        guest_phone="+9607771234",
        promo_code=promo_code,
        today=TODAY,
    )


async def counts(db, room):
    return [r.available for r in await inventory_ledger.get_range(db, room.id, CHECK_IN, CHECK_OUT)]


class TestBookingNumber:
    def test_format(self):
        assert re.fullmatch(r"MHB-[0-9A-Z]+-[0-9A-Z]{6}", generate_booking_number())

    def test_distinct(self):
        assert len({generate_booking_number() for _ in range(50)}) == 50


class TestRefundTiers:
    def test_ten_days_full(self):
        assert refund_for(Decimal("610.00"), CHECK_IN, ARRIVAL - timedelta(days=10)) == Decimal("610.00")

    def test_five_days_half(self):
        assert refund_for(Decimal("610.00"), CHECK_IN, ARRIVAL - timedelta(days=5)) == Decimal("305.00")

    def test_one_day_nothing(self):
        assert refund_for(Decimal("610.00"), CHECK_IN, ARRIVAL - timedelta(days=1)) == Decimal("0.00")

    def test_partial_day_rounds_up(self):
        assert days_until(CHECK_IN, ARRIVAL - timedelta(days=6, hours=1)) == 7
        assert refund_for(Decimal("100.00"), CHECK_IN, ARRIVAL - timedelta(days=6, hours=1)) == Decimal("100.00")

    def test_half_refund_rounds_half_up(self):
        assert refund_for(Decimal("100.01"), CHECK_IN, ARRIVAL - timedelta(days=3)) == Decimal("50.01")

    def test_negative_total_refunds_nothing(self):
        assert refund_for(Decimal("-90.00"), CHECK_IN, ARRIVAL - timedelta(days=10)) == Decimal("0.00")


class TestCreate:
    async def test_persists_and_decrements(self, db, setup):
        guest, hotel, room = setup
        booking = await book(db, guest, hotel, room)

        assert booking.status == BookingStatus.PENDING
        assert booking.payment_status == PaymentStatus.PENDING
        assert booking.nights == 5
        assert booking.subtotal == Decimal("500.00")
        assert booking.taxes == Decimal("60.00")
        assert booking.total == Decimal("610.00")
        assert len(booking.rooms) == 1
        assert booking.rooms[0].price == Decimal("100.00")
        assert booking.created_at is not None
        assert await counts(db, room) == [1] * 5

    async def test_redeems_promotion(self, db, setup):
        guest, hotel, room = setup
        promotion = await make_promotion(db, code="TWENTY", usage_limit=5)
        booking = await book(db, guest, hotel, room, promo_code="TWENTY")

        assert booking.discount == Decimal("100.00")
        assert booking.total == Decimal("510.00")
        assert booking.promotion_id == promotion.id
        await db.refresh(promotion)
        assert promotion.usage_count == 1

    async def test_exhausted_promotion_rolls_back(self, db, setup):
        guest, hotel, room = setup
        await make_promotion(db, code="ONCE", usage_limit=1, usage_count=1)
        with pytest.raises(InvalidPromotion):
            await book(db, guest, hotel, room, promo_code="ONCE")
        assert await counts(db, room) == [2] * 5

    async def test_quantity_above_available(self, db, setup):
        guest, hotel, room = setup
        with pytest.raises(Unavailable):
            await book(db, guest, hotel, room, quantity=3)
        assert await counts(db, room) == [2] * 5

    async def test_second_booking_cannot_oversell(self, db, setup):
        guest, hotel, room = setup
        await book(db, guest, hotel, room, quantity=2)
        with pytest.raises(Unavailable):
            await book(db, guest, hotel, room, quantity=1)
        assert await counts(db, room) == [0] * 5

    async def test_check_in_must_be_future(self, db, setup):
        guest, hotel, room = setup
        with pytest.raises(InvalidDateRange):
            await book(db, guest, hotel, room, check_in=TODAY, check_out=TODAY + timedelta(days=2))

    async def test_check_out_after_check_in(self, db, setup):
        guest, hotel, room = setup
        with pytest.raises(InvalidDateRange):
            await book(db, guest, hotel, room, check_in=CHECK_IN, check_out=CHECK_IN)


class TestUpdate:
    async def test_non_date_fields(self, db, setup):
        booking = await book(db, *setup)
        updated = await booking_service.update(db, booking, {"adults": 2, "special_requests": "Late arrival"})
        assert updated.adults == 2
        assert updated.special_requests == "Late arrival"

    async def test_date_change_rejected(self, db, setup):
        booking = await book(db, *setup)
        with pytest.raises(InvalidDateRange, match="new booking"):
            await booking_service.update(db, booking, {"check_in": CHECK_IN + timedelta(days=1)})

    async def test_cancelled_booking_is_frozen(self, db, setup):
        booking = await book(db, *setup)
        booking = await booking_service.cancel(db, booking, "Change of plans", now=ARRIVAL - timedelta(days=10))
        with pytest.raises(InvalidBookingState):
            await booking_service.update(db, booking, {"adults": 2})

    def test_null_for_required_field_is_rejected(self):
        with pytest.raises(ValidationError, match="guest_first_name"):
            UpdateBookingRequest.model_validate({"guest_first_name": None})
        with pytest.raises(ValidationError, match="adults"):
            UpdateBookingRequest.model_validate({"adults": None})

    def test_null_special_requests_is_allowed(self):
        req = UpdateBookingRequest.model_validate({"special_requests": None})
        assert req.model_dump(exclude_unset=True) == {"special_requests": None}

    async def test_failed_commit_rolls_back(self, db, setup):
        booking = await book(db, *setup)
        with pytest.raises(IntegrityError):
            await booking_service.update(db, booking, {"guest_last_name": None})
        booking = await booking_service.get(db, booking.id)
        assert booking.guest_last_name == "Naseem"


class TestCancel:
    async def test_restores_inventory_and_refunds(self, db, setup):
        guest, hotel, room = setup
        booking = await book(db, guest, hotel, room, quantity=2)
        assert await counts(db, room) == [0] * 5

        cancelled = await booking_service.cancel(db, booking, "Flight cancelled", now=ARRIVAL - timedelta(days=10))
        assert cancelled.status == BookingStatus.CANCELLED
        assert cancelled.refund_amount == cancelled.total
        assert cancelled.cancellation_reason == "Flight cancelled"
        assert cancelled.cancelled_at is not None
        assert await counts(db, room) == [2] * 5

    async def test_partial_refund_on_paid_booking(self, db, setup):
        booking = await book(db, *setup)
        booking.payment_status = PaymentStatus.COMPLETED.value
        await db.commit()

        cancelled = await booking_service.cancel(db, booking, None, now=ARRIVAL - timedelta(days=5))
        assert cancelled.refund_amount == Decimal("305.00")
        assert cancelled.payment_status == PaymentStatus.PARTIALLY_REFUNDED

    async def test_promotion_usage_not_returned(self, db, setup):
        promotion = await make_promotion(db, code="KEEP")
        booking = await book(db, *setup, promo_code="KEEP")
        await booking_service.cancel(db, booking, None, now=ARRIVAL - timedelta(days=10))
        await db.refresh(promotion)
        assert promotion.usage_count == 1

    async def test_cannot_cancel_twice(self, db, setup):
        booking = await book(db, *setup)
        booking = await booking_service.cancel(db, booking, None, now=ARRIVAL - timedelta(days=10))
        with pytest.raises(InvalidBookingState):
            await booking_service.cancel(db, booking, None)

    async def test_cannot_cancel_checked_out(self, db, setup):
        booking = await book(db, *setup)
        for status in ("CONFIRMED", "CHECKED_IN", "CHECKED_OUT"):
            booking = await booking_service.set_status(db, booking, status)
        with pytest.raises(InvalidBookingState):
            await booking_service.cancel(db, booking, None)


class TestSetStatus:
    async def test_forward_path(self, db, setup):
        booking = await book(db, *setup)
        booking = await booking_service.set_status(db, booking, "CONFIRMED")
        booking = await booking_service.set_status(db, booking, "CHECKED_IN")
        assert booking.status == BookingStatus.CHECKED_IN

    async def test_no_skipping_or_going_back(self, db, setup):
        booking = await book(db, *setup)
        with pytest.raises(InvalidBookingState):
            await booking_service.set_status(db, booking, "CHECKED_OUT")
        booking = await booking_service.set_status(db, booking, "CONFIRMED")
        with pytest.raises(InvalidBookingState):
            await booking_service.set_status(db, booking, "PENDING")

    async def test_cancelled_goes_through_cancel(self, db, setup):
        guest, hotel, room = setup
        booking = await book(db, guest, hotel, room)
        booking = await booking_service.set_status(db, booking, "CANCELLED", now=ARRIVAL - timedelta(days=10))
        assert booking.status == BookingStatus.CANCELLED
        assert await counts(db, room) == [2] * 5


class TestRecordPayment:
    async def _with_payment(self, db, setup, intent_id):
        booking = await book(db, *setup)
        db.add(Payment(booking_id=booking.id, amount=booking.total, currency="USD", stripe_payment_id=intent_id))
        await db.commit()
        return booking

    async def test_success_confirms(self, db, setup):
        booking = await self._with_payment(db, setup, "pi_ok")
        booking = await booking_service.record_payment(
            db, booking, PaymentIntentResult(intent_id="pi_ok", status="succeeded")
        )
        assert booking.status == BookingStatus.CONFIRMED
        assert booking.payment_status == PaymentStatus.COMPLETED
        assert booking.stripe_payment_id == "pi_ok"

    async def test_failure_leaves_pending(self, db, setup):
        booking = await self._with_payment(db, setup, "pi_bad")
        with pytest.raises(PaymentFailed):
            await booking_service.record_payment(
                db, booking, PaymentIntentResult(intent_id="pi_bad", status="requires_payment_method")
            )
        booking = await booking_service.get(db, booking.id)
        assert booking.status == BookingStatus.PENDING
        assert booking.payment_status == PaymentStatus.FAILED

    async def _cancel_while_processing(self, db, setup, intent_id, now):
        booking = await self._with_payment(db, setup, intent_id)
        booking.payment_status = PaymentStatus.PROCESSING.value
        await db.commit()
        booking = await booking_service.cancel(db, booking, "Plans changed", now=now)
        assert booking.payment_status == PaymentStatus.PROCESSING
        return booking

    async def test_success_after_cancel_settles_full_refund(self, db, setup):
        booking = await self._cancel_while_processing(db, setup, "pi_late", ARRIVAL - timedelta(days=10))
        booking = await booking_service.record_payment(
            db, booking, PaymentIntentResult(intent_id="pi_late", status="succeeded")
        )
        assert booking.status == BookingStatus.CANCELLED
        assert booking.refund_amount == Decimal("610.00")
        assert booking.payment_status == PaymentStatus.REFUNDED

    async def test_success_after_cancel_settles_half_refund(self, db, setup):
        booking = await self._cancel_while_processing(db, setup, "pi_half", ARRIVAL - timedelta(days=5))
        booking = await booking_service.record_payment(
            db, booking, PaymentIntentResult(intent_id="pi_half", status="succeeded")
        )
        assert booking.status == BookingStatus.CANCELLED
        assert booking.payment_status == PaymentStatus.PARTIALLY_REFUNDED

    async def test_success_after_late_cancel_keeps_payment(self, db, setup):
        booking = await self._cancel_while_processing(db, setup, "pi_kept", ARRIVAL - timedelta(days=1))
        booking = await booking_service.record_payment(
            db, booking, PaymentIntentResult(intent_id="pi_kept", status="succeeded")
        )
        assert booking.status == BookingStatus.CANCELLED
        assert booking.refund_amount == Decimal("0.00")
        assert booking.payment_status == PaymentStatus.COMPLETED


class TestNegativeTotal:
    async def test_cancel_records_zero_refund(self, db, setup):
        await make_promotion(db, code="BIGFIX", discount_type="FIXED_AMOUNT", discount_value=Decimal("700"))
        booking = await book(db, *setup, promo_code="BIGFIX")
        assert booking.total == Decimal("-90.00")

        cancelled = await booking_service.cancel(db, booking, None, now=ARRIVAL - timedelta(days=10))
        assert cancelled.refund_amount == Decimal("0.00")


class TestInterleavedBookings:
    """Two sessions on separate connections racing for the last unit."""

    async def _seed(self, session_factory):
        async with session_factory() as db:
            first_guest = await make_user(db)
            second_guest = await make_user(db)
            hotel = await make_hotel(db)
            room = await make_room(db, hotel, total_units=1)
            return first_guest, second_guest, hotel, room

    async def _ledger_and_bookings(self, session_factory, room):
        async with session_factory() as db:
            available = await counts(db, room)
            booked = (await db.execute(select(func.count(Booking.id)))).scalar_one()
        return available, booked

    async def test_stale_quote_cannot_take_sold_unit(self, file_session_factory, monkeypatch):
        first_guest, second_guest, hotel, room = await self._seed(file_session_factory)
        quote_then_lose = pricing_service.calculate

        async with file_session_factory() as first, file_session_factory() as second:

            async def calculate(db, *args, **kwargs):
                quote = await quote_then_lose(db, *args, **kwargs)
                if db is second:
                    # The second guest has a quote for the last unit; the first guest books it now
                    await book(first, first_guest, hotel, room)
                return quote

            monkeypatch.setattr(pricing_service, "calculate", calculate)
            with pytest.raises(Unavailable):
                await book(second, second_guest, hotel, room)

        available, booked = await self._ledger_and_bookings(file_session_factory, room)
        assert available == [0] * 5
        assert booked == 1

    async def test_write_between_read_and_update_is_detected(self, file_session_factory, monkeypatch):
        _, _, _, room = await self._seed(file_session_factory)
        read_then_lose = inventory_ledger.get_range
        raced = []

        async with file_session_factory() as first, file_session_factory() as second:

            async def get_range(db, *args, **kwargs):
                records = await read_then_lose(db, *args, **kwargs)
                if db is second and not raced:
                    raced.append(True)
                    await inventory_ledger.decrement(first, room.id, CHECK_IN, CHECK_OUT, 1)
                    await first.commit()
                return records

            monkeypatch.setattr(inventory_ledger, "get_range", get_range)
            with pytest.raises(InsufficientInventory, match="changed while booking"):
                await inventory_ledger.decrement(second, room.id, CHECK_IN, CHECK_OUT, 1)
            await second.rollback()

        monkeypatch.undo()
        available, _ = await self._ledger_and_bookings(file_session_factory, room)
        assert available == [0] * 5
