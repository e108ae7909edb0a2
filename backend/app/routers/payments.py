"""Payments router: Stripe intents, confirmation and webhooks."""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.exceptions import NotFound
from app.models.booking import Booking, Payment
from app.models.user import User
from app.schemas.booking import BookingResponse
from app.services.access_control import access_control
from app.services.booking_service import booking_service
from app.services.payment_gateway import StripeGateway, get_payment_gateway

logger = logging.getLogger(__name__)

router = APIRouter()

HANDLED_EVENTS = ("payment_intent.succeeded", "payment_intent.payment_failed")


class CreateIntentRequest(BaseModel):
    booking_id: uuid.UUID


class ConfirmPaymentRequest(BaseModel):
    booking_id: uuid.UUID
    payment_intent_id: str


@router.post("/create-intent")
async def create_payment_intent(
    req: CreateIntentRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    booking = await booking_service.get(db, req.booking_id)
    access_control.ensure_owner(user, booking)
    intent = await booking_service.start_payment(db, booking, gateway)
    return {
        "client_secret": intent.client_secret,
        "payment_intent_id": intent.intent_id,
        "amount": float(booking.total),
        "currency": booking.currency,
    }


@router.post("/confirm", response_model=BookingResponse)
async def confirm_payment(
    req: ConfirmPaymentRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    booking = await booking_service.get(db, req.booking_id)
    access_control.ensure_owner(user, booking)

    intent = await gateway.retrieve_intent(req.payment_intent_id)
    if intent.metadata.get("booking_id") != str(booking.id):
        raise HTTPException(status_code=400, detail="Payment intent does not belong to this booking")

    booking = await booking_service.record_payment(db, booking, intent)
    return BookingResponse.model_validate(booking)


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    db: AsyncSession = Depends(get_db),
    gateway: StripeGateway = Depends(get_payment_gateway),
):
    payload = await request.body()
    try:
        event = gateway.construct_event(payload, request.headers.get("stripe-signature"))
    except ValueError as e:
        logger.warning(f"Rejected Stripe webhook: {e}")
        raise HTTPException(status_code=400, detail="Invalid webhook payload")

    if event["type"] not in HANDLED_EVENTS:
        return {"received": True}

    intent = event["intent"]
    booking_id = intent.metadata.get("booking_id")
    try:
        booking = await booking_service.get(db, uuid.UUID(booking_id))
    except (TypeError, ValueError, NotFound):
        logger.warning(f"Webhook for unknown booking {booking_id} (intent {intent.intent_id})")
        return {"received": True}

    await booking_service.record_payment(db, booking, intent, raise_on_failure=False)
    logger.info(f"Webhook {event['type']} applied to booking {booking.booking_number}")
    return {"received": True}


@router.get("/history")
async def payment_history(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    result = await db.execute(
        select(Payment, Booking.booking_number)
        .join(Booking, Payment.booking_id == Booking.id)
        .where(Booking.user_id == user.id)
        .order_by(Payment.created_at.desc())
    )
    return [
        {
            "id": str(payment.id),
            "booking_id": str(payment.booking_id),
            "booking_number": booking_number,
            "amount": float(payment.amount),
            "currency": payment.currency,
            "method": payment.method,
            "status": payment.status,
            "created_at": payment.created_at.isoformat() if payment.created_at else None,
        }
        for payment, booking_number in result.all()
    ]
