"""Stripe payment gateway: the only contract the booking core relies on."""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from decimal import Decimal

import stripe

from app.config import settings
from app.exceptions import PaymentFailed

logger = logging.getLogger(__name__)


@dataclass
class PaymentIntentResult:
    intent_id: str
    status: str
    client_secret: str | None = None
    metadata: dict = field(default_factory=dict)
    raw: dict = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"


def to_minor_units(amount: Decimal) -> int:
    return int((Decimal(amount) * 100).to_integral_value())


def _intent_result(intent) -> PaymentIntentResult:
    # StripeObject renders itself as JSON
    raw = json.loads(str(intent))
    return PaymentIntentResult(
        intent_id=raw["id"],
        status=raw["status"],
        client_secret=raw.get("client_secret"),
        metadata=raw.get("metadata") or {},
        raw=raw,
    )


class StripeGateway:
    """Thin async wrapper around the synchronous Stripe SDK. Calls are never retried."""

    def __init__(self, api_key: str | None = None, webhook_secret: str | None = None):
        self.api_key = api_key if api_key is not None else settings.stripe_secret_key
        self.webhook_secret = (
            webhook_secret if webhook_secret is not None else settings.stripe_webhook_secret
        )

    async def create_intent(
        self, amount: Decimal, currency: str, metadata: dict, description: str | None = None
    ) -> PaymentIntentResult:
        if not self.api_key:
            raise PaymentFailed("Payment gateway is not configured")
        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.create,
                amount=to_minor_units(amount),
                currency=currency.lower(),
                metadata=metadata,
                description=description,
                api_key=self.api_key,
            )
        except stripe.StripeError as e:
            logger.warning(f"Stripe create_intent failed: {e}")
            raise PaymentFailed(f"Payment provider error: {e.user_message or str(e)}")
        return _intent_result(intent)

    async def retrieve_intent(self, intent_id: str) -> PaymentIntentResult:
        try:
            intent = await asyncio.to_thread(
                stripe.PaymentIntent.retrieve, intent_id, api_key=self.api_key
            )
        except stripe.StripeError as e:
            logger.warning(f"Stripe retrieve_intent failed: {e}")
            raise PaymentFailed(f"Payment provider error: {e.user_message or str(e)}")
        return _intent_result(intent)

    def construct_event(self, payload: bytes, signature: str | None) -> dict:
        """Verify a webhook payload. Raises ValueError on bad payloads or signatures."""
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise ValueError(f"Invalid signature: {e}")
        return {
            "type": event["type"],
            "intent": _intent_result(event["data"]["object"]),
        }


payment_gateway = StripeGateway()


def get_payment_gateway() -> StripeGateway:
    return payment_gateway
