"""Promotion service: promo code eligibility, discount maths and redemption."""

import logging
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InvalidPromotion
from app.models.promotion import DiscountType, Promotion

logger = logging.getLogger(__name__)


@dataclass
class PromotionEvaluation:
    valid: bool
    reason: str | None = None
    discount: Decimal = Decimal("0")
    promotion: Promotion | None = None


class PromotionService:
    """Evaluates promo codes against a priced stay."""

    @staticmethod
    def check_eligibility(
        promotion: Promotion,
        hotel_id: uuid.UUID | None,
        subtotal: Decimal,
        nights: int,
        today: date,
    ) -> str | None:
        """Return why ``promotion`` cannot be used, or None when it can."""
        if not promotion.is_active:
            return "Invalid or expired promo code"
        if not (promotion.start_date <= today <= promotion.end_date):
            return "Invalid or expired promo code"
        if promotion.hotel_id is not None and promotion.hotel_id != hotel_id:
            return "Promo code is not valid for this hotel"
        if promotion.usage_limit is not None and (promotion.usage_count or 0) >= promotion.usage_limit:
            return "Promo code usage limit exceeded"
        if promotion.min_amount is not None and subtotal < promotion.min_amount:
            return f"Minimum booking amount of {promotion.min_amount} required for this promotion"
        if promotion.min_nights is not None and nights < promotion.min_nights:
            return f"Minimum {promotion.min_nights} nights required for this promotion"
        return None

    @staticmethod
    def compute_discount(promotion: Promotion, subtotal: Decimal, nights: int) -> Decimal:
        """Raw discount amount; FIXED_AMOUNT is not capped at the subtotal."""
        value = Decimal(promotion.discount_value)
        kind = promotion.discount_type

        if kind == DiscountType.PERCENTAGE:
            discount = subtotal * value / Decimal("100")
            if promotion.max_discount is not None:
                discount = min(discount, Decimal(promotion.max_discount))
            return discount
        if kind == DiscountType.FIXED_AMOUNT:
            return value
        if kind == DiscountType.FREE_NIGHTS:
            if nights <= 0:
                return Decimal("0")
            return subtotal / nights * value
        raise ValueError(f"Unknown discount type: {kind}")

    async def get_by_code(self, db: AsyncSession, code: str) -> Promotion | None:
        result = await db.execute(select(Promotion).where(Promotion.code == code))
        return result.scalar_one_or_none()

    async def evaluate(
        self,
        db: AsyncSession,
        code: str,
        hotel_id: uuid.UUID | None,
        subtotal: Decimal,
        nights: int,
        today: date | None = None,
    ) -> PromotionEvaluation:
        today = today or date.today()
        promotion = await self.get_by_code(db, code)
        if promotion is None:
            return PromotionEvaluation(valid=False, reason="Invalid or expired promo code")

        reason = self.check_eligibility(promotion, hotel_id, subtotal, nights, today)
        if reason:
            return PromotionEvaluation(valid=False, reason=reason, promotion=promotion)

        return PromotionEvaluation(
            valid=True,
            discount=self.compute_discount(promotion, subtotal, nights),
            promotion=promotion,
        )

    async def redeem(self, db: AsyncSession, promotion: Promotion) -> None:
        """Count one use. The limit check and increment are a single statement."""
        result = await db.execute(
            update(Promotion)
            .where(
                Promotion.id == promotion.id,
                or_(
                    Promotion.usage_limit.is_(None),
                    Promotion.usage_count < Promotion.usage_limit,
                ),
            )
            .values(usage_count=Promotion.usage_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidPromotion("Promo code usage limit exceeded")
        await db.refresh(promotion, ["usage_count"])
        logger.info(f"Promotion {promotion.code} redeemed")

    async def list_active(
        self, db: AsyncSession, hotel_id: uuid.UUID | None = None, today: date | None = None
    ) -> list[Promotion]:
        today = today or date.today()
        query = select(Promotion).where(
            Promotion.is_active == True,  # noqa: E712
            Promotion.start_date <= today,
            Promotion.end_date >= today,
        )
        if hotel_id:
            query = query.where(or_(Promotion.hotel_id == hotel_id, Promotion.hotel_id.is_(None)))
        result = await db.execute(query.order_by(Promotion.created_at.desc()))
        return list(result.scalars().all())


promotion_service = PromotionService()
