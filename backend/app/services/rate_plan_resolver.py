"""Rate plan resolver: picks the single pricing override for a stay."""

import logging
import uuid
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.rate_plan import RatePlan

logger = logging.getLogger(__name__)

HUNDRED = Decimal("100")


class RatePlanResolver:
    """Selects and applies the highest-priority eligible rate plan."""

    async def eligible_plans(
        self,
        db: AsyncSession,
        room_id: uuid.UUID,
        check_in: date,
        check_out: date,
    ) -> list[RatePlan]:
        """Active plans whose validity window covers the whole stay."""
        result = await db.execute(
            select(RatePlan)
            .where(
                RatePlan.room_id == room_id,
                RatePlan.is_active == True,  # noqa: E712
                RatePlan.start_date <= check_in,
                RatePlan.end_date >= check_out,
            )
            .order_by(RatePlan.priority.desc(), RatePlan.created_at.asc())
        )
        return list(result.scalars().all())

    @staticmethod
    def matches_stay(plan: RatePlan, nights: int) -> bool:
        if nights < (plan.min_stay or 1):
            return False
        if plan.max_stay is not None and nights > plan.max_stay:
            return False
        return True

    def select_plan(self, plans: Iterable[RatePlan], nights: int) -> RatePlan | None:
        """Highest priority wins; on a tie the first plan encountered is kept."""
        best: RatePlan | None = None
        for plan in plans:
            if not self.matches_stay(plan, nights):
                continue
            if best is None or (plan.priority or 0) > (best.priority or 0):
                best = plan
        return best

    @staticmethod
    def apply_plan(plan: RatePlan, ledger_sum: Decimal, nights: int) -> Decimal:
        """Stay total for one unit under ``plan``."""
        if plan.discount is not None and plan.markup is not None:
            logger.warning(
                f"Rate plan {plan.id} has both discount and markup set; using discount"
            )
        if plan.discount is not None:
            return ledger_sum * (1 - Decimal(plan.discount) / HUNDRED)
        if plan.markup is not None:
            return ledger_sum * (1 + Decimal(plan.markup) / HUNDRED)
        return Decimal(plan.base_price) * nights

    def price_stay(
        self, plans: Iterable[RatePlan], ledger_sum: Decimal, nights: int
    ) -> tuple[Decimal, RatePlan | None]:
        plan = self.select_plan(plans, nights)
        if plan is None:
            return ledger_sum, None
        return self.apply_plan(plan, ledger_sum, nights), plan


rate_plan_resolver = RatePlanResolver()
