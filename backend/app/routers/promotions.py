"""Promotions router: public listing, code validation and management."""

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user, require_management
from app.exceptions import Conflict, NotFound
from app.models.promotion import Promotion
from app.models.user import ADMIN_ROLES, User
from app.schemas.promotion import (
    PromotionCreate,
    PromotionResponse,
    PromotionUpdate,
    ValidatePromoRequest,
)
from app.services.access_control import access_control
from app.services.pricing_service import round_money
from app.services.promotion_service import promotion_service

logger = logging.getLogger(__name__)

router = APIRouter()


async def _ensure_can_manage(db: AsyncSession, user: User, hotel_id: uuid.UUID | None) -> None:
    """Site-wide promotions are admin-only; hotel promotions belong to the hotel's manager."""
    if hotel_id is None:
        access_control.require_role(user, *ADMIN_ROLES)
    else:
        await access_control.ensure_can_manage_hotel(db, user, hotel_id)


async def _get_promotion(db: AsyncSession, promotion_id: uuid.UUID) -> Promotion:
    promotion = await db.get(Promotion, promotion_id)
    if promotion is None:
        raise NotFound("Promotion")
    return promotion


@router.get("", response_model=list[PromotionResponse])
async def list_promotions(
    hotel_id: uuid.UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
):
    promotions = await promotion_service.list_active(db, hotel_id)
    return [PromotionResponse.model_validate(p) for p in promotions]


@router.post("/validate")
async def validate_promo_code(
    req: ValidatePromoRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    evaluation = await promotion_service.evaluate(db, req.code, req.hotel_id, req.subtotal, req.nights)
    if not evaluation.valid:
        return {"valid": False, "reason": evaluation.reason, "discount": 0}
    promotion = evaluation.promotion
    return {
        "valid": True,
        "reason": None,
        "discount": float(round_money(evaluation.discount)),
        "promotion": {
            "id": str(promotion.id),
            "title": promotion.title,
            "code": promotion.code,
            "discount_type": promotion.discount_type,
            "discount_value": float(promotion.discount_value),
        },
    }


@router.post("", status_code=201, response_model=PromotionResponse)
async def create_promotion(
    req: PromotionCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_management),
):
    await _ensure_can_manage(db, user, req.hotel_id)
    if req.code and await promotion_service.get_by_code(db, req.code):
        raise Conflict(f"Promo code {req.code} already exists")

    promotion = Promotion(**req.model_dump())
    db.add(promotion)
    await db.commit()
    await db.refresh(promotion)
    logger.info(f"Promotion {promotion.title} ({promotion.code}) created by {user.email}")
    return PromotionResponse.model_validate(promotion)


@router.put("/{promotion_id}", response_model=PromotionResponse)
async def update_promotion(
    promotion_id: uuid.UUID,
    req: PromotionUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_management),
):
    promotion = await _get_promotion(db, promotion_id)
    await _ensure_can_manage(db, user, promotion.hotel_id)

    for field, value in req.model_dump(exclude_unset=True).items():
        setattr(promotion, field, value)
    if promotion.end_date < promotion.start_date:
        raise HTTPException(status_code=422, detail="end_date must not be before start_date")
    await db.commit()
    await db.refresh(promotion)
    return PromotionResponse.model_validate(promotion)


@router.delete("/{promotion_id}")
async def deactivate_promotion(
    promotion_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_management),
):
    promotion = await _get_promotion(db, promotion_id)
    await _ensure_can_manage(db, user, promotion.hotel_id)
    promotion.is_active = False
    await db.commit()
    logger.info(f"Promotion {promotion.id} deactivated by {user.email}")
    return {"id": str(promotion.id), "is_active": False}
