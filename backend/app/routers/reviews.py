"""Reviews router: published reviews per hotel, guest submissions and moderation."""

import logging
import math
import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import ADMIN_ROLES, User
from app.schemas.review import ReviewCreate, ReviewResponse, ReviewUpdate
from app.services.access_control import access_control
from app.services.review_service import review_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/hotel/{hotel_id}")
async def list_hotel_reviews(
    hotel_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    rows, total = await review_service.list_published(db, hotel_id, page, limit)
    return {
        "reviews": [
            {
                **ReviewResponse.model_validate(review).model_dump(mode="json"),
                "author": {"first_name": author.first_name, "last_name": author.last_name},
            }
            for review, author in rows
        ],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": math.ceil(total / limit),
        },
    }


@router.post("", status_code=201, response_model=ReviewResponse)
async def create_review(
    req: ReviewCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    review = await review_service.create(db, user, req.model_dump())
    return ReviewResponse.model_validate(review)


@router.put("/{review_id}", response_model=ReviewResponse)
async def update_review(
    review_id: uuid.UUID,
    req: ReviewUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    review = await review_service.get(db, review_id)
    review = await review_service.update(db, user, review, req.model_dump(exclude_unset=True))
    return ReviewResponse.model_validate(review)


@router.delete("/{review_id}")
async def delete_review(
    review_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    review = await review_service.get(db, review_id)
    await review_service.delete(db, user, review)
    return {"id": str(review_id), "deleted": True}


@router.patch("/{review_id}/approve", response_model=ReviewResponse)
async def approve_review(
    review_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    access_control.require_role(user, *ADMIN_ROLES)
    review = await review_service.get(db, review_id)
    review = await review_service.approve(db, user, review)
    return ReviewResponse.model_validate(review)
