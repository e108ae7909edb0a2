"""Guest reviews: only guests who completed a stay may review, and edits go back to moderation."""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import Conflict, Forbidden, NotFound, ReviewNotAllowed
from app.models.booking import Booking, BookingStatus
from app.models.hotel import Hotel
from app.models.review import Review
from app.models.user import User
from app.services.access_control import access_control

logger = logging.getLogger(__name__)

RATING_FIELDS = {
    "overall": Review.overall_rating,
    "cleanliness": Review.cleanliness_rating,
    "service": Review.service_rating,
    "location": Review.location_rating,
    "value": Review.value_rating,
}


class ReviewService:
    async def get(self, db: AsyncSession, review_id: uuid.UUID) -> Review:
        review = await db.get(Review, review_id)
        if review is None:
            raise NotFound("Review")
        return review

    @staticmethod
    def _ensure_author(user: User, review: Review) -> None:
        if review.user_id != user.id and not access_control.is_admin(user):
            raise Forbidden("Not authorized to change this review")

    async def create(self, db: AsyncSession, user: User, fields: dict) -> Review:
        hotel_id = fields["hotel_id"]
        if await db.get(Hotel, hotel_id) is None:
            raise NotFound("Hotel")

        stayed = await db.execute(
            select(Booking.id)
            .where(
                Booking.user_id == user.id,
                Booking.hotel_id == hotel_id,
                Booking.status == BookingStatus.CHECKED_OUT.value,
            )
            .limit(1)
        )
        if stayed.scalar_one_or_none() is None:
            raise ReviewNotAllowed("You can only review hotels where you have completed a stay")

        existing = await db.execute(
            select(Review.id).where(Review.user_id == user.id, Review.hotel_id == hotel_id)
        )
        if existing.scalar_one_or_none() is not None:
            raise Conflict("You have already reviewed this hotel")

        review = Review(user_id=user.id, is_verified=True, is_approved=False, **fields)
        db.add(review)
        await db.commit()
        await db.refresh(review)
        logger.info(f"Review {review.id} submitted for hotel {hotel_id} by {user.email}")
        return review

    async def update(self, db: AsyncSession, user: User, review: Review, changes: dict) -> Review:
        self._ensure_author(user, review)
        for field, value in changes.items():
            setattr(review, field, value)
        review.is_approved = False
        review.moderated_by = None
        review.moderated_at = None
        await db.commit()
        await db.refresh(review)
        return review

    async def delete(self, db: AsyncSession, user: User, review: Review) -> None:
        self._ensure_author(user, review)
        await db.delete(review)
        await db.commit()
        logger.info(f"Review {review.id} deleted by {user.email}")

    async def approve(self, db: AsyncSession, moderator: User, review: Review) -> Review:
        review.is_approved = True
        review.moderated_by = moderator.id
        review.moderated_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(review)
        logger.info(f"Review {review.id} approved by {moderator.email}")
        return review

    async def list_published(
        self, db: AsyncSession, hotel_id: uuid.UUID, page: int, limit: int
    ) -> tuple[list[tuple[Review, User]], int]:
        published = (Review.hotel_id == hotel_id, Review.is_approved == True)  # noqa: E712
        total = (await db.execute(select(func.count(Review.id)).where(*published))).scalar_one()
        result = await db.execute(
            select(Review, User)
            .join(User, User.id == Review.user_id)
            .where(*published)
            .order_by(Review.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return [tuple(row) for row in result.all()], total

    async def ratings(self, db: AsyncSession, hotel_id: uuid.UUID) -> dict:
        """Average of each rating over approved reviews, one decimal; 0 when nobody rated it."""
        row = (
            await db.execute(
                select(
                    func.count(Review.id),
                    *(func.avg(column) for column in RATING_FIELDS.values()),
                ).where(Review.hotel_id == hotel_id, Review.is_approved == True)  # noqa: E712
            )
        ).one()
        count, averages = row[0], row[1:]
        return {
            "review_count": count,
            "ratings": {
                name: round(float(avg), 1) if avg is not None else 0
                for name, avg in zip(RATING_FIELDS, averages)
            },
        }


review_service = ReviewService()
