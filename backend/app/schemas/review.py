import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from app.schemas import reject_nulls


class ReviewCreate(BaseModel):
    hotel_id: uuid.UUID
    overall_rating: int = Field(ge=1, le=5)
    cleanliness_rating: int | None = Field(default=None, ge=1, le=5)
    service_rating: int | None = Field(default=None, ge=1, le=5)
    location_rating: int | None = Field(default=None, ge=1, le=5)
    value_rating: int | None = Field(default=None, ge=1, le=5)
    title: str | None = None
    content: str = Field(min_length=10)
    pros: str | None = None
    cons: str | None = None
    stay_date: date | None = None


class ReviewUpdate(BaseModel):
    overall_rating: int | None = Field(default=None, ge=1, le=5)
    cleanliness_rating: int | None = Field(default=None, ge=1, le=5)
    service_rating: int | None = Field(default=None, ge=1, le=5)
    location_rating: int | None = Field(default=None, ge=1, le=5)
    value_rating: int | None = Field(default=None, ge=1, le=5)
    title: str | None = None
    content: str | None = Field(default=None, min_length=10)
    pros: str | None = None
    cons: str | None = None
    stay_date: date | None = None

    @model_validator(mode="after")
    def check_required(self):
        reject_nulls(self, ("overall_rating", "content"))
        return self


class ReviewResponse(BaseModel):
    id: uuid.UUID
    hotel_id: uuid.UUID
    user_id: uuid.UUID
    overall_rating: int
    cleanliness_rating: int | None
    service_rating: int | None
    location_rating: int | None
    value_rating: int | None
    title: str | None
    content: str
    pros: str | None
    cons: str | None
    stay_date: date | None
    is_verified: bool
    is_approved: bool
    created_at: datetime

    model_config = {"from_attributes": True}
