import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from app.schemas import reject_nulls

DiscountTypeName = Literal["PERCENTAGE", "FIXED_AMOUNT", "FREE_NIGHTS"]


class PromotionCreate(BaseModel):
    hotel_id: uuid.UUID | None = None
    title: str
    description: str | None = None
    code: str | None = Field(default=None, min_length=3, max_length=50)
    discount_type: DiscountTypeName
    discount_value: Decimal = Field(gt=0)
    max_discount: Decimal | None = Field(default=None, gt=0)
    start_date: date
    end_date: date
    usage_limit: int | None = Field(default=None, ge=1)
    min_amount: Decimal | None = Field(default=None, ge=0)
    min_nights: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def check_promotion(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.discount_type == "PERCENTAGE" and self.discount_value > 100:
            raise ValueError("Percentage discount cannot exceed 100")
        return self


class PromotionUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    discount_value: Decimal | None = Field(default=None, gt=0)
    max_discount: Decimal | None = Field(default=None, gt=0)
    start_date: date | None = None
    end_date: date | None = None
    usage_limit: int | None = Field(default=None, ge=1)
    min_amount: Decimal | None = Field(default=None, ge=0)
    min_nights: int | None = Field(default=None, ge=1)
    is_active: bool | None = None

    @model_validator(mode="after")
    def check_required(self):
        reject_nulls(self, ("title", "discount_value", "start_date", "end_date", "is_active"))
        return self


class ValidatePromoRequest(BaseModel):
    code: str
    hotel_id: uuid.UUID
    subtotal: Decimal = Field(ge=0)
    nights: int = Field(ge=1)


class PromotionResponse(BaseModel):
    id: uuid.UUID
    hotel_id: uuid.UUID | None
    title: str
    description: str | None
    code: str | None
    discount_type: str
    discount_value: float
    max_discount: float | None
    start_date: date
    end_date: date
    usage_limit: int | None
    usage_count: int
    min_amount: float | None
    min_nights: int | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
