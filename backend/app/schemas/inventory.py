import uuid
from datetime import date as date_type
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from app.schemas import reject_nulls


class InventoryFields(BaseModel):
    available: int | None = Field(default=None, ge=0)
    price: Decimal | None = Field(default=None, gt=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    min_stay: int | None = Field(default=None, ge=1)
    max_stay: int | None = Field(default=None, ge=1)
    is_blocked: bool | None = None
    reason: str | None = None

    @model_validator(mode="after")
    def check_required(self):
        reject_nulls(self, ("available", "price", "currency", "is_blocked"))
        return self

    def changes(self) -> dict:
        return self.model_dump(
            exclude_unset=True,
            include={"available", "price", "currency", "min_stay", "max_stay", "is_blocked", "reason"},
        )


class InventoryUpdate(InventoryFields):
    room_id: uuid.UUID
    date: date_type


class BulkInventoryUpdate(InventoryFields):
    room_id: uuid.UUID
    start_date: date_type
    end_date: date_type

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class BlockRequest(BaseModel):
    room_id: uuid.UUID
    start_date: date_type
    end_date: date_type
    is_blocked: bool = True
    reason: str | None = None

    @model_validator(mode="after")
    def check_range(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class InventoryRecordResponse(BaseModel):
    id: uuid.UUID
    room_id: uuid.UUID
    date: date_type
    available: int
    price: float
    currency: str
    min_stay: int | None
    max_stay: int | None
    is_blocked: bool
    reason: str | None

    model_config = {"from_attributes": True}
