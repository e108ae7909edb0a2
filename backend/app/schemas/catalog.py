import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field, model_validator

from app.schemas import reject_nulls


class HotelCreate(BaseModel):
    name: str
    slug: str = Field(pattern=r"^[a-z0-9-]+$")
    description: str | None = None
    island: str | None = None
    atoll: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    star_rating: int | None = Field(default=None, ge=1, le=5)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    manager_id: uuid.UUID | None = None


class HotelUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    slug: str | None = Field(default=None, pattern=r"^[a-z0-9-]+$")
    description: str | None = None
    island: str | None = None
    atoll: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    star_rating: int | None = Field(default=None, ge=1, le=5)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    manager_id: uuid.UUID | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def check_required(self):
        reject_nulls(self, ("name", "slug", "currency", "is_active"))
        return self


class HotelResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    description: str | None
    island: str | None
    atoll: str | None
    star_rating: int | None
    currency: str
    manager_id: uuid.UUID | None
    is_active: bool

    model_config = {"from_attributes": True}


class RoomCreate(BaseModel):
    hotel_id: uuid.UUID
    name: str
    slug: str = Field(pattern=r"^[a-z0-9-]+$")
    description: str | None = None
    type: str = "STANDARD_ROOM"
    capacity: int = Field(default=2, ge=1)
    bed_type: str | None = None
    view: str | None = None
    base_price: Decimal = Field(gt=0)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    total_units: int = Field(default=1, ge=1)


class RoomUpdate(BaseModel):
    """Catalog fields only; units and nightly prices live in the ledger."""

    name: str | None = Field(default=None, min_length=1)
    slug: str | None = Field(default=None, pattern=r"^[a-z0-9-]+$")
    description: str | None = None
    type: str | None = None
    capacity: int | None = Field(default=None, ge=1)
    bed_type: str | None = None
    view: str | None = None
    base_price: Decimal | None = Field(default=None, gt=0)
    is_active: bool | None = None

    @model_validator(mode="after")
    def check_required(self):
        reject_nulls(self, ("name", "slug", "type", "capacity", "base_price", "is_active"))
        return self


class RoomResponse(BaseModel):
    id: uuid.UUID
    hotel_id: uuid.UUID
    name: str
    slug: str
    description: str | None
    type: str
    capacity: int
    bed_type: str | None
    view: str | None
    base_price: float
    currency: str
    total_units: int
    is_active: bool

    model_config = {"from_attributes": True}


class RatePlanCreate(BaseModel):
    name: str
    description: str | None = None
    base_price: Decimal = Field(ge=0)
    start_date: date
    end_date: date
    min_stay: int | None = Field(default=None, ge=1)
    max_stay: int | None = Field(default=None, ge=1)
    discount: Decimal | None = Field(default=None, ge=0, le=100)
    markup: Decimal | None = Field(default=None, ge=0)
    priority: int = 0

    @model_validator(mode="after")
    def check_plan(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        if self.discount is not None and self.markup is not None:
            raise ValueError("A rate plan may set discount or markup, not both")
        if self.min_stay and self.max_stay and self.max_stay < self.min_stay:
            raise ValueError("max_stay must not be less than min_stay")
        return self


class RatePlanUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    base_price: Decimal | None = Field(default=None, ge=0)
    start_date: date | None = None
    end_date: date | None = None
    min_stay: int | None = Field(default=None, ge=1)
    max_stay: int | None = Field(default=None, ge=1)
    discount: Decimal | None = Field(default=None, ge=0, le=100)
    markup: Decimal | None = Field(default=None, ge=0)
    priority: int | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def check_plan(self):
        reject_nulls(self, ("name", "base_price", "start_date", "end_date", "priority", "is_active"))
        if self.discount is not None and self.markup is not None:
            raise ValueError("A rate plan may set discount or markup, not both")
        return self


class RatePlanResponse(BaseModel):
    id: uuid.UUID
    room_id: uuid.UUID
    name: str
    description: str | None
    base_price: float
    start_date: date
    end_date: date
    min_stay: int | None
    max_stay: int | None
    discount: float | None
    markup: float | None
    priority: int
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
