import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field, model_validator

from app.schemas import reject_nulls


class RoomSelection(BaseModel):
    room_id: uuid.UUID
    quantity: int = Field(default=1, ge=1)


class QuoteRequest(BaseModel):
    hotel_id: uuid.UUID | None = None
    rooms: list[RoomSelection] = Field(min_length=1)
    check_in: date
    check_out: date
    promo_code: str | None = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.check_out <= self.check_in:
            raise ValueError("Check-out date must be after check-in date")
        return self


class CreateBookingRequest(QuoteRequest):
    hotel_id: uuid.UUID
    guest_first_name: str = Field(min_length=1)
    guest_last_name: str = Field(min_length=1)
    guest_email: EmailStr
    guest_phone: str = Field(min_length=3)
    adults: int = Field(default=1, ge=1)
    children: int = Field(default=0, ge=0)
    infants: int = Field(default=0, ge=0)
    special_requests: str | None = None


class UpdateBookingRequest(BaseModel):
    check_in: date | None = None
    check_out: date | None = None
    adults: int | None = Field(default=None, ge=1)
    children: int | None = Field(default=None, ge=0)
    infants: int | None = Field(default=None, ge=0)
    special_requests: str | None = None
    guest_first_name: str | None = Field(default=None, min_length=1)
    guest_last_name: str | None = Field(default=None, min_length=1)
    guest_email: EmailStr | None = None
    guest_phone: str | None = Field(default=None, min_length=3)

    @model_validator(mode="after")
    def check_required(self):
        reject_nulls(
            self,
            ("adults", "children", "infants", "guest_first_name", "guest_last_name", "guest_email", "guest_phone"),
        )
        return self


class CancelBookingRequest(BaseModel):
    reason: str | None = None


class StatusUpdateRequest(BaseModel):
    status: Literal["PENDING", "CONFIRMED", "CHECKED_IN", "CHECKED_OUT", "CANCELLED", "NO_SHOW"]


class BookingRoomResponse(BaseModel):
    id: uuid.UUID
    room_id: uuid.UUID
    rate_plan_id: uuid.UUID | None
    quantity: int
    price: float
    total: float

    model_config = {"from_attributes": True}


class BookingResponse(BaseModel):
    id: uuid.UUID
    booking_number: str
    user_id: uuid.UUID
    hotel_id: uuid.UUID
    promotion_id: uuid.UUID | None
    guest_first_name: str
    guest_last_name: str
    guest_email: str
    guest_phone: str
    check_in: date
    check_out: date
    nights: int
    adults: int
    children: int
    infants: int
    subtotal: float
    taxes: float
    fees: float
    discount: float
    total: float
    currency: str
    status: str
    payment_status: str
    special_requests: str | None
    cancelled_at: datetime | None
    cancellation_reason: str | None
    refund_amount: float | None
    rooms: list[BookingRoomResponse]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
