from app.models.user import User
from app.models.hotel import Hotel, Room
from app.models.inventory import InventoryRecord
from app.models.rate_plan import RatePlan
from app.models.promotion import DiscountType, Promotion
from app.models.booking import Booking, BookingRoom, BookingStatus, Payment, PaymentStatus
from app.models.review import Review

__all__ = [
    "Booking",
    "BookingRoom",
    "BookingStatus",
    "DiscountType",
    "Hotel",
    "InventoryRecord",
    "Payment",
    "PaymentStatus",
    "Promotion",
    "RatePlan",
    "Review",
    "Room",
    "User",
]
