"""Domain errors raised by the booking core.

Each error carries the HTTP status and a stable machine-readable code; the
handler registered in ``app.main`` renders them as ``{"detail", "code"}``.
"""


class BookingCoreError(Exception):
    status_code = 400
    code = "BOOKING_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(BookingCoreError):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")


class Unavailable(BookingCoreError):
    status_code = 409
    code = "UNAVAILABLE"


class InsufficientInventory(Unavailable):
    code = "INSUFFICIENT_INVENTORY"


class InvalidPromotion(BookingCoreError):
    status_code = 400
    code = "INVALID_PROMOTION"


class InvalidDateRange(BookingCoreError):
    status_code = 400
    code = "INVALID_DATE_RANGE"


class InvalidBookingState(BookingCoreError):
    status_code = 400
    code = "INVALID_BOOKING_STATE"


class Forbidden(BookingCoreError):
    status_code = 403
    code = "FORBIDDEN"


class PaymentFailed(BookingCoreError):
    status_code = 402
    code = "PAYMENT_FAILED"


class Conflict(BookingCoreError):
    status_code = 409
    code = "CONFLICT"


class ReviewNotAllowed(BookingCoreError):
    status_code = 400
    code = "REVIEW_NOT_ALLOWED"
