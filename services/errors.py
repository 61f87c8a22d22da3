class BookingError(Exception):
    """Base for every outcome the booking core reports to its callers."""

    code = "BOOKING_ERROR"
    message = "Booking request failed"
    http_status = 400

    def __init__(self, message: str = None, **details):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.details = details

    def to_dict(self):
        return {"error": self.message, "code": self.code}


class NotFound(BookingError):
    code = "NOT_FOUND"
    message = "Not found"
    http_status = 404


class SlotUnavailable(BookingError):
    code = "SLOT_UNAVAILABLE"
    message = "Slot is not available for the selected duration."
    http_status = 409


class SlotBlocked(BookingError):
    code = "SLOT_BLOCKED"
    message = "This slot has been blocked by the administrator."
    http_status = 409


class AlreadyCancelled(BookingError):
    code = "ALREADY_CANCELLED"
    message = "Booking is already cancelled."
    http_status = 409


class InvalidTransition(BookingError):
    code = "INVALID_TRANSITION"
    message = "Booking status cannot be changed."
    http_status = 409


class InvalidRequest(BookingError):
    code = "INVALID_REQUEST"
    message = "Invalid booking request"
    http_status = 400


class TransientFailure(BookingError):
    code = "TRANSIENT_FAILURE"
    message = "Booking could not be completed, please try again."
    http_status = 503
