"""
exceptions.py

Typed refusals raised by the reservation core, and the DRF exception handler
that turns them into HTTP responses at the API boundary.
"""

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler


class AdmissionError(Exception):
    """Base class for every refusal the reservation core can return."""

    code = "admission_error"
    default_message = "Request could not be admitted"
    http_status = status.HTTP_400_BAD_REQUEST

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ------------------------------------------------------------------------------
# Lookups
# ------------------------------------------------------------------------------

class NotFound(AdmissionError):
    code = "not_found"
    default_message = "Not found"
    http_status = status.HTTP_404_NOT_FOUND


class RestaurantNotFound(NotFound):
    default_message = "Restaurant not found"


class ReservationNotFound(NotFound):
    default_message = "Reservation not found"


class HolidayNotFound(NotFound):
    default_message = "Holiday not found"


class UserNotFound(NotFound):
    default_message = "User not found"


# ------------------------------------------------------------------------------
# Authorization
# ------------------------------------------------------------------------------

class Forbidden(AdmissionError):
    code = "forbidden"
    default_message = "Not authorized"
    http_status = status.HTTP_403_FORBIDDEN


# ------------------------------------------------------------------------------
# Booking rules
# ------------------------------------------------------------------------------

class HolidayBlackout(AdmissionError):
    code = "holiday_blackout"
    default_message = "Restaurant is closed on this day (holiday)"


class DailyQuotaExceeded(AdmissionError):
    code = "daily_quota_exceeded"
    default_message = "You can only make up to 3 reservations per day"


class SlotFull(AdmissionError):
    code = "slot_full"
    default_message = "Time slot is fully booked"


class DuplicateHoliday(AdmissionError):
    code = "duplicate_holiday"
    default_message = "This date is already marked as a holiday for this restaurant"


class InvalidTransition(AdmissionError):
    code = "invalid_transition"
    default_message = "Reservation cannot move to the requested status"


class ActiveReservationsExist(AdmissionError):
    code = "active_reservations_exist"
    default_message = "Cannot delete while active reservations exist"


# ==============================================================================
# DRF boundary
# ==============================================================================

def admission_exception_handler(exc, context):
    """
    REST_FRAMEWORK["EXCEPTION_HANDLER"] hook.

    AdmissionError subclasses become ``{"detail": ..., "code": ...}`` with the
    class's HTTP status; anything else falls through to DRF's default handler.
    """
    if isinstance(exc, AdmissionError):
        return Response(
            {"detail": exc.message, "code": exc.code},
            status=exc.http_status,
        )
    return exception_handler(exc, context)
