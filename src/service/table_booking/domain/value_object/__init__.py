"""Table Booking Domain Value Objects"""

from src.service.table_booking.domain.value_object.booking_continuation import (
    BookingContinuation,
    ChatAction,
)
from src.service.table_booking.domain.value_object.pricing_result import (
    PricingFactor,
    PricingResult,
)
from src.service.table_booking.domain.value_object.time_range import TimeRange

__all__ = ['BookingContinuation', 'ChatAction', 'PricingFactor', 'PricingResult', 'TimeRange']
