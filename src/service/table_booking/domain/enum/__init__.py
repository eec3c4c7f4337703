"""Table Booking Domain Enums"""

from src.service.table_booking.domain.enum.actor_type import ActorType
from src.service.table_booking.domain.enum.booking_status import (
    ACTIVE_STATUSES,
    ALLOWED_TRANSITIONS,
    BookingStatus,
)
from src.service.table_booking.domain.enum.hold_status import HoldStatus
from src.service.table_booking.domain.enum.holiday_type import (
    BusinessImpact,
    HolidayType,
    TableType,
)

__all__ = [
    'ACTIVE_STATUSES',
    'ALLOWED_TRANSITIONS',
    'ActorType',
    'BookingStatus',
    'BusinessImpact',
    'HoldStatus',
    'HolidayType',
    'TableType',
]
