"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.table_booking.app.command import handle_chat_event_use_case
from src.service.table_booking.app.query import (
    calculate_price_use_case,
    check_availability_use_case,
    get_booking_use_case,
    get_table_hold_use_case,
    list_upcoming_holidays_use_case,
)
from src.service.table_booking.driving_adapter.http_controller import (
    booking_controller,
    holiday_controller,
    line_webhook_controller,
    table_hold_controller,
)


WIRE_MODULES: list[ModuleType] = [
    handle_chat_event_use_case,
    calculate_price_use_case,
    check_availability_use_case,
    get_booking_use_case,
    get_table_hold_use_case,
    list_upcoming_holidays_use_case,
    booking_controller,
    holiday_controller,
    line_webhook_controller,
    table_hold_controller,
]
