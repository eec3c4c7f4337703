"""
Chat continuation payload.

The booking wizard keeps no server-side session. Every button carries the
whole selection so far as `action=<verb>&key=value&...`, e.g.

    action=booking_tables&restaurantId=r1&date=2025-01-15&time=18:30&guests=2

Decoding tolerates unknown keys and missing optional keys.
"""

from enum import StrEnum
from typing import Optional
from urllib.parse import parse_qsl, urlencode

import attrs


class ChatAction(StrEnum):
    BOOKING_START = 'booking_start'
    BOOKING_DATE = 'booking_date'
    BOOKING_TIME = 'booking_time'
    BOOKING_GUESTS = 'booking_guests'
    BOOKING_TABLES = 'booking_tables'
    BOOKING_CONFIRM = 'booking_confirm'
    BOOKING_COMPLETE = 'booking_complete'
    BOOKING_CANCEL_FLOW = 'booking_cancel_flow'
    MY_BOOKINGS = 'my_bookings'
    CANCEL_BOOKING = 'cancel_booking'
    # Staff side
    CONFIRM_BOOKING = 'confirm_booking'
    REJECT_BOOKING = 'reject_booking'
    BOOKING_DETAILS = 'booking_details'


# attribute name -> wire key, in wire order
_WIRE_KEYS: dict[str, str] = {
    'restaurant_id': 'restaurantId',
    'date': 'date',
    'time': 'time',
    'guests': 'guests',
    'table_id': 'tableId',
    'page': 'page',
    'booking_id': 'bookingId',
    'staff_id': 'staffId',
}

_INT_FIELDS = ('guests', 'page')


@attrs.frozen
class BookingContinuation:
    action: str
    restaurant_id: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    guests: Optional[int] = None
    table_id: Optional[str] = None
    page: Optional[int] = None
    booking_id: Optional[str] = None
    staff_id: Optional[str] = None

    def next(self, action: ChatAction, **changes: object) -> 'BookingContinuation':
        """Carry every accumulated field forward into the next step's payload."""
        return attrs.evolve(self, action=action.value, **changes)  # type: ignore[arg-type]

    def encode(self) -> str:
        pairs: list[tuple[str, str]] = [('action', self.action)]
        for attr_name, wire_key in _WIRE_KEYS.items():
            value = getattr(self, attr_name)
            if value is not None:
                pairs.append((wire_key, str(value)))
        return urlencode(pairs, safe=':-')

    @classmethod
    def decode(cls, data: str) -> 'BookingContinuation':
        raw = dict(parse_qsl(data or '', keep_blank_values=False))
        values: dict[str, object] = {}
        for attr_name, wire_key in _WIRE_KEYS.items():
            if (value := raw.get(wire_key)) is None:
                continue
            if attr_name in _INT_FIELDS:
                try:
                    values[attr_name] = int(value.rstrip('+'))
                except ValueError:
                    continue
            else:
                values[attr_name] = value
        return cls(action=raw.get('action', ''), **values)  # type: ignore[arg-type]

    @property
    def chat_action(self) -> Optional[ChatAction]:
        try:
            return ChatAction(self.action)
        except ValueError:
            return None
