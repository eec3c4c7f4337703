from datetime import datetime
from typing import Any, Dict, List, Optional

import attrs

from src.service.table_booking.domain.entity.booking_entity import Booking, BookingHistoryEntry
from src.service.table_booking.domain.enum.booking_status import BookingStatus


@attrs.frozen
class BookingPatch:
    """Mutable subset of a booking written by a versioned update."""

    updated_at: datetime
    status: Optional[BookingStatus] = None
    history: Optional[List[BookingHistoryEntry]] = None
    pricing: Optional[Dict[str, Any]] = None
    special_requests: Optional[str] = None

    @classmethod
    def from_booking(cls, booking: Booking) -> 'BookingPatch':
        assert booking.updated_at is not None, 'mutated booking must carry updated_at'
        return cls(
            updated_at=booking.updated_at,
            status=booking.status,
            history=booking.history,
            pricing=booking.pricing,
            special_requests=booking.special_requests,
        )

    def apply(self, booking: Booking) -> Booking:
        changes: Dict[str, Any] = {'updated_at': self.updated_at}
        for field_name in ('status', 'history', 'pricing', 'special_requests'):
            if (value := getattr(self, field_name)) is not None:
                changes[field_name] = value
        return attrs.evolve(booking, **changes)
