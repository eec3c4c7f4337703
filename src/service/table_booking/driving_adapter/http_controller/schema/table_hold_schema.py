import datetime as dt
from typing import List, Optional

from pydantic import BaseModel, Field

from src.platform.types import UtilsUUID7
from src.service.table_booking.domain.entity.booking_entity import Booking
from src.service.table_booking.domain.entity.table_hold_entity import TableHold
from src.service.table_booking.domain.value_object.slot_conflicts import SlotConflicts


class TableHoldCreateRequest(BaseModel):
    restaurant_id: str
    customer_id: str
    table_id: str
    date: dt.date
    start_time: str
    end_time: Optional[str] = None
    guest_count: int = Field(ge=1)
    hold_minutes: Optional[int] = Field(default=None, ge=1)
    special_requests: str = ''
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None

    model_config = {
        'json_schema_extra': {
            'example': {
                'restaurant_id': 'rest-1',
                'customer_id': 'cust-1',
                'table_id': 't1',
                'date': '2025-01-10',
                'start_time': '19:00',
                'guest_count': 2,
                'hold_minutes': 5,
            }
        }
    }


class TableHoldActionRequest(BaseModel):
    customer_id: str


class TableHoldConfirmRequest(TableHoldActionRequest):
    special_requests: Optional[str] = None


class TableHoldExtendRequest(TableHoldActionRequest):
    minutes: Optional[int] = Field(default=None, ge=1)


class TableHoldResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'id': '01936d8f-5e73-7c4e-a9c5-123456789abc',  # UUID7
                'restaurant_id': 'rest-1',
                'table_id': 't1',
                'date': '2025-01-10',
                'start_time': '19:00',
                'end_time': '21:00',
                'status': 'active',
                'expires_at': '2025-01-08T12:05:00Z',
                'seconds_remaining': 300,
            }
        },
    }

    id: UtilsUUID7  # UUID7
    restaurant_id: str
    customer_id: str
    table_id: str
    date: dt.date
    start_time: str
    end_time: str
    guest_count: int
    status: str
    held_at: dt.datetime
    expires_at: dt.datetime
    seconds_remaining: int
    booking_id: Optional[UtilsUUID7] = None
    confirmed_at: Optional[dt.datetime] = None

    @classmethod
    def from_hold(cls, hold: TableHold, *, now: dt.datetime) -> 'TableHoldResponse':
        hold = hold.as_of(now)
        return cls(
            id=hold.id,
            restaurant_id=hold.restaurant_id,
            customer_id=hold.customer_id,
            table_id=hold.table_id,
            date=hold.booking_date,
            start_time=hold.start_time,
            end_time=hold.end_time,
            guest_count=hold.guest_count,
            status=hold.status.value,
            held_at=hold.held_at,
            expires_at=hold.expires_at,
            seconds_remaining=hold.seconds_remaining(now),
            booking_id=hold.booking_id,
            confirmed_at=hold.confirmed_at,
        )


class ExpiredHoldsResponse(BaseModel):
    expired_holds: int


class ConflictCheckRequest(BaseModel):
    restaurant_id: str
    table_id: str
    date: dt.date
    start_time: str
    end_time: Optional[str] = None
    exclude_hold_id: Optional[UtilsUUID7] = None


class ConflictingSlot(BaseModel):
    kind: str  # booking/hold
    id: UtilsUUID7
    start_time: str
    end_time: str
    status: str
    booking_ref: Optional[str] = None
    expires_at: Optional[dt.datetime] = None

    @classmethod
    def from_booking(cls, booking: Booking) -> 'ConflictingSlot':
        return cls(
            kind='booking',
            id=booking.id,
            start_time=booking.start_time,
            end_time=booking.end_time,
            status=booking.status.value,
            booking_ref=booking.booking_ref,
        )

    @classmethod
    def from_hold(cls, hold: TableHold) -> 'ConflictingSlot':
        return cls(
            kind='hold',
            id=hold.id,
            start_time=hold.start_time,
            end_time=hold.end_time,
            status=hold.status.value,
            expires_at=hold.expires_at,
        )


class ConflictCheckResponse(BaseModel):
    restaurant_id: str
    table_id: str
    date: dt.date
    start_time: str
    end_time: Optional[str] = None
    is_available: bool
    availability_score: int
    total_conflicts: int
    is_past_date: bool
    exact: List[ConflictingSlot] = []
    overlapping: List[ConflictingSlot] = []

    @classmethod
    def from_conflicts(
        cls, conflicts: SlotConflicts, *, request: ConflictCheckRequest
    ) -> 'ConflictCheckResponse':
        return cls(
            restaurant_id=request.restaurant_id,
            table_id=request.table_id,
            date=request.date,
            start_time=request.start_time,
            end_time=request.end_time,
            is_available=conflicts.is_available,
            availability_score=conflicts.availability_score,
            total_conflicts=conflicts.total,
            is_past_date=conflicts.is_past_date,
            exact=[ConflictingSlot.from_booking(b) for b in conflicts.exact_bookings]
            + [ConflictingSlot.from_hold(h) for h in conflicts.exact_holds],
            overlapping=[ConflictingSlot.from_booking(b) for b in conflicts.overlapping_bookings]
            + [ConflictingSlot.from_hold(h) for h in conflicts.overlapping_holds],
        )
