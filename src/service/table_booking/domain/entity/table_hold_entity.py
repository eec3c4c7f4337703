from datetime import date, datetime, timedelta
from typing import Optional

import attrs
from uuid_utils import UUID

from src.platform.exception.exceptions import BookingStateError, DomainError, HoldExpiredError
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.domain.enum.hold_status import HoldStatus
from src.service.table_booking.domain.value_object.time_range import TimeRange


@attrs.define
class TableHold:
    """
    Short-lived claim on a table slot while the guest finishes booking.

    A hold is `active` until it is confirmed into a booking, released by the
    guest, or lapses at `expires_at`. A lapsed hold that is still stored as
    `active` no longer blocks anyone; the sweep rewrites it to `expired`.
    """

    id: UUID
    restaurant_id: str
    customer_id: str
    table_id: str
    booking_date: date
    start_time: str
    end_time: str
    guest_count: int
    held_at: datetime
    expires_at: datetime
    status: HoldStatus = HoldStatus.ACTIVE
    special_requests: str = ''
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    booking_id: Optional[UUID] = None
    confirmed_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        id: UUID,
        restaurant_id: str,
        customer_id: str,
        table_id: str,
        booking_date: date,
        start_time: str,
        end_time: Optional[str] = None,
        duration_minutes: int = 120,
        guest_count: int,
        table_capacity: Optional[int] = None,
        hold_minutes: int,
        now: datetime,
        special_requests: str = '',
        customer_name: Optional[str] = None,
        customer_phone: Optional[str] = None,
    ) -> 'TableHold':
        if not restaurant_id or not table_id or not customer_id:
            raise DomainError('restaurant_id, table_id and customer_id are required')
        if guest_count < 1:
            raise DomainError('Must have at least 1 guest')
        if table_capacity is not None and guest_count > table_capacity:
            raise DomainError(
                f'Guest count {guest_count} exceeds table capacity {table_capacity}'
            )
        if hold_minutes < 1:
            raise DomainError('Hold must last at least 1 minute')

        time_range = (
            TimeRange.parse(start_time, end_time)
            if end_time
            else TimeRange.from_start(start_time, duration_minutes=duration_minutes)
        )
        return cls(
            id=id,
            restaurant_id=restaurant_id,
            customer_id=customer_id,
            table_id=table_id,
            booking_date=booking_date,
            start_time=time_range.start,
            end_time=time_range.end,
            guest_count=guest_count,
            held_at=now,
            expires_at=now + timedelta(minutes=hold_minutes),
            special_requests=special_requests,
            customer_name=customer_name,
            customer_phone=customer_phone,
        )

    @property
    def time_range(self) -> TimeRange:
        return TimeRange.parse(self.start_time, self.end_time)

    def is_lapsed(self, now: datetime) -> bool:
        return now >= self.expires_at

    def is_holding(self, now: datetime) -> bool:
        """True while the hold still keeps the slot from other guests."""
        return self.status == HoldStatus.ACTIVE and not self.is_lapsed(now)

    def as_of(self, now: datetime) -> 'TableHold':
        if self.status == HoldStatus.ACTIVE and self.is_lapsed(now):
            return attrs.evolve(self, status=HoldStatus.EXPIRED)
        return self

    def seconds_remaining(self, now: datetime) -> int:
        if not self.is_holding(now):
            return 0
        return int((self.expires_at - now).total_seconds())

    def covers(
        self, *, restaurant_id: str, table_id: str, booking_date: date, time_range: TimeRange
    ) -> bool:
        return (
            self.restaurant_id == restaurant_id
            and self.table_id == table_id
            and self.booking_date == booking_date
            and self.time_range == time_range
        )

    def ensure_claimable(self, now: datetime) -> None:
        """
        Raises:
            BookingStateError: hold was already confirmed or released
            HoldExpiredError: hold lapsed or was swept
        """
        if self.status == HoldStatus.CONFIRMED:
            raise BookingStateError('This hold was already confirmed')
        if self.status == HoldStatus.RELEASED:
            raise BookingStateError('This hold was released')
        if not self.is_holding(now):
            raise HoldExpiredError()

    def extended(self, *, minutes: int, now: datetime) -> 'TableHold':
        """New expiry counts from `now`, not from the old expiry."""
        if minutes < 1:
            raise DomainError('Hold must be extended by at least 1 minute')
        self.ensure_claimable(now)
        return attrs.evolve(self, expires_at=now + timedelta(minutes=minutes))

    def released(self) -> 'TableHold':
        """Releasing twice is a no-op; a confirmed hold belongs to its booking."""
        if self.status == HoldStatus.RELEASED:
            return self
        if self.status == HoldStatus.CONFIRMED:
            raise BookingStateError('Cannot release a confirmed hold')
        return attrs.evolve(self, status=HoldStatus.RELEASED)

    def expired(self) -> 'TableHold':
        return attrs.evolve(self, status=HoldStatus.EXPIRED)
