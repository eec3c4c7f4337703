from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Dict, List, Optional

import attrs
from uuid_utils import UUID

from src.platform.exception.exceptions import (
    BookingStateError,
    CancellationWindowError,
    DomainError,
)
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.domain.enum.actor_type import ActorType
from src.service.table_booking.domain.enum.booking_status import (
    ACTIVE_STATUSES,
    ALLOWED_TRANSITIONS,
    BookingStatus,
)
from src.service.table_booking.domain.value_object.time_range import TimeRange


@attrs.define
class BookingHistoryEntry:
    action: str
    from_status: Optional[BookingStatus]
    to_status: BookingStatus
    actor_type: ActorType
    at: datetime
    actor_id: Optional[str] = None
    note: Optional[str] = None

    def is_same_action(self, other: 'BookingHistoryEntry') -> bool:
        return (self.action, self.from_status, self.to_status) == (
            other.action,
            other.from_status,
            other.to_status,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'action': self.action,
            'from_status': self.from_status.value if self.from_status else None,
            'to_status': self.to_status.value,
            'actor_type': self.actor_type.value,
            'actor_id': self.actor_id,
            'at': self.at.isoformat(),
            'note': self.note,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BookingHistoryEntry':
        return cls(
            action=data['action'],
            from_status=BookingStatus(data['from_status']) if data.get('from_status') else None,
            to_status=BookingStatus(data['to_status']),
            actor_type=ActorType(data.get('actor_type', ActorType.SYSTEM)),
            at=datetime.fromisoformat(data['at']),
            actor_id=data.get('actor_id'),
            note=data.get('note'),
        )


def append_history(
    history: List[BookingHistoryEntry],
    entry: BookingHistoryEntry,
    *,
    dedup_window: timedelta,
) -> List[BookingHistoryEntry]:
    """
    Append unless the last identical (action, from, to) entry is within the dedup window.

    Guards against the chat layer re-processing a redelivered event.
    """
    for previous in reversed(history):
        if previous.is_same_action(entry):
            if entry.at - previous.at <= dedup_window:
                return list(history)
            break
    return [*history, entry]


@attrs.define
class Booking:
    id: UUID
    restaurant_id: str
    customer_id: str
    table_id: str  # short floor-plan code such as 't1'
    booking_date: date
    start_time: str
    end_time: str
    guest_count: int
    floorplan_id: Optional[str] = None
    status: BookingStatus = BookingStatus.PENDING
    booking_ref: Optional[str] = None  # assigned on first persist
    special_requests: str = ''
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    pricing: Optional[Dict[str, Any]] = None
    history: List[BookingHistoryEntry] = attrs.field(factory=list)
    version: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

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
        floorplan_id: Optional[str] = None,
        special_requests: str = '',
        customer_name: Optional[str] = None,
        customer_phone: Optional[str] = None,
        now: Optional[datetime] = None,
        note: Optional[str] = None,
    ) -> 'Booking':
        if not restaurant_id or not table_id or not customer_id:
            raise DomainError('restaurant_id, table_id and customer_id are required')
        if guest_count < 1:
            raise DomainError('Must have at least 1 guest')
        if table_capacity is not None and guest_count > table_capacity:
            raise DomainError(
                f'Guest count {guest_count} exceeds table capacity {table_capacity}'
            )

        time_range = (
            TimeRange.parse(start_time, end_time)
            if end_time
            else TimeRange.from_start(start_time, duration_minutes=duration_minutes)
        )

        now = now or datetime.now(timezone.utc)
        return cls(
            id=id,
            restaurant_id=restaurant_id,
            customer_id=customer_id,
            table_id=table_id,
            booking_date=booking_date,
            start_time=time_range.start,
            end_time=time_range.end,
            guest_count=guest_count,
            floorplan_id=floorplan_id,
            status=BookingStatus.PENDING,
            special_requests=special_requests,
            customer_name=customer_name,
            customer_phone=customer_phone,
            history=[
                BookingHistoryEntry(
                    action='created',
                    from_status=None,
                    to_status=BookingStatus.PENDING,
                    actor_type=ActorType.CUSTOMER,
                    actor_id=customer_id,
                    at=now,
                    note=note,
                )
            ],
            version=0,
            created_at=now,
            updated_at=now,
        )

    @property
    def time_range(self) -> TimeRange:
        return TimeRange.parse(self.start_time, self.end_time)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def starts_at(self, tz: tzinfo) -> datetime:
        start = self.time_range.start_minute
        return datetime.combine(self.booking_date, time(start // 60, start % 60), tzinfo=tz)

    def with_booking_ref(self, booking_ref: str) -> 'Booking':
        return attrs.evolve(self, booking_ref=booking_ref)

    def with_pricing(self, pricing: Dict[str, Any]) -> 'Booking':
        return attrs.evolve(self, pricing=pricing)

    def _was_just_recorded(
        self,
        *,
        action: str,
        to_status: BookingStatus,
        actor_type: ActorType,
        actor_id: Optional[str],
        now: datetime,
        window: timedelta,
    ) -> bool:
        for entry in reversed(self.history):
            if entry.action == action and entry.to_status == to_status:
                return (
                    entry.actor_type == actor_type
                    and entry.actor_id == actor_id
                    and now - entry.at <= window
                )
        return False

    @Logger.io
    def transition(
        self,
        *,
        to_status: BookingStatus,
        action: str,
        actor_type: ActorType,
        actor_id: Optional[str],
        now: datetime,
        tz: tzinfo,
        cancellation_cutoff: timedelta = timedelta(hours=2),
        dedup_window: timedelta = timedelta(seconds=5),
        note: Optional[str] = None,
    ) -> 'Booking':
        """
        Apply a status change and append a deduplicated history entry.

        A repeat of the same action by the same actor inside the dedup window
        returns the booking unchanged instead of failing the transition guard.

        Raises:
            BookingStateError: transition not allowed from the current status
            CancellationWindowError: confirmed booking starts within the cutoff
        """
        if self.status == to_status and self._was_just_recorded(
            action=action,
            to_status=to_status,
            actor_type=actor_type,
            actor_id=actor_id,
            now=now,
            window=dedup_window,
        ):
            return self

        if to_status not in ALLOWED_TRANSITIONS[self.status]:
            raise BookingStateError(
                f'Cannot change booking from {self.status.value} to {to_status.value}'
            )

        if (
            to_status == BookingStatus.CANCELLED
            and self.status == BookingStatus.CONFIRMED
            and self.starts_at(tz) - now < cancellation_cutoff
        ):
            hours = cancellation_cutoff.total_seconds() / 3600
            raise CancellationWindowError(
                f'Bookings cannot be cancelled within {hours:g} hours of the start time'
            )

        entry = BookingHistoryEntry(
            action=action,
            from_status=self.status,
            to_status=to_status,
            actor_type=actor_type,
            actor_id=actor_id,
            at=now,
            note=note,
        )
        return attrs.evolve(
            self,
            status=to_status,
            history=append_history(self.history, entry, dedup_window=dedup_window),
            updated_at=now,
        )
