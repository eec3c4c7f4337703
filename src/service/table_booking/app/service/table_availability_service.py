from datetime import date, datetime, timezone, tzinfo
from typing import Callable, List, Optional, Set

from uuid_utils import UUID

from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.table_booking.app.interface.i_dining_table_repo import IDiningTableRepo
from src.service.table_booking.app.interface.i_table_hold_repo import ITableHoldRepo
from src.service.table_booking.domain.entity.dining_table_entity import DiningTable
from src.service.table_booking.domain.value_object.slot_conflicts import SlotConflicts
from src.service.table_booking.domain.value_object.time_range import TimeRange


class TableAvailabilityService:
    """
    Overlap-based availability over the active bookings and holds of a table/day.

    This is the pre-check only; the insert-time constraint in the booking store
    decides races between concurrent creators.
    """

    def __init__(
        self,
        *,
        booking_query_repo: IBookingQueryRepo,
        dining_table_repo: IDiningTableRepo,
        table_hold_repo: ITableHoldRepo,
        tz: tzinfo = timezone.utc,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.booking_query_repo = booking_query_repo
        self.dining_table_repo = dining_table_repo
        self.table_hold_repo = table_hold_repo
        self.tz = tz
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @Logger.io
    async def is_available(
        self,
        *,
        restaurant_id: str,
        table_id: str,
        booking_date: date,
        time_range: TimeRange,
        exclude_hold_id: Optional[UUID] = None,
    ) -> bool:
        """`exclude_hold_id` is the caller's own hold, which never blocks itself."""
        active = await self.booking_query_repo.list_active_for_table(
            restaurant_id=restaurant_id, table_id=table_id, booking_date=booking_date
        )
        if any(booking.time_range.overlaps(time_range) for booking in active):
            return False

        holds = await self.table_hold_repo.list_holding(
            restaurant_id=restaurant_id,
            booking_date=booking_date,
            now=self._clock(),
            table_id=table_id,
        )
        return not any(
            hold.time_range.overlaps(time_range) for hold in holds if hold.id != exclude_hold_id
        )

    @Logger.io
    async def booked_table_codes(
        self, *, restaurant_id: str, booking_date: date, time_range: TimeRange
    ) -> Set[str]:
        active = await self.booking_query_repo.list_active_for_day(
            restaurant_id=restaurant_id, booking_date=booking_date
        )
        holds = await self.table_hold_repo.list_holding(
            restaurant_id=restaurant_id, booking_date=booking_date, now=self._clock()
        )
        return {b.table_id for b in active if b.time_range.overlaps(time_range)} | {
            h.table_id for h in holds if h.time_range.overlaps(time_range)
        }

    @Logger.io
    async def list_available_tables(
        self,
        *,
        restaurant_id: str,
        booking_date: date,
        time_range: TimeRange,
        guest_count: int,
    ) -> List[DiningTable]:
        """Free tables that seat `guest_count`, smallest adequate table first."""
        tables = await self.dining_table_repo.list_for_restaurant(restaurant_id=restaurant_id)
        booked = await self.booked_table_codes(
            restaurant_id=restaurant_id, booking_date=booking_date, time_range=time_range
        )
        available = [t for t in tables if t.fits(guest_count) and t.table_code not in booked]
        return sorted(available, key=lambda t: (t.capacity, t.table_code))

    @Logger.io
    async def find_conflicts(
        self,
        *,
        restaurant_id: str,
        table_id: str,
        booking_date: date,
        time_range: TimeRange,
        exclude_hold_id: Optional[UUID] = None,
    ) -> SlotConflicts:
        now = self._clock()
        bookings = [
            b
            for b in await self.booking_query_repo.list_active_for_table(
                restaurant_id=restaurant_id, table_id=table_id, booking_date=booking_date
            )
            if b.time_range.overlaps(time_range)
        ]
        holds = [
            h
            for h in await self.table_hold_repo.list_holding(
                restaurant_id=restaurant_id,
                booking_date=booking_date,
                now=now,
                table_id=table_id,
            )
            if h.id != exclude_hold_id and h.time_range.overlaps(time_range)
        ]
        return SlotConflicts(
            exact_bookings=[b for b in bookings if b.time_range == time_range],
            exact_holds=[h for h in holds if h.time_range == time_range],
            overlapping_bookings=[b for b in bookings if b.time_range != time_range],
            overlapping_holds=[h for h in holds if h.time_range != time_range],
            is_past_date=booking_date < now.astimezone(self.tz).date(),
        )
