"""
Unit tests for CreateTableHoldUseCase

Test Focus:
1. Happy path: active hold with the configured expiry
2. A slot is held by one guest at a time and never over an active booking
3. Lapsed holds free their slot for the next guest
"""

from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

import pytest
from uuid_utils import UUID

from src.platform.exception.exceptions import (
    DomainError,
    NotFoundError,
    TableNoLongerAvailableError,
)
from src.service.table_booking.app.command.create_table_hold_use_case import (
    CreateTableHoldUseCase,
)
from src.service.table_booking.app.service.table_availability_service import (
    TableAvailabilityService,
)
from src.service.table_booking.domain.entity.booking_entity import Booking
from src.service.table_booking.domain.entity.dining_table_entity import DiningTable
from src.service.table_booking.domain.entity.table_hold_entity import TableHold
from src.service.table_booking.domain.enum.hold_status import HoldStatus
from test.service.table_booking.unit.in_memory_repos import (
    InMemoryBookingStore,
    InMemoryDiningTableRepo,
    InMemoryTableHoldRepo,
)


SATURDAY = date(2025, 1, 18)
NOW = datetime(2025, 1, 15, 3, 0, tzinfo=timezone.utc)


@pytest.mark.unit
class TestCreateTableHold:
    @pytest.fixture
    def clock(self) -> List[datetime]:
        return [NOW]

    @pytest.fixture
    def holds(self) -> InMemoryTableHoldRepo:
        return InMemoryTableHoldRepo()

    @pytest.fixture
    def store(self, holds: InMemoryTableHoldRepo) -> InMemoryBookingStore:
        booked = Booking.create(
            id=UUID('00000000-0000-0000-0000-000000000001'),
            restaurant_id='rest-1',
            customer_id='cust-9',
            table_id='t2',
            booking_date=SATURDAY,
            start_time='18:00',
            end_time='20:00',
            guest_count=2,
            now=NOW,
        )
        return InMemoryBookingStore([booked], holds=holds)

    @pytest.fixture
    def use_case(
        self,
        clock: List[datetime],
        holds: InMemoryTableHoldRepo,
        store: InMemoryBookingStore,
    ) -> CreateTableHoldUseCase:
        tables = InMemoryDiningTableRepo(
            [
                DiningTable(restaurant_id='rest-1', table_code='t1', capacity=4),
                DiningTable(restaurant_id='rest-1', table_code='t2', capacity=4),
            ]
        )
        return CreateTableHoldUseCase(
            table_hold_repo=holds,
            dining_table_repo=tables,
            availability_service=TableAvailabilityService(
                booking_query_repo=store,
                dining_table_repo=tables,
                table_hold_repo=holds,
                clock=lambda: clock[0],
            ),
            default_hold_minutes=5,
            max_hold_minutes=15,
            clock=lambda: clock[0],
        )

    async def _hold(
        self,
        use_case: CreateTableHoldUseCase,
        *,
        customer_id: str = 'cust-1',
        table: str = 't1',
        start: str = '19:00',
        minutes: Optional[int] = None,
    ) -> TableHold:
        return await use_case.create_hold(
            restaurant_id='rest-1',
            customer_id=customer_id,
            table_id=table,
            booking_date=SATURDAY,
            start_time=start,
            guest_count=2,
            hold_minutes=minutes,
        )

    @pytest.mark.asyncio
    async def test_hold_is_active_with_default_expiry(
        self, use_case: CreateTableHoldUseCase, holds: InMemoryTableHoldRepo
    ) -> None:
        """
        Given: t1 is free at 19:00
        When: cust-1 holds it without choosing a length
        Then: Active hold for 19:00-21:00 expiring in 5 minutes is stored
        """
        hold = await self._hold(use_case)

        assert hold.status == HoldStatus.ACTIVE
        assert (hold.start_time, hold.end_time) == ('19:00', '21:00')
        assert hold.expires_at == NOW + timedelta(minutes=5)
        assert holds.holds[str(hold.id)] == hold

    @pytest.mark.asyncio
    async def test_second_guest_cannot_hold_an_overlapping_slot(
        self, use_case: CreateTableHoldUseCase
    ) -> None:
        await self._hold(use_case, customer_id='cust-1', start='19:00')

        with pytest.raises(TableNoLongerAvailableError):
            await self._hold(use_case, customer_id='cust-2', start='20:00')

    @pytest.mark.asyncio
    async def test_booked_slot_cannot_be_held(self, use_case: CreateTableHoldUseCase) -> None:
        with pytest.raises(TableNoLongerAvailableError):
            await self._hold(use_case, table='t2', start='19:00')

    @pytest.mark.asyncio
    async def test_touching_slots_can_both_be_held(self, use_case: CreateTableHoldUseCase) -> None:
        await self._hold(use_case, customer_id='cust-1', start='17:00')

        hold = await self._hold(use_case, customer_id='cust-2', start='19:00')

        assert hold.start_time == '19:00'

    @pytest.mark.asyncio
    async def test_lapsed_hold_frees_the_slot(
        self,
        use_case: CreateTableHoldUseCase,
        holds: InMemoryTableHoldRepo,
        clock: List[datetime],
    ) -> None:
        """
        Given: cust-1's 5 minute hold on t1 19:00
        When: 6 minutes later cust-2 holds the same slot
        Then: cust-2 gets the hold and cust-1's hold is stored as expired
        """
        first = await self._hold(use_case, customer_id='cust-1')
        clock[0] = NOW + timedelta(minutes=6)

        second = await self._hold(use_case, customer_id='cust-2')

        assert second.customer_id == 'cust-2'
        assert holds.holds[str(first.id)].status == HoldStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_hold_longer_than_allowed_is_rejected(
        self, use_case: CreateTableHoldUseCase
    ) -> None:
        with pytest.raises(DomainError, match='at most 15 minutes'):
            await self._hold(use_case, minutes=30)

    @pytest.mark.asyncio
    async def test_unknown_table_is_not_found(self, use_case: CreateTableHoldUseCase) -> None:
        with pytest.raises(NotFoundError):
            await self._hold(use_case, table='t9')
