"""
Integration tests for the asyncpg booking repositories

Tests the PostgreSQL guarantees the booking flow relies on:
- Daily booking references in the restaurant's timezone
- The exclusion constraint rejecting overlapping active bookings
- Versioned compare-and-swap updates
"""

from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import anyio
import pytest
import uuid_utils as uuid

from src.platform.exception.exceptions import (
    NotFoundError,
    TableNoLongerAvailableError,
    VersionConflictError,
)
from src.service.table_booking.app.dto.booking_patch import BookingPatch
from src.service.table_booking.domain.entity.booking_entity import Booking
from src.service.table_booking.domain.enum.actor_type import ActorType
from src.service.table_booking.domain.enum.booking_status import BookingStatus
from src.service.table_booking.driven_adapter.repo.booking_command_repo_impl import (
    BookingCommandRepoImpl,
)
from src.service.table_booking.driven_adapter.repo.booking_query_repo_impl import (
    BookingQueryRepoImpl,
)


BANGKOK = ZoneInfo('Asia/Bangkok')
SATURDAY = date(2025, 1, 18)
# 2025-01-14 18:00 UTC is already 2025-01-15 01:00 in Bangkok
CREATED_AT = datetime(2025, 1, 14, 18, 0, tzinfo=timezone.utc)


def _new_booking(start: str, *, table_id: str = 't1', end: str | None = None) -> Booking:
    return Booking.create(
        id=uuid.uuid7(),
        restaurant_id='rest-1',
        customer_id='cust-1',
        table_id=table_id,
        booking_date=SATURDAY,
        start_time=start,
        end_time=end,
        guest_count=2,
        now=CREATED_AT,
    )


@pytest.mark.integration
class TestBookingCommandRepoImpl:
    @pytest.fixture
    def command_repo(self) -> BookingCommandRepoImpl:
        return BookingCommandRepoImpl(tz=BANGKOK)

    @pytest.fixture
    def query_repo(self) -> BookingQueryRepoImpl:
        return BookingQueryRepoImpl()

    @pytest.mark.asyncio
    async def test_references_follow_local_creation_day(
        self, command_repo: BookingCommandRepoImpl
    ) -> None:
        first = await command_repo.create(booking=_new_booking('12:00'))
        second = await command_repo.create(booking=_new_booking('18:00'))

        assert first.booking_ref == 'BK250115001'
        assert second.booking_ref == 'BK250115002'
        assert first.version == 0

    @pytest.mark.asyncio
    async def test_overlap_rejected_by_database(self, command_repo: BookingCommandRepoImpl) -> None:
        """
        Given: t1 booked 18:00-20:00
        When: 19:00-21:00 is inserted directly (no availability pre-check)
        Then: TableNoLongerAvailableError from the exclusion constraint
        """
        await command_repo.create(booking=_new_booking('18:00'))

        with pytest.raises(TableNoLongerAvailableError):
            await command_repo.create(booking=_new_booking('19:00'))

    @pytest.mark.asyncio
    async def test_touching_bookings_and_other_tables_are_allowed(
        self, command_repo: BookingCommandRepoImpl
    ) -> None:
        await command_repo.create(booking=_new_booking('18:00'))
        await command_repo.create(booking=_new_booking('20:00'))
        await command_repo.create(booking=_new_booking('19:00', table_id='t2'))

    @pytest.mark.asyncio
    async def test_concurrent_inserts_have_one_winner(
        self, command_repo: BookingCommandRepoImpl, query_repo: BookingQueryRepoImpl
    ) -> None:
        outcomes: list[str] = []

        async def attempt(start: str) -> None:
            try:
                await command_repo.create(booking=_new_booking(start))
                outcomes.append('created')
            except TableNoLongerAvailableError:
                outcomes.append('conflict')

        async with anyio.create_task_group() as tg:
            for start in ('19:00', '19:00', '19:30', '18:30', '20:00'):
                tg.start_soon(attempt, start)

        assert outcomes.count('created') == 1
        active = await query_repo.list_active_for_table(
            restaurant_id='rest-1', table_id='t1', booking_date=SATURDAY
        )
        assert len(active) == 1

    @pytest.mark.asyncio
    async def test_cancelled_booking_frees_the_slot(
        self, command_repo: BookingCommandRepoImpl
    ) -> None:
        created = await command_repo.create(booking=_new_booking('19:00'))
        cancelled = created.transition(
            to_status=BookingStatus.CANCELLED,
            action='cancelled',
            actor_type=ActorType.CUSTOMER,
            actor_id='cust-1',
            now=CREATED_AT + timedelta(hours=1),
            tz=BANGKOK,
        )

        saved = await command_repo.update_with_expected_version(
            booking_id=created.id,
            patch=BookingPatch.from_booking(cancelled),
            expected_version=0,
        )
        again = await command_repo.create(booking=_new_booking('19:00'))

        assert saved.status == BookingStatus.CANCELLED
        assert saved.version == 1
        assert [h.action for h in saved.history] == ['created', 'cancelled']
        assert again.status == BookingStatus.PENDING

    @pytest.mark.asyncio
    async def test_stale_version_conflicts(self, command_repo: BookingCommandRepoImpl) -> None:
        created = await command_repo.create(booking=_new_booking('19:00'))
        patch = BookingPatch(updated_at=CREATED_AT, special_requests='window seat')

        await command_repo.update_with_expected_version(
            booking_id=created.id, patch=patch, expected_version=0
        )
        with pytest.raises(VersionConflictError):
            await command_repo.update_with_expected_version(
                booking_id=created.id, patch=patch, expected_version=0
            )

    @pytest.mark.asyncio
    async def test_update_unknown_booking(self, command_repo: BookingCommandRepoImpl) -> None:
        with pytest.raises(NotFoundError):
            await command_repo.update_with_expected_version(
                booking_id=uuid.uuid7(),
                patch=BookingPatch(updated_at=CREATED_AT),
                expected_version=0,
            )

    @pytest.mark.asyncio
    async def test_query_repo_round_trip(
        self, command_repo: BookingCommandRepoImpl, query_repo: BookingQueryRepoImpl
    ) -> None:
        created = await command_repo.create(booking=_new_booking('19:00'))

        by_id = await query_repo.get_by_id(booking_id=created.id)
        by_ref = await query_repo.get_by_ref(booking_ref='BK250115001')

        assert by_id is not None and by_ref is not None
        assert by_id.id == by_ref.id == created.id
        assert (by_id.start_time, by_id.end_time) == ('19:00', '21:00')
        assert by_id.history[0].action == 'created'
