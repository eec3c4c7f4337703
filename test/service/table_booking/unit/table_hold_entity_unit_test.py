"""
Unit tests for the TableHold entity

Test Focus:
1. Creation: validation, expiry counted from the moment the hold is placed
2. Lapse: a lapsed active hold stops holding and reads as expired
3. Lifecycle guards: extend, release, claim
"""

from datetime import date, datetime, timedelta, timezone

import pytest
from uuid_utils import UUID

from src.platform.exception.exceptions import BookingStateError, DomainError, HoldExpiredError
from src.service.table_booking.domain.entity.table_hold_entity import TableHold
from src.service.table_booking.domain.enum.hold_status import HoldStatus
from src.service.table_booking.domain.value_object.time_range import TimeRange


HELD_AT = datetime(2025, 1, 14, 3, 0, tzinfo=timezone.utc)
BOOKING_DAY = date(2025, 1, 15)


def _create_hold(**overrides: object) -> TableHold:
    fields: dict[str, object] = {
        'id': UUID('00000000-0000-0000-0000-0000000000b1'),
        'restaurant_id': 'rest-1',
        'customer_id': 'cust-1',
        'table_id': 't1',
        'booking_date': BOOKING_DAY,
        'start_time': '19:00',
        'guest_count': 2,
        'table_capacity': 4,
        'hold_minutes': 5,
        'now': HELD_AT,
    }
    fields.update(overrides)
    return TableHold.create(**fields)  # type: ignore[arg-type]


@pytest.mark.unit
class TestTableHoldCreate:
    def test_new_hold_is_active_until_expiry(self) -> None:
        """
        Given: 19:00 start, no end time, 5 minute hold
        When: Hold is created
        Then: Slot runs 19:00-21:00 and the hold expires 5 minutes after placing it
        """
        hold = _create_hold()

        assert hold.status == HoldStatus.ACTIVE
        assert (hold.start_time, hold.end_time) == ('19:00', '21:00')
        assert hold.expires_at == HELD_AT + timedelta(minutes=5)
        assert hold.seconds_remaining(HELD_AT) == 300

    def test_guests_over_capacity_are_rejected(self) -> None:
        with pytest.raises(DomainError, match='exceeds table capacity'):
            _create_hold(guest_count=6)

    def test_zero_minute_hold_is_rejected(self) -> None:
        with pytest.raises(DomainError, match='at least 1 minute'):
            _create_hold(hold_minutes=0)

    def test_covers_only_the_exact_slot(self) -> None:
        hold = _create_hold()
        slot = {'restaurant_id': 'rest-1', 'table_id': 't1', 'booking_date': BOOKING_DAY}

        assert hold.covers(**slot, time_range=TimeRange.parse('19:00', '21:00'))
        assert not hold.covers(**slot, time_range=TimeRange.parse('19:30', '21:30'))


@pytest.mark.unit
class TestTableHoldLapse:
    def test_hold_stops_holding_at_expiry(self) -> None:
        hold = _create_hold()
        expiry = HELD_AT + timedelta(minutes=5)

        assert hold.is_holding(expiry - timedelta(seconds=1))
        assert not hold.is_holding(expiry)
        assert hold.seconds_remaining(expiry) == 0

    def test_lapsed_active_hold_reads_as_expired(self) -> None:
        """
        Given: Hold still stored as active after its expiry
        When: It is read a minute later
        Then: It reports expired; the stored copy is left alone
        """
        hold = _create_hold()

        seen = hold.as_of(HELD_AT + timedelta(minutes=6))

        assert seen.status == HoldStatus.EXPIRED
        assert hold.status == HoldStatus.ACTIVE

    def test_confirmed_hold_stays_confirmed_after_expiry(self) -> None:
        hold = _create_hold()
        hold.status = HoldStatus.CONFIRMED

        assert hold.as_of(HELD_AT + timedelta(hours=1)).status == HoldStatus.CONFIRMED


@pytest.mark.unit
class TestTableHoldLifecycle:
    def test_extension_counts_from_now(self) -> None:
        """
        Given: 5 minute hold, 3 minutes in
        When: It is extended by 5 minutes
        Then: The new expiry is 8 minutes after placing it, not 10
        """
        hold = _create_hold()
        now = HELD_AT + timedelta(minutes=3)

        extended = hold.extended(minutes=5, now=now)

        assert extended.expires_at == HELD_AT + timedelta(minutes=8)

    def test_lapsed_hold_cannot_be_extended(self) -> None:
        hold = _create_hold()

        with pytest.raises(HoldExpiredError):
            hold.extended(minutes=5, now=HELD_AT + timedelta(minutes=5))

    def test_release_is_idempotent(self) -> None:
        released = _create_hold().released()

        assert released.status == HoldStatus.RELEASED
        assert released.released() is released

    def test_confirmed_hold_cannot_be_released(self) -> None:
        hold = _create_hold()
        hold.status = HoldStatus.CONFIRMED

        with pytest.raises(BookingStateError, match='Cannot release a confirmed hold'):
            hold.released()

    @pytest.mark.parametrize(
        'status,error,message',
        [
            (HoldStatus.CONFIRMED, BookingStateError, 'already confirmed'),
            (HoldStatus.RELEASED, BookingStateError, 'was released'),
            (HoldStatus.EXPIRED, HoldExpiredError, ''),
        ],
    )
    def test_only_a_live_hold_is_claimable(
        self, status: HoldStatus, error: type[Exception], message: str
    ) -> None:
        hold = _create_hold()
        hold.status = status

        with pytest.raises(error, match=message):
            hold.ensure_claimable(HELD_AT)
