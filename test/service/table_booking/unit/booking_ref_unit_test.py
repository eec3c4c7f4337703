from datetime import date

import pytest

from src.platform.exception.exceptions import DomainError
from src.service.table_booking.domain.value_object.booking_ref import (
    build_booking_ref,
    is_booking_ref,
    next_booking_ref,
    parse_sequence,
)


@pytest.mark.unit
class TestBookingRef:
    def test_first_reference_of_the_day(self) -> None:
        assert next_booking_ref(day=date(2025, 1, 15), latest_ref=None) == 'BK250115001'

    def test_sequence_follows_latest_reference(self) -> None:
        assert (
            next_booking_ref(day=date(2025, 1, 15), latest_ref='BK250115041') == 'BK250115042'
        )

    def test_sequence_resets_on_a_new_day(self) -> None:
        """
        Given: Yesterday ended at BK250115123
        When: First booking of 2025-01-16 (no reference issued yet that day)
        Then: Sequence restarts at 001
        """
        assert next_booking_ref(day=date(2025, 1, 16), latest_ref=None) == 'BK250116001'

    def test_format(self) -> None:
        ref = build_booking_ref(day=date(2025, 12, 31), sequence=7)

        assert ref == 'BK251231007'
        assert is_booking_ref(ref)
        assert parse_sequence(ref) == 7

    def test_daily_sequence_exhausted(self) -> None:
        with pytest.raises(DomainError, match='exhausted'):
            next_booking_ref(day=date(2025, 1, 15), latest_ref='BK250115999')

    @pytest.mark.parametrize('value', ['BK2501150001', 'bk250115001', 'BK25011500A', ''])
    def test_rejects_malformed_reference(self, value: str) -> None:
        assert not is_booking_ref(value)
