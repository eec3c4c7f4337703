import pytest

from src.service.table_booking.domain.value_object.booking_continuation import (
    BookingContinuation,
    ChatAction,
)


@pytest.mark.unit
class TestBookingContinuation:
    def test_encode_carries_every_selected_field_in_wire_order(self) -> None:
        continuation = BookingContinuation(
            action=ChatAction.BOOKING_TABLES.value,
            restaurant_id='r1',
            date='2025-01-15',
            time='18:30',
            guests=2,
        )

        assert continuation.encode() == (
            'action=booking_tables&restaurantId=r1&date=2025-01-15&time=18:30&guests=2'
        )

    def test_next_step_keeps_accumulated_selection(self) -> None:
        """
        Given: Restaurant, date and time already chosen
        When: Moving to the confirmation step with a table
        Then: Earlier fields survive, action switches
        """
        current = BookingContinuation(
            action='booking_guests', restaurant_id='r1', date='2025-01-15', time='18:30'
        )

        following = current.next(ChatAction.BOOKING_CONFIRM, guests=4, table_id='t7')

        assert following.action == 'booking_confirm'
        assert (following.restaurant_id, following.date, following.time) == (
            'r1',
            '2025-01-15',
            '18:30',
        )
        assert (following.guests, following.table_id) == (4, 't7')

    def test_decode_tolerates_unknown_and_missing_keys(self) -> None:
        decoded = BookingContinuation.decode('action=booking_time&restaurantId=r1&foo=bar')

        assert decoded.action == 'booking_time'
        assert decoded.restaurant_id == 'r1'
        assert decoded.date is None
        assert decoded.chat_action == ChatAction.BOOKING_TIME

    def test_four_plus_guests_decodes_to_four(self) -> None:
        assert BookingContinuation.decode('action=booking_tables&guests=4%2B').guests == 4

    def test_non_numeric_page_is_dropped(self) -> None:
        assert BookingContinuation.decode('action=booking_date&page=next').page is None

    def test_unknown_action_has_no_chat_action(self) -> None:
        assert BookingContinuation.decode('action=dance').chat_action is None
        assert BookingContinuation.decode('').action == ''
