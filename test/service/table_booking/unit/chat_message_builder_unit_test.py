from datetime import date, timedelta

import pytest

from src.service.table_booking.app.service.chat_message_builder import (
    ChatMessageBuilder,
    date_label,
    postback,
)
from src.service.table_booking.domain.entity.dining_table_entity import DiningTable
from src.service.table_booking.domain.value_object.booking_continuation import (
    BookingContinuation,
    ChatAction,
)


CONTINUATION = BookingContinuation(
    action=ChatAction.BOOKING_DATE, restaurant_id='rest-1', date='2025-01-18'
)


@pytest.mark.unit
class TestChatMessageLimits:
    def test_time_choices_page_within_quick_reply_limit(self) -> None:
        """
        Given: 30 slots and the 13-item quick reply limit
        When: Pages 0, 1 and 2 are rendered
        Then: 12 slots + "More" on the first two pages, the remaining 6 on the last
        """
        builder = ChatMessageBuilder()
        slots = [f'{h:02d}:{m:02d}' for h in range(8, 23) for m in (0, 30)]

        pages = [builder.time_choices(CONTINUATION, slots=slots, page=p) for p in range(3)]
        items = [page['quickReply']['items'] for page in pages]

        assert [len(i) for i in items] == [13, 13, 6]
        assert items[0][-1]['action']['label'] == 'More times ▶'
        assert BookingContinuation.decode(items[0][-1]['action']['data']).page == 1
        assert items[2][-1]['action']['label'] == slots[-1]

    def test_table_carousel_pages_within_column_limit(self) -> None:
        builder = ChatMessageBuilder()
        tables = [
            DiningTable(restaurant_id='rest-1', table_code=f't{i}', capacity=4) for i in range(12)
        ]
        continuation = CONTINUATION.next(ChatAction.BOOKING_GUESTS, time='19:00', guests=2)

        first = builder.table_choices(continuation, tables=tables)['template']['columns']
        second = builder.table_choices(continuation, tables=tables, page=1)['template']['columns']

        assert len(first) == 10
        assert first[-1]['title'] == 'More tables'
        assert first[-1]['text'] == '3 more available'
        assert [c['title'] for c in second] == ['Table T9', 'Table T10', 'Table T11']

    def test_buttons_template_is_capped_and_clipped(self) -> None:
        builder = ChatMessageBuilder()
        actions = [postback(f'Option {i}', CONTINUATION) for i in range(6)]

        message = builder.buttons(
            alt_text='Pick one', title='T' * 50, text='x' * 100, actions=actions
        )

        template = message['template']
        assert len(template['actions']) == 4
        assert len(template['title']) == 40
        assert len(template['text']) == 60
        assert template['text'].endswith('…')

    def test_postback_label_is_clipped_and_carries_continuation(self) -> None:
        action = postback('A very long label that overflows', CONTINUATION, display_text='shown')

        assert len(action['label']) == 20
        assert action['displayText'] == 'shown'
        assert BookingContinuation.decode(action['data']) == CONTINUATION

    def test_date_labels(self) -> None:
        today = date(2025, 1, 15)

        assert date_label(today, today) == 'Today'
        assert date_label(today + timedelta(days=1), today) == 'Tomorrow'
        assert date_label(today + timedelta(days=3), today) == 'Sat 18 Jan'

    def test_guest_choices_fit_buttons_template(self) -> None:
        message = ChatMessageBuilder().guest_choices(CONTINUATION.next(ChatAction.BOOKING_TIME, time='19:00'))

        labels = [a['label'] for a in message['template']['actions']]
        assert labels == ['1', '2', '3', '4+']
