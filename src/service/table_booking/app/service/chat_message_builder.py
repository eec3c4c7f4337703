"""
LINE message payloads for the booking conversation.

Builds plain Messaging API dicts (text, quick reply, buttons and carousel
templates). Every postback carries a BookingContinuation so the next turn can
resume without server-side session state. Channel limits: 13 quick-reply
items, 4 buttons-template actions, 10 carousel columns, 5 messages per reply.
"""

from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from src.service.table_booking.app.interface.i_messenger import Message
from src.service.table_booking.domain.entity.booking_entity import Booking
from src.service.table_booking.domain.entity.dining_table_entity import DiningTable
from src.service.table_booking.domain.entity.restaurant_entity import Restaurant
from src.service.table_booking.domain.entity.staff_entity import Staff
from src.service.table_booking.domain.value_object.booking_continuation import (
    BookingContinuation,
    ChatAction,
)
from src.service.table_booking.domain.value_object.pricing_result import PricingResult


MAX_MESSAGES_PER_REPLY = 5
LABEL_MAX = 20
TITLE_MAX = 40
TEXT_WITH_TITLE_MAX = 60
TEXT_MAX = 160
GUEST_CHOICES = (1, 2, 3, 4)


def _clip(value: str, limit: int) -> str:
    return value if len(value) <= limit else value[: limit - 1] + '…'


def postback(
    label: str, continuation: BookingContinuation, display_text: Optional[str] = None
) -> Dict[str, Any]:
    action: Dict[str, Any] = {
        'type': 'postback',
        'label': _clip(label, LABEL_MAX),
        'data': continuation.encode(),
    }
    if display_text:
        action['displayText'] = display_text
    return action


def date_label(day: date, today: date) -> str:
    offset = (day - today).days
    if offset == 0:
        return 'Today'
    if offset == 1:
        return 'Tomorrow'
    return day.strftime('%a %d %b')


class ChatMessageBuilder:
    def __init__(
        self,
        *,
        currency: str = 'THB',
        quick_reply_limit: int = 13,
        buttons_limit: int = 4,
        carousel_limit: int = 10,
    ) -> None:
        self.currency = currency
        self.quick_reply_limit = quick_reply_limit
        self.buttons_limit = buttons_limit
        self.carousel_limit = carousel_limit

    # Primitives

    def text(self, text: str, *, quick_reply: Sequence[Dict[str, Any]] = ()) -> Message:
        message: Message = {'type': 'text', 'text': text}
        if quick_reply:
            message['quickReply'] = {
                'items': [
                    {'type': 'action', 'action': action}
                    for action in list(quick_reply)[: self.quick_reply_limit]
                ]
            }
        return message

    def buttons(
        self,
        *,
        alt_text: str,
        text: str,
        actions: Sequence[Dict[str, Any]],
        title: Optional[str] = None,
    ) -> Message:
        template: Dict[str, Any] = {
            'type': 'buttons',
            'text': _clip(text, TEXT_WITH_TITLE_MAX if title else TEXT_MAX),
            'actions': list(actions)[: self.buttons_limit],
        }
        if title:
            template['title'] = _clip(title, TITLE_MAX)
        return {'type': 'template', 'altText': _clip(alt_text, 400), 'template': template}

    def carousel(self, *, alt_text: str, columns: Sequence[Dict[str, Any]]) -> Message:
        return {
            'type': 'template',
            'altText': _clip(alt_text, 400),
            'template': {'type': 'carousel', 'columns': list(columns)[: self.carousel_limit]},
        }

    @staticmethod
    def column(*, title: str, text: str, actions: Sequence[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            'title': _clip(title, TITLE_MAX),
            'text': _clip(text, TEXT_WITH_TITLE_MAX),
            'actions': list(actions),
        }

    def price_text(self, quote: Optional[PricingResult]) -> str:
        if quote is None:
            return 'Price: to be confirmed'
        return f'Price: {quote.final_price} {quote.currency}'

    # Menu

    def menu(self, *, restaurant_id: Optional[str]) -> Message:
        start = BookingContinuation(action=ChatAction.BOOKING_START, restaurant_id=restaurant_id)
        return self.buttons(
            alt_text='Main menu',
            title='What would you like to do?',
            text='Book a table or review your bookings',
            actions=[
                postback('Book a table', start, display_text='Book a table'),
                postback(
                    'My bookings',
                    start.next(ChatAction.MY_BOOKINGS),
                    display_text='My bookings',
                ),
            ],
        )

    def greeting(self, *, display_name: Optional[str], restaurant_id: Optional[str]) -> List[Message]:
        name = f' {display_name}' if display_name else ''
        return [
            self.text(f'Hello{name}! Thanks for adding us. You can book a table right here.'),
            self.menu(restaurant_id=restaurant_id),
        ]

    def restaurant_choices(self, restaurants: Sequence[Restaurant]) -> Message:
        if not restaurants:
            return self.text('No restaurants are taking bookings right now.')
        columns = [
            self.column(
                title=r.name,
                text='Tap to book a table',
                actions=[
                    postback(
                        'Book here',
                        BookingContinuation(action=ChatAction.BOOKING_START, restaurant_id=r.id),
                        display_text=f'Book at {r.name}',
                    )
                ],
            )
            for r in restaurants
        ]
        return self.carousel(alt_text='Choose a restaurant', columns=columns)

    # Booking wizard

    def date_choices(
        self, continuation: BookingContinuation, *, dates: Sequence[date], today: date
    ) -> Message:
        if not dates:
            return self.text('Sorry, there are no bookable dates in the coming days.')
        items = [
            postback(
                date_label(d, today),
                continuation.next(ChatAction.BOOKING_DATE, date=d.isoformat(), page=None),
                display_text=d.isoformat(),
            )
            for d in dates
        ]
        return self.text('📅 Which date would you like to book?', quick_reply=items)

    def time_choices(
        self, continuation: BookingContinuation, *, slots: Sequence[str], page: int = 0
    ) -> Message:
        """Quick reply of start times; the last item pages forward when slots overflow."""
        page_size = self.quick_reply_limit - 1
        start = page * page_size
        window = list(slots[start : start + page_size])
        items = [
            postback(
                slot,
                continuation.next(ChatAction.BOOKING_TIME, time=slot, page=None),
                display_text=slot,
            )
            for slot in window
        ]
        if start + page_size < len(slots):
            items.append(
                postback('More times ▶', continuation.next(ChatAction.BOOKING_DATE, page=page + 1))
            )
        return self.text(f'🕒 What time on {continuation.date}?', quick_reply=items)

    def no_times(self, continuation: BookingContinuation) -> Message:
        return self.buttons(
            alt_text='No available times',
            text=f'Sorry, there are no times left on {continuation.date}.',
            actions=[
                postback(
                    'Pick another date',
                    BookingContinuation(
                        action=ChatAction.BOOKING_START, restaurant_id=continuation.restaurant_id
                    ),
                )
            ],
        )

    def guest_choices(self, continuation: BookingContinuation) -> Message:
        actions = [
            postback(
                f'{n}+' if n == GUEST_CHOICES[-1] else str(n),
                continuation.next(ChatAction.BOOKING_GUESTS, guests=n, page=None),
                display_text=f'{n}+ guests' if n == GUEST_CHOICES[-1] else f'{n} guests',
            )
            for n in GUEST_CHOICES
        ]
        return self.buttons(
            alt_text='How many guests?',
            title='How many guests?',
            text=f'{continuation.date} at {continuation.time}',
            actions=actions,
        )

    def table_choices(
        self,
        continuation: BookingContinuation,
        *,
        tables: Sequence[DiningTable],
        page: int = 0,
    ) -> Message:
        """Smallest adequate tables first; the last column pages forward on overflow."""
        page_size = self.carousel_limit - 1
        start = page * page_size
        window = list(tables[start : start + page_size])
        columns = [
            self.column(
                title=f'Table {t.table_code.upper()}',
                text=f'Seats {t.capacity}' + (f' · {t.location}' if t.location else ''),
                actions=[
                    postback(
                        'Choose',
                        continuation.next(
                            ChatAction.BOOKING_CONFIRM, table_id=t.table_code, page=None
                        ),
                        display_text=f'Table {t.table_code.upper()}',
                    )
                ],
            )
            for t in window
        ]
        if start + page_size < len(tables):
            columns.append(
                self.column(
                    title='More tables',
                    text=f'{len(tables) - start - page_size} more available',
                    actions=[
                        postback('Show more', continuation.next(ChatAction.BOOKING_TABLES, page=page + 1))
                    ],
                )
            )
        return self.carousel(alt_text='Choose a table', columns=columns)

    def no_tables(self, continuation: BookingContinuation) -> Message:
        return self.buttons(
            alt_text='No tables available',
            text=(
                f'Sorry, no table for {continuation.guests} is free on '
                f'{continuation.date} at {continuation.time}.'
            ),
            actions=[
                postback(
                    'Another time',
                    continuation.next(ChatAction.BOOKING_DATE, time=None, table_id=None, page=None),
                ),
                postback(
                    'Another date',
                    BookingContinuation(
                        action=ChatAction.BOOKING_START, restaurant_id=continuation.restaurant_id
                    ),
                ),
            ],
        )

    def booking_summary(
        self,
        continuation: BookingContinuation,
        *,
        table: Optional[DiningTable],
        quote: Optional[PricingResult],
    ) -> Message:
        table_code = (table.table_code if table else continuation.table_id or '').upper()
        return self.buttons(
            alt_text='Confirm your booking',
            title='Confirm your booking',
            text=(
                f'{continuation.date} {continuation.time}\n'
                f'{continuation.guests} guests · Table {table_code}\n'
                f'{self.price_text(quote)}'
            ),
            actions=[
                postback(
                    'Confirm',
                    continuation.next(ChatAction.BOOKING_COMPLETE),
                    display_text='Confirm booking',
                ),
                postback(
                    'Cancel',
                    continuation.next(ChatAction.BOOKING_CANCEL_FLOW),
                    display_text='Cancel',
                ),
            ],
        )

    def booking_received(self, booking: Booking) -> Message:
        price = ''
        if booking.pricing:
            price = (
                f'\nPrice: {booking.pricing.get("final_price")} '
                f'{booking.pricing.get("currency", self.currency)}'
            )
        return self.text(
            f'✅ Booking {booking.booking_ref} received!\n'
            f'{booking.booking_date.isoformat()} {booking.start_time} · '
            f'{booking.guest_count} guests · Table {booking.table_id.upper()}'
            f'{price}\n'
            'The restaurant will confirm shortly.'
        )

    def table_taken(self, continuation: BookingContinuation) -> Message:
        return self.buttons(
            alt_text='Table no longer available',
            text='Sorry, that table was just booked by someone else.',
            actions=[
                postback(
                    'Pick another table',
                    continuation.next(ChatAction.BOOKING_TABLES, table_id=None, page=None),
                ),
                postback(
                    'Pick another time',
                    continuation.next(ChatAction.BOOKING_DATE, time=None, table_id=None, page=None),
                ),
            ],
        )

    def flow_cancelled(self, *, restaurant_id: Optional[str]) -> List[Message]:
        return [self.text('Booking cancelled. Nothing was reserved.'), self.menu(restaurant_id=restaurant_id)]

    # Customer bookings

    def customer_bookings(self, bookings: Sequence[Booking]) -> Message:
        if not bookings:
            return self.text('You have no upcoming bookings.')
        columns = [
            self.column(
                title=f'{b.booking_ref} · {b.status.value}',
                text=(
                    f'{b.booking_date.isoformat()} {b.start_time}\n'
                    f'{b.guest_count} guests · Table {b.table_id.upper()}'
                ),
                actions=[
                    postback(
                        'Cancel booking',
                        BookingContinuation(
                            action=ChatAction.CANCEL_BOOKING,
                            restaurant_id=b.restaurant_id,
                            booking_id=str(b.id),
                        ),
                        display_text=f'Cancel {b.booking_ref}',
                    )
                ],
            )
            for b in bookings
        ]
        return self.carousel(alt_text='Your bookings', columns=columns)

    def booking_cancelled(self, booking: Booking) -> Message:
        return self.text(f'Booking {booking.booking_ref} has been cancelled.')

    # Staff side

    def staff_new_booking(self, booking: Booking, *, staff: Staff) -> Message:
        base = BookingContinuation(
            action=ChatAction.BOOKING_DETAILS,
            restaurant_id=booking.restaurant_id,
            booking_id=str(booking.id),
            staff_id=staff.id,
        )
        actions: List[Dict[str, Any]] = []
        if staff.permissions.can_update_bookings:
            actions.append(postback('Confirm', base.next(ChatAction.CONFIRM_BOOKING)))
            if staff.permissions.can_cancel_bookings:
                actions.append(postback('Reject', base.next(ChatAction.REJECT_BOOKING)))
        actions.append(postback('Details', base))
        return self.buttons(
            alt_text=f'New booking {booking.booking_ref}',
            title=f'🔔 New booking {booking.booking_ref}',
            text=(
                f'{booking.booking_date.isoformat()} {booking.start_time} · '
                f'{booking.guest_count} guests · Table {booking.table_id.upper()}'
            ),
            actions=actions,
        )

    def booking_details(self, booking: Booking) -> Message:
        lines = [
            f'Booking {booking.booking_ref} ({booking.status.value})',
            f'Date: {booking.booking_date.isoformat()} {booking.start_time}-{booking.end_time}',
            f'Guests: {booking.guest_count}',
            f'Table: {booking.table_id.upper()}',
        ]
        if booking.customer_name:
            lines.append(f'Customer: {booking.customer_name}')
        if booking.customer_phone:
            lines.append(f'Phone: {booking.customer_phone}')
        if booking.special_requests:
            lines.append(f'Requests: {booking.special_requests}')
        if booking.pricing:
            lines.append(
                f'Price: {booking.pricing.get("final_price")} '
                f'{booking.pricing.get("currency", self.currency)}'
            )
        return self.text('\n'.join(lines))

    def staff_action_done(self, booking: Booking) -> Message:
        return self.text(f'Booking {booking.booking_ref} is now {booking.status.value}.')

    # Customer notifications

    def customer_confirmed(self, booking: Booking) -> Message:
        return self.text(
            f'🎉 Your booking {booking.booking_ref} on {booking.booking_date.isoformat()} '
            f'at {booking.start_time} is confirmed. See you soon!'
        )

    def customer_rejected(self, booking: Booking) -> Message:
        return self.text(
            f'Sorry, the restaurant could not accept booking {booking.booking_ref} on '
            f'{booking.booking_date.isoformat()} at {booking.start_time}.'
        )

    def customer_cancelled(self, booking: Booking) -> Message:
        return self.text(
            f'Your booking {booking.booking_ref} on {booking.booking_date.isoformat()} '
            f'at {booking.start_time} has been cancelled.'
        )

    # Errors

    def problem(self, message: str) -> Message:
        return self.text(f'⚠️ {message}')

    def apology(self) -> Message:
        return self.text('Sorry, something went wrong on our side. Please try again in a moment.')
