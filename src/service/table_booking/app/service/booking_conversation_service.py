"""
Conversational booking state machine.

    AwaitingDate → AwaitingTime → AwaitingGuestCount → AwaitingTable
        → AwaitingConfirmation → Completed

No session is kept between turns: each postback decodes a BookingContinuation
carrying every choice made so far, and each reply re-encodes it into the next
step's buttons. A turn missing a field restarts at the earliest missing step.
Typed errors from the booking store become user-facing text here.
"""

from datetime import date, datetime, tzinfo
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, cast

from opentelemetry import trace
from uuid_utils import UUID

from src.platform.exception.exceptions import (
    CustomBaseError,
    TableNoLongerAvailableError,
    VersionConflictError,
)
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.table_booking.app.command.update_booking_status_use_case import (
    UpdateBookingStatusUseCase,
)
from src.service.table_booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.table_booking.app.interface.i_customer_repo import ICustomerRepo
from src.service.table_booking.app.interface.i_dining_table_repo import IDiningTableRepo
from src.service.table_booking.app.interface.i_messenger import IMessenger, Message
from src.service.table_booking.app.interface.i_restaurant_query_repo import IRestaurantQueryRepo
from src.service.table_booking.app.interface.i_staff_query_repo import IStaffQueryRepo
from src.service.table_booking.app.service.chat_message_builder import ChatMessageBuilder
from src.service.table_booking.app.service.dynamic_pricing_engine import DynamicPricingEngine
from src.service.table_booking.app.service.table_availability_service import (
    TableAvailabilityService,
)
from src.service.table_booking.app.service.time_slot_generator import (
    generate_time_slots,
    upcoming_dates,
)
from src.service.table_booking.domain.entity.booking_entity import Booking
from src.service.table_booking.domain.entity.restaurant_entity import OpeningHours
from src.service.table_booking.domain.entity.staff_entity import Staff
from src.service.table_booking.domain.enum.actor_type import ActorType
from src.service.table_booking.domain.value_object.booking_continuation import (
    BookingContinuation,
    ChatAction,
)
from src.service.table_booking.domain.value_object.pricing_result import PricingResult
from src.service.table_booking.domain.value_object.time_range import TimeRange


START_KEYWORDS = ('book', 'reserve', 'จอง')
MY_BOOKINGS_KEYWORDS = ('my booking', 'การจองของฉัน')

# Step → fields that must already be chosen
_REQUIRED_FIELDS: Dict[ChatAction, Tuple[str, ...]] = {
    ChatAction.BOOKING_DATE: ('restaurant_id', 'date'),
    ChatAction.BOOKING_TIME: ('restaurant_id', 'date', 'time'),
    ChatAction.BOOKING_GUESTS: ('restaurant_id', 'date', 'time', 'guests'),
    ChatAction.BOOKING_TABLES: ('restaurant_id', 'date', 'time', 'guests'),
    ChatAction.BOOKING_CONFIRM: ('restaurant_id', 'date', 'time', 'guests', 'table_id'),
    ChatAction.BOOKING_COMPLETE: ('restaurant_id', 'date', 'time', 'guests', 'table_id'),
}

# First missing field → step that asks for it
_STEP_FOR_MISSING: Dict[str, ChatAction] = {
    'restaurant_id': ChatAction.BOOKING_START,
    'date': ChatAction.BOOKING_START,
    'time': ChatAction.BOOKING_DATE,
    'guests': ChatAction.BOOKING_TIME,
    'table_id': ChatAction.BOOKING_TABLES,
}

Handler = Callable[[BookingContinuation, str], Awaitable[List[Message]]]


class BookingConversationService:
    def __init__(
        self,
        *,
        restaurant_query_repo: IRestaurantQueryRepo,
        dining_table_repo: IDiningTableRepo,
        customer_repo: ICustomerRepo,
        staff_query_repo: IStaffQueryRepo,
        booking_query_repo: IBookingQueryRepo,
        availability_service: TableAvailabilityService,
        pricing_engine: DynamicPricingEngine,
        create_booking_use_case: CreateBookingUseCase,
        update_booking_status_use_case: UpdateBookingStatusUseCase,
        messenger: IMessenger,
        message_builder: ChatMessageBuilder,
        tz: tzinfo,
        clock: Optional[Callable[[], datetime]] = None,
        default_restaurant_id: Optional[str] = None,
        default_duration_minutes: int = 120,
        date_choices: int = 7,
        slot_interval_minutes: int = 30,
        slot_closing_buffer_minutes: int = 60,
        slot_min_lead_minutes: int = 60,
        default_opening_hours: Optional[OpeningHours] = None,
    ) -> None:
        self.restaurant_query_repo = restaurant_query_repo
        self.dining_table_repo = dining_table_repo
        self.customer_repo = customer_repo
        self.staff_query_repo = staff_query_repo
        self.booking_query_repo = booking_query_repo
        self.availability_service = availability_service
        self.pricing_engine = pricing_engine
        self.create_booking_use_case = create_booking_use_case
        self.update_booking_status_use_case = update_booking_status_use_case
        self.messenger = messenger
        self.messages = message_builder
        self.tz = tz
        self._clock = clock or (lambda: datetime.now(self.tz))
        self.default_restaurant_id = default_restaurant_id
        self.default_duration_minutes = default_duration_minutes
        self.date_choices = date_choices
        self.slot_interval_minutes = slot_interval_minutes
        self.slot_closing_buffer_minutes = slot_closing_buffer_minutes
        self.slot_min_lead_minutes = slot_min_lead_minutes
        self.default_opening_hours = default_opening_hours
        self.tracer = trace.get_tracer(__name__)

        self._handlers: Dict[ChatAction, Handler] = {
            ChatAction.BOOKING_START: self._ask_date,
            ChatAction.BOOKING_DATE: self._ask_time,
            ChatAction.BOOKING_TIME: self._ask_guests,
            ChatAction.BOOKING_GUESTS: self._ask_table,
            ChatAction.BOOKING_TABLES: self._ask_table,
            ChatAction.BOOKING_CONFIRM: self._ask_confirmation,
            ChatAction.BOOKING_COMPLETE: self._complete,
            ChatAction.BOOKING_CANCEL_FLOW: self._cancel_flow,
            ChatAction.MY_BOOKINGS: self._my_bookings,
            ChatAction.CANCEL_BOOKING: self._cancel_booking,
            ChatAction.CONFIRM_BOOKING: self._staff_confirm,
            ChatAction.REJECT_BOOKING: self._staff_reject,
            ChatAction.BOOKING_DETAILS: self._staff_details,
        }

    @Logger.io
    async def handle_event(self, event: Dict[str, Any]) -> List[Message]:
        """Messages answering one webhook event; empty when nothing should be sent."""
        user_id = (event.get('source') or {}).get('userId')
        if not user_id:
            return []

        event_type = event.get('type')
        with self.tracer.start_as_current_span(
            'chat.handle_event', attributes={'chat.event_type': str(event_type)}
        ):
            if event_type == 'postback':
                data = (event.get('postback') or {}).get('data', '')
                return await self.handle_postback(BookingContinuation.decode(data), user_id)
            if event_type == 'message' and (event.get('message') or {}).get('type') == 'text':
                return await self.handle_text(event['message'].get('text', ''), user_id)
            if event_type == 'follow':
                return await self._greet(user_id)
            return []

    async def handle_text(self, text: str, user_id: str) -> List[Message]:
        normalized = text.strip().lower()
        if any(keyword in normalized for keyword in MY_BOOKINGS_KEYWORDS):
            return await self._my_bookings(BookingContinuation(action=ChatAction.MY_BOOKINGS), user_id)
        if any(keyword in normalized for keyword in START_KEYWORDS):
            return await self._ask_date(BookingContinuation(action=ChatAction.BOOKING_START), user_id)
        return [self.messages.menu(restaurant_id=self.default_restaurant_id)]

    async def handle_postback(self, continuation: BookingContinuation, user_id: str) -> List[Message]:
        action = continuation.chat_action
        if action is None:
            Logger.base.warning(f'⚠️ [CHAT] Unknown postback action {continuation.action!r}')
            return [self.messages.menu(restaurant_id=self.default_restaurant_id)]

        action = self._resume_step(continuation, action)
        return await self._handlers[action](continuation, user_id)

    def _resume_step(self, continuation: BookingContinuation, action: ChatAction) -> ChatAction:
        for field_name in _REQUIRED_FIELDS.get(action, ()):
            if getattr(continuation, field_name) is None:
                return _STEP_FOR_MISSING[field_name]
        if action in _REQUIRED_FIELDS and self._booking_date(continuation) is None:
            return ChatAction.BOOKING_START
        return action

    def _today(self) -> date:
        return self._clock().date()

    def _booking_date(self, continuation: BookingContinuation) -> Optional[date]:
        try:
            day = date.fromisoformat(continuation.date or '')
        except ValueError:
            return None
        return day if day >= self._today() else None

    # Customer flow

    async def _greet(self, user_id: str) -> List[Message]:
        display_name = await self.messenger.get_display_name(user_id=user_id)
        await self.customer_repo.get_or_create_by_line_user_id(
            line_user_id=user_id, display_name=display_name
        )
        return self.messages.greeting(
            display_name=display_name, restaurant_id=self.default_restaurant_id
        )

    async def _ask_date(self, continuation: BookingContinuation, user_id: str) -> List[Message]:
        restaurant_id = continuation.restaurant_id or self.default_restaurant_id
        if not restaurant_id:
            restaurants = await self.restaurant_query_repo.list_all(
                limit=self.messages.carousel_limit
            )
            return [self.messages.restaurant_choices(restaurants)]

        restaurant = await self.restaurant_query_repo.get_by_id(restaurant_id=restaurant_id)
        if restaurant is None:
            restaurants = await self.restaurant_query_repo.list_all(
                limit=self.messages.carousel_limit
            )
            return [
                self.messages.problem('That restaurant is not taking bookings.'),
                self.messages.restaurant_choices(restaurants),
            ]

        today = self._today()
        dates = upcoming_dates(restaurant=restaurant, today=today, count=self.date_choices)
        fresh = BookingContinuation(action=ChatAction.BOOKING_START, restaurant_id=restaurant_id)
        return [self.messages.date_choices(fresh, dates=dates, today=today)]

    async def _ask_time(self, continuation: BookingContinuation, user_id: str) -> List[Message]:
        day = cast(date, self._booking_date(continuation))
        restaurant = await self.restaurant_query_repo.get_by_id(
            restaurant_id=cast(str, continuation.restaurant_id)
        )
        slots = generate_time_slots(
            hours=restaurant.hours_for(day) if restaurant else None,
            day=day,
            now=self._clock(),
            interval_minutes=self.slot_interval_minutes,
            closing_buffer_minutes=self.slot_closing_buffer_minutes,
            min_lead_minutes=self.slot_min_lead_minutes,
            default_hours=self.default_opening_hours,
        )
        if not slots:
            return [self.messages.no_times(continuation)]
        return [self.messages.time_choices(continuation, slots=slots, page=continuation.page or 0)]

    async def _ask_guests(self, continuation: BookingContinuation, user_id: str) -> List[Message]:
        return [self.messages.guest_choices(continuation)]

    async def _ask_table(self, continuation: BookingContinuation, user_id: str) -> List[Message]:
        tables = await self.availability_service.list_available_tables(
            restaurant_id=cast(str, continuation.restaurant_id),
            booking_date=cast(date, self._booking_date(continuation)),
            time_range=self._time_range(continuation),
            guest_count=cast(int, continuation.guests),
        )
        if not tables:
            return [self.messages.no_tables(continuation)]
        return [
            self.messages.table_choices(continuation, tables=tables, page=continuation.page or 0)
        ]

    async def _ask_confirmation(
        self, continuation: BookingContinuation, user_id: str
    ) -> List[Message]:
        restaurant_id = cast(str, continuation.restaurant_id)
        day = cast(date, self._booking_date(continuation))
        table = await self.dining_table_repo.get(
            restaurant_id=restaurant_id, table_code=cast(str, continuation.table_id)
        )
        if table is None or not table.fits(cast(int, continuation.guests)):
            return [self.messages.table_taken(continuation)]

        if not await self.availability_service.is_available(
            restaurant_id=restaurant_id,
            table_id=table.table_code,
            booking_date=day,
            time_range=self._time_range(continuation),
        ):
            return [self.messages.table_taken(continuation)]

        quote = await self._quote(continuation, day=day, table_capacity=table.capacity)
        return [self.messages.booking_summary(continuation, table=table, quote=quote)]

    async def _quote(
        self, continuation: BookingContinuation, *, day: date, table_capacity: int
    ) -> Optional[PricingResult]:
        try:
            return await self.pricing_engine.calculate_price(
                restaurant_id=cast(str, continuation.restaurant_id),
                table_id=cast(str, continuation.table_id),
                booking_date=day,
                time=cast(str, continuation.time),
                guest_count=cast(int, continuation.guests),
                table_capacity=table_capacity,
            )
        except Exception as e:
            Logger.base.error(f'❌ [CHAT] Quote unavailable: {e}')
            return None

    async def _complete(self, continuation: BookingContinuation, user_id: str) -> List[Message]:
        day = cast(date, self._booking_date(continuation))
        customer = await self.customer_repo.get_or_create_by_line_user_id(line_user_id=user_id)

        # The same Confirm button pressed twice answers with the booking already made
        if existing := await self._find_own_booking(continuation, customer_id=customer.id, day=day):
            return [self.messages.booking_received(existing)]

        try:
            booking = await self.create_booking_use_case.create_booking(
                restaurant_id=cast(str, continuation.restaurant_id),
                customer_id=customer.id,
                table_id=cast(str, continuation.table_id),
                booking_date=day,
                start_time=cast(str, continuation.time),
                guest_count=cast(int, continuation.guests),
                customer_name=customer.display_name,
                customer_phone=customer.phone,
                channel='line',
            )
        except TableNoLongerAvailableError:
            return [self.messages.table_taken(continuation)]
        except CustomBaseError as e:
            return [
                self.messages.problem(e.message),
                self.messages.menu(restaurant_id=continuation.restaurant_id),
            ]
        return [self.messages.booking_received(booking)]

    async def _find_own_booking(
        self, continuation: BookingContinuation, *, customer_id: str, day: date
    ) -> Optional[Booking]:
        start = self._time_range(continuation).start
        bookings = await self.booking_query_repo.list_for_customer(
            customer_id=customer_id, from_date=day
        )
        for booking in bookings:
            if (
                booking.is_active
                and booking.restaurant_id == continuation.restaurant_id
                and booking.table_id == continuation.table_id
                and booking.booking_date == day
                and booking.start_time == start
            ):
                return booking
        return None

    async def _cancel_flow(self, continuation: BookingContinuation, user_id: str) -> List[Message]:
        return self.messages.flow_cancelled(restaurant_id=continuation.restaurant_id)

    async def _my_bookings(self, continuation: BookingContinuation, user_id: str) -> List[Message]:
        customer = await self.customer_repo.get_or_create_by_line_user_id(line_user_id=user_id)
        bookings = await self.booking_query_repo.list_for_customer(
            customer_id=customer.id, from_date=self._today(), limit=self.messages.carousel_limit
        )
        return [self.messages.customer_bookings([b for b in bookings if b.is_active])]

    async def _cancel_booking(self, continuation: BookingContinuation, user_id: str) -> List[Message]:
        booking_id = self._booking_id(continuation)
        if booking_id is None:
            return [self.messages.problem('That booking could not be found.')]

        customer = await self.customer_repo.get_or_create_by_line_user_id(line_user_id=user_id)
        try:
            booking = await self.update_booking_status_use_case.cancel(
                booking_id=booking_id, actor_type=ActorType.CUSTOMER, actor_id=customer.id
            )
        except VersionConflictError:
            return [self.messages.problem('Your booking was just updated. Please check it again.')]
        except CustomBaseError as e:
            return [self.messages.problem(e.message)]
        return [self.messages.booking_cancelled(booking)]

    # Staff side

    async def _staff_member(self, continuation: BookingContinuation, user_id: str) -> Optional[Staff]:
        staff = await self.staff_query_repo.get_by_line_user_id(line_user_id=user_id)
        if staff is None or not staff.is_active:
            return None
        if continuation.staff_id and continuation.staff_id != staff.id:
            return None
        return staff

    async def _staff_transition(
        self, continuation: BookingContinuation, user_id: str, *, confirm: bool
    ) -> List[Message]:
        staff = await self._staff_member(continuation, user_id)
        booking_id = self._booking_id(continuation)
        if staff is None:
            return [self.messages.problem('You are not allowed to manage bookings.')]
        if booking_id is None:
            return [self.messages.problem('That booking could not be found.')]

        operation = (
            self.update_booking_status_use_case.confirm
            if confirm
            else self.update_booking_status_use_case.reject
        )
        try:
            booking = await operation(
                booking_id=booking_id, actor_type=ActorType.STAFF, actor_id=staff.id
            )
        except VersionConflictError:
            return [self.messages.problem('This booking was just handled by another staff member.')]
        except CustomBaseError as e:
            return [self.messages.problem(e.message)]
        return [self.messages.staff_action_done(booking)]

    async def _staff_confirm(self, continuation: BookingContinuation, user_id: str) -> List[Message]:
        return await self._staff_transition(continuation, user_id, confirm=True)

    async def _staff_reject(self, continuation: BookingContinuation, user_id: str) -> List[Message]:
        return await self._staff_transition(continuation, user_id, confirm=False)

    async def _staff_details(self, continuation: BookingContinuation, user_id: str) -> List[Message]:
        staff = await self._staff_member(continuation, user_id)
        booking_id = self._booking_id(continuation)
        if staff is None:
            return [self.messages.problem('You are not allowed to view bookings.')]
        booking = (
            await self.booking_query_repo.get_by_id(booking_id=booking_id) if booking_id else None
        )
        if booking is None or not staff.works_at(booking.restaurant_id):
            return [self.messages.problem('That booking could not be found.')]
        return [self.messages.booking_details(booking)]

    # Helpers

    def _time_range(self, continuation: BookingContinuation) -> TimeRange:
        return TimeRange.from_start(
            cast(str, continuation.time), duration_minutes=self.default_duration_minutes
        )

    @staticmethod
    def _booking_id(continuation: BookingContinuation) -> Optional[UUID]:
        try:
            return UUID(continuation.booking_id or '')
        except ValueError:
            return None
