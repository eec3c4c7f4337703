from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Optional

from opentelemetry import trace
import uuid_utils
from uuid_utils import UUID

from src.platform.exception.exceptions import (
    ConflictError,
    DomainError,
    ForbiddenError,
    HoldExpiredError,
    NotFoundError,
    TableNoLongerAvailableError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.table_booking.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.table_booking.app.interface.i_booking_notifier import IBookingNotifier
from src.service.table_booking.app.interface.i_dining_table_repo import IDiningTableRepo
from src.service.table_booking.app.interface.i_table_hold_repo import ITableHoldRepo
from src.service.table_booking.app.service.dynamic_pricing_engine import DynamicPricingEngine
from src.service.table_booking.app.service.table_availability_service import (
    TableAvailabilityService,
)
from src.service.table_booking.domain.entity.booking_entity import Booking
from src.service.table_booking.domain.entity.dining_table_entity import TableStatus
from src.service.table_booking.domain.entity.table_hold_entity import TableHold
from src.service.table_booking.domain.enum.hold_status import HoldStatus


class CreateBookingUseCase:
    """
    Booking-creation transaction shared by the chat flow and direct table taps.

    Flow:
    1. Validate the request against the table (capacity, time range)
    2. Pre-check availability against bookings and other guests' holds (fail fast)
    3. Attach a price quote (default price when the engine call itself fails)
    4. Insert as `pending`; the store's active-booking constraint decides races,
       a hold passed in is consumed by the same insert
    5. Mark the floor-plan table booked, notify staff

    No payment step: every booking waits for staff confirmation.
    """

    def __init__(
        self,
        *,
        booking_command_repo: IBookingCommandRepo,
        dining_table_repo: IDiningTableRepo,
        table_hold_repo: ITableHoldRepo,
        availability_service: TableAvailabilityService,
        pricing_engine: DynamicPricingEngine,
        notifier: IBookingNotifier,
        default_duration_minutes: int = 120,
        default_price: int = 100,
        currency: str = 'THB',
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.booking_command_repo = booking_command_repo
        self.dining_table_repo = dining_table_repo
        self.table_hold_repo = table_hold_repo
        self.availability_service = availability_service
        self.pricing_engine = pricing_engine
        self.notifier = notifier
        self.default_duration_minutes = default_duration_minutes
        self.default_price = default_price
        self.currency = currency
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def create_booking(
        self,
        *,
        restaurant_id: str,
        customer_id: str,
        table_id: str,
        booking_date: date,
        start_time: str,
        guest_count: int,
        end_time: Optional[str] = None,
        special_requests: str = '',
        customer_name: Optional[str] = None,
        customer_phone: Optional[str] = None,
        channel: str = 'http',
        hold_id: Optional[UUID] = None,
    ) -> Booking:
        """
        Raises:
            NotFoundError: table does not exist in the restaurant's floor plan
            DomainError: missing fields, bad times, guests over table capacity
            TableNoLongerAvailableError: overlap found, or a concurrent insert won
            ForbiddenError: `hold_id` belongs to another customer
            HoldExpiredError: `hold_id` lapsed
            BookingStateError: `hold_id` was already confirmed or released
        """
        booking_id = uuid_utils.uuid7()

        with self.tracer.start_as_current_span(
            'use_case.create_booking',
            attributes={
                'booking.id': str(booking_id),
                'restaurant.id': restaurant_id,
                'table.id': table_id,
                'booking.channel': channel,
            },
        ):
            table = await self.dining_table_repo.get(restaurant_id=restaurant_id, table_code=table_id)
            if not table:
                raise NotFoundError(f'Table {table_id} not found')

            hold: Optional[TableHold] = None
            if hold_id is not None:
                hold = await self._claimable_hold(hold_id=hold_id, customer_id=customer_id)

            booking = Booking.create(
                id=booking_id,
                restaurant_id=restaurant_id,
                customer_id=customer_id,
                table_id=table_id,
                booking_date=booking_date,
                start_time=start_time,
                end_time=end_time,
                duration_minutes=self.default_duration_minutes,
                guest_count=guest_count,
                table_capacity=table.capacity,
                floorplan_id=table.floorplan_id,
                special_requests=special_requests,
                customer_name=customer_name,
                customer_phone=customer_phone,
                now=self._clock(),
                note=f'from hold {hold_id}' if hold else None,
            )
            if hold and not hold.covers(
                restaurant_id=restaurant_id,
                table_id=table_id,
                booking_date=booking_date,
                time_range=booking.time_range,
            ):
                raise DomainError('Booking does not match the held table and time')

            # Pre-check only; the insert below is authoritative
            if not await self.availability_service.is_available(
                restaurant_id=restaurant_id,
                table_id=table_id,
                booking_date=booking_date,
                time_range=booking.time_range,
                exclude_hold_id=hold_id,
            ):
                metrics.record_booking_conflict(reason='precheck')
                raise TableNoLongerAvailableError(
                    table_id=table_id, booking_date=booking_date.isoformat(), time=start_time
                )

            booking = booking.with_pricing(
                await self._quote(booking=booking, table_capacity=table.capacity)
            )

            try:
                created = await self.booking_command_repo.create(booking=booking, hold_id=hold_id)
            except TableNoLongerAvailableError:
                metrics.record_booking_conflict(reason='constraint')
                Logger.base.warning(
                    f'⚔️ [CREATE-BOOKING] Lost race for {restaurant_id}/{table_id} '
                    f'{booking_date} {booking.start_time}-{booking.end_time}'
                )
                raise
            except HoldExpiredError:
                metrics.record_hold(action='confirm', result='expired')
                raise

            Logger.base.info(
                f'📝 [CREATE-BOOKING] {created.booking_ref} pending for table {table_id} '
                f'on {booking_date} {created.start_time}-{created.end_time}'
            )
            metrics.record_booking_created(channel=channel)
            if hold:
                metrics.record_hold(action='confirm', result='confirmed')

            await self._mark_table_booked(created)
            await self.notifier.notify_staff_of_new_booking(booking=created)
            return created

    async def _claimable_hold(self, *, hold_id: UUID, customer_id: str) -> TableHold:
        hold = await self.table_hold_repo.get_by_id(hold_id=hold_id)
        if not hold:
            raise NotFoundError('Hold not found')
        if hold.customer_id != customer_id:
            raise ForbiddenError('This hold belongs to another guest')

        now = self._clock()
        if hold.status == HoldStatus.ACTIVE and hold.is_lapsed(now):
            metrics.record_hold(action='confirm', result='expired')
            try:
                await self.table_hold_repo.update(
                    hold=hold.expired(), expected_status=HoldStatus.ACTIVE
                )
            except ConflictError as e:
                Logger.base.info(f'⌛ [CREATE-BOOKING] Hold {hold_id} changed meanwhile: {e}')
            raise HoldExpiredError()

        hold.ensure_claimable(now)
        return hold

    async def _quote(self, *, booking: Booking, table_capacity: int) -> Dict[str, Any]:
        try:
            result = await self.pricing_engine.calculate_price(
                restaurant_id=booking.restaurant_id,
                table_id=booking.table_id,
                booking_date=booking.booking_date,
                time=booking.start_time,
                guest_count=booking.guest_count,
                table_capacity=table_capacity,
            )
            return result.to_dict()
        except Exception as e:
            Logger.base.error(f'❌ [CREATE-BOOKING] Pricing unavailable, default price used: {e}')
            return {
                'success': False,
                'base_price': self.default_price,
                'final_price': self.default_price,
                'currency': self.currency,
                'context': {'error': True},
                'error': str(e),
            }

    async def _mark_table_booked(self, booking: Booking) -> None:
        # Floor-plan status is a projection of active bookings; a failed write is logged
        try:
            await self.dining_table_repo.set_status(
                restaurant_id=booking.restaurant_id,
                table_code=booking.table_id,
                status=TableStatus.BOOKED,
            )
        except Exception as e:
            Logger.base.error(f'❌ [CREATE-BOOKING] Table status not updated for {booking.table_id}: {e}')
