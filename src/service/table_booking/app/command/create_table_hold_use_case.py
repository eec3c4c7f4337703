from datetime import date, datetime, timezone
from typing import Callable, Optional

from opentelemetry import trace
import uuid_utils

from src.platform.exception.exceptions import (
    DomainError,
    NotFoundError,
    TableNoLongerAvailableError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.table_booking.app.interface.i_dining_table_repo import IDiningTableRepo
from src.service.table_booking.app.interface.i_table_hold_repo import ITableHoldRepo
from src.service.table_booking.app.service.table_availability_service import (
    TableAvailabilityService,
)
from src.service.table_booking.domain.entity.table_hold_entity import TableHold


class CreateTableHoldUseCase:
    """
    Keep a table slot for one guest while they finish booking.

    Flow:
    1. Validate against the table (exists, capacity, time range)
    2. Pre-check against active bookings and other guests' holds
    3. Insert the hold; overlapping active holds are rejected by the store
    """

    def __init__(
        self,
        *,
        table_hold_repo: ITableHoldRepo,
        dining_table_repo: IDiningTableRepo,
        availability_service: TableAvailabilityService,
        default_hold_minutes: int = 5,
        max_hold_minutes: int = 15,
        default_duration_minutes: int = 120,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.table_hold_repo = table_hold_repo
        self.dining_table_repo = dining_table_repo
        self.availability_service = availability_service
        self.default_hold_minutes = default_hold_minutes
        self.max_hold_minutes = max_hold_minutes
        self.default_duration_minutes = default_duration_minutes
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def create_hold(
        self,
        *,
        restaurant_id: str,
        customer_id: str,
        table_id: str,
        booking_date: date,
        start_time: str,
        guest_count: int,
        end_time: Optional[str] = None,
        hold_minutes: Optional[int] = None,
        special_requests: str = '',
        customer_name: Optional[str] = None,
        customer_phone: Optional[str] = None,
    ) -> TableHold:
        """
        Raises:
            NotFoundError: table does not exist in the restaurant's floor plan
            DomainError: bad times, guests over capacity, hold longer than allowed
            TableNoLongerAvailableError: slot is booked or held by someone else
        """
        minutes = hold_minutes or self.default_hold_minutes
        if minutes > self.max_hold_minutes:
            raise DomainError(f'A hold can last at most {self.max_hold_minutes} minutes')

        hold_id = uuid_utils.uuid7()
        with self.tracer.start_as_current_span(
            'use_case.create_table_hold',
            attributes={
                'hold.id': str(hold_id),
                'restaurant.id': restaurant_id,
                'table.id': table_id,
            },
        ):
            table = await self.dining_table_repo.get(restaurant_id=restaurant_id, table_code=table_id)
            if not table:
                raise NotFoundError(f'Table {table_id} not found')

            hold = TableHold.create(
                id=hold_id,
                restaurant_id=restaurant_id,
                customer_id=customer_id,
                table_id=table_id,
                booking_date=booking_date,
                start_time=start_time,
                end_time=end_time,
                duration_minutes=self.default_duration_minutes,
                guest_count=guest_count,
                table_capacity=table.capacity,
                hold_minutes=minutes,
                now=self._clock(),
                special_requests=special_requests,
                customer_name=customer_name,
                customer_phone=customer_phone,
            )

            if not await self.availability_service.is_available(
                restaurant_id=restaurant_id,
                table_id=table_id,
                booking_date=booking_date,
                time_range=hold.time_range,
            ):
                metrics.record_hold(action='create', result='conflict')
                raise TableNoLongerAvailableError(
                    table_id=table_id, booking_date=booking_date.isoformat(), time=hold.start_time
                )

            try:
                created = await self.table_hold_repo.create(hold=hold)
            except TableNoLongerAvailableError:
                metrics.record_hold(action='create', result='conflict')
                raise

            Logger.base.info(
                f'🔒 [TABLE-HOLD] {created.id} holds {table_id} on {booking_date} '
                f'{created.start_time}-{created.end_time} until {created.expires_at.isoformat()}'
            )
            metrics.record_hold(action='create', result='held')
            return created
