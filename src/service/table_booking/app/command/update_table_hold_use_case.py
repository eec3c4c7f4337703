from datetime import datetime, timezone
from typing import Callable, Optional

from uuid_utils import UUID

from src.platform.exception.exceptions import DomainError, ForbiddenError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.table_booking.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.table_booking.app.interface.i_table_hold_repo import ITableHoldRepo
from src.service.table_booking.domain.entity.booking_entity import Booking
from src.service.table_booking.domain.entity.table_hold_entity import TableHold
from src.service.table_booking.domain.enum.hold_status import HoldStatus


class UpdateTableHoldUseCase:
    """
    Lifecycle of a hold after it was placed: confirm into a booking, extend,
    release, and the periodic expiry of lapsed holds.

    Only the guest who placed a hold may act on it.
    """

    def __init__(
        self,
        *,
        table_hold_repo: ITableHoldRepo,
        create_booking_use_case: CreateBookingUseCase,
        default_extend_minutes: int = 5,
        max_hold_minutes: int = 15,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.table_hold_repo = table_hold_repo
        self.create_booking_use_case = create_booking_use_case
        self.default_extend_minutes = default_extend_minutes
        self.max_hold_minutes = max_hold_minutes
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def _owned_hold(self, *, hold_id: UUID, customer_id: str) -> TableHold:
        hold = await self.table_hold_repo.get_by_id(hold_id=hold_id)
        if not hold:
            raise NotFoundError('Hold not found')
        if hold.customer_id != customer_id:
            raise ForbiddenError('This hold belongs to another guest')
        return hold

    @Logger.io
    async def confirm(
        self,
        *,
        hold_id: UUID,
        customer_id: str,
        special_requests: Optional[str] = None,
        channel: str = 'hold',
    ) -> Booking:
        """Turn the hold into a pending booking for exactly the held slot."""
        hold = await self._owned_hold(hold_id=hold_id, customer_id=customer_id)
        return await self.create_booking_use_case.create_booking(
            restaurant_id=hold.restaurant_id,
            customer_id=hold.customer_id,
            table_id=hold.table_id,
            booking_date=hold.booking_date,
            start_time=hold.start_time,
            end_time=hold.end_time,
            guest_count=hold.guest_count,
            special_requests=(
                hold.special_requests if special_requests is None else special_requests
            ),
            customer_name=hold.customer_name,
            customer_phone=hold.customer_phone,
            channel=channel,
            hold_id=hold.id,
        )

    @Logger.io
    async def release(self, *, hold_id: UUID, customer_id: str) -> TableHold:
        """
        Raises:
            BookingStateError: the hold was already confirmed into a booking
        """
        hold = await self._owned_hold(hold_id=hold_id, customer_id=customer_id)
        released = hold.released()
        if released is hold:
            Logger.base.info(f'🔓 [TABLE-HOLD] {hold_id} already released')
            return hold

        saved = await self.table_hold_repo.update(hold=released, expected_status=hold.status)
        Logger.base.info(f'🔓 [TABLE-HOLD] {hold_id} released by {customer_id}')
        metrics.record_hold(action='release', result='released')
        return saved

    @Logger.io
    async def extend(
        self, *, hold_id: UUID, customer_id: str, minutes: Optional[int] = None
    ) -> TableHold:
        """
        Raises:
            HoldExpiredError: the hold already lapsed
            BookingStateError: the hold was confirmed or released
            DomainError: extension longer than a hold may last
        """
        minutes = minutes or self.default_extend_minutes
        if minutes > self.max_hold_minutes:
            raise DomainError(f'A hold can last at most {self.max_hold_minutes} minutes')

        hold = await self._owned_hold(hold_id=hold_id, customer_id=customer_id)
        extended = hold.extended(minutes=minutes, now=self._clock())
        saved = await self.table_hold_repo.update(hold=extended, expected_status=HoldStatus.ACTIVE)
        Logger.base.info(f'⏳ [TABLE-HOLD] {hold_id} extended until {saved.expires_at.isoformat()}')
        metrics.record_hold(action='extend', result='extended')
        return saved

    @Logger.io
    async def expire_lapsed(self) -> int:
        expired = await self.table_hold_repo.expire_lapsed(now=self._clock())
        if expired:
            Logger.base.info(f'⌛ [TABLE-HOLD] Expired {expired} lapsed holds')
        metrics.record_hold(action='expire', result='expired', count=expired)
        return expired
