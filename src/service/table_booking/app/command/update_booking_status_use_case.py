"""
Booking status changes: confirm, reject, cancel, complete.

Each operation loads the booking, checks the actor's permission, applies the
transition (history entry deduplicated, 2-hour cancellation cutoff for
confirmed bookings) and saves through the versioned compare-and-swap update.
"""

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable, Optional, Tuple

from opentelemetry import trace
from uuid_utils import UUID

from src.platform.exception.exceptions import (
    BookingStateError,
    ForbiddenError,
    NotFoundError,
    VersionConflictError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.table_booking.app.dto.booking_patch import BookingPatch
from src.service.table_booking.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.table_booking.app.interface.i_booking_notifier import IBookingNotifier
from src.service.table_booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.table_booking.app.interface.i_dining_table_repo import IDiningTableRepo
from src.service.table_booking.app.interface.i_staff_query_repo import IStaffQueryRepo
from src.service.table_booking.domain.entity.booking_entity import Booking
from src.service.table_booking.domain.entity.dining_table_entity import TableStatus
from src.service.table_booking.domain.enum.actor_type import ActorType
from src.service.table_booking.domain.enum.booking_status import BookingStatus


class UpdateBookingStatusUseCase:
    def __init__(
        self,
        *,
        booking_command_repo: IBookingCommandRepo,
        booking_query_repo: IBookingQueryRepo,
        staff_query_repo: IStaffQueryRepo,
        dining_table_repo: IDiningTableRepo,
        notifier: IBookingNotifier,
        tz: tzinfo,
        cancellation_cutoff_hours: float = 2.0,
        history_dedup_seconds: float = 5.0,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.booking_command_repo = booking_command_repo
        self.booking_query_repo = booking_query_repo
        self.staff_query_repo = staff_query_repo
        self.dining_table_repo = dining_table_repo
        self.notifier = notifier
        self.tz = tz
        self.cancellation_cutoff = timedelta(hours=cancellation_cutoff_hours)
        self.history_dedup_window = timedelta(seconds=history_dedup_seconds)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def confirm(
        self,
        *,
        booking_id: UUID,
        actor_type: ActorType,
        actor_id: Optional[str],
        expected_version: Optional[int] = None,
    ) -> Booking:
        booking, changed = await self._change(
            booking_id=booking_id,
            to_status=BookingStatus.CONFIRMED,
            action='confirmed',
            actor_type=actor_type,
            actor_id=actor_id,
            expected_version=expected_version,
            require_pending=True,
        )
        if changed:
            await self.notifier.notify_customer_of_confirmation(booking=booking)
        return booking

    @Logger.io
    async def reject(
        self,
        *,
        booking_id: UUID,
        actor_type: ActorType,
        actor_id: Optional[str],
        expected_version: Optional[int] = None,
        note: Optional[str] = None,
    ) -> Booking:
        booking, changed = await self._change(
            booking_id=booking_id,
            to_status=BookingStatus.CANCELLED,
            action='rejected',
            actor_type=actor_type,
            actor_id=actor_id,
            expected_version=expected_version,
            require_pending=True,
            note=note,
        )
        if changed:
            await self._release_table(booking)
            await self.notifier.notify_customer_of_rejection(booking=booking)
        return booking

    @Logger.io
    async def cancel(
        self,
        *,
        booking_id: UUID,
        actor_type: ActorType,
        actor_id: Optional[str],
        expected_version: Optional[int] = None,
        note: Optional[str] = None,
    ) -> Booking:
        booking, changed = await self._change(
            booking_id=booking_id,
            to_status=BookingStatus.CANCELLED,
            action='cancelled',
            actor_type=actor_type,
            actor_id=actor_id,
            expected_version=expected_version,
            note=note,
        )
        if changed:
            await self._release_table(booking)
            if actor_type != ActorType.CUSTOMER:
                await self.notifier.notify_customer_of_cancellation(booking=booking)
        return booking

    @Logger.io
    async def complete(
        self,
        *,
        booking_id: UUID,
        actor_type: ActorType,
        actor_id: Optional[str],
        expected_version: Optional[int] = None,
    ) -> Booking:
        booking, _ = await self._change(
            booking_id=booking_id,
            to_status=BookingStatus.COMPLETED,
            action='completed',
            actor_type=actor_type,
            actor_id=actor_id,
            expected_version=expected_version,
        )
        return booking

    async def _change(
        self,
        *,
        booking_id: UUID,
        to_status: BookingStatus,
        action: str,
        actor_type: ActorType,
        actor_id: Optional[str],
        expected_version: Optional[int],
        require_pending: bool = False,
        note: Optional[str] = None,
    ) -> Tuple[Booking, bool]:
        with self.tracer.start_as_current_span(
            f'use_case.booking_{action}',
            attributes={'booking.id': str(booking_id), 'actor.type': actor_type.value},
        ):
            booking = await self.booking_query_repo.get_by_id(booking_id=booking_id)
            if not booking:
                raise NotFoundError('Booking not found')

            await self._check_permission(
                booking=booking, to_status=to_status, actor_type=actor_type, actor_id=actor_id
            )

            if expected_version is not None and expected_version != booking.version:
                raise VersionConflictError()

            # Confirm and reject answer once; whoever comes second is told the current status
            if require_pending and booking.status != BookingStatus.PENDING:
                raise BookingStateError(
                    f'Booking {booking.booking_ref} is already {booking.status.value}'
                )

            updated = booking.transition(
                to_status=to_status,
                action=action,
                actor_type=actor_type,
                actor_id=actor_id,
                now=self._clock(),
                tz=self.tz,
                cancellation_cutoff=self.cancellation_cutoff,
                dedup_window=self.history_dedup_window,
                note=note,
            )
            if updated is booking:
                Logger.base.info(f'🔁 [BOOKING-STATUS] Repeated {action} on {booking.booking_ref} ignored')
                return booking, False

            saved = await self.booking_command_repo.update_with_expected_version(
                booking_id=booking.id,
                patch=BookingPatch.from_booking(updated),
                expected_version=booking.version if expected_version is None else expected_version,
            )

            metrics.record_status_transition(
                from_status=booking.status.value, to_status=saved.status.value
            )
            Logger.base.info(
                f'🔄 [BOOKING-STATUS] {saved.booking_ref}: {booking.status.value} → '
                f'{saved.status.value} by {actor_type.value} {actor_id} (v{saved.version})'
            )
            return saved, True

    async def _check_permission(
        self,
        *,
        booking: Booking,
        to_status: BookingStatus,
        actor_type: ActorType,
        actor_id: Optional[str],
    ) -> None:
        if actor_type == ActorType.SYSTEM:
            return

        if actor_type == ActorType.CUSTOMER:
            if to_status != BookingStatus.CANCELLED:
                raise ForbiddenError('Customers can only cancel their bookings')
            if booking.customer_id != actor_id:
                raise ForbiddenError('Only the customer who booked can cancel this booking')
            return

        staff = await self.staff_query_repo.get_by_id(staff_id=actor_id) if actor_id else None
        if not staff or not staff.works_at(booking.restaurant_id):
            raise ForbiddenError('Staff member is not allowed to manage this restaurant')

        if to_status == BookingStatus.CANCELLED:
            allowed = staff.permissions.can_cancel_bookings
        else:
            allowed = staff.permissions.can_update_bookings
        if not allowed:
            raise ForbiddenError(f'{staff.display_name} cannot set bookings to {to_status.value}')

    async def _release_table(self, booking: Booking) -> None:
        try:
            await self.dining_table_repo.set_status(
                restaurant_id=booking.restaurant_id,
                table_code=booking.table_id,
                status=TableStatus.AVAILABLE,
            )
        except Exception as e:
            Logger.base.error(f'❌ [BOOKING-STATUS] Table status not updated for {booking.table_id}: {e}')
