from typing import Optional

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.table_booking.app.interface.i_booking_notifier import IBookingNotifier
from src.service.table_booking.app.interface.i_customer_repo import ICustomerRepo
from src.service.table_booking.app.interface.i_messenger import IMessenger, Message
from src.service.table_booking.app.interface.i_staff_query_repo import IStaffQueryRepo
from src.service.table_booking.app.service.chat_message_builder import ChatMessageBuilder
from src.service.table_booking.domain.entity.booking_entity import Booking


class LineBookingNotifier(IBookingNotifier):
    """Push notifications over LINE. Failures are logged and counted, never raised."""

    def __init__(
        self,
        *,
        messenger: IMessenger,
        staff_query_repo: IStaffQueryRepo,
        customer_repo: ICustomerRepo,
        message_builder: ChatMessageBuilder,
    ) -> None:
        self.messenger = messenger
        self.staff_query_repo = staff_query_repo
        self.customer_repo = customer_repo
        self.message_builder = message_builder

    async def _push(self, *, to: str, message: Message, kind: str) -> bool:
        try:
            await self.messenger.push(to=to, messages=[message])
        except Exception as e:
            Logger.base.error(f'❌ [NOTIFY] {kind} push to {to} failed: {e}')
            metrics.record_message_sent(kind=kind, result='failed')
            return False
        metrics.record_message_sent(kind=kind, result='sent')
        return True

    @Logger.io
    async def notify_staff_of_new_booking(self, *, booking: Booking) -> int:
        try:
            staff_members = await self.staff_query_repo.list_active_for_restaurant(
                restaurant_id=booking.restaurant_id
            )
        except Exception as e:
            Logger.base.error(f'❌ [NOTIFY] Staff lookup failed for {booking.booking_ref}: {e}')
            return 0

        notified = 0
        for staff in staff_members:
            if not staff.receives_booking_alerts:
                continue
            if await self._push(
                to=str(staff.line_user_id),
                message=self.message_builder.staff_new_booking(booking, staff=staff),
                kind='staff_alert',
            ):
                notified += 1

        Logger.base.info(f'🔔 [NOTIFY] {booking.booking_ref}: {notified} staff notified')
        return notified

    async def _customer_line_id(self, booking: Booking) -> Optional[str]:
        try:
            customer = await self.customer_repo.get_by_id(customer_id=booking.customer_id)
        except Exception as e:
            Logger.base.error(f'❌ [NOTIFY] Customer lookup failed for {booking.booking_ref}: {e}')
            return None
        return customer.line_user_id if customer else None

    async def _notify_customer(self, booking: Booking, *, message: Message, kind: str) -> bool:
        line_user_id = await self._customer_line_id(booking)
        if not line_user_id:
            Logger.base.info(f'📭 [NOTIFY] {booking.booking_ref}: customer has no LINE id')
            return False
        return await self._push(to=line_user_id, message=message, kind=kind)

    @Logger.io
    async def notify_customer_of_confirmation(self, *, booking: Booking) -> bool:
        return await self._notify_customer(
            booking, message=self.message_builder.customer_confirmed(booking), kind='confirmation'
        )

    @Logger.io
    async def notify_customer_of_rejection(self, *, booking: Booking) -> bool:
        return await self._notify_customer(
            booking, message=self.message_builder.customer_rejected(booking), kind='rejection'
        )

    @Logger.io
    async def notify_customer_of_cancellation(self, *, booking: Booking) -> bool:
        return await self._notify_customer(
            booking, message=self.message_builder.customer_cancelled(booking), kind='cancellation'
        )
