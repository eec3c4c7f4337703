from abc import ABC, abstractmethod

from src.service.table_booking.domain.entity.booking_entity import Booking


class IBookingNotifier(ABC):
    """Best-effort notifications; implementations log failures instead of raising."""

    @abstractmethod
    async def notify_staff_of_new_booking(self, *, booking: Booking) -> int:
        """Returns the number of staff members successfully notified."""
        pass

    @abstractmethod
    async def notify_customer_of_confirmation(self, *, booking: Booking) -> bool:
        pass

    @abstractmethod
    async def notify_customer_of_rejection(self, *, booking: Booking) -> bool:
        pass

    @abstractmethod
    async def notify_customer_of_cancellation(self, *, booking: Booking) -> bool:
        pass
