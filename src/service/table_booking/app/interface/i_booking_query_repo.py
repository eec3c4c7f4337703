from abc import ABC, abstractmethod
from datetime import date
from typing import Iterable, List, Optional

from uuid_utils import UUID

from src.service.table_booking.domain.entity.booking_entity import Booking
from src.service.table_booking.domain.enum.booking_status import BookingStatus


class IBookingQueryRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, booking_id: UUID) -> Optional[Booking]:
        pass

    @abstractmethod
    async def get_by_ref(self, *, booking_ref: str) -> Optional[Booking]:
        pass

    @abstractmethod
    async def list_active_for_table(
        self, *, restaurant_id: str, table_id: str, booking_date: date
    ) -> List[Booking]:
        """Pending/confirmed bookings holding `table_id` on `booking_date`."""
        pass

    @abstractmethod
    async def list_active_for_day(self, *, restaurant_id: str, booking_date: date) -> List[Booking]:
        """Pending/confirmed bookings of the whole restaurant on `booking_date`."""
        pass

    @abstractmethod
    async def list_for_restaurant(
        self,
        *,
        restaurant_id: str,
        statuses: Iterable[BookingStatus],
        since: Optional[date] = None,
    ) -> List[Booking]:
        """Booking history for analytics, newest first."""
        pass

    @abstractmethod
    async def list_for_customer(
        self, *, customer_id: str, from_date: Optional[date] = None, limit: int = 10
    ) -> List[Booking]:
        pass
