"""
Booking Command Repository Interface

Write side of the availability store: insert guarded by the active-booking
constraint, and compare-and-swap updates keyed on `version`.
"""

from abc import ABC, abstractmethod
from typing import Optional

from uuid_utils import UUID

from src.service.table_booking.app.dto.booking_patch import BookingPatch
from src.service.table_booking.domain.entity.booking_entity import Booking


class IBookingCommandRepo(ABC):
    @abstractmethod
    async def create(self, *, booking: Booking, hold_id: Optional[UUID] = None) -> Booking:
        """
        Persist a new pending booking and assign its booking_ref.

        The database constraint on active bookings is the final authority:
        a concurrent insert for an overlapping slot on the same table loses.
        With `hold_id`, the hold is marked confirmed in the same transaction.

        Returns:
            Booking with booking_ref and version 0

        Raises:
            TableNoLongerAvailableError: active-booking constraint rejected the insert
            HoldExpiredError: the hold lapsed or changed before the insert
        """
        pass

    @abstractmethod
    async def update_with_expected_version(
        self, *, booking_id: UUID, patch: BookingPatch, expected_version: int
    ) -> Booking:
        """
        Apply `patch` only if the stored version still equals `expected_version`.

        Returns:
            Updated booking with version = expected_version + 1

        Raises:
            NotFoundError: no booking with this id
            VersionConflictError: booking exists but was modified meanwhile
        """
        pass
