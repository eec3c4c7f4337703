"""
Table Hold Repository Interface

Holds keep a slot for one guest for a few minutes. Two active holds never
overlap on a table; a hold that lapsed but is still stored `active` is turned
`expired` before it can block a new one.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import List, Optional

from uuid_utils import UUID

from src.service.table_booking.domain.entity.table_hold_entity import TableHold
from src.service.table_booking.domain.enum.hold_status import HoldStatus


class ITableHoldRepo(ABC):
    @abstractmethod
    async def create(self, *, hold: TableHold) -> TableHold:
        """
        Expire lapsed holds on the same table/day, then insert `hold`.

        Raises:
            TableNoLongerAvailableError: another active hold overlaps the slot
        """
        pass

    @abstractmethod
    async def get_by_id(self, *, hold_id: UUID) -> Optional[TableHold]:
        pass

    @abstractmethod
    async def list_holding(
        self,
        *,
        restaurant_id: str,
        booking_date: date,
        now: datetime,
        table_id: Optional[str] = None,
    ) -> List[TableHold]:
        """Active holds not yet past `expires_at`, optionally for one table."""
        pass

    @abstractmethod
    async def update(self, *, hold: TableHold, expected_status: HoldStatus) -> TableHold:
        """
        Write status and expiry of `hold` if the stored status is still `expected_status`.

        Raises:
            NotFoundError: no hold with this id
            ConflictError: the hold changed status meanwhile
        """
        pass

    @abstractmethod
    async def expire_lapsed(self, *, now: datetime) -> int:
        """Mark every active hold past its expiry as expired; returns how many."""
        pass
