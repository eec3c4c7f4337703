from enum import StrEnum
from typing import Optional

import attrs


class TableStatus(StrEnum):
    AVAILABLE = 'available'
    BOOKED = 'booked'


@attrs.define
class DiningTable:
    """Floor-plan projection of a bookable table; `status` mirrors active bookings."""

    restaurant_id: str
    table_code: str
    capacity: int
    floorplan_id: Optional[str] = None
    status: TableStatus = TableStatus.AVAILABLE
    location: Optional[str] = None

    def fits(self, guest_count: int) -> bool:
        return self.capacity >= guest_count
