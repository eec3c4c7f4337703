from abc import ABC, abstractmethod
from typing import List, Optional

from src.service.table_booking.domain.entity.dining_table_entity import DiningTable, TableStatus


class IDiningTableRepo(ABC):
    @abstractmethod
    async def list_for_restaurant(self, *, restaurant_id: str) -> List[DiningTable]:
        pass

    @abstractmethod
    async def get(self, *, restaurant_id: str, table_code: str) -> Optional[DiningTable]:
        pass

    @abstractmethod
    async def set_status(self, *, restaurant_id: str, table_code: str, status: TableStatus) -> None:
        """Update the floor-plan projection; eventually consistent with bookings."""
        pass
