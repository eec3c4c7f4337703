from abc import ABC, abstractmethod
from typing import List, Optional

from src.service.table_booking.domain.entity.restaurant_entity import Restaurant


class IRestaurantQueryRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, restaurant_id: str) -> Optional[Restaurant]:
        pass

    @abstractmethod
    async def list_all(self, *, limit: int) -> List[Restaurant]:
        pass
