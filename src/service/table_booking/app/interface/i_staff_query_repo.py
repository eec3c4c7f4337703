from abc import ABC, abstractmethod
from typing import List, Optional

from src.service.table_booking.domain.entity.staff_entity import Staff


class IStaffQueryRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, staff_id: str) -> Optional[Staff]:
        pass

    @abstractmethod
    async def get_by_line_user_id(self, *, line_user_id: str) -> Optional[Staff]:
        pass

    @abstractmethod
    async def list_active_for_restaurant(self, *, restaurant_id: str) -> List[Staff]:
        pass
