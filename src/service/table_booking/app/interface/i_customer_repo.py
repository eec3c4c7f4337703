from abc import ABC, abstractmethod
from typing import Optional

from src.service.table_booking.domain.entity.customer_entity import Customer


class ICustomerRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, customer_id: str) -> Optional[Customer]:
        pass

    @abstractmethod
    async def get_or_create_by_line_user_id(
        self, *, line_user_id: str, display_name: Optional[str] = None
    ) -> Customer:
        pass
