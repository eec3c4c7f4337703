from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional

from src.service.table_booking.domain.entity.holiday_entity import Holiday


class IHolidayQueryRepo(ABC):
    @abstractmethod
    async def get_by_date(self, *, holiday_date: date) -> Optional[Holiday]:
        pass

    @abstractmethod
    async def list_between(self, *, start: date, end: date) -> List[Holiday]:
        """Holidays with start <= date <= end, ordered by date."""
        pass
