from datetime import date
from typing import List, Self, Tuple

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.service.holiday_pricing_service import HolidayPricingService
from src.service.table_booking.domain.entity.holiday_entity import Holiday


class ListUpcomingHolidaysUseCase:
    def __init__(self, *, holiday_pricing: HolidayPricingService) -> None:
        self.holiday_pricing = holiday_pricing

    @classmethod
    @inject
    def depends(
        cls,
        holiday_pricing: HolidayPricingService = Depends(
            Provide[Container.holiday_pricing_service]
        ),
    ) -> Self:
        return cls(holiday_pricing=holiday_pricing)

    @Logger.io
    async def list_upcoming(self, *, today: date, days_ahead: int = 30) -> List[Tuple[Holiday, int]]:
        return await self.holiday_pricing.get_upcoming_holidays(today=today, days_ahead=days_ahead)
