from datetime import datetime, tzinfo
from typing import List

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Query

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.query.list_upcoming_holidays_use_case import (
    ListUpcomingHolidaysUseCase,
)
from src.service.table_booking.driving_adapter.http_controller.schema.holiday_schema import (
    UpcomingHolidayResponse,
)


router = APIRouter()


@router.get('/upcoming')
@Logger.io
@inject
async def list_upcoming_holidays(
    days_ahead: int = Query(default=30, ge=0, le=366),
    use_case: ListUpcomingHolidaysUseCase = Depends(ListUpcomingHolidaysUseCase.depends),
    tz: tzinfo = Depends(Provide[Container.tz]),
) -> List[UpcomingHolidayResponse]:
    upcoming = await use_case.list_upcoming(today=datetime.now(tz).date(), days_ahead=days_ahead)
    return [
        UpcomingHolidayResponse(
            date=holiday.holiday_date,
            name=holiday.name,
            name_en=holiday.name_en,
            name_th=holiday.name_th,
            type=holiday.type.value,
            impact=holiday.impact,
            business_impact=holiday.business_impact.value,
            days_until=days_until,
            recommended_actions=holiday.recommended_actions,
        )
        for holiday, days_until in upcoming
    ]
