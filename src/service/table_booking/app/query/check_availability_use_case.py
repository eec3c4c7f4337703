from datetime import date
from typing import List, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.service.table_availability_service import (
    TableAvailabilityService,
)
from src.service.table_booking.domain.entity.dining_table_entity import DiningTable
from src.service.table_booking.domain.value_object.slot_conflicts import SlotConflicts
from src.service.table_booking.domain.value_object.time_range import TimeRange


class CheckAvailabilityUseCase:
    def __init__(
        self,
        *,
        availability_service: TableAvailabilityService,
        default_duration_minutes: int = settings.DEFAULT_BOOKING_DURATION_MINUTES,
    ) -> None:
        self.availability_service = availability_service
        self.default_duration_minutes = default_duration_minutes

    @classmethod
    @inject
    def depends(
        cls,
        availability_service: TableAvailabilityService = Depends(
            Provide[Container.table_availability_service]
        ),
    ) -> Self:
        return cls(availability_service=availability_service)

    def _time_range(self, start_time: str, end_time: Optional[str]) -> TimeRange:
        if end_time:
            return TimeRange.parse(start_time, end_time)
        return TimeRange.from_start(start_time, duration_minutes=self.default_duration_minutes)

    @Logger.io
    async def is_available(
        self,
        *,
        restaurant_id: str,
        table_id: str,
        booking_date: date,
        start_time: str,
        end_time: Optional[str] = None,
    ) -> bool:
        return await self.availability_service.is_available(
            restaurant_id=restaurant_id,
            table_id=table_id,
            booking_date=booking_date,
            time_range=self._time_range(start_time, end_time),
        )

    @Logger.io
    async def list_available_tables(
        self,
        *,
        restaurant_id: str,
        booking_date: date,
        start_time: str,
        guest_count: int,
        end_time: Optional[str] = None,
    ) -> List[DiningTable]:
        return await self.availability_service.list_available_tables(
            restaurant_id=restaurant_id,
            booking_date=booking_date,
            time_range=self._time_range(start_time, end_time),
            guest_count=guest_count,
        )

    @Logger.io
    async def check_conflicts(
        self,
        *,
        restaurant_id: str,
        table_id: str,
        booking_date: date,
        start_time: str,
        end_time: Optional[str] = None,
        exclude_hold_id: Optional[UUID] = None,
    ) -> SlotConflicts:
        return await self.availability_service.find_conflicts(
            restaurant_id=restaurant_id,
            table_id=table_id,
            booking_date=booking_date,
            time_range=self._time_range(start_time, end_time),
            exclude_hold_id=exclude_hold_id,
        )
