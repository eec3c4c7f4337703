from datetime import date
from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.service.dynamic_pricing_engine import DynamicPricingEngine
from src.service.table_booking.domain.value_object.pricing_result import PricingResult


class CalculatePriceUseCase:
    """Quote display; the engine answers with a fallback quote instead of raising."""

    def __init__(self, *, pricing_engine: DynamicPricingEngine) -> None:
        self.pricing_engine = pricing_engine

    @classmethod
    @inject
    def depends(
        cls,
        pricing_engine: DynamicPricingEngine = Depends(Provide[Container.dynamic_pricing_engine]),
    ) -> Self:
        return cls(pricing_engine=pricing_engine)

    @Logger.io
    async def calculate(
        self,
        *,
        restaurant_id: str,
        table_id: str,
        booking_date: date,
        time: str,
        guest_count: int,
        table_capacity: int,
    ) -> PricingResult:
        return await self.pricing_engine.calculate_price(
            restaurant_id=restaurant_id,
            table_id=table_id,
            booking_date=booking_date,
            time=time,
            guest_count=guest_count,
            table_capacity=table_capacity,
        )

    @Logger.io
    async def quick_price(
        self, *, restaurant_id: str, booking_date: date, time: str, guest_count: int
    ) -> PricingResult:
        return await self.pricing_engine.get_quick_price(
            restaurant_id=restaurant_id,
            booking_date=booking_date,
            time=time,
            guest_count=guest_count,
        )
