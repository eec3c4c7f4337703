import datetime as dt
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.query.calculate_price_use_case import CalculatePriceUseCase
from src.service.table_booking.app.service.dynamic_pricing_engine import quick_table_capacity
from src.service.table_booking.driving_adapter.http_controller.schema.pricing_schema import (
    PriceCalculationRequest,
)


router = APIRouter()


@router.post('/calculate')
@Logger.io
async def calculate_price(
    request: PriceCalculationRequest,
    use_case: CalculatePriceUseCase = Depends(CalculatePriceUseCase.depends),
) -> Dict[str, Any]:
    """Always 200: a failed calculation answers with the fallback quote (`success: false`)."""
    if not request.table_id:
        result = await use_case.quick_price(
            restaurant_id=request.restaurant_id,
            booking_date=request.date,
            time=request.time,
            guest_count=request.guest_count,
        )
    else:
        result = await use_case.calculate(
            restaurant_id=request.restaurant_id,
            table_id=request.table_id,
            booking_date=request.date,
            time=request.time,
            guest_count=request.guest_count,
            table_capacity=request.table_capacity or quick_table_capacity(request.guest_count),
        )
    return result.to_dict()


@router.get('/quick')
@Logger.io
async def quick_price(
    restaurant_id: str,
    time: str,
    guest_count: int = Query(ge=1),
    booking_date: dt.date = Query(alias='date'),
    use_case: CalculatePriceUseCase = Depends(CalculatePriceUseCase.depends),
) -> Dict[str, Any]:
    result = await use_case.quick_price(
        restaurant_id=restaurant_id,
        booking_date=booking_date,
        time=time,
        guest_count=guest_count,
    )
    return {
        'final_price': result.final_price,
        'currency': result.currency,
        'demand_level': result.demand_level,
        'confidence': result.confidence,
        'success': result.success,
    }
