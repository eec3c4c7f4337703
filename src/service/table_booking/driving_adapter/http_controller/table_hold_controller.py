from datetime import datetime, timezone
import hmac
from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Header, status
from opentelemetry import trace

from src.platform.config.core_setting import Settings
from src.platform.config.di import Container
from src.platform.exception.exceptions import AuthenticationError
from src.platform.logging.loguru_io import Logger
from src.platform.types import UtilsUUID7
from src.service.table_booking.app.command.create_table_hold_use_case import (
    CreateTableHoldUseCase,
)
from src.service.table_booking.app.command.update_table_hold_use_case import (
    UpdateTableHoldUseCase,
)
from src.service.table_booking.app.query.get_table_hold_use_case import GetTableHoldUseCase
from src.service.table_booking.driving_adapter.http_controller.schema.booking_schema import (
    BookingResponse,
)
from src.service.table_booking.driving_adapter.http_controller.schema.table_hold_schema import (
    ExpiredHoldsResponse,
    TableHoldActionRequest,
    TableHoldConfirmRequest,
    TableHoldCreateRequest,
    TableHoldExtendRequest,
    TableHoldResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
@inject
async def create_hold(
    request: TableHoldCreateRequest,
    use_case: CreateTableHoldUseCase = Depends(Provide[Container.create_table_hold_use_case]),
) -> TableHoldResponse:
    with tracer.start_as_current_span('controller.create_table_hold') as span:
        span.set_attribute('restaurant_id', request.restaurant_id)
        span.set_attribute('table_id', request.table_id)

        hold = await use_case.create_hold(
            restaurant_id=request.restaurant_id,
            customer_id=request.customer_id,
            table_id=request.table_id,
            booking_date=request.date,
            start_time=request.start_time,
            end_time=request.end_time,
            guest_count=request.guest_count,
            hold_minutes=request.hold_minutes,
            special_requests=request.special_requests,
            customer_name=request.customer_name,
            customer_phone=request.customer_phone,
        )

        span.set_attribute('hold.id', str(hold.id))
        return TableHoldResponse.from_hold(hold, now=_now())


@router.post('/cleanup-expired')
@Logger.io
@inject
async def cleanup_expired_holds(
    authorization: Optional[str] = Header(default=None),
    use_case: UpdateTableHoldUseCase = Depends(Provide[Container.update_table_hold_use_case]),
    config: Settings = Depends(Provide[Container.config_service]),
) -> ExpiredHoldsResponse:
    """Manual run of the sweep; disabled until SYSTEM_CLEANUP_TOKEN is configured."""
    token = config.SYSTEM_CLEANUP_TOKEN
    expected = f'Bearer {token.get_secret_value()}' if token else None
    if not expected or not authorization or not hmac.compare_digest(authorization, expected):
        Logger.base.warning('🚫 [TABLE-HOLD] Cleanup request rejected')
        raise AuthenticationError('Invalid system token')

    return ExpiredHoldsResponse(expired_holds=await use_case.expire_lapsed())


@router.get('/{hold_id}')
@Logger.io
async def get_hold(
    hold_id: UtilsUUID7,
    use_case: GetTableHoldUseCase = Depends(GetTableHoldUseCase.depends),
) -> TableHoldResponse:
    hold = await use_case.get_hold(hold_id=hold_id)
    return TableHoldResponse.from_hold(hold, now=_now())


@router.post('/{hold_id}/confirm', status_code=status.HTTP_201_CREATED)
@Logger.io
@inject
async def confirm_hold(
    hold_id: UtilsUUID7,
    request: TableHoldConfirmRequest,
    use_case: UpdateTableHoldUseCase = Depends(Provide[Container.update_table_hold_use_case]),
) -> BookingResponse:
    with tracer.start_as_current_span('controller.confirm_table_hold') as span:
        span.set_attribute('hold.id', str(hold_id))

        booking = await use_case.confirm(
            hold_id=hold_id,
            customer_id=request.customer_id,
            special_requests=request.special_requests,
        )

        span.set_attribute('booking.id', str(booking.id))
        return BookingResponse.from_booking(booking)


@router.post('/{hold_id}/extend')
@Logger.io
@inject
async def extend_hold(
    hold_id: UtilsUUID7,
    request: TableHoldExtendRequest,
    use_case: UpdateTableHoldUseCase = Depends(Provide[Container.update_table_hold_use_case]),
) -> TableHoldResponse:
    hold = await use_case.extend(
        hold_id=hold_id, customer_id=request.customer_id, minutes=request.minutes
    )
    return TableHoldResponse.from_hold(hold, now=_now())


@router.post('/{hold_id}/release')
@Logger.io
@inject
async def release_hold(
    hold_id: UtilsUUID7,
    request: TableHoldActionRequest,
    use_case: UpdateTableHoldUseCase = Depends(Provide[Container.update_table_hold_use_case]),
) -> TableHoldResponse:
    hold = await use_case.release(hold_id=hold_id, customer_id=request.customer_id)
    return TableHoldResponse.from_hold(hold, now=_now())
