import datetime as dt
from typing import List, Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Query, status
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.types import UtilsUUID7
from src.service.table_booking.app.command.create_booking_use_case import CreateBookingUseCase
from src.service.table_booking.app.command.update_booking_status_use_case import (
    UpdateBookingStatusUseCase,
)
from src.service.table_booking.app.query.check_availability_use_case import (
    CheckAvailabilityUseCase,
)
from src.service.table_booking.app.query.get_booking_use_case import GetBookingUseCase
from src.service.table_booking.domain.entity.booking_entity import Booking
from src.service.table_booking.driving_adapter.http_controller.schema.booking_schema import (
    AvailabilityResponse,
    AvailableTableResponse,
    BookingCreateRequest,
    BookingResponse,
    BookingStatusUpdateRequest,
)
from src.service.table_booking.driving_adapter.http_controller.schema.table_hold_schema import (
    ConflictCheckRequest,
    ConflictCheckResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
@inject
async def create_booking(
    request: BookingCreateRequest,
    use_case: CreateBookingUseCase = Depends(Provide[Container.create_booking_use_case]),
) -> BookingResponse:
    with tracer.start_as_current_span('controller.create_booking') as span:
        span.set_attribute('restaurant_id', request.restaurant_id)
        span.set_attribute('table_id', request.table_id)

        booking = await use_case.create_booking(
            restaurant_id=request.restaurant_id,
            customer_id=request.customer_id,
            table_id=request.table_id,
            booking_date=request.date,
            start_time=request.start_time,
            end_time=request.end_time,
            guest_count=request.guest_count,
            special_requests=request.special_requests,
            customer_name=request.customer_name,
            customer_phone=request.customer_phone,
            channel='http',
            hold_id=request.hold_id,
        )

        span.set_attribute('booking.id', str(booking.id))
        return BookingResponse.from_booking(booking)


@router.get('/availability')
@Logger.io
async def check_availability(
    restaurant_id: str,
    table_id: str,
    start_time: str,
    booking_date: dt.date = Query(alias='date'),
    end_time: Optional[str] = None,
    use_case: CheckAvailabilityUseCase = Depends(CheckAvailabilityUseCase.depends),
) -> AvailabilityResponse:
    available = await use_case.is_available(
        restaurant_id=restaurant_id,
        table_id=table_id,
        booking_date=booking_date,
        start_time=start_time,
        end_time=end_time,
    )
    return AvailabilityResponse(
        restaurant_id=restaurant_id,
        table_id=table_id,
        date=booking_date,
        start_time=start_time,
        end_time=end_time,
        available=available,
    )


@router.get('/availability/tables')
@Logger.io
async def list_available_tables(
    restaurant_id: str,
    start_time: str,
    guest_count: int = Query(ge=1),
    booking_date: dt.date = Query(alias='date'),
    end_time: Optional[str] = None,
    use_case: CheckAvailabilityUseCase = Depends(CheckAvailabilityUseCase.depends),
) -> List[AvailableTableResponse]:
    tables = await use_case.list_available_tables(
        restaurant_id=restaurant_id,
        booking_date=booking_date,
        start_time=start_time,
        end_time=end_time,
        guest_count=guest_count,
    )
    return [
        AvailableTableResponse(table_code=t.table_code, capacity=t.capacity, location=t.location)
        for t in tables
    ]


@router.post('/conflict-check')
@Logger.io
async def check_conflicts(
    request: ConflictCheckRequest,
    use_case: CheckAvailabilityUseCase = Depends(CheckAvailabilityUseCase.depends),
) -> ConflictCheckResponse:
    conflicts = await use_case.check_conflicts(
        restaurant_id=request.restaurant_id,
        table_id=request.table_id,
        booking_date=request.date,
        start_time=request.start_time,
        end_time=request.end_time,
        exclude_hold_id=request.exclude_hold_id,
    )
    return ConflictCheckResponse.from_conflicts(conflicts, request=request)


@router.get('/ref/{booking_ref}')
@Logger.io
async def get_booking_by_ref(
    booking_ref: str,
    use_case: GetBookingUseCase = Depends(GetBookingUseCase.depends),
) -> BookingResponse:
    booking = await use_case.get_booking_by_ref(booking_ref=booking_ref)
    return BookingResponse.from_booking(booking)


@router.get('/{booking_id}')
@Logger.io
async def get_booking(
    booking_id: UtilsUUID7,
    use_case: GetBookingUseCase = Depends(GetBookingUseCase.depends),
) -> BookingResponse:
    booking = await use_case.get_booking(booking_id=booking_id)
    return BookingResponse.from_booking(booking)


@router.patch('/{booking_id}/status', status_code=status.HTTP_200_OK)
@Logger.io
@inject
async def update_booking_status(
    booking_id: UtilsUUID7,
    request: BookingStatusUpdateRequest,
    use_case: UpdateBookingStatusUseCase = Depends(
        Provide[Container.update_booking_status_use_case]
    ),
) -> BookingResponse:
    booking: Booking
    if request.status == 'confirmed':
        booking = await use_case.confirm(
            booking_id=booking_id,
            actor_type=request.actor_type,
            actor_id=request.actor_id,
            expected_version=request.expected_version,
        )
    elif request.status == 'rejected':
        booking = await use_case.reject(
            booking_id=booking_id,
            actor_type=request.actor_type,
            actor_id=request.actor_id,
            expected_version=request.expected_version,
            note=request.note,
        )
    elif request.status == 'cancelled':
        booking = await use_case.cancel(
            booking_id=booking_id,
            actor_type=request.actor_type,
            actor_id=request.actor_id,
            expected_version=request.expected_version,
            note=request.note,
        )
    else:
        booking = await use_case.complete(
            booking_id=booking_id,
            actor_type=request.actor_type,
            actor_id=request.actor_id,
            expected_version=request.expected_version,
        )
    return BookingResponse.from_booking(booking)
