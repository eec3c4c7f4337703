from datetime import date
from typing import List, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.exception.exceptions import DomainError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.table_booking.domain.entity.booking_entity import Booking
from src.service.table_booking.domain.value_object.booking_ref import is_booking_ref


class GetBookingUseCase:
    def __init__(self, *, booking_query_repo: IBookingQueryRepo) -> None:
        self.booking_query_repo = booking_query_repo

    @classmethod
    @inject
    def depends(
        cls,
        booking_query_repo: IBookingQueryRepo = Depends(Provide[Container.booking_query_repo]),
    ) -> Self:
        return cls(booking_query_repo=booking_query_repo)

    @Logger.io
    async def get_booking(self, *, booking_id: UUID) -> Booking:
        booking = await self.booking_query_repo.get_by_id(booking_id=booking_id)
        if not booking:
            raise NotFoundError('Booking not found')
        return booking

    @Logger.io
    async def get_booking_by_ref(self, *, booking_ref: str) -> Booking:
        if not is_booking_ref(booking_ref):
            raise DomainError(f'Invalid booking reference: {booking_ref}')
        booking = await self.booking_query_repo.get_by_ref(booking_ref=booking_ref)
        if not booking:
            raise NotFoundError('Booking not found')
        return booking

    @Logger.io
    async def list_customer_bookings(
        self, *, customer_id: str, from_date: Optional[date] = None, limit: int = 10
    ) -> List[Booking]:
        return await self.booking_query_repo.list_for_customer(
            customer_id=customer_id, from_date=from_date, limit=limit
        )
