from datetime import datetime, timezone
from typing import Callable, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from uuid_utils import UUID

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.interface.i_table_hold_repo import ITableHoldRepo
from src.service.table_booking.domain.entity.table_hold_entity import TableHold


class GetTableHoldUseCase:
    def __init__(
        self,
        *,
        table_hold_repo: ITableHoldRepo,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.table_hold_repo = table_hold_repo
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @classmethod
    @inject
    def depends(
        cls,
        table_hold_repo: ITableHoldRepo = Depends(Provide[Container.table_hold_repo]),
    ) -> Self:
        return cls(table_hold_repo=table_hold_repo)

    @Logger.io
    async def get_hold(self, *, hold_id: UUID) -> TableHold:
        """A lapsed hold reads as expired even before the sweep rewrote it."""
        hold = await self.table_hold_repo.get_by_id(hold_id=hold_id)
        if not hold:
            raise NotFoundError('Hold not found')
        return hold.as_of(self._clock())
