from datetime import date
from typing import Iterable, List, Optional

from uuid_utils import UUID

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.table_booking.domain.entity.booking_entity import Booking
from src.service.table_booking.domain.enum.booking_status import BookingStatus
from src.service.table_booking.driven_adapter.repo.booking_row_mapper import (
    ACTIVE_STATUS_VALUES,
    BOOKING_COLUMNS,
    row_to_booking,
)


class BookingQueryRepoImpl(IBookingQueryRepo):
    @Logger.io
    async def get_by_id(self, *, booking_id: UUID) -> Optional[Booking]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f'SELECT {BOOKING_COLUMNS} FROM booking WHERE id = $1', booking_id
            )
        return row_to_booking(row) if row else None

    @Logger.io
    async def get_by_ref(self, *, booking_ref: str) -> Optional[Booking]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f'SELECT {BOOKING_COLUMNS} FROM booking WHERE booking_ref = $1', booking_ref
            )
        return row_to_booking(row) if row else None

    @Logger.io
    async def list_active_for_table(
        self, *, restaurant_id: str, table_id: str, booking_date: date
    ) -> List[Booking]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {BOOKING_COLUMNS}
                FROM booking
                WHERE restaurant_id = $1
                  AND table_id = $2
                  AND booking_date = $3
                  AND status = ANY($4::text[])
                ORDER BY start_minute
                """,
                restaurant_id,
                table_id,
                booking_date,
                ACTIVE_STATUS_VALUES,
            )
        return [row_to_booking(row) for row in rows]

    @Logger.io
    async def list_active_for_day(self, *, restaurant_id: str, booking_date: date) -> List[Booking]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {BOOKING_COLUMNS}
                FROM booking
                WHERE restaurant_id = $1
                  AND booking_date = $2
                  AND status = ANY($3::text[])
                ORDER BY start_minute, table_id
                """,
                restaurant_id,
                booking_date,
                ACTIVE_STATUS_VALUES,
            )
        return [row_to_booking(row) for row in rows]

    @Logger.io
    async def list_for_restaurant(
        self,
        *,
        restaurant_id: str,
        statuses: Iterable[BookingStatus],
        since: Optional[date] = None,
    ) -> List[Booking]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {BOOKING_COLUMNS}
                FROM booking
                WHERE restaurant_id = $1
                  AND status = ANY($2::text[])
                  AND ($3::date IS NULL OR booking_date >= $3)
                ORDER BY booking_date DESC, start_minute DESC
                """,
                restaurant_id,
                [status.value for status in statuses],
                since,
            )
        return [row_to_booking(row) for row in rows]

    @Logger.io
    async def list_for_customer(
        self, *, customer_id: str, from_date: Optional[date] = None, limit: int = 10
    ) -> List[Booking]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {BOOKING_COLUMNS}
                FROM booking
                WHERE customer_id = $1
                  AND ($2::date IS NULL OR booking_date >= $2)
                ORDER BY booking_date, start_minute
                LIMIT $3
                """,
                customer_id,
                from_date,
                limit,
            )
        return [row_to_booking(row) for row in rows]
