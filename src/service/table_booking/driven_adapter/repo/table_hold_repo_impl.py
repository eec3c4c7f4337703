"""
Table Hold Repository Implementation

`ex_table_hold_active_overlap` keeps active holds of one table from
overlapping. The constraint cannot see the clock, so each insert first expires
the lapsed holds of that table/day inside the same transaction.
"""

from datetime import date, datetime
from typing import List, Optional

import asyncpg
from uuid_utils import UUID

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.exception.exceptions import (
    ConflictError,
    NotFoundError,
    TableNoLongerAvailableError,
)
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.interface.i_table_hold_repo import ITableHoldRepo
from src.service.table_booking.domain.entity.table_hold_entity import TableHold
from src.service.table_booking.domain.enum.hold_status import HoldStatus


HOLD_COLUMNS = """
    id, restaurant_id, customer_id, table_id, booking_date, start_time, end_time,
    guest_count, status, special_requests, customer_name, customer_phone,
    booking_id, held_at, expires_at, confirmed_at
"""

ACTIVE_HOLD_CONSTRAINTS = ('uq_table_hold_active_slot', 'ex_table_hold_active_overlap')


def row_to_hold(row: asyncpg.Record) -> TableHold:
    return TableHold(
        id=UUID(str(row['id'])),
        restaurant_id=row['restaurant_id'],
        customer_id=row['customer_id'],
        table_id=row['table_id'],
        booking_date=row['booking_date'],
        start_time=row['start_time'],
        end_time=row['end_time'],
        guest_count=row['guest_count'],
        status=HoldStatus(row['status']),
        special_requests=row['special_requests'] or '',
        customer_name=row['customer_name'],
        customer_phone=row['customer_phone'],
        booking_id=UUID(str(row['booking_id'])) if row['booking_id'] else None,
        held_at=row['held_at'],
        expires_at=row['expires_at'],
        confirmed_at=row['confirmed_at'],
    )


def _slot_held(hold: TableHold) -> TableNoLongerAvailableError:
    return TableNoLongerAvailableError(
        'This table is being held by another guest',
        table_id=hold.table_id,
        booking_date=hold.booking_date.isoformat(),
        time=hold.start_time,
    )


class TableHoldRepoImpl(ITableHoldRepo):
    @Logger.io
    async def create(self, *, hold: TableHold) -> TableHold:
        time_range = hold.time_range

        async with (await get_asyncpg_pool()).acquire() as conn:
            try:
                async with conn.transaction():
                    await conn.execute(
                        """
                        UPDATE table_hold
                        SET status = 'expired'
                        WHERE restaurant_id = $1
                          AND table_id = $2
                          AND booking_date = $3
                          AND status = 'active'
                          AND expires_at <= $4
                        """,
                        hold.restaurant_id,
                        hold.table_id,
                        hold.booking_date,
                        hold.held_at,
                    )
                    row = await conn.fetchrow(
                        f"""
                        INSERT INTO table_hold (
                            id, restaurant_id, customer_id, table_id, booking_date,
                            start_time, end_time, start_minute, end_minute, guest_count,
                            status, special_requests, customer_name, customer_phone,
                            held_at, expires_at
                        )
                        VALUES (
                            $1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14,
                            $15, $16
                        )
                        RETURNING {HOLD_COLUMNS}
                        """,
                        hold.id,
                        hold.restaurant_id,
                        hold.customer_id,
                        hold.table_id,
                        hold.booking_date,
                        hold.start_time,
                        hold.end_time,
                        time_range.start_minute,
                        time_range.end_minute,
                        hold.guest_count,
                        hold.status.value,
                        hold.special_requests,
                        hold.customer_name,
                        hold.customer_phone,
                        hold.held_at,
                        hold.expires_at,
                    )
            except asyncpg.ExclusionViolationError as e:
                raise _slot_held(hold) from e
            except asyncpg.UniqueViolationError as e:
                if e.constraint_name in ACTIVE_HOLD_CONSTRAINTS:
                    raise _slot_held(hold) from e
                raise

        assert row is not None
        return row_to_hold(row)

    @Logger.io
    async def get_by_id(self, *, hold_id: UUID) -> Optional[TableHold]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f'SELECT {HOLD_COLUMNS} FROM table_hold WHERE id = $1', hold_id
            )
        return row_to_hold(row) if row else None

    @Logger.io
    async def list_holding(
        self,
        *,
        restaurant_id: str,
        booking_date: date,
        now: datetime,
        table_id: Optional[str] = None,
    ) -> List[TableHold]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {HOLD_COLUMNS}
                FROM table_hold
                WHERE restaurant_id = $1
                  AND booking_date = $2
                  AND status = 'active'
                  AND expires_at > $3
                  AND ($4::text IS NULL OR table_id = $4)
                ORDER BY start_minute, table_id
                """,
                restaurant_id,
                booking_date,
                now,
                table_id,
            )
        return [row_to_hold(row) for row in rows]

    @Logger.io
    async def update(self, *, hold: TableHold, expected_status: HoldStatus) -> TableHold:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE table_hold
                SET status = $3,
                    expires_at = $4
                WHERE id = $1 AND status = $2
                RETURNING {HOLD_COLUMNS}
                """,
                hold.id,
                expected_status.value,
                hold.status.value,
                hold.expires_at,
            )
            if row:
                return row_to_hold(row)

            current_status = await conn.fetchval(
                'SELECT status FROM table_hold WHERE id = $1', hold.id
            )

        if current_status is None:
            raise NotFoundError('Hold not found')
        Logger.base.warning(
            f'⚔️ [TABLE-HOLD] {hold.id} expected {expected_status.value}, found {current_status}'
        )
        raise ConflictError(f'Hold is already {current_status}')

    @Logger.io
    async def expire_lapsed(self, *, now: datetime) -> int:
        async with (await get_asyncpg_pool()).acquire() as conn:
            result = await conn.execute(
                """
                UPDATE table_hold
                SET status = 'expired'
                WHERE status = 'active' AND expires_at <= $1
                """,
                now,
            )
        # asyncpg returns the command tag, e.g. 'UPDATE 3'
        return int(result.split()[-1])
