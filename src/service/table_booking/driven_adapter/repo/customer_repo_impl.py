from typing import Optional

import asyncpg
import uuid_utils

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.interface.i_customer_repo import ICustomerRepo
from src.service.table_booking.domain.entity.customer_entity import Customer


CUSTOMER_COLUMNS = 'id, line_user_id, display_name, phone, created_at'


class CustomerRepoImpl(ICustomerRepo):
    @staticmethod
    def _row_to_entity(row: asyncpg.Record) -> Customer:
        return Customer(
            id=row['id'],
            line_user_id=row['line_user_id'],
            display_name=row['display_name'],
            phone=row['phone'],
            created_at=row['created_at'],
        )

    @Logger.io
    async def get_by_id(self, *, customer_id: str) -> Optional[Customer]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f'SELECT {CUSTOMER_COLUMNS} FROM customer WHERE id = $1', customer_id
            )
        return self._row_to_entity(row) if row else None

    @Logger.io
    async def get_or_create_by_line_user_id(
        self, *, line_user_id: str, display_name: Optional[str] = None
    ) -> Customer:
        # Upsert keeps one customer per LINE user even when two first turns race
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO customer (id, line_user_id, display_name)
                VALUES ($1, $2, $3)
                ON CONFLICT (line_user_id) DO UPDATE
                SET display_name = COALESCE(EXCLUDED.display_name, customer.display_name)
                RETURNING {CUSTOMER_COLUMNS}
                """,
                str(uuid_utils.uuid7()),
                line_user_id,
                display_name,
            )
        assert row is not None
        return self._row_to_entity(row)
