from typing import List, Optional

import asyncpg

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.interface.i_dining_table_repo import IDiningTableRepo
from src.service.table_booking.domain.entity.dining_table_entity import DiningTable, TableStatus


class DiningTableRepoImpl(IDiningTableRepo):
    @staticmethod
    def _row_to_entity(row: asyncpg.Record) -> DiningTable:
        return DiningTable(
            restaurant_id=row['restaurant_id'],
            table_code=row['table_code'],
            capacity=row['capacity'],
            floorplan_id=row['floorplan_id'],
            status=TableStatus(row['status']),
            location=row['location'],
        )

    @Logger.io
    async def list_for_restaurant(self, *, restaurant_id: str) -> List[DiningTable]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT restaurant_id, table_code, floorplan_id, capacity, status, location
                FROM dining_table
                WHERE restaurant_id = $1
                ORDER BY capacity, table_code
                """,
                restaurant_id,
            )
        return [self._row_to_entity(row) for row in rows]

    @Logger.io
    async def get(self, *, restaurant_id: str, table_code: str) -> Optional[DiningTable]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                """
                SELECT restaurant_id, table_code, floorplan_id, capacity, status, location
                FROM dining_table
                WHERE restaurant_id = $1 AND table_code = $2
                """,
                restaurant_id,
                table_code,
            )
        return self._row_to_entity(row) if row else None

    @Logger.io
    async def set_status(self, *, restaurant_id: str, table_code: str, status: TableStatus) -> None:
        async with (await get_asyncpg_pool()).acquire() as conn:
            await conn.execute(
                """
                UPDATE dining_table
                SET status = $3
                WHERE restaurant_id = $1 AND table_code = $2
                """,
                restaurant_id,
                table_code,
                status.value,
            )
