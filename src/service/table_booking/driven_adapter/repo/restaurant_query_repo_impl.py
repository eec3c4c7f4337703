from typing import List, Optional

import asyncpg

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.interface.i_restaurant_query_repo import IRestaurantQueryRepo
from src.service.table_booking.domain.entity.restaurant_entity import OpeningHours, Restaurant
from src.service.table_booking.driven_adapter.repo.booking_row_mapper import load_json


class RestaurantQueryRepoImpl(IRestaurantQueryRepo):
    @staticmethod
    def _row_to_entity(row: asyncpg.Record) -> Restaurant:
        hours = load_json(row['opening_hours']) or {}
        return Restaurant(
            id=row['id'],
            name=row['name'],
            opening_hours={
                day.lower(): OpeningHours(
                    open=value.get('open', '00:00'),
                    close=value.get('close', '00:00'),
                    is_closed=bool(value.get('is_closed', False)),
                )
                for day, value in hours.items()
            },
            line_channel_id=row['line_channel_id'],
        )

    @Logger.io
    async def get_by_id(self, *, restaurant_id: str) -> Optional[Restaurant]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                'SELECT id, name, opening_hours, line_channel_id FROM restaurant WHERE id = $1',
                restaurant_id,
            )
        return self._row_to_entity(row) if row else None

    @Logger.io
    async def list_all(self, *, limit: int) -> List[Restaurant]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                'SELECT id, name, opening_hours, line_channel_id FROM restaurant ORDER BY name LIMIT $1',
                limit,
            )
        return [self._row_to_entity(row) for row in rows]
