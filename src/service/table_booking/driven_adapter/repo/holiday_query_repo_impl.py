from datetime import date
from typing import List, Optional

import asyncpg

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.interface.i_holiday_query_repo import IHolidayQueryRepo
from src.service.table_booking.domain.entity.holiday_entity import Holiday, HolidayPricingStrategy
from src.service.table_booking.domain.enum.holiday_type import BusinessImpact, HolidayType
from src.service.table_booking.driven_adapter.repo.booking_row_mapper import load_json


HOLIDAY_COLUMNS = """
    id, holiday_date, name, name_en, name_th, type, impact, business_impact,
    recommended_actions, pricing_strategy
"""


class HolidayQueryRepoImpl(IHolidayQueryRepo):
    @staticmethod
    def _row_to_entity(row: asyncpg.Record) -> Holiday:
        strategy = load_json(row['pricing_strategy']) or {}
        return Holiday(
            id=row['id'],
            holiday_date=row['holiday_date'],
            name=row['name'],
            name_en=row['name_en'],
            name_th=row['name_th'],
            type=HolidayType(row['type']),
            impact=float(row['impact']),
            business_impact=BusinessImpact(row['business_impact']),
            recommended_actions=list(load_json(row['recommended_actions']) or []),
            pricing_strategy=HolidayPricingStrategy(
                couple_table_multiplier=strategy.get('couple_table_multiplier'),
                family_table_multiplier=strategy.get('family_table_multiplier'),
                group_table_multiplier=strategy.get('group_table_multiplier'),
                peak_hours_extension=bool(strategy.get('peak_hours_extension', False)),
                early_booking_recommended=bool(strategy.get('early_booking_recommended', False)),
            ),
        )

    @Logger.io
    async def get_by_date(self, *, holiday_date: date) -> Optional[Holiday]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f'SELECT {HOLIDAY_COLUMNS} FROM holiday WHERE holiday_date = $1', holiday_date
            )
        return self._row_to_entity(row) if row else None

    @Logger.io
    async def list_between(self, *, start: date, end: date) -> List[Holiday]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {HOLIDAY_COLUMNS}
                FROM holiday
                WHERE holiday_date BETWEEN $1 AND $2
                ORDER BY holiday_date
                """,
                start,
                end,
            )
        return [self._row_to_entity(row) for row in rows]
