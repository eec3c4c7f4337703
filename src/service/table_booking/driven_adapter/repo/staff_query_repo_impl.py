from typing import List, Optional

import asyncpg

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.interface.i_staff_query_repo import IStaffQueryRepo
from src.service.table_booking.domain.entity.staff_entity import Staff, StaffPermissions, StaffRole
from src.service.table_booking.driven_adapter.repo.booking_row_mapper import load_json


STAFF_COLUMNS = 'id, restaurant_id, display_name, role, line_user_id, permissions, is_active'


class StaffQueryRepoImpl(IStaffQueryRepo):
    @staticmethod
    def _row_to_entity(row: asyncpg.Record) -> Staff:
        permissions = load_json(row['permissions']) or {}
        return Staff(
            id=row['id'],
            restaurant_id=row['restaurant_id'],
            display_name=row['display_name'],
            role=StaffRole(row['role']),
            line_user_id=row['line_user_id'],
            permissions=StaffPermissions(
                can_view_bookings=bool(permissions.get('can_view_bookings', True)),
                can_update_bookings=bool(permissions.get('can_update_bookings', False)),
                can_cancel_bookings=bool(permissions.get('can_cancel_bookings', False)),
            ),
            is_active=row['is_active'],
        )

    @Logger.io
    async def get_by_id(self, *, staff_id: str) -> Optional[Staff]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(f'SELECT {STAFF_COLUMNS} FROM staff WHERE id = $1', staff_id)
        return self._row_to_entity(row) if row else None

    @Logger.io
    async def get_by_line_user_id(self, *, line_user_id: str) -> Optional[Staff]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f'SELECT {STAFF_COLUMNS} FROM staff WHERE line_user_id = $1', line_user_id
            )
        return self._row_to_entity(row) if row else None

    @Logger.io
    async def list_active_for_restaurant(self, *, restaurant_id: str) -> List[Staff]:
        async with (await get_asyncpg_pool()).acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT {STAFF_COLUMNS}
                FROM staff
                WHERE restaurant_id = $1 AND is_active
                ORDER BY display_name
                """,
                restaurant_id,
            )
        return [self._row_to_entity(row) for row in rows]
