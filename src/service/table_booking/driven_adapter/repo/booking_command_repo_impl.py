"""
Booking Command Repository Implementation

Raw asyncpg writes. Double booking is settled by the database:
- `ex_booking_active_overlap` rejects any overlapping active booking of the table
- `uq_booking_active_slot` rejects the exact same active slot
Both surface as TableNoLongerAvailableError. A `uq_booking_ref` collision only
means another insert took the same daily sequence; it is retried.

A booking made from a hold flips the hold to `confirmed` in the same
transaction, so a lost insert leaves the hold active.
"""

from datetime import datetime, tzinfo
from typing import Optional

import asyncpg
from uuid_utils import UUID

from src.platform.database.asyncpg_setting import get_asyncpg_pool
from src.platform.exception.exceptions import (
    ConflictError,
    HoldExpiredError,
    NotFoundError,
    TableNoLongerAvailableError,
    VersionConflictError,
)
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.dto.booking_patch import BookingPatch
from src.service.table_booking.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.table_booking.domain.entity.booking_entity import Booking
from src.service.table_booking.domain.value_object.booking_ref import (
    booking_ref_day_prefix,
    next_booking_ref,
)
from src.service.table_booking.driven_adapter.repo.booking_row_mapper import (
    BOOKING_COLUMNS,
    dump_history,
    dump_json,
    row_to_booking,
)


ACTIVE_SLOT_CONSTRAINTS = ('uq_booking_active_slot', 'ex_booking_active_overlap')
BOOKING_REF_CONSTRAINT = 'uq_booking_ref'


def _slot_taken(booking: Booking) -> TableNoLongerAvailableError:
    return TableNoLongerAvailableError(
        table_id=booking.table_id,
        booking_date=booking.booking_date.isoformat(),
        time=booking.start_time,
    )


class BookingCommandRepoImpl(IBookingCommandRepo):
    def __init__(self, *, tz: tzinfo, max_ref_attempts: int = 5) -> None:
        self.tz = tz
        self.max_ref_attempts = max_ref_attempts

    @Logger.io
    async def create(self, *, booking: Booking, hold_id: Optional[UUID] = None) -> Booking:
        assert booking.created_at is not None, 'new booking must carry created_at'
        day = booking.created_at.astimezone(self.tz).date()
        time_range = booking.time_range

        async with (await get_asyncpg_pool()).acquire() as conn:
            for attempt in range(1, self.max_ref_attempts + 1):
                try:
                    async with conn.transaction():
                        latest_ref = await conn.fetchval(
                            """
                            SELECT booking_ref
                            FROM booking
                            WHERE booking_ref LIKE $1
                            ORDER BY booking_ref DESC
                            LIMIT 1
                            """,
                            f'{booking_ref_day_prefix(day)}%',
                        )
                        booking_ref = next_booking_ref(day=day, latest_ref=latest_ref)

                        if hold_id is not None:
                            await self._consume_hold(
                                conn, hold_id=hold_id, booking=booking, now=booking.created_at
                            )

                        row = await conn.fetchrow(
                            f"""
                            INSERT INTO booking (
                                id, booking_ref, restaurant_id, floorplan_id, customer_id,
                                table_id, booking_date, start_time, end_time, start_minute,
                                end_minute, guest_count, status, special_requests,
                                customer_name, customer_phone, pricing, history, version,
                                created_at, updated_at
                            )
                            VALUES (
                                $1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12, $13, $14,
                                $15, $16, $17::jsonb, $18::jsonb, 0, $19, $20
                            )
                            RETURNING {BOOKING_COLUMNS}
                            """,
                            booking.id,
                            booking_ref,
                            booking.restaurant_id,
                            booking.floorplan_id,
                            booking.customer_id,
                            booking.table_id,
                            booking.booking_date,
                            booking.start_time,
                            booking.end_time,
                            time_range.start_minute,
                            time_range.end_minute,
                            booking.guest_count,
                            booking.status.value,
                            booking.special_requests,
                            booking.customer_name,
                            booking.customer_phone,
                            dump_json(booking.pricing),
                            dump_history(booking.history),
                            booking.created_at,
                            booking.updated_at or booking.created_at,
                        )
                except asyncpg.ExclusionViolationError as e:
                    raise _slot_taken(booking) from e
                except asyncpg.UniqueViolationError as e:
                    if e.constraint_name in ACTIVE_SLOT_CONSTRAINTS:
                        raise _slot_taken(booking) from e
                    if e.constraint_name == BOOKING_REF_CONSTRAINT:
                        Logger.base.warning(
                            f'🔁 [BOOKING-REF] {booking_ref} taken concurrently '
                            f'(attempt {attempt}/{self.max_ref_attempts})'
                        )
                        continue
                    raise

                assert row is not None
                return row_to_booking(row)

        raise ConflictError('Could not allocate a booking reference, please retry')

    @staticmethod
    async def _consume_hold(
        conn: asyncpg.Connection, *, hold_id: UUID, booking: Booking, now: datetime
    ) -> None:
        # Rolled back together with the insert when the booking loses
        consumed = await conn.fetchval(
            """
            UPDATE table_hold
            SET status = 'confirmed', booking_id = $2, confirmed_at = $3
            WHERE id = $1 AND status = 'active' AND expires_at > $3
            RETURNING id
            """,
            hold_id,
            booking.id,
            now,
        )
        if consumed is None:
            Logger.base.warning(f'⌛ [TABLE-HOLD] {hold_id} lapsed before {booking.id} was stored')
            raise HoldExpiredError()

    @Logger.io
    async def update_with_expected_version(
        self, *, booking_id: UUID, patch: BookingPatch, expected_version: int
    ) -> Booking:
        async with (await get_asyncpg_pool()).acquire() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE booking
                SET status = COALESCE($3, status),
                    history = COALESCE($4::jsonb, history),
                    pricing = COALESCE($5::jsonb, pricing),
                    special_requests = COALESCE($6, special_requests),
                    updated_at = $7,
                    version = version + 1
                WHERE id = $1 AND version = $2
                RETURNING {BOOKING_COLUMNS}
                """,
                booking_id,
                expected_version,
                patch.status.value if patch.status else None,
                dump_history(patch.history) if patch.history is not None else None,
                dump_json(patch.pricing),
                patch.special_requests,
                patch.updated_at,
            )
            if row:
                return row_to_booking(row)

            current_version = await conn.fetchval(
                'SELECT version FROM booking WHERE id = $1', booking_id
            )

        if current_version is None:
            raise NotFoundError('Booking not found')
        Logger.base.warning(
            f'⚔️ [BOOKING-OCC] {booking_id} expected v{expected_version}, found v{current_version}'
        )
        raise VersionConflictError()
