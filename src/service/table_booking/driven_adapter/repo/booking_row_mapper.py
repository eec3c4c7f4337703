"""Shared asyncpg row <-> Booking conversion for the booking repositories."""

from typing import Any, Dict, List, Optional

import asyncpg
import orjson
from uuid_utils import UUID

from src.service.table_booking.domain.entity.booking_entity import Booking, BookingHistoryEntry
from src.service.table_booking.domain.enum.booking_status import BookingStatus


BOOKING_COLUMNS = """
    id, booking_ref, restaurant_id, floorplan_id, customer_id, table_id,
    booking_date, start_time, end_time, guest_count, status, special_requests,
    customer_name, customer_phone, pricing, history, version, created_at, updated_at
"""

ACTIVE_STATUS_VALUES = [BookingStatus.PENDING.value, BookingStatus.CONFIRMED.value]


def dump_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    return orjson.dumps(value).decode()


def load_json(value: Any) -> Any:
    # asyncpg hands jsonb back as text unless a codec is registered
    if value is None or not isinstance(value, (str, bytes)):
        return value
    return orjson.loads(value)


def dump_history(history: List[BookingHistoryEntry]) -> str:
    return orjson.dumps([entry.to_dict() for entry in history]).decode()


def row_to_booking(row: asyncpg.Record) -> Booking:
    history: List[Dict[str, Any]] = load_json(row['history']) or []
    return Booking(
        id=UUID(str(row['id'])),
        booking_ref=row['booking_ref'],
        restaurant_id=row['restaurant_id'],
        floorplan_id=row['floorplan_id'],
        customer_id=row['customer_id'],
        table_id=row['table_id'],
        booking_date=row['booking_date'],
        start_time=row['start_time'],
        end_time=row['end_time'],
        guest_count=row['guest_count'],
        status=BookingStatus(row['status']),
        special_requests=row['special_requests'] or '',
        customer_name=row['customer_name'],
        customer_phone=row['customer_phone'],
        pricing=load_json(row['pricing']),
        history=[BookingHistoryEntry.from_dict(entry) for entry in history],
        version=row['version'],
        created_at=row['created_at'],
        updated_at=row['updated_at'],
    )
