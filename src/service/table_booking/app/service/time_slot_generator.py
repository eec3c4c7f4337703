"""
Chat time-slot generation.

Slots step by a fixed interval from opening time; the last hour before closing
is not offered unless the venue runs 24 hours. For today, slots closer than the
minimum lead time are dropped. An empty result falls back to a 24-hour grid
(the today rule still applies) before the caller reports no availability.
"""

from datetime import date, datetime, timedelta
from typing import List, Optional

from src.service.table_booking.domain.entity.restaurant_entity import OpeningHours, Restaurant
from src.service.table_booking.domain.value_object.time_range import (
    MINUTES_PER_DAY,
    format_minutes,
    parse_time_to_minutes,
)


def _grid(*, open_minute: int, close_minute: int, interval: int, closing_buffer: int) -> List[int]:
    if close_minute <= open_minute:
        # Closes after midnight; only the part on this calendar day is offered
        close_minute += MINUTES_PER_DAY
    last_start = min(close_minute - closing_buffer, MINUTES_PER_DAY - 1)
    return list(range(open_minute, last_start + 1, interval))


def _full_day(interval: int) -> List[int]:
    return list(range(0, MINUTES_PER_DAY, interval))


def generate_time_slots(
    *,
    hours: Optional[OpeningHours],
    day: date,
    now: datetime,
    interval_minutes: int = 30,
    closing_buffer_minutes: int = 60,
    min_lead_minutes: int = 60,
    default_hours: Optional[OpeningHours] = None,
) -> List[str]:
    """
    Return `HH:MM` start times bookable on `day`.

    `now` must already be in the restaurant's timezone.
    """
    hours = hours or default_hours or OpeningHours(open='10:00', close='22:00')
    if hours.is_closed or day < now.date():
        return []

    if hours.is_24_hours:
        minutes = _full_day(interval_minutes)
    else:
        minutes = _grid(
            open_minute=parse_time_to_minutes(hours.open),
            close_minute=parse_time_to_minutes(hours.close),
            interval=interval_minutes,
            closing_buffer=closing_buffer_minutes,
        )

    def _bookable(candidates: List[int]) -> List[int]:
        if day != now.date():
            return candidates
        earliest = now.hour * 60 + now.minute + min_lead_minutes
        return [m for m in candidates if m >= earliest]

    slots = _bookable(minutes)
    if not slots:
        slots = _bookable(_full_day(interval_minutes))
    return [format_minutes(m) for m in slots]


def upcoming_dates(*, restaurant: Optional[Restaurant], today: date, count: int = 7) -> List[date]:
    """The next `count` calendar days from today, minus days the restaurant is closed."""
    days = [today + timedelta(days=offset) for offset in range(count)]
    if restaurant is None:
        return days
    return [d for d in days if not ((hours := restaurant.hours_for(d)) and hours.is_closed)]
