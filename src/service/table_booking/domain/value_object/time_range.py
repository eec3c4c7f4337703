import re

import attrs

from src.platform.exception.exceptions import DomainError


MINUTES_PER_DAY = 24 * 60

# 'HH:MM', 'H:MM', optionally followed by AM/PM ('7:30 PM', '07:30pm')
_TIME_PATTERN = re.compile(r'^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])?\s*$')


def parse_time_to_minutes(value: str) -> int:
    """
    Convert a clock string to minutes since midnight.

    >>> parse_time_to_minutes('18:30')
    1110
    >>> parse_time_to_minutes('6:30 PM')
    1110
    >>> parse_time_to_minutes('12:15 AM')
    15
    """
    match = _TIME_PATTERN.match(value or '')
    if not match:
        raise DomainError(f'Invalid time format: {value!r}')

    hour, minute, meridiem = int(match.group(1)), int(match.group(2)), match.group(3)
    if minute > 59:
        raise DomainError(f'Invalid time format: {value!r}')

    if meridiem:
        if not 1 <= hour <= 12:
            raise DomainError(f'Invalid time format: {value!r}')
        hour = hour % 12
        if meridiem.lower() == 'pm':
            hour += 12
    elif hour > 23:
        raise DomainError(f'Invalid time format: {value!r}')

    return hour * 60 + minute


def format_minutes(minutes: int) -> str:
    """Inverse of parse_time_to_minutes, always 24-hour 'HH:MM'."""
    minutes = max(0, min(minutes, MINUTES_PER_DAY - 1))
    return f'{minutes // 60:02d}:{minutes % 60:02d}'


def hour_of(value: str) -> int:
    return parse_time_to_minutes(value) // 60


@attrs.frozen
class TimeRange:
    """Half-open [start, end) interval in minutes since midnight."""

    start_minute: int
    end_minute: int

    def __attrs_post_init__(self) -> None:
        if not 0 <= self.start_minute < self.end_minute <= MINUTES_PER_DAY:
            raise DomainError('End time must be after start time')

    @classmethod
    def parse(cls, start: str, end: str) -> 'TimeRange':
        return cls(start_minute=parse_time_to_minutes(start), end_minute=parse_time_to_minutes(end))

    @classmethod
    def from_start(cls, start: str, *, duration_minutes: int) -> 'TimeRange':
        start_minute = parse_time_to_minutes(start)
        end_minute = min(start_minute + duration_minutes, MINUTES_PER_DAY - 1)
        return cls(start_minute=start_minute, end_minute=end_minute)

    def overlaps(self, other: 'TimeRange') -> bool:
        # Touching boundaries (18:00-20:00 vs 20:00-22:00) do not overlap
        return self.start_minute < other.end_minute and self.end_minute > other.start_minute

    @property
    def start(self) -> str:
        return format_minutes(self.start_minute)

    @property
    def end(self) -> str:
        return format_minutes(self.end_minute)
