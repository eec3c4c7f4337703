"""
Booking reference: `BK` + creation day `YYMMDD` + 3-digit daily sequence.

    BK250115001, BK250115002, ... BK250116001
"""

from datetime import date
import re

from src.platform.exception.exceptions import DomainError


BOOKING_REF_PREFIX = 'BK'
SEQUENCE_WIDTH = 3
MAX_SEQUENCE = 10**SEQUENCE_WIDTH - 1

_REF_PATTERN = re.compile(r'^BK(\d{6})(\d{3})$')


def booking_ref_day_prefix(day: date) -> str:
    return f'{BOOKING_REF_PREFIX}{day.strftime("%y%m%d")}'


def build_booking_ref(*, day: date, sequence: int) -> str:
    if not 1 <= sequence <= MAX_SEQUENCE:
        raise DomainError(f'Daily booking sequence exhausted ({sequence})', 500)
    return f'{booking_ref_day_prefix(day)}{sequence:0{SEQUENCE_WIDTH}d}'


def next_booking_ref(*, day: date, latest_ref: str | None) -> str:
    """Next reference after the highest one already issued for `day` (001 when none)."""
    if latest_ref is None:
        return build_booking_ref(day=day, sequence=1)
    return build_booking_ref(day=day, sequence=parse_sequence(latest_ref) + 1)


def parse_sequence(booking_ref: str) -> int:
    match = _REF_PATTERN.match(booking_ref)
    if not match:
        raise DomainError(f'Invalid booking reference: {booking_ref!r}')
    return int(match.group(2))


def is_booking_ref(value: str) -> bool:
    return bool(_REF_PATTERN.match(value))
