from enum import StrEnum
from typing import Optional, Tuple

import attrs


class Popularity(StrEnum):
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'


class Trend(StrEnum):
    INCREASING = 'increasing'
    DECREASING = 'decreasing'
    STABLE = 'stable'


@attrs.frozen
class HistoricalInsight:
    """Aggregated booking history for one restaurant around a target date/time."""

    total_bookings: int = 0
    same_time_bookings: int = 0
    same_day_bookings: int = 0
    avg_occupancy_rate: float = 0.5
    time_slot_popularity: Popularity = Popularity.MEDIUM
    day_of_week_popularity: Popularity = Popularity.MEDIUM
    recent_trend: Trend = Trend.STABLE
    peak_hours: Tuple[int, ...] = ()
    peak_month: Optional[int] = None
    peak_month_bookings: int = 0

    @classmethod
    def neutral(cls) -> 'HistoricalInsight':
        return cls()

    @property
    def has_history(self) -> bool:
        return self.total_bookings >= 1
