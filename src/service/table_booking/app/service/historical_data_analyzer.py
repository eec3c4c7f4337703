"""
Historical booking analysis feeding the pricing engine.

Never raises: zero history or a failing store yields neutral defaults
(medium popularity, stable trend, 0.5 occupancy) and the default capacity.
"""

from collections import Counter
from datetime import date, timedelta
from typing import Dict, Iterable, List

from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.table_booking.domain.entity.booking_entity import Booking
from src.service.table_booking.domain.enum.booking_status import BookingStatus
from src.service.table_booking.domain.value_object.historical_insight import (
    HistoricalInsight,
    Popularity,
    Trend,
)
from src.service.table_booking.domain.value_object.time_range import hour_of


HISTORY_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.COMPLETED, BookingStatus.PENDING)
CAPACITY_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.COMPLETED)

MIN_BOOKINGS_FOR_TREND = 4
TREND_UP_RATIO = 1.2
TREND_DOWN_RATIO = 0.8


class HistoricalDataAnalyzer:
    def __init__(
        self,
        *,
        booking_query_repo: IBookingQueryRepo,
        time_slot_high_threshold: int = 5,
        time_slot_medium_threshold: int = 2,
        day_high_threshold: int = 10,
        day_medium_threshold: int = 4,
        capacity_window_days: int = 30,
        capacity_peak_utilization: float = 0.8,
        capacity_floor: int = 40,
        capacity_default: int = 60,
    ) -> None:
        self.booking_query_repo = booking_query_repo
        self.time_slot_high_threshold = time_slot_high_threshold
        self.time_slot_medium_threshold = time_slot_medium_threshold
        self.day_high_threshold = day_high_threshold
        self.day_medium_threshold = day_medium_threshold
        self.capacity_window_days = capacity_window_days
        self.capacity_peak_utilization = capacity_peak_utilization
        self.capacity_floor = capacity_floor
        self.capacity_default = capacity_default
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def get_historical_insight(
        self, *, restaurant_id: str, target_date: date, time: str
    ) -> HistoricalInsight:
        with self.tracer.start_as_current_span(
            'analyzer.historical_insight', attributes={'restaurant.id': restaurant_id}
        ):
            try:
                bookings = await self.booking_query_repo.list_for_restaurant(
                    restaurant_id=restaurant_id, statuses=HISTORY_STATUSES
                )
                return self.analyze(bookings, target_date=target_date, target_hour=hour_of(time))
            except Exception as e:
                Logger.base.error(f'❌ [Analyzer] history unavailable for {restaurant_id}: {e}')
                return HistoricalInsight.neutral()

    def analyze(
        self, bookings: List[Booking], *, target_date: date, target_hour: int
    ) -> HistoricalInsight:
        if not bookings:
            return HistoricalInsight.neutral()

        same_time = [b for b in bookings if abs(hour_of(b.start_time) - target_hour) <= 1]
        same_day = [b for b in bookings if b.booking_date.weekday() == target_date.weekday()]
        peak_month, peak_month_bookings = self._peak_month(bookings)

        return HistoricalInsight(
            total_bookings=len(bookings),
            same_time_bookings=len(same_time),
            same_day_bookings=len(same_day),
            avg_occupancy_rate=self._average_occupancy(bookings),
            time_slot_popularity=self._tier(
                len(same_time), self.time_slot_high_threshold, self.time_slot_medium_threshold
            ),
            day_of_week_popularity=self._tier(
                len(same_day), self.day_high_threshold, self.day_medium_threshold
            ),
            recent_trend=self._trend(bookings),
            peak_hours=self._peak_hours(bookings),
            peak_month=peak_month,
            peak_month_bookings=peak_month_bookings,
        )

    @Logger.io
    async def estimate_restaurant_capacity(self, *, restaurant_id: str, today: date) -> int:
        """Max single-day guest total in the window / peak utilization, floored."""
        try:
            bookings = await self.booking_query_repo.list_for_restaurant(
                restaurant_id=restaurant_id,
                statuses=CAPACITY_STATUSES,
                since=today - timedelta(days=self.capacity_window_days),
            )
        except Exception as e:
            Logger.base.error(f'❌ [Analyzer] capacity estimate failed for {restaurant_id}: {e}')
            return self.capacity_default

        if not bookings:
            return self.capacity_default

        daily_guests: Dict[date, int] = {}
        for booking in bookings:
            daily_guests[booking.booking_date] = (
                daily_guests.get(booking.booking_date, 0) + booking.guest_count
            )

        estimated = int(max(daily_guests.values()) / self.capacity_peak_utilization + 0.5)
        return max(estimated, self.capacity_floor)

    @staticmethod
    def _tier(count: int, high: int, medium: int) -> Popularity:
        if count >= high:
            return Popularity.HIGH
        if count >= medium:
            return Popularity.MEDIUM
        return Popularity.LOW

    @staticmethod
    def _span_days(dates: Iterable[date]) -> int:
        ordered = sorted(dates)
        return (ordered[-1] - ordered[0]).days

    def _average_occupancy(self, bookings: List[Booking]) -> float:
        span = max(1, self._span_days(b.booking_date for b in bookings))
        per_day = len(bookings) / span
        return min(0.9, max(0.1, per_day / 10))

    def _trend(self, bookings: List[Booking]) -> Trend:
        """Compare the later half of the history's date span to the earlier half."""
        if len(bookings) < MIN_BOOKINGS_FOR_TREND:
            return Trend.STABLE

        dates = sorted(b.booking_date for b in bookings)
        span = (dates[-1] - dates[0]).days
        if span == 0:
            return Trend.STABLE

        # Bookings exactly on the midpoint day belong to neither half
        offsets = [(d - dates[0]).days * 2 for d in dates]
        earlier = sum(1 for offset in offsets if offset < span)
        later = sum(1 for offset in offsets if offset > span)

        if later > earlier * TREND_UP_RATIO:
            return Trend.INCREASING
        if later < earlier * TREND_DOWN_RATIO:
            return Trend.DECREASING
        return Trend.STABLE

    @staticmethod
    def _peak_hours(bookings: List[Booking], top: int = 3) -> tuple[int, ...]:
        counts = Counter(hour_of(b.start_time) for b in bookings)
        ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
        return tuple(hour for hour, _ in ranked[:top])

    @staticmethod
    def _peak_month(bookings: List[Booking]) -> tuple[int | None, int]:
        counts = Counter(b.booking_date.month for b in bookings)
        if not counts:
            return None, 0
        month, count = sorted(counts.items(), key=lambda item: (-item[1], item[0]))[0]
        return month, count
