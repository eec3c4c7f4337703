from datetime import date, timedelta
from typing import List
from unittest.mock import AsyncMock

import pytest
from uuid_utils import uuid7

from src.service.table_booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.table_booking.app.service.historical_data_analyzer import HistoricalDataAnalyzer
from src.service.table_booking.domain.entity.booking_entity import Booking
from src.service.table_booking.domain.enum.booking_status import BookingStatus
from src.service.table_booking.domain.value_object.historical_insight import (
    HistoricalInsight,
    Popularity,
    Trend,
)
from test.service.table_booking.unit.in_memory_repos import InMemoryBookingStore


TODAY = date(2025, 1, 15)  # Wednesday


def _booking(
    day: date,
    *,
    start: str = '19:00',
    guests: int = 2,
    status: BookingStatus = BookingStatus.COMPLETED,
) -> Booking:
    hour = int(start[:2])
    return Booking(
        id=uuid7(),
        restaurant_id='rest-1',
        customer_id='cust-1',
        table_id='t1',
        booking_date=day,
        start_time=start,
        end_time=f'{min(hour + 1, 23):02d}:{start[3:]}',
        guest_count=guests,
        status=status,
    )


@pytest.mark.unit
class TestCapacityEstimate:
    @pytest.mark.asyncio
    async def test_no_history_uses_default(self) -> None:
        analyzer = HistoricalDataAnalyzer(booking_query_repo=InMemoryBookingStore())

        assert await analyzer.estimate_restaurant_capacity(restaurant_id='rest-1', today=TODAY) == 60

    @pytest.mark.asyncio
    async def test_busiest_day_over_peak_utilization(self) -> None:
        """
        Given: Busiest day in the last 30 days seated 48 guests
        When: Capacity is estimated
        Then: 48 / 0.8 = 60
        """
        busiest = TODAY - timedelta(days=3)
        bookings = [_booking(busiest, guests=8) for _ in range(6)] + [
            _booking(TODAY - timedelta(days=4), guests=20),
            # outside the window
            _booking(TODAY - timedelta(days=45), guests=90),
            # not counted: still pending
            _booking(busiest, guests=30, status=BookingStatus.PENDING),
        ]
        analyzer = HistoricalDataAnalyzer(booking_query_repo=InMemoryBookingStore(bookings))

        assert await analyzer.estimate_restaurant_capacity(restaurant_id='rest-1', today=TODAY) == 60

    @pytest.mark.asyncio
    async def test_small_history_is_floored(self) -> None:
        analyzer = HistoricalDataAnalyzer(
            booking_query_repo=InMemoryBookingStore([_booking(TODAY - timedelta(days=1), guests=4)])
        )

        assert await analyzer.estimate_restaurant_capacity(restaurant_id='rest-1', today=TODAY) == 40

    @pytest.mark.asyncio
    async def test_store_failure_uses_default(self) -> None:
        repo = AsyncMock(spec=IBookingQueryRepo)
        repo.list_for_restaurant.side_effect = ConnectionError('down')

        analyzer = HistoricalDataAnalyzer(booking_query_repo=repo)

        assert await analyzer.estimate_restaurant_capacity(restaurant_id='rest-1', today=TODAY) == 60
        assert (
            await analyzer.get_historical_insight(
                restaurant_id='rest-1', target_date=TODAY, time='19:00'
            )
            == HistoricalInsight.neutral()
        )


@pytest.mark.unit
class TestHistoricalInsight:
    def test_zero_history_is_neutral(self) -> None:
        insight = HistoricalDataAnalyzer(booking_query_repo=InMemoryBookingStore()).analyze(
            [], target_date=TODAY, target_hour=19
        )

        assert insight == HistoricalInsight.neutral()
        assert insight.time_slot_popularity == Popularity.MEDIUM
        assert insight.recent_trend == Trend.STABLE
        assert insight.avg_occupancy_rate == 0.5
        assert not insight.has_history

    def test_popular_dinner_on_wednesdays(self) -> None:
        """
        Given: Ten Wednesday dinners at 19:00-20:00 and two Monday lunches
        When: Analyzing for Wednesday 19:00
        Then: Time slot and weekday both high, peak hour 19
        """
        wednesdays = [TODAY - timedelta(weeks=w) for w in range(1, 11)]
        bookings: List[Booking] = [_booking(d, start='19:00') for d in wednesdays]
        bookings += [
            _booking(TODAY - timedelta(days=2), start='12:00'),
            _booking(TODAY - timedelta(days=9), start='12:00'),
        ]

        insight = HistoricalDataAnalyzer(booking_query_repo=InMemoryBookingStore()).analyze(
            bookings, target_date=TODAY, target_hour=19
        )

        assert insight.total_bookings == 12
        assert insight.same_time_bookings == 10
        assert insight.same_day_bookings == 10
        assert insight.time_slot_popularity == Popularity.HIGH
        assert insight.day_of_week_popularity == Popularity.HIGH
        assert insight.peak_hours[0] == 19

    def test_trend_compares_halves_of_the_date_span(self) -> None:
        start = TODAY - timedelta(days=20)
        early = [_booking(start)]
        late = [_booking(TODAY - timedelta(days=d)) for d in (1, 2, 3, 4)]

        analyzer = HistoricalDataAnalyzer(booking_query_repo=InMemoryBookingStore())

        assert analyzer.analyze(early + late, target_date=TODAY, target_hour=19).recent_trend == (
            Trend.INCREASING
        )
        reversed_history = [_booking(start + timedelta(days=d)) for d in (0, 1, 2, 3)] + [
            _booking(TODAY)
        ]
        assert analyzer.analyze(
            reversed_history, target_date=TODAY, target_hour=19
        ).recent_trend == Trend.DECREASING

    def test_few_bookings_are_stable(self) -> None:
        bookings = [_booking(TODAY - timedelta(days=d)) for d in (1, 10, 20)]

        insight = HistoricalDataAnalyzer(booking_query_repo=InMemoryBookingStore()).analyze(
            bookings, target_date=TODAY, target_hour=19
        )

        assert insight.recent_trend == Trend.STABLE
