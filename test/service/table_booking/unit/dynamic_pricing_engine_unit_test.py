"""
Unit tests for DynamicPricingEngine

Test Focus:
1. End-to-end quote on a Saturday dinner slot
2. Factor rules: demand tiers, temporal peaks and urgency, capacity, history
3. Bounds: final price is an integer within [70, 200]
4. Resilience: any failure yields the fallback quote, holiday trouble is neutral
"""

from datetime import date, datetime
from unittest.mock import AsyncMock
from zoneinfo import ZoneInfo

import pytest
from uuid_utils import uuid7

from src.platform.cache.ttl_cache import TTLCache
from src.service.table_booking.app.service.dynamic_pricing_engine import (
    DynamicPricingEngine,
    PricingContext,
)
from src.service.table_booking.app.service.historical_data_analyzer import HistoricalDataAnalyzer
from src.service.table_booking.app.service.holiday_pricing_service import HolidayPricingService
from src.service.table_booking.domain.entity.booking_entity import Booking
from src.service.table_booking.domain.enum.booking_status import BookingStatus
from src.service.table_booking.domain.value_object.historical_insight import (
    HistoricalInsight,
    Popularity,
    Trend,
)
from test.service.table_booking.unit.in_memory_repos import InMemoryBookingStore, InMemoryHolidayRepo


BANGKOK = ZoneInfo('Asia/Bangkok')
SATURDAY = date(2025, 1, 18)
WEDNESDAY_MORNING = datetime(2025, 1, 15, 10, 0, tzinfo=BANGKOK)


def _active_booking(*, table: str, start: str, end: str, guests: int) -> Booking:
    return Booking(
        id=uuid7(),
        restaurant_id='rest-1',
        customer_id='cust-x',
        table_id=table,
        booking_date=SATURDAY,
        start_time=start,
        end_time=end,
        guest_count=guests,
        status=BookingStatus.PENDING,
    )


def _analyzer(*, capacity: int = 60, insight: HistoricalInsight | None = None) -> AsyncMock:
    analyzer = AsyncMock(spec=HistoricalDataAnalyzer)
    analyzer.estimate_restaurant_capacity.return_value = capacity
    analyzer.get_historical_insight.return_value = insight or HistoricalInsight.neutral()
    return analyzer


def _engine(
    *,
    store: InMemoryBookingStore | None = None,
    analyzer: AsyncMock | None = None,
    holiday_pricing: HolidayPricingService | None = None,
) -> DynamicPricingEngine:
    return DynamicPricingEngine(
        booking_query_repo=store or InMemoryBookingStore(),
        data_analyzer=analyzer or _analyzer(),  # type: ignore[arg-type]
        holiday_pricing=holiday_pricing
        or HolidayPricingService(
            holiday_query_repo=InMemoryHolidayRepo(),
            cache=TTLCache(name='holiday', ttl_seconds=60),
        ),
        cache=TTLCache(name='pricing', ttl_seconds=900),
        tz=BANGKOK,
        clock=lambda: WEDNESDAY_MORNING,
    )


def _context(*, occupancy_rate: float = 0.5, slot_bookings: int = 0) -> PricingContext:
    return PricingContext(
        restaurant_capacity=60,
        time_slot_bookings=[
            _active_booking(table=f't{i}', start='19:00', end='21:00', guests=2)
            for i in range(slot_bookings)
        ],
        current_occupancy=int(occupancy_rate * 60),
        occupancy_rate=occupancy_rate,
        historical=HistoricalInsight.neutral(),
        is_weekend=False,
        time_slot='dinner',
        lead_hours=24,
    )


@pytest.mark.unit
class TestCalculatePrice:
    @pytest.mark.asyncio
    async def test_saturday_dinner_quote(self) -> None:
        """
        Given:
          - Saturday 19:00, 2 guests at a 4-seat table, booked days ahead
          - 18 guests already booked within an hour of 19:00, capacity 60 (occupancy 0.3)
          - No history, no holiday
        When: Price is calculated
        Then: 100 × demand 1.0 × weekend dinner 1.4 × history 1.0 × capacity 1.15 × holiday 1.0 = 161
        """
        store = InMemoryBookingStore(
            [
                _active_booking(table='t1', start='18:00', end='20:00', guests=6),
                _active_booking(table='t2', start='19:00', end='21:00', guests=6),
                _active_booking(table='t3', start='20:00', end='22:00', guests=6),
                _active_booking(table='t4', start='22:00', end='23:30', guests=10),
            ]
        )

        result = await _engine(store=store).calculate_price(
            restaurant_id='rest-1',
            table_id='t5',
            booking_date=SATURDAY,
            time='19:00',
            guest_count=2,
            table_capacity=4,
        )

        assert result.success is True
        assert result.final_price == 161
        assert result.demand.value == 1.0
        assert result.temporal.value == 1.4
        assert result.historical.value == 1.0
        assert result.capacity.value == 1.15
        assert result.holiday.value == 1.0
        assert result.context['occupancy_rate'] == 0.3
        assert result.context['current_bookings'] == 3
        assert result.context['time_slot'] == 'dinner'
        assert result.demand_level == 'low'
        assert result.confidence == 0.9
        assert 'Peak weekend time - extend staff hours' in result.recommendations

    @pytest.mark.asyncio
    async def test_quote_is_cached_per_slot(self) -> None:
        analyzer = _analyzer()
        engine = _engine(analyzer=analyzer)
        kwargs = dict(
            restaurant_id='rest-1',
            table_id='t1',
            booking_date=SATURDAY,
            time='19:00',
            guest_count=2,
            table_capacity=4,
        )

        first = await engine.calculate_price(**kwargs)  # type: ignore[arg-type]
        second = await engine.calculate_price(**kwargs)  # type: ignore[arg-type]

        assert second is first
        assert analyzer.get_historical_insight.await_count == 1

        engine.clear_cache()
        await engine.calculate_price(**kwargs)  # type: ignore[arg-type]
        assert analyzer.get_historical_insight.await_count == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize('guests,capacity', [(1, 2), (2, 4), (8, 8), (1, 10)])
    @pytest.mark.parametrize('time', ['09:00', '12:00', '19:00', '23:00'])
    async def test_final_price_is_integer_within_bounds(
        self, guests: int, capacity: int, time: str
    ) -> None:
        busy = InMemoryBookingStore(
            [_active_booking(table='tx', start='19:00', end='21:00', guests=55)]
        )
        insight = HistoricalInsight(
            total_bookings=50,
            same_time_bookings=20,
            same_day_bookings=20,
            time_slot_popularity=Popularity.HIGH,
            day_of_week_popularity=Popularity.HIGH,
            recent_trend=Trend.INCREASING,
        )

        result = await _engine(store=busy, analyzer=_analyzer(insight=insight)).calculate_price(
            restaurant_id='rest-1',
            table_id='t1',
            booking_date=SATURDAY,
            time=time,
            guest_count=guests,
            table_capacity=capacity,
        )

        assert isinstance(result.final_price, int)
        assert 70 <= result.final_price <= 200

    @pytest.mark.asyncio
    async def test_analyzer_failure_yields_fallback_quote(self) -> None:
        """
        Given: History lookup raises
        When: Price is calculated
        Then: success False, final = base 100, all factors 1.0, confidence <= 0.1
        """
        analyzer = _analyzer()
        analyzer.get_historical_insight.side_effect = RuntimeError('db gone')

        result = await _engine(analyzer=analyzer).calculate_price(
            restaurant_id='rest-1',
            table_id='t1',
            booking_date=SATURDAY,
            time='19:00',
            guest_count=2,
            table_capacity=4,
        )

        assert result.success is False
        assert result.final_price == 100
        assert result.confidence <= 0.1
        assert result.context['error'] is True
        assert all(f.value == 1.0 for f in result.factors.values())

    @pytest.mark.asyncio
    async def test_invalid_time_yields_fallback_quote(self) -> None:
        result = await _engine().calculate_price(
            restaurant_id='rest-1',
            table_id='t1',
            booking_date=SATURDAY,
            time='dinner',
            guest_count=2,
            table_capacity=4,
        )

        assert result.success is False
        assert result.final_price == 100

    @pytest.mark.asyncio
    async def test_holiday_service_failure_is_neutral(self) -> None:
        holiday_pricing = AsyncMock(spec=HolidayPricingService)
        holiday_pricing.calculate_holiday_factor.side_effect = RuntimeError('calendar down')

        result = await _engine(holiday_pricing=holiday_pricing).calculate_price(  # type: ignore[arg-type]
            restaurant_id='rest-1',
            table_id='t1',
            booking_date=SATURDAY,
            time='19:00',
            guest_count=2,
            table_capacity=4,
        )

        assert result.success is True
        assert result.holiday.value == 1.0
        assert result.holiday.details == {'holiday': None}

    @pytest.mark.asyncio
    async def test_quick_price_estimates_table_size(self) -> None:
        result = await _engine().get_quick_price(
            restaurant_id='rest-1', booking_date=SATURDAY, time='19:00', guest_count=3
        )

        assert result.context['table_info'] == {'id': 'estimate', 'capacity': 4, 'efficiency': 75}


@pytest.mark.unit
class TestFactors:
    @pytest.mark.parametrize(
        'occupancy,expected',
        [(0.0, 0.8), (0.19, 0.8), (0.2, 1.0), (0.4, 1.1), (0.6, 1.25), (0.8, 1.5), (1.3, 1.5)],
    )
    def test_demand_tiers(self, occupancy: float, expected: float) -> None:
        assert DynamicPricingEngine.calculate_demand_factor(occupancy_rate=occupancy).value == expected

    def test_demand_is_monotonic_in_occupancy(self) -> None:
        rates = [i / 100 for i in range(0, 121)]
        values = [DynamicPricingEngine.calculate_demand_factor(occupancy_rate=r).value for r in rates]

        assert values == sorted(values)

    @pytest.mark.parametrize(
        'hour,weekend,expected',
        [
            (19, True, 1.4),
            (12, True, 1.2),
            (15, True, 1.2),
            (19, False, 1.2),
            (12, False, 1.1),
            (15, False, 1.0),
            (9, False, 1.0),
        ],
    )
    def test_temporal_peaks(self, hour: int, weekend: bool, expected: float) -> None:
        factor = DynamicPricingEngine.calculate_temporal_factor(
            hour=hour, is_weekend=weekend, lead_hours=48
        )

        assert factor.value == expected

    @pytest.mark.parametrize('lead,expected', [(3, 1.05), (1, 1.15), (0, 1.2), (4, 1.0)])
    def test_last_minute_urgency(self, lead: int, expected: float) -> None:
        factor = DynamicPricingEngine.calculate_temporal_factor(
            hour=9, is_weekend=False, lead_hours=lead
        )

        assert factor.value == expected

    @pytest.mark.parametrize(
        'guests,capacity,expected',
        [(2, 2, 1.3), (1, 2, 1.4), (2, 4, 1.15), (4, 4, 1.0), (8, 8, 0.9)],
    )
    def test_capacity_factor(self, guests: int, capacity: int, expected: float) -> None:
        factor = DynamicPricingEngine.calculate_capacity_factor(
            guest_count=guests, table_capacity=capacity
        )

        assert factor.value == expected

    def test_no_history_is_neutral(self) -> None:
        factor = DynamicPricingEngine.calculate_historical_factor(HistoricalInsight.neutral())

        assert factor.value == 1.0
        assert factor.details == {'data_points': 0}

    def test_popular_trending_slot(self) -> None:
        insight = HistoricalInsight(
            total_bookings=30,
            time_slot_popularity=Popularity.HIGH,
            day_of_week_popularity=Popularity.HIGH,
            recent_trend=Trend.INCREASING,
        )

        factor = DynamicPricingEngine.calculate_historical_factor(insight)

        assert factor.value == 1.32
        assert 'trending up' in factor.reason

    def test_confidence_caps_at_095(self) -> None:
        context = _context(occupancy_rate=0.5, slot_bookings=4)
        rich = PricingContext(
            restaurant_capacity=context.restaurant_capacity,
            time_slot_bookings=context.time_slot_bookings,
            current_occupancy=context.current_occupancy,
            occupancy_rate=context.occupancy_rate,
            historical=HistoricalInsight(total_bookings=10),
            is_weekend=False,
            time_slot='dinner',
            lead_hours=24,
        )

        assert DynamicPricingEngine.calculate_confidence(rich) == 0.95
        assert DynamicPricingEngine.calculate_confidence(_context(occupancy_rate=0.0)) == 0.8
