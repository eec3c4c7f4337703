"""
Dynamic pricing engine.

    final = clamp(round(base × demand × temporal × historical × capacity × holiday), min, max)

Every factor carries its own reason. Any failure while gathering context or
computing a factor yields the fallback quote (all factors 1.0, final = base,
confidence 0.1, context.error = True); this engine never raises.
"""

from datetime import date, datetime, time as dt_time, tzinfo
import time
from typing import Any, Callable, Dict, List, Optional

import anyio
import attrs
from opentelemetry import trace

from src.platform.cache.ttl_cache import TTLCache
from src.platform.exception.exceptions import DomainError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.table_booking.app.interface.i_booking_query_repo import IBookingQueryRepo
from src.service.table_booking.app.service.historical_data_analyzer import HistoricalDataAnalyzer
from src.service.table_booking.app.service.holiday_pricing_service import HolidayPricingService
from src.service.table_booking.domain.entity.booking_entity import Booking
from src.service.table_booking.domain.value_object.historical_insight import (
    HistoricalInsight,
    Popularity,
    Trend,
)
from src.service.table_booking.domain.value_object.pricing_result import (
    PricingFactor,
    PricingResult,
    round_half_up,
)
from src.service.table_booking.domain.value_object.time_range import hour_of, parse_time_to_minutes


# Demand tiers: (minimum occupancy, factor, reason)
DEMAND_TIERS = (
    (0.8, 1.5, 'Very high demand (80%+ capacity)'),
    (0.6, 1.25, 'High demand (60-80% capacity)'),
    (0.4, 1.1, 'Medium demand (40-60% capacity)'),
    (0.2, 1.0, 'Normal demand (20-40% capacity)'),
)
LOW_DEMAND_FACTOR = 0.8

URGENCY_LEAD_HOURS = 4
URGENCY_STEP = 0.05
URGENCY_CAP = 1.2

COUPLE_TABLE_PREMIUM = 1.3
LARGE_TABLE_DISCOUNT = 0.9
UNDER_UTILIZATION_THRESHOLD = 0.7
UNDER_UTILIZATION_PREMIUM = 1.15
CAPACITY_FACTOR_MIN = 0.8
CAPACITY_FACTOR_MAX = 1.4

FALLBACK_REASON = 'Error - using fallback'


@attrs.frozen
class PricingContext:
    restaurant_capacity: int
    time_slot_bookings: List[Booking]
    current_occupancy: int
    occupancy_rate: float
    historical: HistoricalInsight
    is_weekend: bool
    time_slot: str
    lead_hours: int


def meal_period(hour: int) -> str:
    if 6 <= hour < 11:
        return 'breakfast'
    if 11 <= hour < 15:
        return 'lunch'
    if 15 <= hour < 18:
        return 'afternoon'
    if 18 <= hour < 22:
        return 'dinner'
    return 'late'


def demand_level(occupancy_rate: float) -> str:
    if occupancy_rate >= 0.8:
        return 'very_high'
    if occupancy_rate >= 0.6:
        return 'high'
    if occupancy_rate >= 0.4:
        return 'medium'
    if occupancy_rate >= 0.2:
        return 'low'
    return 'very_low'


def quick_table_capacity(guest_count: int) -> int:
    if guest_count <= 2:
        return 2
    if guest_count <= 4:
        return 4
    return 6


class DynamicPricingEngine:
    def __init__(
        self,
        *,
        booking_query_repo: IBookingQueryRepo,
        data_analyzer: HistoricalDataAnalyzer,
        holiday_pricing: HolidayPricingService,
        cache: TTLCache,
        tz: tzinfo,
        base_price: int = 100,
        min_price: int = 70,
        max_price: int = 200,
        currency: str = 'THB',
        fallback_confidence: float = 0.1,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.booking_query_repo = booking_query_repo
        self.data_analyzer = data_analyzer
        self.holiday_pricing = holiday_pricing
        self._cache = cache
        self.tz = tz
        self.base_price = base_price
        self.min_price = min_price
        self.max_price = max_price
        self.currency = currency
        self.fallback_confidence = fallback_confidence
        self._clock = clock or (lambda: datetime.now(self.tz))
        self.tracer = trace.get_tracer(__name__)

    @staticmethod
    def cache_key(
        *, restaurant_id: str, table_id: str, booking_date: date, time: str, guest_count: int
    ) -> str:
        return f'{restaurant_id}_{table_id}_{booking_date.isoformat()}_{time}_{guest_count}'

    def clear_cache(self) -> None:
        self._cache.clear()

    @Logger.io
    async def calculate_price(
        self,
        *,
        restaurant_id: str,
        table_id: str,
        booking_date: date,
        time: str,
        guest_count: int,
        table_capacity: int = 4,
    ) -> PricingResult:
        key = self.cache_key(
            restaurant_id=restaurant_id,
            table_id=table_id,
            booking_date=booking_date,
            time=time,
            guest_count=guest_count,
        )
        if (cached := self._cache.get(key)) is not None:
            metrics.record_pricing(result='cached')
            return cached

        started = _perf_counter()
        with self.tracer.start_as_current_span(
            'pricing.calculate_price',
            attributes={
                'restaurant.id': restaurant_id,
                'table.id': table_id,
                'booking.date': booking_date.isoformat(),
                'booking.time': time,
                'booking.guest_count': guest_count,
            },
        ) as span:
            try:
                result = await self._calculate(
                    restaurant_id=restaurant_id,
                    table_id=table_id,
                    booking_date=booking_date,
                    time=time,
                    guest_count=guest_count,
                    table_capacity=table_capacity,
                )
            except Exception as e:
                Logger.base.error(f'❌ [Pricing] calculation failed, using base price: {e}')
                span.set_attribute('pricing.fallback', True)
                metrics.record_pricing(result='fallback', duration=_perf_counter() - started)
                return self.fallback_result(error=str(e))

            span.set_attribute('pricing.final_price', result.final_price)
            metrics.record_pricing(result='success', duration=_perf_counter() - started)
            self._cache.set(key, result)
            return result

    @Logger.io
    async def get_quick_price(
        self, *, restaurant_id: str, booking_date: date, time: str, guest_count: int
    ) -> PricingResult:
        return await self.calculate_price(
            restaurant_id=restaurant_id,
            table_id='estimate',
            booking_date=booking_date,
            time=time,
            guest_count=guest_count,
            table_capacity=quick_table_capacity(guest_count),
        )

    async def _calculate(
        self,
        *,
        restaurant_id: str,
        table_id: str,
        booking_date: date,
        time: str,
        guest_count: int,
        table_capacity: int,
    ) -> PricingResult:
        if not restaurant_id or not table_id:
            raise DomainError('Missing required booking parameters')
        if guest_count < 1 or table_capacity < 1:
            raise DomainError('guest_count and table_capacity must be positive')

        context = await self._gather_context(
            restaurant_id=restaurant_id, booking_date=booking_date, time=time
        )

        demand = self.calculate_demand_factor(
            occupancy_rate=context.occupancy_rate,
            current_occupancy=context.current_occupancy,
            restaurant_capacity=context.restaurant_capacity,
        )
        temporal = self.calculate_temporal_factor(
            hour=hour_of(time), is_weekend=context.is_weekend, lead_hours=context.lead_hours
        )
        historical = self.calculate_historical_factor(context.historical)
        capacity = self.calculate_capacity_factor(
            guest_count=guest_count, table_capacity=table_capacity
        )
        holiday = await self._holiday_factor(
            booking_date=booking_date, guest_count=guest_count, table_capacity=table_capacity
        )

        raw_price = (
            self.base_price
            * demand.value
            * temporal.value
            * historical.value
            * capacity.value
            * holiday.value
        )
        final_price = int(
            round_half_up(max(self.min_price, min(self.max_price, raw_price)))
        )

        return PricingResult(
            success=True,
            base_price=self.base_price,
            final_price=final_price,
            currency=self.currency,
            demand=demand,
            temporal=temporal,
            historical=historical,
            capacity=capacity,
            holiday=holiday,
            confidence=self.calculate_confidence(context),
            calculated_at=self._clock(),
            context={
                'restaurant_capacity': context.restaurant_capacity,
                'current_bookings': len(context.time_slot_bookings),
                'occupancy_rate': round_half_up(context.occupancy_rate, 2),
                'time_slot': context.time_slot,
                'is_weekend': context.is_weekend,
                'lead_hours': context.lead_hours,
                'table_info': {
                    'id': table_id,
                    'capacity': table_capacity,
                    'efficiency': int(round_half_up(guest_count / table_capacity * 100)),
                },
            },
            recommendations=self.generate_recommendations(context, final_price),
            demand_level=demand_level(context.occupancy_rate),
        )

    async def _gather_context(
        self, *, restaurant_id: str, booking_date: date, time: str
    ) -> PricingContext:
        now = self._clock()
        results: Dict[str, Any] = {}

        async def _load_day_bookings() -> None:
            results['day_bookings'] = await self.booking_query_repo.list_active_for_day(
                restaurant_id=restaurant_id, booking_date=booking_date
            )

        async def _load_capacity() -> None:
            results['capacity'] = await self.data_analyzer.estimate_restaurant_capacity(
                restaurant_id=restaurant_id, today=now.date()
            )

        async def _load_history() -> None:
            results['historical'] = await self.data_analyzer.get_historical_insight(
                restaurant_id=restaurant_id, target_date=booking_date, time=time
            )

        # Read-only and independent, fetched concurrently
        async with anyio.create_task_group() as tg:
            tg.start_soon(_load_day_bookings)
            tg.start_soon(_load_capacity)
            tg.start_soon(_load_history)

        target_hour = hour_of(time)
        restaurant_capacity: int = results['capacity'] or 1
        time_slot_bookings = [
            b for b in results['day_bookings'] if abs(hour_of(b.start_time) - target_hour) <= 1
        ]
        current_occupancy = sum(b.guest_count for b in time_slot_bookings)

        return PricingContext(
            restaurant_capacity=restaurant_capacity,
            time_slot_bookings=time_slot_bookings,
            current_occupancy=current_occupancy,
            occupancy_rate=current_occupancy / restaurant_capacity,
            historical=results['historical'],
            is_weekend=booking_date.weekday() >= 5,
            time_slot=meal_period(target_hour),
            lead_hours=self._lead_hours(now=now, booking_date=booking_date, time=time),
        )

    def _lead_hours(self, *, now: datetime, booking_date: date, time: str) -> int:
        minutes = parse_time_to_minutes(time)
        starts_at = datetime.combine(
            booking_date, dt_time(minutes // 60, minutes % 60), tzinfo=self.tz
        )
        return max(0, int(round_half_up((starts_at - now).total_seconds() / 3600)))

    @staticmethod
    def calculate_demand_factor(
        *, occupancy_rate: float, current_occupancy: int = 0, restaurant_capacity: int = 0
    ) -> PricingFactor:
        factor, reason = LOW_DEMAND_FACTOR, 'Low demand (under 20% capacity)'
        for threshold, tier_factor, tier_reason in DEMAND_TIERS:
            if occupancy_rate >= threshold:
                factor, reason = tier_factor, tier_reason
                break

        return PricingFactor(
            value=factor,
            reason=reason,
            details={
                'occupancy_rate': round_half_up(occupancy_rate, 2),
                'current_occupancy': current_occupancy,
                'restaurant_capacity': restaurant_capacity,
            },
        )

    @staticmethod
    def calculate_temporal_factor(*, hour: int, is_weekend: bool, lead_hours: int) -> PricingFactor:
        factor = 1.0
        time_slot = 'off-peak'
        reasons: List[str] = []

        if is_weekend:
            if 18 <= hour <= 21:
                factor, time_slot = 1.4, 'weekend-dinner'
                reasons.append('Weekend dinner peak')
            elif 11 <= hour <= 15:
                factor, time_slot = 1.2, 'weekend-lunch'
                reasons.append('Weekend lunch')
        else:
            if 18 <= hour <= 21:
                factor, time_slot = 1.2, 'weekday-dinner'
                reasons.append('Weekday dinner')
            elif 11 <= hour <= 14:
                factor, time_slot = 1.1, 'weekday-lunch'
                reasons.append('Weekday lunch')

        if lead_hours < URGENCY_LEAD_HOURS:
            factor *= min(1 + (URGENCY_LEAD_HOURS - lead_hours) * URGENCY_STEP, URGENCY_CAP)
            reasons.append(f'Last-minute booking ({lead_hours}h ahead)')

        return PricingFactor(
            value=round_half_up(factor, 2),
            reason=', '.join(reasons) or 'Regular timing',
            details={
                'time_slot': time_slot,
                'is_weekend': is_weekend,
                'hour': hour,
                'lead_hours': lead_hours,
            },
        )

    @staticmethod
    def calculate_historical_factor(insight: HistoricalInsight) -> PricingFactor:
        if not insight.has_history:
            return PricingFactor(
                value=1.0, reason='No historical data available', details={'data_points': 0}
            )

        factor, reason = {
            Popularity.HIGH: (1.2, 'Historically very popular time slot'),
            Popularity.MEDIUM: (1.1, 'Historically moderately popular time slot'),
            Popularity.LOW: (0.9, 'Historically quiet time slot'),
        }[insight.time_slot_popularity]

        if insight.recent_trend == Trend.INCREASING:
            factor *= 1.05
            reason += ' (trending up)'
        elif insight.recent_trend == Trend.DECREASING:
            factor *= 0.95
            reason += ' (trending down)'

        if insight.day_of_week_popularity == Popularity.HIGH:
            factor *= 1.05
            reason += ' (popular day)'
        elif insight.day_of_week_popularity == Popularity.LOW:
            factor *= 0.95
            reason += ' (quiet day)'

        return PricingFactor(
            value=round_half_up(factor, 2),
            reason=reason,
            details={
                'data_points': insight.total_bookings,
                'time_slot_bookings': insight.same_time_bookings,
                'day_bookings': insight.same_day_bookings,
                'avg_occupancy': round_half_up(insight.avg_occupancy_rate, 2),
                'peak_hours': list(insight.peak_hours),
            },
        )

    @staticmethod
    def calculate_capacity_factor(*, guest_count: int, table_capacity: int) -> PricingFactor:
        efficiency = guest_count / table_capacity
        factor = 1.0
        reasons: List[str] = []

        if table_capacity <= 2:
            factor = COUPLE_TABLE_PREMIUM
            reasons.append('Couple table premium')
        elif table_capacity >= 8:
            factor = LARGE_TABLE_DISCOUNT
            reasons.append('Large table discount')

        if efficiency < UNDER_UTILIZATION_THRESHOLD:
            factor *= UNDER_UTILIZATION_PREMIUM
            reasons.append('Table under-utilization premium')

        factor = max(CAPACITY_FACTOR_MIN, min(CAPACITY_FACTOR_MAX, factor))

        return PricingFactor(
            value=round_half_up(factor, 2),
            reason=', '.join(reasons) or 'Standard table pricing',
            details={
                'efficiency': round_half_up(efficiency, 2),
                'table_capacity': table_capacity,
                'guest_count': guest_count,
            },
        )

    async def _holiday_factor(
        self, *, booking_date: date, guest_count: int, table_capacity: int
    ) -> PricingFactor:
        try:
            result = await self.holiday_pricing.calculate_holiday_factor(
                day=booking_date, guest_count=guest_count, table_capacity=table_capacity
            )
        except Exception as e:
            Logger.base.error(f'❌ [Pricing] holiday factor unavailable: {e}')
            return PricingFactor(
                value=1.0, reason='Holiday calculation unavailable', details={'holiday': None}
            )

        return PricingFactor(
            value=result.factor,
            reason=result.reason,
            details={'holiday': result.holiday.summary() if result.holiday else None},
        )

    @staticmethod
    def generate_recommendations(context: PricingContext, final_price: int) -> List[str]:
        recommendations: List[str] = []
        if context.occupancy_rate < 0.3:
            recommendations.append('Consider promotional pricing for this time slot')
        if final_price > 150:
            recommendations.append('Premium pricing - ensure exceptional service')
        if context.is_weekend and context.time_slot == 'dinner':
            recommendations.append('Peak weekend time - extend staff hours')
        return recommendations

    @staticmethod
    def calculate_confidence(context: PricingContext) -> float:
        confidence = 0.8
        if context.historical.total_bookings >= 5:
            confidence += 0.1
        if len(context.time_slot_bookings) >= 3:
            confidence += 0.05
        if 0.1 < context.occupancy_rate < 0.9:
            confidence += 0.05
        return min(0.95, round_half_up(confidence, 2))

    def fallback_result(self, *, error: Optional[str] = None) -> PricingResult:
        neutral = PricingFactor(value=1.0, reason=FALLBACK_REASON)
        return PricingResult(
            success=False,
            base_price=self.base_price,
            final_price=self.base_price,
            currency=self.currency,
            demand=neutral,
            temporal=neutral,
            historical=neutral,
            capacity=neutral,
            holiday=neutral,
            confidence=self.fallback_confidence,
            calculated_at=self._clock(),
            context={'error': True, 'message': 'Pricing calculation failed - using base price'},
            error=error,
        )


def _perf_counter() -> float:
    return time.perf_counter()
