"""
Holiday factor provider.

Exact holiday → table-type multiplier from the holiday's pricing strategy.
Closest holiday within 3 days → proximity factor. Lookups are cached per ISO
date for 24 hours, misses included.
"""

from datetime import date, timedelta
from typing import List, Optional, Tuple

import attrs
from opentelemetry import trace

from src.platform.cache.ttl_cache import TTLCache
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.interface.i_holiday_query_repo import IHolidayQueryRepo
from src.service.table_booking.domain.entity.holiday_entity import Holiday
from src.service.table_booking.domain.enum.holiday_type import BusinessImpact, TableType


NEARBY_WINDOW_DAYS = 3
MIN_HOLIDAY_FACTOR = 1.0
MAX_HOLIDAY_FACTOR = 2.0
DAY_BEFORE_IMPACT_SHARE = 0.8
DAY_BEFORE_CAP = 1.5
DAY_AFTER_FACTOR = 0.95
TWO_DAYS_BEFORE_FACTOR = 1.1

_MISS = object()


@attrs.frozen
class HolidayFactor:
    factor: float
    holiday: Optional[Holiday]
    reason: str
    is_near_holiday: bool = False
    days_difference: Optional[int] = None
    table_type: Optional[TableType] = None
    recommendations: List[str] = attrs.field(factory=list)

    @classmethod
    def none(cls) -> 'HolidayFactor':
        return cls(factor=1.0, holiday=None, reason='No holiday')


def classify_table(*, guest_count: int, table_capacity: int) -> TableType:
    if guest_count <= 2 and table_capacity <= 2:
        return TableType.COUPLE
    if guest_count >= 6 or table_capacity >= 8:
        return TableType.GROUP
    return TableType.FAMILY


class HolidayPricingService:
    def __init__(self, *, holiday_query_repo: IHolidayQueryRepo, cache: TTLCache) -> None:
        self.holiday_query_repo = holiday_query_repo
        self._cache = cache
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def get_holiday_for_date(self, *, day: date) -> Optional[Holiday]:
        key = day.isoformat()
        cached = self._cache.get(key, _MISS)
        if cached is not _MISS:
            return cached  # type: ignore[return-value]

        holiday = await self.holiday_query_repo.get_by_date(holiday_date=day)
        self._cache.set(key, holiday)
        return holiday

    def clear_cache(self) -> None:
        self._cache.clear()

    @Logger.io
    async def calculate_holiday_factor(
        self, *, day: date, guest_count: int = 2, table_capacity: int = 4
    ) -> HolidayFactor:
        with self.tracer.start_as_current_span(
            'holiday.calculate_factor', attributes={'booking.date': day.isoformat()}
        ):
            try:
                holiday = await self.get_holiday_for_date(day=day)
                if holiday is None:
                    nearby = await self._get_nearby_holiday(day=day)
                    if nearby is None:
                        return HolidayFactor.none()
                    return self._near_holiday_factor(day=day, holiday=nearby[0], days=nearby[1])

                table_type = classify_table(guest_count=guest_count, table_capacity=table_capacity)
                multiplier = holiday.pricing_strategy.multiplier_for(table_type) or holiday.impact
                return HolidayFactor(
                    factor=min(max(multiplier, MIN_HOLIDAY_FACTOR), MAX_HOLIDAY_FACTOR),
                    holiday=holiday,
                    reason=f'{holiday.name} ({holiday.type.value})',
                    days_difference=0,
                    table_type=table_type,
                    recommendations=list(holiday.recommended_actions),
                )
            except Exception as e:
                Logger.base.error(f'❌ [Holiday] factor unavailable for {day}: {e}')
                return HolidayFactor(
                    factor=1.0, holiday=None, reason='Holiday calculation unavailable'
                )

    async def _get_nearby_holiday(self, *, day: date) -> Optional[Tuple[Holiday, int]]:
        holidays = await self.holiday_query_repo.list_between(
            start=day - timedelta(days=NEARBY_WINDOW_DAYS),
            end=day + timedelta(days=NEARBY_WINDOW_DAYS),
        )
        candidates = [h for h in holidays if h.holiday_date != day]
        if not candidates:
            return None

        # Closest first; on a tie the earlier holiday wins
        closest = min(candidates, key=lambda h: (abs((h.holiday_date - day).days), h.holiday_date))
        return closest, abs((closest.holiday_date - day).days)

    @staticmethod
    def _near_holiday_factor(*, day: date, holiday: Holiday, days: int) -> HolidayFactor:
        is_before = day < holiday.holiday_date
        factor = 1.0
        reason = f'{days} days from {holiday.name}'

        if days <= 1:
            if is_before:
                factor = min(holiday.impact * DAY_BEFORE_IMPACT_SHARE, DAY_BEFORE_CAP)
                reason = f'Day before {holiday.name}'
            else:
                factor = DAY_AFTER_FACTOR
                reason = f'Day after {holiday.name}'
        elif days == 2 and is_before and holiday.business_impact == BusinessImpact.VERY_HIGH:
            factor = TWO_DAYS_BEFORE_FACTOR
            reason = f'2 days before {holiday.name}'

        return HolidayFactor(
            factor=round(factor, 2),
            holiday=holiday,
            reason=reason,
            is_near_holiday=True,
            days_difference=days,
        )

    @Logger.io
    async def get_upcoming_holidays(
        self, *, today: date, days_ahead: int = 30
    ) -> List[Tuple[Holiday, int]]:
        """Holidays from today through today + days_ahead, with days away."""
        try:
            holidays = await self.holiday_query_repo.list_between(
                start=today, end=today + timedelta(days=days_ahead)
            )
        except Exception as e:
            Logger.base.error(f'❌ [Holiday] upcoming holidays unavailable: {e}')
            return []
        return [(h, (h.holiday_date - today).days) for h in holidays]
