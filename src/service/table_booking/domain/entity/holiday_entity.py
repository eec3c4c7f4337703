from datetime import date
from typing import Any, Dict, List, Optional

import attrs

from src.service.table_booking.domain.enum.holiday_type import (
    BusinessImpact,
    HolidayType,
    TableType,
)


@attrs.define
class HolidayPricingStrategy:
    couple_table_multiplier: Optional[float] = None
    family_table_multiplier: Optional[float] = None
    group_table_multiplier: Optional[float] = None
    peak_hours_extension: bool = False
    early_booking_recommended: bool = False

    def multiplier_for(self, table_type: TableType) -> Optional[float]:
        return {
            TableType.COUPLE: self.couple_table_multiplier,
            TableType.FAMILY: self.family_table_multiplier,
            TableType.GROUP: self.group_table_multiplier,
        }[table_type]


@attrs.define
class Holiday:
    holiday_date: date
    name: str
    type: HolidayType
    impact: float  # 1.0 - 2.0
    business_impact: BusinessImpact = BusinessImpact.MEDIUM
    name_en: Optional[str] = None
    name_th: Optional[str] = None
    recommended_actions: List[str] = attrs.field(factory=list)
    pricing_strategy: HolidayPricingStrategy = attrs.field(factory=HolidayPricingStrategy)
    id: Optional[int] = None

    def summary(self) -> Dict[str, Any]:
        return {
            'date': self.holiday_date.isoformat(),
            'name': self.name,
            'type': self.type.value,
            'impact': self.impact,
            'business_impact': self.business_impact.value,
        }
