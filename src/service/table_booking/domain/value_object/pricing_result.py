from datetime import datetime
import math
from typing import Any, Dict, List, Optional

import attrs


FACTOR_NAMES = ('demand', 'temporal', 'historical', 'capacity', 'holiday')


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Half-up rounding (2.5 -> 3), unlike the built-in banker's round()."""
    scale = 10**ndigits
    return math.floor(value * scale + 0.5) / scale


@attrs.frozen
class PricingFactor:
    value: float
    reason: str
    details: Dict[str, Any] = attrs.field(factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {'value': self.value, 'reason': self.reason, **self.details}


@attrs.frozen
class PricingResult:
    """Immutable quote; embedded into a booking as its pricing snapshot."""

    success: bool
    base_price: int
    final_price: int
    currency: str
    demand: PricingFactor
    temporal: PricingFactor
    historical: PricingFactor
    capacity: PricingFactor
    holiday: PricingFactor
    confidence: float
    calculated_at: datetime
    context: Dict[str, Any] = attrs.field(factory=dict)
    recommendations: List[str] = attrs.field(factory=list)
    demand_level: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return bool(self.context.get('error'))

    @property
    def factors(self) -> Dict[str, PricingFactor]:
        return {name: getattr(self, name) for name in FACTOR_NAMES}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'base_price': self.base_price,
            'final_price': self.final_price,
            'currency': self.currency,
            'breakdown': {f'{name}_factor': f.to_dict() for name, f in self.factors.items()},
            'context': {
                **self.context,
                'demand_level': self.demand_level,
                'recommendations': list(self.recommendations),
            },
            'confidence': self.confidence,
            'calculated_at': self.calculated_at.isoformat(),
            'error': self.error,
        }
