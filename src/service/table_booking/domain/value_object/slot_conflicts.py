from typing import List

import attrs

from src.service.table_booking.domain.entity.booking_entity import Booking
from src.service.table_booking.domain.entity.table_hold_entity import TableHold


EXACT_CONFLICT_PENALTY = 50
OVERLAP_CONFLICT_PENALTY = 30


@attrs.frozen
class SlotConflicts:
    """
    Everything standing between a guest and one table slot.

    `exact_*` share the requested start and end; `overlapping_*` intersect it
    any other way. Holds are only the ones still in force.
    """

    exact_bookings: List[Booking] = attrs.field(factory=list)
    exact_holds: List[TableHold] = attrs.field(factory=list)
    overlapping_bookings: List[Booking] = attrs.field(factory=list)
    overlapping_holds: List[TableHold] = attrs.field(factory=list)
    is_past_date: bool = False

    @property
    def has_exact(self) -> bool:
        return bool(self.exact_bookings or self.exact_holds)

    @property
    def has_overlapping(self) -> bool:
        return bool(self.overlapping_bookings or self.overlapping_holds)

    @property
    def total(self) -> int:
        return (
            len(self.exact_bookings)
            + len(self.exact_holds)
            + len(self.overlapping_bookings)
            + len(self.overlapping_holds)
        )

    @property
    def is_available(self) -> bool:
        return self.total == 0 and not self.is_past_date

    @property
    def availability_score(self) -> int:
        """0-100; a date in the past scores 0 whatever else is found."""
        if self.is_past_date:
            return 0
        score = 100
        if self.has_exact:
            score -= EXACT_CONFLICT_PENALTY
        if self.has_overlapping:
            score -= OVERLAP_CONFLICT_PENALTY
        return max(0, score)
