from datetime import date
from typing import Dict, Optional

import attrs


WEEKDAY_NAMES = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')


@attrs.define
class OpeningHours:
    open: str
    close: str
    is_closed: bool = False

    @property
    def is_24_hours(self) -> bool:
        return self.open == self.close or (self.open == '00:00' and self.close == '23:59')


@attrs.define
class Restaurant:
    id: str
    name: str
    opening_hours: Dict[str, OpeningHours] = attrs.field(factory=dict)  # keyed by WEEKDAY_NAMES
    line_channel_id: Optional[str] = None

    def hours_for(self, day: date) -> Optional[OpeningHours]:
        return self.opening_hours.get(WEEKDAY_NAMES[day.weekday()])
