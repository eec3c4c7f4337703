import datetime as dt
from typing import List, Optional

from pydantic import BaseModel


class UpcomingHolidayResponse(BaseModel):
    date: dt.date
    name: str
    name_en: Optional[str] = None
    name_th: Optional[str] = None
    type: str
    impact: float
    business_impact: str
    days_until: int
    recommended_actions: List[str] = []
