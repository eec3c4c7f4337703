import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field


class PriceCalculationRequest(BaseModel):
    restaurant_id: str
    table_id: Optional[str] = None  # omitted for a guest-count based estimate
    date: dt.date
    time: str
    guest_count: int = Field(ge=1)
    table_capacity: Optional[int] = Field(default=None, ge=1)
    table_location: Optional[str] = None

    model_config = {
        'json_schema_extra': {
            'example': {
                'restaurant_id': 'rest-1',
                'table_id': 't1',
                'date': '2025-01-10',
                'time': '19:00',
                'guest_count': 2,
                'table_capacity': 4,
            }
        }
    }
