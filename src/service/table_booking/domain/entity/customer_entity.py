from datetime import datetime
from typing import Optional

import attrs


@attrs.define
class Customer:
    id: str
    line_user_id: Optional[str] = None
    display_name: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
