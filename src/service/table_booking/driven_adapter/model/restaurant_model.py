from typing import Any, Optional

from sqlalchemy import String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base


class RestaurantModel(Base):
    __tablename__ = 'restaurant'

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    # {"monday": {"open": "10:00", "close": "22:00", "is_closed": false}, ...}
    opening_hours: Mapped[dict[str, Any]] = mapped_column(
        JSONB, nullable=False, server_default=text("'{}'::jsonb")
    )
    line_channel_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
