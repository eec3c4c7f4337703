from datetime import date
from typing import Any, Optional

from sqlalchemy import CheckConstraint, Date, Float, Integer, String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base


class HolidayModel(Base):
    __tablename__ = 'holiday'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    holiday_date: Mapped[date] = mapped_column(Date, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    name_en: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    name_th: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    impact: Mapped[float] = mapped_column(Float, nullable=False, default=1.0)
    business_impact: Mapped[str] = mapped_column(String(16), nullable=False, default='medium')
    recommended_actions: Mapped[list[str]] = mapped_column(
        JSONB, nullable=False, server_default=text("'[]'::jsonb")
    )
    pricing_strategy: Mapped[dict[str, Any]] = mapped_column(
        JSONB, nullable=False, server_default=text("'{}'::jsonb")
    )

    __table_args__ = (CheckConstraint('impact BETWEEN 1.0 AND 2.0', name='ck_holiday_impact'),)
