from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base


class DiningTableModel(Base):
    """Floor-plan table; `status` is a projection kept in step with active bookings."""

    __tablename__ = 'dining_table'

    restaurant_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    table_code: Mapped[str] = mapped_column(String(32), primary_key=True)
    floorplan_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default='available')
    location: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
