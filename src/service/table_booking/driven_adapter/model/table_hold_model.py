from datetime import date, datetime
from typing import Optional
import uuid

from sqlalchemy import CheckConstraint, Date, DateTime, Index, Integer, String, Text, func, text
from sqlalchemy.dialects.postgresql import UUID as PG_UUID, ExcludeConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base


ACTIVE_HOLD_FILTER = "status = 'active'"


class TableHoldModel(Base):
    __tablename__ = 'table_hold'

    id: Mapped[uuid.UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)  # UUID7
    restaurant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    customer_id: Mapped[str] = mapped_column(String(64), nullable=False)
    table_id: Mapped[str] = mapped_column(String(32), nullable=False)
    booking_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    start_minute: Mapped[int] = mapped_column(Integer, nullable=False)
    end_minute: Mapped[int] = mapped_column(Integer, nullable=False)
    guest_count: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default='active')
    special_requests: Mapped[str] = mapped_column(Text, nullable=False, default='')
    customer_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    booking_id: Mapped[Optional[uuid.UUID]] = mapped_column(PG_UUID(as_uuid=True), nullable=True)
    held_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    confirmed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint('guest_count >= 1', name='ck_table_hold_guest_count'),
        CheckConstraint('start_minute < end_minute', name='ck_table_hold_time_range'),
        CheckConstraint('held_at < expires_at', name='ck_table_hold_expiry'),
        Index(
            'uq_table_hold_active_slot',
            'restaurant_id',
            'table_id',
            'booking_date',
            'start_time',
            'end_time',
            unique=True,
            postgresql_where=text(ACTIVE_HOLD_FILTER),
        ),
        # Sweep lookup
        Index('ix_table_hold_status_expires', 'status', 'expires_at'),
        Index('ix_table_hold_table_day', 'restaurant_id', 'table_id', 'booking_date'),
    )


# One active hold per overlapping slot; lapsed rows are expired before each insert
TableHoldModel.__table__.append_constraint(  # type: ignore[attr-defined]
    ExcludeConstraint(
        (TableHoldModel.__table__.c.restaurant_id, '='),  # type: ignore[attr-defined]
        (TableHoldModel.__table__.c.table_id, '='),  # type: ignore[attr-defined]
        (TableHoldModel.__table__.c.booking_date, '='),  # type: ignore[attr-defined]
        (
            func.int4range(
                TableHoldModel.__table__.c.start_minute,  # type: ignore[attr-defined]
                TableHoldModel.__table__.c.end_minute,  # type: ignore[attr-defined]
            ),
            '&&',
        ),
        name='ex_table_hold_active_overlap',
        using='gist',
        where=text(ACTIVE_HOLD_FILTER),
    )
)
