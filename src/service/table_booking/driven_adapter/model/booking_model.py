from datetime import date, datetime
from typing import Any, Optional
import uuid

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID, ExcludeConstraint
from sqlalchemy.orm import Mapped, mapped_column

from src.platform.database.orm_db_setting import Base


ACTIVE_STATUS_FILTER = "status IN ('pending', 'confirmed')"


class BookingModel(Base):
    __tablename__ = 'booking'

    id: Mapped[uuid.UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)  # UUID7
    booking_ref: Mapped[str] = mapped_column(String(11), nullable=False)
    restaurant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    floorplan_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    customer_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    table_id: Mapped[str] = mapped_column(String(32), nullable=False)
    booking_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    # Minutes since midnight; the overlap constraint and the availability check share them
    start_minute: Mapped[int] = mapped_column(Integer, nullable=False)
    end_minute: Mapped[int] = mapped_column(Integer, nullable=False)
    guest_count: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default='pending')
    special_requests: Mapped[str] = mapped_column(Text, nullable=False, default='')
    customer_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    customer_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    pricing: Mapped[Optional[dict[str, Any]]] = mapped_column(JSONB, nullable=True)
    history: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONB, nullable=False, server_default=text("'[]'::jsonb")
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint('booking_ref', name='uq_booking_ref'),
        CheckConstraint('guest_count >= 1', name='ck_booking_guest_count'),
        CheckConstraint('start_minute < end_minute', name='ck_booking_time_range'),
        # Exact-slot guard, scoped to bookings that hold the table
        Index(
            'uq_booking_active_slot',
            'restaurant_id',
            'table_id',
            'booking_date',
            'start_time',
            'end_time',
            unique=True,
            postgresql_where=text(ACTIVE_STATUS_FILTER),
        ),
        Index('ix_booking_table_day_status', 'restaurant_id', 'table_id', 'booking_date', 'status'),
        Index('ix_booking_restaurant_date', 'restaurant_id', 'booking_date'),
    )


# Overlapping active bookings of one table on one day are rejected by the database
BookingModel.__table__.append_constraint(  # type: ignore[attr-defined]
    ExcludeConstraint(
        (BookingModel.__table__.c.restaurant_id, '='),  # type: ignore[attr-defined]
        (BookingModel.__table__.c.table_id, '='),  # type: ignore[attr-defined]
        (BookingModel.__table__.c.booking_date, '='),  # type: ignore[attr-defined]
        (
            func.int4range(
                BookingModel.__table__.c.start_minute,  # type: ignore[attr-defined]
                BookingModel.__table__.c.end_minute,  # type: ignore[attr-defined]
            ),
            '&&',
        ),
        name='ex_booking_active_overlap',
        using='gist',
        where=text(ACTIVE_STATUS_FILTER),
    )
)
