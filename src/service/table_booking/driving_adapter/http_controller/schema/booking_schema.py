import datetime as dt
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from src.platform.types import UtilsUUID7
from src.service.table_booking.domain.entity.booking_entity import Booking
from src.service.table_booking.domain.enum.actor_type import ActorType


class BookingCreateRequest(BaseModel):
    restaurant_id: str
    customer_id: str
    table_id: str
    date: dt.date
    start_time: str
    end_time: Optional[str] = None
    guest_count: int = Field(ge=1)
    special_requests: str = ''
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    hold_id: Optional[UtilsUUID7] = None  # consumed when given

    model_config = {
        'json_schema_extra': {
            'example': {
                'restaurant_id': 'rest-1',
                'customer_id': 'cust-1',
                'table_id': 't1',
                'date': '2025-01-10',
                'start_time': '19:00',
                'guest_count': 2,
            }
        }
    }


class BookingStatusUpdateRequest(BaseModel):
    status: Literal['confirmed', 'cancelled', 'completed', 'rejected']
    actor_type: ActorType
    actor_id: Optional[str] = None
    expected_version: Optional[int] = None
    note: Optional[str] = None

    model_config = {
        'json_schema_extra': {
            'example': {
                'status': 'confirmed',
                'actor_type': 'staff',
                'actor_id': 'staff-1',
                'expected_version': 0,
            }
        }
    }


class BookingHistoryResponse(BaseModel):
    action: str
    from_status: Optional[str]
    to_status: str
    actor_type: str
    actor_id: Optional[str] = None
    at: dt.datetime
    note: Optional[str] = None


class BookingResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'id': '01936d8f-5e73-7c4e-a9c5-123456789abc',  # UUID7
                'booking_ref': 'BK250110001',
                'restaurant_id': 'rest-1',
                'customer_id': 'cust-1',
                'table_id': 't1',
                'date': '2025-01-10',
                'start_time': '19:00',
                'end_time': '21:00',
                'guest_count': 2,
                'status': 'pending',
                'version': 0,
            }
        },
    }

    id: UtilsUUID7  # UUID7
    booking_ref: Optional[str]
    restaurant_id: str
    customer_id: str
    table_id: str
    date: dt.date
    start_time: str
    end_time: str
    guest_count: int
    status: str
    special_requests: str = ''
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    pricing: Optional[Dict[str, Any]] = None
    history: List[BookingHistoryResponse] = []
    version: int
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    @classmethod
    def from_booking(cls, booking: Booking) -> 'BookingResponse':
        return cls(
            id=booking.id,
            booking_ref=booking.booking_ref,
            restaurant_id=booking.restaurant_id,
            customer_id=booking.customer_id,
            table_id=booking.table_id,
            date=booking.booking_date,
            start_time=booking.start_time,
            end_time=booking.end_time,
            guest_count=booking.guest_count,
            status=booking.status.value,
            special_requests=booking.special_requests,
            customer_name=booking.customer_name,
            customer_phone=booking.customer_phone,
            pricing=booking.pricing,
            history=[BookingHistoryResponse(**entry.to_dict()) for entry in booking.history],
            version=booking.version,
            created_at=booking.created_at,
            updated_at=booking.updated_at,
        )


class AvailabilityResponse(BaseModel):
    restaurant_id: str
    table_id: str
    date: dt.date
    start_time: str
    end_time: Optional[str] = None
    available: bool


class AvailableTableResponse(BaseModel):
    table_code: str
    capacity: int
    location: Optional[str] = None
