"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.table_booking.driven_adapter.model.booking_model import BookingModel
from src.service.table_booking.driven_adapter.model.customer_model import CustomerModel
from src.service.table_booking.driven_adapter.model.dining_table_model import DiningTableModel
from src.service.table_booking.driven_adapter.model.holiday_model import HolidayModel
from src.service.table_booking.driven_adapter.model.restaurant_model import RestaurantModel
from src.service.table_booking.driven_adapter.model.staff_model import StaffModel
from src.service.table_booking.driven_adapter.model.table_hold_model import TableHoldModel

__all__ = [
    'BookingModel',
    'CustomerModel',
    'DiningTableModel',
    'HolidayModel',
    'RestaurantModel',
    'StaffModel',
    'TableHoldModel',
]
