from enum import StrEnum
from typing import Optional

import attrs


class StaffRole(StrEnum):
    WAITER = 'waiter'
    MANAGER = 'manager'
    HOSTESS = 'hostess'
    ADMIN = 'admin'


@attrs.define
class StaffPermissions:
    can_view_bookings: bool = True
    can_update_bookings: bool = False
    can_cancel_bookings: bool = False


@attrs.define
class Staff:
    id: str
    restaurant_id: str
    display_name: str
    role: StaffRole = StaffRole.WAITER
    line_user_id: Optional[str] = None
    permissions: StaffPermissions = attrs.field(factory=StaffPermissions)
    is_active: bool = True

    @property
    def receives_booking_alerts(self) -> bool:
        return self.is_active and self.permissions.can_view_bookings and bool(self.line_user_id)

    def works_at(self, restaurant_id: str) -> bool:
        return self.is_active and self.restaurant_id == restaurant_id
