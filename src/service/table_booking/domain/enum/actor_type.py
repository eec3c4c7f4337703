from enum import StrEnum


class ActorType(StrEnum):
    CUSTOMER = 'customer'
    STAFF = 'staff'
    SYSTEM = 'system'
