from enum import StrEnum


class HoldStatus(StrEnum):
    ACTIVE = 'active'
    CONFIRMED = 'confirmed'
    RELEASED = 'released'
    EXPIRED = 'expired'
