from enum import StrEnum


class HolidayType(StrEnum):
    MAJOR_FESTIVAL = 'major_festival'
    CELEBRATION = 'celebration'
    CULTURAL_FESTIVAL = 'cultural_festival'
    RELIGIOUS = 'religious'
    ROYAL = 'royal'
    NATIONAL = 'national'
    INTERNATIONAL = 'international'


class BusinessImpact(StrEnum):
    VERY_HIGH = 'very_high'
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'


class TableType(StrEnum):
    COUPLE = 'couple'
    FAMILY = 'family'
    GROUP = 'group'
