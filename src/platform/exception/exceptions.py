from typing import Any, Dict, List, Optional


class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    code = 'error'

    def __init__(self, message: str, status_code: int = 500) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        """Extra response fields next to `detail` and `code`."""
        return {}


class DomainError(CustomBaseError):
    code = 'invalid_request'

    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class ForbiddenError(CustomBaseError):
    code = 'forbidden'

    def __init__(self, message: str) -> None:
        super().__init__(message, 403)


class NotFoundError(CustomBaseError):
    code = 'not_found'

    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    code = 'conflict'

    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class GoneError(CustomBaseError):
    code = 'gone'

    def __init__(self, message: str) -> None:
        super().__init__(message, 410)


class AuthenticationError(CustomBaseError):
    code = 'unauthorized'

    def __init__(self, message: str) -> None:
        super().__init__(message, 401)


class BookingStateError(DomainError):
    """Requested status transition is not allowed from the current status."""

    code = 'invalid_status_transition'


class CancellationWindowError(DomainError):
    """Confirmed booking is too close to its start time to be cancelled."""

    code = 'cancellation_window_closed'


class TableNoLongerAvailableError(ConflictError):
    """Another booking or hold owns an overlapping slot on the table."""

    code = 'table_no_longer_available'
    NEXT_STEPS: List[str] = ['choose_another_time', 'choose_another_table']

    def __init__(
        self,
        message: str = 'This table is no longer available for the selected time',
        *,
        table_id: Optional[str] = None,
        booking_date: Optional[str] = None,
        time: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.table_id = table_id
        self.booking_date = booking_date
        self.time = time

    def details(self) -> Dict[str, Any]:
        slot = {'table_id': self.table_id, 'date': self.booking_date, 'time': self.time}
        return {
            'slot': {k: v for k, v in slot.items() if v is not None},
            'next_steps': list(self.NEXT_STEPS),
        }


class VersionConflictError(ConflictError):
    code = 'version_conflict'

    def __init__(self, message: str = 'Booking was modified by someone else') -> None:
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {'next_steps': ['reload_booking']}


class HoldExpiredError(GoneError):
    code = 'hold_expired'

    def __init__(self, message: str = 'The reservation hold has expired') -> None:
        super().__init__(message)

    def details(self) -> Dict[str, Any]:
        return {'next_steps': ['create_new_hold']}


class MessagingError(CustomBaseError):
    code = 'messaging_failed'

    def __init__(self, message: str, status_code: int = 502) -> None:
        super().__init__(message, status_code)


class ReplyTokenAlreadyUsedError(MessagingError):
    """The reply token was consumed or expired; the event has already been answered."""

    code = 'reply_token_used'

    def __init__(self, message: str = 'Reply token already used') -> None:
        super().__init__(message, 400)
