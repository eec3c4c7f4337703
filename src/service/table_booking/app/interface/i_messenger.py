"""
Outbound chat channel (LINE Messaging API).

- reply: single use per inbound event, token expires shortly after delivery
- push: any time, addressed by user id
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


Message = Dict[str, Any]


class IMessenger(ABC):
    @abstractmethod
    async def reply(self, *, reply_token: str, messages: List[Message]) -> None:
        """
        Raises:
            ReplyTokenAlreadyUsedError: token consumed or expired, must not be retried
            MessagingError: any other delivery failure
        """
        pass

    @abstractmethod
    async def push(self, *, to: str, messages: List[Message]) -> None:
        """
        Raises:
            MessagingError: delivery failure
        """
        pass

    @abstractmethod
    async def get_display_name(self, *, user_id: str) -> Optional[str]:
        pass
