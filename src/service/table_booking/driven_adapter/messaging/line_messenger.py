"""
LINE Messaging API client over httpx.

https://developers.line.biz/en/reference/messaging-api/
"""

from typing import Any, Dict, List, Optional

import httpx
import orjson

from src.platform.exception.exceptions import MessagingError, ReplyTokenAlreadyUsedError
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.interface.i_messenger import IMessenger, Message


REPLY_PATH = '/v2/bot/message/reply'
PUSH_PATH = '/v2/bot/message/push'
PROFILE_PATH = '/v2/bot/profile/{user_id}'

# LINE answers 400 with this message for consumed or expired reply tokens
INVALID_REPLY_TOKEN = 'Invalid reply token'


class LineMessenger(IMessenger):
    def __init__(
        self,
        *,
        channel_access_token: str,
        base_url: str = 'https://api.line.me',
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={'Authorization': f'Bearer {channel_access_token}'},
        )

    async def _post(self, path: str, payload: Dict[str, Any]) -> None:
        try:
            response = await self._client.post(
                path,
                content=orjson.dumps(payload),
                headers={'Content-Type': 'application/json'},
            )
        except httpx.HTTPError as e:
            raise MessagingError(f'LINE request to {path} failed: {e}') from e

        if response.status_code == 400 and INVALID_REPLY_TOKEN in response.text:
            raise ReplyTokenAlreadyUsedError()
        if response.is_error:
            raise MessagingError(
                f'LINE request to {path} failed: {response.status_code} {response.text[:200]}'
            )

    @Logger.io
    async def reply(self, *, reply_token: str, messages: List[Message]) -> None:
        await self._post(REPLY_PATH, {'replyToken': reply_token, 'messages': messages})

    @Logger.io
    async def push(self, *, to: str, messages: List[Message]) -> None:
        await self._post(PUSH_PATH, {'to': to, 'messages': messages})

    @Logger.io
    async def get_display_name(self, *, user_id: str) -> Optional[str]:
        try:
            response = await self._client.get(PROFILE_PATH.format(user_id=user_id))
        except httpx.HTTPError as e:
            Logger.base.warning(f'⚠️ [LINE] Profile lookup failed for {user_id}: {e}')
            return None
        if response.is_error:
            Logger.base.warning(f'⚠️ [LINE] Profile lookup for {user_id}: {response.status_code}')
            return None
        return orjson.loads(response.content).get('displayName')

    async def aclose(self) -> None:
        await self._client.aclose()
