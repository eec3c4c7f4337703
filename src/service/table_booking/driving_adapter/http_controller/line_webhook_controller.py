from typing import Any, Dict, Optional

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Header, Request
import orjson

from src.platform.config.core_setting import Settings
from src.platform.config.di import Container
from src.platform.exception.exceptions import AuthenticationError, DomainError
from src.platform.logging.loguru_io import Logger
from src.service.table_booking.app.command.handle_chat_event_use_case import (
    HandleChatEventUseCase,
)
from src.service.table_booking.driven_adapter.messaging.line_signature import (
    verify_line_signature,
)


router = APIRouter()


@router.post('/webhook')
@inject
async def line_webhook(
    request: Request,
    x_line_signature: Optional[str] = Header(default=None),
    use_case: HandleChatEventUseCase = Depends(HandleChatEventUseCase.depends),
    config: Settings = Depends(Provide[Container.config_service]),
) -> Dict[str, str]:
    body = await request.body()
    if not x_line_signature or not verify_line_signature(
        body=body,
        signature=x_line_signature,
        channel_secret=config.LINE_CHANNEL_SECRET.get_secret_value(),
    ):
        Logger.base.warning('🚫 [LINE] Webhook signature rejected')
        raise AuthenticationError('Invalid LINE signature')

    try:
        payload: Dict[str, Any] = orjson.loads(body)
    except orjson.JSONDecodeError as e:
        raise DomainError('Webhook body is not valid JSON') from e

    events = payload.get('events') or []
    Logger.base.info(f'📨 [LINE] Webhook with {len(events)} event(s)')
    await use_case.handle_webhook(events=events)
    return {'status': 'ok'}
