from typing import Any, Dict, List, Optional, Self

import anyio
from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.cache.ttl_cache import TTLCache
from src.platform.config.di import Container
from src.platform.exception.exceptions import ReplyTokenAlreadyUsedError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.service.table_booking.app.interface.i_messenger import IMessenger, Message
from src.service.table_booking.app.service.booking_conversation_service import (
    BookingConversationService,
)
from src.service.table_booking.app.service.chat_message_builder import (
    MAX_MESSAGES_PER_REPLY,
    ChatMessageBuilder,
)


class HandleChatEventUseCase:
    """
    Entry point for LINE webhook deliveries.

    - Redelivered events (same webhookEventId within the dedup TTL) are ignored
    - Answers go through the event's reply token, or push when there is none
    - A consumed reply token means the event was already answered: swallowed
    - Anything else is logged and answered with one apology, reply if the token
      was not used yet, push otherwise
    """

    def __init__(
        self,
        *,
        conversation_service: BookingConversationService,
        messenger: IMessenger,
        message_builder: ChatMessageBuilder,
        event_dedup_cache: TTLCache,
    ) -> None:
        self.conversation_service = conversation_service
        self.messenger = messenger
        self.message_builder = message_builder
        self.event_dedup_cache = event_dedup_cache
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        conversation_service: BookingConversationService = Depends(
            Provide[Container.booking_conversation_service]
        ),
        messenger: IMessenger = Depends(Provide[Container.messenger]),
        message_builder: ChatMessageBuilder = Depends(Provide[Container.chat_message_builder]),
        event_dedup_cache: TTLCache = Depends(Provide[Container.event_dedup_cache]),
    ) -> Self:
        return cls(
            conversation_service=conversation_service,
            messenger=messenger,
            message_builder=message_builder,
            event_dedup_cache=event_dedup_cache,
        )

    @Logger.io
    async def handle_webhook(self, *, events: List[Dict[str, Any]]) -> None:
        # Events are independent; one failing event never cancels the others
        async with anyio.create_task_group() as tg:
            for event in events:
                tg.start_soon(self.handle_event, event)

    async def handle_event(self, event: Dict[str, Any]) -> None:
        event_type = str(event.get('type'))
        event_id = event.get('webhookEventId')
        # Claimed before processing: a redelivery after a failure is dropped too,
        # the user already got the apology and can simply press the button again
        if event_id and not self.event_dedup_cache.add_if_absent(event_id, True):
            Logger.base.info(f'🔁 [CHAT] Duplicate event {event_id} ignored')
            metrics.record_chat_event(event_type=event_type, result='duplicate')
            return

        reply_token: Optional[str] = event.get('replyToken')
        user_id: Optional[str] = (event.get('source') or {}).get('userId')
        token_used = False

        with self.tracer.start_as_current_span(
            'use_case.handle_chat_event',
            attributes={'chat.event_type': event_type, 'chat.event_id': str(event_id)},
        ):
            try:
                messages = await self.conversation_service.handle_event(event)
                if not messages:
                    metrics.record_chat_event(event_type=event_type, result='ignored')
                    return

                token_used = bool(reply_token)
                await self._send(reply_token=reply_token, user_id=user_id, messages=messages)
                metrics.record_chat_event(event_type=event_type, result='processed')

            except ReplyTokenAlreadyUsedError:
                Logger.base.info(f'🔕 [CHAT] Event {event_id} already answered')
                metrics.record_chat_event(event_type=event_type, result='already_answered')

            except Exception as e:
                Logger.base.exception(f'❌ [CHAT] Event {event_id} failed: {e}')
                metrics.record_chat_event(event_type=event_type, result='error')
                await self._apologize(
                    reply_token=None if token_used else reply_token, user_id=user_id
                )

    async def _send(
        self, *, reply_token: Optional[str], user_id: Optional[str], messages: List[Message]
    ) -> None:
        messages = messages[:MAX_MESSAGES_PER_REPLY]
        if reply_token:
            kind = 'reply'
            send = self.messenger.reply(reply_token=reply_token, messages=messages)
        elif user_id:
            kind = 'push'
            send = self.messenger.push(to=user_id, messages=messages)
        else:
            Logger.base.warning('⚠️ [CHAT] Event has neither reply token nor user id')
            return

        try:
            await send
        except Exception:
            metrics.record_message_sent(kind=kind, result='failed')
            raise
        metrics.record_message_sent(kind=kind, result='sent')

    async def _apologize(self, *, reply_token: Optional[str], user_id: Optional[str]) -> None:
        try:
            await self._send(
                reply_token=reply_token, user_id=user_id, messages=[self.message_builder.apology()]
            )
        except ReplyTokenAlreadyUsedError:
            Logger.base.info('🔕 [CHAT] Apology skipped, reply token already used')
        except Exception as e:
            Logger.base.error(f'❌ [CHAT] Apology could not be delivered: {e}')
