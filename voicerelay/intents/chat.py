"""Open-domain chat: everything the keyword rules do not claim."""

from __future__ import annotations

from typing import Dict, List

from ..errors import ServiceError
from ..logging_config import get_logger
from ..services import ChatService
from .clock import LocalClock
from .models import IntentHandler, IntentResult, TurnContext

logger = get_logger(__name__)

FAILURE_REPLY = "Sorry, I can't think of a reply right now. Please try again."


class ChatHandler(IntentHandler):
    def __init__(self, chat: ChatService, clock: LocalClock):
        self.chat = chat
        self.clock = clock

    def build_messages(self, context: TurnContext) -> List[Dict[str, str]]:
        """System prompt with the local time, then the history, then the user turn."""
        system = f"{context.prompt}\n\nCurrent date and time: {self.clock.timestamp()} (Philippine local time)."
        messages = [{"role": "system", "content": system}]
        messages.extend(context.history)
        messages.append({"role": "user", "content": context.transcript})
        return messages

    async def reply(self, intent: IntentResult, context: TurnContext) -> str:
        try:
            return await self.chat.complete(self.build_messages(context), session_id=context.session_id)
        except ServiceError as exc:
            logger.warning("Chat reply unavailable", error=str(exc), session_id=context.session_id)
            return FAILURE_REPLY
