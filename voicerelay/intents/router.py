"""Classifies a transcript and dispatches it to the matching intent handler."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from ..config import AppConfig
from ..logging_config import get_logger
from ..metrics import UTTERANCES
from ..services import Services
from .chat import ChatHandler
from .classifier import classify
from .clock import LocalClock, TimeHandler
from .models import INTENT_CHAT, INTENT_NEWS, INTENT_TIME, INTENT_WEATHER, IntentHandler, IntentResult, TurnContext
from .news import NewsHandler
from .weather import WeatherHandler

logger = get_logger(__name__)


@dataclass(frozen=True)
class RoutedReply:
    intent: IntentResult
    text: str


class IntentRouter:
    """Every transcript gets exactly one reply string; routing never raises
    for external-service faults."""

    def __init__(self, handlers: Dict[str, IntentHandler], *, default_city: str = "Manila"):
        if INTENT_CHAT not in handlers:
            raise ValueError("a chat handler is required as the fallback intent")
        self.handlers = handlers
        self.default_city = default_city

    def classify(self, transcript: str) -> IntentResult:
        return classify(transcript, self.default_city)

    async def route(self, context: TurnContext) -> RoutedReply:
        intent = self.classify(context.transcript)
        handler = self.handlers.get(intent.kind) or self.handlers[INTENT_CHAT]
        logger.info(
            "Intent routed",
            intent=intent.kind,
            language=intent.language,
            city=intent.city,
            topic=intent.topic,
            session_id=context.session_id,
        )
        text = (await handler.reply(intent, context)).strip()
        UTTERANCES.labels(intent=intent.kind).inc()
        return RoutedReply(intent=intent, text=text)


def build_router(config: AppConfig, services: Services, *, clock: Optional[LocalClock] = None) -> IntentRouter:
    intents = config.intents
    clock = clock or LocalClock(intents.timezone)
    handlers: Dict[str, IntentHandler] = {
        INTENT_WEATHER: WeatherHandler(services.weather, default_city=intents.default_city),
        INTENT_NEWS: NewsHandler(
            services.news,
            services.chat,
            max_headlines=intents.max_headlines,
            summary_model=config.providers.openai.summary_model,
        ),
        INTENT_TIME: TimeHandler(clock),
        INTENT_CHAT: ChatHandler(services.chat, clock),
    }
    return IntentRouter(handlers, default_city=intents.default_city)
