"""Intent classification and reply handlers (weather, news, time, chat)."""

from .chat import ChatHandler
from .classifier import INTENT_RULES, NEWS_TOPICS, classify, detect_topic, extract_city
from .clock import LocalClock, TimeHandler
from .models import (
    INTENT_CHAT,
    INTENT_NEWS,
    INTENT_TIME,
    INTENT_WEATHER,
    LANG_EN,
    LANG_TL,
    IntentHandler,
    IntentResult,
    TurnContext,
)
from .news import NewsHandler
from .router import IntentRouter, RoutedReply, build_router
from .weather import WeatherHandler

__all__ = [
    "ChatHandler",
    "INTENT_CHAT",
    "INTENT_NEWS",
    "INTENT_RULES",
    "INTENT_TIME",
    "INTENT_WEATHER",
    "IntentHandler",
    "IntentResult",
    "IntentRouter",
    "LANG_EN",
    "LANG_TL",
    "LocalClock",
    "NEWS_TOPICS",
    "NewsHandler",
    "RoutedReply",
    "TimeHandler",
    "TurnContext",
    "WeatherHandler",
    "build_router",
    "classify",
    "detect_topic",
    "extract_city",
]
