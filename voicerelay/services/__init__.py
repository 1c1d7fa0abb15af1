"""External service adapters and the bundle the relay runs with."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..config import AppConfig
from ..errors import ConfigError
from ..logging_config import get_logger
from .base import (
    ChatService,
    Component,
    NewsService,
    SessionFactory,
    SpeechService,
    TranscriptionService,
    WeatherReport,
    WeatherService,
)
from .deepgram import DeepgramSTTAdapter
from .news import NewsDataAdapter
from .openai import OpenAIChatAdapter, OpenAISTTAdapter, OpenAITTSAdapter
from .weather import OpenWeatherAdapter

logger = get_logger(__name__)


@dataclass
class Services:
    stt: TranscriptionService
    tts: SpeechService
    chat: ChatService
    weather: WeatherService
    news: NewsService

    def components(self):
        return [self.stt, self.tts, self.chat, self.weather, self.news]

    async def start(self) -> None:
        for component in self.components():
            await component.start()

    async def stop(self) -> None:
        for component in self.components():
            await component.stop()


def build_services(config: AppConfig, *, session_factory: Optional[SessionFactory] = None) -> Services:
    """Create the adapter set selected by ``config``."""
    providers = config.providers
    if config.stt_provider == "openai":
        stt: TranscriptionService = OpenAISTTAdapter(providers.openai, session_factory=session_factory)
    elif config.stt_provider == "deepgram":
        stt = DeepgramSTTAdapter(providers.deepgram, session_factory=session_factory)
    else:
        raise ConfigError(f"Unknown stt_provider: {config.stt_provider}")

    services = Services(
        stt=stt,
        tts=OpenAITTSAdapter(providers.openai, session_factory=session_factory),
        chat=OpenAIChatAdapter(providers.openai, session_factory=session_factory),
        weather=OpenWeatherAdapter(providers.weather, session_factory=session_factory),
        news=NewsDataAdapter(providers.news, session_factory=session_factory),
    )
    logger.info("Services built", stt=stt.name, tts=services.tts.name, chat=services.chat.name)
    return services


__all__ = [
    "ChatService",
    "Component",
    "DeepgramSTTAdapter",
    "NewsDataAdapter",
    "NewsService",
    "OpenAIChatAdapter",
    "OpenAISTTAdapter",
    "OpenAITTSAdapter",
    "OpenWeatherAdapter",
    "Services",
    "SpeechService",
    "TranscriptionService",
    "WeatherReport",
    "WeatherService",
    "build_services",
]
