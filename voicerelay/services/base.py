"""
Contracts for the external collaborators the relay calls.

Every adapter is a single-shot, time-bounded HTTP call. Failures of any kind
(transport error, timeout, error status, unusable payload) surface as
``ServiceError``; callers never see raw aiohttp exceptions.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import aiohttp

from ..errors import ServiceError
from ..metrics import SERVICE_FAILURES

SessionFactory = Callable[[], aiohttp.ClientSession]

USER_AGENT = "Voice-Relay/1.0"


@dataclass(frozen=True)
class WeatherReport:
    city: str
    description: str
    temperature_c: float


class Component(ABC):
    """Lifecycle shared by all adapters."""

    name = "component"

    async def start(self) -> None:
        return

    async def stop(self) -> None:
        return


class HttpComponent(Component):
    """Adapter owning one lazily created aiohttp session."""

    def __init__(self, *, session_factory: Optional[SessionFactory] = None):
        self._session_factory = session_factory
        self._session: Optional[aiohttp.ClientSession] = None

    async def stop(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _ensure_session(self) -> None:
        if self._session and not self._session.closed:
            return
        factory = self._session_factory or aiohttp.ClientSession
        self._session = factory()

    def _failure(self, message: str, *, status: Optional[int] = None) -> ServiceError:
        SERVICE_FAILURES.labels(service=self.name).inc()
        return ServiceError(self.name, message, status=status)


class TranscriptionService(Component):
    @abstractmethod
    async def transcribe(self, audio: bytes, *, session_id: Optional[str] = None) -> str:
        """Return the transcript of a complete upload ('' when nothing was heard)."""


class SpeechService(Component):
    @abstractmethod
    async def synthesize(self, text: str, voice: str, *, session_id: Optional[str] = None) -> bytes:
        """Return encoded audio for ``text`` spoken with ``voice``."""


class ChatService(Component):
    @abstractmethod
    async def complete(
        self,
        messages: List[Dict[str, str]],
        *,
        model: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> str:
        """Return the assistant text for an ordered list of chat messages."""


class WeatherService(Component):
    @abstractmethod
    async def current(self, city: str) -> Optional[WeatherReport]:
        """Current conditions for ``city``; None when the city is unknown."""


class NewsService(Component):
    @abstractmethod
    async def headlines(self, topic: str = "", limit: int = 5) -> List[str]:
        """Up to ``limit`` headline titles, optionally filtered by ``topic``."""
