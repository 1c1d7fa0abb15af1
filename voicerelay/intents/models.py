"""Types shared by the intent classifier, router and handlers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional

INTENT_WEATHER = "weather"
INTENT_NEWS = "news"
INTENT_TIME = "time"
INTENT_CHAT = "chat"

LANG_EN = "en"
LANG_TL = "tl"


@dataclass(frozen=True)
class IntentResult:
    """Classification of one transcript."""
    kind: str
    language: str = LANG_EN
    city: Optional[str] = None
    topic: Optional[str] = None
    # The user asked for general news explicitly ("lahat", "general", ...)
    explicit_general: bool = False

    @property
    def is_tagalog(self) -> bool:
        return self.language == LANG_TL


@dataclass
class TurnContext:
    """What a handler may read about the turn being answered."""
    transcript: str
    prompt: str
    history: List[Dict[str, str]] = field(default_factory=list)
    session_id: Optional[str] = None


class IntentHandler(ABC):
    """Produces the reply text for one intent kind.

    Handlers never raise for external-service faults; they answer with a
    fixed apology in the user's language instead.
    """

    @abstractmethod
    async def reply(self, intent: IntentResult, context: TurnContext) -> str:
        ...
