"""
Core data models for the voice relay.

Typed structures for per-connection session state and conversation turns.
"""

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict


class ConnectionState(str, Enum):
    """States of one device connection."""
    AWAITING_CONFIG = "awaiting_config"
    IDLE = "idle"
    RECEIVING_AUDIO = "receiving_audio"
    PROCESSING = "processing"
    CLOSED = "closed"


ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLES = (ROLE_USER, ROLE_ASSISTANT)


@dataclass(frozen=True)
class ConversationTurn:
    """One utterance in the conversation log."""
    role: str
    content: str

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unknown conversation role: {self.role!r}")
        if not isinstance(self.content, str):
            raise ValueError("Conversation content must be text")

    def to_message(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class SessionConfig:
    """Voice and prompt for one connection; set at most once by the handshake."""
    assistant_voice: str
    assistant_prompt: str
    configured: bool = False

    def apply(self, voice=None, prompt=None) -> bool:
        """Apply handshake values; returns False when already configured."""
        if self.configured:
            return False
        if isinstance(voice, str) and voice.strip():
            self.assistant_voice = voice.strip()
        if isinstance(prompt, str) and prompt.strip():
            self.assistant_prompt = prompt.strip()
        self.configured = True
        return True


@dataclass
class Session:
    """Server-side state of one device connection."""
    config: SessionConfig
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    peer: str = "unknown"
    state: ConnectionState = ConnectionState.AWAITING_CONFIG
    created_at: float = field(default_factory=time.time)
    utterances: int = 0
    # Latency of the last completed utterance (seconds)
    last_turn_latency_s: float = 0.0
