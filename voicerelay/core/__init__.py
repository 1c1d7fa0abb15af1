"""Session protocol building blocks: upload buffering, chunked delivery, memory."""

from .audio_sink import AudioSink
from .chunked_sender import AUDIO_END_MARKER, ChunkedSender, DeliveryReport
from .conversation_store import ConversationStore
from .models import ConnectionState, ConversationTurn, Session, SessionConfig

__all__ = [
    "AUDIO_END_MARKER",
    "AudioSink",
    "ChunkedSender",
    "ConnectionState",
    "ConversationStore",
    "ConversationTurn",
    "DeliveryReport",
    "Session",
    "SessionConfig",
]
