"""
Reply pipeline: one finished upload in, one spoken reply out.

transcribe -> transcript notice -> route -> store exchange -> reply notice ->
synthesize -> chunked audio + end marker.

Each run ends with reply audio, an error notice, or a lost connection. The
pipeline never raises for external-service or transport faults.
"""

import json
import time
from typing import Awaitable, Callable, Optional, Union

from websockets.exceptions import ConnectionClosed

from .core.chunked_sender import ChunkedSender
from .core.conversation_store import ConversationStore
from .core.models import Session
from .errors import AudioDeliveryError, ServiceError
from .intents import IntentRouter, TurnContext
from .logging_config import get_logger
from .services import SpeechService, TranscriptionService

logger = get_logger(__name__)

SendFn = Callable[[Union[bytes, str]], Awaitable[None]]

OUTCOME_REPLIED = "replied"
OUTCOME_NO_SPEECH = "no_speech"
OUTCOME_STT_FAILED = "stt_failed"
OUTCOME_TTS_FAILED = "tts_failed"
OUTCOME_DISCONNECTED = "disconnected"

NO_SPEECH_MESSAGE = "no speech detected"
STT_FAILED_MESSAGE = "transcription failed"
TTS_FAILED_MESSAGE = "TTS generation failed"


def error_notice(msg: str) -> str:
    return json.dumps({"type": "error", "msg": msg})


class ReplyPipeline:
    def __init__(
        self,
        stt: TranscriptionService,
        tts: SpeechService,
        router: IntentRouter,
        store: ConversationStore,
        *,
        chunk_size: int = 4096,
        chunk_delay_ms: int = 0,
    ):
        self.stt = stt
        self.tts = tts
        self.router = router
        self.store = store
        self.chunk_size = chunk_size
        self.chunk_delay_ms = chunk_delay_ms

    async def _send_text(self, send: SendFn, text: str) -> bool:
        try:
            await send(text)
            return True
        except (ConnectionClosed, OSError) as exc:
            logger.debug("Control message not delivered", preview=text[:40], error=str(exc))
            return False

    async def _send_json(self, send: SendFn, payload: dict) -> bool:
        return await self._send_text(send, json.dumps(payload, ensure_ascii=False))

    async def speak(self, send: SendFn, text: str, voice: str, *, session_id: Optional[str] = None) -> str:
        """Synthesize ``text`` and stream it to the device.

        Returns:
            OUTCOME_REPLIED, OUTCOME_TTS_FAILED or OUTCOME_DISCONNECTED
        """
        try:
            audio = await self.tts.synthesize(text, voice, session_id=session_id)
        except ServiceError as exc:
            logger.error("Speech synthesis failed", session_id=session_id, voice=voice, error=str(exc))
            await self._send_text(send, error_notice(TTS_FAILED_MESSAGE))
            return OUTCOME_TTS_FAILED

        sender = ChunkedSender(send, chunk_size=self.chunk_size, chunk_delay_ms=self.chunk_delay_ms)
        try:
            report = await sender.send(audio)
        except AudioDeliveryError as exc:
            logger.warning("Reply audio not fully delivered", session_id=session_id, frames_sent=exc.frames_sent)
            return OUTCOME_DISCONNECTED

        logger.info("Reply audio sent", session_id=session_id, frames=report.frames, bytes=report.bytes)
        return OUTCOME_REPLIED

    async def process(self, send: SendFn, session: Session, audio: bytes) -> str:
        """Answer one finished upload. Returns the outcome name."""
        started_at = time.perf_counter()
        session_id = session.session_id

        try:
            transcript = await self.stt.transcribe(audio, session_id=session_id)
        except ServiceError as exc:
            logger.error("Transcription failed", session_id=session_id, audio_bytes=len(audio), error=str(exc))
            await self._send_text(send, error_notice(STT_FAILED_MESSAGE))
            return OUTCOME_STT_FAILED

        transcript = transcript.strip()
        if not await self._send_json(send, {"type": "transcript", "text": transcript}):
            logger.info("Device gone before transcript was sent", session_id=session_id)
        if not transcript:
            logger.info("Empty transcript; nothing to answer", session_id=session_id, audio_bytes=len(audio))
            await self._send_text(send, error_notice(NO_SPEECH_MESSAGE))
            return OUTCOME_NO_SPEECH

        logger.debug("Transcript", session_id=session_id, text=transcript)

        context = TurnContext(
            transcript=transcript,
            prompt=session.config.assistant_prompt,
            history=self.store.snapshot(),
            session_id=session_id,
        )
        routed = await self.router.route(context)
        await self.store.append_exchange(transcript, routed.text)

        logger.debug("Reply", session_id=session_id, intent=routed.intent.kind, text=routed.text)
        await self._send_json(send, {"type": "reply", "text": routed.text})

        outcome = await self.speak(send, routed.text, session.config.assistant_voice, session_id=session_id)

        session.utterances += 1
        session.last_turn_latency_s = time.perf_counter() - started_at
        logger.info(
            "Utterance processed",
            session_id=session_id,
            intent=routed.intent.kind,
            outcome=outcome,
            latency_ms=round(session.last_turn_latency_s * 1000.0, 2),
        )
        return outcome
