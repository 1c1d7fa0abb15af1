"""
Per-connection state machine.

    AwaitingConfig -> Idle -> ReceivingAudio -> Processing -> Idle ... -> Closed

The receive loop keeps reading while a reply is being produced so a close is
noticed promptly; frames and control words that arrive while Processing are
ignored.
"""

import asyncio
import json
import random
from typing import Any, Callable, Dict, List, Optional, Union

from websockets.exceptions import ConnectionClosed

from .config import SessionDefaultsConfig
from .core.audio_sink import AudioSink
from .core.models import ConnectionState, Session
from .logging_config import get_logger, set_correlation_id
from .metrics import BYTES_RX
from .pipeline import ReplyPipeline, error_notice

logger = get_logger(__name__)

CMD_START = "START"
CMD_END = "END"
CMD_SET_CONFIG = "SET_CONFIG"
CONFIG_ACK = "CONFIG_OK"
PROCESSING_NOTICE = "PROCESSING"

Message = Union[str, bytes]


def parse_config_message(message: Message) -> Optional[Dict[str, Any]]:
    """Return the SET_CONFIG payload, or None for anything else."""
    if not isinstance(message, str):
        return None
    try:
        payload = json.loads(message)
    except ValueError:
        return None
    if isinstance(payload, dict) and payload.get("cmd") == CMD_SET_CONFIG:
        return payload
    return None


class ConnectionLifecycle:
    def __init__(
        self,
        websocket,
        session: Session,
        pipeline: ReplyPipeline,
        defaults: SessionDefaultsConfig,
        *,
        choose_greeting: Callable[[List[str]], str] = random.choice,
    ):
        self.websocket = websocket
        self.session = session
        self.pipeline = pipeline
        self.defaults = defaults
        self.sink = AudioSink()
        self._choose_greeting = choose_greeting
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> ConnectionState:
        return self.session.state

    def _transition(self, new_state: ConnectionState) -> None:
        if self.session.state == new_state:
            return
        logger.debug("State change", session_id=self.session.session_id, old=self.session.state.value, new=new_state.value)
        self.session.state = new_state

    async def run(self) -> None:
        set_correlation_id(self.session.session_id)
        logger.info("Device connected", session_id=self.session.session_id, peer=self.session.peer)
        try:
            pending = await self.handshake()
            if self.state == ConnectionState.CLOSED:
                return
            self._transition(ConnectionState.IDLE)
            await self.greet()
            if pending is not None:
                await self.handle(pending)
            while True:
                message = await self.websocket.recv()
                await self.handle(message)
        except ConnectionClosed as exc:
            logger.info("Device disconnected", session_id=self.session.session_id, code=getattr(exc.rcvd, "code", None))
        finally:
            await self.close()

    async def handshake(self) -> Optional[Message]:
        """Wait once for SET_CONFIG, bounded by the handshake timeout.

        Returns:
            A first message that was not a config request, to be handled after
            the greeting; None otherwise.
        """
        timeout = self.defaults.handshake_timeout_ms / 1000.0
        try:
            message = await asyncio.wait_for(self.websocket.recv(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.info("No config received; using defaults", voice=self.session.config.assistant_voice)
            return None
        except ConnectionClosed:
            logger.info("Device closed during handshake", session_id=self.session.session_id)
            self._transition(ConnectionState.CLOSED)
            return None

        payload = parse_config_message(message)
        if payload is None:
            logger.info("First message was not a config request; using defaults")
            return message

        self.session.config.apply(voice=payload.get("voice"), prompt=payload.get("prompt"))
        logger.info(
            "Session configured",
            voice=self.session.config.assistant_voice,
            custom_prompt=bool(payload.get("prompt")),
        )
        await self.websocket.send(CONFIG_ACK)
        return None

    async def greet(self) -> None:
        greetings = self.defaults.greetings
        if not greetings:
            return
        greeting = self._choose_greeting(greetings)
        logger.info("Sending greeting", greeting=greeting, voice=self.session.config.assistant_voice)
        await self.pipeline.speak(
            self.websocket.send,
            greeting,
            self.session.config.assistant_voice,
            session_id=self.session.session_id,
        )

    async def handle(self, message: Message) -> None:
        if isinstance(message, (bytes, bytearray, memoryview)):
            self._handle_audio(bytes(message))
            return

        text = message.strip()
        if text == CMD_START:
            self._handle_start()
        elif text == CMD_END:
            await self._handle_end()
        elif parse_config_message(text) is not None:
            logger.info("Config already settled; SET_CONFIG ignored", state=self.state.value)
        else:
            logger.info("Unrecognized message ignored", state=self.state.value, preview=text[:80])

    def _handle_audio(self, data: bytes) -> None:
        BYTES_RX.inc(len(data))
        if self.state == ConnectionState.RECEIVING_AUDIO:
            self.sink.append(data)
        else:
            logger.debug("Audio frame ignored", state=self.state.value, bytes=len(data))

    def _handle_start(self) -> None:
        if self.state == ConnectionState.PROCESSING:
            logger.info("START ignored while a reply is in progress")
            return
        self.sink.begin()
        self._transition(ConnectionState.RECEIVING_AUDIO)

    async def _handle_end(self) -> None:
        if self.state != ConnectionState.RECEIVING_AUDIO:
            logger.info("END ignored", state=self.state.value)
            return
        audio = self.sink.end() or b""
        logger.info("Upload complete", bytes=len(audio))
        self._transition(ConnectionState.PROCESSING)
        await self.websocket.send(PROCESSING_NOTICE)
        self._task = asyncio.create_task(self._process(audio))

    async def _process(self, audio: bytes) -> None:
        try:
            await self.pipeline.process(self.websocket.send, self.session, audio)
        except Exception:
            logger.error("Reply pipeline crashed", session_id=self.session.session_id, exc_info=True)
            try:
                await self.websocket.send(error_notice("processing failed"))
            except ConnectionClosed:
                logger.debug("Device gone before error notice")
        finally:
            if self.state == ConnectionState.PROCESSING:
                self._transition(ConnectionState.IDLE)

    async def wait_idle(self) -> None:
        """Wait for an in-flight reply, if any."""
        if self._task is not None:
            await self._task

    async def close(self) -> None:
        self.sink.discard()
        self._transition(ConnectionState.CLOSED)
        task = self._task
        if task is not None and not task.done():
            logger.debug("Waiting for in-flight reply to finish", session_id=self.session.session_id)
            await task
        logger.info("Session closed", session_id=self.session.session_id, utterances=self.session.utterances)
