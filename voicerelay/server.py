"""WebSocket server hosting one ConnectionLifecycle per device connection.

Devices connect to any path on the configured port. A plain HTTP GET on the
health path (no WebSocket upgrade) is answered with 200 so hosted platforms can
probe the process.
"""

from __future__ import annotations

import http
from typing import Dict, Optional

from websockets.asyncio.server import Server, ServerConnection, serve

from .config import AppConfig
from .core.conversation_store import ConversationStore
from .core.models import Session, SessionConfig
from .intents import IntentRouter
from .lifecycle import ConnectionLifecycle
from .logging_config import get_logger, set_correlation_id
from .metrics import ACTIVE_CONNECTIONS
from .pipeline import ReplyPipeline
from .services import Services

logger = get_logger(__name__)


class RelayServer:
    """Accepts device connections and wires each one to the shared services."""

    def __init__(
        self,
        config: AppConfig,
        services: Services,
        router: IntentRouter,
        store: ConversationStore,
    ) -> None:
        self.config = config
        self.host = config.server.host
        self.port = config.server.port
        self.services = services
        self.router = router
        self.store = store

        self._server: Optional[Server] = None
        self._sessions: Dict[str, Session] = {}

    @property
    def active_sessions(self) -> int:
        return len(self._sessions)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self) -> None:
        if self._server:
            logger.warning("Relay server already running")
            return

        server_cfg = self.config.server
        self._server = await serve(
            self._handle_connection,
            self.host,
            self.port,
            process_request=self._process_request,
            max_size=server_cfg.max_message_bytes,
            ping_interval=server_cfg.ping_interval_sec,
            ping_timeout=server_cfg.ping_timeout_sec,
        )

        sockets = list(self._server.sockets or [])
        if sockets:
            # update port in case OS picked an ephemeral port (port=0)
            self.port = sockets[0].getsockname()[1]

        logger.info(
            "Relay server listening",
            host=self.host,
            port=self.port,
            health_path=server_cfg.health_path,
            memory_scope=self.config.memory.scope,
        )

    async def stop(self) -> None:
        if self._server:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

        ACTIVE_CONNECTIONS.set(0)
        logger.info("Relay server stopped", open_sessions=len(self._sessions))
        self._sessions.clear()

    # ------------------------------------------------------------------
    # Connection helpers
    # ------------------------------------------------------------------
    def _process_request(self, connection: ServerConnection, request):
        upgrade = request.headers.get("Upgrade", "")
        if request.path == self.config.server.health_path and upgrade.lower() != "websocket":
            return connection.respond(http.HTTPStatus.OK, "Voice relay is running\n")
        return None

    def _store_for_connection(self) -> ConversationStore:
        if self.config.memory.scope == "connection":
            return ConversationStore(path=None, max_history=self.config.memory.max_history)
        return self.store

    def new_session(self, peer: str = "unknown") -> Session:
        defaults = self.config.session
        return Session(
            config=SessionConfig(
                assistant_voice=defaults.default_voice,
                assistant_prompt=defaults.default_prompt,
            ),
            peer=peer,
        )

    def new_lifecycle(self, websocket, session: Session) -> ConnectionLifecycle:
        pipeline = ReplyPipeline(
            self.services.stt,
            self.services.tts,
            self.router,
            self._store_for_connection(),
            chunk_size=self.config.streaming.chunk_size,
            chunk_delay_ms=self.config.streaming.chunk_delay_ms,
        )
        return ConnectionLifecycle(websocket, session, pipeline, self.config.session)

    async def _handle_connection(self, websocket: ServerConnection) -> None:
        peer = websocket.remote_address
        session = self.new_session(peer=str(peer) if peer else "unknown")
        set_correlation_id(session.session_id)

        self._sessions[session.session_id] = session
        ACTIVE_CONNECTIONS.inc()
        try:
            await self.new_lifecycle(websocket, session).run()
        finally:
            self._sessions.pop(session.session_id, None)
            ACTIVE_CONNECTIONS.dec()
