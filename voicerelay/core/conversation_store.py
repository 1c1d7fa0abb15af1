"""
Conversation memory persistence layer.

Keeps the most recent exchanges as an ordered list of turns and rewrites a
JSON file after every mutation.
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

from ..logging_config import get_logger
from .models import ROLE_ASSISTANT, ROLE_USER, ConversationTurn

logger = get_logger(__name__)

DEFAULT_MAX_HISTORY = 5


class ConversationStore:
    """Bounded conversation log, persisted by full rewrite.

    The log holds at most ``2 * max_history`` turns; the oldest turns are
    dropped first. All mutations go through one ``asyncio.Lock`` so concurrent
    connections sharing the store cannot interleave their read-trim-write
    sequences. With ``path=None`` the store lives in memory only.
    """

    def __init__(self, path: Optional[str] = None, max_history: int = DEFAULT_MAX_HISTORY):
        if max_history < 1:
            raise ValueError(f"max_history must be at least 1, got {max_history}")
        self._path = Path(path) if path else None
        self.max_history = max_history
        self._turns: List[ConversationTurn] = []
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @property
    def max_turns(self) -> int:
        return self.max_history * 2

    def __len__(self) -> int:
        return len(self._turns)

    def load(self) -> int:
        """
        Restore the persisted log.

        A missing file starts an empty log. An unreadable or malformed file is
        logged and also starts an empty log; loading never raises.

        Returns:
            Number of turns restored
        """
        self._turns = []
        if self._path is None:
            return 0
        if not self._path.exists():
            logger.info("No saved conversation; starting empty", path=str(self._path))
            return 0

        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            turns = self._parse(raw)
        except (OSError, ValueError) as e:
            logger.warning("Saved conversation unreadable; starting empty", path=str(self._path), error=str(e))
            return 0

        self._turns = turns[-self.max_turns:]
        logger.info("Loaded previous conversation", path=str(self._path), turns=len(self._turns))
        return len(self._turns)

    @staticmethod
    def _parse(raw) -> List[ConversationTurn]:
        if not isinstance(raw, list):
            raise ValueError(f"expected a JSON array, got {type(raw).__name__}")
        turns = []
        for entry in raw:
            if not isinstance(entry, dict):
                raise ValueError("conversation entries must be objects")
            turns.append(ConversationTurn(role=entry.get("role"), content=entry.get("content")))
        return turns

    def snapshot(self) -> List[Dict[str, str]]:
        """Current turns, oldest first, as chat-completion messages."""
        return [turn.to_message() for turn in self._turns]

    def turns(self) -> List[ConversationTurn]:
        return list(self._turns)

    async def append(self, turn: ConversationTurn) -> None:
        await self.extend([turn])

    async def append_exchange(self, user_text: str, reply_text: str) -> None:
        """Record one user utterance and the assistant's reply."""
        await self.extend([
            ConversationTurn(role=ROLE_USER, content=user_text),
            ConversationTurn(role=ROLE_ASSISTANT, content=reply_text),
        ])

    async def extend(self, turns: List[ConversationTurn]) -> None:
        async with self._lock:
            updated = self._turns + list(turns)
            if len(updated) > self.max_turns:
                updated = updated[-self.max_turns:]
            self._turns = updated
            await self._persist(updated)

    async def clear(self) -> None:
        async with self._lock:
            self._turns = []
            await self._persist([])

    async def _persist(self, turns: List[ConversationTurn]) -> bool:
        if self._path is None:
            return False
        payload = [turn.to_message() for turn in turns]
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._write_atomic, payload)
        except OSError as e:
            logger.error("Failed to save conversation", path=str(self._path), error=str(e))
            return False
        logger.debug("Conversation saved", path=str(self._path), turns=len(payload))
        return True

    def _write_atomic(self, payload: List[Dict[str, str]]) -> None:
        directory = self._path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self._path.name}.", suffix=".tmp", dir=str(directory))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise
