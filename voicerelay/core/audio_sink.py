"""Per-connection accumulator for one audio upload (START ... END)."""

from __future__ import annotations

from typing import Optional

from ..logging_config import get_logger

logger = get_logger(__name__)


class AudioSink:
    """Collects binary frames between a START and the matching END.

    The buffer only exists while an upload is open. A new ``begin()`` always
    replaces any partial buffer, and calling ``append()``/``end()`` without an
    open upload is tolerated rather than treated as an error.
    """

    def __init__(self) -> None:
        self._buffer: Optional[bytearray] = None
        self._frames = 0

    @property
    def is_open(self) -> bool:
        return self._buffer is not None

    @property
    def size(self) -> int:
        return len(self._buffer) if self._buffer is not None else 0

    @property
    def frames(self) -> int:
        return self._frames

    def begin(self) -> None:
        if self._buffer is not None:
            logger.info(
                "Upload restarted before END; discarding partial audio",
                discarded_bytes=len(self._buffer),
                discarded_frames=self._frames,
            )
        self._buffer = bytearray()
        self._frames = 0

    def append(self, data: bytes) -> None:
        if self._buffer is None:
            logger.warning("Audio frame received outside an upload; ignoring", bytes=len(data))
            return
        self._buffer.extend(data)
        self._frames += 1

    def end(self) -> Optional[bytes]:
        if self._buffer is None:
            logger.warning("END received without START; nothing to process")
            return None
        audio = bytes(self._buffer)
        self._buffer = None
        return audio

    def discard(self) -> None:
        if self._buffer is not None:
            logger.debug("Discarding open upload", bytes=len(self._buffer), frames=self._frames)
        self._buffer = None
        self._frames = 0
