"""Chunked, optionally paced delivery of reply audio to a device."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterator, Union

from websockets.exceptions import ConnectionClosed

from ..errors import AudioDeliveryError
from ..logging_config import get_logger
from ..metrics import BYTES_TX

logger = get_logger(__name__)

AUDIO_END_MARKER = json.dumps({"type": "audio_end"})

SendFn = Callable[[Union[bytes, str]], Awaitable[None]]


@dataclass(frozen=True)
class DeliveryReport:
    frames: int
    bytes: int


def iter_chunks(payload: bytes, chunk_size: int) -> Iterator[bytes]:
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    for idx in range(0, len(payload), chunk_size):
        yield payload[idx : idx + chunk_size]


class ChunkedSender:
    """Sends a byte buffer as fixed-size binary frames plus one end marker.

    The device plays audio out of a small buffer, so frames never exceed
    ``chunk_size`` and an optional ``chunk_delay_ms`` pause is inserted between
    frames. The transport gives no end-to-end flow control of its own.
    """

    def __init__(self, send: SendFn, *, chunk_size: int = 4096, chunk_delay_ms: int = 0):
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._send = send
        self.chunk_size = chunk_size
        self.chunk_delay_s = max(0, chunk_delay_ms) / 1000.0

    async def send(self, payload: bytes) -> DeliveryReport:
        """Send ``payload`` then the end marker.

        Raises:
            AudioDeliveryError: a frame or the marker could not be sent; the
                remaining frames are abandoned.
        """
        frames = 0
        sent_bytes = 0
        for chunk in iter_chunks(payload or b"", self.chunk_size):
            if frames and self.chunk_delay_s:
                await asyncio.sleep(self.chunk_delay_s)
            try:
                await self._send(chunk)
            except (ConnectionClosed, OSError) as exc:
                logger.warning(
                    "Audio delivery aborted",
                    frames_sent=frames,
                    bytes_sent=sent_bytes,
                    total_bytes=len(payload),
                    error=str(exc),
                )
                raise AudioDeliveryError(f"audio frame send failed: {exc}", frames_sent=frames) from exc
            frames += 1
            sent_bytes += len(chunk)
            BYTES_TX.inc(len(chunk))

        try:
            await self._send(AUDIO_END_MARKER)
        except (ConnectionClosed, OSError) as exc:
            logger.warning("Audio end marker not delivered", frames_sent=frames, error=str(exc))
            raise AudioDeliveryError(f"end marker send failed: {exc}", frames_sent=frames) from exc

        logger.debug("Audio delivered", frames=frames, bytes=sent_bytes, chunk_size=self.chunk_size)
        return DeliveryReport(frames=frames, bytes=sent_bytes)
