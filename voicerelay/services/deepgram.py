"""Deepgram pre-recorded transcription adapter."""

from __future__ import annotations

import asyncio
import json
import time
import uuid
from typing import Any, Dict, Optional

import aiohttp

from ..config import DeepgramProviderConfig
from ..logging_config import get_logger
from .base import HttpComponent, SessionFactory, TranscriptionService, USER_AGENT

logger = get_logger(__name__)


class DeepgramSTTAdapter(HttpComponent, TranscriptionService):
    """Posts a complete upload to /v1/listen and returns the top alternative."""

    name = "deepgram_stt"

    def __init__(self, provider_config: DeepgramProviderConfig, *, session_factory: Optional[SessionFactory] = None):
        super().__init__(session_factory=session_factory)
        self._config = provider_config

    def _build_params(self) -> Dict[str, str]:
        params = {
            "model": self._config.model,
            "punctuate": "true",
            "smart_format": "true",
        }
        if self._config.language:
            params["language"] = self._config.language
        return params

    async def transcribe(self, audio: bytes, *, session_id: Optional[str] = None) -> str:
        if not audio:
            return ""
        if not self._config.api_key:
            raise self._failure("API key not configured")
        await self._ensure_session()

        url = self._config.base_url.rstrip("/") + "/v1/listen"
        headers = {
            "Authorization": f"Token {self._config.api_key}",
            "Content-Type": self._config.content_type,
            "User-Agent": USER_AGENT,
        }
        request_id = f"dg-stt-{uuid.uuid4().hex[:12]}"
        started_at = time.perf_counter()
        try:
            async with self._session.post(
                url,
                params=self._build_params(),
                data=audio,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self._config.timeout_sec),
            ) as resp:
                body = await resp.text()
                if resp.status >= 400:
                    logger.error(
                        "Deepgram transcription failed",
                        session_id=session_id,
                        request_id=request_id,
                        status=resp.status,
                        body_preview=body[:200],
                    )
                    raise self._failure(f"status {resp.status}", status=resp.status)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning("Deepgram request error", session_id=session_id, request_id=request_id, error=str(exc) or type(exc).__name__)
            raise self._failure(str(exc) or type(exc).__name__) from exc

        transcript = self._extract_transcript(body)
        logger.info(
            "Deepgram transcript received",
            session_id=session_id,
            request_id=request_id,
            latency_ms=round((time.perf_counter() - started_at) * 1000.0, 2),
            transcript_preview=transcript[:80],
        )
        return transcript

    def _extract_transcript(self, body: str) -> str:
        try:
            data: Any = json.loads(body)
            alternatives = data["results"]["channels"][0]["alternatives"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise self._failure(f"unexpected response payload: {exc}") from exc
        if not alternatives:
            return ""
        transcript = alternatives[0].get("transcript") or ""
        return transcript.strip()
