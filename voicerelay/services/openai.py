"""
OpenAI adapters: Whisper transcription, speech synthesis and chat completion.

All three talk to the REST API with a shared-per-adapter aiohttp session and a
caller-side timeout. The chat adapter is also used to summarize headlines.
"""

from __future__ import annotations

import asyncio
import json
import time
import uuid
from typing import Any, Dict, List, Optional

import aiohttp

from ..config import OpenAIProviderConfig
from ..logging_config import get_logger
from .base import ChatService, HttpComponent, SessionFactory, SpeechService, TranscriptionService, USER_AGENT

logger = get_logger(__name__)


def _auth_headers(api_key: Optional[str], *, json_body: bool = False) -> Dict[str, str]:
    headers = {
        "Authorization": f"Bearer {api_key}",
        "User-Agent": USER_AGENT,
    }
    if json_body:
        headers["Content-Type"] = "application/json"
    return headers


def _endpoint(base_url: str, path: str) -> str:
    return base_url.rstrip("/") + path


class OpenAISTTAdapter(HttpComponent, TranscriptionService):
    """Transcription via /audio/transcriptions (whisper-1 by default)."""

    name = "openai_stt"

    def __init__(self, provider_config: OpenAIProviderConfig, *, session_factory: Optional[SessionFactory] = None):
        super().__init__(session_factory=session_factory)
        self._config = provider_config

    async def transcribe(self, audio: bytes, *, session_id: Optional[str] = None) -> str:
        if not audio:
            return ""
        if not self._config.api_key:
            raise self._failure("API key not configured")
        await self._ensure_session()

        form = aiohttp.FormData()
        # The device uploads a complete WAV file, header included
        form.add_field("file", audio, filename="audio.wav", content_type="audio/wav")
        form.add_field("model", self._config.stt_model)
        form.add_field("response_format", "json")

        url = _endpoint(self._config.base_url, "/audio/transcriptions")
        request_id = f"openai-stt-{uuid.uuid4().hex[:12]}"
        started_at = time.perf_counter()
        try:
            async with self._session.post(
                url,
                data=form,
                headers=_auth_headers(self._config.api_key),
                timeout=aiohttp.ClientTimeout(total=self._config.timeout_sec),
            ) as resp:
                body = await resp.text()
                if resp.status >= 400:
                    logger.error(
                        "OpenAI STT request failed",
                        session_id=session_id,
                        request_id=request_id,
                        status=resp.status,
                        body_preview=body[:200],
                    )
                    raise self._failure(f"status {resp.status}", status=resp.status)
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning("OpenAI STT request error", session_id=session_id, request_id=request_id, error=str(exc) or type(exc).__name__)
            raise self._failure(str(exc) or type(exc).__name__) from exc

        transcript = self._parse_transcript(body)
        logger.info(
            "OpenAI STT transcript received",
            session_id=session_id,
            request_id=request_id,
            latency_ms=round((time.perf_counter() - started_at) * 1000.0, 2),
            transcript_preview=transcript[:80],
        )
        return transcript

    @staticmethod
    def _parse_transcript(body: str) -> str:
        try:
            data = json.loads(body)
        except ValueError:
            return body.strip()
        text = data.get("text") if isinstance(data, dict) else None
        return text.strip() if isinstance(text, str) else ""


class OpenAITTSAdapter(HttpComponent, SpeechService):
    """Speech synthesis via /audio/speech; returns the encoded file bytes."""

    name = "openai_tts"

    def __init__(self, provider_config: OpenAIProviderConfig, *, session_factory: Optional[SessionFactory] = None):
        super().__init__(session_factory=session_factory)
        self._config = provider_config

    async def synthesize(self, text: str, voice: str, *, session_id: Optional[str] = None) -> bytes:
        if not text:
            return b""
        if not self._config.api_key:
            raise self._failure("API key not configured")
        await self._ensure_session()

        payload = {
            "model": self._config.tts_model,
            "voice": voice,
            "input": text,
            "response_format": self._config.tts_format,
        }
        url = _endpoint(self._config.base_url, "/audio/speech")
        request_id = f"openai-tts-{uuid.uuid4().hex[:12]}"
        started_at = time.perf_counter()
        try:
            async with self._session.post(
                url,
                json=payload,
                headers=_auth_headers(self._config.api_key, json_body=True),
                timeout=aiohttp.ClientTimeout(total=self._config.timeout_sec),
            ) as resp:
                if resp.status >= 400:
                    body = await resp.text()
                    logger.error(
                        "OpenAI TTS synthesis failed",
                        session_id=session_id,
                        request_id=request_id,
                        status=resp.status,
                        body_preview=body[:200],
                    )
                    raise self._failure(f"status {resp.status}", status=resp.status)
                audio = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            logger.warning("OpenAI TTS request error", session_id=session_id, request_id=request_id, error=str(exc) or type(exc).__name__)
            raise self._failure(str(exc) or type(exc).__name__) from exc

        if not audio:
            raise self._failure("empty audio response")

        logger.info(
            "OpenAI TTS synthesis completed",
            session_id=session_id,
            request_id=request_id,
            voice=voice,
            latency_ms=round((time.perf_counter() - started_at) * 1000.0, 2),
            output_bytes=len(audio),
        )
        return audio


class OpenAIChatAdapter(HttpComponent, ChatService):
    """Chat Completions client. Retries once on a connection error."""

    name = "openai_chat"
    retries = 1

    def __init__(self, provider_config: OpenAIProviderConfig, *, session_factory: Optional[SessionFactory] = None):
        super().__init__(session_factory=session_factory)
        self._config = provider_config

    def _build_payload(self, messages: List[Dict[str, str]], model: Optional[str]) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": model or self._config.chat_model,
            "messages": messages,
        }
        if self._config.max_tokens:
            payload["max_tokens"] = self._config.max_tokens
        if self._config.temperature is not None:
            payload["temperature"] = self._config.temperature
        return payload

    async def complete(
        self,
        messages: List[Dict[str, str]],
        *,
        model: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> str:
        if not self._config.api_key:
            raise self._failure("API key not configured")
        await self._ensure_session()

        payload = self._build_payload(messages, model)
        url = _endpoint(self._config.base_url, "/chat/completions")
        headers = _auth_headers(self._config.api_key, json_body=True)

        logger.debug(
            "OpenAI chat completion request",
            session_id=session_id,
            model=payload["model"],
            messages=len(messages),
        )

        for attempt in range(self.retries + 1):
            started_at = time.perf_counter()
            try:
                async with self._session.post(
                    url,
                    json=payload,
                    headers=headers,
                    timeout=aiohttp.ClientTimeout(total=self._config.timeout_sec),
                ) as resp:
                    body = await resp.text()
                    if resp.status >= 400:
                        logger.error(
                            "OpenAI chat completion failed",
                            session_id=session_id,
                            status=resp.status,
                            body_preview=body[:128],
                        )
                        raise self._failure(f"status {resp.status}", status=resp.status)
                break
            except aiohttp.ClientError as exc:
                if attempt == self.retries:
                    logger.error("OpenAI chat connection error", session_id=session_id, error=str(exc))
                    raise self._failure(str(exc) or type(exc).__name__) from exc
                logger.warning("OpenAI chat connection error, retrying", session_id=session_id, error=str(exc))
            except asyncio.TimeoutError as exc:
                logger.warning("OpenAI chat completion timed out", session_id=session_id, timeout_sec=self._config.timeout_sec)
                raise self._failure("timeout") from exc

        content = self._parse_content(body)
        logger.info(
            "OpenAI chat completion received",
            session_id=session_id,
            model=payload["model"],
            latency_ms=round((time.perf_counter() - started_at) * 1000.0, 2),
            preview=content[:80],
        )
        return content

    def _parse_content(self, body: str) -> str:
        try:
            data = json.loads(body)
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise self._failure(f"unexpected response payload: {exc}") from exc
        if not isinstance(content, str) or not content.strip():
            raise self._failure("empty completion")
        return content.strip()
