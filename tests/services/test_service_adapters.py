import json

import aiohttp
import pytest

from voicerelay.config import (
    AppConfig,
    DeepgramProviderConfig,
    NewsProviderConfig,
    OpenAIProviderConfig,
    WeatherProviderConfig,
)
from voicerelay.errors import ServiceError
from voicerelay.services import (
    DeepgramSTTAdapter,
    NewsDataAdapter,
    OpenAIChatAdapter,
    OpenAISTTAdapter,
    OpenAITTSAdapter,
    OpenWeatherAdapter,
    build_services,
)


class _FakeResponse:
    def __init__(self, body: bytes, status: int = 200):
        self._body = body
        self.status = status

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def read(self):
        return self._body

    async def text(self):
        return self._body.decode("utf-8", errors="ignore")

    async def json(self, content_type="application/json"):
        return json.loads(self._body.decode("utf-8"))


class _FakeSession:
    """Replays queued responses; an exception in the queue is raised instead."""

    def __init__(self, *responses):
        self._responses = list(responses)
        self.requests = []
        self.closed = False

    def _next(self, method, url, **kwargs):
        self.requests.append({"method": method, "url": url, **kwargs})
        item = self._responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def post(self, url, json=None, params=None, headers=None, data=None, timeout=None):
        return self._next("POST", url, json=json, params=params, headers=headers, data=data, timeout=timeout)

    def get(self, url, params=None, headers=None, timeout=None):
        return self._next("GET", url, params=params, headers=headers, timeout=timeout)

    async def close(self):
        self.closed = True


def _json_response(payload, status=200):
    return _FakeResponse(json.dumps(payload).encode("utf-8"), status=status)


def _openai_config(**overrides):
    values = {"api_key": "sk-test"}
    values.update(overrides)
    return OpenAIProviderConfig(**values)


class TestOpenAISTT:
    @pytest.mark.asyncio
    async def test_transcribes_wav_upload(self):
        session = _FakeSession(_json_response({"text": "  What's the weather in Cebu?  "}))
        adapter = OpenAISTTAdapter(_openai_config(), session_factory=lambda: session)

        transcript = await adapter.transcribe(b"RIFF....WAVE", session_id="abc")

        assert transcript == "What's the weather in Cebu?"
        request = session.requests[0]
        assert request["url"] == "https://api.openai.com/v1/audio/transcriptions"
        assert request["headers"]["Authorization"] == "Bearer sk-test"
        assert isinstance(request["data"], aiohttp.FormData)
        assert isinstance(request["timeout"], aiohttp.ClientTimeout)

    @pytest.mark.asyncio
    async def test_error_status_raises_service_error(self):
        session = _FakeSession(_FakeResponse(b'{"error": "bad"}', status=500))
        adapter = OpenAISTTAdapter(_openai_config(), session_factory=lambda: session)

        with pytest.raises(ServiceError) as excinfo:
            await adapter.transcribe(b"audio")
        assert excinfo.value.status == 500
        assert excinfo.value.service == "openai_stt"

    @pytest.mark.asyncio
    async def test_connection_error_is_wrapped(self):
        session = _FakeSession(aiohttp.ClientConnectionError("refused"))
        adapter = OpenAISTTAdapter(_openai_config(), session_factory=lambda: session)

        with pytest.raises(ServiceError):
            await adapter.transcribe(b"audio")

    @pytest.mark.asyncio
    async def test_missing_key(self):
        adapter = OpenAISTTAdapter(OpenAIProviderConfig(), session_factory=_FakeSession)
        with pytest.raises(ServiceError):
            await adapter.transcribe(b"audio")

    @pytest.mark.asyncio
    async def test_empty_upload_skips_request(self):
        session = _FakeSession()
        adapter = OpenAISTTAdapter(_openai_config(), session_factory=lambda: session)

        assert await adapter.transcribe(b"") == ""
        assert session.requests == []


class TestOpenAITTS:
    @pytest.mark.asyncio
    async def test_synthesizes_with_requested_voice(self):
        session = _FakeSession(_FakeResponse(b"ID3-mp3-bytes"))
        adapter = OpenAITTSAdapter(_openai_config(), session_factory=lambda: session)

        audio = await adapter.synthesize("Hey, kamusta ka?", "nova")

        assert audio == b"ID3-mp3-bytes"
        payload = session.requests[0]["json"]
        assert payload == {
            "model": "gpt-4o-mini-tts",
            "voice": "nova",
            "input": "Hey, kamusta ka?",
            "response_format": "mp3",
        }

    @pytest.mark.asyncio
    async def test_error_status(self):
        session = _FakeSession(_FakeResponse(b"quota", status=429))
        adapter = OpenAITTSAdapter(_openai_config(), session_factory=lambda: session)

        with pytest.raises(ServiceError) as excinfo:
            await adapter.synthesize("hello", "alloy")
        assert excinfo.value.status == 429

    @pytest.mark.asyncio
    async def test_stop_closes_session(self):
        session = _FakeSession(_FakeResponse(b"mp3"))
        adapter = OpenAITTSAdapter(_openai_config(), session_factory=lambda: session)
        await adapter.synthesize("hello", "alloy")
        await adapter.stop()

        assert session.closed


class TestOpenAIChat:
    @pytest.mark.asyncio
    async def test_retries_once_on_connection_error(self):
        session = _FakeSession(
            aiohttp.ClientConnectionError("reset"),
            _json_response({"choices": [{"message": {"content": " Hi! "}}]}),
        )
        adapter = OpenAIChatAdapter(_openai_config(), session_factory=lambda: session)

        reply = await adapter.complete([{"role": "user", "content": "hello"}])

        assert reply == "Hi!"
        assert len(session.requests) == 2
        assert session.requests[1]["url"] == "https://api.openai.com/v1/chat/completions"
        assert session.requests[1]["json"]["model"] == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_gives_up_after_retry(self):
        session = _FakeSession(aiohttp.ClientConnectionError("a"), aiohttp.ClientConnectionError("b"))
        adapter = OpenAIChatAdapter(_openai_config(), session_factory=lambda: session)

        with pytest.raises(ServiceError):
            await adapter.complete([{"role": "user", "content": "hello"}])

    @pytest.mark.asyncio
    async def test_model_override_and_options(self):
        session = _FakeSession(_json_response({"choices": [{"message": {"content": "ok"}}]}))
        config = _openai_config(max_tokens=60, temperature=0.3)
        adapter = OpenAIChatAdapter(config, session_factory=lambda: session)

        await adapter.complete([{"role": "user", "content": "x"}], model="gpt-4o")

        payload = session.requests[0]["json"]
        assert payload["model"] == "gpt-4o"
        assert payload["max_tokens"] == 60
        assert payload["temperature"] == 0.3

    @pytest.mark.asyncio
    async def test_malformed_payload(self):
        session = _FakeSession(_json_response({"choices": []}))
        adapter = OpenAIChatAdapter(_openai_config(), session_factory=lambda: session)

        with pytest.raises(ServiceError):
            await adapter.complete([{"role": "user", "content": "x"}])


class TestDeepgramSTT:
    @pytest.mark.asyncio
    async def test_transcribes_upload(self):
        payload = {"results": {"channels": [{"alternatives": [{"transcript": "anong oras na", "confidence": 0.9}]}]}}
        session = _FakeSession(_json_response(payload))
        config = DeepgramProviderConfig(api_key="dg-test", language="tl")
        adapter = DeepgramSTTAdapter(config, session_factory=lambda: session)

        assert await adapter.transcribe(b"RIFF") == "anong oras na"

        request = session.requests[0]
        assert request["url"] == "https://api.deepgram.com/v1/listen"
        assert request["headers"]["Authorization"] == "Token dg-test"
        assert request["headers"]["Content-Type"] == "audio/wav"
        assert request["params"]["model"] == "nova-2-general"
        assert request["params"]["language"] == "tl"
        assert request["data"] == b"RIFF"

    @pytest.mark.asyncio
    async def test_no_alternatives_is_empty_transcript(self):
        session = _FakeSession(_json_response({"results": {"channels": [{"alternatives": []}]}}))
        adapter = DeepgramSTTAdapter(DeepgramProviderConfig(api_key="k"), session_factory=lambda: session)

        assert await adapter.transcribe(b"RIFF") == ""

    @pytest.mark.asyncio
    async def test_unauthorized(self):
        session = _FakeSession(_FakeResponse(b"{}", status=401))
        adapter = DeepgramSTTAdapter(DeepgramProviderConfig(api_key="k"), session_factory=lambda: session)

        with pytest.raises(ServiceError):
            await adapter.transcribe(b"RIFF")


class TestOpenWeather:
    @pytest.mark.asyncio
    async def test_current_conditions(self):
        payload = {"cod": 200, "weather": [{"description": "scattered clouds"}], "main": {"temp": 29.4}}
        session = _FakeSession(_json_response(payload))
        adapter = OpenWeatherAdapter(WeatherProviderConfig(api_key="owm"), session_factory=lambda: session)

        report = await adapter.current("Cebu")

        assert report.city == "Cebu"
        assert report.description == "scattered clouds"
        assert report.temperature_c == 29.4
        assert session.requests[0]["params"] == {"q": "Cebu", "units": "metric", "appid": "owm"}

    @pytest.mark.asyncio
    async def test_unknown_city_is_none(self):
        session = _FakeSession(_json_response({"cod": "404", "message": "city not found"}, status=404))
        adapter = OpenWeatherAdapter(WeatherProviderConfig(api_key="owm"), session_factory=lambda: session)

        assert await adapter.current("Atlantis") is None

    @pytest.mark.asyncio
    async def test_bad_key_is_service_error(self):
        session = _FakeSession(_json_response({"cod": 401, "message": "Invalid API key"}, status=401))
        adapter = OpenWeatherAdapter(WeatherProviderConfig(api_key="bad"), session_factory=lambda: session)

        with pytest.raises(ServiceError):
            await adapter.current("Manila")

    @pytest.mark.asyncio
    async def test_missing_key(self):
        adapter = OpenWeatherAdapter(WeatherProviderConfig(), session_factory=_FakeSession)
        with pytest.raises(ServiceError):
            await adapter.current("Manila")


class TestNewsData:
    @pytest.mark.asyncio
    async def test_topic_headlines(self):
        results = [{"title": f"Story {i}"} for i in range(7)] + [{"title": None}]
        session = _FakeSession(_json_response({"status": "success", "results": results}))
        adapter = NewsDataAdapter(NewsProviderConfig(api_key="nd"), session_factory=lambda: session)

        titles = await adapter.headlines("technology", limit=5)

        assert titles == ["Story 0", "Story 1", "Story 2", "Story 3", "Story 4"]
        assert session.requests[0]["params"] == {
            "country": "ph",
            "language": "en",
            "apikey": "nd",
            "q": "technology",
        }

    @pytest.mark.asyncio
    async def test_general_news_has_no_query(self):
        session = _FakeSession(_json_response({"status": "success", "results": []}))
        adapter = NewsDataAdapter(NewsProviderConfig(api_key="nd"), session_factory=lambda: session)

        assert await adapter.headlines() == []
        assert "q" not in session.requests[0]["params"]

    @pytest.mark.asyncio
    async def test_error_status(self):
        session = _FakeSession(_json_response({"status": "error", "results": {"message": "bad key"}}, status=401))
        adapter = NewsDataAdapter(NewsProviderConfig(api_key="nd"), session_factory=lambda: session)

        with pytest.raises(ServiceError):
            await adapter.headlines("sports")


class TestBuildServices:
    def test_default_uses_openai_transcription(self):
        services = build_services(AppConfig())
        assert isinstance(services.stt, OpenAISTTAdapter)
        assert isinstance(services.tts, OpenAITTSAdapter)
        assert len(services.components()) == 5

    def test_deepgram_transcription(self):
        services = build_services(AppConfig(stt_provider="deepgram"))
        assert isinstance(services.stt, DeepgramSTTAdapter)
