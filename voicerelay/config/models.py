"""
Configuration models for the voice relay.

Pydantic v2 models describing the YAML configuration, plus `load_config`
which runs the load → inject secrets → apply defaults → validate sequence.
"""

import os
from typing import List, Optional

from pydantic import BaseModel, Field

from ..logging_config import get_logger
from .defaults import apply_memory_defaults, apply_provider_defaults, apply_server_defaults
from .loaders import DEFAULT_CONFIG_PATH, load_yaml_with_env_expansion, resolve_config_path
from .security import inject_provider_api_keys

logger = get_logger(__name__)

DEFAULT_GREETINGS = [
    "Hey, kamusta ka?",
    "Yo! Need any help?",
    "What's up? Na-miss mo ba ako?",
    "Hey there! What can I do for you today?",
    "Sup! Wanna talk about something cool?",
    "Hey hey! Do you need help with anything?",
]

STT_PROVIDERS = ("openai", "deepgram")


class ServerConfig(BaseModel):
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    health_path: str = Field(default="/health")
    # Largest inbound WebSocket message; device frames are small but WAV headers vary
    max_message_bytes: int = Field(default=1024 * 1024)
    ping_interval_sec: Optional[float] = Field(default=20.0)
    ping_timeout_sec: Optional[float] = Field(default=20.0)
    metrics_port: int = Field(default=0)  # 0 disables the Prometheus endpoint


class SessionDefaultsConfig(BaseModel):
    handshake_timeout_ms: int = Field(default=2000)
    default_voice: str = Field(default="alloy")
    default_prompt: str = Field(default="You are a helpful AI assistant.")
    greetings: List[str] = Field(default_factory=lambda: list(DEFAULT_GREETINGS))


class StreamingConfig(BaseModel):
    chunk_size: int = Field(default=4096)
    chunk_delay_ms: int = Field(default=0)


class MemoryConfig(BaseModel):
    path: str = Field(default="data/conversation.json")
    max_history: int = Field(default=5)  # exchanges; the log holds 2x this many turns
    scope: str = Field(default="process")  # process | connection


class IntentConfig(BaseModel):
    default_city: str = Field(default="Manila")
    timezone: str = Field(default="Asia/Manila")
    max_headlines: int = Field(default=5)


class OpenAIProviderConfig(BaseModel):
    api_key: Optional[str] = None
    base_url: str = Field(default="https://api.openai.com/v1")
    stt_model: str = Field(default="whisper-1")
    tts_model: str = Field(default="gpt-4o-mini-tts")
    tts_format: str = Field(default="mp3")
    chat_model: str = Field(default="gpt-4o-mini")
    summary_model: Optional[str] = None  # falls back to chat_model
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    timeout_sec: float = Field(default=20.0)


class DeepgramProviderConfig(BaseModel):
    api_key: Optional[str] = None
    base_url: str = Field(default="https://api.deepgram.com")
    model: str = Field(default="nova-2-general")
    language: Optional[str] = None
    content_type: str = Field(default="audio/wav")
    timeout_sec: float = Field(default=15.0)


class WeatherProviderConfig(BaseModel):
    api_key: Optional[str] = None
    base_url: str = Field(default="https://api.openweathermap.org/data/2.5/weather")
    units: str = Field(default="metric")
    timeout_sec: float = Field(default=8.0)


class NewsProviderConfig(BaseModel):
    api_key: Optional[str] = None
    base_url: str = Field(default="https://newsdata.io/api/1/news")
    country: str = Field(default="ph")
    language: str = Field(default="en")
    timeout_sec: float = Field(default=8.0)


class ProvidersConfig(BaseModel):
    openai: OpenAIProviderConfig = Field(default_factory=OpenAIProviderConfig)
    deepgram: DeepgramProviderConfig = Field(default_factory=DeepgramProviderConfig)
    weather: WeatherProviderConfig = Field(default_factory=WeatherProviderConfig)
    news: NewsProviderConfig = Field(default_factory=NewsProviderConfig)


class LoggingConfig(BaseModel):
    level: str = Field(default="info")  # debug|info|warning|error|critical


class AppConfig(BaseModel):
    stt_provider: str = Field(default="openai")
    server: ServerConfig = Field(default_factory=ServerConfig)
    session: SessionDefaultsConfig = Field(default_factory=SessionDefaultsConfig)
    streaming: StreamingConfig = Field(default_factory=StreamingConfig)
    memory: MemoryConfig = Field(default_factory=MemoryConfig)
    intents: IntentConfig = Field(default_factory=IntentConfig)
    providers: ProvidersConfig = Field(default_factory=ProvidersConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(path: str = DEFAULT_CONFIG_PATH) -> AppConfig:
    """
    Load and validate configuration from a YAML file.

    Args:
        path: Path to the YAML file (absolute or relative to the project root)

    Returns:
        Validated AppConfig instance

    Raises:
        FileNotFoundError: If the configuration file doesn't exist
        yaml.YAMLError: If YAML parsing fails
        pydantic.ValidationError: If values have the wrong shape
    """
    path = resolve_config_path(path)
    config_data = load_yaml_with_env_expansion(path)

    inject_provider_api_keys(config_data)

    apply_server_defaults(config_data)
    apply_memory_defaults(config_data)
    apply_provider_defaults(config_data)

    config = AppConfig(**config_data)
    logger.debug("Configuration loaded", path=path, stt_provider=config.stt_provider)
    return config


def validate_config(config: AppConfig) -> tuple[list[str], list[str]]:
    """Check a loaded configuration before the server starts.

    Returns:
        (errors, warnings): errors block startup, warnings are only logged
    """
    errors = []
    warnings = []

    if not config.providers.openai.api_key:
        errors.append("OPENAI_API_KEY is not set (needed for speech synthesis and chat)")

    if config.stt_provider not in STT_PROVIDERS:
        errors.append(f"Unknown stt_provider: {config.stt_provider} (must be one of {', '.join(STT_PROVIDERS)})")
    elif config.stt_provider == "deepgram" and not config.providers.deepgram.api_key:
        errors.append("stt_provider is deepgram but DEEPGRAM_API_KEY is not set")

    port = config.server.port
    if port < 0 or port > 65535:
        errors.append(f"Server port {port} out of valid range (0-65535)")

    if config.streaming.chunk_size <= 0:
        errors.append(f"streaming.chunk_size must be positive, got {config.streaming.chunk_size}")

    if config.memory.scope not in ("process", "connection"):
        errors.append(f"memory.scope must be 'process' or 'connection', got {config.memory.scope}")

    if config.memory.max_history < 1:
        errors.append(f"memory.max_history must be at least 1, got {config.memory.max_history}")

    if not config.session.greetings:
        warnings.append("No greetings configured; devices will not hear a greeting on connect")

    if not config.providers.weather.api_key:
        warnings.append("WEATHER_API_KEY is not set; weather questions will get an apology")

    if not config.providers.news.api_key:
        warnings.append("NEWSDATA_API_KEY is not set; news questions will get an apology")

    if config.server.host == "0.0.0.0":
        warnings.append("Server bound to 0.0.0.0; devices are not authenticated, keep it on a trusted network")

    if os.getenv('LOG_LEVEL', config.logging.level).lower() == 'debug':
        warnings.append("Debug logging enabled (transcripts and replies are logged verbatim)")

    return errors, warnings
