"""
Configuration package for the voice relay.

- loaders: YAML file loading and path resolution
- security: API key injection from the environment
- defaults: environment overrides for deployment settings
- models: pydantic models, load_config and validate_config
"""

from .models import (
    AppConfig,
    DeepgramProviderConfig,
    IntentConfig,
    LoggingConfig,
    MemoryConfig,
    NewsProviderConfig,
    OpenAIProviderConfig,
    ProvidersConfig,
    ServerConfig,
    SessionDefaultsConfig,
    StreamingConfig,
    WeatherProviderConfig,
    load_config,
    validate_config,
)

__all__ = [
    'AppConfig',
    'DeepgramProviderConfig',
    'IntentConfig',
    'LoggingConfig',
    'MemoryConfig',
    'NewsProviderConfig',
    'OpenAIProviderConfig',
    'ProvidersConfig',
    'ServerConfig',
    'SessionDefaultsConfig',
    'StreamingConfig',
    'WeatherProviderConfig',
    'load_config',
    'validate_config',
]
