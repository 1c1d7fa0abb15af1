"""
Security-critical configuration injection.

API keys are read from environment variables only. Any key found in the YAML
file is discarded so credentials never live in version-controlled config.
"""

import os
from typing import Any, Dict


# provider section -> environment variable holding its API key
PROVIDER_KEY_ENV = {
    'openai': 'OPENAI_API_KEY',
    'deepgram': 'DEEPGRAM_API_KEY',
    'weather': 'WEATHER_API_KEY',
    'news': 'NEWSDATA_API_KEY',
}


def _is_nonempty_string(val: Any) -> bool:
    return isinstance(val, str) and val.strip() != ""


def inject_provider_api_keys(config_data: Dict[str, Any]) -> None:
    """
    Overwrite provider API keys with values from the environment.

    Environment variables:
    - OPENAI_API_KEY: transcription, speech synthesis, chat and news summaries
    - DEEPGRAM_API_KEY: optional alternative transcription backend
    - WEATHER_API_KEY: OpenWeatherMap
    - NEWSDATA_API_KEY: NewsData.io

    Args:
        config_data: Configuration dictionary to modify in-place
    """
    providers = config_data.get('providers')
    if not isinstance(providers, dict):
        providers = {}

    for section, env_name in PROVIDER_KEY_ENV.items():
        block = providers.get(section)
        if not isinstance(block, dict):
            block = {}
        value = os.getenv(env_name)
        block['api_key'] = value.strip() if _is_nonempty_string(value) else None
        providers[section] = block

    config_data['providers'] = providers
