"""
Default value application for configuration.

Environment variables override the YAML values for settings that differ
between deployments (bind address, port, conversation file, STT backend).
"""

import os
from typing import Any, Dict


def _section(config_data: Dict[str, Any], name: str) -> Dict[str, Any]:
    block = config_data.get(name)
    if not isinstance(block, dict):
        block = {}
    config_data[name] = block
    return block


def apply_server_defaults(config_data: Dict[str, Any]) -> None:
    """
    Apply WebSocket server bind settings.

    Environment variables:
    - RELAY_HOST: bind address
    - RELAY_PORT: listen port; PORT is honoured as a fallback so hosted
      platforms that inject PORT work without extra config

    Args:
        config_data: Configuration dictionary to modify in-place
    """
    server = _section(config_data, 'server')

    host = os.getenv('RELAY_HOST', '').strip()
    if host:
        server['host'] = host

    port_raw = os.getenv('RELAY_PORT') or os.getenv('PORT')
    if port_raw:
        try:
            server['port'] = int(port_raw)
        except ValueError:
            # Leave the YAML value in place; validation reports bad YAML ports
            pass


def apply_memory_defaults(config_data: Dict[str, Any]) -> None:
    """
    Apply conversation memory settings.

    Environment variables:
    - CONVERSATION_FILE: path of the persisted conversation log

    Args:
        config_data: Configuration dictionary to modify in-place
    """
    memory = _section(config_data, 'memory')
    path = os.getenv('CONVERSATION_FILE', '').strip()
    if path:
        memory['path'] = path


def apply_provider_defaults(config_data: Dict[str, Any]) -> None:
    """
    Apply provider selection.

    Environment variables:
    - STT_PROVIDER: openai | deepgram

    Args:
        config_data: Configuration dictionary to modify in-place
    """
    stt_provider = os.getenv('STT_PROVIDER', '').strip().lower()
    if stt_provider:
        config_data['stt_provider'] = stt_provider
