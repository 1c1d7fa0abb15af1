"""
Configuration file loaders and path resolution.

This module handles:
- Path resolution (relative to the project root)
- YAML file loading
- Environment variable expansion in YAML
"""

import os
from pathlib import Path

import yaml


# Project root directory (parent of voicerelay/)
_PROJ_DIR = Path(__file__).parent.parent.parent.resolve()

DEFAULT_CONFIG_PATH = "config/voice-relay.yaml"


def resolve_config_path(path: str) -> str:
    """
    Resolve a configuration file path to an absolute path.

    Relative paths are resolved against the project root, not the current
    working directory.

    Args:
        path: Configuration file path (absolute or relative)

    Returns:
        Absolute path to the configuration file
    """
    if not os.path.isabs(path):
        return os.path.join(_PROJ_DIR, path)
    return path


def load_yaml_with_env_expansion(path: str) -> dict:
    """
    Load a YAML file after expanding ${VAR} and $VAR references.

    Args:
        path: Absolute path to a YAML configuration file

    Returns:
        Parsed configuration dictionary (empty for an empty file)

    Raises:
        FileNotFoundError: If the file doesn't exist
        yaml.YAMLError: If YAML parsing fails
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            config_str = f.read()
    except FileNotFoundError:
        raise FileNotFoundError(f"Configuration file not found at: {path}")

    try:
        config_data = yaml.safe_load(os.path.expandvars(config_str))
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"Error parsing YAML configuration: {e}")

    if config_data is None:
        return {}
    if not isinstance(config_data, dict):
        raise yaml.YAMLError(f"Top-level YAML configuration must be a mapping, got {type(config_data).__name__}")
    return config_data
