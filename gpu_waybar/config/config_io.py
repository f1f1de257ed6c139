"""Shared configuration file I/O (YAML load/save as dict)."""

import os
from typing import Any

import yaml

from gpu_waybar.utils.errors import ConfigError


def ensure_parent_dir(filepath: str) -> None:
    """Create parent directory of filepath if needed."""
    parent = os.path.dirname(filepath) or "."
    os.makedirs(parent, exist_ok=True)


def load_yaml_file(filepath: str) -> dict[str, Any]:
    """Load a YAML file into a dictionary.

    Args:
        filepath: Path to YAML file

    Returns:
        Loaded config as dict; empty dict if file is empty

    Raises:
        ConfigError: If the file cannot be read, is not valid YAML, or does not
            hold a mapping at the top level
    """
    try:
        with open(filepath, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {filepath}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse config file {filepath}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {filepath} must contain a mapping, got {type(data).__name__}")
    return data


def save_yaml_file(filepath: str, data: dict[str, Any]) -> None:
    """Save a dictionary to a YAML file."""
    ensure_parent_dir(filepath)
    with open(filepath, "w", encoding="utf-8") as f:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


def save_text_file(filepath: str, text: str) -> None:
    """Write raw text, creating parent directories."""
    ensure_parent_dir(filepath)
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(text)
