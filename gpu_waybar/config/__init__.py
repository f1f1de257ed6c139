"""Configuration loading for gpu-usage-waybar."""

from gpu_waybar.config.config import (
    DEFAULT_CONFIG,
    DEFAULT_INTERVAL_MS,
    DEFAULT_TEXT_FORMAT,
    DEFAULT_TOOLTIP_FORMAT,
    EXAMPLE_CONFIG,
    MIN_INTERVAL_MS,
    Config,
    ConfigManager,
    default_config_path,
)

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULT_INTERVAL_MS",
    "DEFAULT_TEXT_FORMAT",
    "DEFAULT_TOOLTIP_FORMAT",
    "EXAMPLE_CONFIG",
    "MIN_INTERVAL_MS",
    "Config",
    "ConfigManager",
    "default_config_path",
]
