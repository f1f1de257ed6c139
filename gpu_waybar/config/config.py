"""Configuration management for gpu-usage-waybar."""

import copy
import logging
import os
from typing import Any, Optional

from gpu_waybar.config.config_io import load_yaml_file, save_text_file, save_yaml_file
from gpu_waybar.utils.errors import ConfigError

LOGGER = logging.getLogger(__name__)

APP_NAME = "gpu-usage-waybar"
CONFIG_FILENAME = "config.yaml"

MIN_INTERVAL_MS = 100
DEFAULT_INTERVAL_MS = 1000

DEFAULT_TEXT_FORMAT = "{gpu_utilization}%|{mem_utilization}%"

# Lines naming a metric the active GPU does not expose are pruned at startup.
DEFAULT_TOOLTIP_FORMAT = (
    "GPU: {gpu_utilization}%\n"
    "MEM USED: {mem_used:MiB.0}/{mem_total:MiB.0} MiB ({mem_utilization}%)\n"
    "MEM R/W: {mem_rw}%\n"
    "DEC: {decoder_utilization}%\n"
    "ENC: {encoder_utilization}%\n"
    "RENDER: {render_utilization}%\n"
    "VIDEO: {video_utilization}%\n"
    "TEMP: {temperature:c}°C\n"
    "POWER: {power:w.1}W\n"
    "PSTATE: {p_state}\n"
    "PLEVEL: {p_level}\n"
    "FAN SPEED: {fan_speed}%\n"
    "TX: {tx:MiB.3} MiB/s\n"
    "RX: {rx:MiB.3} MiB/s"
)

DEFAULT_CONFIG: dict[str, Any] = {
    "general": {"interval": DEFAULT_INTERVAL_MS},
    "text": {"format": DEFAULT_TEXT_FORMAT},
    "tooltip": {"format": None},
}

EXAMPLE_CONFIG = f"""\
# gpu-usage-waybar configuration

general:
  # Polling interval in milliseconds (minimum {MIN_INTERVAL_MS}).
  interval: {DEFAULT_INTERVAL_MS}

text:
  # Placeholders: {{field}}, {{field:unit}} or {{field:unit.precision}}.
  format: "{DEFAULT_TEXT_FORMAT}"

tooltip:
  # Leave unset to show every metric the GPU supports.
  # format: "GPU: {{gpu_utilization}}%\\nTEMP: {{temperature:c.1}}°C"
"""


def default_config_path() -> str:
    """``$XDG_CONFIG_HOME/gpu-usage-waybar/config.yaml``, falling back to ~/.config."""
    base = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    return os.path.join(base, APP_NAME, CONFIG_FILENAME)


class Config:
    """Configuration container.

    Values are addressed with dotted keys, e.g. ``config.get("general.interval")``.
    """

    def __init__(self, config_dict: Optional[dict[str, Any]] = None):
        """Initialize configuration.

        Args:
            config_dict: Optional dictionary to use as base (deep copy)
        """
        self.config = copy.deepcopy(config_dict or {})

    def update(self, config_dict: dict[str, Any]) -> None:
        """Update configuration with provided values.

        Sections present in both are merged key by key.

        Args:
            config_dict: Dictionary with configuration overrides
        """
        for key, value in config_dict.items():
            if isinstance(self.config.get(key), dict) and isinstance(value, dict):
                self.config[key] = {**self.config[key], **value}
            else:
                self.config[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dotted key.

        Args:
            key: Configuration key (e.g., 'text.format')
            default: Default value if key not found or set to null

        Returns:
            Configuration value
        """
        value: Any = self.config
        for k in key.split("."):
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
        return value if value is not None else default

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self.config)

    @property
    def interval_ms(self) -> int:
        return self.get("general.interval", DEFAULT_INTERVAL_MS)

    @property
    def text_format(self) -> str:
        return self.get("text.format", DEFAULT_TEXT_FORMAT)

    @property
    def tooltip_format(self) -> Optional[str]:
        """User tooltip template, or None to use the auto-pruned default."""
        return self.get("tooltip.format")

    @property
    def is_tooltip_format_set(self) -> bool:
        return self.tooltip_format is not None

    def merge_args(
        self,
        interval: Optional[int] = None,
        text_format: Optional[str] = None,
        tooltip_format: Optional[str] = None,
    ) -> None:
        """Apply command-line overrides; None leaves a value untouched."""
        overrides: dict[str, Any] = {}
        if interval is not None:
            overrides["general"] = {"interval": interval}
        if text_format is not None:
            overrides["text"] = {"format": text_format}
        if tooltip_format is not None:
            overrides["tooltip"] = {"format": tooltip_format}
        self.update(overrides)
        self.validate()

    def validate(self) -> None:
        """Check sections, keys and value types.

        Raises:
            ConfigError: On unknown sections or keys, or invalid values
        """
        for section, values in self.config.items():
            if section not in DEFAULT_CONFIG:
                raise ConfigError(f"Unknown config section: {section}")
            if values is None:
                continue
            if not isinstance(values, dict):
                raise ConfigError(f"Config section '{section}' must be a mapping")
            for key in values:
                if key not in DEFAULT_CONFIG[section]:
                    raise ConfigError(f"Unknown config key: {section}.{key}")

        interval = self.config.get("general", {}).get("interval") if self.config.get("general") else None
        if interval is not None:
            if isinstance(interval, bool) or not isinstance(interval, int):
                raise ConfigError(f"general.interval must be an integer, got {interval!r}")
            if interval < MIN_INTERVAL_MS:
                raise ConfigError(f"general.interval must be at least {MIN_INTERVAL_MS} ms, got {interval}")

        for section in ("text", "tooltip"):
            fmt = self.get(f"{section}.format")
            if fmt is not None and not isinstance(fmt, str):
                raise ConfigError(f"{section}.format must be a string")


class ConfigManager:
    """Manages loading and saving configuration files."""

    @staticmethod
    def load_yaml(filepath: str) -> Config:
        """Load and validate configuration from a YAML file, on top of the defaults.

        Raises:
            ConfigError: If the file is unreadable or invalid
        """
        config = Config(DEFAULT_CONFIG)
        config.update(load_yaml_file(filepath))
        config.validate()
        return config

    @staticmethod
    def save_yaml(config: Config, filepath: str) -> None:
        save_yaml_file(filepath, config.to_dict())

    @staticmethod
    def load_or_default(filepath: Optional[str] = None) -> Config:
        """Load configuration from file or return defaults.

        An explicitly given path must exist. Without a path the default
        location is used, and an example config is written there first if it
        does not exist yet.

        Raises:
            ConfigError: If an explicit path is missing or any file is invalid
        """
        if filepath:
            if not os.path.exists(filepath):
                raise ConfigError(f"Config file not found: {filepath}")
            return ConfigManager.load_yaml(filepath)

        path = default_config_path()
        if not os.path.exists(path):
            try:
                save_text_file(path, EXAMPLE_CONFIG)
                LOGGER.info("Wrote example config to %s", path)
            except OSError as e:
                LOGGER.warning("Cannot write example config to %s: %s", path, e)
                return Config(DEFAULT_CONFIG)
        return ConfigManager.load_yaml(path)
