"""GPU usage poller for Waybar.

Provides:
- formatter (template parsing, rendering and availability pruning)
- gpu_status (NVIDIA, AMD and Intel metrics sources)
- drm (device discovery, DRM client accounting)
- config (Config, ConfigManager)
- utils.errors (exception hierarchy)
"""

__version__ = "0.3.0"

from gpu_waybar.config import Config, ConfigManager
from gpu_waybar.formatter import Field, FormatState, parse, prune_template, render
from gpu_waybar.gpu_status import GpuStatus, create_gpu_status
from gpu_waybar.utils.errors import (
    ConfigError,
    DependencyError,
    FieldReadError,
    FieldUnavailableError,
    FieldUnsupportedError,
    GpuWaybarError,
    HardwareNotFoundError,
)

__all__ = [
    "Config",
    "ConfigError",
    "ConfigManager",
    "DependencyError",
    "Field",
    "FieldReadError",
    "FieldUnavailableError",
    "FieldUnsupportedError",
    "FormatState",
    "GpuStatus",
    "GpuWaybarError",
    "HardwareNotFoundError",
    "create_gpu_status",
    "parse",
    "prune_template",
    "render",
]
