"""Shared utilities for gpu_waybar."""

from .errors import (
    ConfigError,
    DependencyError,
    FieldReadError,
    FieldUnavailableError,
    FieldUnsupportedError,
    GpuWaybarError,
    HardwareNotFoundError,
)

__all__ = [
    "GpuWaybarError",
    "ConfigError",
    "DependencyError",
    "HardwareNotFoundError",
    "FieldUnavailableError",
    "FieldUnsupportedError",
    "FieldReadError",
]
