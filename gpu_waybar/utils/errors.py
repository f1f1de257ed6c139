"""Custom exceptions for gpu_waybar.

This module defines application-specific errors so callers can handle
missing hardware, config errors and unavailable metrics explicitly.
"""


class GpuWaybarError(Exception):
    """Base exception for all gpu_waybar errors."""

    pass


class HardwareNotFoundError(GpuWaybarError):
    """Raised when the requested GPU is missing or its vendor is not supported."""

    pass


class ConfigError(GpuWaybarError):
    """Raised when the configuration file or a config value is invalid."""

    pass


class DependencyError(GpuWaybarError):
    """Raised when a vendor library (e.g. NVML) is required but cannot be loaded."""

    pass


class FieldUnavailableError(GpuWaybarError):
    """Raised when a metric cannot be provided by a metrics source.

    Attributes:
        field_name: Name of the metric that was queried
    """

    def __init__(self, field_name: str, reason: str = ""):
        self.field_name = field_name
        self.reason = reason
        message = f"{field_name} unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class FieldUnsupportedError(FieldUnavailableError):
    """The vendor or device does not expose this metric at all."""

    pass


class FieldReadError(FieldUnavailableError):
    """The metric exists but could not be read on this tick."""

    pass
