"""Base metrics-source interface for GPU backends.

A backend is a capability-gated view of one GPU. Every getter raises
FieldUnsupportedError unless a backend overrides it, so each vendor only
implements the metrics its driver actually exposes.

Canonical units:
- information (memory, PCIe throughput): bytes, or bytes per second
- temperature: degrees Celsius
- power: Watts

Example usage:
    class MyGpuStatus(GpuStatus):
        vendor = "acme"

        def get_u8_field(self, field):
            if field is U8Field.GPU_UTILIZATION:
                return read_busy_percent()
            return super().get_u8_field(field)
"""

import logging
import math
from enum import Enum
from pathlib import Path
from typing import Optional, Union

from gpu_waybar.formatter.fields import Field, FieldKind, MemField, U8Field
from gpu_waybar.utils.errors import FieldReadError, FieldUnsupportedError

LOGGER = logging.getLogger(__name__)

RUNTIME_SUSPENDED = "suspended"


def read_runtime_status(device_path) -> Optional[str]:
    """Return the PCI runtime power state (``active``, ``suspended``, ...).

    None if the device does not expose ``power/runtime_status``.
    """
    path = Path(device_path) / "power" / "runtime_status"
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError as e:
        LOGGER.debug("No runtime power status at %s: %s", path, e)
        return None


class PState(Enum):
    """NVIDIA performance state, P0 (maximum performance) to P15 (minimum)."""

    P0 = 0
    P1 = 1
    P2 = 2
    P3 = 3
    P4 = 4
    P5 = 5
    P6 = 6
    P7 = 7
    P8 = 8
    P9 = 9
    P10 = 10
    P11 = 11
    P12 = 12
    P13 = 13
    P14 = 14
    P15 = 15
    UNKNOWN = 32

    @classmethod
    def from_index(cls, index: int) -> "PState":
        try:
            return cls(index)
        except ValueError:
            return cls.UNKNOWN

    def __str__(self) -> str:
        return "Unknown" if self is PState.UNKNOWN else self.name


class PerformanceLevel(Enum):
    """AMD ``power_dpm_force_performance_level`` values."""

    AUTO = "auto"
    LOW = "low"
    HIGH = "high"
    MANUAL = "manual"
    PROFILE_STANDARD = "profile_standard"
    PROFILE_MIN_SCLK = "profile_min_sclk"
    PROFILE_MIN_MCLK = "profile_min_mclk"
    PROFILE_PEAK = "profile_peak"

    def __str__(self) -> str:
        return self.value


FieldValue = Union[int, float, PState, PerformanceLevel]


class GpuStatus:
    """Metrics source for a single GPU.

    Attributes:
        vendor: Short vendor identifier ("nvidia", "amd", "intel")
        device_path: PCI device sysfs directory, when the backend knows it
    """

    vendor = "generic"
    device_path: Optional[Path] = None

    def update(self) -> None:
        """Refresh per-tick state. Called once before each render.

        Errors raised here are fatal to the poll loop.
        """

    def is_powered_on(self) -> bool:
        """False only when the PCI device reports it is runtime-suspended."""
        if self.device_path is None:
            return True
        return read_runtime_status(self.device_path) != RUNTIME_SUSPENDED

    def has_running_processes(self) -> bool:
        """Whether any process is using the GPU. Assumed busy unless a backend knows better."""
        return True

    def get_u8_field(self, field: U8Field) -> int:
        raise FieldUnsupportedError(field.value, f"not supported by {self.vendor}")

    def get_mem_field(self, field: MemField) -> float:
        raise FieldUnsupportedError(field.value, f"not supported by {self.vendor}")

    def get_temperature(self) -> float:
        raise FieldUnsupportedError("temperature", f"not supported by {self.vendor}")

    def get_power(self) -> float:
        raise FieldUnsupportedError("power", f"not supported by {self.vendor}")

    def get_p_state(self) -> PState:
        raise FieldUnsupportedError("p_state", f"not supported by {self.vendor}")

    def get_p_level(self) -> PerformanceLevel:
        raise FieldUnsupportedError("p_level", f"not supported by {self.vendor}")

    def compute_mem_utilization(self) -> int:
        """Return used/total memory as a percentage rounded half away from zero.

        Unsupported if either operand is unsupported; otherwise a read error if
        either operand failed this tick.
        """
        read_error = None
        values = []
        for mem_field in (MemField.MEM_USED, MemField.MEM_TOTAL):
            try:
                values.append(self.get_mem_field(mem_field))
            except FieldUnsupportedError as e:
                raise FieldUnsupportedError("mem_utilization", str(e)) from e
            except FieldReadError as e:
                read_error = e

        if read_error is not None:
            raise FieldReadError("mem_utilization", str(read_error)) from read_error

        used, total = values
        if total <= 0:
            raise FieldReadError("mem_utilization", "total memory is zero")
        return int(math.floor(used / total * 100 + 0.5))

    def get_field_value(self, field: Field) -> FieldValue:
        """Query the canonical value behind a template field.

        Raises:
            FieldUnsupportedError: Metric not exposed by this GPU, or unknown field
            FieldReadError: Metric could not be read this tick
        """
        kind = field.kind
        if kind is FieldKind.U8:
            return self.get_u8_field(field.u8_field)
        if kind is FieldKind.MEM:
            return self.get_mem_field(field.mem_field)
        if kind is FieldKind.TEMPERATURE:
            return self.get_temperature()
        if kind is FieldKind.POWER:
            return self.get_power()
        if kind is FieldKind.P_STATE:
            return self.get_p_state()
        if kind is FieldKind.P_LEVEL:
            return self.get_p_level()
        if kind is FieldKind.MEM_UTILIZATION:
            return self.compute_mem_utilization()
        raise FieldUnsupportedError(field.name, "unknown field")

    def is_field_available(self, field: Field) -> bool:
        """Return False only if the field is structurally unsupported.

        A transient read failure still counts as available so a metric that
        stalls on one tick is not hidden for the rest of the session.
        """
        try:
            self.get_field_value(field)
        except FieldUnsupportedError:
            return False
        except FieldReadError:
            return True
        return True

    def describe(self) -> str:
        """Human-readable device description for logs."""
        return self.vendor

    def close(self) -> None:
        """Release vendor handles. Safe to call multiple times."""

    def __enter__(self) -> "GpuStatus":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


__all__ = ["GpuStatus", "PState", "PerformanceLevel", "FieldValue", "read_runtime_status"]
