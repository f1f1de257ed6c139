"""AMD metrics source backed by amdgpu sysfs attributes.

Attributes read relative to the PCI device directory
(``/sys/class/drm/cardN/device``):

- gpu_busy_percent, mem_busy_percent
- mem_info_vram_used, mem_info_vram_total (bytes)
- power_dpm_force_performance_level
- hwmon/hwmonX/temp1_input (millidegrees Celsius)
- hwmon/hwmonX/power1_average or power1_input (microwatts)
- hwmon/hwmonX/pwm1, pwm1_max (fan duty cycle)

A missing attribute means the metric is unsupported on this card. An
attribute that exists but cannot be read or parsed is a read error.
"""

import logging
from pathlib import Path
from typing import Optional

from gpu_waybar.formatter.fields import MemField, U8Field
from gpu_waybar.gpu_status.base import GpuStatus, PerformanceLevel
from gpu_waybar.utils.errors import FieldReadError, FieldUnsupportedError

LOGGER = logging.getLogger(__name__)

_U8_FILES = {
    U8Field.GPU_UTILIZATION: "gpu_busy_percent",
    U8Field.MEM_RW: "mem_busy_percent",
}

_MEM_FILES = {
    MemField.MEM_USED: "mem_info_vram_used",
    MemField.MEM_TOTAL: "mem_info_vram_total",
}


def find_hwmon(device_path: Path) -> Optional[Path]:
    """Return the first hwmon directory of a device, if any."""
    hwmon_base = device_path / "hwmon"
    if not hwmon_base.is_dir():
        return None
    for entry in sorted(hwmon_base.iterdir()):
        if entry.name.startswith("hwmon"):
            return entry
    return None


class AmdGpuStatus(GpuStatus):
    """Metrics for one amdgpu device.

    Args:
        device_path: PCI device sysfs directory
    """

    vendor = "amd"

    def __init__(self, device_path):
        self.device_path = Path(device_path)
        self.hwmon_path = find_hwmon(self.device_path)
        LOGGER.debug("amdgpu device at %s, hwmon %s", self.device_path, self.hwmon_path)

    def _read(self, field_name: str, path: Optional[Path]) -> str:
        if path is None or not path.exists():
            raise FieldUnsupportedError(field_name, f"{path or 'hwmon'} not found")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as e:
            raise FieldReadError(field_name, str(e)) from e

    def _read_int(self, field_name: str, path: Optional[Path]) -> int:
        text = self._read(field_name, path)
        try:
            return int(text)
        except ValueError as e:
            raise FieldReadError(field_name, f"cannot parse {text!r} from {path}") from e

    def _hwmon(self, name: str) -> Optional[Path]:
        return self.hwmon_path / name if self.hwmon_path is not None else None

    def get_u8_field(self, field: U8Field) -> int:
        if field in _U8_FILES:
            return self._read_int(field.value, self.device_path / _U8_FILES[field])
        if field is U8Field.FAN_SPEED:
            pwm = self._read_int(field.value, self._hwmon("pwm1"))
            pwm_max = self._read_int(field.value, self._hwmon("pwm1_max"))
            if pwm_max <= 0:
                raise FieldReadError(field.value, "pwm1_max is zero")
            return int(pwm / pwm_max * 100 + 0.5)
        return super().get_u8_field(field)

    def get_mem_field(self, field: MemField) -> float:
        if field in _MEM_FILES:
            return float(self._read_int(field.value, self.device_path / _MEM_FILES[field]))
        return super().get_mem_field(field)

    def get_temperature(self) -> float:
        return self._read_int("temperature", self._hwmon("temp1_input")) / 1000.0

    def get_power(self) -> float:
        path = self._hwmon("power1_average")
        if path is None or not path.exists():
            # Newer kernels only expose the instantaneous reading.
            path = self._hwmon("power1_input")
        return self._read_int("power", path) / 1_000_000.0

    def get_p_level(self) -> PerformanceLevel:
        text = self._read("p_level", self.device_path / "power_dpm_force_performance_level")
        try:
            return PerformanceLevel(text)
        except ValueError as e:
            raise FieldReadError("p_level", f"unknown performance level {text!r}") from e

    def describe(self) -> str:
        return f"amdgpu {self.device_path.name}"


__all__ = ["AmdGpuStatus", "find_hwmon"]
