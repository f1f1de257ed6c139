"""Pytest configuration and fixtures."""

import logging
import os
import sys
import types
from pathlib import Path
from types import SimpleNamespace

import pytest

from gpu_waybar.gpu_status.base import GpuStatus
from gpu_waybar.utils.errors import FieldReadError, FieldUnsupportedError


class FakeGpuStatus(GpuStatus):
    """Metrics source serving canned values keyed by field name.

    Names missing from ``values`` are unsupported; names in ``read_errors``
    fail as transient read errors.
    """

    vendor = "fake"

    def __init__(self, values=None, read_errors=()):
        self.values = dict(values or {})
        self.read_errors = set(read_errors)
        self.updates = 0
        self.closed = False

    def _lookup(self, name):
        if name in self.read_errors:
            raise FieldReadError(name, "stalled")
        if name not in self.values:
            raise FieldUnsupportedError(name, "not in fake")
        return self.values[name]

    def update(self):
        self.updates += 1

    def get_u8_field(self, field):
        return self._lookup(field.value)

    def get_mem_field(self, field):
        return self._lookup(field.value)

    def get_temperature(self):
        return self._lookup("temperature")

    def get_power(self):
        return self._lookup("power")

    def get_p_state(self):
        return self._lookup("p_state")

    def get_p_level(self):
        return self._lookup("p_level")

    def close(self):
        self.closed = True


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging() so caplog sees records in every test."""
    yield
    logger = logging.getLogger("gpu_waybar")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def fake_status():
    """Factory for FakeGpuStatus instances."""
    return FakeGpuStatus


def write_attr(path: Path, value) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"{value}\n", encoding="utf-8")


def add_pci_device(sysfs: Path, slot: str, vendor_id: int, device_id: int, nodes) -> Path:
    """Create a PCI device directory and DRM leaf nodes linking to it."""
    device_dir = sysfs / "devices" / "pci0000:00" / slot
    write_attr(device_dir / "vendor", f"0x{vendor_id:04x}")
    write_attr(device_dir / "device", f"0x{device_id:04x}")

    drm_dir = sysfs / "class" / "drm"
    drm_dir.mkdir(parents=True, exist_ok=True)
    for node in nodes:
        node_dir = drm_dir / node
        node_dir.mkdir()
        os.symlink(device_dir, node_dir / "device")
    return device_dir


@pytest.fixture
def sysfs_root(tmp_path):
    """Sysfs tree with an NVIDIA card1 and an AMD card0 with amdgpu attributes."""
    sysfs = tmp_path / "sys"

    add_pci_device(sysfs, "0000:01:00.0", 0x10DE, 0x2684, ["card1", "renderD129"])
    amd = add_pci_device(sysfs, "0000:03:00.0", 0x1002, 0x744C, ["card0", "renderD128"])

    write_attr(amd / "gpu_busy_percent", 37)
    write_attr(amd / "mem_busy_percent", 5)
    write_attr(amd / "mem_info_vram_used", 2 * 1024**3)
    write_attr(amd / "mem_info_vram_total", 8 * 1024**3)
    write_attr(amd / "power_dpm_force_performance_level", "auto")
    hwmon = amd / "hwmon" / "hwmon3"
    write_attr(hwmon / "temp1_input", 45500)
    write_attr(hwmon / "power1_average", 63000000)
    write_attr(hwmon / "pwm1", 51)
    write_attr(hwmon / "pwm1_max", 255)

    # Connector nodes are not GPUs.
    (sysfs / "class" / "drm" / "card0-DP-1").mkdir()
    write_attr(sysfs / "class" / "drm" / "version", "drm 1.1.0")
    return sysfs


@pytest.fixture
def amd_device_dir(sysfs_root):
    return sysfs_root / "devices" / "pci0000:00" / "0000:03:00.0"


class FakeNVMLError(Exception):
    def __init__(self, value):
        self.value = value
        super().__init__(f"NVML error {value}")


@pytest.fixture
def fake_pynvml(monkeypatch, mocker):
    """Stand-in for the pynvml module serving one healthy GPU."""
    module = types.ModuleType("pynvml")
    module.NVMLError = FakeNVMLError
    module.NVML_ERROR_NOT_SUPPORTED = 3
    module.NVML_ERROR_GPU_IS_LOST = 15
    module.NVML_PCIE_UTIL_TX_BYTES = 0
    module.NVML_PCIE_UTIL_RX_BYTES = 1
    module.NVML_TEMPERATURE_GPU = 0

    module.nvmlInit = mocker.Mock()
    module.nvmlShutdown = mocker.Mock()
    module.nvmlDeviceGetHandleByPciBusId = mocker.Mock(return_value="handle")
    module.nvmlDeviceGetHandleByIndex = mocker.Mock(return_value="handle")
    module.nvmlDeviceGetName = mocker.Mock(return_value=b"NVIDIA GeForce RTX 4090")
    module.nvmlDeviceGetUtilizationRates = mocker.Mock(return_value=SimpleNamespace(gpu=42, memory=17))
    module.nvmlDeviceGetDecoderUtilization = mocker.Mock(return_value=[12, 167000])
    module.nvmlDeviceGetEncoderUtilization = mocker.Mock(return_value=[3, 167000])
    module.nvmlDeviceGetFanSpeed = mocker.Mock(return_value=30)
    module.nvmlDeviceGetMemoryInfo = mocker.Mock(
        return_value=SimpleNamespace(used=2 * 1024**3, total=8 * 1024**3, free=6 * 1024**3)
    )
    module.nvmlDeviceGetPcieThroughput = mocker.Mock(side_effect=lambda handle, counter: {0: 100, 1: 2048}[counter])
    module.nvmlDeviceGetTemperature = mocker.Mock(return_value=55)
    module.nvmlDeviceGetPowerUsage = mocker.Mock(return_value=123456)
    module.nvmlDeviceGetPerformanceState = mocker.Mock(return_value=2)

    monkeypatch.setitem(sys.modules, "pynvml", module)
    return module
