"""Vendor metrics sources and backend selection."""

import logging

from gpu_waybar.drm.device import AMD_VENDOR_ID, INTEL_VENDOR_ID, NVIDIA_VENDOR_ID, DrmDevice
from gpu_waybar.gpu_status.amd import AmdGpuStatus
from gpu_waybar.gpu_status.base import FieldValue, GpuStatus, PerformanceLevel, PState
from gpu_waybar.gpu_status.intel import IntelGpuStatus
from gpu_waybar.gpu_status.nvidia import NvidiaGpuStatus
from gpu_waybar.utils.errors import HardwareNotFoundError

LOGGER = logging.getLogger(__name__)


def create_gpu_status(device: DrmDevice) -> GpuStatus:
    """Build the metrics source matching the device's PCI vendor.

    Raises:
        HardwareNotFoundError: If the vendor has no backend
        DependencyError: If the vendor library cannot be loaded
    """
    LOGGER.info("Using %s", device.describe())

    if device.vendor_id == NVIDIA_VENDOR_ID:
        return NvidiaGpuStatus(pci_bus_id=device.pci_bus_id, device_path=device.syspath)
    if device.vendor_id == AMD_VENDOR_ID:
        return AmdGpuStatus(device.syspath)
    if device.vendor_id == INTEL_VENDOR_ID:
        return IntelGpuStatus(device.devnames)

    raise HardwareNotFoundError(f"Unsupported GPU vendor {device.vendor_name} (0x{device.vendor_id:04x})")


__all__ = [
    "AmdGpuStatus",
    "FieldValue",
    "GpuStatus",
    "IntelGpuStatus",
    "NvidiaGpuStatus",
    "PState",
    "PerformanceLevel",
    "create_gpu_status",
]
