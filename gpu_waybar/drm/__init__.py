"""DRM device discovery and per-client engine accounting."""

from gpu_waybar.drm.client import ClientManager, DrmClient, EngineStats
from gpu_waybar.drm.device import (
    AMD_VENDOR_ID,
    INTEL_VENDOR_ID,
    NVIDIA_VENDOR_ID,
    DrmDevice,
    scan_drm_devices,
)

__all__ = [
    "AMD_VENDOR_ID",
    "INTEL_VENDOR_ID",
    "NVIDIA_VENDOR_ID",
    "ClientManager",
    "DrmClient",
    "DrmDevice",
    "EngineStats",
    "scan_drm_devices",
]
