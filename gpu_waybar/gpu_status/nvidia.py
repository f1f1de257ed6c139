"""NVIDIA metrics source backed by NVML.

Requires: nvidia-ml-py (pip install nvidia-ml-py)

Example usage:
    from gpu_waybar.gpu_status.nvidia import NvidiaGpuStatus

    with NvidiaGpuStatus(pci_bus_id="0000:01:00.0") as status:
        print(status.get_u8_field(U8Field.GPU_UTILIZATION))
"""

import logging
from pathlib import Path
from typing import Any, Callable, Optional

from gpu_waybar.formatter.fields import MemField, U8Field
from gpu_waybar.gpu_status.base import GpuStatus, PState
from gpu_waybar.utils.errors import (
    DependencyError,
    FieldReadError,
    FieldUnsupportedError,
    HardwareNotFoundError,
)

LOGGER = logging.getLogger(__name__)

# NVML reports PCIe throughput in KB/s.
PCIE_KB = 1024


class NvidiaGpuStatus(GpuStatus):
    """Metrics for one NVIDIA GPU.

    NVML is initialized by the constructor and shut down by close(). Every
    getter issues its own NVML query.

    Args:
        pci_bus_id: PCI slot name of the device, preferred when known
        index: NVML device index, used when no bus id is given
        device_path: PCI device sysfs directory, for runtime power state
    """

    vendor = "nvidia"

    def __init__(self, pci_bus_id: Optional[str] = None, index: int = 0, device_path=None):
        self.device_path = Path(device_path) if device_path is not None else None
        try:
            import pynvml  # provided by nvidia-ml-py
        except ImportError as e:
            raise DependencyError(
                "nvidia-ml-py is required for NVIDIA GPUs. Install with: pip install nvidia-ml-py"
            ) from e

        self._nvml = pynvml
        self._nvml_initialized = False
        self._handle = None

        try:
            pynvml.nvmlInit()
        except pynvml.NVMLError as e:
            raise DependencyError(f"Failed to initialize NVML: {e}") from e
        self._nvml_initialized = True

        try:
            if pci_bus_id:
                self._handle = pynvml.nvmlDeviceGetHandleByPciBusId(pci_bus_id)
            else:
                self._handle = pynvml.nvmlDeviceGetHandleByIndex(index)
        except pynvml.NVMLError as e:
            self.close()
            target = pci_bus_id or f"index {index}"
            raise HardwareNotFoundError(f"NVML device {target} not found: {e}") from e

    def _query(self, field_name: str, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return func(self._handle, *args)
        except self._nvml.NVMLError as e:
            if getattr(e, "value", None) == self._nvml.NVML_ERROR_NOT_SUPPORTED:
                raise FieldUnsupportedError(field_name, str(e)) from e
            raise FieldReadError(field_name, str(e)) from e

    def get_u8_field(self, field: U8Field) -> int:
        nvml = self._nvml
        if field is U8Field.GPU_UTILIZATION:
            return int(self._query(field.value, nvml.nvmlDeviceGetUtilizationRates).gpu)
        if field is U8Field.MEM_RW:
            return int(self._query(field.value, nvml.nvmlDeviceGetUtilizationRates).memory)
        if field is U8Field.DECODER_UTILIZATION:
            # [utilization, sampling period in us]
            return int(self._query(field.value, nvml.nvmlDeviceGetDecoderUtilization)[0])
        if field is U8Field.ENCODER_UTILIZATION:
            return int(self._query(field.value, nvml.nvmlDeviceGetEncoderUtilization)[0])
        if field is U8Field.FAN_SPEED:
            return int(self._query(field.value, nvml.nvmlDeviceGetFanSpeed))
        return super().get_u8_field(field)

    def get_mem_field(self, field: MemField) -> float:
        nvml = self._nvml
        if field is MemField.MEM_USED:
            return float(self._query(field.value, nvml.nvmlDeviceGetMemoryInfo).used)
        if field is MemField.MEM_TOTAL:
            return float(self._query(field.value, nvml.nvmlDeviceGetMemoryInfo).total)
        if field is MemField.TX:
            kb = self._query(field.value, nvml.nvmlDeviceGetPcieThroughput, nvml.NVML_PCIE_UTIL_TX_BYTES)
            return float(kb * PCIE_KB)
        if field is MemField.RX:
            kb = self._query(field.value, nvml.nvmlDeviceGetPcieThroughput, nvml.NVML_PCIE_UTIL_RX_BYTES)
            return float(kb * PCIE_KB)
        return super().get_mem_field(field)

    def get_temperature(self) -> float:
        return float(self._query("temperature", self._nvml.nvmlDeviceGetTemperature, self._nvml.NVML_TEMPERATURE_GPU))

    def get_power(self) -> float:
        # milliwatts
        return self._query("power", self._nvml.nvmlDeviceGetPowerUsage) / 1000.0

    def get_p_state(self) -> PState:
        return PState.from_index(int(self._query("p_state", self._nvml.nvmlDeviceGetPerformanceState)))

    def describe(self) -> str:
        try:
            name = self._nvml.nvmlDeviceGetName(self._handle)
        except self._nvml.NVMLError:
            return self.vendor
        if isinstance(name, bytes):
            name = name.decode("utf-8")
        return name

    def close(self) -> None:
        if not self._nvml_initialized:
            return
        try:
            self._nvml.nvmlShutdown()
        except self._nvml.NVMLError as e:
            LOGGER.debug("nvmlShutdown failed: %s", e)
        self._nvml_initialized = False
        self._handle = None


__all__ = ["NvidiaGpuStatus"]
