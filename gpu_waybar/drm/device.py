"""DRM device discovery from sysfs.

Every GPU shows up under ``/sys/class/drm`` as one or more leaf nodes
(``cardN``, ``renderDN``) whose ``device`` link points at the parent PCI
device. Leaf nodes are grouped by that parent so each GPU is listed once.

Example usage:
    for device in scan_drm_devices():
        print(device.card_index, device.vendor_name, device.model_name)
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

LOGGER = logging.getLogger(__name__)

DEFAULT_SYSFS_ROOT = "/sys"

NVIDIA_VENDOR_ID = 0x10DE
AMD_VENDOR_ID = 0x1002
INTEL_VENDOR_ID = 0x8086

# Used when no pci.ids database is installed.
VENDOR_NAMES = {
    NVIDIA_VENDOR_ID: "NVIDIA Corporation",
    AMD_VENDOR_ID: "Advanced Micro Devices, Inc. [AMD/ATI]",
    INTEL_VENDOR_ID: "Intel Corporation",
}

PCI_IDS_PATHS = (
    "/usr/share/hwdata/pci.ids",
    "/usr/share/misc/pci.ids",
    "/usr/share/pci.ids",
)

LEAF_NODE_RE = re.compile(r"^(card|renderD)(\d+)$")


@dataclass
class DrmDevice:
    """Parent PCI device of one or more DRM leaf nodes.

    Attributes:
        sysname: PCI slot name, e.g. ``0000:01:00.0``
        syspath: Resolved sysfs directory of the PCI device
        vendor_id: PCI vendor id
        device_id: PCI device id
        children: Leaf node names, e.g. ``["card0", "renderD128"]``
    """

    sysname: str
    syspath: Path
    vendor_id: int
    device_id: int
    children: List[str] = field(default_factory=list)

    @property
    def card_index(self) -> Optional[int]:
        """Return ``N`` if a ``cardN`` child exists."""
        for child in self.children:
            if child.startswith("card"):
                return int(child[len("card") :])
        return None

    @property
    def pci_bus_id(self) -> str:
        return self.sysname

    @property
    def devnames(self) -> Tuple[str, ...]:
        """Names of the ``/dev/dri`` nodes belonging to this device."""
        return tuple(self.children)

    @property
    def vendor_name(self) -> str:
        vendor, _ = lookup_pci_names(self.vendor_id, self.device_id)
        return vendor or VENDOR_NAMES.get(self.vendor_id, f"0x{self.vendor_id:04x}")

    @property
    def model_name(self) -> str:
        _, model = lookup_pci_names(self.vendor_id, self.device_id)
        return model or f"0x{self.device_id:04x}"

    def describe(self) -> str:
        index = self.card_index
        card = f"card{index}" if index is not None else "no card"
        return f"[{card}] {self.vendor_name} {self.model_name} ({self.sysname})"


def _read_hex(path: Path) -> Optional[int]:
    try:
        return int(path.read_text(encoding="utf-8").strip(), 16)
    except (OSError, ValueError):
        return None


def scan_drm_devices(sysfs_root: str = DEFAULT_SYSFS_ROOT) -> List[DrmDevice]:
    """Scan DRM leaf nodes, group them by PCI parent and sort by card index.

    Devices without a card node sort last. Non-PCI parents are skipped.
    """
    drm_dir = Path(sysfs_root) / "class" / "drm"
    if not drm_dir.is_dir():
        LOGGER.debug("No DRM class directory at %s", drm_dir)
        return []

    devices: Dict[Path, DrmDevice] = {}
    for entry in sorted(drm_dir.iterdir(), key=lambda p: p.name):
        if not LEAF_NODE_RE.match(entry.name):
            continue

        parent = entry / "device"
        if not parent.exists():
            continue
        syspath = Path(os.path.realpath(parent))

        if syspath in devices:
            devices[syspath].children.append(entry.name)
            continue

        vendor_id = _read_hex(parent / "vendor")
        device_id = _read_hex(parent / "device")
        if vendor_id is None or device_id is None:
            LOGGER.debug("%s is not a PCI device", syspath)
            continue

        devices[syspath] = DrmDevice(
            sysname=syspath.name,
            syspath=syspath,
            vendor_id=vendor_id,
            device_id=device_id,
            children=[entry.name],
        )

    result = list(devices.values())
    result.sort(key=lambda d: d.card_index if d.card_index is not None else 255)
    return result


_PCI_NAME_CACHE: Dict[tuple, Tuple[Optional[str], Optional[str]]] = {}


def lookup_pci_names(
    vendor_id: int, device_id: int, paths: Iterable[str] = PCI_IDS_PATHS
) -> Tuple[Optional[str], Optional[str]]:
    """Look up vendor and model names in the first readable pci.ids file.

    Returns:
        ``(vendor_name, model_name)``; either is None when not found.
    """
    paths = tuple(paths)
    key = (vendor_id, device_id, paths)
    if key in _PCI_NAME_CACHE:
        return _PCI_NAME_CACHE[key]

    names: Tuple[Optional[str], Optional[str]] = (None, None)
    for path in paths:
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as handle:
                names = parse_pci_ids(handle, vendor_id, device_id)
        except OSError:
            continue
        break

    _PCI_NAME_CACHE[key] = names
    return names


def parse_pci_ids(lines: Iterable[str], vendor_id: int, device_id: int) -> Tuple[Optional[str], Optional[str]]:
    """Find names in pci.ids formatted lines.

    Vendor lines are ``vvvv  Name``; device lines under them are indented by
    one tab. Subsystem lines (two tabs) and comments are ignored.
    """
    vendor_hex = f"{vendor_id:04x}"
    device_hex = f"{device_id:04x}"
    vendor_name = None

    for line in lines:
        if not line.strip() or line.startswith("#"):
            continue
        if not line.startswith("\t"):
            if vendor_name is not None:
                break
            # Device classes follow the vendor list.
            if line.startswith("C "):
                break
            ident, _, name = line.rstrip("\n").partition("  ")
            if ident.lower() == vendor_hex:
                vendor_name = name.strip()
            continue
        if vendor_name is None or line.startswith("\t\t"):
            continue
        ident, _, name = line.strip().partition("  ")
        if ident.lower() == device_hex:
            return vendor_name, name.strip()

    return vendor_name, None


__all__ = [
    "AMD_VENDOR_ID",
    "INTEL_VENDOR_ID",
    "NVIDIA_VENDOR_ID",
    "DrmDevice",
    "lookup_pci_names",
    "parse_pci_ids",
    "scan_drm_devices",
]
