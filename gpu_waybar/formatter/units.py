"""Display units for unit-bearing template fields.

Metrics sources report every quantity in one canonical unit:

- information (memory, PCIe throughput): bytes
- temperature: degrees Celsius
- power: Watts

Each unit enum converts a canonical value into the unit the template asked for.
"""

from enum import Enum
from typing import Optional


class MemUnit(Enum):
    """Information units, binary (1024-based) and decimal (1000-based)."""

    KiB = ("KiB", 1024, False)
    MiB = ("MiB", 1024**2, False)
    GiB = ("GiB", 1024**3, False)
    KB = ("KB", 1000, False)
    MB = ("MB", 1000**2, False)
    GB = ("GB", 1000**3, False)
    Kib = ("Kib", 1024, True)
    Mib = ("Mib", 1024**2, True)
    Gib = ("Gib", 1024**3, True)
    Kb = ("Kb", 1000, True)
    Mb = ("Mb", 1000**2, True)
    Gb = ("Gb", 1000**3, True)

    def __init__(self, symbol: str, factor: int, is_bit: bool):
        self.symbol = symbol
        self.factor = factor
        self.is_bit = is_bit

    @classmethod
    def from_str(cls, text: str) -> Optional["MemUnit"]:
        """Return the unit whose symbol matches ``text`` exactly, or None."""
        for unit in cls:
            if unit.symbol == text:
                return unit
        return None

    def compute(self, value_bytes: float) -> float:
        """Convert a byte count into this unit."""
        if self.is_bit:
            return value_bytes * 8 / self.factor
        return value_bytes / self.factor


class TemperatureUnit(Enum):
    """Temperature scales; parsed from ``c``, ``f`` or ``k`` in any case."""

    CELSIUS = "c"
    FAHRENHEIT = "f"
    KELVIN = "k"

    @classmethod
    def from_str(cls, text: str) -> Optional["TemperatureUnit"]:
        try:
            return cls(text.lower())
        except ValueError:
            return None

    def compute(self, celsius: float) -> float:
        """Convert a Celsius reading into this scale."""
        if self is TemperatureUnit.FAHRENHEIT:
            return celsius * 9 / 5 + 32
        if self is TemperatureUnit.KELVIN:
            return celsius + 273.15
        return celsius


class PowerUnit(Enum):
    """Power units; parsed from ``w`` or ``kw``."""

    WATT = "w"
    KILOWATT = "kw"

    @classmethod
    def from_str(cls, text: str) -> Optional["PowerUnit"]:
        try:
            return cls(text)
        except ValueError:
            return None

    def compute(self, watts: float) -> float:
        """Convert a Watt reading into this unit."""
        if self is PowerUnit.KILOWATT:
            return watts / 1000
        return watts


__all__ = ["MemUnit", "TemperatureUnit", "PowerUnit"]
