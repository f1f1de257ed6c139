"""Field vocabulary for format templates.

A placeholder such as ``{mem_used:MiB.1}`` names one field and, for
unit-bearing fields, the unit and optional precision to display it with.
Field names are a closed, snake_case vocabulary; unrecognized names become
``FieldKind.UNKNOWN`` instead of raising, so an old config keeps working
after a field is renamed or dropped.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from gpu_waybar.formatter.units import MemUnit, PowerUnit, TemperatureUnit
from gpu_waybar.utils.errors import GpuWaybarError

Unit = Union[MemUnit, TemperatureUnit, PowerUnit]


class FieldKind(Enum):
    """Shape of a field: how it is queried and whether it takes a unit."""

    U8 = "u8"
    MEM = "mem"
    TEMPERATURE = "temperature"
    POWER = "power"
    P_STATE = "p_state"
    P_LEVEL = "p_level"
    MEM_UTILIZATION = "mem_utilization"
    UNKNOWN = "unknown"

    @property
    def requires_unit(self) -> bool:
        return self in (FieldKind.MEM, FieldKind.TEMPERATURE, FieldKind.POWER)


class U8Field(Enum):
    """Percentages in the 0-100 range."""

    GPU_UTILIZATION = "gpu_utilization"
    # Memory data bus utilization.
    MEM_RW = "mem_rw"
    DECODER_UTILIZATION = "decoder_utilization"
    ENCODER_UTILIZATION = "encoder_utilization"
    FAN_SPEED = "fan_speed"
    # Intel engine utilization.
    RENDER_UTILIZATION = "render_utilization"
    VIDEO_UTILIZATION = "video_utilization"


class MemField(Enum):
    """Information quantities, reported in bytes (or bytes per second)."""

    MEM_USED = "mem_used"
    MEM_TOTAL = "mem_total"
    # PCIe throughput per second.
    TX = "tx"
    RX = "rx"


_U8_NAMES = {f.value: f for f in U8Field}
_MEM_NAMES = {f.value: f for f in MemField}
_ENUM_KINDS = {
    "p_state": FieldKind.P_STATE,
    "p_level": FieldKind.P_LEVEL,
    "mem_utilization": FieldKind.MEM_UTILIZATION,
}


# Fraction digits beyond this are rejected when the template is loaded.
MAX_PRECISION = 20


class UnitParseErrorKind(Enum):
    NO_UNIT = "no_unit"
    PRECISION = "precision"
    MEMORY = "memory"
    TEMPERATURE = "temperature"
    POWER = "power"


class UnitParseError(GpuWaybarError):
    """Raised when a recognized field has a missing or malformed unit/precision.

    Attributes:
        kind: Which part of the placeholder was rejected
        text: The offending unit or precision text (empty for NO_UNIT)
        field_name: Field the placeholder named, when known
    """

    _MESSAGES = {
        UnitParseErrorKind.NO_UNIT: "No unit provided where required",
        UnitParseErrorKind.PRECISION: "Unable to parse precision: `{text}`",
        UnitParseErrorKind.MEMORY: "Invalid memory unit: `{text}`",
        UnitParseErrorKind.TEMPERATURE: "Invalid temperature unit: `{text}`",
        UnitParseErrorKind.POWER: "Invalid power unit: `{text}`",
    }

    def __init__(self, kind: UnitParseErrorKind, text: str = "", field_name: str = ""):
        self.kind = kind
        self.text = text
        self.field_name = field_name
        message = self._MESSAGES[kind].format(text=text)
        if field_name:
            message = f"{message} (field `{field_name}`)"
        super().__init__(message)


@dataclass(frozen=True)
class Field:
    """One resolved placeholder.

    Attributes:
        kind: Field shape
        name: Field name as written in the template
        unit: Display unit for MEM, TEMPERATURE and POWER fields
        precision: Number of fraction digits; None means natural formatting
    """

    kind: FieldKind
    name: str
    unit: Optional[Unit] = None
    precision: Optional[int] = None

    @classmethod
    def u8(cls, field: U8Field) -> "Field":
        return cls(FieldKind.U8, field.value)

    @classmethod
    def mem(cls, field: MemField, unit: MemUnit, precision: Optional[int] = None) -> "Field":
        return cls(FieldKind.MEM, field.value, unit, precision)

    @classmethod
    def temperature(cls, unit: TemperatureUnit, precision: Optional[int] = None) -> "Field":
        return cls(FieldKind.TEMPERATURE, "temperature", unit, precision)

    @classmethod
    def power(cls, unit: PowerUnit, precision: Optional[int] = None) -> "Field":
        return cls(FieldKind.POWER, "power", unit, precision)

    @classmethod
    def p_state(cls) -> "Field":
        return cls(FieldKind.P_STATE, "p_state")

    @classmethod
    def p_level(cls) -> "Field":
        return cls(FieldKind.P_LEVEL, "p_level")

    @classmethod
    def mem_utilization(cls) -> "Field":
        return cls(FieldKind.MEM_UTILIZATION, "mem_utilization")

    @classmethod
    def unknown(cls, name: str) -> "Field":
        return cls(FieldKind.UNKNOWN, name)

    @property
    def u8_field(self) -> U8Field:
        return _U8_NAMES[self.name]

    @property
    def mem_field(self) -> MemField:
        return _MEM_NAMES[self.name]

    @property
    def is_unknown(self) -> bool:
        return self.kind is FieldKind.UNKNOWN

    @classmethod
    def from_str(cls, text: str) -> "Field":
        """Parse the text between ``{`` and ``}``.

        The text is ``name`` for fields without a unit, or ``name:unit`` and
        ``name:unit.precision`` when a unit must be given, e.g. ``temperature:f.2``
        displays the temperature in Fahrenheit with two decimal places.

        Raises:
            UnitParseError: If a unit-bearing field has no unit, or the unit or
                precision cannot be parsed.
        """
        return parse_field(*FormatSegments.parse(text))


class FormatSegments:
    """Split ``name:unit.precision`` into its three optional parts."""

    __slots__ = ("field", "unit", "precision")

    def __init__(self, field: str, unit: Optional[str] = None, precision: Optional[str] = None):
        self.field = field
        self.unit = unit
        self.precision = precision

    def __iter__(self):
        return iter((self.field, self.unit, self.precision))

    @classmethod
    def parse(cls, text: str) -> "FormatSegments":
        field, sep, rest = text.partition(":")
        if not sep:
            return cls(field)
        unit, sep, precision = rest.partition(".")
        return cls(field, unit, precision if sep else None)


def _parse_precision(text: Optional[str], field_name: str) -> Optional[int]:
    if text is None:
        return None
    if not (text.isascii() and text.isdigit()) or int(text) > MAX_PRECISION:
        raise UnitParseError(UnitParseErrorKind.PRECISION, text, field_name)
    return int(text)


def _parse_unit(
    unit_type, error_kind: UnitParseErrorKind, name: str, unit: Optional[str], precision: Optional[str]
) -> Tuple[Unit, Optional[int]]:
    if unit is None:
        raise UnitParseError(UnitParseErrorKind.NO_UNIT, field_name=name)
    parsed = unit_type.from_str(unit)
    if parsed is None:
        raise UnitParseError(error_kind, unit, name)
    return parsed, _parse_precision(precision, name)


def parse_field(name: str, unit: Optional[str] = None, precision: Optional[str] = None) -> Field:
    """Resolve a split placeholder into a Field.

    Unit and precision are ignored for fields that take no unit. Names outside
    the vocabulary yield an UNKNOWN field rather than an error.

    Raises:
        UnitParseError: For a recognized unit-bearing field with a missing or
            invalid unit, or a precision that is not an integer in 0..MAX_PRECISION.
    """
    if name in _U8_NAMES:
        return Field.u8(_U8_NAMES[name])
    if name in _ENUM_KINDS:
        return Field(_ENUM_KINDS[name], name)
    if name in _MEM_NAMES:
        mem_unit, digits = _parse_unit(MemUnit, UnitParseErrorKind.MEMORY, name, unit, precision)
        return Field.mem(_MEM_NAMES[name], mem_unit, digits)
    if name == "temperature":
        temp_unit, digits = _parse_unit(TemperatureUnit, UnitParseErrorKind.TEMPERATURE, name, unit, precision)
        return Field.temperature(temp_unit, digits)
    if name == "power":
        power_unit, digits = _parse_unit(PowerUnit, UnitParseErrorKind.POWER, name, unit, precision)
        return Field.power(power_unit, digits)
    return Field.unknown(name)


__all__ = [
    "Field",
    "FieldKind",
    "FormatSegments",
    "MAX_PRECISION",
    "MemField",
    "U8Field",
    "UnitParseError",
    "UnitParseErrorKind",
    "parse_field",
]
