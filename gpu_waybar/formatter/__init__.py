"""Format-string engine: field vocabulary, template parser, renderer and pruner."""

from gpu_waybar.formatter.fields import (
    Field,
    FieldKind,
    FormatSegments,
    MemField,
    U8Field,
    UnitParseError,
    UnitParseErrorKind,
    parse_field,
)
from gpu_waybar.formatter.parser import Chunk, StaticChunk, VariableChunk, parse
from gpu_waybar.formatter.prune import prune_template
from gpu_waybar.formatter.render import UNAVAILABLE, FormatState, render, trim_trailing_zeros
from gpu_waybar.formatter.units import MemUnit, PowerUnit, TemperatureUnit

__all__ = [
    "Chunk",
    "Field",
    "FieldKind",
    "FormatSegments",
    "FormatState",
    "MemField",
    "MemUnit",
    "PowerUnit",
    "StaticChunk",
    "TemperatureUnit",
    "U8Field",
    "UNAVAILABLE",
    "UnitParseError",
    "UnitParseErrorKind",
    "VariableChunk",
    "parse",
    "parse_field",
    "prune_template",
    "render",
    "trim_trailing_zeros",
]
