"""Render parsed templates against a live metrics source."""

import logging
from decimal import Decimal
from typing import List, Optional, Sequence

from gpu_waybar.formatter.fields import Field, FieldKind
from gpu_waybar.formatter.parser import Chunk, StaticChunk, parse
from gpu_waybar.utils.errors import FieldUnavailableError

LOGGER = logging.getLogger(__name__)

UNAVAILABLE = "N/A"


def trim_trailing_zeros(buffer: str, scan_end_index: int = 0) -> str:
    """Strip trailing zeros and a bare trailing dot from a decimal number.

    Only a dot after ``scan_end_index`` counts, so text written to the buffer
    up to and including that index is never altered.

    >>> trim_trailing_zeros("35.50000")
    '35.5'
    >>> trim_trailing_zeros("100.00 120", scan_end_index=7)
    '100.00 120'
    """
    dot = buffer.rfind(".")
    if dot <= scan_end_index:
        return buffer
    end = len(buffer)
    while end > dot + 1 and buffer[end - 1] == "0":
        end -= 1
    if end == dot + 1:
        end = dot
    return buffer[:end]


def format_number(value: float, precision: Optional[int]) -> str:
    """Format ``value`` with a fixed number of fraction digits, or naturally.

    Natural formatting uses the shortest positional representation, then
    trims trailing zeros.
    """
    if precision is not None:
        return f"{value:.{precision}f}"
    if isinstance(value, int):
        return str(value)
    return trim_trailing_zeros(format(Decimal(repr(float(value))), "f"))


def format_field(field: Field, value) -> str:
    """Convert a canonical value to the field's display unit and format it."""
    kind = field.kind
    if kind in (FieldKind.U8, FieldKind.MEM_UTILIZATION):
        return str(int(value))
    if kind in (FieldKind.P_STATE, FieldKind.P_LEVEL):
        return str(value)
    return format_number(field.unit.compute(value), field.precision)


def render_field(field: Field, source) -> str:
    """Resolve one field, falling back to the unavailable marker."""
    if field.is_unknown:
        return UNAVAILABLE
    try:
        value = source.get_field_value(field)
    except FieldUnavailableError as e:
        LOGGER.debug("%s", e)
        return UNAVAILABLE
    return format_field(field, value)


def render(chunks: Sequence[Chunk], source, out: List[str]) -> str:
    """Render ``chunks`` into the caller-owned ``out`` list and join it.

    ``out`` is cleared first and reused across ticks. Unavailable metrics never
    stop the rest of the template from rendering.
    """
    out.clear()
    for chunk in chunks:
        if isinstance(chunk, StaticChunk):
            out.append(chunk.text)
        else:
            out.append(render_field(chunk.field, source))
    return "".join(out)


class FormatState:
    """A parsed template plus the output buffer it renders into."""

    def __init__(self, chunks: Sequence[Chunk]):
        self.chunks = list(chunks)
        self._buffer: List[str] = []

    @classmethod
    def try_from_format(cls, template: str) -> "FormatState":
        """Parse ``template``.

        Raises:
            UnitParseError: If any placeholder is malformed
        """
        return cls(parse(template))

    @property
    def fields(self) -> List[Field]:
        return [chunk.field for chunk in self.chunks if not isinstance(chunk, StaticChunk)]

    def render(self, source) -> str:
        return render(self.chunks, source, self._buffer)


__all__ = [
    "UNAVAILABLE",
    "FormatState",
    "format_field",
    "format_number",
    "render",
    "render_field",
    "trim_trailing_zeros",
]
