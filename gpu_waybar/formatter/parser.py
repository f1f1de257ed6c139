"""Template parsing into static and variable chunks."""

import logging
import re
from dataclasses import dataclass
from typing import Iterator, List, Tuple, Union

from gpu_waybar.formatter.fields import Field, FormatSegments, parse_field

LOGGER = logging.getLogger(__name__)

# {name}, {name:unit} or {name:unit.precision}
PLACEHOLDER_RE = re.compile(r"\{(\w+)(?::(\w+)(?:\.(\w+))?)?\}")


@dataclass(frozen=True)
class StaticChunk:
    text: str


@dataclass(frozen=True)
class VariableChunk:
    field: Field


Chunk = Union[StaticChunk, VariableChunk]


def iter_placeholders(template: str) -> Iterator[Tuple[re.Match, FormatSegments]]:
    """Yield every placeholder match in ``template`` with its split segments."""
    for match in PLACEHOLDER_RE.finditer(template):
        yield match, FormatSegments(*match.groups())


def parse(template: str) -> List[Chunk]:
    """Parse a template string into chunks.

    Static text around placeholders is kept verbatim. Strictly empty runs are
    not emitted, so ``parse("{p_state}")`` is a single VariableChunk.

    Raises:
        UnitParseError: On the first placeholder with a missing or invalid
            unit or precision. The whole template is rejected.
    """
    chunks: List[Chunk] = []
    last_end = 0

    for match, segments in iter_placeholders(template):
        if match.start() > last_end:
            chunks.append(StaticChunk(template[last_end : match.start()]))

        field = parse_field(*segments)
        if field.is_unknown:
            LOGGER.warning("Unknown field: %s", segments.field)

        chunks.append(VariableChunk(field))
        last_end = match.end()

    if last_end < len(template):
        chunks.append(StaticChunk(template[last_end:]))
    return chunks


__all__ = ["Chunk", "StaticChunk", "VariableChunk", "PLACEHOLDER_RE", "iter_placeholders", "parse"]
