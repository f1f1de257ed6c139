"""Availability pruning for the auto-generated tooltip template."""

import logging

from gpu_waybar.formatter.fields import parse_field
from gpu_waybar.formatter.parser import iter_placeholders

LOGGER = logging.getLogger(__name__)


def line_is_available(line: str, source) -> bool:
    """True if every placeholder on ``line`` is available from ``source``."""
    for _, segments in iter_placeholders(line):
        field = parse_field(*segments)
        if field.is_unknown or not source.is_field_available(field):
            return False
    return True


def prune_template(template: str, source) -> str:
    """Drop every line of ``template`` that names an unavailable field.

    Retained lines are kept verbatim with their line terminators. Lines
    without placeholders are always kept.

    Raises:
        UnitParseError: If a placeholder in ``template`` is malformed
    """
    kept = []
    for line in template.splitlines(keepends=True):
        if line_is_available(line, source):
            kept.append(line)
        else:
            LOGGER.debug("Dropping tooltip line %r", line.rstrip("\n"))
    return "".join(kept)


__all__ = ["line_is_available", "prune_template"]
