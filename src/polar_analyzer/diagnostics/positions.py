from __future__ import annotations

from dataclasses import dataclass

from .models import Diagnostic


@dataclass(frozen=True, slots=True)
class Position:
    """Zero-based line and character, as editors address text."""

    line: int
    character: int


def position_at(text: str, offset: int) -> Position:
    clamped = max(0, min(offset, len(text)))
    line = text.count("\n", 0, clamped)
    line_start = text.rfind("\n", 0, clamped) + 1
    return Position(line=line, character=clamped - line_start)


def diagnostic_range(text: str, diagnostic: Diagnostic) -> tuple[Position, Position]:
    return (position_at(text, diagnostic.start), position_at(text, diagnostic.end))
