from __future__ import annotations

from collections.abc import Iterable

from .models import Diagnostic


def diagnostic_sort_key(diagnostic: Diagnostic) -> tuple[int, int, str]:
    return (diagnostic.start, diagnostic.end, diagnostic.message)


def sort_diagnostics(diagnostics: Iterable[Diagnostic]) -> list[Diagnostic]:
    return sorted(diagnostics, key=diagnostic_sort_key)


def limit_diagnostics(
    diagnostics: Iterable[Diagnostic], max_problems: int
) -> tuple[Diagnostic, ...]:
    if max_problems < 0:
        raise ValueError("max_problems must be >= 0")
    return tuple(diagnostics)[:max_problems]
