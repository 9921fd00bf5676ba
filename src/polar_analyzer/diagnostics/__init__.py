from .errors import LOCATED_PARSE_KINDS, find_parse_errors, terminal_error_diagnostic
from .models import Diagnostic, LoadResult, Severity
from .positions import Position, diagnostic_range, position_at
from .sort import diagnostic_sort_key, limit_diagnostics, sort_diagnostics
from .unused import find_unmatched_calls, find_unused_rules

__all__ = [
    "Diagnostic",
    "LOCATED_PARSE_KINDS",
    "LoadResult",
    "Position",
    "Severity",
    "diagnostic_range",
    "diagnostic_sort_key",
    "find_parse_errors",
    "find_unmatched_calls",
    "find_unused_rules",
    "limit_diagnostics",
    "position_at",
    "sort_diagnostics",
    "terminal_error_diagnostic",
]
