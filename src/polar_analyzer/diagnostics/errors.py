from __future__ import annotations

from polar_analyzer.engine import ErrorKind, ParseErrorKind, PolarError, parse_file_with_errors

from .models import Diagnostic

LOCATED_PARSE_KINDS: frozenset[ParseErrorKind] = frozenset(
    {
        ParseErrorKind.INTEGER_OVERFLOW,
        ParseErrorKind.INVALID_TOKEN_CHARACTER,
        ParseErrorKind.INVALID_TOKEN,
        ParseErrorKind.UNRECOGNIZED_EOF,
        ParseErrorKind.UNRECOGNIZED_TOKEN,
        ParseErrorKind.EXTRA_TOKEN,
        ParseErrorKind.WRONG_VALUE_TYPE,
        ParseErrorKind.RESERVED_WORD,
    }
)


def find_parse_errors(text: str) -> list[Diagnostic]:
    """Collect every parse error in ``text`` without raising.

    Errors the parser recovered from keep their token span. A terminal
    failure becomes a single diagnostic at its location, or at 0/0 when it
    carries none.
    """
    try:
        _, recovered = parse_file_with_errors(0, text)
    except PolarError as exc:
        return [terminal_error_diagnostic(exc)]
    except RecursionError:
        return [Diagnostic.unlocated("policy is nested too deeply to parse")]
    return [Diagnostic(message=message, start=left, end=right) for message, left, right in recovered]


def terminal_error_diagnostic(exc: PolarError) -> Diagnostic:
    if (
        exc.kind is ErrorKind.PARSE
        and exc.parse_kind in LOCATED_PARSE_KINDS
        and exc.loc is not None
    ):
        return Diagnostic(message=str(exc), start=exc.loc, end=exc.loc)
    return Diagnostic.unlocated(str(exc))
