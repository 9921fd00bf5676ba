from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class ErrorKind(StrEnum):
    PARSE = "parse"
    VALIDATION = "validation"
    RUNTIME = "runtime"
    OPERATIONAL = "operational"


class ParseErrorKind(StrEnum):
    INTEGER_OVERFLOW = "IntegerOverflow"
    INVALID_TOKEN_CHARACTER = "InvalidTokenCharacter"
    INVALID_TOKEN = "InvalidToken"
    INVALID_FLOAT = "InvalidFloat"
    UNRECOGNIZED_EOF = "UnrecognizedEOF"
    UNRECOGNIZED_TOKEN = "UnrecognizedToken"
    EXTRA_TOKEN = "ExtraToken"
    WRONG_VALUE_TYPE = "WrongValueType"
    RESERVED_WORD = "ReservedWord"
    DUPLICATE_KEY = "DuplicateKey"


@dataclass(frozen=True, slots=True)
class PolarErrorDetail:
    kind: ErrorKind
    message: str
    parse_kind: ParseErrorKind | None = None
    loc: int | None = None


class PolarError(ValueError):
    def __init__(self, detail: PolarErrorDetail) -> None:
        super().__init__(detail.message)
        self.detail = detail

    @property
    def kind(self) -> ErrorKind:
        return self.detail.kind

    @property
    def parse_kind(self) -> ParseErrorKind | None:
        return self.detail.parse_kind

    @property
    def loc(self) -> int | None:
        return self.detail.loc


class InvariantViolation(RuntimeError):
    """The knowledge base could not be restored after a failed load."""


def line_column(text: str, loc: int) -> tuple[int, int]:
    """Return the 1-based line and column of character offset ``loc``."""
    clamped = max(0, min(loc, len(text)))
    line = text.count("\n", 0, clamped) + 1
    column = clamped - (text.rfind("\n", 0, clamped) + 1) + 1
    return (line, column)


def build_parse_error(
    parse_kind: ParseErrorKind,
    message: str,
    *,
    text: str,
    loc: int | None,
) -> PolarError:
    if loc is not None:
        line, column = line_column(text, loc)
        message = f"{message} at line {line}, column {column}"
    return PolarError(
        PolarErrorDetail(
            kind=ErrorKind.PARSE,
            message=message,
            parse_kind=parse_kind,
            loc=loc,
        )
    )


def build_validation_error(message: str) -> PolarError:
    return PolarError(PolarErrorDetail(kind=ErrorKind.VALIDATION, message=message))
