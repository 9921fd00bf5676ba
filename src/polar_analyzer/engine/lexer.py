from __future__ import annotations

import math

from lark import Token
from lark.exceptions import UnexpectedCharacters

from .errors import ParseErrorKind, PolarError, build_parse_error
from .grammar import polar_parser

MAX_INTEGER = 2**63 - 1
_MAX_INTEGER_DIGITS = len(str(MAX_INTEGER))

KEYWORDS: frozenset[str] = frozenset(
    {
        "and",
        "cut",
        "debug",
        "false",
        "forall",
        "if",
        "in",
        "matches",
        "mod",
        "new",
        "not",
        "or",
        "print",
        "rem",
        "true",
    }
)

_ESCAPES: dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
    "\\": "\\",
    '"': '"',
}


def tokenize(text: str) -> list[Token]:
    """Split ``text`` into grammar tokens and validate every literal.

    Offsets are character indexes. Lexing failures are terminal and raise
    ``PolarError`` with a parse kind; the first failure in source order wins.
    """
    tokens: list[Token] = []
    try:
        for token in polar_parser().lex(text):
            literal_value(token, text)
            tokens.append(token)
    except UnexpectedCharacters as exc:
        raise _unexpected_character(text, exc.pos_in_stream) from None
    return tokens


def literal_value(token: Token, text: str) -> int | float | str:
    """Decode a number or string token; any other token decodes to its spelling."""
    spelling = str(token)
    if token.type == "INTEGER":
        return _integer_value(spelling, token.start_pos, text)
    if token.type == "FLOAT":
        value = float(spelling)
        if not math.isfinite(value):
            raise build_parse_error(
                ParseErrorKind.INVALID_FLOAT,
                f"'{spelling}' was parsed as a float, but is invalid",
                text=text,
                loc=None,
            )
        return value
    if token.type == "STRING":
        return _string_value(spelling, token.start_pos, text)
    return spelling


def _integer_value(spelling: str, start: int, text: str) -> int:
    digits = spelling.lstrip("0") or "0"
    if len(digits) > _MAX_INTEGER_DIGITS or int(digits) > MAX_INTEGER:
        raise build_parse_error(
            ParseErrorKind.INTEGER_OVERFLOW,
            f"'{spelling}' caused an integer overflow",
            text=text,
            loc=start,
        )
    return int(digits)


def _string_value(spelling: str, start: int, text: str) -> str:
    chars: list[str] = []
    pos = 1
    # The token regex guarantees a closing quote and a character after each backslash.
    while pos < len(spelling) - 1:
        char = spelling[pos]
        if char == "\\":
            escaped = spelling[pos + 1]
            if escaped not in _ESCAPES:
                raise build_parse_error(
                    ParseErrorKind.INVALID_TOKEN,
                    "found an unexpected sequence of characters",
                    text=text,
                    loc=start + pos,
                )
            chars.append(_ESCAPES[escaped])
            pos += 2
            continue
        chars.append(char)
        pos += 1
    return "".join(chars)


def _unexpected_character(text: str, start: int) -> PolarError:
    if text[start] == '"':
        return build_parse_error(
            ParseErrorKind.INVALID_TOKEN,
            "found an unterminated string literal",
            text=text,
            loc=start,
        )
    end = start + 1
    while end < len(text) and not text[end].isspace():
        end += 1
    return build_parse_error(
        ParseErrorKind.INVALID_TOKEN_CHARACTER,
        f"'{text[start]}' is not a valid character. Found in {text[start:end]}",
        text=text,
        loc=start,
    )
