from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from lark import Token, Transformer, Tree, v_args
from lark.exceptions import UnexpectedEOF, UnexpectedToken, VisitError
from lark.tree import Meta

from .errors import ParseErrorKind, PolarError, build_parse_error
from .grammar import polar_parser
from .lexer import KEYWORDS, literal_value, tokenize
from .rules import Parameter, Rule, empty_body
from .sources import SourceInfo
from .terms import (
    Operator,
    Term,
    TermKind,
    boolean,
    call,
    dict_term,
    expression,
    list_term,
    number,
    pattern,
    string,
    variable,
)

RecoveredError = tuple[str, int, int]

_PARAMETER_KINDS = frozenset(
    {
        TermKind.VARIABLE,
        TermKind.NUMBER,
        TermKind.STRING,
        TermKind.BOOLEAN,
        TermKind.LIST,
        TermKind.DICTIONARY,
    }
)

_END = "$END"


@dataclass(frozen=True, slots=True)
class RuleLine:
    rule: Rule


@dataclass(frozen=True, slots=True)
class QueryLine:
    term: Term


Line = RuleLine | QueryLine


class _SyntaxFailure(Exception):
    def __init__(
        self, error: PolarError, left: int, right: int, *, trailing: bool = False
    ) -> None:
        super().__init__(str(error))
        self.error = error
        self.left = left
        self.right = right
        # Set when the input so far already forms a complete term.
        self.trailing = trailing


def _binary(operator: Operator) -> Callable[[_TermBuilder, Meta, list[Term]], Term]:
    def build(self: _TermBuilder, meta: Meta, children: list[Term]) -> Term:
        return expression(operator, tuple(children), self._info(meta))

    return build


@v_args(meta=True)
class _TermBuilder(Transformer):
    """Turns one statement's parse tree into terms and rules."""

    def __init__(self, src_id: int, text: str) -> None:
        super().__init__()
        self._src_id = src_id
        self._text = text

    def _info(self, meta: Meta) -> SourceInfo:
        return SourceInfo.parser(self._src_id, meta.start_pos, meta.end_pos)

    def _token_info(self, token: Token, end: int | None = None) -> SourceInfo:
        return SourceInfo.parser(
            self._src_id, token.start_pos, token.end_pos if end is None else end
        )

    def _failure(
        self, parse_kind: ParseErrorKind, message: str, left: int, right: int
    ) -> _SyntaxFailure:
        error = build_parse_error(parse_kind, message, text=self._text, loc=left)
        return _SyntaxFailure(error, left, right)

    def _wrong_value_type(self, term: Term, expected: str) -> _SyntaxFailure:
        left, right = term.span() or (0, 0)
        return self._failure(
            ParseErrorKind.WRONG_VALUE_TYPE,
            f"wrong value type: {term.to_polar()}. Expected a {expected}",
            left,
            right,
        )

    # Statements

    def line(self, meta: Meta, children: list) -> RuleLine | QueryLine:
        return children[0]

    def query(self, meta: Meta, children: list[Term]) -> QueryLine:
        return QueryLine(children[0])

    def query_term(self, meta: Meta, children: list[Term]) -> Term:
        return children[0]

    def rule(self, meta: Meta, children: list) -> RuleLine:
        name, params, body = children
        return RuleLine(
            Rule(
                name=str(name),
                params=tuple(params or ()),
                body=empty_body() if body is None else body,
                source_info=self._info(meta),
            )
        )

    def parameters(self, meta: Meta, children: list[Parameter]) -> list[Parameter]:
        return children

    def parameter(self, meta: Meta, children: list) -> Parameter:
        term, specializer = children
        if term.kind not in _PARAMETER_KINDS:
            raise self._wrong_value_type(term, "parameter")
        return Parameter(term, specializer)

    # Specializers

    def tag_pattern(self, meta: Meta, children: list[Token]) -> Term:
        return pattern(str(children[0]), (), self._info(meta))

    def tag_fields_pattern(self, meta: Meta, children: list) -> Term:
        tag, fields = children
        return pattern(str(tag), fields or (), self._info(meta))

    def dict_pattern(self, meta: Meta, children: list) -> Term:
        return pattern(None, children[0] or (), self._info(meta))

    def literal_pattern(self, meta: Meta, children: list[Term]) -> Term:
        literal = children[0]
        if not literal.is_ground():
            raise self._wrong_value_type(literal, "pattern")
        return literal

    # Operators

    def or_expr(self, meta: Meta, children: list[Term]) -> Term:
        return expression(Operator.OR, tuple(children), self._info(meta))

    def and_expr(self, meta: Meta, children: list[Term]) -> Term:
        return expression(Operator.AND, tuple(children), self._info(meta))

    def not_op(self, meta: Meta, children: list[Term]) -> Term:
        return expression(Operator.NOT, tuple(children), self._info(meta))

    unify = _binary(Operator.UNIFY)
    eq = _binary(Operator.EQ)
    neq = _binary(Operator.NEQ)
    lt = _binary(Operator.LT)
    leq = _binary(Operator.LEQ)
    gt = _binary(Operator.GT)
    geq = _binary(Operator.GEQ)
    in_op = _binary(Operator.IN)
    matches_op = _binary(Operator.ISA)
    add = _binary(Operator.ADD)
    sub = _binary(Operator.SUB)
    mul = _binary(Operator.MUL)
    div = _binary(Operator.DIV)
    mod = _binary(Operator.MOD)
    rem = _binary(Operator.REM)

    def negate(self, meta: Meta, children: list[Term]) -> Term:
        operand = children[0]
        if operand.kind is TermKind.NUMBER:
            return number(-operand.value, self._info(meta))  # type: ignore[operator]
        return expression(Operator.SUB, (operand,), self._info(meta))

    def lookup(self, meta: Meta, children: list) -> Term:
        target, name = children
        member = string(str(name), self._token_info(name))
        return expression(Operator.DOT, (target, member), self._info(meta))

    def method_call(self, meta: Meta, children: list) -> Term:
        target, name, args = children
        member = call(str(name), tuple(args or ()), self._token_info(name, meta.end_pos))
        return expression(Operator.DOT, (target, member), self._info(meta))

    # Primaries

    def number(self, meta: Meta, children: list[Token]) -> Term:
        value = literal_value(children[0], self._text)
        return number(value, self._info(meta))  # type: ignore[arg-type]

    def string(self, meta: Meta, children: list[Token]) -> Term:
        value = literal_value(children[0], self._text)
        return string(value, self._info(meta))  # type: ignore[arg-type]

    def true_lit(self, meta: Meta, children: list) -> Term:
        return boolean(True, self._info(meta))

    def false_lit(self, meta: Meta, children: list) -> Term:
        return boolean(False, self._info(meta))

    def variable(self, meta: Meta, children: list[Token]) -> Term:
        return variable(str(children[0]), self._info(meta))

    def call(self, meta: Meta, children: list) -> Term:
        name, args = children
        return call(str(name), tuple(args or ()), self._info(meta))

    def list_lit(self, meta: Meta, children: list) -> Term:
        return list_term(tuple(children[0] or ()), self._info(meta))

    def dict_lit(self, meta: Meta, children: list) -> Term:
        return dict_term(children[0] or (), self._info(meta))

    def cut(self, meta: Meta, children: list) -> Term:
        return expression(Operator.CUT, (), self._info(meta))

    def forall(self, meta: Meta, children: list[Term]) -> Term:
        return expression(Operator.FORALL, tuple(children), self._info(meta))

    def print_call(self, meta: Meta, children: list) -> Term:
        return expression(Operator.PRINT, tuple(children[0] or ()), self._info(meta))

    def new_call(self, meta: Meta, children: list) -> Term:
        name, args = children
        constructor = call(str(name), tuple(args or ()), self._token_info(name, meta.end_pos))
        return expression(Operator.NEW, (constructor,), self._info(meta))

    def debug(self, meta: Meta, children: list) -> Term:
        left = meta.start_pos
        raise self._failure(
            ParseErrorKind.RESERVED_WORD,
            "debug is a reserved Polar word and cannot be used here",
            left,
            left + len("debug"),
        )

    # Collections

    def arguments(self, meta: Meta, children: list[Term]) -> list[Term]:
        return children

    def field(self, meta: Meta, children: list) -> tuple[Token, Term]:
        key, value = children
        return (key, value)

    def fields(
        self, meta: Meta, children: list[tuple[Token, Term]]
    ) -> tuple[tuple[str, Term], ...]:
        seen: dict[str, Term] = {}
        for key, value in children:
            if str(key) in seen:
                raise self._failure(
                    ParseErrorKind.DUPLICATE_KEY,
                    f"duplicate dictionary key '{key}'",
                    key.start_pos,
                    key.end_pos,
                )
            seen[str(key)] = value
        return tuple(seen.items())


def _split_statements(tokens: list[Token]) -> list[list[Token]]:
    statements: list[list[Token]] = []
    current: list[Token] = []
    for token in tokens:
        current.append(token)
        if token.value == ";":
            statements.append(current)
            current = []
    if current:
        statements.append(current)
    return statements


def _end_of_file(text: str) -> PolarError:
    return build_parse_error(
        ParseErrorKind.UNRECOGNIZED_EOF,
        "hit the end of the file unexpectedly. Did you forget a semi-colon",
        text=text,
        loc=len(text),
    )


def _unexpected_token(text: str, exc: UnexpectedToken) -> _SyntaxFailure:
    token = exc.token
    left, right = token.start_pos, token.end_pos
    # A term may open with a keyword; anywhere else a keyword stands where a name belongs.
    if (
        token.type != "NAME"
        and str(token) in KEYWORDS
        and "NAME" in exc.expected
        and "CUT" not in exc.expected
    ):
        parse_kind = ParseErrorKind.RESERVED_WORD
        message = f"{token} is a reserved Polar word and cannot be used here"
    else:
        parse_kind = ParseErrorKind.UNRECOGNIZED_TOKEN
        message = f"did not expect to find the token '{token}'"
    error = build_parse_error(parse_kind, message, text=text, loc=left)
    return _SyntaxFailure(error, left, right, trailing=_END in exc.expected)


def _feed(start: str, tokens: list[Token], text: str) -> Tree:
    """Run the LALR parser over ``tokens``; an early end of input is terminal."""
    if not tokens:
        raise _end_of_file(text)
    interactive = polar_parser().parse_interactive(start=start)
    try:
        for token in tokens:
            interactive.feed_token(token)
        return interactive.feed_eof(tokens[-1])
    except UnexpectedToken as exc:
        if exc.token.type == _END:
            raise _end_of_file(text) from None
        raise _unexpected_token(text, exc) from None
    except UnexpectedEOF:
        raise _end_of_file(text) from None


def _build(tree: Tree, src_id: int, text: str) -> Line | Term:
    try:
        return _TermBuilder(src_id, text).transform(tree)
    except VisitError as exc:
        raise exc.orig_exc from None


def _parse_lines(
    src_id: int, text: str, *, strict: bool
) -> tuple[list[Line], list[RecoveredError]]:
    lines: list[Line] = []
    errors: list[RecoveredError] = []
    for statement in _split_statements(tokenize(text)):
        try:
            lines.append(_build(_feed("line", statement, text), src_id, text))
        except _SyntaxFailure as failure:
            if strict:
                raise failure.error from None
            errors.append((str(failure.error), failure.left, failure.right))
    return (lines, errors)


def parse_file_with_errors(src_id: int, text: str) -> tuple[list[Line], list[RecoveredError]]:
    """Parse ``text``, recovering after each malformed statement.

    Returns the statements that parsed and one ``(message, left, right)``
    triple per recovered error. A malformed statement is skipped through
    its terminating semicolon. Lexing failures and an unexpected end of
    input cannot be recovered from and raise ``PolarError``.
    """
    return _parse_lines(src_id, text, strict=False)


def parse_file(src_id: int, text: str) -> list[Line]:
    lines, _ = _parse_lines(src_id, text, strict=True)
    return lines


def parse_query(src_id: int, text: str) -> Term:
    try:
        return _build(_feed("query_term", tokenize(text), text), src_id, text)
    except _SyntaxFailure as failure:
        token = text[failure.left : failure.right]
        if failure.error.parse_kind is ParseErrorKind.UNRECOGNIZED_TOKEN and failure.trailing:
            raise build_parse_error(
                ParseErrorKind.EXTRA_TOKEN,
                f"extra token '{token}'",
                text=text,
                loc=failure.left,
            ) from None
        raise failure.error from None
