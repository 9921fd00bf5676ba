from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import StrEnum

from .sources import SourceInfo


class TermKind(StrEnum):
    VARIABLE = "variable"
    CALL = "call"
    EXPRESSION = "expression"
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    LIST = "list"
    DICTIONARY = "dictionary"
    PATTERN = "pattern"


class Operator(StrEnum):
    AND = "and"
    OR = "or"
    NOT = "not"
    UNIFY = "="
    EQ = "=="
    NEQ = "!="
    LT = "<"
    LEQ = "<="
    GT = ">"
    GEQ = ">="
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "mod"
    REM = "rem"
    IN = "in"
    ISA = "matches"
    DOT = "."
    CUT = "cut"
    FORALL = "forall"
    PRINT = "print"
    NEW = "new"


# Binding strength used when rendering; higher binds tighter.
_PRECEDENCE: dict[Operator, int] = {
    Operator.OR: 1,
    Operator.AND: 2,
    Operator.NOT: 3,
    Operator.UNIFY: 4,
    Operator.EQ: 4,
    Operator.NEQ: 4,
    Operator.LT: 4,
    Operator.LEQ: 4,
    Operator.GT: 4,
    Operator.GEQ: 4,
    Operator.IN: 4,
    Operator.ISA: 4,
    Operator.ADD: 5,
    Operator.SUB: 5,
    Operator.MUL: 6,
    Operator.DIV: 6,
    Operator.MOD: 6,
    Operator.REM: 6,
    Operator.DOT: 8,
    Operator.CUT: 9,
    Operator.FORALL: 9,
    Operator.PRINT: 9,
    Operator.NEW: 9,
}

_INFIX_OPERATORS = frozenset(
    {
        Operator.UNIFY,
        Operator.EQ,
        Operator.NEQ,
        Operator.LT,
        Operator.LEQ,
        Operator.GT,
        Operator.GEQ,
        Operator.ADD,
        Operator.SUB,
        Operator.MUL,
        Operator.DIV,
        Operator.MOD,
        Operator.REM,
        Operator.IN,
        Operator.ISA,
    }
)


@dataclass(frozen=True, slots=True)
class Call:
    name: str
    args: tuple[Term, ...] = ()


@dataclass(frozen=True, slots=True)
class Expression:
    operator: Operator
    args: tuple[Term, ...] = ()


@dataclass(frozen=True, slots=True)
class Pattern:
    """Instance pattern ``Tag{field: value}``; ``tag`` is None for a dictionary pattern."""

    tag: str | None
    fields: tuple[tuple[str, Term], ...] = ()


@dataclass(frozen=True, slots=True)
class Term:
    kind: TermKind
    value: TermValue
    source_info: SourceInfo = field(default_factory=SourceInfo.temporary, compare=False)

    def span(self) -> tuple[int, int] | None:
        return self.source_info.span()

    def children(self) -> Iterator[Term]:
        kind = self.kind
        if kind is TermKind.CALL or kind is TermKind.EXPRESSION:
            yield from self.value.args  # type: ignore[union-attr]
        elif kind is TermKind.LIST:
            yield from self.value  # type: ignore[misc]
        elif kind is TermKind.DICTIONARY:
            for _, item in self.value:  # type: ignore[misc]
                yield item
        elif kind is TermKind.PATTERN:
            for _, item in self.value.fields:  # type: ignore[union-attr]
                yield item
        elif kind in (TermKind.VARIABLE, TermKind.NUMBER, TermKind.STRING, TermKind.BOOLEAN):
            return
        else:
            raise TypeError(f"unhandled term kind: {kind}")

    def variables(self, out: set[str]) -> None:
        if self.kind is TermKind.VARIABLE:
            out.add(self.value)  # type: ignore[arg-type]
            return
        for child in self.children():
            child.variables(out)

    def is_ground(self) -> bool:
        if self.kind in (TermKind.NUMBER, TermKind.STRING, TermKind.BOOLEAN):
            return True
        if self.kind in (TermKind.LIST, TermKind.DICTIONARY, TermKind.PATTERN):
            return all(child.is_ground() for child in self.children())
        return False

    def to_polar(self) -> str:
        kind = self.kind
        value = self.value
        if kind is TermKind.VARIABLE:
            return str(value)
        if kind is TermKind.NUMBER:
            return repr(value)
        if kind is TermKind.STRING:
            return json.dumps(value, ensure_ascii=False)
        if kind is TermKind.BOOLEAN:
            return "true" if value else "false"
        if kind is TermKind.LIST:
            return "[" + ", ".join(item.to_polar() for item in value) + "]"  # type: ignore[union-attr]
        if kind is TermKind.DICTIONARY:
            return _render_fields(value)  # type: ignore[arg-type]
        if kind is TermKind.PATTERN:
            assert isinstance(value, Pattern)
            if value.tag is None:
                return _render_fields(value.fields)
            if not value.fields:
                return value.tag
            return value.tag + _render_fields(value.fields)
        if kind is TermKind.CALL:
            assert isinstance(value, Call)
            return f"{value.name}({', '.join(arg.to_polar() for arg in value.args)})"
        if kind is TermKind.EXPRESSION:
            assert isinstance(value, Expression)
            return _render_expression(value)
        raise TypeError(f"unhandled term kind: {kind}")


def _render_fields(fields: tuple[tuple[str, Term], ...]) -> str:
    return "{" + ", ".join(f"{key}: {item.to_polar()}" for key, item in fields) + "}"


def _render_operand(term: Term, parent: Operator) -> str:
    rendered = term.to_polar()
    if term.kind is TermKind.EXPRESSION:
        child = term.value.operator  # type: ignore[union-attr]
        if _PRECEDENCE[child] < _PRECEDENCE[parent]:
            return f"({rendered})"
    return rendered


def _render_expression(expr: Expression) -> str:
    op = expr.operator
    args = expr.args
    if op is Operator.AND or op is Operator.OR:
        return f" {op.value} ".join(_render_operand(arg, op) for arg in args)
    if op is Operator.NOT:
        return f"not {_render_operand(args[0], op)}"
    if op in _INFIX_OPERATORS:
        if len(args) == 1 and op is Operator.SUB:
            return f"-{_render_operand(args[0], Operator.DOT)}"
        left, right = args
        return f"{_render_operand(left, op)} {op.value} {_render_operand(right, op)}"
    if op is Operator.DOT:
        target, member = args
        if member.kind is TermKind.STRING:
            return f"{_render_operand(target, op)}.{member.value}"
        return f"{_render_operand(target, op)}.{member.to_polar()}"
    if op is Operator.CUT:
        return "cut"
    if op is Operator.FORALL or op is Operator.PRINT:
        return f"{op.value}({', '.join(arg.to_polar() for arg in args)})"
    if op is Operator.NEW:
        return f"new {args[0].to_polar()}"
    raise TypeError(f"unhandled operator: {op}")


TermValue = (
    str
    | int
    | float
    | bool
    | Call
    | Expression
    | Pattern
    | tuple[Term, ...]
    | tuple[tuple[str, Term], ...]
)


def variable(name: str, source_info: SourceInfo | None = None) -> Term:
    return _term(TermKind.VARIABLE, name, source_info)


def number(value: int | float, source_info: SourceInfo | None = None) -> Term:
    return _term(TermKind.NUMBER, value, source_info)


def string(value: str, source_info: SourceInfo | None = None) -> Term:
    return _term(TermKind.STRING, value, source_info)


def boolean(value: bool, source_info: SourceInfo | None = None) -> Term:
    return _term(TermKind.BOOLEAN, value, source_info)


def list_term(items: tuple[Term, ...], source_info: SourceInfo | None = None) -> Term:
    return _term(TermKind.LIST, tuple(items), source_info)


def dict_term(
    fields: tuple[tuple[str, Term], ...], source_info: SourceInfo | None = None
) -> Term:
    return _term(TermKind.DICTIONARY, tuple(fields), source_info)


def pattern(
    tag: str | None,
    fields: tuple[tuple[str, Term], ...] = (),
    source_info: SourceInfo | None = None,
) -> Term:
    return _term(TermKind.PATTERN, Pattern(tag, tuple(fields)), source_info)


def call(name: str, args: tuple[Term, ...] = (), source_info: SourceInfo | None = None) -> Term:
    return _term(TermKind.CALL, Call(name, tuple(args)), source_info)


def expression(
    operator: Operator, args: tuple[Term, ...], source_info: SourceInfo | None = None
) -> Term:
    return _term(TermKind.EXPRESSION, Expression(operator, tuple(args)), source_info)


def _term(kind: TermKind, value: TermValue, source_info: SourceInfo | None) -> Term:
    return Term(kind, value, SourceInfo.temporary() if source_info is None else source_info)
