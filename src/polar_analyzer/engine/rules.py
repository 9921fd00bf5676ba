from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .sources import SourceInfo, SourceKind
from .terms import Expression, Operator, Pattern, Term, TermKind, expression

BUILTIN_CLASS_KINDS: dict[str, frozenset[TermKind]] = {
    "Boolean": frozenset({TermKind.BOOLEAN}),
    "Dictionary": frozenset({TermKind.DICTIONARY}),
    "Float": frozenset({TermKind.NUMBER}),
    "Integer": frozenset({TermKind.NUMBER}),
    "List": frozenset({TermKind.LIST}),
    "Number": frozenset({TermKind.NUMBER}),
    "String": frozenset({TermKind.STRING}),
}


@dataclass(frozen=True, slots=True)
class Parameter:
    parameter: Term
    specializer: Term | None = None

    def to_polar(self) -> str:
        if self.specializer is None:
            return self.parameter.to_polar()
        return f"{self.parameter.to_polar()}: {self.specializer.to_polar()}"


def empty_body(source_info: SourceInfo | None = None) -> Term:
    return expression(Operator.AND, (), source_info)


@dataclass(frozen=True, slots=True)
class Rule:
    name: str
    params: tuple[Parameter, ...]
    body: Term = field(default_factory=empty_body)
    source_info: SourceInfo = field(default_factory=SourceInfo.ffi, compare=False)

    def head(self) -> str:
        return f"{self.name}({', '.join(param.to_polar() for param in self.params)})"

    def has_body(self) -> bool:
        value = self.body.value
        return not (
            self.body.kind is TermKind.EXPRESSION
            and isinstance(value, Expression)
            and value.operator is Operator.AND
            and not value.args
        )

    def to_polar(self) -> str:
        if not self.has_body():
            return f"{self.head()};"
        return f"{self.head()} if {self.body.to_polar()};"


@dataclass(slots=True)
class GenericRule:
    """All variants of one rule name, stored in an id-indexed table."""

    name: str
    rules: dict[int, Rule] = field(default_factory=dict)
    next_rule_id: int = 0

    def add_rule(self, rule: Rule) -> int:
        if rule.name != self.name:
            raise ValueError(f"rule '{rule.name}' cannot be added to generic rule '{self.name}'")
        rule_id = self.next_rule_id
        self.rules[rule_id] = rule
        self.next_rule_id += 1
        return rule_id

    def remove_rules_from(self, src_id: int) -> int:
        doomed = [
            rule_id
            for rule_id, rule in self.rules.items()
            if rule.source_info.kind is SourceKind.PARSER and rule.source_info.src_id == src_id
        ]
        for rule_id in doomed:
            del self.rules[rule_id]
        return len(doomed)

    def variants(self) -> tuple[Rule, ...]:
        return tuple(self.rules.values())

    def applicable_rules(self, args: Sequence[Term]) -> list[Rule]:
        """Variants whose parameters could match ``args``.

        Non-ground arguments are always considered compatible; only ground
        literals are checked against parameter values and specializers.
        """
        return [rule for rule in self.rules.values() if _rule_applies(rule, args)]


def _rule_applies(rule: Rule, args: Sequence[Term]) -> bool:
    if len(rule.params) != len(args):
        return False
    return all(_param_applies(param, arg) for param, arg in zip(rule.params, args, strict=True))


def _param_applies(param: Parameter, arg: Term) -> bool:
    if not arg.is_ground():
        return True
    if not _unifiable(param.parameter, arg):
        return False
    if param.specializer is None:
        return True
    return _specializer_accepts(param.specializer, arg)


def _unifiable(left: Term, right: Term) -> bool:
    if left.kind is TermKind.VARIABLE or right.kind is TermKind.VARIABLE:
        return True
    if not left.is_ground() or not right.is_ground():
        return True
    if left.kind is not right.kind:
        return False
    if left.kind is TermKind.LIST:
        left_items = tuple(left.children())
        right_items = tuple(right.children())
        return len(left_items) == len(right_items) and all(
            _unifiable(lhs, rhs) for lhs, rhs in zip(left_items, right_items, strict=True)
        )
    if left.kind is TermKind.DICTIONARY:
        left_fields = dict(left.value)  # type: ignore[arg-type]
        right_fields = dict(right.value)  # type: ignore[arg-type]
        return left_fields.keys() == right_fields.keys() and all(
            _unifiable(item, right_fields[key]) for key, item in left_fields.items()
        )
    return left.value == right.value


def _specializer_accepts(specializer: Term, arg: Term) -> bool:
    if specializer.kind is TermKind.VARIABLE:
        return True
    if specializer.kind is not TermKind.PATTERN:
        return _unifiable(specializer, arg)
    value = specializer.value
    assert isinstance(value, Pattern)
    if value.tag is None:
        return arg.kind is TermKind.DICTIONARY and _fields_accept(value.fields, arg)
    kinds = BUILTIN_CLASS_KINDS.get(value.tag)
    if kinds is None:
        # Host classes never match primitive literals.
        return False
    if arg.kind not in kinds:
        return False
    if value.tag == "Integer" and not isinstance(arg.value, int):
        return False
    if value.tag == "Float" and not isinstance(arg.value, float):
        return False
    if not value.fields:
        return True
    return arg.kind is TermKind.DICTIONARY and _fields_accept(value.fields, arg)


def _fields_accept(fields: tuple[tuple[str, Term], ...], arg: Term) -> bool:
    available = dict(arg.value)  # type: ignore[arg-type]
    for key, expected in fields:
        if key not in available:
            return False
        actual = available[key]
        if expected.kind is TermKind.PATTERN:
            if not _specializer_accepts(expected, actual):
                return False
        elif not _unifiable(expected, actual):
            return False
    return True
