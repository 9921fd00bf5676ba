from __future__ import annotations

import logging
from collections.abc import Iterable

from polar_analyzer.engine import (
    KnowledgeBase,
    Line,
    Operator,
    PolarError,
    QueryLine,
    RuleLine,
    Term,
    TermKind,
    parse_file_with_errors,
)
from polar_analyzer.engine.terms import Call, Expression

from .models import Diagnostic

logger = logging.getLogger(__name__)

_LEAF_KINDS = frozenset({TermKind.VARIABLE, TermKind.NUMBER, TermKind.STRING, TermKind.BOOLEAN})
_CONTAINER_KINDS = frozenset({TermKind.LIST, TermKind.DICTIONARY, TermKind.PATTERN})


def find_unused_rules(
    kb: KnowledgeBase, text: str, *, skip_method_calls: bool = False
) -> list[Diagnostic]:
    """Parse ``text`` and report calls no rule in ``kb`` can satisfy."""
    try:
        lines, _ = parse_file_with_errors(0, text)
    except (PolarError, RecursionError):
        return []
    return find_unmatched_calls(kb, lines, skip_method_calls=skip_method_calls)


def find_unmatched_calls(
    kb: KnowledgeBase,
    lines: Iterable[Line],
    *,
    skip_method_calls: bool = False,
) -> list[Diagnostic]:
    diagnostics: list[Diagnostic] = []
    for line in lines:
        for term, is_rule_call in _walk(_root_term(line), skip_method_calls=skip_method_calls):
            if not is_rule_call:
                continue
            diagnostic = _check_call(kb, term)
            if diagnostic is not None:
                diagnostics.append(diagnostic)
    return diagnostics


def _root_term(line: Line) -> Term:
    if isinstance(line, RuleLine):
        return line.rule.body
    if isinstance(line, QueryLine):
        return line.term
    raise TypeError(f"unhandled line type: {type(line).__name__}")


def _walk(root: Term, *, skip_method_calls: bool) -> Iterable[tuple[Term, bool]]:
    """Yield every sub-term of ``root`` depth first, in source order.

    Each term is paired with whether it is a call that should resolve against
    rules. Method and constructor calls are flagged too unless
    ``skip_method_calls`` treats them as resolving against host objects.
    """
    stack: list[tuple[Term, bool]] = [(root, True)]
    while stack:
        term, resolves_to_rule = stack.pop()
        kind = term.kind
        if kind is TermKind.CALL:
            yield (term, resolves_to_rule)
            value = term.value
            assert isinstance(value, Call)
            children = [(arg, True) for arg in value.args]
        elif kind is TermKind.EXPRESSION:
            yield (term, False)
            value = term.value
            assert isinstance(value, Expression)
            children = [(arg, True) for arg in value.args]
            if skip_method_calls and value.operator is Operator.DOT:
                children[-1] = (children[-1][0], False)
            elif skip_method_calls and value.operator is Operator.NEW:
                children = [(arg, False) for arg in value.args]
        elif kind in _CONTAINER_KINDS:
            yield (term, False)
            children = [(child, True) for child in term.children()]
        elif kind in _LEAF_KINDS:
            yield (term, False)
            children = []
        else:
            raise TypeError(f"unhandled term kind: {kind}")
        stack.extend(reversed(children))


def _check_call(kb: KnowledgeBase, term: Term) -> Diagnostic | None:
    value = term.value
    assert isinstance(value, Call)
    start, end = term.span() or (0, 0)
    generic_rule = kb.rules.get(value.name)
    if generic_rule is None:
        return Diagnostic(
            message=f'There are no rules with the name "{value.name}"',
            start=start,
            end=end,
        )
    try:
        applicable = generic_rule.applicable_rules(value.args)
    except Exception:  # noqa: BLE001
        logger.warning("event=applicability_check_failed call=%s", value.name, exc_info=True)
        return None
    if applicable:
        return None
    existing = "\n".join(f"  {rule.head()}" for rule in generic_rule.variants())
    return Diagnostic(
        message=f'No rules match the call "{term.to_polar()}". Existing rules:\n{existing}',
        start=start,
        end=end,
    )
