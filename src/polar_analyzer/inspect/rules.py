"""Display metadata for loaded rules: signature, location and free variables."""

from __future__ import annotations

import logging

from polar_analyzer.engine import KnowledgeBase, Rule, Source, SourceKind

from .models import RuleInfo, RuleLocation

logger = logging.getLogger(__name__)


def _rule_source(kb: KnowledgeBase, rule: Rule) -> tuple[Source, int, int] | None:
    info = rule.source_info
    if info.kind is not SourceKind.PARSER:
        return None
    assert info.src_id is not None and info.left is not None and info.right is not None
    source = kb.sources.get_source(info.src_id)
    if source is None:
        return None
    return (source, info.left, info.right)


def get_rule_signature(kb: KnowledgeBase, rule: Rule) -> str:
    """Signature of ``rule`` as written in its source.

    Falls back to ``name(param, ...)`` when the source is not registered.
    """
    resolved = _rule_source(kb, rule)
    if resolved is not None:
        source, left, right = resolved
        return source.src[left:right]
    return rule.head()


def get_rule_location(kb: KnowledgeBase, rule: Rule) -> RuleLocation:
    resolved = _rule_source(kb, rule)
    if resolved is None:
        return RuleLocation(filename=None, start=0, end=0)
    source, left, right = resolved
    return RuleLocation(filename=source.filename, start=left, end=right)


def get_rule_free_variables(rule: Rule) -> set[str]:
    variables: set[str] = set()
    rule.body.variables(variables)
    return variables


def _rule_info(kb: KnowledgeBase, name: str, rule: Rule) -> RuleInfo:
    try:
        signature = get_rule_signature(kb, rule)
        location = get_rule_location(kb, rule)
    except (ValueError, TypeError):
        logger.warning("event=rule_source_unresolved rule=%s", name, exc_info=True)
        signature = rule.head()
        location = RuleLocation()
    return RuleInfo(
        symbol=name,
        signature=signature,
        free_variables=get_rule_free_variables(rule),
        location=location,
    )


def get_rule_info(kb: KnowledgeBase) -> list[RuleInfo]:
    return [
        _rule_info(kb, name, rule)
        for name, generic_rule in kb.rules.items()
        for rule in generic_rule.variants()
    ]


def get_document_symbols(kb: KnowledgeBase, filename: str) -> list[RuleInfo]:
    return [info for info in get_rule_info(kb) if info.location.filename == filename]
