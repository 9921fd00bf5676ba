from __future__ import annotations

import pytest

from polar_analyzer.engine import KnowledgeBase, Parameter, Rule, SourceInfo
from polar_analyzer.engine.terms import call, number, pattern, variable
from polar_analyzer.inspect import (
    RuleInfo,
    RuleLocation,
    get_document_symbols,
    get_rule_info,
    get_rule_location,
    get_rule_signature,
)

pytestmark = pytest.mark.unit


def test_signature_is_sliced_from_source() -> None:
    kb = KnowledgeBase()
    kb.load("# header\nf(x, y) if g(x) and h(y, z);\n", "a.polar")

    (info,) = get_rule_info(kb)

    assert info == RuleInfo(
        symbol="f",
        signature="f(x, y) if g(x) and h(y, z);",
        free_variables=("x", "y", "z"),
        location=RuleLocation(filename="a.polar", start=9, end=37),
    )


def test_slicing_uses_character_offsets() -> None:
    kb = KnowledgeBase()
    kb.load('# ünïcödé ✓\nf("é");', "u.polar")

    (info,) = get_rule_info(kb)

    assert info.signature == 'f("é");'
    assert info.location.start == 12


def test_rule_without_source_reconstructs_signature() -> None:
    kb = KnowledgeBase()
    rule = Rule(
        "h",
        (Parameter(variable("a")), Parameter(number(1)), Parameter(variable("u"), pattern("User"))),
        body=call("g", (variable("a"),)),
    )
    kb.add_rule(rule)

    assert get_rule_signature(kb, rule) == "h(a, 1, u: User)"
    assert get_rule_location(kb, rule) == RuleLocation(filename=None, start=0, end=0)
    (info,) = get_rule_info(kb)
    assert info.free_variables == ("a",)


def test_missing_source_id_degrades_to_reconstruction() -> None:
    kb = KnowledgeBase()
    rule = Rule("h", (Parameter(variable("a")),), source_info=SourceInfo.parser(99, 0, 5))
    kb.add_rule(rule)

    assert get_rule_signature(kb, rule) == "h(a)"
    assert get_rule_location(kb, rule).filename is None


def test_rule_info_follows_knowledge_base_order() -> None:
    kb = KnowledgeBase()
    kb.load("b(1);\na(1);\nb(2);", "a.polar")
    kb.add_rule(Rule("c", (), source_info=SourceInfo.test()))

    infos = get_rule_info(kb)

    assert [(info.symbol, info.signature) for info in infos] == [
        ("b", "b(1);"),
        ("b", "b(2);"),
        ("a", "a(1);"),
        ("c", "c()"),
    ]
    assert all(info.free_variables == () for info in infos)


def test_document_symbols_filter_by_file() -> None:
    kb = KnowledgeBase()
    kb.load("f(1);", "a.polar")
    kb.load("g(1);", "b.polar")

    assert [info.symbol for info in get_document_symbols(kb, "b.polar")] == ["g"]


def test_rule_info_dumps_plain_data() -> None:
    kb = KnowledgeBase()
    kb.load("f(x) if x = y;", "a.polar")

    (info,) = get_rule_info(kb)

    assert info.model_dump(mode="json") == {
        "symbol": "f",
        "signature": "f(x) if x = y;",
        "free_variables": ["x", "y"],
        "location": {"filename": "a.polar", "start": 0, "end": 14},
    }
