from __future__ import annotations

import logging
import threading

import pytest

from polar_analyzer.analyzer import PolarAnalyzer, construct
from polar_analyzer.config import AnalyzerConfig
from polar_analyzer.diagnostics import Diagnostic, LoadResult
from polar_analyzer.engine import InvariantViolation, KnowledgeBase
from polar_analyzer.engine.errors import build_validation_error

pytestmark = pytest.mark.unit


def _symbols(analyzer: PolarAnalyzer) -> list[str]:
    return [info.signature for info in analyzer.list_rule_info()]


def test_clean_load_reports_undefined_call() -> None:
    analyzer = PolarAnalyzer()

    result = analyzer.load("f(x) if g(x);", "a.polar")

    assert result == LoadResult(
        unused_rules=(Diagnostic(message='There are no rules with the name "g"', start=8, end=12),)
    )
    assert result.ok
    assert _symbols(analyzer) == ["f(x) if g(x);"]


def test_method_call_without_rule_is_reported() -> None:
    result = PolarAnalyzer().load("f(x) if x.foo(1);", "a.polar")

    assert result.unused_rules == (
        Diagnostic(message='There are no rules with the name "foo"', start=10, end=16),
    )


def test_malformed_text_reports_error_and_loads_nothing() -> None:
    analyzer = PolarAnalyzer()

    result = analyzer.load("f(x) if x = 1 + ;", "a.polar")

    assert result.errors == (
        Diagnostic(
            message="did not expect to find the token ';' at line 1, column 17", start=16, end=17
        ),
    )
    assert result.unused_rules == ()
    assert not result.ok
    assert analyzer.list_rule_info() == []


def test_broken_replacement_keeps_previous_version() -> None:
    analyzer = PolarAnalyzer()
    assert analyzer.load("f(1);", "a.polar").ok

    result = analyzer.load("f(1", "a.polar")

    assert [(item.start, item.end) for item in result.errors] == [(3, 3)]
    assert _symbols(analyzer) == ["f(1);"]
    assert analyzer.document_symbols("a.polar")[0].location.filename == "a.polar"


def test_reload_replaces_rules_of_same_file() -> None:
    analyzer = PolarAnalyzer()
    analyzer.load("f(1);", "a.polar")
    analyzer.load("g(1);", "b.polar")

    result = analyzer.load("f(2);\nf(3);", "a.polar")

    assert result == LoadResult()
    assert sorted(_symbols(analyzer)) == ["f(2);", "f(3);", "g(1);"]


def test_loading_same_text_twice_is_idempotent() -> None:
    analyzer = PolarAnalyzer()
    first = analyzer.load("f(x) if g(x);", "a.polar")
    rules_after_first = analyzer.list_rule_info()

    second = analyzer.load("f(x) if g(x);", "a.polar")

    assert second == first
    assert analyzer.list_rule_info() == rules_after_first


def test_commit_failure_restores_previous_version(caplog: pytest.LogCaptureFixture) -> None:
    analyzer = PolarAnalyzer()
    analyzer.load("f(1);", "a.polar")
    analyzer.load("g(1);", "b.polar")

    with caplog.at_level(logging.INFO, logger="polar_analyzer.analyzer"):
        result = analyzer.load("f(1);", "b.polar")

    assert result == LoadResult(
        errors=(
            Diagnostic.unlocated(
                "A file with the same contents as b.polar named a.polar has already been loaded."
            ),
        )
    )
    assert _symbols(analyzer) == ["f(1);", "g(1);"]
    assert [info.symbol for info in analyzer.document_symbols("b.polar")] == ["g"]
    assert "event=load_rolled_back filename=b.polar" in caplog.text


def test_commit_failure_without_previous_version() -> None:
    analyzer = PolarAnalyzer()
    analyzer.load("f(1);", "a.polar")

    result = analyzer.load("f(1);", "b.polar")

    assert len(result.errors) == 1
    assert result.errors[0].is_unlocated
    assert analyzer.document_symbols("b.polar") == []
    assert _symbols(analyzer) == ["f(1);"]


def test_failed_rollback_raises_invariant_violation(monkeypatch: pytest.MonkeyPatch) -> None:
    analyzer = PolarAnalyzer()
    analyzer.load("f(1);", "a.polar")

    def refuse(self: KnowledgeBase, text: str, filename: str | None = None) -> int:
        raise build_validation_error("storage refused the policy")

    monkeypatch.setattr(KnowledgeBase, "load", refuse)

    with pytest.raises(InvariantViolation, match="failed to reload old policy 'a.polar'"):
        analyzer.load("f(2);", "a.polar")


def test_clear_rules_empties_knowledge_base() -> None:
    analyzer = PolarAnalyzer()
    analyzer.load("f(1);", "a.polar")

    analyzer.clear_rules()

    assert analyzer.list_rule_info() == []
    assert analyzer.load("f(1);", "a.polar").ok


def test_problem_limit_truncates_both_lists() -> None:
    analyzer = PolarAnalyzer(AnalyzerConfig(max_number_of_problems=1))

    errors = analyzer.load("f(1;\ng(2);\nh(3) if ;", "a.polar").errors
    unused = analyzer.load("?= a(1) and b(1);", "b.polar").unused_rules

    assert [(item.start, item.end) for item in errors] == [(3, 4)]
    assert [item.message for item in unused] == ['There are no rules with the name "a"']


def test_unmatched_call_reporting_can_be_disabled() -> None:
    analyzer = PolarAnalyzer(AnalyzerConfig(report_unmatched_calls=False))

    assert analyzer.load("f(x) if g(x);", "a.polar") == LoadResult()
    assert analyzer.get_unused_rules("f(x) if g(x);") == [
        Diagnostic(message='There are no rules with the name "g"', start=8, end=12)
    ]


def test_standalone_queries_use_loaded_rules() -> None:
    analyzer = construct()
    analyzer.load("g(1);\ng(x: String);", "a.polar")

    assert analyzer.get_parse_errors("f(x) if g(2);") == []
    assert [item.message for item in analyzer.get_unused_rules("f(x) if g(2);")] == [
        'No rules match the call "g(2)". Existing rules:\n  g(1)\n  g(x: String)'
    ]
    assert analyzer.config == AnalyzerConfig()


def test_load_result_serialises_for_bindings() -> None:
    result = PolarAnalyzer().load("f(x) if g(x);", "a.polar")

    assert result.model_dump(mode="json") == {
        "errors": [],
        "unused_rules": [{"message": 'There are no rules with the name "g"', "start": 8, "end": 12}],
    }


def test_readers_wait_for_replacement_to_commit(monkeypatch: pytest.MonkeyPatch) -> None:
    analyzer = PolarAnalyzer()
    analyzer.load("f(1);", "a.polar")
    before = _symbols(analyzer)
    entered = threading.Event()
    release = threading.Event()
    original_load = KnowledgeBase.load

    def gated_load(self: KnowledgeBase, text: str, filename: str | None = None) -> int:
        entered.set()
        assert release.wait(timeout=5)
        return original_load(self, text, filename)

    monkeypatch.setattr(KnowledgeBase, "load", gated_load)
    writer = threading.Thread(target=analyzer.load, args=("f(2);\nf(3);", "a.polar"))
    seen: list[list[str]] = []
    reader = threading.Thread(target=lambda: seen.append(_symbols(analyzer)))

    writer.start()
    assert entered.wait(timeout=5)
    reader.start()
    reader.join(timeout=0.2)
    assert reader.is_alive()
    assert seen == []

    release.set()
    writer.join(timeout=5)
    reader.join(timeout=5)

    assert not writer.is_alive()
    assert len(seen) == 1
    assert seen[0] in (before, ["f(2);", "f(3);"])
    assert seen[0] != []
