from __future__ import annotations

import pytest

import polar_analyzer.diagnostics as diagnostics_api
import polar_analyzer.engine as engine_api
import polar_analyzer.inspect as inspect_api

pytestmark = pytest.mark.unit


def test_engine_public_api_surface_is_explicit_and_stable() -> None:
    assert engine_api.__all__ == [
        "ErrorKind",
        "GenericRule",
        "InvariantViolation",
        "KnowledgeBase",
        "Line",
        "Operator",
        "Parameter",
        "ParseErrorKind",
        "Polar",
        "PolarError",
        "PolarErrorDetail",
        "QueryLine",
        "Rule",
        "RuleLine",
        "Source",
        "SourceInfo",
        "SourceKind",
        "Sources",
        "Term",
        "TermKind",
        "parse_file",
        "parse_file_with_errors",
        "parse_query",
    ]
    assert not hasattr(engine_api, "KEYWORDS")
    assert not hasattr(engine_api, "tokenize")


def test_diagnostics_public_api_surface_is_explicit_and_stable() -> None:
    assert diagnostics_api.__all__ == [
        "Diagnostic",
        "LOCATED_PARSE_KINDS",
        "LoadResult",
        "Position",
        "Severity",
        "diagnostic_range",
        "diagnostic_sort_key",
        "find_parse_errors",
        "find_unmatched_calls",
        "find_unused_rules",
        "limit_diagnostics",
        "position_at",
        "sort_diagnostics",
        "terminal_error_diagnostic",
    ]


def test_inspect_public_api_surface_is_explicit_and_stable() -> None:
    assert inspect_api.__all__ == [
        "RuleInfo",
        "RuleLocation",
        "get_document_symbols",
        "get_rule_free_variables",
        "get_rule_info",
        "get_rule_location",
        "get_rule_signature",
    ]


@pytest.mark.parametrize("module", [engine_api, diagnostics_api, inspect_api])
def test_exported_names_resolve(module: object) -> None:
    for name in module.__all__:  # type: ignore[attr-defined]
        assert getattr(module, name) is not None
