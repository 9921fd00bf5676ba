from __future__ import annotations

import logging

from polar_analyzer.config import AnalyzerConfig
from polar_analyzer.diagnostics import (
    Diagnostic,
    LoadResult,
    find_parse_errors,
    find_unmatched_calls,
    find_unused_rules,
    limit_diagnostics,
)
from polar_analyzer.engine import (
    InvariantViolation,
    KnowledgeBase,
    Polar,
    PolarError,
    parse_file_with_errors,
)
from polar_analyzer.inspect import RuleInfo, get_document_symbols, get_rule_info

logger = logging.getLogger(__name__)


class PolarAnalyzer:
    """Editor-facing analysis over one knowledge base.

    ``load`` replaces a file's rules only when the new text parses cleanly and
    commits; otherwise the previously loaded version stays in place.
    """

    def __init__(self, config: AnalyzerConfig | None = None) -> None:
        self._config = config if config is not None else AnalyzerConfig()
        self._polar = Polar()

    @property
    def config(self) -> AnalyzerConfig:
        return self._config

    @property
    def polar(self) -> Polar:
        return self._polar

    def load(self, text: str, filename: str) -> LoadResult:
        logger.debug("event=load_started filename=%s", filename)
        errors = find_parse_errors(text)
        if errors:
            logger.debug("event=load_skipped filename=%s errors=%d", filename, len(errors))
            return LoadResult(errors=self._limit(errors))

        with self._polar.kb_write() as kb:
            previous = kb.remove_file(filename)
            try:
                kb.load(text, filename)
            except PolarError as exc:
                logger.warning("event=load_commit_failed filename=%s error=%s", filename, exc)
                if previous is not None:
                    _restore_previous(kb, previous, filename)
                return LoadResult(errors=(Diagnostic.unlocated(str(exc)),))
            logger.debug("event=load_committed filename=%s", filename)

            if not self._config.report_unmatched_calls:
                return LoadResult()
            lines, _ = parse_file_with_errors(0, text)
            unused_rules = find_unmatched_calls(
                kb, lines, skip_method_calls=self._config.skip_method_calls
            )
        return LoadResult(unused_rules=self._limit(unused_rules))

    def clear_rules(self) -> None:
        self._polar.clear_rules()

    def list_rule_info(self) -> list[RuleInfo]:
        with self._polar.kb_read() as kb:
            return get_rule_info(kb)

    def document_symbols(self, filename: str) -> list[RuleInfo]:
        with self._polar.kb_read() as kb:
            return get_document_symbols(kb, filename)

    def get_parse_errors(self, text: str) -> list[Diagnostic]:
        return find_parse_errors(text)

    def get_unused_rules(self, text: str) -> list[Diagnostic]:
        with self._polar.kb_read() as kb:
            return find_unused_rules(kb, text, skip_method_calls=self._config.skip_method_calls)

    def _limit(self, diagnostics: list[Diagnostic]) -> tuple[Diagnostic, ...]:
        return limit_diagnostics(diagnostics, self._config.max_number_of_problems)


def _restore_previous(kb: KnowledgeBase, previous: str, filename: str) -> None:
    try:
        kb.load(previous, filename)
    except PolarError as exc:
        logger.critical("event=rollback_failed filename=%s error=%s", filename, exc)
        raise InvariantViolation(
            f"failed to reload old policy '{filename}' after new policy loading failed"
        ) from exc
    logger.info("event=load_rolled_back filename=%s", filename)


def construct(config: AnalyzerConfig | None = None) -> PolarAnalyzer:
    return PolarAnalyzer(config)
