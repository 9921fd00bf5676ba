from __future__ import annotations

from dataclasses import dataclass, field

from .errors import build_validation_error
from .parser import QueryLine, RuleLine, parse_file
from .rules import GenericRule, Rule
from .sources import Source, SourceKind, Sources
from .terms import Term


@dataclass(slots=True)
class KnowledgeBase:
    rules: dict[str, GenericRule] = field(default_factory=dict)
    sources: Sources = field(default_factory=Sources)
    inline_queries: list[Term] = field(default_factory=list)
    next_id: int = 1

    def new_id(self) -> int:
        src_id = self.next_id
        self.next_id += 1
        return src_id

    def add_rule(self, rule: Rule) -> None:
        generic_rule = self.rules.get(rule.name)
        if generic_rule is None:
            generic_rule = GenericRule(rule.name)
            self.rules[rule.name] = generic_rule
        generic_rule.add_rule(rule)

    def load(self, text: str, filename: str | None = None) -> int:
        """Parse ``text`` and commit its rules and inline queries.

        Nothing is committed unless the whole text parses and passes the
        load-time checks. Returns the id of the registered source.
        """
        if filename is not None:
            self._check_file(text, filename)
        src_id = self.new_id()
        lines = parse_file(src_id, text)
        self.sources.add_source(Source(filename=filename, src=text), src_id)
        for line in lines:
            if isinstance(line, RuleLine):
                self.add_rule(line.rule)
            elif isinstance(line, QueryLine):
                self.inline_queries.append(line.term)
        return src_id

    def _check_file(self, text: str, filename: str) -> None:
        if self.sources.file_id(filename) is not None:
            raise build_validation_error(f"File {filename} has already been loaded.")
        existing = self.sources.lookup_by_text(text)
        if existing is not None and existing.filename is not None:
            raise build_validation_error(
                f"A file with the same contents as {filename} named {existing.filename} "
                "has already been loaded."
            )

    def remove_file(self, filename: str) -> str | None:
        src_id = self.sources.file_id(filename)
        if src_id is None:
            return None
        for name in list(self.rules):
            generic_rule = self.rules[name]
            generic_rule.remove_rules_from(src_id)
            if not generic_rule.rules:
                del self.rules[name]
        self.inline_queries = [
            query
            for query in self.inline_queries
            if not (
                query.source_info.kind is SourceKind.PARSER and query.source_info.src_id == src_id
            )
        ]
        return self.sources.remove_source(filename)

    def clear_rules(self) -> None:
        self.rules.clear()
        self.inline_queries.clear()
        self.sources.clear()
