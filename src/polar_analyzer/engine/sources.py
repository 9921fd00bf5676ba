from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class SourceKind(StrEnum):
    PARSER = "parser"
    TEMPORARY = "temporary"
    FFI = "ffi"
    TEST = "test"


@dataclass(frozen=True, slots=True)
class SourceInfo:
    """Origin of a term or rule.

    Only ``PARSER`` origins carry a payload: the id of the source in the
    registry and the character span of the construct within it.
    """

    kind: SourceKind
    src_id: int | None = None
    left: int | None = None
    right: int | None = None

    def __post_init__(self) -> None:
        has_payload = (self.src_id, self.left, self.right) != (None, None, None)
        if self.kind is SourceKind.PARSER:
            if self.src_id is None or self.left is None or self.right is None:
                raise ValueError("parser source info requires src_id, left and right")
            if self.left < 0 or self.right < self.left:
                raise ValueError("parser source info span must satisfy 0 <= left <= right")
        elif has_payload:
            raise ValueError(f"{self.kind} source info carries no payload")

    @classmethod
    def parser(cls, src_id: int, left: int, right: int) -> SourceInfo:
        return cls(SourceKind.PARSER, src_id, left, right)

    @classmethod
    def temporary(cls) -> SourceInfo:
        return cls(SourceKind.TEMPORARY)

    @classmethod
    def ffi(cls) -> SourceInfo:
        return cls(SourceKind.FFI)

    @classmethod
    def test(cls) -> SourceInfo:
        return cls(SourceKind.TEST)

    def span(self) -> tuple[int, int] | None:
        if self.kind is SourceKind.PARSER:
            assert self.left is not None and self.right is not None
            return (self.left, self.right)
        return None


@dataclass(frozen=True, slots=True)
class Source:
    filename: str | None
    src: str


UNKNOWN_SOURCE = Source(filename=None, src="<Unknown>")


@dataclass(slots=True)
class Sources:
    sources: dict[int, Source] = field(default_factory=lambda: {0: UNKNOWN_SOURCE})
    files: dict[str, int] = field(default_factory=dict)

    def add_source(self, source: Source, src_id: int) -> None:
        if source.filename is not None:
            self.files[source.filename] = src_id
        self.sources[src_id] = source

    def get_source(self, src_id: int) -> Source | None:
        return self.sources.get(src_id)

    def file_id(self, filename: str) -> int | None:
        return self.files.get(filename)

    def lookup_by_text(self, text: str) -> Source | None:
        for src_id, source in self.sources.items():
            if src_id != 0 and source.src == text:
                return source
        return None

    def remove_source(self, filename: str) -> str | None:
        src_id = self.files.pop(filename, None)
        if src_id is None:
            return None
        source = self.sources.pop(src_id, None)
        return None if source is None else source.src

    def clear(self) -> None:
        self.sources = {0: UNKNOWN_SOURCE}
        self.files = {}
