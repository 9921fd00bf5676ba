from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from .kb import KnowledgeBase
from .locking import ReadWriteLock


class Polar:
    """Knowledge base guarded by a reader/writer lock."""

    def __init__(self) -> None:
        self._kb = KnowledgeBase()
        self._lock = ReadWriteLock()

    @contextmanager
    def kb_read(self) -> Iterator[KnowledgeBase]:
        with self._lock.read():
            yield self._kb

    @contextmanager
    def kb_write(self) -> Iterator[KnowledgeBase]:
        with self._lock.write():
            yield self._kb

    def load(self, text: str, filename: str | None = None) -> None:
        with self.kb_write() as kb:
            kb.load(text, filename)

    def remove_file(self, filename: str) -> str | None:
        with self.kb_write() as kb:
            return kb.remove_file(filename)

    def clear_rules(self) -> None:
        with self.kb_write() as kb:
            kb.clear_rules()
