from __future__ import annotations

import os
from dataclasses import dataclass

import pytest

from lastedit.errors import MetadataAccessError
from lastedit.store import CursorPosition

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@dataclass(frozen=True)
class Doc:
    path: str


class FakeMetadata:
    """In-memory front matter keyed by note path."""

    def __init__(
        self, data: dict | None = None, failing: set[str] | None = None, lines_per_write: int = 0
    ) -> None:
        self.data: dict[str, dict] = data or {}
        self.failing = failing or set()
        self.writes: list[str] = []
        self.reads: list[str] = []
        self.lines_per_write = lines_per_write

    def process_front_matter(self, document, callback) -> int:
        self.reads.append(document.path)
        if document.path in self.failing:
            raise MetadataAccessError(f"bad front matter in {document.path}")
        front_matter = self.data.setdefault(document.path, {})
        before = dict(front_matter)
        callback(front_matter)
        if front_matter == before:
            return 0
        self.writes.append(document.path)
        return self.lines_per_write

    def cached_front_matter(self, document) -> dict:
        if document.path in self.failing:
            return {}
        return self.data.get(document.path, {})


class FakeEditor:
    def __init__(self, line_count: int = 10, cursor: CursorPosition | None = None) -> None:
        self.line_count = line_count
        self.cursor = cursor or CursorPosition(0, 0)
        self.moves: list[CursorPosition] = []
        self.centered: list[int] = []

    def get_cursor(self) -> CursorPosition:
        return self.cursor

    def set_cursor(self, position: CursorPosition) -> None:
        self.cursor = position
        self.moves.append(position)

    def center_line(self, line: int) -> None:
        self.centered.append(line)

    def last_line(self) -> int:
        return self.line_count - 1


@pytest.fixture
def metadata() -> FakeMetadata:
    return FakeMetadata()


@pytest.fixture
def editor() -> FakeEditor:
    return FakeEditor()
