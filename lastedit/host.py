"""Capabilities the plugin needs from its host application."""
from __future__ import annotations

from typing import Any, Callable, Mapping, MutableMapping, Optional, Protocol

from lastedit.store import CursorPosition


class Document(Protocol):
    path: str


class EditorHandle(Protocol):
    def get_cursor(self) -> CursorPosition: ...

    def set_cursor(self, position: CursorPosition) -> None: ...

    def center_line(self, line: int) -> None: ...

    def last_line(self) -> int: ...


class MetadataAccessor(Protocol):
    def process_front_matter(
        self, document: Document, callback: Callable[[MutableMapping[str, Any]], None]
    ) -> Optional[int]: ...

    def cached_front_matter(self, document: Document) -> Mapping[str, Any]: ...


ActiveEditor = Callable[[], Optional[EditorHandle]]
Notifier = Callable[[str], None]
Scheduler = Callable[[int, Callable[[], None]], None]
