"""Identifier -> cursor position table with rate-limited persistence."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional

from lastedit.debounce import LeadingDebouncer

logger = logging.getLogger(__name__)

DEFAULT_SAVE_DEBOUNCE_MS = 2000


@dataclass(frozen=True)
class CursorPosition:
    """Line and character offset of the cursor, both zero-based."""

    line: int
    ch: int

    def __post_init__(self) -> None:
        if self.line < 0 or self.ch < 0:
            raise ValueError(f"Cursor position must be non-negative: line={self.line} ch={self.ch}")

    def to_payload(self) -> dict[str, int]:
        return {"line": self.line, "ch": self.ch}

    @classmethod
    def from_payload(cls, raw: Any) -> Optional["CursorPosition"]:
        """Parse a persisted ``{"line": n, "ch": n}`` entry; None if malformed."""
        if not isinstance(raw, dict):
            return None
        line = raw.get("line")
        ch = raw.get("ch", 0)
        if isinstance(line, bool) or isinstance(ch, bool):
            return None
        if not isinstance(line, int) or not isinstance(ch, int):
            return None
        if line < 0 or ch < 0:
            return None
        return cls(line=line, ch=ch)


class PositionStore:
    """Last-write-wins mapping backed by the settings' position table.

    ``persist`` writes the whole settings object. Mutations schedule it through a
    :class:`~lastedit.debounce.LeadingDebouncer`; :meth:`flush` writes right away.
    """

    def __init__(
        self,
        table: dict[str, CursorPosition],
        persist: Optional[Callable[[], None]] = None,
        wait_ms: int = DEFAULT_SAVE_DEBOUNCE_MS,
        parent=None,
    ) -> None:
        self._table = table
        self._persist = persist
        self._wait_ms = wait_ms
        self._parent = parent
        self._debouncer = None
        self.dirty = False

    def get(self, identifier: str) -> Optional[CursorPosition]:
        return self._table.get(identifier)

    def set(self, identifier: str, position: CursorPosition) -> None:
        self._table[identifier] = position
        self._mark_dirty()

    def cleanup(self, valid_ids: Iterable[str]) -> int:
        """Drop every entry whose key is not in ``valid_ids``; return how many went."""
        keep = set(valid_ids)
        stale = [identifier for identifier in self._table if identifier not in keep]
        for identifier in stale:
            del self._table[identifier]
        if stale:
            self.dirty = True
        logger.debug("Cleanup removed %d of %d entries", len(stale), len(stale) + len(self._table))
        return len(stale)

    def flush(self) -> None:
        """Write the table now, regardless of the rate limit."""
        if self._debouncer is not None:
            self._debouncer.cancel()
        self._write()

    def close(self) -> None:
        if self.dirty:
            self.flush()
        elif self._debouncer is not None:
            self._debouncer.cancel()

    def _mark_dirty(self) -> None:
        self.dirty = True
        if self._persist is None:
            return
        if self._debouncer is None:
            self._debouncer = LeadingDebouncer(self._write_if_dirty, self._wait_ms, self._parent)
        self._debouncer.trigger()

    def _write_if_dirty(self) -> None:
        if self.dirty:
            self._write()

    def _write(self) -> None:
        if self._persist is None:
            return
        self.dirty = False
        self._persist()
