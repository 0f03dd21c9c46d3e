from __future__ import annotations


class RestorationTracker:
    """Identifiers whose cursor was already restored while this process runs.

    Created once at startup and owned by the controller. Entries are never
    removed and nothing here is persisted, so a note is restored at most once
    per session no matter how often it is reopened.
    """

    def __init__(self) -> None:
        self._restored: set[str] = set()

    def should_restore(self, identifier: str) -> bool:
        return identifier not in self._restored

    def mark_restored(self, identifier: str) -> None:
        self._restored.add(identifier)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._restored

    def __len__(self) -> int:
        return len(self._restored)
