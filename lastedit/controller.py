"""Save/restore orchestration for last edit locations.

Open events restore a note's saved cursor once per session; edit events record
the cursor of the active editor. Only edit events may create a generated
identifier in a note's front matter.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from PySide6.QtCore import QTimer

from lastedit.config import LastEditSettings
from lastedit.host import ActiveEditor, Document, EditorHandle, MetadataAccessor, Notifier, Scheduler
from lastedit.identifier import IdentifierStrategy, active_field_name, cached_identifier, resolve, resolve_with_offset
from lastedit.inclusion import is_included
from lastedit.session import RestorationTracker
from lastedit.store import CursorPosition, PositionStore

logger = logging.getLogger(__name__)

MSG_NO_ACTIVE_FILE = "No active file."
MSG_NOT_INCLUDED = "Last Edit Location is not active for this file (folder not included)."
MSG_NO_LOCATION = "No last edit location found for this file."
MSG_CLEANUP_DONE = "Removed data for {count} deleted or excluded note(s)."


def _qt_schedule(delay_ms: int, callback) -> None:
    QTimer.singleShot(delay_ms, callback)


def _log_notice(message: str) -> None:
    logger.info(message)


class LastEditController:
    def __init__(
        self,
        settings: LastEditSettings,
        store: PositionStore,
        tracker: RestorationTracker,
        metadata: MetadataAccessor,
        active_editor: ActiveEditor,
        notify: Optional[Notifier] = None,
        schedule: Optional[Scheduler] = None,
    ) -> None:
        self.settings = settings
        self.store = store
        self.tracker = tracker
        self.metadata = metadata
        self.enabled = True
        self._active_editor = active_editor
        self.notify = notify or _log_notice
        self._schedule = schedule or _qt_schedule

    @property
    def strategy(self) -> IdentifierStrategy:
        return IdentifierStrategy.parse(self.settings.identifier_source)

    def is_included(self, document: Document) -> bool:
        return is_included(document.path, self.settings.rules)

    def identifier_for(self, document: Document, create_if_missing: bool = False) -> str:
        return resolve(
            document,
            self.strategy,
            active_field_name(self.settings),
            create_if_missing,
            self.metadata,
        )

    # --- events ---

    def on_file_open(self, document: Optional[Document]) -> bool:
        """Schedule a one-time restore for ``document``; True if one was scheduled."""
        if document is None:
            return False
        if not self.is_included(document):
            return False
        identifier = self.identifier_for(document, create_if_missing=False)
        if not identifier:
            return False
        if not self.tracker.should_restore(identifier):
            return False
        delay = self.settings.restore_delay()
        logger.debug("Restore of %s scheduled in %dms", document.path, delay)
        self._schedule(delay, lambda: self.restore_cursor(identifier))
        return True

    def restore_cursor(self, identifier: str) -> bool:
        """Apply the saved position to whichever editor is active now."""
        if not self.tracker.should_restore(identifier):
            return False
        try:
            position = self.store.get(identifier)
            editor = self._active_editor()
            if position is None or editor is None:
                return False
            if position.line > editor.last_line():
                logger.debug("Saved line %d for %s is past the end", position.line, identifier)
                return False
            self._move_to(editor, position)
            return True
        finally:
            self.tracker.mark_restored(identifier)

    def on_editor_change(self, editor: EditorHandle, document: Optional[Document]) -> bool:
        """Record the cursor of ``editor``; True if a position was stored."""
        if not self.enabled or document is None:
            return False
        if not self.is_included(document):
            return False
        # Read before resolving: writing a new id may make the host reload the note.
        position = editor.get_cursor()
        identifier, lines_added = resolve_with_offset(
            document,
            self.strategy,
            active_field_name(self.settings),
            True,
            self.metadata,
        )
        if not identifier:
            return False
        if lines_added:
            # The cursor was read against the text before the token was written above it.
            position = CursorPosition(max(0, position.line + lines_added), position.ch)
        self.store.set(identifier, position)
        return True

    # --- commands ---

    def scroll_cursor_to_center(self, editor: EditorHandle) -> None:
        editor.center_line(editor.get_cursor().line)

    def go_to_last_edit(self, editor: EditorHandle, document: Optional[Document]) -> bool:
        if document is None:
            self.notify(MSG_NO_ACTIVE_FILE)
            return False
        if not self.is_included(document):
            self.notify(MSG_NOT_INCLUDED)
            return False
        identifier = self.identifier_for(document, create_if_missing=False)
        position = self.store.get(identifier) if identifier else None
        if position is not None and position.line <= editor.last_line():
            self._move_to(editor, position)
            return True
        self.notify(MSG_NO_LOCATION)
        return False

    def valid_identifiers(self, documents: Iterable[Document]) -> set[str]:
        """Identifiers of in-scope notes resolvable under the active strategy."""
        strategy = self.strategy
        field_name = active_field_name(self.settings)
        valid: set[str] = set()
        for document in documents:
            if not self.is_included(document):
                continue
            identifier = cached_identifier(document, strategy, field_name, self.metadata)
            if identifier:
                valid.add(identifier)
        return valid

    def cleanup(self, documents: Iterable[Document]) -> int:
        """Remove positions of deleted or excluded notes and report the count.

        Entries stored under a previously active strategy cannot be told apart
        from stale ones and are removed as well.
        """
        removed = self.store.cleanup(self.valid_identifiers(documents))
        self.store.flush()
        self.notify(MSG_CLEANUP_DONE.format(count=removed))
        return removed

    @staticmethod
    def _move_to(editor: EditorHandle, position: CursorPosition) -> None:
        editor.set_cursor(position)
        editor.center_line(position.line)
