"""Lifecycle glue between a PySide6 note editor and the last-edit controller.

The host loads the plugin once, binds its editor widget, and forwards
document-open notifications::

    plugin = LastEditPlugin(vault)
    plugin.load()
    plugin.bind_editor(editor, lambda: current_path)
    plugin.register_commands(window)
    plugin.on_layout_ready()          # handles the note already open at startup
    ...
    with plugin.loading():
        editor.setPlainText(text)
    plugin.file_opened(path)
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional

from PySide6.QtCore import QObject, Qt, Signal
from PySide6.QtGui import QAction, QKeySequence

from lastedit import config
from lastedit.app.editor_handle import QtEditorHandle
from lastedit.app.notices import status_bar_notifier
from lastedit.app.settings_panel import LastEditSettingsPanel
from lastedit.app.vault import Note, Vault
from lastedit.controller import MSG_NO_ACTIVE_FILE, LastEditController
from lastedit.errors import MetadataAccessError
from lastedit.session import RestorationTracker
from lastedit.store import PositionStore

logger = logging.getLogger(__name__)

SCROLL_TO_CENTER_ID = "scroll-cursor-line-to-center"
GO_TO_LAST_EDIT_ID = "go-to-last-edit-location"


class LastEditPlugin(QObject):
    # Emitted with the vault-relative path after a generated id was written.
    noteMetadataChanged = Signal(str)

    def __init__(
        self,
        vault: Vault,
        config_path: Optional[Path] = None,
        notify: Optional[Callable[[str], None]] = None,
        parent=None,
    ) -> None:
        super().__init__(parent)
        self.vault = vault
        self.vault.on_write = self.noteMetadataChanged.emit
        self.config_path = Path(config_path) if config_path else config.GLOBAL_CONFIG
        self._notify = notify
        self.settings: Optional[config.LastEditSettings] = None
        self.store: Optional[PositionStore] = None
        self.controller: Optional[LastEditController] = None
        self.tracker = RestorationTracker()
        self._widget = None
        self._handle: Optional[QtEditorHandle] = None
        self._current_path: Callable[[], Optional[str]] = lambda: None
        self._loading = 0
        self.actions: dict[str, QAction] = {}

    def load(self) -> None:
        if config.debug_enabled():
            logging.getLogger("lastedit").setLevel(logging.DEBUG)
        self.settings = config.load_settings(self.config_path)
        self.store = PositionStore(
            self.settings.cursor_position,
            persist=self.save_settings,
            wait_ms=self.settings.save_debounce_ms,
            parent=self,
        )
        self.controller = LastEditController(
            self.settings,
            self.store,
            self.tracker,
            self.vault,
            active_editor=self.active_editor,
            notify=self._notify,
        )
        logger.debug(
            "Loaded %d saved positions from %s", len(self.settings.cursor_position), self.config_path
        )

    def unload(self) -> None:
        if self._widget is not None:
            try:
                self._widget.textChanged.disconnect(self._on_text_changed)
            except (RuntimeError, TypeError):
                pass
        self._widget = None
        self._handle = None
        if self.store is not None:
            self.store.close()

    def save_settings(self) -> None:
        if self.settings is not None:
            config.save_settings(self.settings, self.config_path)

    # --- host wiring ---

    def bind_editor(self, widget, current_path: Callable[[], Optional[str]]) -> None:
        """Track edits in ``widget``; ``current_path`` returns the note it shows."""
        self._widget = widget
        self._handle = QtEditorHandle(widget)
        self._current_path = current_path
        widget.textChanged.connect(self._on_text_changed)
        if self._notify is None and hasattr(widget.window(), "statusBar"):
            self.controller.notify = status_bar_notifier(widget.window().statusBar())

    def active_editor(self) -> Optional[QtEditorHandle]:
        if self._widget is None or self._current_path() is None:
            return None
        return self._handle

    def active_note(self) -> Optional[Note]:
        path = self._current_path()
        if not path:
            return None
        try:
            return self.vault.note(path)
        except MetadataAccessError:
            return None

    @contextmanager
    def loading(self) -> Iterator[None]:
        """Ignore text changes made while the host loads a note into the editor."""
        self._loading += 1
        try:
            yield
        finally:
            self._loading -= 1

    def on_layout_ready(self) -> None:
        self.file_opened(self._current_path())

    def file_opened(self, path: Optional[str]) -> None:
        note = None
        if path:
            try:
                note = self.vault.note(path)
            except MetadataAccessError as exc:
                logger.debug("Ignoring open of %s: %s", path, exc)
        self.controller.on_file_open(note)

    def _on_text_changed(self) -> None:
        if self._loading or self._handle is None:
            return
        self.controller.on_editor_change(self._handle, self.active_note())

    # --- commands ---

    def register_commands(self, window) -> dict[str, QAction]:
        scroll_action = QAction("Scroll cursor line to center of view", window)
        scroll_action.setObjectName(SCROLL_TO_CENTER_ID)
        scroll_action.setShortcut(QKeySequence("Ctrl+Alt+L"))
        scroll_action.setShortcutContext(Qt.WindowShortcut)
        scroll_action.triggered.connect(self.scroll_cursor_to_center)
        window.addAction(scroll_action)

        last_edit_action = QAction("Go to last edit location", window)
        last_edit_action.setObjectName(GO_TO_LAST_EDIT_ID)
        last_edit_action.setShortcut(QKeySequence("Ctrl+Alt+E"))
        last_edit_action.setShortcutContext(Qt.WindowShortcut)
        last_edit_action.triggered.connect(self.go_to_last_edit)
        window.addAction(last_edit_action)

        self.actions = {SCROLL_TO_CENTER_ID: scroll_action, GO_TO_LAST_EDIT_ID: last_edit_action}
        return self.actions

    def scroll_cursor_to_center(self) -> None:
        if self._handle is not None:
            self.controller.scroll_cursor_to_center(self._handle)

    def go_to_last_edit(self) -> bool:
        if self._handle is None:
            self.controller.notify(MSG_NO_ACTIVE_FILE)
            return False
        return self.controller.go_to_last_edit(self._handle, self.active_note())

    def create_settings_panel(self, parent=None) -> LastEditSettingsPanel:
        return LastEditSettingsPanel(
            self.settings,
            self.controller,
            save=self.flush,
            documents=self.vault.markdown_files,
            parent=parent,
        )

    def flush(self) -> None:
        self.store.flush()
