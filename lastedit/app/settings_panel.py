from __future__ import annotations

from typing import Callable, Iterable

from PySide6.QtCore import Signal
from PySide6.QtWidgets import (
    QComboBox,
    QLabel,
    QLineEdit,
    QPlainTextEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from lastedit.config import LastEditSettings
from lastedit.controller import LastEditController
from lastedit.host import Document
from lastedit.identifier import IdentifierStrategy

STRATEGY_LABELS = {
    IdentifierStrategy.GENERATED: "Option A. Plugin generated UUID",
    IdentifierStrategy.USER_FIELD: "Option B. User provided field",
    IdentifierStrategy.PATH: "Option C. File path",
}

FOLDERS_HELP = (
    "Choose folders where the plugin will be active. Provide one path per line.\n"
    "• `Folder` includes only notes inside `Folder`.\n"
    "• `Folder/*` includes notes inside `Folder` and all its subfolders.\n"
    "• `/` includes only notes in the vault's root.\n"
    "• `/*` includes all notes in the entire vault.\n"
    "If this list is empty, the plugin will not function."
)


class LastEditSettingsPanel(QWidget):
    """Settings page; edits apply to ``settings`` directly and are saved on hide."""

    cleanupFinished = Signal(int)

    def __init__(
        self,
        settings: LastEditSettings,
        controller: LastEditController,
        save: Callable[[], None],
        documents: Callable[[], Iterable[Document]],
        parent=None,
    ) -> None:
        super().__init__(parent)
        self.settings = settings
        self.controller = controller
        self._save = save
        self._documents = documents

        layout = QVBoxLayout(self)
        layout.setContentsMargins(8, 8, 8, 8)
        layout.setSpacing(8)

        layout.addWidget(QLabel("<b>Set an unique identifier</b>"))
        layout.addWidget(QLabel("Source"))
        self.source_combo = QComboBox()
        for strategy, label in STRATEGY_LABELS.items():
            self.source_combo.addItem(label, strategy.value)
        self.source_combo.setCurrentIndex(self.source_combo.findData(settings.identifier_source.value))
        self.source_combo.setToolTip("Choose the source for the unique note identifier.")
        layout.addWidget(self.source_combo)

        layout.addWidget(QLabel("Option A. ID name for plugin generated UUID"))
        self.generated_edit = QLineEdit(settings.generated_id_name)
        self.generated_edit.setPlaceholderText("e.g., uuid or uid or id")
        layout.addWidget(self.generated_edit)

        layout.addWidget(QLabel("Option B. ID name for user provided field"))
        self.user_field_edit = QLineEdit(settings.user_provided_id_name)
        self.user_field_edit.setPlaceholderText("e.g., created or title")
        self.user_field_edit.setToolTip(
            "The plugin will not generate any field name or value. "
            "If the field is not found, the cursor position will not be saved."
        )
        layout.addWidget(self.user_field_edit)

        layout.addWidget(QLabel("<b>Specify where the plugin operates</b>"))
        folders_label = QLabel(FOLDERS_HELP)
        folders_label.setWordWrap(True)
        layout.addWidget(folders_label)
        self.folders_edit = QPlainTextEdit(settings.included_folders)
        self.folders_edit.setPlaceholderText("e.g.,\n/*\n/\nFolder\nFolder/*")
        self.folders_edit.setMinimumHeight(120)
        layout.addWidget(self.folders_edit)

        layout.addWidget(QLabel("<b>Manage data</b>"))
        cleanup_label = QLabel(
            "Remove saved line data for notes that no longer exist or are not in the list above. "
            "Stored identifiers other than the ones of the current source are removed too."
        )
        cleanup_label.setWordWrap(True)
        layout.addWidget(cleanup_label)
        self.cleanup_button = QPushButton("Remove Now")
        layout.addWidget(self.cleanup_button)
        layout.addStretch(1)

        self.source_combo.currentIndexChanged.connect(self._on_source_changed)
        self.generated_edit.textChanged.connect(self._on_generated_changed)
        self.user_field_edit.textChanged.connect(self._on_user_field_changed)
        self.folders_edit.textChanged.connect(self._on_folders_changed)
        self.cleanup_button.clicked.connect(self.run_cleanup)
        self._sync_enabled_fields()

    def _on_source_changed(self, _index: int) -> None:
        self.settings.identifier_source = IdentifierStrategy.parse(self.source_combo.currentData())
        self._sync_enabled_fields()

    def _on_generated_changed(self, text: str) -> None:
        self.settings.generated_id_name = text.strip()

    def _on_user_field_changed(self, text: str) -> None:
        self.settings.user_provided_id_name = text.strip()

    def _on_folders_changed(self) -> None:
        self.settings.included_folders = self.folders_edit.toPlainText()

    def _sync_enabled_fields(self) -> None:
        strategy = self.settings.identifier_source
        self.generated_edit.setEnabled(strategy is IdentifierStrategy.GENERATED)
        self.user_field_edit.setEnabled(strategy is IdentifierStrategy.USER_FIELD)

    def run_cleanup(self) -> int:
        self.cleanup_button.setText("Cleaning...")
        self.cleanup_button.setEnabled(False)
        try:
            removed = self.controller.cleanup(self._documents())
        finally:
            self.cleanup_button.setText("Remove Now")
            self.cleanup_button.setEnabled(True)
        self.cleanupFinished.emit(removed)
        return removed

    def hideEvent(self, event) -> None:  # type: ignore[override]
        self._save()
        super().hideEvent(event)
