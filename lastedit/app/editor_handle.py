from __future__ import annotations

from PySide6.QtGui import QTextCursor
from PySide6.QtWidgets import QPlainTextEdit

from lastedit.store import CursorPosition


class QtEditorHandle:
    """Cursor access for a ``QTextEdit``/``QPlainTextEdit``; lines are text blocks."""

    def __init__(self, widget) -> None:
        self.widget = widget

    def get_cursor(self) -> CursorPosition:
        cursor = self.widget.textCursor()
        block = cursor.block()
        return CursorPosition(line=block.blockNumber(), ch=cursor.position() - block.position())

    def set_cursor(self, position: CursorPosition) -> None:
        block = self.widget.document().findBlockByNumber(position.line)
        if not block.isValid():
            return
        ch = min(position.ch, max(0, block.length() - 1))
        cursor = QTextCursor(block)
        cursor.setPosition(block.position() + ch)
        self.widget.setTextCursor(cursor)

    def center_line(self, line: int) -> None:
        """Scroll so ``line`` sits in the vertical middle of the viewport."""
        block = self.widget.document().findBlockByNumber(line)
        if not block.isValid():
            return
        sb = self.widget.verticalScrollBar()
        viewport = self.widget.viewport()
        if not sb or not viewport:
            return
        if isinstance(self.widget, QPlainTextEdit):
            # QPlainTextEdit scrolls by lines, not pixels.
            line_height = max(1, self.widget.fontMetrics().lineSpacing())
            visible_lines = viewport.height() // line_height
            target = block.firstLineNumber() - visible_lines // 2
        else:
            rect = self.widget.cursorRect(QTextCursor(block))
            target = sb.value() + rect.center().y() - viewport.height() // 2
        sb.setValue(max(sb.minimum(), min(sb.maximum(), target)))

    def last_line(self) -> int:
        return self.widget.document().blockCount() - 1
