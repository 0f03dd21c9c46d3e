from __future__ import annotations

from typing import Callable

from PySide6.QtCore import QObject, QTimer


class LeadingDebouncer(QObject):
    """Run a callback at most once per window.

    The first trigger after an idle period runs the callback immediately and
    opens a window of ``wait_ms``. Triggers arriving while the window is open
    are coalesced into a single run when it closes, which opens the next window.
    """

    def __init__(self, callback: Callable[[], None], wait_ms: int, parent=None) -> None:
        super().__init__(parent)
        self._callback = callback
        self._pending = False
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(max(0, int(wait_ms)))
        self._timer.timeout.connect(self._on_window_closed)

    def trigger(self) -> None:
        if self._timer.isActive():
            self._pending = True
            return
        self._pending = False
        self._timer.start()
        self._callback()

    def cancel(self) -> None:
        """Drop any coalesced run and close the window."""
        self._pending = False
        self._timer.stop()

    def _on_window_closed(self) -> None:
        if not self._pending:
            return
        self._pending = False
        self._timer.start()
        self._callback()
