from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)

NOTICE_TIMEOUT_MS = 5000


def status_bar_notifier(status_bar, timeout_ms: int = NOTICE_TIMEOUT_MS) -> Callable[[str], None]:
    """Show plugin notices as transient ``QStatusBar`` messages."""

    def _notify(message: str) -> None:
        logger.info(message)
        status_bar.showMessage(message, timeout_ms)

    return _notify
