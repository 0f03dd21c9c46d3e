from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from lastedit.identifier import IdentifierStrategy
from lastedit.inclusion import parse_rules
from lastedit.store import DEFAULT_SAVE_DEBOUNCE_MS, CursorPosition

DEFAULT_RESTORE_DELAY_MS = 10
MAX_RESTORE_DELAY_MS = 10_000

GLOBAL_CONFIG = Path(os.getenv("LASTEDIT_CONFIG") or (Path.home() / ".lastedit_config.json"))


def debug_enabled(var_name: str = "LASTEDIT_DEBUG") -> bool:
    """Check if a debug flag is enabled."""
    return os.getenv(var_name, "0") not in ("0", "false", "False", "", None)


@dataclass
class LastEditSettings:
    identifier_source: IdentifierStrategy = IdentifierStrategy.GENERATED
    generated_id_name: str = ""
    user_provided_id_name: str = ""
    included_folders: str = ""
    restore_delay_ms: Optional[int] = None
    save_debounce_ms: int = DEFAULT_SAVE_DEBOUNCE_MS
    cursor_position: dict[str, CursorPosition] = field(default_factory=dict)

    @property
    def rules(self) -> list[str]:
        return parse_rules(self.included_folders)

    def restore_delay(self) -> int:
        if self.restore_delay_ms is None:
            return DEFAULT_RESTORE_DELAY_MS
        return self.restore_delay_ms

    def to_payload(self) -> dict:
        payload = {
            "identifierSource": self.identifier_source.value,
            "generatedIdName": self.generated_id_name,
            "userProvidedIdName": self.user_provided_id_name,
            "includedFolders": self.included_folders,
            "saveDebounceMs": self.save_debounce_ms,
            "cursorPosition": {key: pos.to_payload() for key, pos in self.cursor_position.items()},
        }
        if self.restore_delay_ms is not None:
            payload["restoreDelayMs"] = self.restore_delay_ms
        return payload

    @classmethod
    def from_payload(cls, payload: dict) -> "LastEditSettings":
        """Build settings from a saved payload, using defaults for missing or bad values."""
        settings = cls()
        if not isinstance(payload, dict):
            return settings
        settings.identifier_source = IdentifierStrategy.parse(
            payload.get("identifierSource"), settings.identifier_source
        )
        settings.generated_id_name = _load_str(payload, "generatedIdName").strip()
        settings.user_provided_id_name = _load_str(payload, "userProvidedIdName").strip()
        settings.included_folders = _load_str(payload, "includedFolders")
        settings.restore_delay_ms = _load_ms(payload.get("restoreDelayMs"), None, MAX_RESTORE_DELAY_MS)
        settings.save_debounce_ms = _load_ms(payload.get("saveDebounceMs"), DEFAULT_SAVE_DEBOUNCE_MS)

        table = payload.get("cursorPosition")
        if isinstance(table, dict):
            for key, raw in table.items():
                pos = CursorPosition.from_payload(raw)
                if isinstance(key, str) and key and pos is not None:
                    settings.cursor_position[key] = pos
        return settings


def _load_str(payload: dict, key: str) -> str:
    val = payload.get(key)
    return val if isinstance(val, str) else ""


def _load_ms(val, default: Optional[int], maximum: Optional[int] = None) -> Optional[int]:
    if isinstance(val, bool) or val is None:
        return default
    try:
        ms = int(val)
    except (TypeError, ValueError):
        return default
    if ms < 0:
        return default
    if maximum is not None:
        ms = min(ms, maximum)
    return ms


def _read_config(path: Path) -> dict:
    """Return the parsed config, or an empty dict on error/missing."""
    if not path.exists():
        return {}
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError, UnicodeDecodeError):
        return {}
    return payload if isinstance(payload, dict) else {}


def load_settings(path: Optional[Path] = None) -> LastEditSettings:
    """Load saved settings merged over the defaults."""
    return LastEditSettings.from_payload(_read_config(Path(path) if path else GLOBAL_CONFIG))


def save_settings(settings: LastEditSettings, path: Optional[Path] = None) -> None:
    """Write the full settings object, keeping unrelated keys already in the file."""
    target = Path(path) if path else GLOBAL_CONFIG
    target.parent.mkdir(parents=True, exist_ok=True)
    existing = _read_config(target)
    existing.update(settings.to_payload())
    if settings.restore_delay_ms is None:
        existing.pop("restoreDelayMs", None)
    target.write_text(json.dumps(existing, indent=2), encoding="utf-8")
