"""Folder inclusion rules deciding where cursor positions are tracked.

Rules are entered one per line. Supported forms:

* ``/*``       every note in the vault
* ``/``        only notes in the vault root
* ``Folder/*`` notes inside ``Folder`` and all of its subfolders
* ``Folder``   only notes directly inside ``Folder``

An empty rule list disables tracking entirely.
"""
from __future__ import annotations

from typing import Iterable, Optional, Sequence

WILDCARD_ALL = "/*"
ROOT_ONLY = "/"
SUBTREE_SUFFIX = "/*"
SEPARATOR = "/"


def parse_rules(raw: Optional[str]) -> list[str]:
    """Split the raw settings text into trimmed, non-empty rules (order kept)."""
    if not raw:
        return []
    rules: list[str] = []
    for line in raw.splitlines():
        cleaned = line.strip()
        if cleaned:
            rules.append(cleaned)
    return rules


def is_included(path: str, rules: Sequence[str] | Iterable[str]) -> bool:
    """Return True when a vault-relative note path matches any inclusion rule."""
    rules = list(rules)
    if not rules:
        return False
    if WILDCARD_ALL in rules:
        return True

    for rule in rules:
        if rule == ROOT_ONLY:
            if SEPARATOR not in path:
                return True
        elif rule.endswith(SUBTREE_SUFFIX):
            base = rule[: -len(SUBTREE_SUFFIX)]
            if path.startswith(base + SEPARATOR):
                return True
        else:
            prefix = rule + SEPARATOR
            if path.startswith(prefix) and SEPARATOR not in path[len(prefix):]:
                return True
    return False
