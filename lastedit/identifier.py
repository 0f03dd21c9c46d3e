"""Resolve the stable key a note's cursor position is stored under."""
from __future__ import annotations

import logging
import uuid
from enum import Enum
from typing import Any, MutableMapping, NamedTuple

from lastedit.errors import MetadataAccessError
from lastedit.host import Document, MetadataAccessor

logger = logging.getLogger(__name__)


class IdentifierStrategy(str, Enum):
    GENERATED = "plugin-generated-UUID"
    USER_FIELD = "user-provided-field"
    PATH = "file-path"

    @classmethod
    def parse(cls, value: Any, default: "IdentifierStrategy | None" = None) -> "IdentifierStrategy":
        """Return the strategy for a persisted value, falling back to the default."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            cleaned = value.strip()
            for member in cls:
                if member.value == cleaned:
                    return member
        return default if default is not None else cls.GENERATED


def mint_identifier() -> str:
    """Time-ordered unique token (version 1 UUID)."""
    return str(uuid.uuid1())


def active_field_name(settings) -> str:
    """Front matter key used by the active strategy ('' for the path strategy)."""
    strategy = IdentifierStrategy.parse(settings.identifier_source)
    if strategy is IdentifierStrategy.GENERATED:
        return (settings.generated_id_name or "").strip()
    if strategy is IdentifierStrategy.USER_FIELD:
        return (settings.user_provided_id_name or "").strip()
    return ""


def _has_value(value: Any) -> bool:
    return value is not None and value != ""


class Resolution(NamedTuple):
    identifier: str
    # Lines a newly written token pushed the note body down by.
    lines_added: int = 0


def resolve_with_offset(
    document: Document,
    strategy: IdentifierStrategy,
    field_name: str,
    create_if_missing: bool,
    metadata: MetadataAccessor,
) -> Resolution:
    """Return the identifier for ``document`` ('' when none applies).

    Only the generated strategy ever writes, and only when ``create_if_missing``
    is set. The lookup and the conditional write happen inside a single
    front matter transaction so no caller sees a half-written token.
    """
    if strategy is IdentifierStrategy.PATH:
        return Resolution(document.path)
    if not field_name:
        return Resolution("")

    found = ""

    def _process(front_matter: MutableMapping[str, Any]) -> None:
        nonlocal found
        value = front_matter.get(field_name)
        if _has_value(value):
            found = str(value)
        elif strategy is IdentifierStrategy.GENERATED and create_if_missing:
            token = mint_identifier()
            front_matter[field_name] = token
            found = token
            logger.debug("Assigned %s=%s to %s", field_name, token, document.path)

    try:
        lines_added = metadata.process_front_matter(document, _process)
    except MetadataAccessError as exc:
        logger.debug("Skipping %s: %s", document.path, exc)
        return Resolution("")
    return Resolution(found, lines_added or 0)


def resolve(
    document: Document,
    strategy: IdentifierStrategy,
    field_name: str,
    create_if_missing: bool,
    metadata: MetadataAccessor,
) -> str:
    return resolve_with_offset(document, strategy, field_name, create_if_missing, metadata).identifier


def cached_identifier(document: Document, strategy: IdentifierStrategy, field_name: str, metadata: MetadataAccessor) -> str:
    """Like :func:`resolve` without creation, read from the accessor's cache."""
    if strategy is IdentifierStrategy.PATH:
        return document.path
    if not field_name:
        return ""
    value = metadata.cached_front_matter(document).get(field_name)
    return str(value) if _has_value(value) else ""
