"""File-backed vault: note enumeration and transactional front matter access."""
from __future__ import annotations

import copy
import logging
import os
import re
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, MutableMapping, Optional

import frontmatter
import yaml

from lastedit.errors import MetadataAccessError

logger = logging.getLogger(__name__)

PAGE_SUFFIX = ".md"
SKIP_DIRS = {".git", ".obsidian", ".trash"}

# Opening delimiter on the first line, YAML, closing delimiter on a line of its own.
_FRONT_MATTER = re.compile(r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE)
_YAML = frontmatter.YAMLHandler()


@dataclass(frozen=True)
class Note:
    """A markdown note addressed by its vault-relative POSIX path."""

    path: str

    @property
    def name(self) -> str:
        return self.path.rsplit("/", 1)[-1]


@dataclass
class _ParsedNote:
    metadata: dict[str, Any]
    header: str
    body: str


def _parse(text: str, label: str) -> _ParsedNote:
    """Split ``text`` into front matter and the untouched remainder."""
    match = _FRONT_MATTER.match(text)
    if match is None:
        return _ParsedNote({}, "", text)
    try:
        metadata = _YAML.load(match.group(1))
    except yaml.YAMLError as exc:
        raise MetadataAccessError(f"Front matter of {label} contains invalid YAML: {exc}") from exc
    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise MetadataAccessError(f"Front matter of {label} is not a mapping")
    return _ParsedNote(metadata, text[: match.end()], text[match.end():])


def _render_header(metadata: dict[str, Any], old_header: str) -> str:
    newline = "\r\n" if "\r\n" in old_header else "\n"
    block = _YAML.export(metadata, sort_keys=False) if metadata else ""
    lines = ["---", *block.splitlines(), "---"] if block else ["---", "---"]
    return newline.join(lines) + newline


class Vault:
    """A directory of markdown notes.

    ``on_write`` is called with the note path after front matter was written
    back to disk, so an editor showing that note can reload it.
    """

    def __init__(self, root: str | Path, on_write: Optional[Callable[[str], None]] = None) -> None:
        self.root = Path(root)
        self.on_write = on_write
        self._lock = threading.Lock()
        self._cache: dict[str, tuple[int, dict[str, Any]]] = {}

    def note(self, path: str | Path) -> Note:
        """Return the note for an absolute or vault-relative path."""
        candidate = Path(path)
        if candidate.is_absolute():
            try:
                candidate = candidate.relative_to(self.root)
            except ValueError as exc:
                raise MetadataAccessError(f"{path} is outside the vault {self.root}") from exc
        rel = candidate.as_posix().lstrip("/")
        return Note(rel)

    def file_for(self, note: Note) -> Path:
        return self.root / note.path

    def markdown_files(self) -> list[Note]:
        notes: list[Note] = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS and not d.startswith("."))
            for filename in sorted(filenames):
                if filename.lower().endswith(PAGE_SUFFIX):
                    rel = Path(dirpath, filename).relative_to(self.root)
                    notes.append(Note(rel.as_posix()))
        return notes

    def _load(self, note: Note) -> _ParsedNote:
        file_path = self.file_for(note)
        try:
            with open(file_path, "r", encoding="utf-8", newline="") as handle:
                text = handle.read()
        except (OSError, UnicodeDecodeError) as exc:
            raise MetadataAccessError(f"Cannot read {note.path}: {exc}") from exc
        return _parse(text, note.path)

    def read_front_matter(self, note: Note) -> dict[str, Any]:
        with self._lock:
            return dict(self._load(note).metadata)

    def process_front_matter(
        self, note: Note, callback: Callable[[MutableMapping[str, Any]], None]
    ) -> int:
        """Run ``callback`` on the note's front matter and save it if it changed.

        Only the front matter block is rewritten; the body is kept byte for byte.
        Returns how many lines the write added above the body (0 when nothing
        was written). Read failures raise :class:`MetadataAccessError`; write
        failures propagate.
        """
        with self._lock:
            parsed = self._load(note)
            before = copy.deepcopy(parsed.metadata)
            callback(parsed.metadata)
            if parsed.metadata == before:
                return 0
            header = _render_header(parsed.metadata, parsed.header)
            with open(self.file_for(note), "w", encoding="utf-8", newline="") as handle:
                handle.write(header + parsed.body)
            self._cache.pop(note.path, None)
        lines_added = header.count("\n") - parsed.header.count("\n")
        logger.debug("Front matter written for %s (%+d lines)", note.path, lines_added)
        if self.on_write:
            self.on_write(note.path)
        return lines_added

    def cached_front_matter(self, note: Note) -> dict[str, Any]:
        """Front matter from a cache keyed on modification time; {} if unreadable."""
        file_path = self.file_for(note)
        try:
            mtime = file_path.stat().st_mtime_ns
        except OSError:
            self._cache.pop(note.path, None)
            return {}
        cached = self._cache.get(note.path)
        if cached and cached[0] == mtime:
            return cached[1]
        try:
            metadata = self.read_front_matter(note)
        except MetadataAccessError as exc:
            logger.debug("No cached front matter for %s: %s", note.path, exc)
            metadata = {}
        self._cache[note.path] = (mtime, metadata)
        return metadata
