from __future__ import annotations


class MetadataAccessError(RuntimeError):
    """Raised when a note's front matter cannot be read or parsed."""
