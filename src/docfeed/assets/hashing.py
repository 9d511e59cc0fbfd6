"""Content hashing for cache keys."""

from __future__ import annotations

import hashlib


def content_hash(content: bytes | str) -> str:
    """Return the SHA-256 hex digest of `content` (strings are UTF-8 encoded)."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()
