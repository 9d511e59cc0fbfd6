"""
Directory-backed, content-addressed asset store.

Layout::

    <root>/.gitignore                      # "**/*", keeps generated assets out of git
    <root>/assets/<kind>/<key>.<extension>

Entries are write-once: a path that exists is never rewritten, and nothing here ever
invalidates an entry. Changing the content (and so the key) is the only way to get a
new asset.
"""

from __future__ import annotations

import asyncio
import logging
import posixpath
from collections.abc import Awaitable, Callable
from pathlib import Path

import aiofiles.os
from strif import atomic_output_file

log = logging.getLogger(__name__)

DEFAULT_CACHE_DIR = Path(".docfeed") / "tmp"
ASSETS_DIR = "assets"


class AssetCache:
    def __init__(
        self,
        root: str | Path = DEFAULT_CACHE_DIR,
        kind: str = "d2",
        extension: str = "svg",
        link_prefix: str = "..",
    ) -> None:
        self.root = Path(root)
        self.kind = kind
        self.extension = extension
        self.link_prefix = link_prefix

    @property
    def asset_dir(self) -> Path:
        return self.root / ASSETS_DIR / self.kind

    def path_for(self, key: str, extension: str | None = None) -> Path:
        return self.asset_dir / f"{key}.{extension or self.extension}"

    def reference_for(self, key: str) -> str:
        """POSIX-style link to the asset, as embedded in generated documents."""
        return posixpath.join(self.link_prefix, ASSETS_DIR, self.kind, f"{key}.{self.extension}")

    def ensure_root(self) -> None:
        """Create the asset directory and, only if missing, the root `.gitignore`."""
        self.asset_dir.mkdir(parents=True, exist_ok=True)
        gitignore = self.root / ".gitignore"
        if not gitignore.exists():
            gitignore.write_text("**/*", encoding="utf-8")

    async def exists(self, key: str) -> bool:
        return await aiofiles.os.path.exists(self.path_for(key))

    async def store(self, key: str, payload: bytes, extension: str | None = None) -> Path:
        """Atomically write `payload` for `key` unless an entry is already there."""
        path = self.path_for(key, extension)
        await asyncio.to_thread(_write_once, path, payload)
        return path

    async def get_or_create(self, key: str, generate: Callable[[], Awaitable[bytes]]) -> Path:
        """Return the entry path for `key`, calling `generate` only on a miss."""
        path = self.path_for(key)
        if await aiofiles.os.path.exists(path):
            log.debug("Found cached asset, skipping generation: %s", path)
            return path
        payload = await generate()
        return await self.store(key, payload)


def _write_once(path: Path, payload: bytes) -> None:
    if path.exists():
        return
    with atomic_output_file(path, make_parents=True) as temp_path:
        Path(temp_path).write_bytes(payload)
