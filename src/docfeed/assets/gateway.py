"""
RenderGateway: bounded-concurrency access to a renderer, backed by an `AssetCache`.

Per request::

    key = hash(renderer fingerprint + normalized source)
    cache hit  -> reference
    cache miss -> render -> store -> reference
    failure    -> RenderError (strict) or the original source (non-strict)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path

from docfeed.assets.cache import AssetCache
from docfeed.assets.hashing import content_hash
from docfeed.assets.renderers import D2_CONFIG
from docfeed.assets.types import Renderer, RenderError, RenderResult

log = logging.getLogger(__name__)

# Maximum number of renders in flight per gateway.
RENDER_CONCURRENCY = 4


@dataclass
class _LoopState:
    loop: asyncio.AbstractEventLoop
    semaphore: asyncio.Semaphore
    inflight: dict[str, asyncio.Future[Path]] = field(default_factory=dict)


class RenderGateway:
    def __init__(
        self,
        renderer: Renderer,
        cache: AssetCache,
        preamble: str = D2_CONFIG,
    ) -> None:
        self.renderer = renderer
        self.cache = cache
        self.preamble = preamble
        self._state: _LoopState | None = None

    def normalize(self, source: str) -> str:
        """The exact text handed to the renderer."""
        if not self.preamble:
            return source
        return f"{self.preamble}\n{source}"

    def cache_key(self, source: str) -> str:
        return content_hash(f"{self.renderer.fingerprint()}\n{self.normalize(source)}")

    def asset_path(self, source: str) -> Path:
        return self.cache.path_for(self.cache_key(source))

    async def render(self, source: str, strict: bool = False) -> RenderResult:
        """
        Render `source` unless its asset is already cached.

        Concurrent requests for the same source share one render. In non-strict mode a
        `RenderError` is logged and reported in the result; in strict mode it is raised.
        """
        key = self.cache_key(source)
        try:
            path = await self._ensure_asset(key, self.normalize(source))
        except RenderError as e:
            if strict:
                raise
            log.warning("Failed to render %s diagram, keeping source: %s", self.renderer.kind, e)
            return RenderResult(source=source, reference=None, error=e)
        return RenderResult(source=source, reference=self.cache.reference_for(key), path=path)

    async def ensure_rendered(self, source: str, strict: bool = False) -> str:
        """Reference string for the rendered asset, or `source` itself if rendering failed."""
        result = await self.render(source, strict=strict)
        return result.reference if result.reference is not None else source

    async def check(self, source: str) -> str:
        """Strictly validate `source` by rendering it (or finding it cached)."""
        return await self.ensure_rendered(source, strict=True)

    def _loop_state(self) -> _LoopState:
        loop = asyncio.get_running_loop()
        if self._state is None or self._state.loop is not loop:
            self._state = _LoopState(loop=loop, semaphore=asyncio.Semaphore(RENDER_CONCURRENCY))
        return self._state

    async def _ensure_asset(self, key: str, normalized: str) -> Path:
        path = self.cache.path_for(key)
        if await self.cache.exists(key):
            log.debug("Found cached asset, skipping generation: %s", path)
            return path

        state = self._loop_state()
        task = state.inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._render_and_store(key, normalized, state))
            state.inflight[key] = task
            task.add_done_callback(lambda _: state.inflight.pop(key, None))
        return await asyncio.shield(task)

    async def _render_and_store(self, key: str, normalized: str, state: _LoopState) -> Path:
        async with state.semaphore:
            await asyncio.to_thread(self.cache.ensure_root)
            if log.isEnabledFor(logging.DEBUG):
                await self.cache.store(key, normalized.encode("utf-8"), extension="d2")

            async def generate() -> bytes:
                log.debug("Rendering %s diagram %s", self.renderer.kind, key)
                return await self.renderer.render(normalized)

            # Rechecks the cache, since an earlier task may have written it meanwhile.
            return await self.cache.get_or_create(key, generate)
