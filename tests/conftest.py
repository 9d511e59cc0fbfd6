"""Shared fixtures: an in-memory renderer stub and a gateway built on it."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from docfeed.assets import AssetCache, RenderError, RenderGateway


class StubRenderer:
    """Renders any source to a fake SVG; sources containing `bad` are malformed."""

    kind = "d2"
    extension = "svg"

    def __init__(self, delay: float = 0.0, setting: str = "default") -> None:
        self.delay = delay
        self.setting = setting
        self.calls: list[str] = []
        self.active = 0
        self.max_active = 0

    def fingerprint(self) -> str:
        return f"stub setting={self.setting}"

    async def render(self, source: str) -> bytes:
        self.calls.append(source)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if "bad" in source:
                raise RenderError("syntax error: unexpected token 'bad'")
            return f"<svg>{len(self.calls)}</svg>".encode()
        finally:
            self.active -= 1


@pytest.fixture
def stub_renderer() -> StubRenderer:
    return StubRenderer()


@pytest.fixture
def cache(tmp_path: Path) -> AssetCache:
    return AssetCache(tmp_path / "tmp")


@pytest.fixture
def gateway(stub_renderer: StubRenderer, cache: AssetCache) -> RenderGateway:
    return RenderGateway(stub_renderer, cache, preamble="")
