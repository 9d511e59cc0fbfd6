"""Shared types for diagram rendering."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


class RenderError(RuntimeError):
    """A renderer could not turn diagram source into an asset."""


class Renderer(Protocol):
    """
    Turns diagram source text into asset bytes.

    Implementations must be stateless between calls: every `render` runs in its own
    execution context so concurrent renders cannot interfere.
    """

    kind: str
    extension: str

    def fingerprint(self) -> str:
        """Every setting that changes output bytes, folded into cache keys."""
        ...

    async def render(self, source: str) -> bytes: ...


@dataclass(frozen=True)
class RenderResult:
    """Outcome of one render request. `reference` is `None` when rendering failed."""

    source: str
    reference: str | None
    error: RenderError | None = None
    path: Path | None = None

    @property
    def ok(self) -> bool:
        return self.reference is not None
