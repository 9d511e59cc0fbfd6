"""
Renderer collaborators that turn d2 diagram source into SVG.

Each render runs in an isolated context (a fresh `d2` process, or a fresh HTTP client
for Kroki), so no state is shared between concurrent calls.
"""

from __future__ import annotations

import asyncio

import httpx

from docfeed.assets.types import RenderError

# Prepended to every diagram before rendering and hashing.
D2_CONFIG = """vars: {
  d2-config: {
    pad: 20
    center: true
  }
}"""

DEFAULT_RENDER_TIMEOUT = 60.0
DEFAULT_KROKI_URL = "https://kroki.io"

# Names accepted by `make_renderer`.
RENDERERS = ("d2", "kroki")


class D2Renderer:
    """Renders with a local `d2` executable, one subprocess per call."""

    kind = "d2"
    extension = "svg"

    def __init__(
        self,
        executable: str = "d2",
        layout: str = "dagre",
        theme: int = 0,
        timeout: float = DEFAULT_RENDER_TIMEOUT,
    ) -> None:
        self.executable = executable
        self.layout = layout
        self.theme = theme
        self.timeout = timeout

    def fingerprint(self) -> str:
        return f"d2 layout={self.layout} theme={self.theme} format={self.extension}"

    async def render(self, source: str) -> bytes:
        args = [self.executable, f"--layout={self.layout}", f"--theme={self.theme}", "-", "-"]
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise RenderError(f"Cannot run {self.executable}: {e}") from e

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(source.encode("utf-8")), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            await _kill(proc)
            raise RenderError(f"d2 render timed out after {self.timeout}s") from None
        except asyncio.CancelledError:
            await _kill(proc)
            raise

        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise RenderError(message or f"d2 exited with status {proc.returncode}")
        return stdout


async def _kill(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is None:
        proc.kill()
        await proc.wait()


class KrokiRenderer:
    """Renders by POSTing diagram source to a Kroki service."""

    def __init__(
        self,
        base_url: str = DEFAULT_KROKI_URL,
        diagram: str = "d2",
        output_format: str = "svg",
        timeout: float = DEFAULT_RENDER_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.diagram = diagram
        self.output_format = output_format
        self.timeout = timeout
        self._transport = transport
        self.kind = diagram

    @property
    def extension(self) -> str:
        return self.output_format

    @property
    def url(self) -> str:
        return f"{self.base_url}/{self.diagram}/{self.output_format}"

    def fingerprint(self) -> str:
        return f"kroki url={self.url}"

    async def render(self, source: str) -> bytes:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.url,
                    content=source.encode("utf-8"),
                    headers={"Content-Type": "text/plain", "Accept": "image/svg+xml"},
                )
        except httpx.HTTPError as e:
            raise RenderError(f"Kroki request to {self.url} failed: {e}") from e

        if response.is_error:
            detail = response.text.strip()
            raise RenderError(f"Kroki returned {response.status_code} for {self.url}: {detail}")
        return response.content


def make_renderer(
    name: str,
    *,
    kroki_url: str | None = None,
    layout: str | None = None,
    theme: int | None = None,
) -> D2Renderer | KrokiRenderer:
    """Build a renderer by name (`d2` or `kroki`)."""
    if name == "d2":
        return D2Renderer(
            layout=layout or "dagre", theme=theme if theme is not None else 0
        )
    if name == "kroki":
        return KrokiRenderer(base_url=kroki_url or DEFAULT_KROKI_URL)
    raise ValueError(f"Unknown renderer: {name!r} (expected one of {', '.join(RENDERERS)})")
