"""Replacing ```` ```d2 ```` blocks in Markdown documents with links to rendered assets."""

from __future__ import annotations

import asyncio
import logging
import os
import re
from pathlib import Path

import aiofiles
import marko
from marko import block

from docfeed.assets.gateway import RenderGateway
from docfeed.assets.types import RenderError, RenderResult

log = logging.getLogger(__name__)

# Maximum number of documents processed at once.
FILE_CONCURRENCY = 8

_D2_FENCE = re.compile(
    r"^(?P<indent>[ \t]*)```d2\b[^\n]*\n(?P<body>.*?)^[ \t]*```[ \t]*\r?$",
    re.MULTILINE | re.DOTALL,
)


def diagram_sources(markdown: str, lang: str = "d2") -> set[str]:
    """
    Code of every fenced block tagged `lang`, as the Markdown parser sees it.

    A fence that only appears inside another code block (say, a Markdown example)
    is not a diagram and is not returned. Line endings are normalized to `\\n`.
    """
    found: set[str] = set()

    def visit(element: object) -> None:
        if isinstance(element, block.FencedCode):
            if element.lang == lang:
                found.add("".join(child.children for child in element.children))
            return
        children = getattr(element, "children", None)
        if isinstance(children, list):
            for child in children:
                visit(child)

    visit(marko.parse(markdown.replace("\r\n", "\n")))
    return found


def _fence_body(match: re.Match[str]) -> str:
    """Block body with LF line endings and the fence's own indentation removed."""
    width = len(match.group("indent"))
    lines = match.group("body").replace("\r\n", "\n").splitlines(keepends=True)
    return "".join(line[min(width, len(line) - len(line.lstrip(" \t"))) :] for line in lines)


def _link(result: RenderResult, base_dir: Path | None) -> str:
    if base_dir is not None and result.path is not None:
        reference = Path(os.path.relpath(result.path.absolute(), base_dir.absolute())).as_posix()
    else:
        reference = result.reference
    return f"![]({reference})"


async def rewrite_diagrams(
    markdown: str,
    gateway: RenderGateway,
    *,
    strict: bool = False,
    base_dir: Path | None = None,
) -> str:
    """
    Render every d2 block in `markdown` and replace it with an image link.

    Fences may be indented (as inside list items) and may use CRLF line endings; the
    link keeps the fence's indentation. A block that fails to render is kept whole,
    fence lines included, so the document is left as it was; with `strict` the
    `RenderError` propagates instead. With `base_dir`, links are relative to that
    directory instead of the cache's link prefix.
    """
    if not markdown:
        return markdown

    real_blocks = diagram_sources(markdown)
    matches = [
        (m, body) for m in _D2_FENCE.finditer(markdown) if (body := _fence_body(m)) in real_blocks
    ]
    if not matches:
        return markdown

    results = await asyncio.gather(
        *(gateway.render(body, strict=strict) for _, body in matches)
    )

    pieces: list[str] = []
    last = 0
    for (match, _), result in zip(matches, results):
        pieces.append(markdown[last : match.start()])
        if result.ok:
            eol = "\r" if match.group(0).endswith("\r") else ""
            pieces.append(match.group("indent") + _link(result, base_dir) + eol)
        else:
            pieces.append(match.group(0))
        last = match.end()
    pieces.append(markdown[last:])
    return "".join(pieces)


async def rewrite_file(path: Path, gateway: RenderGateway, *, strict: bool = False) -> bool:
    """Rewrite d2 blocks of one Markdown file in place. Returns whether it changed."""
    async with aiofiles.open(path, encoding="utf-8") as f:
        original = await f.read()
    updated = await rewrite_diagrams(original, gateway, strict=strict, base_dir=path.parent)
    if updated == original:
        return False
    async with aiofiles.open(path, "w", encoding="utf-8") as f:
        await f.write(updated)
    return True


async def rewrite_directory(
    docs_dir: str | Path, gateway: RenderGateway, *, strict: bool = False
) -> list[Path]:
    """
    Rewrite every `*.md` file under `docs_dir`. A strict render failure stops only the
    document it occurs in; the paths of such documents are returned.
    """
    docs = sorted(Path(docs_dir).rglob("*.md"))
    semaphore = asyncio.Semaphore(FILE_CONCURRENCY)
    failed: list[Path] = []

    async def process(path: Path) -> None:
        async with semaphore:
            try:
                await rewrite_file(path, gateway, strict=strict)
            except RenderError as e:
                log.error("Failed to render diagrams in %s: %s", path, e)
                failed.append(path)

    await asyncio.gather(*(process(p) for p in docs))
    return sorted(failed)
