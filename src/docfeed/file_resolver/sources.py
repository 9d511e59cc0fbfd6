"""Loading resolved source files, with their contents, for a downstream generator."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

import aiofiles

from docfeed.file_resolver.resolver import FileResolver
from docfeed.file_resolver.types import FileResolverConfig, ResolvedFile

log = logging.getLogger(__name__)

# Maximum number of files read at once.
FILE_CONCURRENCY = 8


@dataclass
class SourceRequest:
    """What a generator asks for: roots to scan plus optional pattern overrides."""

    root_paths: list[str] = field(default_factory=list)
    include_patterns: list[str] | None = None
    exclude_patterns: list[str] | None = None
    use_default_patterns: bool = True
    sources: list[str] = field(default_factory=list)

    def resolver_config(self, **overrides: bool) -> FileResolverConfig:
        return FileResolverConfig(
            include=list(self.include_patterns or []),
            exclude=list(self.exclude_patterns or []),
            use_default_patterns=self.use_default_patterns,
            **overrides,
        )


@dataclass(frozen=True)
class SourceFile:
    absolute_path: Path
    relative_path: str
    content: str


@dataclass
class SourceBundle:
    files: list[SourceFile]

    @property
    def text(self) -> str:
        """All contents concatenated, each introduced by a `// sourceId:` header."""
        return "".join(f"// sourceId: {f.absolute_path}\n{f.content}\n" for f in self.files)


async def _read_source(file: ResolvedFile, semaphore: asyncio.Semaphore) -> SourceFile | None:
    async with semaphore:
        try:
            async with aiofiles.open(file.absolute_path, encoding="utf-8", errors="replace") as f:
                content = await f.read()
        except OSError as e:
            log.warning("Skipping unreadable source file %s: %s", file.absolute_path, e)
            return None
    return SourceFile(
        absolute_path=file.absolute_path, relative_path=file.relative_path, content=content
    )


async def read_sources(files: Sequence[ResolvedFile]) -> list[SourceFile]:
    """Read files concurrently (at most `FILE_CONCURRENCY` at a time), keeping input order."""
    semaphore = asyncio.Semaphore(FILE_CONCURRENCY)
    loaded = await asyncio.gather(*(_read_source(f, semaphore) for f in files))
    return [source for source in loaded if source is not None]


async def load_sources(
    request: SourceRequest, resolver: FileResolver | None = None
) -> SourceBundle:
    """
    Resolve the request's roots and read every resulting file.

    Explicit `sources` come first, followed by files found under `root_paths`; a file
    reached both ways is read once.
    """
    resolver = resolver or FileResolver(request.resolver_config())
    explicit = [ResolvedFile.from_path(Path(p)) for p in request.sources]
    discovered = await resolver.aresolve(request.root_paths)

    seen: set[Path] = set()
    files: list[ResolvedFile] = []
    for file in [*explicit, *discovered]:
        if file.absolute_path not in seen:
            seen.add(file.absolute_path)
            files.append(file)

    return SourceBundle(files=await read_sources(files))
