"""Configuration and result types for source resolution."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from docfeed.file_resolver.defaults import DEFAULT_EXCLUDES, DEFAULT_INCLUDES


@dataclass
class FileResolverConfig:
    """
    Configuration for source discovery and filtering.

    With `use_default_patterns`, `include` and `exclude` extend `DEFAULT_INCLUDES` and
    `DEFAULT_EXCLUDES`. Without it they are used alone, and an empty `include` means
    every file.
    """

    include: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)
    use_default_patterns: bool = True
    respect_gitignore: bool = True
    include_dotfiles: bool = False

    @property
    def effective_include(self) -> list[str]:
        """Include patterns after merging defaults."""
        base = list(DEFAULT_INCLUDES) if self.use_default_patterns else []
        patterns = base + self.include
        return patterns or ["**/*"]

    @property
    def effective_exclude(self) -> list[str]:
        """Exclude patterns after merging defaults (baseline exclusions are added later)."""
        base = list(DEFAULT_EXCLUDES) if self.use_default_patterns else []
        return base + self.exclude


@dataclass(frozen=True)
class SourceRoot:
    """A caller-supplied path to resolve: a single file or a directory to scan."""

    path: Path
    is_file: bool

    @classmethod
    def from_path(cls, path: str | Path) -> SourceRoot:
        p = Path(path)
        return cls(path=p, is_file=p.is_file())


@dataclass(frozen=True)
class ResolvedFile:
    """A discovered file. `relative_path` is relative to the process working directory."""

    absolute_path: Path
    relative_path: str

    @classmethod
    def from_path(cls, path: Path) -> ResolvedFile:
        absolute = path.resolve()
        return cls(absolute_path=absolute, relative_path=os.path.relpath(absolute))


class SourceResolutionError(OSError):
    """A filesystem failure, other than "not found", while scanning one root."""

    def __init__(self, root: Path, cause: OSError) -> None:
        super().__init__(f"Cannot resolve sources under {root}: {cause}")
        self.root = root
        self.cause = cause


@dataclass
class RootResult:
    """Outcome of resolving one root: either its files or the error that stopped it."""

    root: SourceRoot
    files: list[Path] = field(default_factory=list)
    error: SourceResolutionError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
