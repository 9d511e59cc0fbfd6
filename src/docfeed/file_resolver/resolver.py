"""
FileResolver: main entry point for source discovery.

Resolves a mix of files and directories into a deduplicated list of absolute file
paths. Directory roots are filtered by include globs, exclude globs and translated
`.gitignore` rules; file roots are taken as-is.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Iterable, Sequence
from pathlib import Path

import pathspec

from docfeed.file_resolver.defaults import BASELINE_EXCLUDES
from docfeed.file_resolver.gitignore import _read_ignore_file, collect_gitignore
from docfeed.file_resolver.patterns import flatten_globs
from docfeed.file_resolver.types import (
    FileResolverConfig,
    ResolvedFile,
    RootResult,
    SourceResolutionError,
    SourceRoot,
)

log = logging.getLogger(__name__)


def _literal_negation(pattern: str) -> str:
    # A leading `!` would subtract from the combined spec; match it as a literal character.
    return f"\\{pattern}" if pattern.startswith("!") else pattern


def _compile(patterns: Iterable[str]) -> pathspec.PathSpec:
    return pathspec.PathSpec.from_lines("gitignore", (_literal_negation(p) for p in patterns))


def anchor_include(pattern: str) -> str:
    """Prefix `**/` to include globs not already anchored, so `*.js` matches at any depth."""
    if pattern.startswith("/") or pattern.startswith("**"):
        return pattern
    return f"**/{pattern}"


def anchor_exclude(pattern: str) -> str:
    """
    Pin a slash-free exclude glob to the root, so `*test*` only matches top-level
    entries. Patterns containing a `/` are already relative to the root.
    """
    if "/" in pattern or pattern.startswith("**"):
        return pattern
    return f"/{pattern}"


def merge_ignore_globs(exclude: Sequence[str], ignore: Sequence[str]) -> list[str]:
    """
    Combine exclude and ignore globs, then add each baseline exclusion not yet present.

    Exclude globs are anchored to the root; translated `.gitignore` globs are kept as-is.
    """
    merged = [*(anchor_exclude(p) for p in exclude), *ignore]
    for pattern in BASELINE_EXCLUDES:
        if pattern not in merged:
            merged.append(pattern)
    return merged


def get_files_with_glob(
    root: str | Path,
    include: Sequence[str],
    exclude: Sequence[str] = (),
    ignore: Sequence[str] = (),
    *,
    include_dotfiles: bool = False,
    nested_gitignore: bool = False,
) -> list[Path]:
    """
    Return absolute paths of files under `root` that match `include` and no ignore rule.

    A missing `root` yields an empty list. Any other failure to list `root` itself
    raises `SourceResolutionError`; unreadable subdirectories are skipped with a
    warning. With `nested_gitignore`, `.gitignore` files found below `root` apply to
    their own subtree.
    """
    root = Path(root).absolute()
    include_spec = _compile(anchor_include(p) for p in include)
    ignore_spec = _compile(merge_ignore_globs(exclude, ignore))
    nested_specs: dict[Path, pathspec.PathSpec] = {}
    root_error: list[OSError] = []

    def on_error(error: OSError) -> None:
        failed = Path(error.filename) if error.filename else root
        if failed == root:
            root_error.append(error)
        else:
            log.warning("Skipping unreadable directory %s: %s", failed, error)

    result: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        current = Path(dirpath)
        rel_dir = current.relative_to(root)

        if nested_gitignore and current != root:
            patterns = _read_ignore_file(current / ".gitignore")
            if patterns:
                nested_specs[rel_dir] = _compile(flatten_globs(patterns))

        # Prune in place so ignored trees are never entered
        dirnames[:] = sorted(
            d
            for d in dirnames
            if (include_dotfiles or not d.startswith("."))
            and not _is_ignored(rel_dir / d, ignore_spec, nested_specs, is_dir=True)
        )

        for filename in sorted(filenames):
            if not include_dotfiles and filename.startswith("."):
                continue
            rel_path = rel_dir / filename
            if not include_spec.match_file(rel_path.as_posix()):
                continue
            if _is_ignored(rel_path, ignore_spec, nested_specs, is_dir=False):
                continue
            filepath = current / filename
            if filepath.is_file():
                result.append(filepath)

    if root_error:
        error = root_error[0]
        if isinstance(error, FileNotFoundError):
            return []
        raise SourceResolutionError(root, error)
    return result


def _is_ignored(
    rel_path: Path,
    ignore_spec: pathspec.PathSpec,
    nested_specs: dict[Path, pathspec.PathSpec],
    *,
    is_dir: bool,
) -> bool:
    suffix = "/" if is_dir else ""
    if ignore_spec.match_file(rel_path.as_posix() + suffix):
        return True
    for base, spec in nested_specs.items():
        if base in rel_path.parents and spec.match_file(
            rel_path.relative_to(base).as_posix() + suffix
        ):
            return True
    return False


def merge_root_results(results: Iterable[RootResult]) -> list[ResolvedFile]:
    """
    Fold per-root results into one deduplicated file list. Failed roots are logged
    and contribute nothing.
    """
    seen: set[Path] = set()
    merged: list[ResolvedFile] = []
    for result in results:
        if not result.ok:
            log.warning("%s", result.error)
            continue
        for path in result.files:
            resolved = ResolvedFile.from_path(path)
            if resolved.absolute_path in seen:
                continue
            seen.add(resolved.absolute_path)
            merged.append(resolved)
    return merged


class FileResolver:
    """
    Discovers source files under a set of roots, honoring include/exclude globs,
    the `.gitignore` chain of each directory root, and the baseline exclusions.
    """

    def __init__(self, config: FileResolverConfig | None = None) -> None:
        self._config: FileResolverConfig = config or FileResolverConfig()

    @property
    def config(self) -> FileResolverConfig:
        return self._config

    def ignore_globs(self, directory: Path) -> list[str]:
        """Translated `.gitignore` globs for a directory root (empty when disabled or absent)."""
        if not self._config.respect_gitignore:
            return []
        patterns = collect_gitignore(directory)
        if not patterns:
            return []
        return flatten_globs(patterns)

    def resolve_root(self, root: SourceRoot) -> RootResult:
        """Resolve a single root. Never raises for filesystem failures."""
        if root.is_file:
            return RootResult(root=root, files=[root.path])
        try:
            files = get_files_with_glob(
                root.path,
                self._config.effective_include,
                self._config.effective_exclude,
                self.ignore_globs(root.path) if root.path.is_dir() else [],
                include_dotfiles=self._config.include_dotfiles,
                nested_gitignore=self._config.respect_gitignore,
            )
        except SourceResolutionError as e:
            return RootResult(root=root, error=e)
        return RootResult(root=root, files=files)

    def resolve(self, paths: Sequence[str | Path]) -> list[ResolvedFile]:
        """Resolve every path and merge the results, deduplicated by absolute path."""
        roots = [SourceRoot.from_path(p) for p in paths]
        return merge_root_results(self.resolve_root(root) for root in roots)

    async def aresolve(self, paths: Sequence[str | Path]) -> list[ResolvedFile]:
        """Like `resolve`, scanning roots concurrently in worker threads."""
        roots = [SourceRoot.from_path(p) for p in paths]
        results = await asyncio.gather(
            *(asyncio.to_thread(self.resolve_root, root) for root in roots)
        )
        return merge_root_results(results)
