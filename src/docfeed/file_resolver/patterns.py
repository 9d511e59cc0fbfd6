"""Translation of `.gitignore` lines into path-matching glob patterns."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

_WILDCARDS = ("*", "?")


@dataclass(frozen=True)
class IgnorePattern:
    """
    One `.gitignore` line and the globs that reproduce its matching.

    `globs` is never empty. Directory-only lines (trailing `/`) only produce globs
    ending in `/**`, so they never match a plain file of the same name.
    """

    raw: str
    globs: tuple[str, ...]


def translate(raw_line: str) -> list[str]:
    """
    Convert one gitignore line into an ordered list of glob patterns.

    Leading-slash anchoring is dropped: `/build` and `build` translate alike.
    Negation (`!pattern`) has no special meaning here and is translated literally.
    """
    pattern = raw_line[1:] if raw_line.startswith("/") else raw_line

    if pattern.endswith("/"):
        directory = pattern[:-1]
        return [f"{directory}/**", f"**/{directory}/**"]

    if not any(c in pattern for c in _WILDCARDS):
        # A plain name matches a file, or a directory and its contents, at any depth.
        return [pattern, f"{pattern}/**", f"**/{pattern}", f"**/{pattern}/**"]

    if pattern.startswith("**/"):
        return [pattern]
    return [pattern, f"**/{pattern}"]


def parse_gitignore(content: str) -> list[IgnorePattern]:
    """Parse `.gitignore` text, skipping blank lines and comments."""
    patterns: list[IgnorePattern] = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or not line.strip("/"):
            continue
        patterns.append(IgnorePattern(raw=line, globs=tuple(translate(line))))
    return patterns


def flatten_globs(patterns: Iterable[IgnorePattern]) -> list[str]:
    """Merge the globs of many patterns, dropping repeats but keeping first-seen order."""
    return list(dict.fromkeys(glob for pattern in patterns for glob in pattern.globs))
