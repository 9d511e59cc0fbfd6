"""Collection of `.gitignore` rules from a directory up to its repository root."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

from docfeed.file_resolver.patterns import IgnorePattern, parse_gitignore

log = logging.getLogger(__name__)


def find_git_root(start_dir: Path) -> Path | None:
    """
    Return the top level of the git working tree containing `start_dir`, or `None`
    when git is unavailable or `start_dir` is not inside a working tree.
    """
    if shutil.which("git") is None:
        return None
    try:
        proc = subprocess.run(
            ["git", "-C", str(start_dir), "rev-parse", "--show-toplevel"],
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            text=True,
            check=True,
        )
    except (subprocess.CalledProcessError, OSError):
        return None
    top_level = proc.stdout.strip()
    if not top_level:
        return None
    return Path(top_level).resolve()


def _read_ignore_file(path: Path) -> list[IgnorePattern] | None:
    """
    Read and parse one ignore file. Returns `None` when the file is missing,
    unreadable, or not valid UTF-8.
    """
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        log.debug("Skipping unreadable ignore file %s: %s", path, e)
        return None
    return parse_gitignore(content)


def collect_gitignore(start_dir: str | Path) -> list[IgnorePattern] | None:
    """
    Collect the `.gitignore` rules that apply to `start_dir`.

    Inside a git working tree, every `.gitignore` from `start_dir` up to and including
    the repository root is read. Rules from deeper directories come first. Outside a
    working tree only `start_dir/.gitignore` is considered.

    Returns `None` when no `.gitignore` was found at all. Patterns with the same raw
    line are kept once, at their first (deepest) position.
    """
    start = Path(start_dir).resolve()
    git_root = find_git_root(start) if start.is_dir() else None

    if git_root is None or not start.is_relative_to(git_root):
        levels = [start]
    else:
        levels = []
        current = start
        while True:
            levels.append(current)
            if current == git_root:
                break
            current = current.parent

    found_any = False
    collected: dict[str, IgnorePattern] = {}
    for directory in levels:
        patterns = _read_ignore_file(directory / ".gitignore")
        if patterns is None:
            continue
        found_any = True
        for pattern in patterns:
            collected.setdefault(pattern.raw, pattern)

    if not found_any:
        return None
    return list(collected.values())
