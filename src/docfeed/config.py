"""
TOML-based config file loading for docfeed.

Searches for `.docfeed.toml`, `docfeed.toml`, or `pyproject.toml [tool.docfeed]`
walking up from the current directory. Config values are merged with CLI flags
using three-way precedence: explicit CLI flags > config file > built-in defaults.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, TypeVar, cast

from docfeed.assets.renderers import RENDERERS

if sys.version_info >= (3, 11):
    import tomllib  # pyright: ignore[reportUnreachable]
else:
    import tomli as tomllib  # type: ignore[no-redef]  # pyright: ignore[reportUnreachable]


@dataclass
class DocfeedConfig:
    """
    Parsed config from a TOML file. Fields are `None` when not set in the config,
    allowing the merge logic to distinguish "not configured" from "explicitly set
    to default value".
    """

    # Sources
    include: list[str] | None = None
    exclude: list[str] | None = None
    use_default_patterns: bool | None = None
    respect_gitignore: bool | None = None
    include_dotfiles: bool | None = None
    # Assets
    cache_dir: str | None = None
    renderer: str | None = None
    kroki_url: str | None = None
    strict: bool | None = None
    layout: str | None = None
    theme: int | None = None


# Config file search order (first match wins within each directory level)
_CONFIG_FILENAMES = [".docfeed.toml", "docfeed.toml", "pyproject.toml"]

_VALID_FIELDS = {f.name for f in fields(DocfeedConfig)}


def find_config_file(start_dir: Path) -> Path | None:
    """
    Walk up from `start_dir` looking for a config file. Returns the first
    found, or `None`. Search order per directory: `.docfeed.toml` >
    `docfeed.toml` > `pyproject.toml` (only if it has `[tool.docfeed]`).
    """
    current = start_dir.resolve()
    while True:
        for filename in _CONFIG_FILENAMES:
            candidate = current / filename
            if candidate.is_file():
                if filename == "pyproject.toml":
                    if _pyproject_has_docfeed_section(candidate):
                        return candidate
                else:
                    return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent
    return None


def _pyproject_has_docfeed_section(path: Path) -> bool:
    try:
        data = tomllib.loads(path.read_text())
        return "docfeed" in data.get("tool", {})
    except (tomllib.TOMLDecodeError, OSError):
        return False


def load_config(config_path: Path) -> DocfeedConfig:
    """
    Load a `DocfeedConfig` from a TOML file. Supports both standalone
    `docfeed.toml` / `.docfeed.toml` and `pyproject.toml` (extracts
    `[tool.docfeed]`). TOML kebab-case keys are mapped to Python snake_case.
    Raises `ValueError` when `renderer` names no known renderer.
    """
    data = tomllib.loads(config_path.read_text())

    if config_path.name == "pyproject.toml":
        data = data.get("tool", {}).get("docfeed", {})

    config = _parse_config_data(data)
    if config.renderer is not None and config.renderer not in RENDERERS:
        raise ValueError(
            f"Unknown renderer in {config_path}: {config.renderer!r}"
            f" (expected one of {', '.join(RENDERERS)})"
        )
    return config


def _parse_config_data(data: dict[str, Any]) -> DocfeedConfig:
    """Parse a flat or sectioned TOML dict into DocfeedConfig."""
    # Flatten sections: [sources] and [assets] merge into top level
    flat: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            for sub_key, sub_value in cast(dict[str, Any], value).items():
                flat[sub_key] = sub_value
        else:
            flat[key] = value

    mapped: dict[str, Any] = {}
    for key, value in flat.items():
        snake_key = key.replace("-", "_")
        if snake_key in _VALID_FIELDS:
            mapped[snake_key] = value

    return DocfeedConfig(**mapped)


_T = TypeVar("_T")


def merge_cli_with_config(
    cli_opts: _T,
    config: DocfeedConfig | None,
    explicit_flags: set[str],
) -> _T:
    """
    Merge CLI options with config file settings.

    Precedence: explicit CLI flags > config file > built-in defaults.
    """
    if config is None:
        return cli_opts

    for cfg_field in fields(DocfeedConfig):
        cfg_value = getattr(config, cfg_field.name)
        if cfg_value is None:
            continue  # Not set in config

        if cfg_field.name in explicit_flags:
            continue

        if hasattr(cli_opts, cfg_field.name):
            setattr(cli_opts, cfg_field.name, cfg_value)

    return cli_opts
