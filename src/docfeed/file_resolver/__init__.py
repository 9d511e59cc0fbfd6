"""
Source discovery with gitignore-aware globbing and configurable exclusion patterns.

Usage::

    from docfeed.file_resolver import FileResolver, FileResolverConfig

    config = FileResolverConfig(include=["*.proto"], exclude=["generated/**"])
    resolver = FileResolver(config)
    files = resolver.resolve(["src", "README.md"])
"""

from docfeed.file_resolver.defaults import BASELINE_EXCLUDES, DEFAULT_EXCLUDES, DEFAULT_INCLUDES
from docfeed.file_resolver.gitignore import collect_gitignore, find_git_root
from docfeed.file_resolver.patterns import IgnorePattern, parse_gitignore, translate
from docfeed.file_resolver.resolver import FileResolver, get_files_with_glob
from docfeed.file_resolver.sources import (
    SourceBundle,
    SourceFile,
    SourceRequest,
    load_sources,
)
from docfeed.file_resolver.types import (
    FileResolverConfig,
    ResolvedFile,
    RootResult,
    SourceResolutionError,
    SourceRoot,
)

__all__ = [
    "BASELINE_EXCLUDES",
    "DEFAULT_EXCLUDES",
    "DEFAULT_INCLUDES",
    "FileResolver",
    "FileResolverConfig",
    "IgnorePattern",
    "ResolvedFile",
    "RootResult",
    "SourceBundle",
    "SourceFile",
    "SourceRequest",
    "SourceResolutionError",
    "SourceRoot",
    "collect_gitignore",
    "find_git_root",
    "get_files_with_glob",
    "load_sources",
    "parse_gitignore",
    "translate",
]
