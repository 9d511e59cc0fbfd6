#!/usr/bin/env python3
"""
docfeed: Find the source files a doc generator should read, and render its diagrams

Common usage:
  docfeed --list-files .
  docfeed --list-files --include '*.proto' --exclude 'generated/**' src/
  docfeed --bundle src/ README.md
  docfeed --render-diagrams docs/
  docfeed --check-diagram architecture.d2

Settings can also come from `.docfeed.toml`, `docfeed.toml` or `[tool.docfeed]`
in `pyproject.toml`.
"""

from __future__ import annotations

import argparse
import asyncio
import importlib.metadata
import sys
from dataclasses import dataclass
from pathlib import Path

from docfeed.assets import AssetCache, RenderError, RenderGateway, make_renderer
from docfeed.assets.cache import DEFAULT_CACHE_DIR
from docfeed.assets.markdown import rewrite_directory, rewrite_file
from docfeed.assets.renderers import RENDERERS
from docfeed.config import find_config_file, load_config, merge_cli_with_config
from docfeed.file_resolver import FileResolver, SourceRequest, load_sources
from docfeed.log import configure_logging


@dataclass
class Options:
    """Command-line options for the docfeed tool."""

    paths: list[str]
    list_files: bool
    bundle: bool
    # Source discovery
    include: list[str]
    exclude: list[str]
    use_default_patterns: bool
    respect_gitignore: bool
    include_dotfiles: bool
    # Diagram assets
    render_diagrams: list[str]
    check_diagram: str | None
    cache_dir: str
    renderer: str
    kroki_url: str | None
    strict: bool
    layout: str | None
    theme: int | None
    verbose: bool
    version: bool


# Options whose CLI default is `None` so an explicit flag can be told apart from the default.
_DEFAULTS: dict[str, object] = {
    "include": [],
    "exclude": [],
    "use_default_patterns": True,
    "respect_gitignore": True,
    "include_dotfiles": False,
    "cache_dir": str(DEFAULT_CACHE_DIR),
    "renderer": "d2",
    "strict": False,
}


def _parse_args(args: list[str] | None = None) -> tuple[Options, set[str]]:
    """
    Parse command-line arguments.

    Returns `(options, explicit_flags)`, where `explicit_flags` names the options the
    user actually passed (these win over config file values).
    """
    module_doc = __doc__ or ""
    doc_parts = module_doc.split("\n\n")
    description = doc_parts[0]
    epilog = "\n\n".join(doc_parts[1:])

    parser = argparse.ArgumentParser(
        prog="docfeed",
        description=description,
        epilog=epilog,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "paths",
        nargs="*",
        default=[],
        help="Files or directories to resolve (use '.' for the current directory)",
    )
    parser.add_argument(
        "--list-files",
        action="store_true",
        dest="list_files",
        help="Print resolved absolute file paths (the default when paths are given)",
    )
    parser.add_argument(
        "--bundle",
        action="store_true",
        help="Print the contents of all resolved files, each preceded by a sourceId line",
    )
    # Source discovery options
    parser.add_argument(
        "--include",
        action="append",
        default=None,
        metavar="PATTERN",
        help="Glob of files to include (e.g., '*.proto'). Can be repeated",
    )
    parser.add_argument(
        "--exclude",
        action="append",
        default=None,
        metavar="PATTERN",
        help="Glob of files to exclude (e.g., 'generated/**'). Can be repeated",
    )
    parser.add_argument(
        "--no-default-patterns",
        action="store_false",
        dest="use_default_patterns",
        default=None,
        help="Use only --include/--exclude, not the built-in pattern lists",
    )
    parser.add_argument(
        "--no-respect-gitignore",
        action="store_false",
        dest="respect_gitignore",
        default=None,
        help="Disable .gitignore integration",
    )
    parser.add_argument(
        "--include-dotfiles",
        action="store_true",
        dest="include_dotfiles",
        default=None,
        help="Also consider files and directories whose names start with '.'",
    )
    # Diagram options
    parser.add_argument(
        "--render-diagrams",
        action="append",
        default=[],
        dest="render_diagrams",
        metavar="PATH",
        help="Replace d2 code blocks in Markdown files (or a directory of them) with "
        "links to rendered SVGs, in place. Can be repeated",
    )
    parser.add_argument(
        "--check-diagram",
        dest="check_diagram",
        metavar="FILE",
        help="Render one d2 source file in strict mode and print the asset reference",
    )
    parser.add_argument(
        "--cache-dir",
        dest="cache_dir",
        default=None,
        metavar="DIR",
        help=f"Directory for rendered assets (default: {DEFAULT_CACHE_DIR})",
    )
    parser.add_argument(
        "--renderer",
        choices=RENDERERS,
        default=None,
        help="Render with the local d2 executable or a Kroki service (default: d2)",
    )
    parser.add_argument("--kroki-url", dest="kroki_url", default=None, metavar="URL")
    parser.add_argument(
        "--strict",
        action="store_true",
        default=None,
        help="Fail on diagrams that cannot be rendered instead of keeping their source",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version information and exit",
    )
    opts = parser.parse_args(args)

    explicit_flags: set[str] = set()
    for name, default in _DEFAULTS.items():
        if getattr(opts, name) is None:
            setattr(opts, name, default)
        else:
            explicit_flags.add(name)
    if opts.kroki_url is not None:
        explicit_flags.add("kroki_url")

    return (
        Options(
            paths=opts.paths,
            list_files=opts.list_files,
            bundle=opts.bundle,
            include=opts.include,
            exclude=opts.exclude,
            use_default_patterns=opts.use_default_patterns,
            respect_gitignore=opts.respect_gitignore,
            include_dotfiles=opts.include_dotfiles,
            render_diagrams=opts.render_diagrams,
            check_diagram=opts.check_diagram,
            cache_dir=opts.cache_dir,
            renderer=opts.renderer,
            kroki_url=opts.kroki_url,
            strict=opts.strict,
            layout=None,
            theme=None,
            verbose=opts.verbose,
            version=opts.version,
        ),
        explicit_flags,
    )


def _make_gateway(options: Options) -> RenderGateway:
    renderer = make_renderer(
        options.renderer,
        kroki_url=options.kroki_url,
        layout=options.layout,
        theme=options.theme,
    )
    cache = AssetCache(options.cache_dir, kind=renderer.kind, extension=renderer.extension)
    return RenderGateway(renderer, cache)


async def _render_diagrams(options: Options) -> int:
    gateway = _make_gateway(options)
    failed: list[Path] = []
    for raw_path in options.render_diagrams:
        path = Path(raw_path)
        if path.is_dir():
            failed.extend(await rewrite_directory(path, gateway, strict=options.strict))
        elif path.is_file():
            try:
                await rewrite_file(path, gateway, strict=options.strict)
            except RenderError as e:
                print(f"Error: {path}: {e}", file=sys.stderr)
                failed.append(path)
        else:
            print(f"Error: Path not found: {raw_path}", file=sys.stderr)
            return 1
    for path in failed:
        print(f"Error: could not render diagrams in {path}", file=sys.stderr)
    return 1 if failed else 0


def _source_request(options: Options) -> SourceRequest:
    return SourceRequest(
        root_paths=options.paths,
        include_patterns=options.include,
        exclude_patterns=options.exclude,
        use_default_patterns=options.use_default_patterns,
    )


def main(args: list[str] | None = None) -> int:
    """
    Main entry point for the docfeed CLI.

    Args:
        args: Command-line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    options, explicit_flags = _parse_args(args)

    if options.version:
        try:
            version = importlib.metadata.version("docfeed")
            print(f"v{version}")
        except importlib.metadata.PackageNotFoundError:
            print("unknown (package not installed)")
        return 0

    configure_logging(verbose=options.verbose)

    try:
        config_path = find_config_file(Path.cwd())
        if config_path:
            merge_cli_with_config(options, load_config(config_path), explicit_flags)

        if options.check_diagram:
            source = Path(options.check_diagram).read_text(encoding="utf-8")
            print(asyncio.run(_make_gateway(options).check(source)))
            return 0

        if options.render_diagrams:
            return asyncio.run(_render_diagrams(options))

        if not options.paths:
            print(
                "Error: No input specified. Provide files or directories (use '.' for the"
                " current directory). Use --help for more options.",
                file=sys.stderr,
            )
            return 1

        request = _source_request(options)
        resolver = FileResolver(
            request.resolver_config(
                respect_gitignore=options.respect_gitignore,
                include_dotfiles=options.include_dotfiles,
            )
        )
        if options.bundle:
            bundle = asyncio.run(load_sources(request, resolver))
            sys.stdout.write(bundle.text)
            return 0

        for file in resolver.resolve(options.paths):
            print(file.absolute_path)
        return 0
    except (RenderError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
