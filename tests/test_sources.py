"""Tests for loading resolved sources with their contents."""

from __future__ import annotations

import asyncio
from pathlib import Path

import aiofiles
import pytest

from docfeed.file_resolver import SourceRequest, load_sources
from docfeed.file_resolver.sources import read_sources
from docfeed.file_resolver.types import ResolvedFile


def _make_tree(root: Path) -> None:
    (root / "main.py").write_text("print('hi')\n")
    lib = root / "lib"
    lib.mkdir()
    (lib / "util.py").write_text("X = 1\n")
    (root / "notes.txt").write_text("not included by default\n")


def test_load_sources_reads_contents(tmp_path: Path):
    _make_tree(tmp_path)
    bundle = asyncio.run(load_sources(SourceRequest(root_paths=[str(tmp_path)])))

    contents = {f.absolute_path.name: f.content for f in bundle.files}
    assert contents == {"main.py": "print('hi')\n", "util.py": "X = 1\n"}


def test_load_sources_without_defaults_uses_only_caller_patterns(tmp_path: Path):
    _make_tree(tmp_path)
    request = SourceRequest(
        root_paths=[str(tmp_path)],
        include_patterns=["*.txt"],
        use_default_patterns=False,
    )
    bundle = asyncio.run(load_sources(request))
    assert [f.absolute_path.name for f in bundle.files] == ["notes.txt"]


def test_load_sources_exclude_patterns(tmp_path: Path):
    _make_tree(tmp_path)
    request = SourceRequest(root_paths=[str(tmp_path)], exclude_patterns=["lib/**"])
    bundle = asyncio.run(load_sources(request))
    assert [f.absolute_path.name for f in bundle.files] == ["main.py"]


def test_load_sources_explicit_sources_first_and_deduplicated(tmp_path: Path):
    _make_tree(tmp_path)
    explicit = tmp_path / "notes.txt"
    request = SourceRequest(
        root_paths=[str(tmp_path)],
        sources=[str(explicit), str(tmp_path / "main.py")],
    )
    bundle = asyncio.run(load_sources(request))
    names = [f.absolute_path.name for f in bundle.files]
    assert names[:2] == ["notes.txt", "main.py"]
    assert sorted(names) == ["main.py", "notes.txt", "util.py"]


def test_load_sources_missing_root(tmp_path: Path):
    bundle = asyncio.run(load_sources(SourceRequest(root_paths=[str(tmp_path / "gone")])))
    assert bundle.files == []
    assert bundle.text == ""


def test_bundle_text_has_source_headers(tmp_path: Path):
    (tmp_path / "a.py").write_text("A = 1")
    bundle = asyncio.run(load_sources(SourceRequest(root_paths=[str(tmp_path)])))
    path = (tmp_path / "a.py").resolve()
    assert bundle.text == f"// sourceId: {path}\nA = 1\n"


def test_read_sources_skips_vanished_files(tmp_path: Path):
    kept = tmp_path / "kept.py"
    kept.write_text("ok")
    files = [ResolvedFile.from_path(kept), ResolvedFile.from_path(tmp_path / "gone.py")]
    loaded = asyncio.run(read_sources(files))
    assert [f.content for f in loaded] == ["ok"]


def test_read_sources_replaces_invalid_utf8(tmp_path: Path):
    binary = tmp_path / "blob.py"
    binary.write_bytes(b"ok \xff\xfe")
    loaded = asyncio.run(read_sources([ResolvedFile.from_path(binary)]))
    assert loaded[0].content.startswith("ok ")
    assert "\ufffd" in loaded[0].content


@pytest.mark.parametrize("count", [1, 20])
def test_read_sources_keeps_order(tmp_path: Path, count: int):
    paths = []
    for i in range(count):
        p = tmp_path / f"f{i:02d}.py"
        p.write_text(str(i))
        paths.append(ResolvedFile.from_path(p))
    loaded = asyncio.run(read_sources(paths))
    assert [f.content for f in loaded] == [str(i) for i in range(count)]


def test_load_sources_skips_unreadable_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    (tmp_path / "a.py").write_text("A = 1")
    (tmp_path / "b.py").write_text("B = 2")
    real_open = aiofiles.open

    def guarded_open(path, *args, **kwargs):
        if Path(path).name == "b.py":
            raise PermissionError(13, "Permission denied", str(path))
        return real_open(path, *args, **kwargs)

    monkeypatch.setattr(aiofiles, "open", guarded_open)
    bundle = asyncio.run(load_sources(SourceRequest(root_paths=[str(tmp_path)])))
    assert [f.absolute_path.name for f in bundle.files] == ["a.py"]
