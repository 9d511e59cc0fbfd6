"""Tests for replacing d2 blocks in Markdown with rendered asset links."""

from __future__ import annotations

import asyncio
from pathlib import Path
from textwrap import dedent

import pytest

from docfeed.assets import AssetCache, RenderError, RenderGateway
from docfeed.assets.markdown import (
    diagram_sources,
    rewrite_diagrams,
    rewrite_directory,
    rewrite_file,
)

from conftest import StubRenderer

DOC = dedent(
    """\
    # Architecture

    ```d2
    api -> db
    ```

    Some text.

    ```python
    print("not a diagram")
    ```
    """
)


def test_diagram_sources_finds_real_blocks():
    assert diagram_sources(DOC) == {"api -> db\n"}


def test_diagram_sources_ignores_fences_quoted_in_other_blocks():
    doc = dedent(
        """\
        ````markdown
        ```d2
        quoted -> example
        ```
        ````
        """
    )
    assert diagram_sources(doc) == set()


def test_rewrite_replaces_block_with_link(gateway: RenderGateway, stub_renderer: StubRenderer):
    result = asyncio.run(rewrite_diagrams(DOC, gateway))
    key = gateway.cache_key("api -> db\n")
    assert f"![](../assets/d2/{key}.svg)" in result
    assert "```d2" not in result
    assert 'print("not a diagram")' in result
    assert result.startswith("# Architecture\n")
    assert stub_renderer.calls == ["api -> db\n"]


def test_rewrite_keeps_quoted_fence(gateway: RenderGateway, stub_renderer: StubRenderer):
    doc = "````markdown\n```d2\nquoted -> example\n```\n````\n"
    assert asyncio.run(rewrite_diagrams(doc, gateway)) == doc
    assert stub_renderer.calls == []


def test_rewrite_keeps_failed_block_when_not_strict(gateway: RenderGateway):
    doc = "Intro\n\n```d2\na -> bad\n```\n\n```d2\nok -> fine\n```\n"
    result = asyncio.run(rewrite_diagrams(doc, gateway))
    assert "```d2\na -> bad\n```" in result
    assert "ok -> fine" not in result
    assert "![](" in result


def test_rewrite_strict_raises(gateway: RenderGateway):
    with pytest.raises(RenderError):
        asyncio.run(rewrite_diagrams("```d2\nbad\n```\n", gateway, strict=True))


def test_rewrite_same_diagram_twice_renders_once(
    gateway: RenderGateway, stub_renderer: StubRenderer
):
    doc = "```d2\nx -> y\n```\n\ntext\n\n```d2\nx -> y\n```\n"
    result = asyncio.run(rewrite_diagrams(doc, gateway))
    assert result.count("![](") == 2
    assert len(stub_renderer.calls) == 1


def test_rewrite_empty_and_plain_documents(gateway: RenderGateway):
    assert asyncio.run(rewrite_diagrams("", gateway)) == ""
    assert asyncio.run(rewrite_diagrams("# Title\n", gateway)) == "# Title\n"


def test_rewrite_with_base_dir_links_relative_to_document(tmp_path: Path):
    cache = AssetCache(tmp_path / "tmp")
    gateway = RenderGateway(StubRenderer(), cache, preamble="")
    docs = tmp_path / "docs" / "guide"
    docs.mkdir(parents=True)

    result = asyncio.run(rewrite_diagrams("```d2\na -> b\n```\n", gateway, base_dir=docs))
    key = gateway.cache_key("a -> b\n")
    assert result == f"![](../../tmp/assets/d2/{key}.svg)\n"


def test_rewrite_file_in_place(tmp_path: Path, gateway: RenderGateway):
    doc = tmp_path / "index.md"
    doc.write_text(DOC)
    assert asyncio.run(rewrite_file(doc, gateway)) is True
    assert "```d2" not in doc.read_text()
    assert asyncio.run(rewrite_file(doc, gateway)) is False


def test_rewrite_directory_isolates_strict_failures(tmp_path: Path, gateway: RenderGateway):
    docs = tmp_path / "docs"
    (docs / "nested").mkdir(parents=True)
    good = docs / "good.md"
    good.write_text("```d2\na -> b\n```\n")
    broken = docs / "nested" / "broken.md"
    broken.write_text("```d2\nbad\n```\n")
    (docs / "notes.txt").write_text("```d2\nignored -> file\n```\n")

    failed = asyncio.run(rewrite_directory(docs, gateway, strict=True))

    assert failed == [broken]
    assert "![](" in good.read_text()
    assert broken.read_text() == "```d2\nbad\n```\n"
    assert "```d2" in (docs / "notes.txt").read_text()


def test_rewrite_handles_crlf_documents(gateway: RenderGateway, stub_renderer: StubRenderer):
    doc = "# Title\r\n\r\n```d2\r\napi -> db\r\n```\r\n\r\nAfter.\r\n"
    result = asyncio.run(rewrite_diagrams(doc, gateway))
    key = gateway.cache_key("api -> db\n")
    assert result == f"# Title\r\n\r\n![](../assets/d2/{key}.svg)\r\n\r\nAfter.\r\n"
    assert stub_renderer.calls == ["api -> db\n"]


def test_rewrite_handles_fence_inside_list_item(gateway: RenderGateway):
    doc = dedent(
        """\
        - Overview:

          ```d2
          api -> db
          ```

        - Done.
        """
    )
    assert diagram_sources(doc) == {"api -> db\n"}
    result = asyncio.run(rewrite_diagrams(doc, gateway))
    key = gateway.cache_key("api -> db\n")
    assert f"  ![](../assets/d2/{key}.svg)\n" in result
    assert "```" not in result
