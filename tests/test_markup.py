"""Tests for tern.transforms.markup — include substitution and dev blocks."""

from __future__ import annotations

from pathlib import Path

import pytest

from tern._errors import TransformError
from tern.transforms import MarkupAssembler, Transform
from tern.transforms.markup import INCLUDE_NAMES, assemble, load_includes, strip_dev_blocks

DEV_FRAGMENT = "<!-- [s] toolbar -->\n<div id=\"dev\">DEV</div>\n<!-- // [e] -->"


class TestLoadIncludes:
    """load_includes — fragment discovery."""

    def test_reads_known_fragments(self, tmp_path: Path) -> None:
        (tmp_path / "header.html").write_text("<header/>")
        includes = load_includes(tmp_path)
        assert set(includes) == set(INCLUDE_NAMES)
        assert includes["header"] == "<header/>"

    def test_missing_fragment_is_empty(self, tmp_path: Path) -> None:
        includes = load_includes(tmp_path)
        assert includes["footer"] == ""

    def test_missing_directory(self, tmp_path: Path) -> None:
        includes = load_includes(tmp_path / "nope")
        assert all(value == "" for value in includes.values())


class TestAssemble:
    """assemble — directive substitution."""

    def test_substitutes_directive(self) -> None:
        out = assemble("<body><!-- {include:header} --></body>", {"header": "<h1>Hi</h1>"}, "dev")
        assert out == "<body><h1>Hi</h1></body>"

    def test_whitespace_in_directive(self) -> None:
        out = assemble("<!--{include:footer}-->", {"footer": "F"}, "dev")
        assert out == "F"

    def test_repeated_directive(self) -> None:
        out = assemble("<!-- {include:meta} --><!-- {include:meta} -->", {"meta": "M"}, "dev")
        assert out == "MM"

    def test_unknown_directive_left_in_place(self) -> None:
        markup = "<!-- {include:sidebar} -->"
        assert assemble(markup, {"header": "H"}, "dev") == markup

    def test_nested_includes(self) -> None:
        includes = {"header": "<header><!-- {include:meta} --></header>", "meta": "<meta>"}
        out = assemble("<!-- {include:header} -->", includes, "dev")
        assert out == "<header><meta></header>"

    def test_self_reference_raises(self, tmp_path: Path) -> None:
        origin = tmp_path / "page.html"
        includes = {"header": "<!-- {include:header} -->x"}
        with pytest.raises(TransformError) as exc_info:
            assemble("<!-- {include:header} -->", includes, "dev", origin=origin)
        assert exc_info.value.path == origin
        assert str(origin) in str(exc_info.value)

    def test_dev_keeps_sentinel_blocks(self) -> None:
        out = assemble("<body><!-- {include:dev} --></body>", {"dev": DEV_FRAGMENT}, "dev")
        assert out == f"<body>{DEV_FRAGMENT}</body>"

    def test_prod_strips_dev_fragment(self) -> None:
        out = assemble("<body><!-- {include:dev} --></body>", {"dev": DEV_FRAGMENT}, "prod")
        assert out == "<body></body>"

    def test_prod_strips_blocks_in_page(self) -> None:
        page = "<p>a</p><!-- [s] note -->secret<!-- // [e] --><p>b</p>"
        assert assemble(page, {}, "prod") == "<p>a</p><p>b</p>"

    def test_prod_strips_blocks_in_other_fragments(self) -> None:
        includes = {"footer": "<footer><!-- [s] -->debug<!-- [e] --></footer>"}
        out = assemble("<!-- {include:footer} -->", includes, "prod")
        assert out == "<footer></footer>"

    def test_prod_output_is_idempotent(self) -> None:
        includes = {"dev": DEV_FRAGMENT, "header": "<header>H</header>"}
        page = "<!-- {include:header} --><!-- {include:dev} --><!-- [s] -->x<!-- // [e] -->"
        once = assemble(page, includes, "prod")
        assert assemble(once, includes, "prod") == once
        assert "[s]" not in once
        assert "[e]" not in once


class TestStripDevBlocks:
    """strip_dev_blocks — sentinel removal."""

    def test_closing_comment_form(self) -> None:
        assert strip_dev_blocks("a<!-- [s] -->b<!-- // [e] -->c") == "ac"

    def test_inline_close_form(self) -> None:
        assert strip_dev_blocks("a<!-- [s] b [e] -->c") == "ac"

    def test_multiple_blocks(self) -> None:
        html = "1<!-- [s] -->x<!-- // [e] -->2<!-- [s] -->y<!-- // [e] -->3"
        assert strip_dev_blocks(html) == "123"

    def test_multiline_block(self) -> None:
        assert strip_dev_blocks(f"<p>\n{DEV_FRAGMENT}\n</p>") == "<p>\n\n</p>"

    def test_no_blocks_unchanged(self) -> None:
        html = "<!-- plain comment --><p>x</p>"
        assert strip_dev_blocks(html) == html


class TestMarkupAssembler:
    """MarkupAssembler — the Transform wrapper."""

    def test_is_transform(self) -> None:
        assert isinstance(MarkupAssembler({}, "dev"), Transform)

    def test_from_directory(self, tmp_path: Path) -> None:
        (tmp_path / "header.html").write_text("<header/>")
        assembler = MarkupAssembler.from_directory(tmp_path, "prod")
        assert assembler.mode == "prod"
        assert assembler.apply("<!-- {include:header} -->") == "<header/>"

    def test_fragments_are_copied(self) -> None:
        includes = {"header": "A"}
        assembler = MarkupAssembler(includes, "dev")
        includes["header"] = "B"
        assert assembler.apply("<!-- {include:header} -->") == "A"
