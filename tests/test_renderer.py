"""Tests for the paginated PDF renderer."""

from __future__ import annotations

import io
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen.canvas import Canvas

from inkpress.core.models import (
    CodeToken,
    HeadingToken,
    InlineRun,
    LayoutConfig,
    LayoutLog,
    ListToken,
    OtherToken,
    ParagraphToken,
    RenderOptions,
)
from inkpress.core.parser import MarkdownParser
from inkpress.exceptions import ConfigurationError, RenderError
from inkpress.generators.blocks import CODE_PAD_Y, LIST_BULLET_X, LIST_TEXT_INDENT, BlockRenderer
from inkpress.generators.decorations import PageDecorator
from inkpress.generators.drawing import wrap_code_line
from inkpress.generators.layout import FOOTER_RESERVE, HEADER_RESERVE, LayoutCursor, PageGeometry
from inkpress.generators.pdf_generator import PdfGenerator, render_markdown_to_pdf
from inkpress.generators.themes import CODING_THEME, DARK_THEME, DEFAULT_THEME
from inkpress.generators.toc import TocBuilder

A4_WIDTH = 595.2756
GENERATED_ON = "2024-05-01"

PARAGRAPH = (
    "Revenue grew steadily across every region this quarter while operating "
    "costs remained flat, which allowed the team to invest in new tooling, "
    "expand the support rotation, and still close the period ahead of plan. "
    "The outlook for the next quarter is cautiously optimistic overall."
)


def _render(markdown: str, *, title: str = "Report", **options):
    sink = io.BytesIO()
    result = render_markdown_to_pdf(
        title, markdown, sink,
        options=RenderOptions(**options),
        generated_on=GENERATED_ON,
    )
    return result, sink.getvalue()


def _assert_no_overlap(log: LayoutLog) -> None:
    for prev, nxt in zip(log.blocks, log.blocks[1:]):
        assert prev.page <= nxt.page
        if prev.page == nxt.page:
            assert prev.bottom <= nxt.top + 1e-6, (prev, nxt)


@pytest.fixture
def body_renderer():
    """A block renderer on a real canvas, without header or footer."""
    config = LayoutConfig(include_header=False, include_footer=False)
    geometry = PageGeometry.from_config(config)
    log = LayoutLog()
    canvas = Canvas(io.BytesIO(), pagesize=config.page_size)
    decorator = PageDecorator(canvas, config, geometry, DEFAULT_THEME, "T", log, generated_on=GENERATED_ON)
    cursor = LayoutCursor(canvas, geometry, decorator, log)
    return BlockRenderer(canvas, cursor, DEFAULT_THEME, config, log)


# ---------------------------------------------------------------------------
# Output stream
# ---------------------------------------------------------------------------

class TestPdfOutput:
    def test_writes_complete_pdf(self):
        result, data = _render("# Hello\n\nWorld")
        assert data.startswith(b"%PDF")
        assert data.rstrip().endswith(b"%%EOF")
        assert result.byte_count == len(data)
        assert result.page_count == 1
        assert result.theme == "professional"

    def test_metadata(self):
        _, data = _render("text", title="Annual Summary")
        assert b"Annual Summary" in data
        assert b"Generated Document" in data
        assert b"inkpress" in data

    def test_failing_sink_raises_render_error(self):
        sink = MagicMock()
        sink.write.side_effect = OSError("disk full")
        with pytest.raises(RenderError) as excinfo:
            render_markdown_to_pdf("T", "# Title", sink)
        assert isinstance(excinfo.value.cause, OSError)

    def test_nothing_written_when_drawing_fails(self):
        sink = io.BytesIO()
        with patch.object(BlockRenderer, "_render_paragraph", side_effect=RuntimeError("boom")):
            with pytest.raises(RenderError):
                render_markdown_to_pdf("T", "# Title\n\nSome text", sink)
        assert sink.getvalue() == b""

    def test_invalid_layout_is_rejected(self):
        with pytest.raises(ConfigurationError):
            RenderOptions.create(font_size=0)
        with pytest.raises(ConfigurationError):
            RenderOptions.create(margins={"left": 400, "right": 400})

    def test_generator_can_be_reused(self):
        gen = PdfGenerator(generated_on=GENERATED_ON)
        tokens = [HeadingToken(depth=1, text="Title"), ParagraphToken(text=PARAGRAPH)]
        first = gen.render("A", tokens, io.BytesIO())
        second = gen.render("A", tokens, io.BytesIO())
        assert first.log.blocks == second.log.blocks
        assert first.page_count == second.page_count == 1


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

class TestPagination:
    def _document(self) -> str:
        return "# Quarterly Report\n\n" + "\n\n".join(PARAGRAPH for _ in range(6))

    def test_exactly_one_break(self):
        md = self._document()
        tall, _ = _render(md, page_size=(A4_WIDTH, 5000))
        extent = tall.log.blocks[-1].bottom - tall.log.blocks[0].top
        height = extent * 0.7 + 72 + HEADER_RESERVE + 72 + FOOTER_RESERVE

        result, _ = _render(md, page_size=(A4_WIDTH, height))

        assert result.page_count == 2
        assert result.log.page_breaks == [2]
        assert [d.page for d in result.log.decorations_of("header")] == [1, 2]
        assert [d.text for d in result.log.decorations_of("footer")] == ["Page 1", "Page 2"]
        _assert_no_overlap(result.log)

    def test_page_numbers_are_monotonic(self):
        md = "\n\n".join(f"## Section {i}\n\n{PARAGRAPH}" for i in range(25))
        result, _ = _render(md)
        pages = [b.page for b in result.log.blocks]
        assert pages == sorted(pages)
        assert pages[-1] == result.page_count
        assert result.log.page_breaks == list(range(2, result.page_count + 1))
        footers = result.log.decorations_of("footer")
        assert [f.page for f in footers] == list(range(1, result.page_count + 1))
        _assert_no_overlap(result.log)

    def test_blocks_stay_above_footer(self):
        md = "\n\n".join(PARAGRAPH for _ in range(30))
        result, _ = _render(md)
        geometry = PageGeometry.from_config(RenderOptions().layout_config())
        for block in result.log.blocks:
            assert block.bottom <= geometry.body_bottom + 1e-6
            assert block.top >= geometry.body_top - 1e-6

    def test_paragraph_taller_than_a_page_is_split(self):
        md = " ".join([PARAGRAPH] * 60)
        result, _ = _render(md)
        fragments = result.log.blocks_of("paragraph")
        assert result.page_count >= 2
        assert len(fragments) == result.page_count
        assert len({f.page for f in fragments}) == len(fragments)

    def test_long_code_block_continues_on_next_page(self):
        code = "\n".join(f"line_{i} = {i}" for i in range(200))
        result, _ = _render(f"```python\n{code}\n```")
        boxes = result.log.blocks_of("code")
        assert len(boxes) >= 2
        assert [b.page for b in boxes] == list(range(1, len(boxes) + 1))


# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------

class TestLists:
    def test_long_list_spans_pages(self):
        md = "\n".join(f"- item{i}" for i in range(50))
        result, _ = _render(md)
        bullets = result.log.bullets
        assert result.page_count > 1
        assert [b.index for b in bullets] == list(range(50))
        by_page: dict[int, list[float]] = {}
        for b in bullets:
            by_page.setdefault(b.page, []).append(b.y)
        assert len(by_page) == result.page_count
        for ys in by_page.values():
            assert len(set(ys)) == len(ys)
            assert ys == sorted(ys)
        _assert_no_overlap(result.log)

    def test_ordered_list(self):
        result, _ = _render("1. first\n2. second\n3. third")
        assert len(result.log.bullets) == 3
        assert len(result.log.blocks_of("list_item")) == 3

    def test_empty_item_still_gets_a_bullet(self):
        items = [[InlineRun(text="one")], [], [InlineRun(text="three")]]
        result = PdfGenerator(generated_on=GENERATED_ON).render("T", [ListToken(items=items)], io.BytesIO())
        assert [b.index for b in result.log.bullets] == [0, 1, 2]

    def test_nested_list_keeps_parent_numbering(self, body_renderer):
        canvas = body_renderer.canvas
        tokens = MarkdownParser().parse("1. alpha\n   - sub one\n   - sub two\n2. beta")
        with patch.object(canvas, "drawRightString", wraps=canvas.drawRightString) as labels, \
                patch.object(canvas, "circle", wraps=canvas.circle) as dots:
            for token in tokens:
                body_renderer.render(token)
        assert [c.args[2] for c in labels.call_args_list] == ["1.", "2."]
        left = body_renderer.geometry.left
        assert [c.args[0] for c in dots.call_args_list] == [left + LIST_TEXT_INDENT + LIST_BULLET_X] * 2
        assert len(body_renderer.log.bullets) == 4

    def test_ordered_list_can_start_at_zero(self, body_renderer):
        canvas = body_renderer.canvas
        with patch.object(canvas, "drawRightString", wraps=canvas.drawRightString) as labels:
            for token in MarkdownParser().parse("0. zero\n1. one"):
                body_renderer.render(token)
        assert [c.args[2] for c in labels.call_args_list] == ["0.", "1."]


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------

class TestBlocks:
    def test_code_keeps_indentation_and_inner_spaces(self, body_renderer):
        canvas = body_renderer.canvas
        with patch.object(canvas, "drawString", wraps=canvas.drawString) as draw:
            body_renderer.render(CodeToken(text="def f():\n    if x:\n        return  1"))
        assert [c.args[2] for c in draw.call_args_list] == ["def f():", "    if x:", "        return  1"]

    def test_long_code_line_is_cut_without_losing_characters(self):
        line = "    " + "value = compute(alpha, beta)  # " * 8
        width = 300
        pieces = wrap_code_line(line, "Courier", 10, width)
        assert len(pieces) > 1
        assert "".join(pieces) == line
        assert pieces[0].startswith("    value")
        assert all(stringWidth(p, "Courier", 10) <= width for p in pieces)

    def test_code_box_that_exactly_fits_stays_on_the_page(self, body_renderer):
        cursor = body_renderer.cursor
        size = body_renderer.config.font_size - 1
        lines = 7
        box = lines * size * 1.3 + 2 * CODE_PAD_Y
        # 8pt lead before the box
        cursor.y = cursor.geometry.body_bottom - box - 8
        body_renderer.render(CodeToken(text="\n".join(f"x{i} = {i}" for i in range(lines))))
        boxes = body_renderer.log.blocks_of("code")
        assert [b.page for b in boxes] == [1]
        assert cursor.page_number == 1

    def test_code_box_grows_with_line_count(self):
        short = "\n".join(f"x{i} = {i}" for i in range(2))
        long = "\n".join(f"x{i} = {i}" for i in range(20))
        result, _ = _render(f"```\n{short}\n```\n\n```\n{long}\n```")
        small, big = result.log.blocks_of("code")
        assert (big.bottom - big.top) > (small.bottom - small.top)

    def test_every_block_kind_renders(self):
        md = (
            "# Title\n\n## Section\n\n### Sub\n\n#### Deep\n\n"
            "Text with **bold** and *italic*.\n\n"
            "> A quoted tip\n\n"
            "- a\n- b\n\n"
            "```js\nconsole.log(1)\n```\n\n"
            "---\n\n"
            "| a | b |\n|---|---|\n| 1 | 2 |\n"
        )
        result, data = _render(md)
        kinds = {b.kind for b in result.log.blocks}
        assert {"heading", "paragraph", "blockquote", "list_item", "code", "rule", "other"} <= kinds
        assert data.startswith(b"%PDF")
        _assert_no_overlap(result.log)

    def test_oversized_title_and_words_do_not_crash(self):
        md = "# " + "Enormous " * 80 + "\n\n" + "x" * 600
        result, _ = _render(md, title="T" * 500)
        assert result.page_count >= 1

    def test_non_latin_text_is_tolerated(self):
        result, _ = _render("# 🎯 Goals — “quoted” …\n\nnaïve café → 日本語")
        assert result.page_count == 1

    @pytest.mark.parametrize("theme", ["professional", "modern", "elegant", "dark", "coding"])
    def test_every_theme_renders(self, theme):
        result, data = _render("# Title\n\nBody text.", theme=theme)
        assert result.theme == theme
        assert data.startswith(b"%PDF")


# ---------------------------------------------------------------------------
# Fallback for unknown tokens
# ---------------------------------------------------------------------------

class TestUnknownTokens:
    def test_unknown_token_with_text_renders_as_paragraph(self, body_renderer):
        body_renderer.render(SimpleNamespace(type="mystery", text="still shown"))
        assert [b.kind for b in body_renderer.log.blocks] == ["other"]

    def test_unknown_token_without_text_is_skipped(self, body_renderer, caplog):
        y = body_renderer.cursor.y
        body_renderer.render(SimpleNamespace(type="mystery"))
        body_renderer.render(object())
        assert body_renderer.log.blocks == []
        assert body_renderer.cursor.y == y

    def test_known_kind_with_missing_fields_uses_fallback(self, body_renderer):
        body_renderer.render(SimpleNamespace(type="heading", text="No depth here"))
        assert [b.kind for b in body_renderer.log.blocks] == ["other"]

    def test_other_token_renders_text(self, body_renderer):
        body_renderer.render(OtherToken(kind="html", text="<b>raw</b>"))
        assert [b.kind for b in body_renderer.log.blocks] == ["other"]

    def test_rendering_continues_after_unknown_token(self):
        tokens = [
            HeadingToken(depth=1, text="Title"),
            SimpleNamespace(type="mystery"),
            ParagraphToken(text="after"),
        ]
        result = PdfGenerator(generated_on=GENERATED_ON).render("T", tokens, io.BytesIO())
        assert [b.kind for b in result.log.blocks] == ["heading", "paragraph"]


# ---------------------------------------------------------------------------
# Themes
# ---------------------------------------------------------------------------

class TestThemeFallback:
    def test_unknown_theme_uses_default(self, caplog):
        result, data = _render("# Title\n\nBody", theme="nonexistent-theme")
        assert result.theme == DEFAULT_THEME.name
        assert data.startswith(b"%PDF")
        assert "nonexistent-theme" in caplog.text


# ---------------------------------------------------------------------------
# Headers and footers
# ---------------------------------------------------------------------------

class TestDecorations:
    def _decorator(self, theme=DEFAULT_THEME, **config):
        cfg = LayoutConfig(**config)
        canvas = MagicMock()
        log = LayoutLog()
        geometry = PageGeometry.from_config(cfg)
        return PageDecorator(canvas, cfg, geometry, theme, "Title", log, generated_on=GENERATED_ON), canvas

    @pytest.mark.parametrize("theme", [DEFAULT_THEME, CODING_THEME, DARK_THEME])
    def test_header_is_idempotent(self, theme):
        decorator, canvas = self._decorator(theme)
        decorator.render_header(3)
        first = repr(canvas.method_calls)
        canvas.reset_mock()
        decorator.render_header(3)
        assert repr(canvas.method_calls) == first

    def test_footer_is_idempotent(self):
        decorator, canvas = self._decorator()
        decorator.render_footer(2)
        first = repr(canvas.method_calls)
        canvas.reset_mock()
        decorator.render_footer(2)
        assert repr(canvas.method_calls) == first
        assert decorator.log.decorations_of("footer")[0].text == "Page 2"

    def test_gradient_header_uses_linear_gradient(self):
        decorator, canvas = self._decorator(CODING_THEME)
        decorator.render_header(1)
        canvas.linearGradient.assert_called_once()

    def test_solid_header_has_no_gradient(self):
        decorator, canvas = self._decorator(DEFAULT_THEME)
        decorator.render_header(1)
        canvas.linearGradient.assert_not_called()

    def test_footer_text(self):
        decorator, canvas = self._decorator()
        decorator.render_footer(7)
        x, _, text = canvas.drawString.call_args[0]
        assert x == 72
        assert text == f"Generated on {GENERATED_ON}"
        canvas.drawRightString.assert_called_once()
        assert canvas.drawRightString.call_args[0][2] == "Page 7"

    def test_disabled_header_and_footer_draw_nothing(self):
        decorator, canvas = self._decorator(include_header=False, include_footer=False)
        decorator.render_header(1)
        decorator.render_footer(1)
        assert canvas.method_calls == []
        assert decorator.log.decorations == []

    def test_page_numbers_can_be_disabled(self):
        result, _ = _render("text", include_page_numbers=False)
        assert [d.text for d in result.log.decorations_of("footer")] == [""]

    def test_without_header_body_starts_at_top_margin(self):
        result, _ = _render("text", include_header=False)
        assert result.log.decorations_of("header") == []
        assert result.log.blocks[0].top == 72

    def test_dark_theme_paints_background(self):
        decorator, canvas = self._decorator(DARK_THEME)
        decorator.paint_background()
        canvas.rect.assert_called_once()

    def test_light_theme_skips_background(self):
        decorator, canvas = self._decorator(DEFAULT_THEME)
        decorator.paint_background()
        canvas.rect.assert_not_called()


# ---------------------------------------------------------------------------
# Table of contents
# ---------------------------------------------------------------------------

class TestTableOfContents:
    def test_toc_entries_and_forced_break(self):
        result, _ = _render("# One\n\n## Two\n\n# Three", include_table_of_contents=True)
        toc = result.log.toc
        assert [(e.level, e.text) for e in toc] == [(1, "One"), (2, "Two"), (1, "Three")]
        assert all(e.page == 1 for e in toc)
        assert len(result.log.blocks_of("toc_entry")) == 3

        toc_page = result.log.blocks_of("toc")[0].page
        body = [b for b in result.log.blocks if not b.kind.startswith("toc")]
        assert min(b.page for b in body) > toc_page
        assert result.page_count == 2

    def test_indentation_follows_depth(self):
        assert TocBuilder.indent_for(1) == 0
        assert TocBuilder.indent_for(2) == 20
        assert TocBuilder.indent_for(3) == 40

    def test_no_headings_means_no_toc(self):
        result, _ = _render("Just a paragraph.", include_table_of_contents=True)
        assert result.log.toc == []
        assert result.page_count == 1
        assert result.log.blocks[0].page == 1

    def test_collect_ignores_other_tokens(self):
        tokens = [
            HeadingToken(depth=2, text="A"),
            ParagraphToken(text="p"),
            CodeToken(text="# not a heading"),
            HeadingToken(depth=4, text="B"),
        ]
        entries = TocBuilder.collect(tokens, page=1)
        assert [(e.level, e.text, e.page) for e in entries] == [(2, "A", 1), (4, "B", 1)]
