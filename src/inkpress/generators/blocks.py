"""Per-token drawing routines.

Every routine measures its content before reserving space, draws at the
cursor, records the span it occupied in the layout log, and then moves
the cursor past it. Text that cannot fit on a whole page body is split
and flowed across pages.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from reportlab.lib.enums import TA_JUSTIFY, TA_LEFT
from reportlab.lib.styles import ParagraphStyle
from reportlab.platypus import Paragraph

from ..core.models import (
    BlockquoteToken,
    BulletMark,
    CodeToken,
    HeadingToken,
    InlineRun,
    LayoutConfig,
    LayoutLog,
    ListToken,
    OtherToken,
    ParagraphToken,
    PlacedBlock,
    RunKind,
    SpaceToken,
    ThematicBreakToken,
    TokenType,
)
from .drawing import escape_markup, fit_text, pdf_safe, rgb, wrap_code_line
from .layout import LayoutCursor
from .themes import Theme, to_hex

if TYPE_CHECKING:
    from reportlab.pdfgen.canvas import Canvas

logger = logging.getLogger(__name__)

# Heading sizes (pt)
H1_SIZE = 22
H2_SIZE = 18
H3_SIZE = 15
H4_SIZE = 13
H1_BAND = 40.0
H1_RULE = 3.0
H2_UNDERLINE = (120.0, 2.0)

# Lists
LIST_BULLET_X = 8.0
LIST_BULLET_RADIUS = 2.5
LIST_TEXT_INDENT = 25.0
LIST_ITEM_GAP = 6.0
# Deeper nesting stops indenting further
LIST_MAX_INDENT_LEVELS = 4

# Quotes and code
QUOTE_INDENT = 25.0
QUOTE_WIDTH_INSET = 40.0
QUOTE_PAD = 10.0
QUOTE_BORDER = 4.0
CODE_PAD_X = 15.0
CODE_PAD_Y = 10.0

SPACE_GAP = 12.0


class BlockRenderer:
    """Draws tokens at the cursor with theme-driven styling."""

    def __init__(
        self,
        canvas: "Canvas",
        cursor: LayoutCursor,
        theme: Theme,
        config: LayoutConfig,
        log: LayoutLog,
    ) -> None:
        self.canvas = canvas
        self.cursor = cursor
        self.geometry = cursor.geometry
        self.theme = theme
        self.config = config
        self.log = log
        self.styles = self._create_styles(theme, config.font_size)
        self._handlers: dict[TokenType, tuple[type, Callable[[Any], None]]] = {
            TokenType.HEADING: (HeadingToken, self._render_heading),
            TokenType.PARAGRAPH: (ParagraphToken, self._render_paragraph),
            TokenType.LIST: (ListToken, self._render_list),
            TokenType.BLOCKQUOTE: (BlockquoteToken, self._render_blockquote),
            TokenType.CODE: (CodeToken, self._render_code),
            TokenType.THEMATIC_BREAK: (ThematicBreakToken, self._render_rule),
            TokenType.SPACE: (SpaceToken, self._render_space),
            TokenType.OTHER: (OtherToken, self._render_other),
        }

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def render(self, token: Any) -> None:
        """Draw one token; anything unrecognised goes through the fallback."""
        kind = getattr(token, "type", None)
        entry = self._handlers.get(kind) if isinstance(kind, str) else None
        if entry is None or not isinstance(token, entry[0]):
            self._render_other(token)
            return
        logger.debug("Rendering %s on page %d at y=%.1f", token.type.value, self.cursor.page_number, self.cursor.y)
        entry[1](token)

    # ------------------------------------------------------------------
    # Styles
    # ------------------------------------------------------------------

    @staticmethod
    def _create_styles(theme: Theme, font_size: int) -> dict[str, ParagraphStyle]:
        c = theme.colors
        f = theme.fonts
        return {
            "body": ParagraphStyle(
                "InkBody",
                fontName=f.body,
                fontSize=font_size,
                leading=font_size * 1.45,
                textColor=rgb(c.text),
                alignment=TA_LEFT,
            ),
            "body_justified": ParagraphStyle(
                "InkBodyJustified",
                fontName=f.body,
                fontSize=font_size,
                leading=font_size * 1.45,
                textColor=rgb(c.text),
                alignment=TA_JUSTIFY,
            ),
            "list": ParagraphStyle(
                "InkList",
                fontName=f.body,
                fontSize=font_size,
                leading=font_size * 1.35,
                textColor=rgb(c.text),
            ),
            "quote": ParagraphStyle(
                "InkQuote",
                fontName=f.body_italic,
                fontSize=font_size,
                leading=font_size * 1.4,
                textColor=rgb(c.secondary),
            ),
            "h2": ParagraphStyle(
                "InkH2",
                fontName=f.heading,
                fontSize=H2_SIZE,
                leading=H2_SIZE * 1.25,
                textColor=rgb(c.primary),
            ),
            "h3": ParagraphStyle(
                "InkH3",
                fontName=f.heading,
                fontSize=H3_SIZE,
                leading=H3_SIZE * 1.25,
                textColor=rgb(c.accent),
            ),
            "h4": ParagraphStyle(
                "InkH4",
                fontName=f.heading,
                fontSize=H4_SIZE,
                leading=H4_SIZE * 1.25,
                textColor=rgb(c.accent),
            ),
        }

    def _runs_markup(self, runs: list[InlineRun]) -> str:
        """Build ``Paragraph`` markup so differently styled runs share lines."""
        c = self.theme.colors
        f = self.theme.fonts
        parts: list[str] = []
        for run in runs:
            text = escape_markup(run.text)
            if run.kind == RunKind.STRONG:
                parts.append(f'<font name="{f.heading}" color="{to_hex(c.primary)}">{text}</font>')
            elif run.kind == RunKind.EMPHASIS:
                parts.append(f'<font name="{f.body_italic}" color="{to_hex(c.secondary)}">{text}</font>')
            else:
                parts.append(text)
        return "".join(parts)

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _place(self, kind: str, top: float, bottom: float) -> None:
        self.log.blocks.append(
            PlacedBlock(kind=kind, page=self.cursor.page_number, top=top, bottom=bottom)
        )

    def _lead(self, gap: float) -> None:
        """Leading gap before a block, skipped at the top of a page."""
        if not self.cursor.at_page_top:
            self.cursor.advance(gap)

    def _flow(
        self,
        para: Paragraph,
        *,
        x: float,
        width: float,
        kind: str,
        pad: float = 0.0,
        backdrop: Optional[Callable[[float, float, bool], None]] = None,
    ) -> None:
        """Draw *para* at the cursor, splitting it across pages if needed.

        ``backdrop(top, height, first)`` is called before each fragment's
        text is drawn, with the span that fragment occupies.
        """
        pending: list[Paragraph] = [para]
        first = True
        while pending:
            piece = pending.pop(0)
            _, height = piece.wrap(width, self.cursor.body_height)
            total = height + 2 * pad
            if total <= self.cursor.body_height:
                self.cursor.ensure_space(total)
            elif not self.cursor.fits(total):
                room = self.cursor.remaining - 2 * pad
                parts = piece.split(width, room) if room > 0 else []
                if len(parts) >= 2:
                    piece = parts[0]
                    pending = list(parts[1:]) + pending
                    _, height = piece.wrap(width, room)
                    total = height + 2 * pad
                elif not self.cursor.at_page_top:
                    self.cursor.break_page()
                    pending.insert(0, piece)
                    continue

            top = self.cursor.y
            if backdrop is not None:
                backdrop(top, total, first)
            piece.drawOn(self.canvas, x, self.geometry.to_pdf(top + pad + height))
            self._place(kind, top, top + total)
            self.cursor.consume(total)
            first = False
            if pending:
                self.cursor.break_page()

    # ------------------------------------------------------------------
    # Headings
    # ------------------------------------------------------------------

    def _render_heading(self, token: HeadingToken) -> None:
        if token.depth == 1:
            self._render_title_heading(token)
            return

        style = self.styles["h2" if token.depth == 2 else "h3" if token.depth == 3 else "h4"]
        para = Paragraph(escape_markup(token.text), style)
        width = self.cursor.content_width
        _, height = para.wrap(width, self.cursor.body_height)
        underline = H2_UNDERLINE[1] + 4 if token.depth == 2 else 0.0

        self.cursor.ensure_space(14 + height + underline)
        self._lead(14)
        top = self.cursor.y
        para.drawOn(self.canvas, self.geometry.left, self.geometry.to_pdf(top + height))
        if token.depth == 2:
            uw, uh = H2_UNDERLINE
            self.canvas.setFillColor(rgb(self.theme.colors.accent))
            self.canvas.rect(
                self.geometry.left, self.geometry.to_pdf(top + height + 4 + uh),
                min(uw, width), uh, fill=1, stroke=0,
            )
        self._place("heading", top, top + height + underline)
        self.cursor.consume(height + underline)
        self.cursor.gap(8)

    def _render_title_heading(self, token: HeadingToken) -> None:
        g = self.geometry
        c = self.canvas
        colors = self.theme.colors
        font = self.theme.fonts.heading

        self.cursor.ensure_space(18 + H1_BAND + H1_RULE + 2 + 16)
        self._lead(18)
        top = self.cursor.y

        c.saveState()
        c.setFillColor(rgb(colors.primary))
        c.setFillAlpha(0.1)
        c.rect(g.left, g.to_pdf(top + H1_BAND), g.content_width, H1_BAND, fill=1, stroke=0)
        c.restoreState()

        text = fit_text(pdf_safe(token.text), font, H1_SIZE, g.content_width - 20)
        c.setFont(font, H1_SIZE)
        c.setFillColor(rgb(colors.primary))
        c.drawString(g.left + 10, g.to_pdf(top + 28), text)

        c.setFillColor(rgb(colors.accent))
        c.rect(g.left, g.to_pdf(top + H1_BAND + 2 + H1_RULE), g.content_width, H1_RULE, fill=1, stroke=0)

        height = H1_BAND + 2 + H1_RULE
        self._place("heading", top, top + height)
        self.cursor.consume(height)
        self.cursor.gap(16)

    # ------------------------------------------------------------------
    # Text blocks
    # ------------------------------------------------------------------

    def _render_paragraph(self, token: ParagraphToken) -> None:
        if token.runs:
            para = Paragraph(self._runs_markup(token.runs), self.styles["body"])
        else:
            if not token.text.strip():
                return
            para = Paragraph(escape_markup(token.text), self.styles["body_justified"])
        self._flow(para, x=self.geometry.left, width=self.cursor.content_width, kind="paragraph")
        self.cursor.gap(self.config.font_size * 0.8)

    def _render_list(self, token: ListToken) -> None:
        g = self.geometry
        style = self.styles["list"]
        offset = min(token.depth, LIST_MAX_INDENT_LEVELS) * LIST_TEXT_INDENT
        x = g.left + offset + LIST_TEXT_INDENT
        width = self.cursor.content_width - offset - LIST_TEXT_INDENT - 10

        self._lead(6)
        for index, runs in enumerate(token.items):
            label = f"{token.start + index}." if token.ordered else None

            def bullet(top: float, _height: float, first: bool, index: int = index, label: Optional[str] = label) -> None:
                if first:
                    self._draw_bullet(top, index, label, offset)

            markup = self._runs_markup(runs)
            if not markup.strip():
                self.cursor.ensure_space(style.leading)
                top = self.cursor.y
                bullet(top, style.leading, True)
                self._place("list_item", top, top + style.leading)
                self.cursor.consume(style.leading)
            else:
                self._flow(Paragraph(markup, style), x=x, width=width, kind="list_item", backdrop=bullet)
            self.cursor.gap(LIST_ITEM_GAP)
        self.cursor.gap(6)

    def _draw_bullet(self, top: float, index: int, label: Optional[str], offset: float = 0.0) -> None:
        g = self.geometry
        c = self.canvas
        size = self.config.font_size
        center_y = top + size * 0.55
        if label is None:
            c.setFillColor(rgb(self.theme.colors.accent))
            c.circle(g.left + offset + LIST_BULLET_X, g.to_pdf(center_y), LIST_BULLET_RADIUS, fill=1, stroke=0)
        else:
            c.setFont(self.theme.fonts.heading, size)
            c.setFillColor(rgb(self.theme.colors.accent))
            c.drawRightString(g.left + offset + LIST_TEXT_INDENT - 5, g.to_pdf(top + size * 0.9), label)
        self.log.bullets.append(BulletMark(page=self.cursor.page_number, y=center_y, index=index))

    def _render_blockquote(self, token: BlockquoteToken) -> None:
        if not token.text.strip():
            return
        g = self.geometry
        colors = self.theme.colors

        def backdrop(top: float, height: float, _first: bool) -> None:
            c = self.canvas
            c.saveState()
            c.setFillColor(rgb(colors.primary))
            c.setFillAlpha(0.05)
            c.rect(g.left, g.to_pdf(top + height), g.content_width, height, fill=1, stroke=0)
            c.restoreState()
            c.setFillColor(rgb(colors.accent))
            c.rect(g.left, g.to_pdf(top + height), QUOTE_BORDER, height, fill=1, stroke=0)

        self._lead(6)
        self._flow(
            Paragraph(escape_markup(token.text), self.styles["quote"]),
            x=g.left + QUOTE_INDENT,
            width=self.cursor.content_width - QUOTE_WIDTH_INSET,
            kind="blockquote",
            pad=QUOTE_PAD,
            backdrop=backdrop,
        )
        self.cursor.gap(12)

    # ------------------------------------------------------------------
    # Code
    # ------------------------------------------------------------------

    def _render_code(self, token: CodeToken) -> None:
        font = self.theme.fonts.code
        size = max(self.config.font_size - 1, 6)
        leading = size * 1.3
        inner = self.cursor.content_width - 2 * CODE_PAD_X

        lines: list[str] = []
        for raw in pdf_safe(token.text).expandtabs(4).split("\n"):
            lines.extend(wrap_code_line(raw, font, size, inner))

        self._lead(8)
        while lines:
            box = len(lines) * leading + 2 * CODE_PAD_Y
            if box <= self.cursor.body_height:
                self.cursor.ensure_space(box)
            if self.cursor.fits(box):
                capacity = len(lines)
            else:
                capacity = int((self.cursor.remaining - 2 * CODE_PAD_Y) // leading)
            if capacity < 1 and not self.cursor.at_page_top:
                self.cursor.break_page()
                continue
            capacity = max(capacity, 1)
            chunk, lines = lines[:capacity], lines[capacity:]
            self._draw_code_box(chunk, font, size, leading)
            if lines:
                self.cursor.break_page()
        self.cursor.gap(12)

    def _draw_code_box(self, lines: list[str], font: str, size: int, leading: float) -> None:
        g = self.geometry
        c = self.canvas
        colors = self.theme.colors
        top = self.cursor.y
        height = len(lines) * leading + 2 * CODE_PAD_Y

        c.setFillColor(rgb(colors.code_bg))
        c.setStrokeColor(rgb(colors.secondary))
        c.setLineWidth(0.5)
        c.roundRect(g.left, g.to_pdf(top + height), g.content_width, height, 4, fill=1, stroke=1)

        c.setFont(font, size)
        c.setFillColor(rgb(colors.code_text))
        for i, line in enumerate(lines):
            c.drawString(g.left + CODE_PAD_X, g.to_pdf(top + CODE_PAD_Y + i * leading + size), line)

        self._place("code", top, top + height)
        self.cursor.consume(height)

    # ------------------------------------------------------------------
    # Rules, gaps and fallback
    # ------------------------------------------------------------------

    def _render_rule(self, _token: ThematicBreakToken) -> None:
        g = self.geometry
        c = self.canvas
        colors = self.theme.colors

        self.cursor.ensure_space(12 + 10)
        self._lead(12)
        top = self.cursor.y
        bar_y = top + 4

        c.setFillColor(rgb(colors.accent))
        c.rect(g.left, g.to_pdf(bar_y + 3), g.content_width, 3, fill=1, stroke=0)
        c.setFillColor(rgb(colors.primary))
        c.circle(g.left + 10, g.to_pdf(bar_y + 1.5), 4, fill=1, stroke=0)
        c.circle(g.right - 10, g.to_pdf(bar_y + 1.5), 4, fill=1, stroke=0)

        self._place("rule", top, top + 10)
        self.cursor.consume(10)
        self.cursor.gap(12)

    def _render_space(self, _token: SpaceToken) -> None:
        self.cursor.gap(SPACE_GAP)

    def _render_other(self, token: Any) -> None:
        text = getattr(token, "text", None)
        if not isinstance(text, str) or not text.strip():
            logger.warning("Skipping token of type %r with no text", getattr(token, "type", token))
            return
        self._flow(
            Paragraph(escape_markup(text.strip()), self.styles["body"]),
            x=self.geometry.left,
            width=self.cursor.content_width,
            kind="other",
        )
        self.cursor.gap(self.config.font_size * 0.8)
