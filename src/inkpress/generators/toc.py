"""Table of contents pre-pass.

Headings are collected before the body is laid out, so each entry carries
the page that was current at collection time rather than the page the
heading finally lands on.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from reportlab.pdfbase.pdfmetrics import stringWidth

from ..core.models import HeadingToken, LayoutLog, PlacedBlock, TocEntry
from .drawing import fit_text, pdf_safe, rgb
from .layout import LayoutCursor
from .themes import Theme

if TYPE_CHECKING:
    from reportlab.pdfgen.canvas import Canvas

logger = logging.getLogger(__name__)

TOC_TITLE = "Table of Contents"
TOC_TITLE_SIZE = 20
TOC_ENTRY_SIZE = 11
TOC_LINE_HEIGHT = 18.0
TOC_INDENT = 20.0


class TocBuilder:
    """Collects headings and draws the contents page."""

    def __init__(self, canvas: "Canvas", cursor: LayoutCursor, theme: Theme, log: LayoutLog) -> None:
        self.canvas = canvas
        self.cursor = cursor
        self.geometry = cursor.geometry
        self.theme = theme
        self.log = log

    @staticmethod
    def collect(tokens: Iterable[object], page: int) -> list[TocEntry]:
        return [
            TocEntry(level=t.depth, text=t.text, page=page)
            for t in tokens
            if isinstance(t, HeadingToken)
        ]

    @staticmethod
    def indent_for(level: int) -> float:
        return (level - 1) * TOC_INDENT

    def render(self, entries: list[TocEntry]) -> None:
        """Draw *entries* and move the body onto a fresh page.

        Does nothing when there are no entries.
        """
        if not entries:
            return
        g = self.geometry
        c = self.canvas
        colors = self.theme.colors
        fonts = self.theme.fonts

        self.cursor.ensure_space(TOC_TITLE_SIZE + 20)
        top = self.cursor.y
        c.setFont(fonts.heading, TOC_TITLE_SIZE)
        c.setFillColor(rgb(colors.primary))
        c.drawString(g.left, g.to_pdf(top + TOC_TITLE_SIZE), TOC_TITLE)
        self.log.blocks.append(PlacedBlock(kind="toc", page=self.cursor.page_number, top=top, bottom=top + TOC_TITLE_SIZE + 6))
        self.cursor.consume(TOC_TITLE_SIZE + 6)
        self.cursor.gap(14)

        for entry in entries:
            self.cursor.ensure_space(TOC_LINE_HEIGHT)
            self._draw_entry(entry)
            self.cursor.consume(TOC_LINE_HEIGHT)

        self.log.toc.extend(entries)
        logger.debug("Rendered table of contents with %d entries", len(entries))
        self.cursor.break_page()

    def _draw_entry(self, entry: TocEntry) -> None:
        g = self.geometry
        c = self.canvas
        font = self.theme.fonts.body
        top = self.cursor.y
        baseline = g.to_pdf(top + TOC_ENTRY_SIZE + 2)

        x = g.left + self.indent_for(entry.level)
        number = str(entry.page)
        number_width = stringWidth(number, font, TOC_ENTRY_SIZE)
        text_room = g.right - x - number_width - 20
        text = fit_text(pdf_safe(entry.text), font, TOC_ENTRY_SIZE, max(text_room, 0))
        text_width = stringWidth(text, font, TOC_ENTRY_SIZE)

        c.setFont(font, TOC_ENTRY_SIZE)
        c.setFillColor(rgb(self.theme.colors.text))
        c.drawString(x, baseline, text)
        c.drawRightString(g.right, baseline, number)

        dot_width = stringWidth(".", font, TOC_ENTRY_SIZE)
        leader_room = g.right - number_width - 6 - (x + text_width + 6)
        if leader_room > dot_width:
            c.setFillColor(rgb(self.theme.colors.secondary))
            c.drawString(x + text_width + 6, baseline, "." * int(leader_room // dot_width))

        self.log.blocks.append(
            PlacedBlock(kind="toc_entry", page=self.cursor.page_number, top=top, bottom=top + TOC_LINE_HEIGHT)
        )
