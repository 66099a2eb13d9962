"""Running header and footer bands.

Headers and footers depend only on the document title, the theme, the
generation date and the page number, never on body content, so drawing
them twice for the same page produces the same output.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Optional

from ..core.models import Decoration, LayoutConfig, LayoutLog
from .drawing import fit_text, pdf_safe, rgb
from .layout import PageGeometry
from .themes import Theme

if TYPE_CHECKING:
    from reportlab.pdfgen.canvas import Canvas

HEADER_BAND_HEIGHT = 60.0
HEADER_TITLE_SIZE = 18
HEADER_RULE_Y = 65.0
HEADER_RULE_WIDTH = 3.0
FOOTER_TEXT_SIZE = 9


class PageDecorator:
    """Draws page backgrounds, header bands and footer bands."""

    def __init__(
        self,
        canvas: "Canvas",
        config: LayoutConfig,
        geometry: PageGeometry,
        theme: Theme,
        title: str,
        log: LayoutLog,
        generated_on: Optional[str] = None,
    ) -> None:
        self.canvas = canvas
        self.config = config
        self.geometry = geometry
        self.theme = theme
        self.title = pdf_safe(title or "")
        self.log = log
        self.generated_on = generated_on or date.today().isoformat()

    def start_page(self, page: int) -> None:
        """Prepare a fresh page: background first, then the header."""
        self.paint_background()
        self.render_header(page)

    def paint_background(self) -> None:
        bg = self.theme.colors.background
        if bg == (255, 255, 255):
            return
        c = self.canvas
        c.saveState()
        c.setFillColor(rgb(bg))
        c.rect(0, 0, self.geometry.width, self.geometry.height, fill=1, stroke=0)
        c.restoreState()

    # ------------------------------------------------------------------
    # Header
    # ------------------------------------------------------------------

    def render_header(self, page: int) -> None:
        if not self.config.include_header:
            return
        c = self.canvas
        g = self.geometry
        colors = self.theme.colors
        band_bottom = g.to_pdf(HEADER_BAND_HEIGHT)

        c.saveState()
        if colors.has_gradient:
            band = c.beginPath()
            band.rect(0, band_bottom, g.width, HEADER_BAND_HEIGHT)
            c.clipPath(band, stroke=0, fill=0)
            c.linearGradient(
                0, g.height, 0, band_bottom,
                (rgb(colors.gradient_start), rgb(colors.gradient_end)),
                extend=False,
            )
            title_color = colors.primary
        else:
            c.setFillColor(rgb(colors.primary))
            c.rect(0, band_bottom, g.width, HEADER_BAND_HEIGHT, fill=1, stroke=0)
            title_color = colors.background
        c.restoreState()

        font = self.theme.fonts.heading
        title = fit_text(self.title, font, HEADER_TITLE_SIZE, g.width - 2 * max(g.left, 24))
        c.setFont(font, HEADER_TITLE_SIZE)
        c.setFillColor(rgb(title_color))
        c.drawCentredString(g.width / 2, g.to_pdf(36), title)

        c.setFillColor(rgb(colors.accent))
        c.rect(
            g.left, g.to_pdf(HEADER_RULE_Y + HEADER_RULE_WIDTH),
            g.content_width, HEADER_RULE_WIDTH,
            fill=1, stroke=0,
        )
        self.log.decorations.append(Decoration(kind="header", page=page, text=title))

    # ------------------------------------------------------------------
    # Footer
    # ------------------------------------------------------------------

    def render_footer(self, page: int) -> None:
        if not self.config.include_footer:
            return
        c = self.canvas
        g = self.geometry
        colors = self.theme.colors
        zone_top = g.body_bottom

        c.setStrokeColor(rgb(colors.secondary))
        c.setLineWidth(0.5)
        c.line(g.left, g.to_pdf(zone_top + 20), g.right, g.to_pdf(zone_top + 20))

        baseline = g.to_pdf(zone_top + 38)
        c.setFont(self.theme.fonts.body, FOOTER_TEXT_SIZE)
        c.setFillColor(rgb(colors.secondary))
        c.drawString(g.left, baseline, f"Generated on {self.generated_on}")

        label = ""
        if self.config.include_page_numbers:
            label = f"Page {page}"
            c.drawRightString(g.right, baseline, label)
        self.log.decorations.append(Decoration(kind="footer", page=page, text=label))
