"""Vertical layout cursor and page geometry.

The cursor measures ``y`` top-down from the top edge of the page, the way
a reader sees it. Anything drawn on the ReportLab canvas converts through
:meth:`PageGeometry.to_pdf`, which flips into PDF's bottom-up space.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..core.models import LayoutConfig, LayoutLog
from ..exceptions import ConfigurationError

if TYPE_CHECKING:
    from reportlab.pdfgen.canvas import Canvas

    from .decorations import PageDecorator

logger = logging.getLogger(__name__)

# Header band (60pt) + accent rule + gap before the body
HEADER_RESERVE = 80.0
# Footer rule + footer text line
FOOTER_RESERVE = 60.0

# Smallest body area we accept; anything less cannot hold a line of text
_MIN_BODY_HEIGHT = 24.0

# Float tolerance for fit checks
_EPSILON = 1e-6


@dataclass(frozen=True)
class PageGeometry:
    """Derived page measurements for one layout configuration."""

    width: float
    height: float
    left: float
    right: float
    top_margin: float
    bottom_margin: float
    body_top: float
    body_bottom: float

    @classmethod
    def from_config(cls, config: LayoutConfig) -> "PageGeometry":
        m = config.margins
        body_top = m.top + (HEADER_RESERVE if config.include_header else 0.0)
        body_bottom = config.page_height - m.bottom - (FOOTER_RESERVE if config.include_footer else 0.0)
        if body_bottom - body_top < _MIN_BODY_HEIGHT:
            raise ConfigurationError(
                f"Page body is only {body_bottom - body_top:.1f}pt tall after "
                "margins, header and footer reserves"
            )
        return cls(
            width=config.page_width,
            height=config.page_height,
            left=m.left,
            right=config.page_width - m.right,
            top_margin=m.top,
            bottom_margin=m.bottom,
            body_top=body_top,
            body_bottom=body_bottom,
        )

    @property
    def content_width(self) -> float:
        return self.right - self.left

    @property
    def body_height(self) -> float:
        return self.body_bottom - self.body_top

    @property
    def page_bottom(self) -> float:
        """Lowest ``y`` the cursor may ever reach."""
        return self.height - self.bottom_margin

    def to_pdf(self, y: float) -> float:
        """Convert a top-down ``y`` into ReportLab's bottom-up coordinate."""
        return self.height - y


class LayoutCursor:
    """Current write position and page number for one render.

    Page breaks happen only here: the footer of the page being left is
    drawn, the canvas moves to a new page, and the decorator paints the
    new page's background and header.
    """

    def __init__(
        self,
        canvas: "Canvas",
        geometry: PageGeometry,
        decorator: "PageDecorator",
        log: LayoutLog,
    ) -> None:
        self.canvas = canvas
        self.geometry = geometry
        self.decorator = decorator
        self.log = log
        self.page_number = 1
        self.y = geometry.body_top

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def content_width(self) -> float:
        return self.geometry.content_width

    @property
    def remaining(self) -> float:
        """Vertical space left on the current page body."""
        return max(0.0, self.geometry.body_bottom - self.y)

    @property
    def body_height(self) -> float:
        return self.geometry.body_height

    @property
    def at_page_top(self) -> bool:
        return self.y <= self.geometry.body_top

    def fits(self, height: float) -> bool:
        return self.y + height <= self.geometry.body_bottom + _EPSILON

    # ------------------------------------------------------------------
    # Movement
    # ------------------------------------------------------------------

    def advance(self, amount: float) -> None:
        """Move down by *amount*, breaking the page when the footer zone is reached."""
        self.y += amount
        if self.y > self.geometry.body_bottom:
            self.break_page()

    def gap(self, amount: float) -> None:
        """Trailing whitespace after a block.

        Stops at the bottom of the body instead of breaking, so a gap at the
        end of a page never opens an empty one; the next block's
        :meth:`ensure_space` moves on to a new page. Never moves the cursor
        back up, even after :meth:`consume` ran past the body.
        """
        self.y = max(self.y, min(self.y + amount, self.geometry.body_bottom))

    def consume(self, height: float) -> None:
        """Move down past content that was just drawn.

        Unlike :meth:`advance` this never breaks the page; callers reserve
        the space with :meth:`ensure_space` first.
        """
        self.y = min(self.y + height, self.geometry.page_bottom)

    def ensure_space(self, required: float) -> None:
        """Break the page if *required* points do not fit below the cursor.

        A fresh page is never broken again, so content taller than a whole
        page body must be split by the caller.
        """
        if self.fits(required) or self.at_page_top:
            return
        self.break_page()

    def break_page(self) -> None:
        self.decorator.render_footer(self.page_number)
        self.canvas.showPage()
        self.page_number += 1
        self.log.page_breaks.append(self.page_number)
        self.y = self.geometry.body_top
        self.decorator.start_page(self.page_number)
        logger.debug("Page break -> page %d", self.page_number)
