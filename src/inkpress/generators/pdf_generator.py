"""Render a token stream into a paginated PDF.

The document is drawn page by page on a ReportLab canvas backed by an
in-memory buffer. Bytes reach the caller's sink only after the canvas
has been saved, so a failed render never leaves a partial PDF behind.
"""

from __future__ import annotations

import io
import logging
from typing import BinaryIO, Iterable, Optional

from reportlab.pdfgen import canvas as rl_canvas

from .. import __version__
from ..core.models import LayoutConfig, LayoutLog, RenderOptions, RenderResult, Token
from ..core.parser import MarkdownParser
from ..exceptions import ConfigurationError, InkpressError, RenderError
from .blocks import BlockRenderer
from .decorations import PageDecorator
from .layout import LayoutCursor, PageGeometry
from .themes import DEFAULT_THEME, Theme, resolve_theme
from .toc import TocBuilder

log = logging.getLogger(__name__)

PDF_AUTHOR = "inkpress"
PDF_SUBJECT = "Generated Document"


class PdfGenerator:
    """Lays out tokens page by page and writes the finished PDF to a sink.

    One instance may render many documents; every :meth:`render` call
    builds its own canvas, cursor and decorator.
    """

    def __init__(
        self,
        theme: Theme | None = None,
        config: LayoutConfig | None = None,
        *,
        generated_on: Optional[str] = None,
    ) -> None:
        self.theme = theme or DEFAULT_THEME
        self.config = config or LayoutConfig()
        self.generated_on = generated_on

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render(self, title: str, tokens: Iterable[Token], sink: BinaryIO) -> RenderResult:
        """Render *tokens* under *title* and write the PDF bytes to *sink*.

        Raises ``RenderError`` if drawing or writing fails; *sink* is left
        untouched in that case.
        """
        tokens = list(tokens)
        layout = LayoutLog()
        geometry = PageGeometry.from_config(self.config)

        with io.BytesIO() as buffer:
            try:
                page_count = self._draw(title, tokens, buffer, geometry, layout)
            except InkpressError:
                raise
            except Exception as exc:
                raise RenderError("Failed to lay out document", cause=exc) from exc
            data = buffer.getvalue()

        self._publish(data, sink)
        log.info(
            "Rendered '%s': %d page(s), %d bytes, theme=%s",
            title, page_count, len(data), self.theme.name,
        )
        return RenderResult(
            page_count=page_count,
            byte_count=len(data),
            theme=self.theme.name,
            log=layout,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _draw(
        self,
        title: str,
        tokens: list[Token],
        buffer: BinaryIO,
        geometry: PageGeometry,
        layout: LayoutLog,
    ) -> int:
        c = rl_canvas.Canvas(buffer, pagesize=self.config.page_size)
        c.setTitle(title)
        c.setAuthor(PDF_AUTHOR)
        c.setSubject(PDF_SUBJECT)
        c.setCreator(f"{PDF_AUTHOR} {__version__}")

        decorator = PageDecorator(
            c, self.config, geometry, self.theme, title, layout,
            generated_on=self.generated_on,
        )
        cursor = LayoutCursor(c, geometry, decorator, layout)
        decorator.start_page(cursor.page_number)

        if self.config.include_table_of_contents:
            toc = TocBuilder(c, cursor, self.theme, layout)
            toc.render(toc.collect(tokens, cursor.page_number))

        blocks = BlockRenderer(c, cursor, self.theme, self.config, layout)
        for token in tokens:
            blocks.render(token)

        decorator.render_footer(cursor.page_number)
        c.showPage()
        c.save()
        return cursor.page_number

    @staticmethod
    def _publish(data: bytes, sink: BinaryIO) -> None:
        try:
            sink.write(data)
            flush = getattr(sink, "flush", None)
            if callable(flush):
                flush()
        except (OSError, ValueError) as exc:
            raise RenderError("Failed to write PDF to output stream", cause=exc) from exc


def render_markdown_to_pdf(
    title: str,
    markdown: str,
    sink: BinaryIO,
    *,
    options: RenderOptions | None = None,
    generated_on: Optional[str] = None,
) -> RenderResult:
    """Parse *markdown* and render it as a PDF into *sink*.

    Unknown theme names fall back to the default theme.
    """
    options = options or RenderOptions()
    try:
        config = options.layout_config()
    except ValueError as exc:
        raise ConfigurationError("Invalid layout configuration", cause=exc) from exc
    theme = resolve_theme(options.theme)
    tokens = MarkdownParser().parse(markdown)
    generator = PdfGenerator(theme=theme, config=config, generated_on=generated_on)
    return generator.render(title, tokens, sink)
