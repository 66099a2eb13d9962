"""PDF layout and rendering."""

from .pdf_generator import PdfGenerator, render_markdown_to_pdf  # noqa: F401
from .themes import DEFAULT_THEME, get_theme, list_themes, resolve_theme  # noqa: F401
