"""Small canvas helpers shared by the page decorator and block renderers."""

from __future__ import annotations

from reportlab.lib import colors
from reportlab.pdfbase.pdfmetrics import stringWidth

# Typographic characters outside Latin-1 that the base-14 fonts cannot show
_LATIN1_REPLACEMENTS = {
    " ": " ",
    " ": " ",
    "​": "",
    "‐": "-",
    "‑": "-",
    "–": "-",
    "—": "--",
    "−": "-",
    "…": "...",
    "‘": "'",
    "’": "'",
    "“": '"',
    "”": '"',
    "•": "*",
    "←": "<-",
    "→": "->",
    "⇒": "=>",
    "✓": "v",
    "✔": "v",
}


def rgb(t: tuple[int, int, int]) -> colors.Color:
    return colors.Color(t[0] / 255, t[1] / 255, t[2] / 255)


def pdf_safe(text: str) -> str:
    """Map *text* onto Latin-1 so the standard PDF fonts can draw it.

    Characters with no Latin-1 equivalent (emoji, CJK) are dropped.
    """
    out = text or ""
    for key, val in _LATIN1_REPLACEMENTS.items():
        out = out.replace(key, val)
    return out.encode("latin-1", "ignore").decode("latin-1")


def escape_markup(text: str) -> str:
    """Escape *text* for use inside a ReportLab ``Paragraph``."""
    return (
        pdf_safe(text)
        .replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace("\n", "<br/>")
    )


def fit_text(text: str, font_name: str, font_size: float, max_width: float) -> str:
    """Truncate *text* with an ellipsis so it fits in *max_width*."""
    if stringWidth(text, font_name, font_size) <= max_width:
        return text
    ellipsis = "..."
    for i in range(len(text), 0, -1):
        candidate = f"{text[:i].rstrip()}{ellipsis}"
        if stringWidth(candidate, font_name, font_size) <= max_width:
            return candidate
    return ellipsis


def wrap_code_line(line: str, font_name: str, font_size: float, max_width: float) -> list[str]:
    """Hard-wrap one source line at character positions.

    Leading indentation and inner runs of spaces are kept as written; only
    lines wider than *max_width* are cut.
    """
    if stringWidth(line, font_name, font_size) <= max_width:
        return [line]
    pieces: list[str] = []
    current = ""
    for ch in line:
        if current and stringWidth(current + ch, font_name, font_size) > max_width:
            pieces.append(current)
            current = ch
        else:
            current += ch
    pieces.append(current)
    return pieces
