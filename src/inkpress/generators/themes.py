"""Theme registry for rendered documents.

Themes define colors and fonts. The renderer receives a ``Theme``
instance and uses it instead of hardcoded constants.

Usage::

    from inkpress.generators.themes import get_theme, list_themes

    theme = get_theme("modern")
    gen = PdfGenerator(theme=theme)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

RGB = tuple[int, int, int]


# ---------------------------------------------------------------------------
# Theme dataclass
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ThemeColors:
    """All color slots used by the renderer. Values are RGB tuples."""

    primary: RGB = (37, 99, 235)
    secondary: RGB = (100, 116, 139)
    text: RGB = (30, 41, 59)
    background: RGB = (255, 255, 255)
    accent: RGB = (14, 165, 233)

    # Code blocks
    code_bg: RGB = (248, 250, 252)
    code_text: RGB = (30, 41, 59)

    # Optional header gradient
    gradient_start: Optional[RGB] = None
    gradient_end: Optional[RGB] = None

    @property
    def has_gradient(self) -> bool:
        return self.gradient_start is not None and self.gradient_end is not None


@dataclass(frozen=True)
class ThemeFonts:
    """ReportLab font names for each text role."""

    heading: str = "Helvetica-Bold"
    body: str = "Helvetica"
    body_italic: str = "Helvetica-Oblique"
    code: str = "Courier"


@dataclass(frozen=True)
class Theme:
    """Complete theme definition."""

    name: str = "professional"
    display_name: str = "Professional"
    description: str = "Clean blue corporate style for business documents."
    colors: ThemeColors = field(default_factory=ThemeColors)
    fonts: ThemeFonts = field(default_factory=ThemeFonts)


def to_hex(color: RGB) -> str:
    return f"#{color[0]:02X}{color[1]:02X}{color[2]:02X}"


# ---------------------------------------------------------------------------
# Built-in themes
# ---------------------------------------------------------------------------

PROFESSIONAL_THEME = Theme()

MODERN_THEME = Theme(
    name="modern",
    display_name="Modern",
    description="Purple gradient contemporary design with modern aesthetics.",
    colors=ThemeColors(
        primary=(124, 58, 237),
        secondary=(168, 85, 247),
        text=(55, 65, 81),
        background=(249, 250, 251),
        accent=(6, 182, 212),
        gradient_start=(237, 233, 254),
        gradient_end=(221, 214, 254),
    ),
)

ELEGANT_THEME = Theme(
    name="elegant",
    display_name="Elegant",
    description="Green sophisticated layout with premium feel.",
    colors=ThemeColors(
        primary=(5, 150, 105),
        secondary=(16, 185, 129),
        text=(31, 41, 55),
        accent=(245, 158, 11),
    ),
    fonts=ThemeFonts(body="Times-Roman", body_italic="Times-Italic"),
)

DARK_THEME = Theme(
    name="dark",
    display_name="Dark Mode",
    description="Dark background with golden accents for night reading.",
    colors=ThemeColors(
        primary=(251, 191, 36),
        secondary=(245, 158, 11),
        text=(249, 250, 251),
        background=(17, 24, 39),
        accent=(239, 68, 68),
        code_bg=(31, 41, 55),
        code_text=(229, 231, 235),
    ),
)

CODING_THEME = Theme(
    name="coding",
    display_name="Coding Style",
    description="Developer-friendly theme optimized for technical documentation.",
    colors=ThemeColors(
        primary=(16, 185, 129),
        secondary=(99, 102, 241),
        text=(31, 41, 55),
        accent=(245, 158, 11),
        gradient_start=(236, 253, 245),
        gradient_end=(209, 250, 229),
    ),
)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_THEME_REGISTRY: Mapping[str, Theme] = MappingProxyType({
    t.name: t
    for t in [
        PROFESSIONAL_THEME,
        MODERN_THEME,
        ELEGANT_THEME,
        DARK_THEME,
        CODING_THEME,
    ]
})

DEFAULT_THEME = PROFESSIONAL_THEME


def get_theme(name: str) -> Theme:
    """Get a theme by name. Raises ``KeyError`` if not found."""
    key = (name or "").lower().strip()
    if key not in _THEME_REGISTRY:
        available = ", ".join(sorted(_THEME_REGISTRY.keys()))
        raise KeyError(f"Unknown theme '{name}'. Available: {available}")
    return _THEME_REGISTRY[key]


def resolve_theme(name: str | None) -> Theme:
    """Like :func:`get_theme` but falls back to ``DEFAULT_THEME``."""
    if not name:
        return DEFAULT_THEME
    try:
        return get_theme(name)
    except KeyError:
        logger.warning("Unknown theme '%s', falling back to '%s'", name, DEFAULT_THEME.name)
        return DEFAULT_THEME


def list_themes() -> list[Theme]:
    """Return all registered themes."""
    return list(_THEME_REGISTRY.values())
