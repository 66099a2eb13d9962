"""Pydantic models shared by the parser, the renderer and the pipeline.

Tokens are the intermediate representation between the Markdown parser
and the PDF renderer: the parser produces an ordered ``list[Token]`` and
the renderer consumes it read-only. Layout options are validated once at
the boundary and are immutable for the life of a render.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from reportlab.lib.pagesizes import A4

from ..exceptions import ConfigurationError


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TokenType(str, Enum):
    """Kinds of block tokens produced by the Markdown parser."""
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST = "list"
    BLOCKQUOTE = "blockquote"
    CODE = "code"
    THEMATIC_BREAK = "thematic_break"
    SPACE = "space"
    OTHER = "other"


class RunKind(str, Enum):
    """Inline styling of a run of text."""
    PLAIN = "plain"
    STRONG = "strong"
    EMPHASIS = "emphasis"


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

class InlineRun(BaseModel):
    """A styled span of text inside a paragraph or list item."""
    kind: RunKind = RunKind.PLAIN
    text: str


class HeadingToken(BaseModel):
    """A heading (h1–h6)."""
    type: Literal[TokenType.HEADING] = TokenType.HEADING
    depth: int = Field(ge=1, le=6)
    text: str


class ParagraphToken(BaseModel):
    """A paragraph; ``runs`` is empty when only raw text is available."""
    type: Literal[TokenType.PARAGRAPH] = TokenType.PARAGRAPH
    text: str = ""
    runs: list[InlineRun] = Field(default_factory=list)


class ListToken(BaseModel):
    """An ordered or unordered list; each item is a sequence of runs.

    A nested list follows its parent item as its own token with a larger
    ``depth``; the parent list resumes afterwards with ``start`` carried on.
    """
    type: Literal[TokenType.LIST] = TokenType.LIST
    ordered: bool = False
    start: int = 1
    depth: int = Field(default=0, ge=0)
    items: list[list[InlineRun]] = Field(default_factory=list)


class BlockquoteToken(BaseModel):
    type: Literal[TokenType.BLOCKQUOTE] = TokenType.BLOCKQUOTE
    text: str = ""


class CodeToken(BaseModel):
    """A fenced or indented code block."""
    type: Literal[TokenType.CODE] = TokenType.CODE
    text: str = ""
    language: str = ""


class ThematicBreakToken(BaseModel):
    type: Literal[TokenType.THEMATIC_BREAK] = TokenType.THEMATIC_BREAK


class SpaceToken(BaseModel):
    type: Literal[TokenType.SPACE] = TokenType.SPACE


class OtherToken(BaseModel):
    """Anything the renderer has no dedicated routine for.

    ``kind`` keeps the parser's original node type for diagnostics.
    """
    type: Literal[TokenType.OTHER] = TokenType.OTHER
    kind: str = ""
    text: str = ""


Token = Annotated[
    Union[
        HeadingToken,
        ParagraphToken,
        ListToken,
        BlockquoteToken,
        CodeToken,
        ThematicBreakToken,
        SpaceToken,
        OtherToken,
    ],
    Field(discriminator="type"),
]


def flatten_runs(runs: list[InlineRun]) -> str:
    """Concatenate run texts left to right."""
    return "".join(run.text for run in runs)


# ---------------------------------------------------------------------------
# Layout configuration
# ---------------------------------------------------------------------------

class Margins(BaseModel):
    """Page margins in points."""
    model_config = ConfigDict(frozen=True)

    top: float = Field(default=72, ge=0)
    bottom: float = Field(default=72, ge=0)
    left: float = Field(default=72, ge=0)
    right: float = Field(default=72, ge=0)


class LayoutConfig(BaseModel):
    """Geometry and feature flags for one render. Immutable."""
    model_config = ConfigDict(frozen=True)

    margins: Margins = Field(default_factory=Margins)
    font_size: int = Field(default=12, gt=0)
    page_size: tuple[float, float] = A4
    include_header: bool = True
    include_footer: bool = True
    include_page_numbers: bool = True
    include_table_of_contents: bool = False

    @model_validator(mode="after")
    def _check_content_area(self) -> "LayoutConfig":
        width, height = self.page_size
        if width <= 0 or height <= 0:
            raise ValueError("page dimensions must be positive")
        if self.margins.left + self.margins.right >= width:
            raise ValueError("left and right margins leave no content width")
        if self.margins.top + self.margins.bottom >= height:
            raise ValueError("top and bottom margins leave no content height")
        return self

    @property
    def page_width(self) -> float:
        return self.page_size[0]

    @property
    def page_height(self) -> float:
        return self.page_size[1]

    @property
    def content_width(self) -> float:
        return self.page_width - self.margins.left - self.margins.right


class RenderOptions(BaseModel):
    """Caller-facing render options (theme name + layout values)."""
    model_config = ConfigDict(frozen=True)

    theme: str = "professional"
    font_size: int = Field(default=12, gt=0)
    margins: Margins = Field(default_factory=Margins)
    page_size: tuple[float, float] = A4
    include_header: bool = True
    include_footer: bool = True
    include_page_numbers: bool = True
    include_table_of_contents: bool = False

    @classmethod
    def create(cls, **data: Any) -> "RenderOptions":
        """Validate *data*, raising ``ConfigurationError`` on bad values."""
        try:
            options = cls.model_validate(data)
            options.layout_config()
        except ValidationError as exc:
            raise ConfigurationError("Invalid render options", cause=exc) from exc
        return options

    def layout_config(self) -> LayoutConfig:
        return LayoutConfig(
            margins=self.margins,
            font_size=self.font_size,
            page_size=self.page_size,
            include_header=self.include_header,
            include_footer=self.include_footer,
            include_page_numbers=self.include_page_numbers,
            include_table_of_contents=self.include_table_of_contents,
        )


# ---------------------------------------------------------------------------
# Table of contents
# ---------------------------------------------------------------------------

class TocEntry(BaseModel):
    """A heading collected by the TOC pre-pass.

    ``page`` is the page current at collection time, not the heading's
    final page.
    """
    level: int
    text: str
    page: int


# ---------------------------------------------------------------------------
# Layout log & results
# ---------------------------------------------------------------------------

class PlacedBlock(BaseModel):
    """Vertical span (top-down points) a rendered block occupies on a page."""
    kind: str
    page: int
    top: float
    bottom: float


class BulletMark(BaseModel):
    page: int
    y: float
    index: int


class Decoration(BaseModel):
    """A header or footer drawn on a page."""
    kind: Literal["header", "footer"]
    page: int
    text: str = ""


class LayoutLog(BaseModel):
    """Record of where everything landed during one render."""
    blocks: list[PlacedBlock] = Field(default_factory=list)
    bullets: list[BulletMark] = Field(default_factory=list)
    decorations: list[Decoration] = Field(default_factory=list)
    toc: list[TocEntry] = Field(default_factory=list)
    page_breaks: list[int] = Field(default_factory=list)

    def blocks_of(self, kind: str) -> list[PlacedBlock]:
        return [b for b in self.blocks if b.kind == kind]

    def decorations_of(self, kind: str) -> list[Decoration]:
        return [d for d in self.decorations if d.kind == kind]


class RenderResult(BaseModel):
    """Outcome of a successful render."""
    page_count: int
    byte_count: int
    theme: str
    log: LayoutLog = Field(default_factory=LayoutLog)


class PipelineResult(BaseModel):
    """Result of one pipeline run (content → PDF file)."""
    source: str = ""
    output_path: Optional[Path] = None
    success: bool = True
    error: Optional[str] = None
    render: Optional[RenderResult] = None
