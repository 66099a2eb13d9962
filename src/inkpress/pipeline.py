"""Orchestration pipeline: content source → parser → PDF file."""

from __future__ import annotations

import io
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console

from .config import Settings
from .core.filenames import safe_filename
from .core.models import PipelineResult, RenderOptions
from .exceptions import ContentSourceError, InkpressError
from .generators.pdf_generator import render_markdown_to_pdf
from .llm.templates import DEFAULT_LANGUAGE, ContentGenerator, theme_for_template

log = logging.getLogger(__name__)

STDIN_SOURCE = "-"
DEFAULT_TITLE = "generated"


class Pipeline:
    """End-to-end Markdown → PDF pipeline.

    Usage::

        pipeline = Pipeline()
        result = pipeline.run("notes.md", title="Release Notes")
        print(result.output_path)
    """

    def __init__(self, settings: Settings | None = None, *, console: Console | None = None) -> None:
        self.settings = settings or Settings.from_env()
        self.console = console or Console()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run(
        self,
        source: str,
        *,
        title: str | None = None,
        options: RenderOptions | None = None,
        output_dir: str | Path | None = None,
    ) -> PipelineResult:
        """Render a local Markdown file (or ``-`` for stdin) to PDF.

        Parameters
        ----------
        source
            Path to a Markdown file, or ``-`` to read standard input.
        title
            Document title; defaults to the file name without extension.
        options
            Layout and theme options.
        output_dir
            Directory for the PDF; defaults to the configured output dir.
        """
        result = PipelineResult(source=source)
        self.console.print(f"\n[bold blue]📥 Reading Markdown from:[/] {source}")
        try:
            markdown = self._read_source(source)
        except ContentSourceError as exc:
            return self._fail(result, "Read failed", exc)
        self.console.print(f"[green]✓[/] Read {len(markdown):,} chars")

        return self._render(result, title or default_title(source), markdown, options, output_dir)

    def generate(
        self,
        topic: str,
        *,
        template: str | None = None,
        language: str = DEFAULT_LANGUAGE,
        content_generator: ContentGenerator,
        title: str | None = None,
        options: RenderOptions | None = None,
        output_dir: str | Path | None = None,
    ) -> PipelineResult:
        """Ask an LLM for a document about *topic*, then render it to PDF."""
        result = PipelineResult(source=topic)
        provider = content_generator.provider
        self.console.print(
            f"\n[bold blue]🤖 Generating content...[/] "
            f"[dim](provider={provider.provider_name}, model={provider.model})[/]"
        )
        try:
            markdown = content_generator.generate(topic, template, language)
        except InkpressError as exc:
            return self._fail(result, "Generation failed", exc)
        self.console.print(f"[green]✓[/] Generated {len(markdown):,} chars")

        options = options or RenderOptions(theme=self.settings.theme)
        theme = theme_for_template(template, options.theme)
        if theme != options.theme:
            self.console.print(f"[dim]🎨 Template '{template}' uses theme:[/] [bold]{theme}[/bold]")
            options = options.model_copy(update={"theme": theme})
        return self._render(result, title or topic, markdown, options, output_dir)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    @staticmethod
    def _read_source(source: str) -> str:
        if source == STDIN_SOURCE:
            return sys.stdin.read()
        path = Path(source)
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ContentSourceError(f"Cannot read {path}", cause=exc) from exc

    def _render(
        self,
        result: PipelineResult,
        title: str,
        markdown: str,
        options: RenderOptions | None,
        output_dir: str | Path | None,
    ) -> PipelineResult:
        options = options or RenderOptions(theme=self.settings.theme)
        out_dir = Path(output_dir or self.settings.output_dir).resolve()
        target = out_dir / safe_filename(title, "pdf")

        self.console.print(f"[bold blue]📄 Rendering PDF...[/] [dim](theme={options.theme})[/]")
        try:
            with io.BytesIO() as buffer:
                render = render_markdown_to_pdf(title, markdown, buffer, options=options)
                self._write_atomic(target, buffer.getvalue())
        except InkpressError as exc:
            return self._fail(result, "Render failed", exc)
        except OSError as exc:
            return self._fail(result, "Write failed", exc)

        result.output_path = target
        result.render = render
        self.console.print(
            f"[green]✓[/] {render.page_count} page(s), {render.byte_count:,} bytes "
            f"→ [link=file://{target}]{target}[/link]"
        )
        return result

    @staticmethod
    def _write_atomic(target: Path, data: bytes) -> None:
        """Write *data* next to *target* and move it into place."""
        target.parent.mkdir(parents=True, exist_ok=True)
        partial = target.with_name(target.name + ".part")
        try:
            partial.write_bytes(data)
            partial.replace(target)
        finally:
            if partial.exists():
                partial.unlink()

    def _fail(self, result: PipelineResult, stage: str, exc: Exception) -> PipelineResult:
        log.debug("%s for %s", stage, result.source, exc_info=exc)
        self.console.print(f"[bold red]❌ {stage}:[/] {exc}")
        result.success = False
        result.error = f"{stage}: {exc}"
        return result


def default_title(source: Optional[str]) -> str:
    if not source or source == STDIN_SOURCE:
        return DEFAULT_TITLE
    return Path(source).stem
