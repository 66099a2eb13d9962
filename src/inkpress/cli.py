"""inkpress CLI: render Markdown (typed or AI-generated) into themed PDFs."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from . import __version__
from .config import Settings
from .core.models import RenderOptions
from .exceptions import ConfigurationError
from .generators.themes import list_themes, to_hex
from .pipeline import STDIN_SOURCE, Pipeline

console = Console()

BANNER = r"""
  _       _
 (_)_ __ | | ___ __  _ __ ___  ___ ___
 | | '_ \| |/ / '_ \| '__/ _ \/ __/ __|
 | | | | |   <| |_) | | |  __/\__ \__ \
 |_|_| |_|_|\_\ .__/|_|  \___||___/___/
              |_|
  Markdown → PDF  v{version}
"""


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _layout_options(func):
    """Options shared by every command that renders a PDF."""
    decorators = [
        click.option("--title", default=None, help="Document title (header band, metadata, file name)."),
        click.option("--theme", "theme_name", default=None,
                      help="Theme name (default: $INKPRESS_THEME or professional)."),
        click.option("--font-size", type=int, default=12, show_default=True, help="Body font size in points."),
        click.option("--margins", type=float, nargs=4, default=None, metavar="T R B L",
                      help="Page margins in points (default: 72 on every side)."),
        click.option("--no-header", is_flag=True, default=False, help="Omit the title band on every page."),
        click.option("--no-footer", is_flag=True, default=False, help="Omit the footer band on every page."),
        click.option("--no-page-numbers", is_flag=True, default=False, help="Omit 'Page N' from footers."),
        click.option("--toc", is_flag=True, default=False, help="Render a table of contents first."),
        click.option("-o", "--output", "output_dir", type=click.Path(file_okay=False), default=None,
                      help="Output directory (default: $INKPRESS_OUTPUT_DIR or ./output)."),
        click.option("-v", "--verbose", is_flag=True, default=False, help="Enable debug logging."),
    ]
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def _build_options(
    settings: Settings,
    theme_name: Optional[str],
    font_size: int,
    margins: Optional[tuple[float, float, float, float]],
    no_header: bool,
    no_footer: bool,
    no_page_numbers: bool,
    toc: bool,
) -> RenderOptions:
    data: dict = {
        "theme": theme_name or settings.theme,
        "font_size": font_size,
        "include_header": not no_header,
        "include_footer": not no_footer,
        "include_page_numbers": not no_page_numbers,
        "include_table_of_contents": toc,
    }
    if margins:
        top, right, bottom, left = margins
        data["margins"] = {"top": top, "right": right, "bottom": bottom, "left": left}
    return RenderOptions.create(**data)


@click.group()
@click.version_option(version=__version__, prog_name="inkpress")
def main():
    """inkpress: render Markdown into paginated, themed PDF documents."""
    pass


@main.command()
@click.argument("source")
@_layout_options
def render(
    source: str,
    title: Optional[str],
    theme_name: Optional[str],
    font_size: int,
    margins: Optional[tuple[float, float, float, float]],
    no_header: bool,
    no_footer: bool,
    no_page_numbers: bool,
    toc: bool,
    output_dir: Optional[str],
    verbose: bool,
):
    """Render a Markdown file to PDF.

    SOURCE is a path to a Markdown file, or - to read standard input.
    """
    _setup_logging(verbose)
    settings = Settings.from_env()
    if source != STDIN_SOURCE and not Path(source).is_file():
        console.print(f"[bold red]Render failed:[/] no such file: {source}")
        raise SystemExit(1)

    options = _options_or_exit(
        settings, theme_name, font_size, margins, no_header, no_footer, no_page_numbers, toc,
    )
    console.print(BANNER.format(version=__version__))
    pipeline = Pipeline(settings, console=console)
    result = pipeline.run(source, title=title, options=options, output_dir=output_dir)
    if not result.success:
        raise SystemExit(1)


@main.command()
@click.argument("topic")
@click.option("--template", default=None, help="Prompt template (see `inkpress templates`).")
@click.option("--language", default="english", show_default=True, help="Language to write the document in.")
@click.option("--provider", default=None, help="LLM provider: google, openai, ollama (default: $INKPRESS_PROVIDER).")
@click.option("--model", default=None, help="Model name (default: provider-specific).")
@click.option("--base-url", default=None, help="Custom OpenAI-compatible API base URL.")
@click.option("--api-key", default=None, help="API key (default: GOOGLE_API_KEY / OPENAI_API_KEY).")
@_layout_options
def generate(
    topic: str,
    template: Optional[str],
    language: str,
    provider: Optional[str],
    model: Optional[str],
    base_url: Optional[str],
    api_key: Optional[str],
    title: Optional[str],
    theme_name: Optional[str],
    font_size: int,
    margins: Optional[tuple[float, float, float, float]],
    no_header: bool,
    no_footer: bool,
    no_page_numbers: bool,
    toc: bool,
    output_dir: Optional[str],
    verbose: bool,
):
    """Generate a document about TOPIC with an LLM and render it to PDF."""
    from .llm.providers import get_provider
    from .llm.templates import ContentGenerator

    _setup_logging(verbose)
    settings = Settings.from_env()
    options = _options_or_exit(
        settings, theme_name, font_size, margins, no_header, no_footer, no_page_numbers, toc,
    )
    provider_name = provider or settings.provider
    try:
        llm = get_provider(
            provider_name,
            api_key=settings.api_key_for(provider_name, api_key),
            model=model or settings.model,
            base_url=base_url,
        )
    except ImportError as exc:
        console.print(f"[bold red]Generation failed:[/] {exc}")
        console.print("[dim]   Install with: pip install inkpress\\[llm\\][/]")
        raise SystemExit(1)
    except ConfigurationError as exc:
        console.print(f"[bold red]Generation failed:[/] {exc}")
        raise SystemExit(1)

    console.print(BANNER.format(version=__version__))
    pipeline = Pipeline(settings, console=console)
    result = pipeline.generate(
        topic,
        template=template,
        language=language,
        content_generator=ContentGenerator(llm),
        title=title,
        options=options,
        output_dir=output_dir,
    )
    if not result.success:
        raise SystemExit(1)


def _options_or_exit(settings: Settings, *args) -> RenderOptions:
    try:
        return _build_options(settings, *args)
    except ConfigurationError as exc:
        reason = exc.cause.errors()[0]["msg"] if hasattr(exc.cause, "errors") else exc.message
        console.print(f"[bold red]Render failed:[/] {reason}")
        raise SystemExit(1)


@main.command()
def themes():
    """List available document themes."""
    from rich.table import Table as RichTable

    table = RichTable(title="Available Themes", show_lines=False)
    table.add_column("Name", style="bold cyan")
    table.add_column("Display Name")
    table.add_column("Primary Color", style="bold")
    table.add_column("Accent Color", style="bold")
    table.add_column("Header")
    table.add_column("Description", style="dim")

    for t in list_themes():
        p_hex = to_hex(t.colors.primary)
        a_hex = to_hex(t.colors.accent)
        table.add_row(
            t.name,
            t.display_name,
            f"[{p_hex}]██ {p_hex}[/]",
            f"[{a_hex}]██ {a_hex}[/]",
            "gradient" if t.colors.has_gradient else "solid",
            t.description,
        )

    console.print(table)


@main.command()
def templates():
    """List prompt templates for `inkpress generate`."""
    from rich.table import Table as RichTable

    from .llm.templates import list_templates

    table = RichTable(title="Prompt Templates", show_lines=False)
    table.add_column("Name", style="bold cyan")
    table.add_column("Title")
    table.add_column("Theme")
    table.add_column("Max Tokens", justify="right")
    table.add_column("Description", style="dim")

    for tpl in list_templates():
        table.add_row(
            tpl.name,
            tpl.display_name,
            tpl.theme or "-",
            str(tpl.max_tokens),
            tpl.description,
        )

    console.print(table)


@main.command()
@click.argument("source")
def inspect(source: str):
    """Parse a Markdown file (or - for stdin) and display its token stream."""
    from rich.markup import escape
    from rich.tree import Tree

    from .core.models import HeadingToken, ListToken, OtherToken
    from .core.parser import MarkdownParser

    if source == STDIN_SOURCE:
        content, name = sys.stdin.read(), "stdin"
    else:
        path = Path(source)
        try:
            content, name = path.read_text(encoding="utf-8"), path.name
        except (OSError, UnicodeDecodeError) as exc:
            console.print(f"[bold red]Inspect failed:[/] cannot read {source} ({exc})")
            raise SystemExit(1)

    tokens = MarkdownParser().parse(content)
    tree = Tree(f"[bold]{name}[/bold]")
    tree.add(f"[dim]Tokens: {len(tokens)}[/dim]")
    for token in tokens:
        label = f"[blue]{token.type.value}[/blue]"
        if isinstance(token, HeadingToken):
            label = f"[blue]H{token.depth}:[/blue] {escape(token.text)}"
        elif isinstance(token, ListToken):
            kind = "ordered" if token.ordered else "bullet"
            label += f" [dim]({kind}, {len(token.items)} items)[/dim]"
        elif isinstance(token, OtherToken):
            label += f" [dim]({token.kind})[/dim]"
        elif getattr(token, "text", ""):
            flat = token.text.replace("\n", " ")
            preview = escape(flat[:60]) + ("…" if len(flat) > 60 else "")
            label += f" [dim]{preview}[/dim]"
        tree.add(label)

    console.print(tree)


if __name__ == "__main__":
    main()
