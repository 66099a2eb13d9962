"""Markdown → token stream parser.

Uses *mistune 3.x* to build a Markdown AST, then walks it to produce the
flat, ordered ``list[Token]`` the PDF renderer consumes.
"""

from __future__ import annotations

import logging
from typing import Any

import mistune

from .models import (
    BlockquoteToken,
    CodeToken,
    HeadingToken,
    InlineRun,
    ListToken,
    OtherToken,
    ParagraphToken,
    RunKind,
    SpaceToken,
    ThematicBreakToken,
    Token,
    flatten_runs,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# AST helpers
# ---------------------------------------------------------------------------

def _extract_text(node: dict[str, Any] | str) -> str:
    """Recursively extract plain text from an AST node."""
    if isinstance(node, str):
        return node

    ntype = node.get("type", "")
    if ntype == "softbreak":
        return " "
    if ntype == "linebreak":
        return "\n"

    text_parts: list[str] = []
    if "raw" in node:
        text_parts.append(node["raw"])
    if "text" in node:
        text_parts.append(node["text"])

    children = node.get("children")
    if isinstance(children, list):
        for child in children:
            text_parts.append(_extract_text(child))
    elif isinstance(children, str):
        text_parts.append(children)

    return "".join(text_parts)


def _extract_runs(node: dict[str, Any] | str) -> list[InlineRun]:
    """Recursively extract styled inline runs from an AST node.

    Strong and emphasis spans take the style of the outermost marker;
    links, inline code and images degrade to plain text.
    """
    if isinstance(node, str):
        return [InlineRun(text=node)] if node else []

    ntype = node.get("type", "")

    if ntype == "strong":
        text = _extract_text(node)
        return [InlineRun(kind=RunKind.STRONG, text=text)] if text else []
    if ntype == "emphasis":
        text = _extract_text(node)
        return [InlineRun(kind=RunKind.EMPHASIS, text=text)] if text else []
    if ntype == "image":
        alt = _extract_text(node)
        return [InlineRun(text=alt)] if alt else []
    if ntype in ("softbreak", "linebreak"):
        return [InlineRun(text=_extract_text(node))]

    runs: list[InlineRun] = []
    children = node.get("children")
    if isinstance(children, list):
        for child in children:
            runs.extend(_extract_runs(child))
    elif isinstance(children, str):
        runs.append(InlineRun(text=children))
    elif "raw" in node:
        runs.append(InlineRun(text=node["raw"]))
    elif "text" in node:
        runs.append(InlineRun(text=node["text"]))
    return runs


def _merge_runs(runs: list[InlineRun]) -> list[InlineRun]:
    """Join adjacent runs of the same kind and drop empty ones."""
    merged: list[InlineRun] = []
    for run in runs:
        if not run.text:
            continue
        if merged and merged[-1].kind == run.kind:
            merged[-1] = InlineRun(kind=run.kind, text=merged[-1].text + run.text)
        else:
            merged.append(run)
    return merged


def _strip_runs(runs: list[InlineRun]) -> list[InlineRun]:
    """Trim leading/trailing whitespace from a run sequence."""
    if not runs:
        return runs
    runs = list(runs)
    runs[0] = InlineRun(kind=runs[0].kind, text=runs[0].text.lstrip())
    runs[-1] = InlineRun(kind=runs[-1].kind, text=runs[-1].text.rstrip())
    return [r for r in runs if r.text]


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class MarkdownParser:
    """Parse raw Markdown into an ordered list of tokens."""

    def __init__(self) -> None:
        self._md = mistune.create_markdown(renderer="ast", plugins=["table", "strikethrough"])

    def parse(self, markdown: str) -> list[Token]:
        """Parse *markdown* text and return its block tokens in order."""
        ast_nodes: list[dict[str, Any]] = self._md(markdown or "")  # type: ignore[assignment]
        tokens: list[Token] = []
        for node in ast_nodes:
            if node.get("type") == "list":
                tokens.extend(self._parse_list(node))
                continue
            token = self._node_to_token(node)
            if token is None:
                continue
            # Collapse runs of blank lines into a single gap
            if isinstance(token, SpaceToken) and tokens and isinstance(tokens[-1], SpaceToken):
                continue
            tokens.append(token)
        logger.debug("Parsed %d token(s) from %d AST node(s)", len(tokens), len(ast_nodes))
        return tokens

    # ------------------------------------------------------------------
    # AST walking
    # ------------------------------------------------------------------

    def _node_to_token(self, node: dict[str, Any]) -> Token | None:  # noqa: PLR0911
        ntype = node.get("type", "")
        attrs = node.get("attrs", {}) or {}

        if ntype == "heading":
            return HeadingToken(
                depth=min(max(int(attrs.get("level", 1)), 1), 6),
                text=_extract_text(node).strip(),
            )

        if ntype == "paragraph":
            runs = _strip_runs(_merge_runs(_extract_runs(node)))
            if not runs:
                return None
            return ParagraphToken(text=flatten_runs(runs), runs=runs)

        if ntype in ("block_code", "code_block"):
            raw = node.get("raw", "") or node.get("text", "")
            info = attrs.get("info", "") or ""
            return CodeToken(
                text=raw.rstrip("\n"),
                language=info.split()[0] if info else "",
            )

        if ntype == "block_quote":
            parts = [_extract_text(child).strip() for child in node.get("children", [])]
            return BlockquoteToken(text="\n".join(p for p in parts if p))

        if ntype == "thematic_break":
            return ThematicBreakToken()

        if ntype == "blank_line":
            return SpaceToken()

        if ntype == "table":
            return OtherToken(kind=ntype, text=self._table_text(node))

        return OtherToken(kind=ntype, text=_extract_text(node).strip())

    # ------------------------------------------------------------------
    # Composite blocks
    # ------------------------------------------------------------------

    def _parse_list(self, node: dict[str, Any], depth: int = 0) -> list[ListToken]:
        """Split a list at its nested lists, keeping document order.

        Items before a nested list form one token, the nested list follows
        at ``depth + 1``, and the remaining siblings continue numbering from
        where the first token stopped.
        """
        attrs = node.get("attrs", {}) or {}
        ordered = bool(attrs.get("ordered", False))
        start = attrs.get("start")
        start = 1 if start is None else int(start)

        tokens: list[ListToken] = []
        items: list[list[InlineRun]] = []

        def flush() -> None:
            nonlocal start, items
            if items:
                tokens.append(ListToken(ordered=ordered, start=start, depth=depth, items=items))
                start += len(items)
                items = []

        for child in node.get("children", []):
            runs: list[InlineRun] = []
            nested: list[dict[str, Any]] = []
            for part in child.get("children", []):
                if part.get("type") == "list":
                    nested.append(part)
                    continue
                if runs:
                    runs.append(InlineRun(text=" "))
                runs.extend(_extract_runs(part))
            items.append(_strip_runs(_merge_runs(runs)))
            if nested:
                flush()
                for sub in nested:
                    tokens.extend(self._parse_list(sub, depth + 1))
        flush()
        return tokens

    @staticmethod
    def _table_text(node: dict[str, Any]) -> str:
        rows: list[str] = []
        for section in node.get("children", []):
            children = section.get("children", [])
            if children and children[0].get("type") == "table_cell":
                rows.append(" | ".join(_extract_text(c).strip() for c in children))
                continue
            for row in children:
                rows.append(" | ".join(_extract_text(c).strip() for c in row.get("children", [])))
        return "\n".join(rows)
