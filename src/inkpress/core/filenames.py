"""Filename derivation for generated documents."""

from __future__ import annotations

import re

_SEPARATOR_RE = re.compile(r"[/\\]")
_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_.-]")

MAX_FILENAME_LENGTH = 100


def safe_filename(title: str, ext: str = "") -> str:
    """Turn a human-supplied title into a filesystem-safe file name.

    Path separators are removed, every character outside
    ``[A-Za-z0-9_.-]`` becomes ``_`` and the stem is capped at
    ``MAX_FILENAME_LENGTH`` characters. An empty result falls back to
    ``document``.
    """
    stem = _SEPARATOR_RE.sub("", title or "")
    stem = _UNSAFE_RE.sub("_", stem)[:MAX_FILENAME_LENGTH]
    if not stem.strip("._"):
        stem = "document"
    return f"{stem}.{ext}" if ext else stem
