"""Exception hierarchy for inkpress."""

from __future__ import annotations

from typing import Optional


class InkpressError(Exception):
    """Base class for every error raised by inkpress."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message} ({self.cause})"
        return self.message


class ConfigurationError(InkpressError):
    """Invalid render options or layout configuration."""


class RenderError(InkpressError):
    """The render was aborted; nothing was written to the sink."""


class ContentSourceError(InkpressError):
    """The content source (e.g. an LLM) failed to produce Markdown."""
