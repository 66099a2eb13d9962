"""inkpress: Markdown to paginated, themed PDF documents."""

__version__ = "0.1.0"
