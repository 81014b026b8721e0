"""mdpress - render Markdown to sanitized HTML and export it as HTML or PDF."""

__version__ = "0.1.0"
