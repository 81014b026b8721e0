"""Standalone HTML document export.

Wraps a rendered fragment in a minimal document shell with an embedded
stylesheet.  The result depends only on the fragment and the chosen style
preset: no network access, no persisted state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from xml.etree.ElementTree import Element

from mdpress.highlighter import Highlighter
from mdpress.renderer import serialize
from mdpress.style_manager import StyleManager

logger = logging.getLogger(__name__)

HTML_MEDIA_TYPE = "text/html"
HTML_FILENAME = "markdown-content.html"
DOCUMENT_TITLE = "Markdown Content"

_SHELL = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
{css}
</style>
</head>
<body>
{body}
</body>
</html>
"""


@dataclass(frozen=True)
class ExportArtifact:
    """Packaged bytes plus the name and media type to deliver them under."""

    data: bytes
    filename: str
    media_type: str

    def write_to(self, path: str | Path) -> Path:
        """Write the artifact to *path*, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.data)
        return path


class DocumentExporter:
    """Package a rendered fragment as a self-contained HTML document.

    Usage::

        exporter = DocumentExporter(StyleManager("preview"))
        artifact = exporter.export(fragment)
    """

    def __init__(
        self,
        style_manager: Optional[StyleManager] = None,
        highlighter: Optional[Highlighter] = None,
    ) -> None:
        self.style: StyleManager = style_manager or StyleManager()
        self.highlighter = highlighter

    def build_document(self, fragment: Element) -> str:
        """Return the standalone document for *fragment* as text."""
        return _SHELL.format(
            title=DOCUMENT_TITLE,
            css=self.style.stylesheet(self.highlighter),
            body=serialize(fragment),
        )

    def export(self, fragment: Element) -> ExportArtifact:
        """Return an ``text/html`` :class:`ExportArtifact` for *fragment*."""
        data = self.build_document(fragment).encode("utf-8", errors="replace")
        logger.info("Exported HTML document (%d bytes, preset %s)", len(data), self.style.preset)
        return ExportArtifact(data=data, filename=HTML_FILENAME, media_type=HTML_MEDIA_TYPE)
