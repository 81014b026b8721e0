"""High-level Markdown rendering and export orchestrator.

Ties together the parser, highlighter, renderer and exporters into a single
public API for rendering Markdown text and exporting it as HTML or PDF.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional
from xml.etree.ElementTree import Element

from mdpress.exporter import DocumentExporter, ExportArtifact
from mdpress.highlighter import Highlighter
from mdpress.parser import MarkdownParser
from mdpress.printing import PrintExporter, open_browser_surface
from mdpress.renderer import HtmlRenderer, serialize
from mdpress.style_manager import StyleManager

logger = logging.getLogger(__name__)


class Converter:
    """Render Markdown and export it.

    Usage::

        converter = Converter(style_preset="preview")
        converter.convert_file("input.md", "output.html")

        # or from string
        html_bytes = converter.export_html("# Hello").data
        pdf_bytes = (await converter.export_pdf("# Hello")).data
    """

    STYLE_PRESETS = StyleManager.PRESETS
    FORMATS = ("html", "pdf")

    def __init__(self, style_preset: str = "default") -> None:
        self.style_manager = StyleManager(style_preset)
        self.highlighter = Highlighter()
        self.parser = MarkdownParser()
        self.renderer = HtmlRenderer(self.highlighter)
        self.document_exporter = DocumentExporter(self.style_manager, self.highlighter)
        self.print_exporter = PrintExporter()

    # -- rendering ----------------------------------------------------------

    def render(self, markdown_text: str) -> Element:
        """Parse and render *markdown_text* into a fragment."""
        return self.renderer.render(self.parser.parse(markdown_text))

    def render_html(self, markdown_text: str) -> str:
        """Return the serialized fragment for *markdown_text*."""
        return serialize(self.render(markdown_text))

    # -- export -------------------------------------------------------------

    def export_html(self, markdown_text: str) -> ExportArtifact:
        """Return a standalone HTML document artifact."""
        return self.document_exporter.export(self.render(markdown_text))

    async def export_pdf(self, markdown_text: str) -> ExportArtifact:
        """Lay the document out in a headless browser and print it.

        Raises:
            PrintExportError: the browser could not be started, the preview
                could not be measured, or printing failed.
        """
        document = self.document_exporter.build_document(self.render(markdown_text))
        async with open_browser_surface(document) as surface:
            return await self.print_exporter.export(surface)

    def export(self, markdown_text: str, fmt: str = "html") -> ExportArtifact:
        """Export synchronously in format *fmt* (``html`` or ``pdf``)."""
        if fmt == "html":
            return self.export_html(markdown_text)
        if fmt == "pdf":
            return asyncio.run(self.export_pdf(markdown_text))
        raise ValueError(f"Unknown format {fmt!r}. Choose from: {', '.join(self.FORMATS)}")

    def convert_file(
        self,
        input_path: str | Path,
        output_path: Optional[str | Path] = None,
        *,
        fmt: str = "html",
        encoding: str = "utf-8",
    ) -> Path:
        """Read a Markdown file and write the exported document.

        Args:
            input_path: Path to the input ``.md`` file.
            output_path: Destination; defaults to *input_path* with the
                format's suffix.
            fmt: ``html`` or ``pdf``.
            encoding: Text encoding of the source file.

        Returns:
            The path written.
        """
        input_path = Path(input_path)
        output_path = Path(output_path) if output_path else input_path.with_suffix(f".{fmt}")

        md_text = input_path.read_text(encoding=encoding)
        artifact = self.export(md_text, fmt)
        logger.info("Writing %s to %s", artifact.media_type, output_path)
        return artifact.write_to(output_path)
