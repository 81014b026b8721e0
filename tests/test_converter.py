"""Integration tests for the Converter orchestrator."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path

import pytest

from mdpress import converter as converter_module
from mdpress.converter import Converter
from mdpress.printing import PrintExportError, SurfaceLayout
from mdpress.style_manager import StyleManager

FIXTURE_DIR = Path(__file__).parent / "fixtures"
SAMPLE_MD = FIXTURE_DIR / "sample.md"

PDF_BYTES = b"%PDF-1.4\nfake\n%%EOF"


class _Surface:
    is_open = True

    def __init__(self, document: str) -> None:
        self.document = document

    async def measure(self) -> SurfaceLayout:
        return SurfaceLayout(800, 1000)

    async def print_pdf(self) -> bytes:
        return PDF_BYTES


@pytest.fixture
def fake_browser(monkeypatch):
    """Replace the headless browser with an in-memory surface."""
    opened: list[_Surface] = []

    @asynccontextmanager
    async def fake_open(document_html, **kwargs):
        surface = _Surface(document_html)
        opened.append(surface)
        yield surface

    monkeypatch.setattr(converter_module, "open_browser_surface", fake_open)
    return opened


class TestConverterInit:
    """Test Converter construction."""

    def test_default_preset(self):
        assert Converter().style_manager.preset == "default"

    def test_custom_preset(self):
        assert Converter(style_preset="preview").style_manager.preset == "preview"

    def test_invalid_preset_raises(self):
        with pytest.raises(ValueError):
            Converter(style_preset="nonexistent")

    def test_all_presets_valid(self):
        for preset in StyleManager.PRESETS:
            assert Converter(style_preset=preset).style_manager.preset == preset


class TestRender:

    def test_render_html_fragment(self):
        html = Converter().render_html("# Hello World")
        assert html == '<div class="markdown-preview"><h1>Hello World</h1></div>'

    def test_render_returns_element(self):
        root = Converter().render("para")
        assert root.find("p").text == "para"

    def test_empty_markdown(self):
        assert Converter().render_html("") == '<div class="markdown-preview"></div>'


class TestExportHtml:

    def test_heading_document(self):
        artifact = Converter().export_html("# Hi")
        text = artifact.data.decode("utf-8")
        assert "<h1>Hi</h1>" in text
        assert text.startswith("<!DOCTYPE html>")
        assert artifact.media_type == "text/html"

    def test_all_presets_produce_output(self):
        for preset in StyleManager.PRESETS:
            artifact = Converter(style_preset=preset).export("# Title\n\nBody text.")
            assert b"<h1>Title</h1>" in artifact.data, f"Preset {preset} lost the heading"

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="Unknown format"):
            Converter().export("# x", "docx")


class TestExportPdf:

    @pytest.mark.asyncio
    async def test_export_pdf(self, fake_browser):
        artifact = await Converter(style_preset="print").export_pdf("# Hi")
        assert artifact.data == PDF_BYTES
        assert artifact.media_type == "application/pdf"
        assert "<h1>Hi</h1>" in fake_browser[0].document
        assert "@page" in fake_browser[0].document

    def test_sync_export_pdf(self, fake_browser):
        artifact = Converter().export("# Hi", "pdf")
        assert artifact.filename == "markdown-content.pdf"

    @pytest.mark.asyncio
    async def test_browser_failure_is_reported(self, monkeypatch):
        @asynccontextmanager
        async def broken(document_html, **kwargs):
            raise PrintExportError("could not launch browser: missing")
            yield  # pragma: no cover

        monkeypatch.setattr(converter_module, "open_browser_surface", broken)
        with pytest.raises(PrintExportError, match="could not launch browser"):
            await Converter().export_pdf("# Hi")


class TestConvertFile:
    """Test file-based conversion."""

    def test_convert_sample_fixture(self, tmp_path):
        out = tmp_path / "output.html"
        result = Converter().convert_file(SAMPLE_MD, out)
        assert result == out
        text = out.read_text(encoding="utf-8")
        assert "<h1>Sample Document</h1>" in text
        assert 'class="footnotes"' in text

    def test_default_output_suffix(self, tmp_path):
        md_file = tmp_path / "input.md"
        md_file.write_text("# Test", encoding="utf-8")
        result = Converter().convert_file(md_file)
        assert result == tmp_path / "input.html"
        assert result.exists()

    def test_output_directory_created(self, tmp_path):
        md_file = tmp_path / "input.md"
        md_file.write_text("# Test", encoding="utf-8")
        out = tmp_path / "subdir" / "nested" / "output.html"
        Converter().convert_file(md_file, out)
        assert out.exists()

    def test_pdf_file(self, tmp_path, fake_browser):
        md_file = tmp_path / "input.md"
        md_file.write_text("# Test", encoding="utf-8")
        result = Converter().convert_file(md_file, fmt="pdf")
        assert result == tmp_path / "input.pdf"
        assert result.read_bytes() == PDF_BYTES

    def test_encoding_parameter(self, tmp_path):
        md_file = tmp_path / "input.md"
        md_file.write_bytes("# Café".encode("latin-1"))
        out = tmp_path / "output.html"
        Converter().convert_file(md_file, out, encoding="latin-1")
        assert "<h1>Café</h1>" in out.read_text(encoding="utf-8")
