"""Tests for standalone HTML export and style presets."""

from __future__ import annotations

from pathlib import Path

import pytest

from mdpress.exporter import (
    DOCUMENT_TITLE,
    HTML_FILENAME,
    HTML_MEDIA_TYPE,
    DocumentExporter,
    ExportArtifact,
)
from mdpress.highlighter import Highlighter
from mdpress.parser import MarkdownParser
from mdpress.renderer import HtmlRenderer
from mdpress.style_manager import CssRule, StyleManager


def fragment_for(md: str):
    return HtmlRenderer().render(MarkdownParser().parse(md))


# ---------------------------------------------------------------------------
# DocumentExporter
# ---------------------------------------------------------------------------

class TestDocumentExporter:
    def test_heading_document(self) -> None:
        artifact = DocumentExporter().export(fragment_for("# Hi"))
        text = artifact.data.decode("utf-8")
        assert text.startswith("<!DOCTYPE html>")
        assert '<meta charset="utf-8">' in text
        assert f"<title>{DOCUMENT_TITLE}</title>" in text
        assert "<h1>Hi</h1>" in text
        assert text.rstrip().endswith("</html>")

    def test_artifact_metadata(self) -> None:
        artifact = DocumentExporter().export(fragment_for("text"))
        assert artifact.media_type == HTML_MEDIA_TYPE == "text/html"
        assert artifact.filename == HTML_FILENAME == "markdown-content.html"

    def test_default_style_embedded(self) -> None:
        text = DocumentExporter().build_document(fragment_for("x"))
        assert "max-width: 800px;" in text
        assert "margin: 0 auto;" in text
        assert "padding: 20px;" in text

    def test_preview_style_includes_highlighting(self) -> None:
        exporter = DocumentExporter(StyleManager("preview"), Highlighter())
        text = exporter.build_document(fragment_for("```python\nx = 1\n```"))
        assert ".highlight" in text
        assert 'class="language-python"' in text

    def test_export_is_deterministic(self) -> None:
        exporter = DocumentExporter(StyleManager("print"))
        fragment = fragment_for("# A\n\n| x |\n|---|\n| 1 |")
        assert exporter.export(fragment) == exporter.export(fragment)

    def test_user_text_escaped_in_document(self) -> None:
        text = DocumentExporter().build_document(fragment_for("<script>x</script>"))
        assert "<script>" not in text
        assert "&lt;script&gt;" in text

    def test_lone_surrogate_is_replaced(self) -> None:
        artifact = DocumentExporter().export(fragment_for("text \ud800 end"))
        text = artifact.data.decode("utf-8")
        assert "<p>text ? end</p>" in text

    def test_write_to_creates_parents(self, tmp_path: Path) -> None:
        artifact = ExportArtifact(data=b"abc", filename="f.html", media_type="text/html")
        out = artifact.write_to(tmp_path / "a" / "b" / "f.html")
        assert out.read_bytes() == b"abc"


# ---------------------------------------------------------------------------
# StyleManager
# ---------------------------------------------------------------------------

class TestStyleManager:
    def test_presets(self) -> None:
        assert StyleManager.PRESETS == ["default", "preview", "print"]

    def test_unknown_preset(self) -> None:
        with pytest.raises(ValueError, match="Unknown preset"):
            StyleManager("fancy")

    @pytest.mark.parametrize("preset", StyleManager.PRESETS)
    def test_every_preset_has_body_rule(self, preset: str) -> None:
        sm = StyleManager(preset)
        assert sm.get_rule("body") is not None
        assert "body {" in sm.stylesheet()

    def test_default_has_no_highlighting(self) -> None:
        sm = StyleManager()
        assert not sm.includes_highlighting
        assert sm.list_selectors() == ["body"]
        assert ".highlight" not in sm.stylesheet()

    def test_print_preset_pages(self) -> None:
        sm = StyleManager("print")
        assert sm.get_rule("@page").declarations["size"] == "A4"
        assert sm.get_rule("body").declarations["padding"] == "0"
        assert sm.get_rule("pre").declarations["white-space"] == "pre-wrap"

    def test_presets_are_independent(self) -> None:
        StyleManager("preview").get_rule("body").declarations["padding"] = "99px"
        assert StyleManager("preview").get_rule("body").declarations["padding"] == "20px"

    def test_rule_derive(self) -> None:
        rule = CssRule("p", {"color": "red"})
        derived = rule.derive(font_size="1em")
        assert derived.to_css() == "p { color: red; font-size: 1em; }"
        assert rule.declarations == {"color": "red"}
