"""Stylesheet presets for exported documents.

Manages style presets (default, preview, print) that map CSS selectors to
declaration blocks.  The exporters embed the selected preset in the
``<style>`` element of the standalone document.
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from typing import Optional

from mdpress.highlighter import Highlighter


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------

@dataclass
class CssRule:
    """A selector and its declarations, in insertion order."""

    selector: str
    declarations: dict[str, str] = field(default_factory=dict)

    def derive(self, **overrides: str) -> CssRule:
        """Return a copy with declarations overridden.

        Keyword names use underscores for hyphens: ``font_size="1em"``.
        """
        clone = deepcopy(self)
        for k, v in overrides.items():
            clone.declarations[k.replace("_", "-")] = v
        return clone

    def to_css(self) -> str:
        body = " ".join(f"{k}: {v};" for k, v in self.declarations.items())
        return f"{self.selector} {{ {body} }}"


# ---------------------------------------------------------------------------
# Preset definitions
# ---------------------------------------------------------------------------

def _build_default_styles() -> dict[str, CssRule]:
    """Build the **default** preset: the fixed minimal document styling."""
    styles: dict[str, CssRule] = {}
    styles["body"] = CssRule("body", {
        "max-width": "800px",
        "margin": "0 auto",
        "padding": "20px",
        "font-family": "system-ui, sans-serif",
    })
    return styles


def _build_preview_styles() -> dict[str, CssRule]:
    """Build the **preview** preset -- the editor's live preview look."""
    styles = _build_default_styles()
    border = "1px solid #e0e3e7"
    code_bg = "#f1f5f9"

    styles[".markdown-preview"] = CssRule(".markdown-preview", {
        "line-height": "1.7",
        "color": "#2c3e50",
    })
    styles["h1, h2, h3, h4, h5, h6"] = CssRule("h1, h2, h3, h4, h5, h6", {
        "margin-top": "1.5em",
        "margin-bottom": "0.75em",
        "line-height": "1.3",
        "color": "#1a202c",
        "font-weight": "600",
    })
    styles["p"] = CssRule("p", {"margin-bottom": "1.25em"})
    styles["ul, ol"] = CssRule("ul, ol", {"padding-left": "2em", "margin-bottom": "1.25em"})
    styles[".contains-task-list"] = CssRule(".contains-task-list", {
        "list-style": "none",
        "padding-left": "1em",
    })
    styles["code"] = CssRule("code", {
        "background-color": code_bg,
        "padding": "0.2em 0.4em",
        "border-radius": "4px",
        "font-size": "0.9em",
        "color": "#475569",
    })
    styles["pre"] = CssRule("pre", {
        "background-color": code_bg,
        "padding": "1em",
        "border-radius": "4px",
        "overflow": "auto",
        "margin-bottom": "1.25em",
    })
    styles["pre code"] = CssRule("pre code", {"background-color": "transparent", "padding": "0"})
    styles["table"] = CssRule("table", {
        "border-collapse": "collapse",
        "width": "100%",
        "margin-bottom": "1.25em",
        "border": border,
    })
    styles["th, td"] = CssRule("th, td", {
        "border": border,
        "padding": "12px",
        "text-align": "left",
        "font-size": "0.95em",
        "line-height": "1.4",
    })
    styles["th"] = CssRule("th", {
        "background-color": "#f8fafc",
        "font-weight": "600",
        "border-bottom": "2px solid #cbd5e1",
    })
    styles["blockquote"] = CssRule("blockquote", {
        "border-left": "4px solid #e2e8f0",
        "margin": "1.5em 0",
        "padding-left": "1.25em",
        "color": "#475569",
        "font-style": "italic",
    })
    styles[".footnotes"] = CssRule(".footnotes", {
        "border-top": "1px solid #e2e8f0",
        "font-size": "0.9em",
    })
    return styles


def _build_print_styles() -> dict[str, CssRule]:
    """Build the **print** preset -- preview look laid out on A4 pages."""
    styles = _build_preview_styles()
    styles["body"] = styles["body"].derive(padding="0")
    styles["@page"] = CssRule("@page", {"size": "A4", "margin": "20mm"})
    styles["pre"] = styles["pre"].derive(overflow="visible", white_space="pre-wrap")
    styles["tr, img, pre"] = CssRule("tr, img, pre", {"page-break-inside": "avoid"})
    styles["img"] = CssRule("img", {"max-width": "100%"})
    return styles


# ---------------------------------------------------------------------------
# Preset registry
# ---------------------------------------------------------------------------

_PRESET_BUILDERS = {
    "default": _build_default_styles,
    "preview": _build_preview_styles,
    "print": _build_print_styles,
}

# Presets that also embed Pygments token colours.
_HIGHLIGHTED = {"preview", "print"}


# ---------------------------------------------------------------------------
# StyleManager
# ---------------------------------------------------------------------------

class StyleManager:
    """Manages stylesheet presets.

    Usage::

        sm = StyleManager("preview")
        css = sm.stylesheet()
        table = sm.get_rule("table")
    """

    PRESETS = list(_PRESET_BUILDERS.keys())

    def __init__(self, preset: str = "default") -> None:
        if preset not in _PRESET_BUILDERS:
            raise ValueError(
                f"Unknown preset {preset!r}. Choose from: {', '.join(_PRESET_BUILDERS)}"
            )
        self.preset = preset
        self._rules: dict[str, CssRule] = _PRESET_BUILDERS[preset]()

    # -- public API ---------------------------------------------------------

    def get_rule(self, selector: str) -> Optional[CssRule]:
        return self._rules.get(selector)

    def list_selectors(self) -> list[str]:
        """Return the selectors defined by this preset."""
        return list(self._rules.keys())

    @property
    def includes_highlighting(self) -> bool:
        return self.preset in _HIGHLIGHTED

    def stylesheet(self, highlighter: Optional[Highlighter] = None) -> str:
        """Return the preset as CSS text.

        Presets with code highlighting append the token rules of
        *highlighter* (a default :class:`Highlighter` if omitted).
        """
        lines = [rule.to_css() for rule in self._rules.values()]
        if self.includes_highlighting:
            lines.append((highlighter or Highlighter()).css(".highlight"))
        return "\n".join(lines)
