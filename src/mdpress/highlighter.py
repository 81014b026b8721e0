"""Syntax highlighting for fenced code blocks.

The :class:`Highlighter` keeps a table of language tag -> highlighting
function.  Tags without a registered function are looked up in Pygments.
Whatever produces the markup, it is parsed back into an ``Element`` so the
rendered fragment never carries raw markup strings; if any step fails the
code is returned as plain text inside ``<code>``.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional
from xml.etree.ElementTree import Element, ParseError, fromstring

from pygments import highlight as pygments_highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

logger = logging.getLogger(__name__)

#: A highlighting function takes source code and returns HTML markup made of
#: text and ``<span>`` elements.
HighlightFunc = Callable[[str], str]


def _plain_code(code: str, language: str) -> Element:
    elem = Element("code")
    if language:
        elem.set("class", f"language-{language}")
    elem.text = code
    return elem


def _markup_to_element(markup: str, language: str) -> Element:
    """Parse highlighter markup into a ``<code>`` element.

    Raises :class:`xml.etree.ElementTree.ParseError` for markup that is not
    well-formed and :class:`ValueError` for anything but ``<span class>``.
    """
    elem = fromstring(f"<code>{markup}</code>")
    for child in elem.iter():
        if child is elem:
            continue
        if child.tag != "span" or set(child.attrib) - {"class"}:
            raise ValueError(f"unexpected <{child.tag}> in highlighter output")
    elem.set("class", f"language-{language}")
    return elem


class Highlighter:
    """Highlight code by language tag with a plain-text fallback.

    Usage::

        hl = Highlighter()
        hl.register("shout", lambda code: code.upper())
        element = hl.highlight("print(1)", "python")
    """

    def __init__(self, style: str = "default") -> None:
        self.style = style
        self._registry: dict[str, HighlightFunc] = {}
        self._formatter = HtmlFormatter(nowrap=True)

    # -- registry -----------------------------------------------------------

    def register(self, language: str, func: HighlightFunc) -> None:
        """Use *func* for code blocks tagged *language* (case-insensitive)."""
        self._registry[language.lower()] = func

    def unregister(self, language: str) -> None:
        self._registry.pop(language.lower(), None)

    @property
    def languages(self) -> list[str]:
        return sorted(self._registry)

    # -- highlighting -------------------------------------------------------

    def highlight(self, code: str, language: Optional[str] = None) -> Element:
        """Return a ``<code>`` element for *code*.

        Never raises.  An absent or unknown *language*, or any failure while
        highlighting, yields the code as plain text.
        """
        words = (language or "").split()
        tag = words[0].lower() if words else ""
        if not tag:
            return _plain_code(code, "")

        func = self._registry.get(tag) or self._pygments_func(tag)
        if func is None:
            logger.debug("No highlighter for language %r", tag)
            return _plain_code(code, tag)

        try:
            return _markup_to_element(func(code), tag)
        except (ParseError, ValueError):
            logger.debug("Highlighter output for %r rejected", tag, exc_info=True)
        except Exception:
            logger.debug("Highlighting %r failed", tag, exc_info=True)
        return _plain_code(code, tag)

    def css(self, selector: str = ".highlight") -> str:
        """Return token CSS rules for the configured Pygments style."""
        return HtmlFormatter(style=self.style).get_style_defs(selector)

    # -- internals ----------------------------------------------------------

    def _pygments_func(self, tag: str) -> Optional[HighlightFunc]:
        try:
            lexer = get_lexer_by_name(tag)
        except ClassNotFound:
            return None
        return lambda code: pygments_highlight(code, lexer, self._formatter)


_default = Highlighter()


def highlight(code: str, language: Optional[str] = None) -> Element:
    """Highlight *code* with the module-level :class:`Highlighter`."""
    return _default.highlight(code, language)
