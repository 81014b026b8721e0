"""HTML renderer - converts the AST into a sanitized element fragment.

This module converts an AST tree (produced by :mod:`mdpress.parser`) into an
``xml.etree.ElementTree.Element`` fragment rooted at
``<div class="markdown-preview">``.  Text and attribute values are kept as
plain strings inside the tree; :func:`serialize` is the single place where a
fragment becomes markup, and it entity-escapes every text and attribute
position.

URL attributes (``href`` / ``src``) are copied from the parser unchanged.
No scheme allow-list is applied, so ``javascript:`` targets survive into the
fragment as escaped attribute text.
"""

from __future__ import annotations

import html
import logging
from typing import Optional, Union
from xml.etree.ElementTree import Element, SubElement

from mdpress.highlighter import Highlighter
from mdpress.parser import BLOCK_TYPES, ASTNode, NodeType, plain_text

logger = logging.getLogger(__name__)

#: A rendered piece is either an element or a run of text.
Piece = Union[Element, str]

VOID_TAGS = frozenset({"br", "hr", "img", "input", "meta", "link"})
BOOLEAN_ATTRS = frozenset({"checked", "disabled"})

_ALIGNMENTS = ("left", "center", "right")

_INLINE_TAGS = {
    NodeType.BOLD: "strong",
    NodeType.ITALIC: "em",
    NodeType.STRIKETHROUGH: "del",
    NodeType.MARK: "mark",
    NodeType.SUPERSCRIPT: "sup",
    NodeType.SUBSCRIPT: "sub",
}


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def _escape(value: str) -> str:
    return html.escape(value, quote=True)


def _write(elem: Element, out: list[str]) -> None:
    out.append(f"<{elem.tag}")
    for name, value in elem.attrib.items():
        if name in BOOLEAN_ATTRS:
            out.append(f" {name}")
        else:
            out.append(f' {name}="{_escape(value)}"')
    out.append(">")
    if elem.tag in VOID_TAGS:
        return
    if elem.text:
        out.append(_escape(elem.text))
    for child in elem:
        _write(child, out)
        if child.tail:
            out.append(_escape(child.tail))
    out.append(f"</{elem.tag}>")


def serialize(fragment: Element) -> str:
    """Return *fragment* as an HTML string.

    Every text node and attribute value is escaped, void elements are written
    without an end tag and boolean attributes are minimised.
    """
    out: list[str] = []
    _write(fragment, out)
    return "".join(out)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _append(parent: Element, pieces: list[Piece]) -> Element:
    """Attach *pieces* to *parent*, folding strings into text / tail."""
    for piece in pieces:
        if isinstance(piece, str):
            if len(parent):
                last = parent[-1]
                last.tail = (last.tail or "") + piece
            else:
                parent.text = (parent.text or "") + piece
        else:
            parent.append(piece)
    return parent


def _element(tag: str, pieces: Optional[list[Piece]] = None, **attrs: str) -> Element:
    elem = Element(tag, {k.rstrip("_"): v for k, v in attrs.items()})
    return _append(elem, pieces or [])


# ---------------------------------------------------------------------------
# Per-call builder
# ---------------------------------------------------------------------------

class _FragmentBuilder:
    """Builds one fragment; holds the footnote bookkeeping for that call."""

    def __init__(self, highlighter: Highlighter, definitions: dict[str, ASTNode]) -> None:
        self.highlighter = highlighter
        self.definitions = definitions
        self.referenced: list[str] = []

    # ======================================================================
    # Node dispatch
    # ======================================================================

    def build(self, doc: ASTNode) -> Element:
        root = _element("div", self.render_blocks(doc.children), class_="markdown-preview")
        if self.referenced:
            root.append(self._footnote_section())
        return root

    def render_node(self, node: ASTNode) -> list[Piece]:
        handler = getattr(self, f"_render_{node.type.value}", None)
        if handler is not None:
            return handler(node)
        text = plain_text(node)
        return [text] if text else []

    def render_children(self, node: ASTNode) -> list[Piece]:
        pieces: list[Piece] = []
        for child in node.children:
            pieces.extend(self.render_node(child))
        return pieces

    def render_blocks(self, nodes: list[ASTNode]) -> list[Piece]:
        """Render block-level *nodes*; stray inline runs are wrapped in ``<p>``."""
        pieces: list[Piece] = []
        loose: list[Piece] = []
        for node in nodes:
            if node.type == NodeType.FOOTNOTE_DEF:
                continue
            if node.type in BLOCK_TYPES:
                if loose:
                    pieces.append(_element("p", loose))
                    loose = []
                pieces.extend(self.render_node(node))
            else:
                loose.extend(self.render_node(node))
        if loose:
            pieces.append(_element("p", loose))
        return pieces

    # ======================================================================
    # Block renderers
    # ======================================================================

    def _render_heading(self, node: ASTNode) -> list[Piece]:
        level = max(1, min(6, node.level or 1))
        return [_element(f"h{level}", self.render_children(node))]

    def _render_paragraph(self, node: ASTNode) -> list[Piece]:
        return [_element("p", self.render_children(node))]

    def _render_blockquote(self, node: ASTNode) -> list[Piece]:
        return [_element("blockquote", self.render_blocks(node.children))]

    def _render_horizontal_rule(self, _node: ASTNode) -> list[Piece]:
        return [Element("hr")]

    def _render_code_block(self, node: ASTNode) -> list[Piece]:
        code = self.highlighter.highlight(node.text, node.language or None)
        return [_element("pre", [code], class_="highlight")]

    # -- lists --------------------------------------------------------------

    def _render_ordered_list(self, node: ASTNode) -> list[Piece]:
        ol = self._render_list("ol", node)
        if node.start != 1:
            ol.set("start", str(node.start))
        return [ol]

    def _render_unordered_list(self, node: ASTNode) -> list[Piece]:
        ul = self._render_list("ul", node)
        if any(item.type == NodeType.TASK_LIST_ITEM for item in node.children):
            ul.set("class", "contains-task-list")
        return [ul]

    def _render_list(self, tag: str, node: ASTNode) -> Element:
        lst = Element(tag)
        for item in node.children:
            li = self._render_item(item, tight=node.tight)
            lst.append(li)
        return lst

    def _render_item(self, item: ASTNode, *, tight: bool) -> Element:
        if item.type not in (NodeType.LIST_ITEM, NodeType.TASK_LIST_ITEM):
            return _element("li", self.render_node(item))

        if tight:
            pieces: list[Piece] = []
            for child in item.children:
                if child.type == NodeType.PARAGRAPH:
                    if pieces:
                        pieces.append("\n")
                    pieces.extend(self.render_children(child))
                else:
                    pieces.extend(self.render_blocks([child]))
        else:
            pieces = self.render_blocks(item.children)

        li = _element("li", pieces)
        if item.type == NodeType.TASK_LIST_ITEM:
            li.set("class", "task-list-item")
            self._insert_checkbox(li, item.checked)
        return li

    def _insert_checkbox(self, li: Element, checked: bool) -> None:
        box = Element("input", {"type": "checkbox", "class": "task-list-item-checkbox", "disabled": ""})
        if checked:
            box.set("checked", "")
        # Loose items put the marker inside their first paragraph.
        host = li
        if li.text is None and len(li) and li[0].tag == "p":
            host = li[0]
        box.tail = " " + (host.text or "")
        host.text = None
        host.insert(0, box)

    # -- table --------------------------------------------------------------

    def _render_table(self, node: ASTNode) -> list[Piece]:
        table = Element("table")
        head_rows = [r for r in node.children if r.children and all(c.is_header for c in r.children)]
        body_rows = [r for r in node.children if r not in head_rows]
        if head_rows:
            thead = SubElement(table, "thead")
            for row in head_rows:
                thead.append(self._render_row(row))
        if body_rows:
            tbody = SubElement(table, "tbody")
            for row in body_rows:
                tbody.append(self._render_row(row))
        return [table]

    def _render_row(self, row: ASTNode) -> Element:
        tr = Element("tr")
        for cell in row.children:
            tag = "th" if cell.is_header else "td"
            td = _element(tag, self.render_children(cell))
            if cell.align in _ALIGNMENTS:
                td.set("style", f"text-align: {cell.align}")
            tr.append(td)
        return tr

    # ======================================================================
    # Inline renderers
    # ======================================================================

    def _render_text(self, node: ASTNode) -> list[Piece]:
        return [node.text] if node.text else []

    def _render_bold(self, node: ASTNode) -> list[Piece]:
        return [_element(_INLINE_TAGS[node.type], self.render_children(node))]

    _render_italic = _render_bold
    _render_strikethrough = _render_bold
    _render_mark = _render_bold
    _render_superscript = _render_bold
    _render_subscript = _render_bold

    def _render_bold_italic(self, node: ASTNode) -> list[Piece]:
        return [_element(
            "strong",
            self.render_children(node),
            class_="bold-italic",
            style="font-style: italic",
        )]

    def _render_inline_code(self, node: ASTNode) -> list[Piece]:
        return [_element("code", [node.text])]

    def _render_link(self, node: ASTNode) -> list[Piece]:
        a = _element("a", self.render_children(node), href=node.url)
        if node.title:
            a.set("title", node.title)
        return [a]

    def _render_image(self, node: ASTNode) -> list[Piece]:
        img = Element("img", {"src": node.url, "alt": node.alt})
        if node.title:
            img.set("title", node.title)
        return [img]

    def _render_line_break(self, _node: ASTNode) -> list[Piece]:
        return [Element("br"), "\n"]

    def _render_soft_break(self, _node: ASTNode) -> list[Piece]:
        return ["\n"]

    # -- footnotes ----------------------------------------------------------

    def _render_footnote_ref(self, node: ASTNode) -> list[Piece]:
        if node.footnote_id not in self.definitions:
            return [f"[^{node.footnote_id}]"]
        first = node.footnote_id not in self.referenced
        if first:
            self.referenced.append(node.footnote_id)
        number = str(self.referenced.index(node.footnote_id) + 1)
        sup = Element("sup", {"class": "footnote-ref"})
        if first:
            sup.set("id", f"fnref-{number}")
        SubElement(sup, "a", {"href": f"#fn-{number}"}).text = number
        return [sup]

    def _render_footnote_def(self, _node: ASTNode) -> list[Piece]:
        # Definitions are emitted once, by _footnote_section.
        return []

    def _footnote_section(self) -> Element:
        section = Element("section", {"class": "footnotes"})
        ol = SubElement(section, "ol")
        # Rendering a definition may reference further notes.
        idx = 0
        while idx < len(self.referenced):
            key = self.referenced[idx]
            number = str(idx + 1)
            li = _element("li", self.render_blocks(self.definitions[key].children), id=f"fn-{number}")
            back = Element("a", {"href": f"#fnref-{number}", "class": "footnote-backref"})
            back.text = "↩"
            host = li[-1] if len(li) and li[-1].tag == "p" else li
            host.append(back)
            ol.append(li)
            idx += 1
        return section


# ---------------------------------------------------------------------------
# HtmlRenderer
# ---------------------------------------------------------------------------

class HtmlRenderer:
    """Render an :class:`~mdpress.parser.ASTNode` document tree to a fragment."""

    def __init__(self, highlighter: Optional[Highlighter] = None) -> None:
        self.highlighter: Highlighter = highlighter or Highlighter()

    # ======================================================================
    # Public API
    # ======================================================================

    def render(self, doc: ASTNode) -> Element:
        """Return the ``div.markdown-preview`` fragment for the AST *doc*."""
        if doc.type != NodeType.DOCUMENT:
            doc = ASTNode(type=NodeType.DOCUMENT, children=[doc])
        definitions = _collect_definitions(doc)
        fragment = _FragmentBuilder(self.highlighter, definitions).build(doc)
        logger.debug("Rendered %d top-level elements", len(fragment))
        return fragment

    def render_html(self, doc: ASTNode) -> str:
        """Render *doc* and serialize the fragment to HTML."""
        return serialize(self.render(doc))


def _collect_definitions(node: ASTNode) -> dict[str, ASTNode]:
    found: dict[str, ASTNode] = {}
    for child in node.children:
        if child.type == NodeType.FOOTNOTE_DEF:
            found.setdefault(child.footnote_id, child)
        elif child.children:
            for key, value in _collect_definitions(child).items():
                found.setdefault(key, value)
    return found
