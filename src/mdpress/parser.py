"""Markdown parser that produces an intermediate AST for HTML rendering.

Uses mistune v3 to parse Markdown and converts the token stream into
a normalised AST representation defined by :class:`ASTNode`.

The conversion is total: token kinds that are not understood, raw HTML,
and links or images without a target degrade to literal ``TEXT`` nodes
instead of raising.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import mistune
from mistune.core import BlockState
from mistune.plugins.footnotes import parse_footnote_item

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# AST node definitions
# ---------------------------------------------------------------------------

class NodeType(Enum):
    DOCUMENT = "document"
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    TEXT = "text"
    BOLD = "bold"
    ITALIC = "italic"
    BOLD_ITALIC = "bold_italic"
    STRIKETHROUGH = "strikethrough"
    MARK = "mark"
    SUPERSCRIPT = "superscript"
    SUBSCRIPT = "subscript"
    INLINE_CODE = "inline_code"
    CODE_BLOCK = "code_block"
    ORDERED_LIST = "ordered_list"
    UNORDERED_LIST = "unordered_list"
    LIST_ITEM = "list_item"
    TASK_LIST_ITEM = "task_list_item"
    TABLE = "table"
    TABLE_ROW = "table_row"
    TABLE_CELL = "table_cell"
    BLOCKQUOTE = "blockquote"
    HORIZONTAL_RULE = "horizontal_rule"
    LINK = "link"
    IMAGE = "image"
    FOOTNOTE_REF = "footnote_ref"
    FOOTNOTE_DEF = "footnote_def"
    LINE_BREAK = "line_break"
    SOFT_BREAK = "soft_break"


BLOCK_TYPES = frozenset({
    NodeType.HEADING,
    NodeType.PARAGRAPH,
    NodeType.CODE_BLOCK,
    NodeType.ORDERED_LIST,
    NodeType.UNORDERED_LIST,
    NodeType.LIST_ITEM,
    NodeType.TASK_LIST_ITEM,
    NodeType.TABLE,
    NodeType.BLOCKQUOTE,
    NodeType.HORIZONTAL_RULE,
    NodeType.FOOTNOTE_DEF,
})


@dataclass
class ASTNode:
    type: NodeType
    children: list[ASTNode] = field(default_factory=list)
    text: str = ""
    # Heading
    level: int = 0
    # Code block
    language: str = ""
    # Link / Image
    url: str = ""
    title: str = ""
    alt: str = ""
    # Table cell
    align: str = ""
    is_header: bool = False
    # Task list
    checked: bool = False
    # Footnote
    footnote_id: str = ""
    footnote_index: int = 0
    # Lists
    start: int = 1
    tight: bool = True


def plain_text(node: ASTNode) -> str:
    """Recursively extract plain text from an AST subtree."""
    if node.type == NodeType.SOFT_BREAK:
        return "\n"
    parts: list[str] = []
    if node.text:
        parts.append(node.text)
    for child in node.children:
        parts.append(plain_text(child))
    return "".join(parts)


def _as_plain_item(item: ASTNode) -> ASTNode:
    """Turn an ordered-list task item back into a list item with its box as text."""
    if item.type != NodeType.TASK_LIST_ITEM:
        return item
    box = ASTNode(type=NodeType.TEXT, text="[x] " if item.checked else "[ ] ")
    children = list(item.children)
    if children and children[0].type == NodeType.PARAGRAPH:
        first = children[0]
        children[0] = ASTNode(type=NodeType.PARAGRAPH, children=[box, *first.children])
    else:
        children.insert(0, box)
    return ASTNode(type=NodeType.LIST_ITEM, children=children)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class MarkdownParser:
    """Parse Markdown text into an :class:`ASTNode` tree."""

    PLUGINS = [
        "table",
        "strikethrough",
        "footnotes",
        "task_lists",
        "mark",
        "superscript",
        "subscript",
    ]

    def __init__(self) -> None:
        self._md = mistune.create_markdown(
            renderer=None,  # AST mode
            plugins=self.PLUGINS,
        )

    # -- public API ---------------------------------------------------------

    def parse(self, markdown_text: str) -> ASTNode:
        """Return a *DOCUMENT* ``ASTNode`` for *markdown_text*.

        Never raises: if the token stream cannot be built the whole input
        comes back as a single literal paragraph.
        """
        try:
            tokens, state = self._md.parse(markdown_text or "")
            children = self._convert_tokens(tokens)  # type: ignore[arg-type]
            children.extend(self._unlisted_footnotes(state, children))
        except (RecursionError, ValueError):
            logger.warning("Markdown could not be tokenised; rendering as text", exc_info=True)
            children = [ASTNode(
                type=NodeType.PARAGRAPH,
                children=[ASTNode(type=NodeType.TEXT, text=markdown_text)],
            )]
        return ASTNode(type=NodeType.DOCUMENT, children=children)

    # -- token conversion ---------------------------------------------------

    def _convert_tokens(self, tokens: list[dict[str, Any]]) -> list[ASTNode]:
        nodes: list[ASTNode] = []
        for tok in tokens:
            # Flatten footnotes container into individual definitions
            if tok.get("type") == "footnotes":
                for child in tok.get("children", []):
                    if child.get("type") == "footnote_item":
                        nodes.append(self._handle_footnote_item(child))
                continue
            node = self._convert_token(tok)
            if node is not None:
                nodes.append(node)
        return nodes

    def _convert_token(self, tok: dict[str, Any]) -> Optional[ASTNode]:
        ttype = tok.get("type", "")
        handler = getattr(self, f"_handle_{ttype}", None)
        if handler:
            return handler(tok)
        # Unknown or raw-HTML tokens degrade to their literal source.
        raw = tok.get("raw", tok.get("text", ""))
        if raw:
            logger.debug("Degrading %r token to text", ttype)
            return ASTNode(type=NodeType.TEXT, text=str(raw))
        if tok.get("children"):
            return ASTNode(type=NodeType.TEXT, text=self._extract_text(tok["children"]))
        return None

    # -- inline helpers -----------------------------------------------------

    def _convert_inline(self, children: Any) -> list[ASTNode]:
        if children is None:
            return []
        if isinstance(children, str):
            return [ASTNode(type=NodeType.TEXT, text=children)]
        if isinstance(children, list):
            return self._convert_tokens(children)
        return []

    def _wrap(self, ntype: NodeType, tok: dict) -> ASTNode:
        children_raw = tok.get("children") or tok.get("text", "")
        return ASTNode(type=ntype, children=self._convert_inline(children_raw))

    # -- block handlers -----------------------------------------------------

    def _handle_heading(self, tok: dict) -> ASTNode:
        level = tok.get("attrs", {}).get("level", 1)
        node = self._wrap(NodeType.HEADING, tok)
        node.level = max(1, min(6, level))
        return node

    def _handle_paragraph(self, tok: dict) -> ASTNode:
        return self._wrap(NodeType.PARAGRAPH, tok)

    def _handle_block_text(self, tok: dict) -> ASTNode:
        """Block text inside tight list items."""
        return self._wrap(NodeType.PARAGRAPH, tok)

    def _handle_thematic_break(self, _tok: dict) -> ASTNode:
        return ASTNode(type=NodeType.HORIZONTAL_RULE)

    def _handle_block_code(self, tok: dict) -> ASTNode:
        """Fenced / indented code block."""
        attrs = tok.get("attrs", {})
        raw = tok.get("raw", "")
        return ASTNode(
            type=NodeType.CODE_BLOCK,
            text=raw if isinstance(raw, str) else str(raw),
            language=(attrs.get("info") or "").strip(),
        )

    def _handle_block_quote(self, tok: dict) -> ASTNode:
        children = self._convert_tokens(tok.get("children", []))
        return ASTNode(type=NodeType.BLOCKQUOTE, children=children)

    def _handle_blank_line(self, _tok: dict) -> Optional[ASTNode]:
        return None

    # -- inline handlers ----------------------------------------------------

    def _handle_text(self, tok: dict) -> ASTNode:
        return ASTNode(type=NodeType.TEXT, text=str(tok.get("raw", "")))

    def _handle_strong(self, tok: dict) -> ASTNode:
        node = self._wrap(NodeType.BOLD, tok)
        return self._fold_bold_italic(node, NodeType.ITALIC)

    def _handle_emphasis(self, tok: dict) -> ASTNode:
        node = self._wrap(NodeType.ITALIC, tok)
        return self._fold_bold_italic(node, NodeType.BOLD)

    def _fold_bold_italic(self, node: ASTNode, inner: NodeType) -> ASTNode:
        # ``***x***`` arrives as strong(emphasis(x)) or emphasis(strong(x)).
        if len(node.children) == 1 and node.children[0].type == inner:
            return ASTNode(type=NodeType.BOLD_ITALIC, children=node.children[0].children)
        return node

    def _handle_strikethrough(self, tok: dict) -> ASTNode:
        return self._wrap(NodeType.STRIKETHROUGH, tok)

    def _handle_mark(self, tok: dict) -> ASTNode:
        return self._wrap(NodeType.MARK, tok)

    def _handle_superscript(self, tok: dict) -> ASTNode:
        return self._wrap(NodeType.SUPERSCRIPT, tok)

    def _handle_subscript(self, tok: dict) -> ASTNode:
        return self._wrap(NodeType.SUBSCRIPT, tok)

    def _handle_codespan(self, tok: dict) -> ASTNode:
        return ASTNode(type=NodeType.INLINE_CODE, text=str(tok.get("raw", "")))

    def _handle_linebreak(self, _tok: dict) -> ASTNode:
        return ASTNode(type=NodeType.LINE_BREAK)

    def _handle_softbreak(self, _tok: dict) -> ASTNode:
        return ASTNode(type=NodeType.SOFT_BREAK)

    # -- link / image -------------------------------------------------------

    def _handle_link(self, tok: dict) -> ASTNode:
        attrs = tok.get("attrs", {})
        url = attrs.get("url") or ""
        children = self._convert_inline(tok.get("children"))
        if not url:
            label = "".join(plain_text(c) for c in children)
            return ASTNode(type=NodeType.TEXT, text=f"[{label}]()")
        return ASTNode(
            type=NodeType.LINK,
            url=url,
            title=attrs.get("title") or "",
            children=children,
        )

    def _handle_image(self, tok: dict) -> ASTNode:
        attrs = tok.get("attrs", {})
        url = attrs.get("url") or ""
        alt = self._extract_text(tok.get("children"))
        if not url:
            return ASTNode(type=NodeType.TEXT, text=f"![{alt}]()")
        return ASTNode(
            type=NodeType.IMAGE,
            url=url,
            title=attrs.get("title") or "",
            alt=alt,
        )

    # -- lists --------------------------------------------------------------

    def _handle_list(self, tok: dict) -> ASTNode:
        attrs = tok.get("attrs", {})
        ordered = attrs.get("ordered", False)
        items = self._convert_tokens(tok.get("children", []))
        if ordered:
            items = [_as_plain_item(item) for item in items]
        start = attrs.get("start")
        return ASTNode(
            type=NodeType.ORDERED_LIST if ordered else NodeType.UNORDERED_LIST,
            children=items,
            start=1 if start is None else start,
            tight=bool(tok.get("tight", True)),
        )

    def _handle_list_item(self, tok: dict) -> ASTNode:
        children = self._convert_tokens(tok.get("children", []))
        return ASTNode(type=NodeType.LIST_ITEM, children=children)

    def _handle_task_list_item(self, tok: dict) -> ASTNode:
        children = self._convert_tokens(tok.get("children", []))
        return ASTNode(
            type=NodeType.TASK_LIST_ITEM,
            children=children,
            checked=bool(tok.get("attrs", {}).get("checked", False)),
        )

    # -- table --------------------------------------------------------------

    def _handle_table(self, tok: dict) -> ASTNode:
        rows: list[ASTNode] = []
        for child in tok.get("children", []):
            ctype = child.get("type", "")
            if ctype == "table_head":
                # table_head has table_cell children directly (one implicit row)
                rows.append(self._make_table_row(child.get("children", []), is_header=True))
            elif ctype == "table_body":
                for row in child.get("children", []):
                    rows.append(self._make_table_row(row.get("children", []), is_header=False))
        return ASTNode(type=NodeType.TABLE, children=rows)

    def _make_table_row(self, cell_tokens: list[dict], *, is_header: bool) -> ASTNode:
        cells: list[ASTNode] = []
        for cell_tok in cell_tokens:
            cell_attrs = cell_tok.get("attrs", {})
            cells.append(ASTNode(
                type=NodeType.TABLE_CELL,
                children=self._convert_inline(cell_tok.get("children", [])),
                align=cell_attrs.get("align") or "",
                is_header=bool(cell_attrs.get("head", is_header)),
            ))
        return ASTNode(type=NodeType.TABLE_ROW, children=cells)

    # -- footnotes ----------------------------------------------------------

    def _handle_footnote_ref(self, tok: dict) -> ASTNode:
        return ASTNode(
            type=NodeType.FOOTNOTE_REF,
            footnote_id=str(tok.get("raw", "")),
            footnote_index=int(tok.get("attrs", {}).get("index", 0)),
        )

    def _handle_footnote_item(self, tok: dict) -> ASTNode:
        attrs = tok.get("attrs", {})
        return ASTNode(
            type=NodeType.FOOTNOTE_DEF,
            footnote_id=str(attrs.get("key", "")),
            footnote_index=int(attrs.get("index", 0)),
            children=self._convert_tokens(tok.get("children", [])),
        )

    def _unlisted_footnotes(self, state: BlockState, nodes: list[ASTNode]) -> list[ASTNode]:
        """Definitions mistune left out because the body never cited them.

        A note cited only from inside another note is still needed by the
        renderer, so every definition is kept and inline parsed against the
        same environment.
        """
        emitted = {n.footnote_id for n in nodes if n.type == NodeType.FOOTNOTE_DEF}
        extra: list[ASTNode] = []
        for key in list(state.env.get("ref_footnotes") or {}):
            if key in emitted:
                continue
            item = parse_footnote_item(self._md.block, key, 0, state)
            item_state = BlockState(parent=state)
            item_state.tokens = [item]
            for tok in self._md.render_state(item_state):
                extra.append(self._handle_footnote_item(tok))  # type: ignore[arg-type]
        return extra

    # -- helpers ------------------------------------------------------------

    def _extract_text(self, children: Any) -> str:
        if isinstance(children, str):
            return children
        if isinstance(children, list):
            parts: list[str] = []
            for c in children:
                if isinstance(c, dict):
                    if "raw" in c:
                        parts.append(str(c["raw"]))
                    else:
                        parts.append(self._extract_text(c.get("children")))
                elif isinstance(c, str):
                    parts.append(c)
            return "".join(parts)
        return ""
