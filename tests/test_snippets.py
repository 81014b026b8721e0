"""Tests for the snippet catalog."""

from __future__ import annotations

import pytest

from mdpress.parser import MarkdownParser, NodeType
from mdpress.snippets import SNIPPETS, get_snippet, insert_snippet


class TestCatalog:
    def test_titles_unique(self) -> None:
        titles = [s.title for s in SNIPPETS]
        assert len(titles) == len(set(titles))

    def test_every_snippet_has_content(self) -> None:
        for snippet in SNIPPETS:
            assert snippet.content.strip()
            assert snippet.description

    def test_get_snippet_case_insensitive(self) -> None:
        assert get_snippet("tables") is get_snippet("Tables")
        assert get_snippet("no such snippet") is None

    @pytest.mark.parametrize("title, node_type", [
        ("Tables", NodeType.TABLE),
        ("Task lists", NodeType.TASK_LIST_ITEM),
        ("Footnotes", NodeType.FOOTNOTE_REF),
        ("Horizontal rules", NodeType.HORIZONTAL_RULE),
    ])
    def test_snippet_parses_to_its_construct(self, title: str, node_type: NodeType) -> None:
        doc = MarkdownParser().parse(get_snippet(title).content)

        def walk(node):
            yield node
            for child in node.children:
                yield from walk(child)

        assert any(n.type == node_type for n in walk(doc))


class TestInsert:
    def test_appends_after_line_break(self) -> None:
        snippet = get_snippet("Lists")
        assert insert_snippet("# Doc", snippet) == "# Doc\n" + snippet.content

    def test_existing_text_unchanged(self) -> None:
        original = "keep **me**"
        result = insert_snippet(original, get_snippet("Tables"))
        assert result.startswith(original + "\n")
