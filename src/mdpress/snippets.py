"""Static catalog of Markdown snippets offered by the editor.

Inserting a snippet appends it to the end of the document, separated by a
line break; existing text is never modified.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Snippet:
    title: str
    content: str
    description: str
    practice: str = ""


SNIPPETS: list[Snippet] = [
    Snippet(
        title="Basics",
        content=(
            "# Heading\n\nThis is **bold** and *italic* text\n\n"
            "- Item 1\n- Item 2\n\n1. First\n2. Second\n\n"
            "> A quotation\n\n---\n\n`inline code` example\n\n```\ncode block\n```"
        ),
        description="The most common Markdown elements, a quick start.",
        practice="Write a short document with a heading, a list and a quotation.",
    ),
    Snippet(
        title="Lists",
        content="- Unordered item 1\n- Unordered item 2\n\n1. Ordered item 1\n2. Ordered item 2",
        description="Use - for unordered lists and a number with a dot for ordered lists.",
    ),
    Snippet(
        title="Emphasis",
        content="**Bold text**\n*Italic text*\n***Bold italic text***",
        description="Wrap text in one, two or three asterisks for italic, bold or both.",
    ),
    Snippet(
        title="Links and images",
        content="[Link text](https://example.com)\n![Image description](https://example.com/image.jpg)",
        description="Use [text](URL) for links and ![description](URL) for images.",
    ),
    Snippet(
        title="Quotes and code",
        content="> A quoted passage\n\n`inline code`\n\n```\na code block\n```",
        description="Use > for quotes, backticks for code and three backticks for code blocks.",
    ),
    Snippet(
        title="Tables",
        content="| Header 1 | Header 2 |\n| --- | --- |\n| Cell 1 | Cell 2 |\n| Cell 3 | Cell 4 |",
        description="Separate cells with | and the header from the body with a --- row.",
    ),
    Snippet(
        title="Task lists",
        content="- [x] Finished task\n- [ ] Open task\n- [ ] To do",
        description="Use - [ ] for open items and - [x] for finished ones.",
    ),
    Snippet(
        title="Footnotes",
        content="Text with a footnote[^1]\n\n[^1]: The footnote content",
        description="Reference with [^label] and define it with [^label]: at the bottom.",
    ),
    Snippet(
        title="Horizontal rules",
        content="---\n***\n___",
        description="Three or more -, * or _ on a line draw a horizontal rule.",
    ),
    Snippet(
        title="Advanced formatting",
        content="~~Strikethrough~~\n==Highlight==\nSuperscript^2^\nSubscript~2~",
        description="~~ strikes through, == highlights, ^ and ~ raise and lower text.",
    ),
]


def get_snippet(title: str) -> Optional[Snippet]:
    """Return the snippet called *title* (case-insensitive), if any."""
    wanted = title.casefold()
    for snippet in SNIPPETS:
        if snippet.title.casefold() == wanted:
            return snippet
    return None


def insert_snippet(text: str, snippet: Snippet) -> str:
    """Return *text* with *snippet* appended after a line break."""
    return f"{text}\n{snippet.content}"
