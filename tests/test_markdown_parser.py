"""Tests for converting Markdown sources into typed node trees.

The assertions focus on the two properties the renderer depends on: the tree
mirrors document structure, and every segment slices the exact bytes of the
original source (front matter included).
"""

from __future__ import annotations

from pathlib import Path

import pytest

from astpages.errors import InputValidationError
from astpages.markdown_parser import DocumentParser, ParsedDocument
from astpages.nodes import (
    AutoLink,
    Blockquote,
    CodeBlock,
    CodeSpan,
    Emphasis,
    FencedCodeBlock,
    Heading,
    HTMLBlock,
    Image,
    Link,
    ListBlock,
    ListItem,
    Node,
    NodeKind,
    Paragraph,
    RawHTML,
    Text,
    TextBlock,
    ThematicBreak,
)


def _parse(text: str) -> ParsedDocument:
    return DocumentParser().parse_bytes(text.encode("utf-8"))


def _kinds(node: Node) -> list[NodeKind]:
    return [child.kind for child in node.children]


def _first(document: ParsedDocument) -> Node:
    node = document.root.first_child
    assert node is not None
    return node


def test_front_matter_is_loaded_and_segments_index_full_source() -> None:
    document = _parse("---\ntitle: Hi\nslug: hi\n---\n# Hello\n")

    assert document.metadata == {"title": "Hi", "slug": "hi"}
    heading = _first(document)
    assert isinstance(heading, Heading)
    text = heading.first_child
    assert isinstance(text, Text)
    assert text.segment.value(document.source) == b"Hello"
    assert text.segment.start == document.source.index(b"Hello")


def test_source_without_front_matter_has_empty_metadata() -> None:
    document = _parse("Plain text\n")

    assert document.metadata == {}
    assert _kinds(document.root) == [NodeKind.PARAGRAPH]


def test_empty_front_matter_is_an_empty_mapping() -> None:
    document = _parse("---\n---\nBody\n")

    assert document.metadata == {}
    assert _kinds(document.root) == [NodeKind.PARAGRAPH]


def test_malformed_front_matter_is_rejected() -> None:
    with pytest.raises(InputValidationError, match="malformed front matter"):
        _parse("---\ntitle: [unclosed\n---\nBody\n")


def test_front_matter_must_be_a_mapping() -> None:
    with pytest.raises(InputValidationError, match="mapping"):
        _parse("---\n- one\n- two\n---\nBody\n")


def test_invalid_utf8_body_is_rejected() -> None:
    with pytest.raises(InputValidationError, match="UTF-8"):
        DocumentParser().parse_bytes(b"# caf\xff\n")


def test_soft_line_break_marks_preceding_text() -> None:
    document = _parse("alpha\nbeta\n")
    paragraph = _first(document)

    first, second = paragraph.children
    assert isinstance(first, Text)
    assert isinstance(second, Text)
    assert first.segment.value(document.source) == b"alpha"
    assert first.soft_line_break
    assert second.segment.value(document.source) == b"beta"
    assert not second.soft_line_break


def test_hard_line_break_marks_preceding_text() -> None:
    document = _parse("alpha  \nbeta\n")
    first = _first(document).first_child

    assert isinstance(first, Text)
    assert first.segment.value(document.source) == b"alpha"
    assert first.hard_line_break
    assert not first.soft_line_break


@pytest.mark.parametrize(
    ("source", "hard"),
    [("*alpha*  \nbeta\n", True), ("*alpha*\nbeta\n", False)],
    ids=["hard", "soft"],
)
def test_line_break_after_emphasis_gets_empty_text(source: str, hard: bool) -> None:
    document = _parse(source)
    paragraph = _first(document)

    assert _kinds(paragraph) == [NodeKind.EMPHASIS, NodeKind.TEXT, NodeKind.TEXT]
    _, marker, tail = paragraph.children
    assert isinstance(marker, Text)
    assert marker.segment.value(document.source) == b""
    assert marker.hard_line_break is hard
    assert marker.soft_line_break is not hard
    assert isinstance(tail, Text)
    assert tail.segment.value(document.source) == b"beta"


def test_line_break_after_code_span_is_kept() -> None:
    document = _parse("`x`\nbeta\n")
    paragraph = _first(document)

    assert _kinds(paragraph) == [NodeKind.CODE_SPAN, NodeKind.TEXT, NodeKind.TEXT]
    marker = list(paragraph.children)[1]
    assert isinstance(marker, Text)
    assert marker.soft_line_break


def test_crlf_sources_keep_exact_offsets() -> None:
    document = _parse("alpha\r\nbeta\r\n")
    _, second = _first(document).children

    assert isinstance(second, Text)
    assert second.segment.value(document.source) == b"beta"


def test_escapes_and_entities_stay_literal_in_one_text() -> None:
    document = _parse("a\\*b AT&amp;T\n")
    paragraph = _first(document)

    assert _kinds(paragraph) == [NodeKind.TEXT]
    text = paragraph.first_child
    assert isinstance(text, Text)
    assert text.segment.value(document.source) == b"a\\*b AT&amp;T"


def test_multibyte_text_segments_are_byte_offsets() -> None:
    document = _parse("---\ntitle: Café\n---\nCrème brûlée\n")
    text = _first(document).first_child

    assert isinstance(text, Text)
    assert text.segment.value(document.source).decode("utf-8") == "Crème brûlée"


def test_emphasis_levels() -> None:
    document = _parse("*one* and **two**\n")
    paragraph = _first(document)

    assert _kinds(paragraph) == [NodeKind.EMPHASIS, NodeKind.TEXT, NodeKind.EMPHASIS]
    em, _, strong = paragraph.children
    assert isinstance(em, Emphasis)
    assert isinstance(strong, Emphasis)
    assert (em.level, strong.level) == (1, 2)
    strong_text = strong.first_child
    assert isinstance(strong_text, Text)
    assert strong_text.segment.value(document.source) == b"two"


def test_code_span_wraps_text_segment() -> None:
    document = _parse("use `x` here\n")
    paragraph = _first(document)

    assert _kinds(paragraph) == [NodeKind.TEXT, NodeKind.CODE_SPAN, NodeKind.TEXT]
    _, span, tail = paragraph.children
    assert isinstance(span, CodeSpan)
    code = span.first_child
    assert isinstance(code, Text)
    assert code.segment.value(document.source) == b"x"
    assert isinstance(tail, Text)
    assert tail.segment.value(document.source) == b" here"


def test_code_span_strips_one_padding_space() -> None:
    document = _parse("`` a ` b ``\n")
    span = _first(document).first_child

    assert isinstance(span, CodeSpan)
    code = span.first_child
    assert isinstance(code, Text)
    assert code.segment.value(document.source) == b"a ` b"


def test_inline_link_records_destination_title_and_text() -> None:
    document = _parse('See [site](https://example.com "Home") now.\n')
    paragraph = _first(document)

    assert _kinds(paragraph) == [NodeKind.TEXT, NodeKind.LINK, NodeKind.TEXT]
    _, link, tail = paragraph.children
    assert isinstance(link, Link)
    assert link.destination == "https://example.com"
    assert link.title == "Home"
    label = link.first_child
    assert isinstance(label, Text)
    assert label.segment.value(document.source) == b"site"
    assert isinstance(tail, Text)
    assert tail.segment.value(document.source) == b" now."


def test_autolink_records_url() -> None:
    document = _parse("<https://example.com>\n")
    autolink = _first(document).first_child

    assert isinstance(autolink, AutoLink)
    assert autolink.url == "https://example.com"
    assert not autolink.has_children()


def test_image_records_destination_and_alt_children() -> None:
    document = _parse('![alt text](/img.png "Logo")\n')
    image = _first(document).first_child

    assert isinstance(image, Image)
    assert image.destination == "/img.png"
    assert image.title == "Logo"
    alt = image.first_child
    assert isinstance(alt, Text)
    assert alt.segment.value(document.source) == b"alt text"


def test_inline_html_becomes_raw_html_nodes() -> None:
    document = _parse("a <span>b</span>\n")
    paragraph = _first(document)

    assert _kinds(paragraph) == [
        NodeKind.TEXT,
        NodeKind.RAW_HTML,
        NodeKind.TEXT,
        NodeKind.RAW_HTML,
    ]
    _, opening, _, closing = paragraph.children
    assert isinstance(opening, RawHTML)
    assert isinstance(closing, RawHTML)
    assert opening.segments[0].value(document.source) == b"<span>"
    assert closing.segments[0].value(document.source) == b"</span>"


def test_heading_levels_and_unique_ids() -> None:
    document = _parse("# Intro\n\n## Intro\n\n# Hello, *World*!\n\nSetext\n======\n")
    headings = [node for node in document.root.children if isinstance(node, Heading)]

    assert [(h.level, h.id) for h in headings] == [
        (1, "intro"),
        (2, "intro-2"),
        (1, "hello-world"),
        (1, "setext"),
    ]


def test_fenced_code_block_lines_and_language() -> None:
    document = _parse("```python extra\nprint(1)\nprint(2)\n```\n")
    block = _first(document)

    assert isinstance(block, FencedCodeBlock)
    assert block.language == "python"
    assert [line.value(document.source) for line in block.lines] == [
        b"print(1)\n",
        b"print(2)\n",
    ]


def test_fenced_code_block_without_info_has_no_language() -> None:
    document = _parse("```\nplain\n```\n")
    block = _first(document)

    assert isinstance(block, FencedCodeBlock)
    assert block.language is None


def test_indented_code_block_lines_exclude_indent() -> None:
    document = _parse("    code line\n")
    block = _first(document)

    assert isinstance(block, CodeBlock)
    assert not isinstance(block, FencedCodeBlock)
    assert [line.value(document.source) for line in block.lines] == [b"code line\n"]


def test_html_block_lines() -> None:
    document = _parse("<div>\nhi\n</div>\n")
    block = _first(document)

    assert isinstance(block, HTMLBlock)
    assert [line.value(document.source) for line in block.lines] == [
        b"<div>\n",
        b"hi\n",
        b"</div>\n",
    ]


def test_thematic_break_and_blockquote() -> None:
    document = _parse("***\n\n> quoted\n")

    assert _kinds(document.root) == [NodeKind.THEMATIC_BREAK, NodeKind.BLOCKQUOTE]
    _, quote = document.root.children
    assert isinstance(quote, Blockquote)
    paragraph = quote.first_child
    assert isinstance(paragraph, Paragraph)
    text = paragraph.first_child
    assert isinstance(text, Text)
    assert text.segment.value(document.source) == b"quoted"
    assert isinstance(_first(document), ThematicBreak)


def test_tight_bullet_list_uses_text_blocks() -> None:
    document = _parse("- one\n- two\n")
    listing = _first(document)

    assert isinstance(listing, ListBlock)
    assert not listing.ordered
    items = list(listing.children)
    assert all(isinstance(item, ListItem) for item in items)
    assert [_kinds(item) for item in items] == [[NodeKind.TEXT_BLOCK]] * 2
    body = items[1].first_child
    assert isinstance(body, TextBlock)
    text = body.first_child
    assert isinstance(text, Text)
    assert text.segment.value(document.source) == b"two"


def test_loose_list_uses_paragraphs() -> None:
    document = _parse("- one\n\n- two\n")
    listing = _first(document)

    assert isinstance(listing, ListBlock)
    assert [_kinds(item) for item in listing.children] == [[NodeKind.PARAGRAPH]] * 2


def test_ordered_list_start() -> None:
    document = _parse("3. three\n4. four\n")
    listing = _first(document)

    assert isinstance(listing, ListBlock)
    assert listing.ordered
    assert listing.start == 3


def test_parent_links_are_consistent() -> None:
    document = _parse("# Title\n\nBody *text*\n")

    for node in document.root.children:
        assert node.parent is document.root
        for child in node.children:
            assert child.parent is node
    assert document.root.last_child is not None
    assert document.root.last_child.next_sibling is None


def test_parse_file_rejects_non_markdown_suffix(tmp_path: Path) -> None:
    source = tmp_path / "page.txt"
    source.write_text("# Title\n", encoding="utf-8")

    with pytest.raises(InputValidationError, match="'.md' extension"):
        DocumentParser().parse_file(source)


def test_parse_file_rejects_missing_file(tmp_path: Path) -> None:
    with pytest.raises(InputValidationError, match="unable to read"):
        DocumentParser().parse_file(tmp_path / "missing.md")


def test_parse_file_records_path(tmp_path: Path) -> None:
    source = tmp_path / "page.md"
    source.write_text("---\ntitle: Page\n---\nBody\n", encoding="utf-8")

    document = DocumentParser().parse_file(source)

    assert document.path == source
    assert document.metadata["title"] == "Page"
    assert document.source == source.read_bytes()
