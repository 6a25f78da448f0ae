r"""Parse Markdown pages into front-matter metadata and a typed node tree.

The parser reads an optional YAML front-matter header, hands the body to
markdown-it-py, and converts the resulting syntax tree into
:mod:`astpages.nodes` objects. Text-bearing nodes record byte segments into
the *original* source buffer (front matter included), so the renderer can
slice content without re-encoding anything.

Example
-------
>>> from astpages.markdown_parser import DocumentParser
>>> parsed = DocumentParser().parse_bytes(b"---\ntitle: Hi\n---\n# Hello\n")
>>> parsed.metadata["title"]
'Hi'
>>> heading = parsed.root.first_child
>>> heading.level, heading.id
(1, 'hello')
"""

from __future__ import annotations

import dataclasses as dc
import logging
import re
import typing as typ

from markdown_it import MarkdownIt
from markdown_it.tree import SyntaxTreeNode
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ._constants import MARKDOWN_SUFFIX
from .errors import InputValidationError
from .nodes import (
    AutoLink,
    Blockquote,
    CodeBlock,
    CodeSpan,
    Document,
    Emphasis,
    FencedCodeBlock,
    Heading,
    HTMLBlock,
    Image,
    Link,
    ListBlock,
    ListItem,
    Node,
    Paragraph,
    RawHTML,
    Segment,
    String,
    Text,
    TextBlock,
    ThematicBreak,
)

if typ.TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

FRONT_MATTER_PATTERN = re.compile(
    rb"\A---[ \t]*\r?\n(?P<body>.*?)(?:\r?\n)?^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)
LINE_BREAK_PATTERN = re.compile(rb"\r\n|\r|\n")
LINE_ENDINGS = b"\r\n"


@dc.dataclass(slots=True)
class ParsedDocument:
    """Everything the page builder needs from one Markdown source.

    Attributes
    ----------
    metadata : dict[str, Any]
        Front-matter mapping; empty when the page has no front matter.
    root : Document
        Root of the node tree.
    source : bytes
        The exact bytes that every node segment indexes into.
    path : Path, optional
        File the page was read from, when known.
    """

    metadata: dict[str, typ.Any]
    root: Document
    source: bytes
    path: Path | None = None


def _slugify(title: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return slug or "heading"


def _unique_slug(base: str, used: set[str]) -> str:
    """Generate a unique slug, appending numeric suffixes when needed."""
    candidate = base
    suffix = 2
    while candidate in used:
        candidate = f"{base}-{suffix}"
        suffix += 1
    used.add(candidate)
    return candidate


def _content_lines(content: str) -> list[str]:
    """Split block content on newlines, dropping the trailing empty entry."""
    lines = content.split("\n")
    if lines and not lines[-1]:
        lines.pop()
    return lines


class _SourceMap:
    """Translate markdown-it line numbers into byte offsets of the source."""

    def __init__(self, source: bytes, offset: int) -> None:
        self.source = source
        self.line_starts = [offset]
        self.line_starts.extend(
            match.end() for match in LINE_BREAK_PATTERN.finditer(source, offset)
        )

    def line_start(self, line: int) -> int:
        if line < len(self.line_starts):
            return self.line_starts[line]
        return len(self.source)

    def span(self, line_map: tuple[int, int] | None) -> tuple[int, int]:
        """Return the byte range covered by a ``[first, last)`` line map."""
        if not line_map:
            return self.line_starts[0], len(self.source)
        first, last = line_map
        return self.line_start(first), self.line_start(last)

    def line_segments(self, content: str, first_line: int) -> list[Segment]:
        """Locate each content line inside its source line.

        Container markers (``>`` or list indentation) and fence indentation
        stripped by the block parser are excluded from the segment; the source
        line ending is kept.
        """
        segments: list[Segment] = []
        for index, text in enumerate(_content_lines(content)):
            line = first_line + index
            if line >= len(self.line_starts):
                break
            start = self.line_starts[line]
            end = self.line_start(line + 1)
            body_end = end
            while body_end > start and self.source[body_end - 1] in LINE_ENDINGS:
                body_end -= 1
            body = text.encode("utf-8")
            if not body:
                seg_start = body_end
            elif self.source.endswith(body, start, body_end):
                seg_start = body_end - len(body)
            else:
                found = self.source.find(body, start, body_end)
                seg_start = found if found >= 0 else start
            segments.append(Segment(seg_start, end))
        return segments


class _InlineBuilder:
    """Convert the inline children of one block into nodes with segments.

    markdown-it-py does not report inline offsets, so each literal token is
    located by scanning forward from a cursor that never moves backwards
    within the block's byte range.
    """

    def __init__(self, source: bytes, start: int, stop: int) -> None:
        self.source = source
        self.cursor = start
        self.limit = stop

    def build(self, parent: Node, tokens: typ.Sequence[SyntaxTreeNode]) -> None:
        for token in tokens:
            match token.type:
                case "text":
                    self._text(parent, token.content)
                case "text_special":
                    self._text(parent, token.markup or token.content)
                case "softbreak":
                    self._line_break(parent).soft_line_break = True
                case "hardbreak":
                    self._line_break(parent).hard_line_break = True
                case "code_inline":
                    self._code_span(parent, token)
                case "em":
                    self.build(parent.append_child(Emphasis(level=1)), token.children)
                case "strong":
                    self.build(parent.append_child(Emphasis(level=2)), token.children)
                case "link":
                    self._link(parent, token)
                case "image":
                    image = parent.append_child(
                        Image(
                            destination=str(token.attrs.get("src", "")),
                            title=str(token.attrs.get("title", "")),
                        )
                    )
                    self.build(image, token.children)
                    self._skip_link_tail()
                case "html_inline":
                    self._raw_html(parent, token.content)
                case _:
                    logger.debug("unhandled inline token %s", token.type)
                    self.build(parent, token.children)

    def _line_break(self, parent: Node) -> Text:
        """Return the text a break belongs to.

        Breaks after emphasis, code spans, links or inline HTML get an empty
        text at the cursor so the flag is not lost.
        """
        last = parent.last_child
        if isinstance(last, Text) and not (last.soft_line_break or last.hard_line_break):
            return last
        return parent.append_child(Text(segment=Segment(self.cursor, self.cursor)))

    def _locate(self, literal: bytes) -> int:
        return self.source.find(literal, self.cursor, self.limit)

    def _text(self, parent: Node, literal: str) -> None:
        needle = literal.encode("utf-8")
        if not needle:
            return
        found = self._locate(needle)
        if found < 0:
            parent.append_child(String(value=needle))
            return
        stop = found + len(needle)
        last = parent.last_child
        if (
            isinstance(last, Text)
            and last.segment.stop == found
            and not (last.soft_line_break or last.hard_line_break)
        ):
            last.segment = Segment(last.segment.start, stop)
        else:
            parent.append_child(Text(segment=Segment(found, stop)))
        self.cursor = stop

    def _code_span(self, parent: Node, token: SyntaxTreeNode) -> None:
        fence = token.markup.encode("utf-8")
        opened = self._find_backtick_run(fence, self.cursor)
        closed = -1 if opened < 0 else self._find_backtick_run(fence, opened + len(fence))
        if closed < 0:
            parent.append_child(String(value=token.content.encode("utf-8")))
            return
        start = opened + len(fence)
        stop = closed
        body = self.source[start:stop]
        if (
            len(body) >= 2
            and body[:1] in (b" ", b"\n")
            and body[-1:] in (b" ", b"\n")
            and body.strip(b" \r\n")
        ):
            start += 1
            stop -= 1
        span = parent.append_child(CodeSpan())
        span.append_child(Text(segment=Segment(start, stop)))
        self.cursor = closed + len(fence)

    def _find_backtick_run(self, fence: bytes, start: int) -> int:
        """Return the offset of a backtick run exactly as long as ``fence``."""
        position = self.source.find(fence, start, self.limit)
        while position >= 0:
            before = self.source[position - 1 : position] if position > start else b""
            after = self.source[position + len(fence) : position + len(fence) + 1]
            if before != b"`" and after != b"`":
                return position
            position = self.source.find(fence, position + 1, self.limit)
        return -1

    def _link(self, parent: Node, token: SyntaxTreeNode) -> None:
        href = str(token.attrs.get("href", ""))
        if token.markup == "autolink":
            parent.append_child(AutoLink(url=href))
            closing = self.source.find(b">", self.cursor, self.limit)
            if closing >= 0:
                self.cursor = closing + 1
            return
        link = parent.append_child(
            Link(destination=href, title=str(token.attrs.get("title", "")))
        )
        self.build(link, token.children)
        self._skip_link_tail()

    def _skip_link_tail(self) -> None:
        """Move the cursor past ``](destination "title")`` or ``][label]``."""
        close = self.source.find(b"]", self.cursor, self.limit)
        if close < 0:
            return
        self.cursor = close + 1
        opener = self.source[close + 1 : close + 2]
        if opener == b"(":
            end = self._matching_paren(close + 1)
        elif opener == b"[":
            end = self.source.find(b"]", close + 1, self.limit)
        else:
            end = -1
        if end >= 0:
            self.cursor = end + 1

    def _matching_paren(self, position: int) -> int:
        depth = 0
        while position < self.limit:
            char = self.source[position : position + 1]
            if char == b"\\":
                position += 2
                continue
            if char == b"(":
                depth += 1
            elif char == b")":
                depth -= 1
                if depth == 0:
                    return position
            position += 1
        return -1

    def _raw_html(self, parent: Node, literal: str) -> None:
        needle = literal.encode("utf-8")
        found = self._locate(needle)
        if found < 0:
            parent.append_child(String(value=needle))
            return
        stop = found + len(needle)
        parent.append_child(RawHTML(segments=[Segment(found, stop)]))
        self.cursor = stop


class DocumentParser:
    """Parse Markdown sources into :class:`ParsedDocument` instances."""

    def __init__(self) -> None:
        """Configure markdown-it-py and the front-matter YAML loader.

        ``text_join`` is disabled so escapes and entities stay separate
        tokens whose markup is a literal slice of the source.
        """
        self.md = MarkdownIt("commonmark")
        self.md.disable("text_join")
        self.yaml = YAML(typ="safe")
        self.yaml.version = (1, 2)

    def parse_file(self, path: Path) -> ParsedDocument:
        """Read and parse the Markdown file at ``path``.

        Raises
        ------
        InputValidationError
            If ``path`` is not a ``.md`` file or cannot be read, or if its
            contents are not valid Markdown with optional YAML front matter.
        """
        if path.suffix != MARKDOWN_SUFFIX:
            msg = f"input file '{path}' must be a markdown file with the '.md' extension"
            raise InputValidationError(msg)
        try:
            source = path.read_bytes()
        except OSError as exc:
            msg = f"unable to read '{path}': {exc}"
            raise InputValidationError(msg) from exc
        return self.parse_bytes(source, path=path)

    def parse_bytes(self, source: bytes, *, path: Path | None = None) -> ParsedDocument:
        """Parse ``source`` into metadata and a node tree indexing ``source``."""
        metadata, offset = self._split_front_matter(source, path)
        try:
            body = source[offset:].decode("utf-8")
        except UnicodeDecodeError as exc:
            msg = f"{path or 'source'} is not valid UTF-8: {exc}"
            raise InputValidationError(msg) from exc

        tree = SyntaxTreeNode(self.md.parse(body))
        source_map = _SourceMap(source, offset)
        root = Document()
        self._build_blocks(root, tree.children, source_map, set())
        return ParsedDocument(metadata=metadata, root=root, source=source, path=path)

    def _split_front_matter(
        self, source: bytes, path: Path | None
    ) -> tuple[dict[str, typ.Any], int]:
        match = FRONT_MATTER_PATTERN.match(source)
        if match is None:
            return {}, 0
        try:
            loaded = self.yaml.load(match.group("body").decode("utf-8"))
        except (UnicodeDecodeError, YAMLError) as exc:
            msg = f"malformed front matter in {path or 'source'}: {exc}"
            raise InputValidationError(msg) from exc
        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            msg = f"front matter in {path or 'source'} must be a mapping"
            raise InputValidationError(msg)
        return {str(key): value for key, value in loaded.items()}, match.end()

    def _build_blocks(
        self,
        parent: Node,
        blocks: typ.Sequence[SyntaxTreeNode],
        source_map: _SourceMap,
        used_ids: set[str],
    ) -> None:
        for block in blocks:
            match block.type:
                case "paragraph":
                    node = TextBlock() if block.hidden else Paragraph()
                    self._build_inline(parent.append_child(node), block, source_map)
                case "heading":
                    heading = parent.append_child(Heading(level=int(block.tag[1:])))
                    self._build_inline(heading, block, source_map)
                    title = _plain_text(heading, source_map.source)
                    heading.id = _unique_slug(_slugify(title), used_ids)
                case "hr":
                    parent.append_child(ThematicBreak())
                case "code_block":
                    first_line = block.map[0] if block.map else 0
                    lines = source_map.line_segments(block.content, first_line)
                    parent.append_child(CodeBlock(lines=lines))
                case "fence":
                    first_line = block.map[0] + 1 if block.map else 0
                    language = block.info.split()[0] if block.info.strip() else None
                    parent.append_child(
                        FencedCodeBlock(
                            lines=source_map.line_segments(block.content, first_line),
                            language=language,
                        )
                    )
                case "blockquote":
                    quote = parent.append_child(Blockquote())
                    self._build_blocks(quote, block.children, source_map, used_ids)
                case "bullet_list" | "ordered_list":
                    ordered = block.type == "ordered_list"
                    start = block.attrs.get("start", 1) if ordered else 1
                    node = parent.append_child(ListBlock(ordered=ordered, start=int(start)))
                    self._build_blocks(node, block.children, source_map, used_ids)
                case "list_item":
                    item = parent.append_child(ListItem())
                    self._build_blocks(item, block.children, source_map, used_ids)
                case "html_block":
                    first_line = block.map[0] if block.map else 0
                    lines = source_map.line_segments(block.content, first_line)
                    parent.append_child(HTMLBlock(lines=lines))
                case _:
                    logger.debug("unhandled block token %s", block.type)

    @staticmethod
    def _build_inline(node: Node, block: SyntaxTreeNode, source_map: _SourceMap) -> None:
        start, stop = source_map.span(block.map)
        builder = _InlineBuilder(source_map.source, start, stop)
        for inline in block.children:
            builder.build(node, inline.children)


def _plain_text(node: Node, source: bytes) -> str:
    """Concatenate the literal text below ``node`` for heading ids."""
    parts: list[str] = []
    stack = [node]
    while stack:
        current = stack.pop()
        match current:
            case Text():
                parts.append(current.segment.value(source).decode("utf-8", "replace"))
            case String():
                parts.append(current.value.decode("utf-8", "replace"))
        stack.extend(reversed(list(current.children)))
    return "".join(parts)


__all__ = ["DocumentParser", "ParsedDocument"]
