"""Typed node tree produced by the Markdown parser and consumed by the renderer.

Nodes form a first-child / next-sibling tree: a parent owns its children and
reaches them through ``first_child`` followed by the ``next_sibling`` chain.
Walking that structure depth first reconstructs document order exactly.
Text-bearing nodes never copy source text; they hold :class:`Segment` byte
ranges into the original source buffer.

Example
-------
>>> from astpages.nodes import Document, Paragraph, Segment, Text
>>> doc = Document()
>>> para = doc.append_child(Paragraph())
>>> _ = para.append_child(Text(segment=Segment(0, 5)))
>>> [child.kind.value for child in doc.children]
['paragraph']
"""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

NodeT = typ.TypeVar("NodeT", bound="Node")


class NodeKind(enum.StrEnum):
    """Every node kind the renderer knows how to dispatch."""

    DOCUMENT = "document"
    TEXT_BLOCK = "text_block"
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    THEMATIC_BREAK = "thematic_break"
    CODE_BLOCK = "code_block"
    FENCED_CODE_BLOCK = "fenced_code_block"
    BLOCKQUOTE = "blockquote"
    LIST = "list"
    LIST_ITEM = "list_item"
    HTML_BLOCK = "html_block"
    TEXT = "text"
    STRING = "string"
    CODE_SPAN = "code_span"
    EMPHASIS = "emphasis"
    LINK = "link"
    IMAGE = "image"
    AUTO_LINK = "auto_link"
    RAW_HTML = "raw_html"

    @property
    def is_inline(self) -> bool:
        """Return ``True`` for kinds that appear inside a block's text."""
        return self in INLINE_KINDS


INLINE_KINDS = frozenset(
    {
        NodeKind.TEXT,
        NodeKind.STRING,
        NodeKind.CODE_SPAN,
        NodeKind.EMPHASIS,
        NodeKind.LINK,
        NodeKind.IMAGE,
        NodeKind.AUTO_LINK,
        NodeKind.RAW_HTML,
    }
)


@dc.dataclass(frozen=True, slots=True)
class Segment:
    """Half-open byte range ``[start, stop)`` into the source buffer."""

    start: int
    stop: int

    def value(self, source: bytes) -> bytes:
        """Return the bytes this segment covers in ``source``."""
        return source[self.start : self.stop]


@dc.dataclass(eq=False, slots=True)
class Node:
    """Base node carrying the tree links shared by every kind."""

    kind: typ.ClassVar[NodeKind]

    parent: Node | None = dc.field(default=None, init=False, repr=False)
    first_child: Node | None = dc.field(default=None, init=False, repr=False)
    last_child: Node | None = dc.field(default=None, init=False, repr=False)
    next_sibling: Node | None = dc.field(default=None, init=False, repr=False)

    def has_children(self) -> bool:
        """Return ``True`` when the node owns at least one child."""
        return self.first_child is not None

    @property
    def children(self) -> cabc.Iterator[Node]:
        """Iterate the sibling chain that starts at ``first_child``."""
        child = self.first_child
        while child is not None:
            yield child
            child = child.next_sibling

    def append_child(self, child: NodeT) -> NodeT:
        """Attach ``child`` after the current last child and return it."""
        child.parent = self
        child.next_sibling = None
        if self.last_child is None:
            self.first_child = child
        else:
            self.last_child.next_sibling = child
        self.last_child = child
        return child


@dc.dataclass(eq=False, slots=True)
class Document(Node):
    """Root of a parsed page."""

    kind: typ.ClassVar[NodeKind] = NodeKind.DOCUMENT


@dc.dataclass(eq=False, slots=True)
class TextBlock(Node):
    """Paragraph body without paragraph markup, used by tight list items."""

    kind: typ.ClassVar[NodeKind] = NodeKind.TEXT_BLOCK


@dc.dataclass(eq=False, slots=True)
class Paragraph(Node):
    kind: typ.ClassVar[NodeKind] = NodeKind.PARAGRAPH


@dc.dataclass(eq=False, slots=True)
class Heading(Node):
    """ATX or setext heading; ``id`` is assigned by the parser when known."""

    kind: typ.ClassVar[NodeKind] = NodeKind.HEADING

    level: int = 1
    id: str | None = None


@dc.dataclass(eq=False, slots=True)
class ThematicBreak(Node):
    kind: typ.ClassVar[NodeKind] = NodeKind.THEMATIC_BREAK


@dc.dataclass(eq=False, slots=True)
class CodeBlock(Node):
    """Indented code block; every line keeps its own source segment."""

    kind: typ.ClassVar[NodeKind] = NodeKind.CODE_BLOCK

    lines: list[Segment] = dc.field(default_factory=list)


@dc.dataclass(eq=False, slots=True)
class FencedCodeBlock(CodeBlock):
    """Fenced code block with an optional language from its info string."""

    kind: typ.ClassVar[NodeKind] = NodeKind.FENCED_CODE_BLOCK

    language: str | None = None


@dc.dataclass(eq=False, slots=True)
class Blockquote(Node):
    kind: typ.ClassVar[NodeKind] = NodeKind.BLOCKQUOTE


@dc.dataclass(eq=False, slots=True)
class ListBlock(Node):
    """Ordered or bullet list."""

    kind: typ.ClassVar[NodeKind] = NodeKind.LIST

    ordered: bool = False
    start: int = 1


@dc.dataclass(eq=False, slots=True)
class ListItem(Node):
    kind: typ.ClassVar[NodeKind] = NodeKind.LIST_ITEM


@dc.dataclass(eq=False, slots=True)
class HTMLBlock(Node):
    kind: typ.ClassVar[NodeKind] = NodeKind.HTML_BLOCK

    lines: list[Segment] = dc.field(default_factory=list)


@dc.dataclass(eq=False, slots=True)
class Text(Node):
    """Run of literal text.

    ``soft_line_break`` marks text that ended at a wrapped source line;
    ``hard_line_break`` marks text followed by an explicit break.
    """

    kind: typ.ClassVar[NodeKind] = NodeKind.TEXT

    segment: Segment = dc.field(default_factory=lambda: Segment(0, 0))
    soft_line_break: bool = False
    hard_line_break: bool = False


@dc.dataclass(eq=False, slots=True)
class String(Node):
    """Text that has no backing segment in the source buffer."""

    kind: typ.ClassVar[NodeKind] = NodeKind.STRING

    value: bytes = b""


@dc.dataclass(eq=False, slots=True)
class CodeSpan(Node):
    kind: typ.ClassVar[NodeKind] = NodeKind.CODE_SPAN


@dc.dataclass(eq=False, slots=True)
class Emphasis(Node):
    """Emphasis run; ``level`` is 1 for ``*em*`` and 2 for ``**strong**``."""

    kind: typ.ClassVar[NodeKind] = NodeKind.EMPHASIS

    level: int = 1


@dc.dataclass(eq=False, slots=True)
class Link(Node):
    kind: typ.ClassVar[NodeKind] = NodeKind.LINK

    destination: str = ""
    title: str = ""


@dc.dataclass(eq=False, slots=True)
class Image(Node):
    """Image reference; the alt text lives in the child nodes."""

    kind: typ.ClassVar[NodeKind] = NodeKind.IMAGE

    destination: str = ""
    title: str = ""


@dc.dataclass(eq=False, slots=True)
class AutoLink(Node):
    kind: typ.ClassVar[NodeKind] = NodeKind.AUTO_LINK

    url: str = ""


@dc.dataclass(eq=False, slots=True)
class RawHTML(Node):
    kind: typ.ClassVar[NodeKind] = NodeKind.RAW_HTML

    segments: list[Segment] = dc.field(default_factory=list)


__all__ = [
    "INLINE_KINDS",
    "AutoLink",
    "Blockquote",
    "CodeBlock",
    "CodeSpan",
    "Document",
    "Emphasis",
    "FencedCodeBlock",
    "HTMLBlock",
    "Heading",
    "Image",
    "Link",
    "ListBlock",
    "ListItem",
    "Node",
    "NodeKind",
    "Paragraph",
    "RawHTML",
    "Segment",
    "String",
    "Text",
    "TextBlock",
    "ThematicBreak",
]
