"""Per-kind content and configuration extraction for node templates.

Both extractors are pure and total: every node yields a value, and kinds
without special handling yield empty content or an empty mapping. Block and
inline structure reaches templates through ``children``; these functions
only supply what a single node carries itself.
"""

from __future__ import annotations

import typing as typ

from astpages.nodes import (
    AutoLink,
    CodeBlock,
    Emphasis,
    FencedCodeBlock,
    Heading,
    HTMLBlock,
    Image,
    Link,
    ListBlock,
    RawHTML,
    String,
    Text,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from astpages.nodes import Node, Segment

SOFT_BREAK = "\n"
HARD_BREAK = "<br/>\n"


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def _join_segments(segments: cabc.Iterable[Segment], source: bytes) -> str:
    return _decode(b"".join(segment.value(source) for segment in segments))


def extract_content(node: Node, source: bytes) -> str:
    """Return the inline content ``node`` contributes to its template.

    Parameters
    ----------
    node : Node
        Node being rendered.
    source : bytes
        The buffer the node's segments index into.

    Returns
    -------
    str
        For text, the referenced bytes followed by ``"\\n"`` when the text
        ended at a soft line break and ``"<br/>\\n"`` otherwise. For fenced
        code blocks, every line segment concatenated in order. An empty string
        for every other kind.
    """
    match node:
        case Text(segment=segment, soft_line_break=soft):
            text = _decode(segment.value(source))
            return text + (SOFT_BREAK if soft else HARD_BREAK)
        case FencedCodeBlock(lines=lines):
            return _join_segments(lines, source)
        case _:
            return ""


def extract_config(node: Node, source: bytes = b"") -> dict[str, typ.Any]:
    """Return the structural attributes templates need for ``node``.

    Headings expose ``level`` (and ``id`` when assigned); emphasis exposes
    ``tagType`` as ``"em"`` for single emphasis and ``"strong"`` for anything
    stronger. Lists, fenced code, links, images, autolinks and strings expose
    the attributes their templates place in markup. Indented code and HTML
    blocks expose their source ``lines`` joined in order, and inline HTML
    exposes its ``html``; both are sliced from ``source``.
    """
    config: dict[str, typ.Any] = {}
    match node:
        case Heading(level=level, id=heading_id):
            config["level"] = level
            if heading_id is not None:
                config["id"] = heading_id
        case Emphasis(level=level):
            config["tagType"] = "em" if level == 1 else "strong"
        case ListBlock(ordered=ordered, start=start):
            config["tagType"] = "ol" if ordered else "ul"
            if ordered:
                config["start"] = start
        case FencedCodeBlock(language=language):
            if language:
                config["language"] = language
        case CodeBlock(lines=lines) | HTMLBlock(lines=lines):
            config["lines"] = _join_segments(lines, source)
        case RawHTML(segments=segments):
            config["html"] = _join_segments(segments, source)
        case Link(destination=destination, title=title) | Image(
            destination=destination, title=title
        ):
            config["destination"] = destination
            config["title"] = title
        case AutoLink(url=url):
            config["url"] = url
        case String(value=value):
            config["value"] = _decode(value)
    return config


__all__ = ["HARD_BREAK", "SOFT_BREAK", "extract_config", "extract_content"]
