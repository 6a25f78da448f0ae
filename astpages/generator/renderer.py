"""Render a node tree into HTML by instantiating one template per node.

The output of a node is its own template instantiated with the page metadata,
its extracted ``config`` and ``content``, and the already rendered output of
its children. A node and its next siblings are joined with single newlines,
so walking first child, then siblings, reproduces document order.

The walk uses an explicit stack rather than recursion, so arbitrarily deep
documents cannot exhaust the interpreter's call stack. Nodes are still
evaluated in the order the recursive definition implies: a node's whole child
subtree, then the node's own template, then its next sibling.
"""

from __future__ import annotations

import typing as typ

from jinja2 import TemplateError

from astpages.errors import TemplateExecutionError
from astpages.generator.extractors import extract_config, extract_content
from astpages.generator.models import RenderContext, TemplateData

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from astpages.generator.models import PageMeta
    from astpages.generator.registry import TemplateRegistry
    from astpages.nodes import Node

SIBLING_SEPARATOR = "\n"


def _sibling_chain(node: Node | None) -> cabc.Iterator[Node]:
    while node is not None:
        yield node
        node = node.next_sibling


class AstRenderer:
    """Compose template output for a node, its subtree, and its siblings."""

    def __init__(self, registry: TemplateRegistry) -> None:
        """Initialize the renderer with an already loaded template registry."""
        self.registry = registry

    def render(self, meta: PageMeta, node: Node, source: bytes) -> str:
        """Render ``node`` with its subtree and following siblings.

        Parameters
        ----------
        meta : PageMeta
            Page metadata passed unchanged to every template.
        node : Node
            First node of the chain to render, typically the document root.
        source : bytes
            Buffer the nodes' segments index into.

        Returns
        -------
        str
            Fragments of ``node`` and each following sibling, joined by
            newlines.

        Raises
        ------
        UnregisteredKindError
            If a visited node's kind has no template.
        TemplateExecutionError
            If instantiating a visited node's template fails.
        """
        context = RenderContext(meta=meta, source=source)
        fragments: dict[int, str] = {}
        for current in self._post_order(node):
            children = ""
            if current.first_child is not None:
                children = self._join(current.first_child, fragments)
            fragments[id(current)] = self.render_node(context, current, children)
        return self._join(node, fragments)

    def render_node(self, context: RenderContext, node: Node, children: str) -> str:
        """Instantiate the template of ``node`` alone with its rendered children."""
        binding = self.registry.resolve(node.kind)
        data = TemplateData(
            meta=context.meta,
            config=extract_config(node, context.source),
            content=extract_content(node, context.source),
            children=children,
        )
        try:
            return binding.template.render(data.as_context())
        except (TemplateError, TypeError, ValueError) as exc:
            msg = f"rendering node kind '{node.kind}' with '{binding.name}' failed: {exc}"
            raise TemplateExecutionError(msg, kind=node.kind, template=binding.name) from exc

    @staticmethod
    def _post_order(node: Node) -> list[Node]:
        """Order nodes so every subtree precedes its root and siblings follow.

        Equivalent to the recursive walk: first child chain, then the node,
        then the node's next sibling.
        """
        ordered: list[Node] = []
        stack: list[tuple[Node, bool]] = [
            (item, False) for item in reversed(list(_sibling_chain(node)))
        ]
        while stack:
            current, expanded = stack.pop()
            if expanded:
                ordered.append(current)
                continue
            stack.append((current, True))
            stack.extend(
                (child, False) for child in reversed(list(_sibling_chain(current.first_child)))
            )
        return ordered

    @staticmethod
    def _join(first: Node, fragments: dict[int, str]) -> str:
        """Join and release the fragments of ``first`` and its siblings."""
        return SIBLING_SEPARATOR.join(
            fragments.pop(id(item)) for item in _sibling_chain(first)
        )


__all__ = ["SIBLING_SEPARATOR", "AstRenderer"]
