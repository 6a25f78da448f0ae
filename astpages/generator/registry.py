"""Bind every node kind to the Jinja template that renders it.

A :class:`TemplateRegistry` is built once, loads and compiles one template per
:class:`~astpages.nodes.NodeKind`, and is read-only afterwards. Loading fails
loudly: a missing or unparsable template means the supported node kinds and
the available presentation logic disagree, so no default is substituted.

Templates live under ``block/`` and ``inline/`` in the templates directory
and are named after their kind, for example ``block/fenced-code-block.html.jinja``
or ``inline/auto-link.html.jinja``.

Example
-------
>>> from astpages.generator.registry import TemplateRegistry
>>> from astpages.nodes import NodeKind
>>> registry = TemplateRegistry.from_directory()  # doctest: +SKIP
>>> registry.resolve(NodeKind.HEADING).name  # doctest: +SKIP
'block/heading.html.jinja'
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import logging
import threading
import types
from pathlib import Path

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    Template,
    TemplateNotFound,
    TemplateSyntaxError,
)

from astpages._constants import TEMPLATE_SUFFIX
from astpages.errors import TemplateLoadError, TemplateParseError, UnregisteredKindError
from astpages.nodes import NodeKind

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates"


def template_name(kind: NodeKind) -> str:
    """Return the template file name bound to ``kind``."""
    folder = "inline" if kind.is_inline else "block"
    return f"{folder}/{kind.value.replace('_', '-')}{TEMPLATE_SUFFIX}"


def build_environment(templates_dir: Path) -> Environment:
    """Return the Jinja environment node templates are compiled with.

    Autoescape stays off: ``content`` and ``children`` are already HTML
    fragments. ``StrictUndefined`` turns references to unsupported fields into
    render errors instead of empty strings.
    """
    return Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=False,  # noqa: S701 - fragments are pre-rendered HTML
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )


@dc.dataclass(frozen=True, slots=True)
class TemplateBinding:
    """Association of one node kind with its compiled template."""

    kind: NodeKind
    name: str
    template: Template


class TemplateRegistry:
    """Immutable lookup table from node kind to template binding."""

    def __init__(self, bindings: cabc.Iterable[TemplateBinding]) -> None:
        self._bindings: cabc.Mapping[NodeKind, TemplateBinding] = types.MappingProxyType(
            {binding.kind: binding for binding in bindings}
        )

    @classmethod
    def from_directory(
        cls,
        templates_dir: Path | None = None,
        *,
        kinds: cabc.Iterable[NodeKind] | None = None,
    ) -> TemplateRegistry:
        """Load one template per kind from ``templates_dir``.

        Parameters
        ----------
        templates_dir : Path, optional
            Directory holding ``block/`` and ``inline/`` templates; defaults to
            the templates shipped with the package.
        kinds : Iterable[NodeKind], optional
            Kinds to bind; defaults to every :class:`NodeKind`.

        Returns
        -------
        TemplateRegistry
            Registry with every requested kind bound.

        Raises
        ------
        TemplateLoadError
            If a template file is missing or unreadable.
        TemplateParseError
            If a template contains invalid Jinja syntax.
        """
        directory = templates_dir or DEFAULT_TEMPLATES_DIR
        env = build_environment(directory)
        bindings = [
            _load_binding(env, directory, kind)
            for kind in (NodeKind if kinds is None else kinds)
        ]
        logger.debug("loaded %d templates from %s", len(bindings), directory)
        return cls(bindings)

    @property
    def kinds(self) -> frozenset[NodeKind]:
        """Return every kind that has a binding."""
        return frozenset(self._bindings)

    def __contains__(self, kind: object) -> bool:
        return kind in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)

    def resolve(self, kind: NodeKind) -> TemplateBinding:
        """Return the binding for ``kind``.

        Raises
        ------
        UnregisteredKindError
            If no template is bound to ``kind``.
        """
        try:
            return self._bindings[kind]
        except KeyError as exc:
            raise UnregisteredKindError(kind) from exc


def _load_binding(env: Environment, directory: Path, kind: NodeKind) -> TemplateBinding:
    name = template_name(kind)
    try:
        template = env.get_template(name)
    except TemplateNotFound as exc:
        msg = f"template '{name}' for node kind '{kind}' not found in {directory}"
        raise TemplateLoadError(msg, kind=kind, template=name) from exc
    except TemplateSyntaxError as exc:
        msg = f"template '{name}' for node kind '{kind}' is invalid: {exc.message}"
        raise TemplateParseError(msg, kind=kind, template=name, lineno=exc.lineno) from exc
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"while reading template '{name}' for node kind '{kind}': {exc}"
        raise TemplateLoadError(msg, kind=kind, template=name) from exc
    return TemplateBinding(kind=kind, name=name, template=template)


_default_registry: TemplateRegistry | None = None
_default_registry_lock = threading.Lock()


def default_registry() -> TemplateRegistry:
    """Return the process-wide registry of packaged templates.

    The registry is built on first use; concurrent first calls are serialized
    so it is populated exactly once.
    """
    global _default_registry  # noqa: PLW0603
    if _default_registry is None:
        with _default_registry_lock:
            if _default_registry is None:
                _default_registry = TemplateRegistry.from_directory()
    return _default_registry


__all__ = [
    "DEFAULT_TEMPLATES_DIR",
    "TemplateBinding",
    "TemplateRegistry",
    "build_environment",
    "default_registry",
    "template_name",
]
