"""Assemble one parsed Markdown page into ``<build_root>/<path>/index.html``.

:class:`PageBuilder` validates the page's front matter before any rendering
work, renders the document tree through :class:`AstRenderer`, and writes the
result atomically: HTML goes to a temporary file beside the destination and is
moved into place only once fully written, so a failed write never leaves a
truncated page behind.

Example
-------
>>> from pathlib import Path
>>> from astpages.generator import PageBuilder
>>> from astpages.markdown_parser import DocumentParser
>>> document = DocumentParser().parse_file(Path("content/about.md"))  # doctest: +SKIP
>>> PageBuilder(build_root=Path("build")).run(document)  # doctest: +SKIP
PosixPath('build/about/index.html')
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
import typing as typ
from pathlib import Path

from astpages._constants import DEFAULT_BUILD_ROOT, DOCUMENT_TEMPLATE, INDEX_FILENAME
from astpages.errors import OutputWriteError
from astpages.generator.models import PageMeta
from astpages.generator.registry import default_registry
from astpages.generator.renderer import AstRenderer

if typ.TYPE_CHECKING:
    from astpages.generator.registry import TemplateRegistry
    from astpages.markdown_parser import ParsedDocument

logger = logging.getLogger(__name__)


class PageBuilder:
    """Validate, render, and persist single pages."""

    def __init__(
        self,
        *,
        registry: TemplateRegistry | None = None,
        build_root: Path | None = None,
    ) -> None:
        """Initialize the builder with a template registry and output root.

        Parameters
        ----------
        registry : TemplateRegistry, optional
            Registry used for every page; defaults to the process-wide
            registry of packaged templates.
        build_root : Path, optional
            Directory pages are written below; defaults to ``build``.
        """
        self.registry = registry if registry is not None else default_registry()
        self.build_root = build_root or DEFAULT_BUILD_ROOT
        self.renderer = AstRenderer(self.registry)

    def render(self, document: ParsedDocument) -> tuple[PageMeta, str]:
        """Validate front matter and render the document tree to HTML.

        Raises
        ------
        InputValidationError
            If required metadata is missing or the page path is malformed.
        """
        meta = PageMeta.from_front_matter(document.metadata, template=DOCUMENT_TEMPLATE)
        html = self.renderer.render(meta, document.root, document.source)
        return meta, html

    def output_path(self, meta: PageMeta) -> Path:
        """Return ``<build_root>/<path>/index.html`` for ``meta``."""
        return self.build_root.joinpath(*meta.output_parts, INDEX_FILENAME)

    def run(self, document: ParsedDocument) -> Path:
        """Render ``document`` and write it to its output path.

        Returns
        -------
        Path
            Filesystem path to the written ``index.html``.

        Raises
        ------
        InputValidationError
            Raised before rendering when the metadata is invalid.
        UnregisteredKindError, TemplateExecutionError
            Raised when any node fails to render; nothing is written.
        OutputWriteError
            Raised when the directory or file cannot be written.
        """
        meta, html = self.render(document)
        if not html.endswith("\n"):
            html += "\n"
        output_path = self.output_path(meta)
        _write_atomically(output_path, html)
        logger.debug("wrote page %s to %s", meta.slug, output_path)
        return output_path


def _write_atomically(path: Path, text: str) -> None:
    """Write ``text`` to ``path`` through a temporary sibling file."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        msg = f"unable to create output directory '{path.parent}': {exc}"
        raise OutputWriteError(msg, path=path) from exc

    tmp_path: Path | None = None
    try:
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}-", suffix=".tmp", dir=path.parent, text=True
        )
        tmp_path = Path(tmp_name)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        tmp_path.chmod(0o644)
        tmp_path.replace(path)
    except OSError as exc:
        if tmp_path is not None:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
        msg = f"unable to write '{path}': {exc}"
        raise OutputWriteError(msg, path=path) from exc


__all__ = ["PageBuilder"]
