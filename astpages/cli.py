"""Cyclopts CLI entrypoint for rendering Markdown pages into static HTML.

The ``astpages`` console script defined here parses each Markdown source,
validates its front matter, renders the node tree through the configured
templates, and writes ``<build_root>/<path>/index.html``. Pages are built one
at a time: a page that fails is reported and skipped, the remaining pages are
still written, and the command exits non-zero at the end.

Examples
--------
Build every page listed in the default configuration:

>>> from astpages.cli import main
>>> main()  # doctest: +SKIP

Build two pages into a custom directory:

>>> from astpages.cli import app
>>> app(
...     ["build", "content/index.md", "content/about.md", "--build-root", "dist"]
... )  # doctest: +SKIP
"""

from __future__ import annotations

import dataclasses as dc
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from ._constants import DEFAULT_BUILD_ROOT, DEFAULT_CONFIG
from .config import SiteConfig, load_site_config
from .errors import AstPagesError
from .generator import PageBuilder, TemplateRegistry
from .markdown_parser import DocumentParser

app = App(name="astpages", config=cyclopts.config.Env("ASTPAGES_", command=False))  # type: ignore[unknown-argument]


@dc.dataclass(slots=True)
class BuildReport:
    """Outcome of building a batch of pages."""

    written: list[Path] = dc.field(default_factory=list)
    failed: list[tuple[Path, AstPagesError]] = dc.field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def build_pages(
    sources: typ.Iterable[Path],
    *,
    builder: PageBuilder,
    parser: DocumentParser | None = None,
) -> BuildReport:
    """Build each source independently and collect the results.

    Parameters
    ----------
    sources : Iterable[Path]
        Markdown files to render.
    builder : PageBuilder
        Builder that validates, renders, and writes each page.
    parser : DocumentParser, optional
        Parser used for every source; a new one is created when omitted.

    Returns
    -------
    BuildReport
        Written output paths and the sources that failed with their errors.
        A failure never stops the remaining pages from building.
    """
    parser = parser or DocumentParser()
    report = BuildReport()
    for source in sources:
        try:
            document = parser.parse_file(source)
            report.written.append(builder.run(document))
        except AstPagesError as exc:
            report.failed.append((source, exc))
    return report


def _resolve_site(
    sources: tuple[Path, ...],
    config: Path,
    build_root: Path | None,
    templates_dir: Path | None,
) -> SiteConfig:
    """Merge CLI arguments over the site configuration file."""
    if sources:
        site = load_site_config(config) if config.exists() else SiteConfig(sources=[])
        site.sources = list(sources)
    else:
        site = load_site_config(config)
    if build_root is not None:
        site.build_root = build_root
    if templates_dir is not None:
        site.templates_dir = templates_dir
    return site


@app.command(help="Render Markdown pages into HTML through node templates.")
def build(
    *sources: Path,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="ASTPAGES_CONFIG")
    ] = DEFAULT_CONFIG,
    build_root: typ.Annotated[
        Path | None,
        Parameter(
            help=f"Output folder (defaults to '{DEFAULT_BUILD_ROOT}')",
            env_var="ASTPAGES_BUILD_ROOT",
        ),
    ] = None,
    templates_dir: typ.Annotated[
        Path | None,
        Parameter(help="Folder with node templates", env_var="ASTPAGES_TEMPLATES_DIR"),
    ] = None,
) -> None:
    """Render the requested pages, or every configured page.

    Parameters
    ----------
    *sources : Path
        Markdown files to render; when omitted the ``pages`` listed in the
        site configuration are rendered.
    config : Path, optional
        Path to the ``pages.yaml`` configuration file (overridable via
        ``ASTPAGES_CONFIG``). Optional when sources are given explicitly.
    build_root : Path or None, optional
        Override for the output directory.
    templates_dir : Path or None, optional
        Override for the node template directory.

    Returns
    -------
    None
        Prints one line per written page and one line per failed page.

    Raises
    ------
    SystemExit
        With status 1 when at least one page failed to build.
    """
    site = _resolve_site(sources, config, build_root, templates_dir)
    registry = TemplateRegistry.from_directory(site.templates_dir)
    builder = PageBuilder(registry=registry, build_root=site.build_root)
    report = build_pages(site.sources, builder=builder)
    for path in report.written:
        print(f"wrote {_format_path(path)}")
    for source, exc in report.failed:
        print(f"failed {_format_path(source)}: {exc}", file=sys.stderr)
    if not report.ok:
        raise SystemExit(1)


def main() -> None:
    """Invoke the Cyclopts application that powers the ``astpages`` command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
