"""Load site configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from astpages._constants import DEFAULT_BUILD_ROOT, MARKDOWN_SUFFIX

from .models import SiteConfig, SiteConfigError


def load_site_config(path: Path) -> SiteConfig:
    """Load the YAML configuration describing which pages to build and where.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration file (for example,
        ``config/pages.yaml``).

    Returns
    -------
    SiteConfig
        Parsed configuration with the Markdown sources to render, the build
        root, and the optional templates directory.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    SiteConfigError
        If no pages are listed, entries are malformed, or ``content_dir`` is
        not a directory.
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> from astpages.config import load_site_config
    >>> config = load_site_config(Path("config/pages.yaml"))  # doctest: +SKIP
    >>> config.build_root  # doctest: +SKIP
    PosixPath('build')
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    raw: dict[str, typ.Any] = dict(loaded)
    defaults = raw.get("defaults", {}) or {}
    if not isinstance(defaults, dict):
        msg = "'defaults' must be a mapping."
        raise SiteConfigError(msg)

    build_root = Path(defaults.get("build_root", DEFAULT_BUILD_ROOT))
    templates_raw = defaults.get("templates_dir")
    templates_dir = Path(templates_raw) if templates_raw else None

    sources = _collect_sources(raw.get("pages"), raw.get("content_dir"))
    if not sources:
        msg = "No pages defined in site configuration."
        raise SiteConfigError(msg)

    return SiteConfig(sources=sources, build_root=build_root, templates_dir=templates_dir)


def _collect_sources(pages_raw: object, content_dir_raw: object) -> list[Path]:
    """Return listed pages followed by every Markdown file under ``content_dir``."""
    sources: list[Path] = []
    match pages_raw:
        case None:
            pass
        case list():
            for entry in pages_raw:
                match entry:
                    case str() if entry.strip():
                        sources.append(Path(entry.strip()))
                    case _:
                        msg = f"Page entries must be non-empty paths, got {entry!r}."
                        raise SiteConfigError(msg)
        case _:
            msg = "'pages' must be a list of Markdown paths."
            raise SiteConfigError(msg)

    if content_dir_raw:
        content_dir = Path(str(content_dir_raw))
        if not content_dir.is_dir():
            msg = f"Content directory '{content_dir}' does not exist."
            raise SiteConfigError(msg)
        sources.extend(sorted(content_dir.rglob(f"*{MARKDOWN_SUFFIX}")))

    return list(dict.fromkeys(sources))


__all__ = ["load_site_config"]
