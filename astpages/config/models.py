"""Typed dataclasses describing astpages site configuration structures."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path

from astpages._constants import DEFAULT_BUILD_ROOT


class SiteConfigError(ValueError):
    """Raised when the site configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class SiteConfig:
    """Pages to build alongside the shared output and template settings.

    Attributes
    ----------
    sources : list[Path]
        Markdown files to render, in build order and without duplicates.
    build_root : Path
        Directory every ``<path>/index.html`` is written below.
    templates_dir : Path | None
        Directory holding node templates; ``None`` selects the packaged set.
    """

    sources: list[Path]
    build_root: Path = DEFAULT_BUILD_ROOT
    templates_dir: Path | None = None


__all__ = ["SiteConfig", "SiteConfigError"]
