"""Load and validate site configuration YAML for astpages builds.

This subpackage parses the project's ``pages.yaml`` file, resolves the list of
Markdown sources (explicit entries plus an optional ``content_dir``), and
produces a :class:`SiteConfig` that the CLI hands to the page builder.

Examples
--------
>>> from pathlib import Path
>>> from astpages.config import load_site_config
>>> site = load_site_config(Path("config/pages.yaml"))  # doctest: +SKIP
>>> site.sources[0]  # doctest: +SKIP
PosixPath('content/index.md')
"""

from .loader import load_site_config
from .models import SiteConfig, SiteConfigError

__all__ = ["SiteConfig", "SiteConfigError", "load_site_config"]
