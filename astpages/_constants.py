"""Common literal values used across astpages.

These constants keep output locations and template names centralized so the
page builder, the template registry, and tests can import the same values
without drifting. Intended for internal use within the astpages package.

Examples
--------
>>> from astpages import _constants
>>> _constants.INDEX_FILENAME
'index.html'
>>> _constants.DOCUMENT_TEMPLATE
'block/document.html.jinja'
"""

from pathlib import Path

DEFAULT_BUILD_ROOT = Path("build")
DEFAULT_CONFIG = Path("config/pages.yaml")
INDEX_FILENAME = "index.html"
TEMPLATE_SUFFIX = ".html.jinja"
DOCUMENT_TEMPLATE = f"block/document{TEMPLATE_SUFFIX}"
MARKDOWN_SUFFIX = ".md"
REQUIRED_META_FIELDS = ("title", "description", "slug", "path")
