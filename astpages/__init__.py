"""Render Markdown pages into static HTML, one template per syntax node.

Markdown sources are parsed into a typed node tree, every node is matched to
a Jinja template by kind, and the rendered fragments are composed children
first, then siblings, into ``<build_root>/<path>/index.html``.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from astpages import main
>>> main()  # doctest: +SKIP
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
