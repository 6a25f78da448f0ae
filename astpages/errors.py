"""Exception hierarchy raised while parsing, rendering, and writing pages.

Every error carries the context needed to diagnose it without re-running the
build: the offending node kind, the template name, the front-matter field, or
the output path. Nothing in the package retries; callers that batch many
pages decide whether a failure stops the run.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .nodes import NodeKind


class AstPagesError(Exception):
    """Base exception for every astpages failure."""


class InputValidationError(AstPagesError, ValueError):
    """Raised for malformed sources, missing metadata, or bad page paths."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class UnregisteredKindError(AstPagesError, LookupError):
    """Raised when a node kind has no template binding."""

    def __init__(self, kind: NodeKind | str) -> None:
        super().__init__(f"node kind '{kind}' doesn't have a template assigned to it")
        self.kind = kind


class TemplateLoadError(AstPagesError):
    """Raised when a template body is missing or unreadable."""

    def __init__(self, message: str, *, kind: NodeKind, template: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.template = template


class TemplateParseError(TemplateLoadError):
    """Raised when a template body is not valid template syntax."""

    def __init__(
        self,
        message: str,
        *,
        kind: NodeKind,
        template: str,
        lineno: int | None = None,
    ) -> None:
        super().__init__(message, kind=kind, template=template)
        self.lineno = lineno


class TemplateExecutionError(AstPagesError):
    """Raised when instantiating a template for a node fails."""

    def __init__(self, message: str, *, kind: NodeKind, template: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.template = template


class OutputWriteError(AstPagesError, OSError):
    """Raised when the output directory or file cannot be written."""

    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message)
        self.path = path


__all__ = [
    "AstPagesError",
    "InputValidationError",
    "OutputWriteError",
    "TemplateExecutionError",
    "TemplateLoadError",
    "TemplateParseError",
    "UnregisteredKindError",
]
