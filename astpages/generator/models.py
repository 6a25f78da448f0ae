"""Shared dataclasses used by the page rendering pipeline."""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import datetime as dt
import posixpath
import types
import typing as typ

from astpages._constants import DOCUMENT_TEMPLATE, REQUIRED_META_FIELDS
from astpages.errors import InputValidationError

_SCALAR_TYPES = (str, int, float, bool, dt.date)


def _require_string(metadata: cabc.Mapping[str, typ.Any], field: str) -> str:
    """Return ``metadata[field]`` coerced to ``str`` or raise a field error."""
    if field not in metadata or metadata[field] is None:
        msg = f'page does not contain "{field}" in metadata'
        raise InputValidationError(msg, field=field)
    value = metadata[field]
    if not isinstance(value, _SCALAR_TYPES):
        msg = f'page metadata field "{field}" must be a scalar value'
        raise InputValidationError(msg, field=field)
    return str(value)


def _validate_path(path: str) -> str:
    if not path.startswith("/"):
        msg = 'page path doesn\'t begin with a "/" (forward slash)'
        raise InputValidationError(msg, field="path")
    if ".." in path.split("/"):
        msg = f'page path "{path}" must not contain ".." segments'
        raise InputValidationError(msg, field="path")
    return path


@dc.dataclass(frozen=True, slots=True)
class PageMeta:
    """Validated front matter handed to every template.

    Attributes
    ----------
    title : str
        Page title.
    description : str
        Summary used for meta tags.
    slug : str
        Short identifier of the page.
    path : str
        Output path of the page; always starts with ``/``.
    template : str
        Name of the document template the page renders through.
    extra : Mapping[str, Any]
        Read-only view of every other front-matter key.
    """

    title: str
    description: str
    slug: str
    path: str
    template: str = DOCUMENT_TEMPLATE
    extra: cabc.Mapping[str, typ.Any] = dc.field(
        default_factory=lambda: types.MappingProxyType({})
    )

    @classmethod
    def from_front_matter(
        cls,
        metadata: cabc.Mapping[str, typ.Any],
        *,
        template: str = DOCUMENT_TEMPLATE,
    ) -> PageMeta:
        """Validate a front-matter mapping and build a :class:`PageMeta`.

        Parameters
        ----------
        metadata : Mapping[str, Any]
            Front matter produced by the document parser.
        template : str, optional
            Document template identity, kept separate from the page path.

        Returns
        -------
        PageMeta
            Frozen metadata with ``title``, ``description``, ``slug`` and
            ``path`` copied verbatim as strings.

        Raises
        ------
        InputValidationError
            If a required field is missing, ``None`` or not a scalar, or if
            ``path`` does not start with ``/``. The error's ``field``
            attribute names the offending key.
        """
        values = {field: _require_string(metadata, field) for field in REQUIRED_META_FIELDS}
        values["path"] = _validate_path(values["path"])
        extra = {
            key: value for key, value in metadata.items() if key not in REQUIRED_META_FIELDS
        }
        return cls(template=template, extra=types.MappingProxyType(extra), **values)

    @property
    def output_parts(self) -> tuple[str, ...]:
        """Return the non-empty segments of ``path`` for output placement."""
        normalized = posixpath.normpath(self.path)
        return tuple(part for part in normalized.split("/") if part)


@dc.dataclass(frozen=True, slots=True)
class RenderContext:
    """Inputs shared unchanged by every node visited during one render."""

    meta: PageMeta
    source: bytes


@dc.dataclass(frozen=True, slots=True)
class TemplateData:
    """The four values a node template is instantiated with."""

    meta: PageMeta
    config: dict[str, typ.Any]
    content: str
    children: str

    def as_context(self) -> dict[str, typ.Any]:
        return {
            "meta": self.meta,
            "config": self.config,
            "content": self.content,
            "children": self.children,
        }


__all__ = ["PageMeta", "RenderContext", "TemplateData"]
