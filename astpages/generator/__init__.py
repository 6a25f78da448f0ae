"""Utilities for rendering node trees into HTML pages through templates."""

from .extractors import extract_config, extract_content
from .models import PageMeta, RenderContext, TemplateData
from .page_generator import PageBuilder
from .registry import TemplateBinding, TemplateRegistry, default_registry
from .renderer import AstRenderer

__all__ = [
    "AstRenderer",
    "PageBuilder",
    "PageMeta",
    "RenderContext",
    "TemplateBinding",
    "TemplateData",
    "TemplateRegistry",
    "default_registry",
    "extract_config",
    "extract_content",
]
