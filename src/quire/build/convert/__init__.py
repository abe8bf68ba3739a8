"""Converts AsciiDoc files using `asciidoctor` and Jinja2 templates."""

from quire.build.convert.adoc import (
    AdocMetadata,
    ConvertContext,
    extract_metadata,
    run_asciidoctor,
)
from quire.build.convert.renderer import AsciidocRenderer
from quire.build.convert.templates import Sidebar, SidebarItem, TemplateRenderer

__all__ = [
    "AdocMetadata",
    "AsciidocRenderer",
    "ConvertContext",
    "Sidebar",
    "SidebarItem",
    "TemplateRenderer",
    "extract_metadata",
    "run_asciidoctor",
]
