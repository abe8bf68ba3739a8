"""AsciiDoc implementation of the renderer capability."""

from __future__ import annotations

import asyncio
import copy
import logging
import shutil
from pathlib import Path

from quire.book.project import BookProject
from quire.build.cache import CacheDiff
from quire.build.convert.adoc import ConvertContext, extract_metadata, run_asciidoctor
from quire.build.convert.templates import Sidebar, TemplateRenderer, page_url
from quire.build.renderer import Renderer
from quire.constants import TEMPLATE_ATTRIBUTE
from quire.errors import ConversionError, ConverterNotFoundError

logger = logging.getLogger(__name__)


class AsciidocRenderer(Renderer):
    """Renders AsciiDoc sources with `asciidoctor` and optional templates."""

    def __init__(
        self,
        project: BookProject,
        cache_diff: CacheDiff,
        context: ConvertContext,
        sidebar: Sidebar,
        templates: TemplateRenderer,
    ):
        self.project = project
        self.cache_diff = cache_diff
        self.context = context
        self.sidebar = sidebar
        self.templates = templates

    @classmethod
    def from_project(
        cls, project: BookProject, cache_diff: CacheDiff
    ) -> tuple["AsciidocRenderer", list[str]]:
        """Create a renderer for a project.

        Returns:
            Tuple of (renderer, setup errors such as unreadable sidebar titles).
        """
        context = ConvertContext(
            src_dir=str(project.src_dir),
            dst_dir=str(project.site_dir),
            base_url=project.book.base_url,
            options=tuple((opt.flag, tuple(opt.args)) for opt in project.book.convert_opts),
            converter=project.settings.build.converter,
        )
        sidebar, errors = Sidebar.from_project(project)
        templates = TemplateRenderer(project.src_dir, project.book.use_default_theme)
        logger.debug("AsciiDoc renderer created")
        return cls(project, cache_diff, context, sidebar, templates), errors

    def check_available(self) -> None:
        """Ensure the converter executable is on PATH.

        Raises:
            ConverterNotFoundError: If it is not.
        """
        if shutil.which(self.context.converter) is None:
            raise ConverterNotFoundError(f"`{self.context.converter}` is not in PATH")

    def can_skip(self, src_file: Path) -> bool:
        return not self.cache_diff.needs_build(src_file)

    def fork(self) -> "AsciidocRenderer":
        # The project and cache diff are read-only during rendering and shared.
        return AsciidocRenderer(
            self.project,
            self.cache_diff,
            copy.deepcopy(self.context),
            copy.deepcopy(self.sidebar),
            self.templates,
        )

    async def render(self, src_file: Path) -> str:
        if not src_file.is_file():
            raise ConversionError(src_file, f"Given invalid source file path: {src_file}")

        try:
            text = await asyncio.to_thread(src_file.read_text, encoding="utf-8")
        except OSError as e:
            raise ConversionError(src_file, f"Unable to read source file {src_file}", str(e)) from e

        metadata = extract_metadata(text, self.context)
        template_ref = metadata.find_attr(TEMPLATE_ATTRIBUTE)

        # Embedded mode when a template supplies the page header and footer
        context = self.context.with_embedded() if template_ref is not None else self.context
        html = await run_asciidoctor(src_file, context)

        if template_ref is None:
            return html

        url = page_url(self.project, src_file)
        data = {
            "body": html,
            "title": metadata.title or "",
            "attributes": dict(metadata.attributes),
            "base_url": self.project.book.base_url,
            "url": url,
            "book": {
                "title": self.project.book.title,
                "authors": list(self.project.book.authors),
            },
            "sidebar": self.sidebar.for_page(url),
        }
        return self.templates.render(template_ref, data, src_file)
