"""Template application and sidebar navigation.

A document opts in to template rendering with a `:template:` header
attribute. The converter then runs in embedded mode and its output is passed
to a Jinja2 template as `body` together with the page title, attributes and
the book's sidebar.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Optional

import jinja2
from markupsafe import Markup

from quire.book.project import BookProject
from quire.book.tree import DirectoryNode, FileNode
from quire.constants import DEFAULT_ARTICLE_TEMPLATE, UNTITLED
from quire.errors import TemplateError
from quire.theme import TEMPLATES_DIR

logger = logging.getLogger(__name__)


@dataclass
class SidebarItem:
    """One navigation entry.

    Attributes:
        name: Displayed title.
        url: Absolute site URL of the document.
        depth: Nesting level, 0 for top-level entries.
        open: Whether the entry is expanded by default.
        active: Whether this is the page being rendered.
        children: Entries of a directory, empty for a file.
    """

    name: str
    url: str
    depth: int
    open: bool = True
    active: bool = False
    children: list["SidebarItem"] = field(default_factory=list)


def read_title(name: str, src_file: Path) -> str:
    """Sidebar title of a document.

    The declared name wins; otherwise the first line is used when it is a
    `= Title` heading.

    Raises:
        OSError: If the file cannot be read.
    """
    if name:
        return name

    with open(src_file, encoding="utf-8") as f:
        first_line = f.readline()

    if first_line.startswith("= "):
        return first_line[2:].strip()
    return UNTITLED


def page_url(project: BookProject, src_file: Path) -> str:
    """Static site URL of a source file's rendered output."""
    return f"{project.book.base_url}/{project.output_relpath(src_file).as_posix()}"


class Sidebar:
    """Navigation tree of the whole book, computed once per build."""

    def __init__(self, items: list[SidebarItem], fold_level: Optional[int] = None):
        self.items = items
        self.fold_level = fold_level

    @classmethod
    def from_project(cls, project: BookProject) -> tuple["Sidebar", list[str]]:
        """Build the sidebar from the document tree.

        Entries whose title cannot be read are left out and reported.

        Returns:
            Tuple of (Sidebar, list of error messages).
        """
        errors: list[str] = []
        fold_level = project.book.fold_level
        tree = project.tree

        items: list[SidebarItem] = []
        summary = cls._file_item(project, tree.name, tree.summary, 0, fold_level, errors)
        if summary is not None:
            items.append(summary)
        items.extend(cls._collect(project, tree, 0, fold_level, errors))

        return cls(items, fold_level), errors

    @classmethod
    def _collect(
        cls,
        project: BookProject,
        node: DirectoryNode,
        depth: int,
        fold_level: Optional[int],
        errors: list[str],
    ) -> list[SidebarItem]:
        items = []
        for child in node.children:
            if isinstance(child, FileNode):
                item = cls._file_item(project, child.name, child.path, depth, fold_level, errors)
            else:
                item = cls._file_item(
                    project, child.name, child.summary, depth, fold_level, errors
                )
                if item is not None:
                    item.children = cls._collect(project, child, depth + 1, fold_level, errors)
            if item is not None:
                items.append(item)
        return items

    @staticmethod
    def _file_item(
        project: BookProject,
        name: str,
        src_file: Path,
        depth: int,
        fold_level: Optional[int],
        errors: list[str],
    ) -> SidebarItem | None:
        try:
            title = read_title(name, src_file)
        except OSError as e:
            errors.append(f"Unable to read title of {src_file}: {e}")
            return None
        return SidebarItem(
            name=title,
            url=page_url(project, src_file),
            depth=depth,
            open=fold_level is None or depth < fold_level,
        )

    def for_page(self, url: str) -> list[dict[str, Any]]:
        """Sidebar entries as plain dicts with the given page marked active."""
        items = copy.deepcopy(self.items)
        self._mark_active(items, url)
        return [asdict(item) for item in items]

    @classmethod
    def _mark_active(cls, items: list[SidebarItem], url: str) -> bool:
        found = False
        for item in items:
            item.active = item.url == url
            if cls._mark_active(item.children, url):
                item.open = True
                found = True
            found = found or item.active
        return found


class TemplateRenderer:
    """Applies Jinja2 templates to converted documents."""

    def __init__(self, src_dir: Path, use_default_theme: bool = False):
        self.src_dir = src_dir
        self.use_default_theme = use_default_theme
        self._environments: dict[Path, jinja2.Environment] = {}

    def _environment(self, search_path: Path) -> jinja2.Environment:
        """Return the environment for a template directory, creating it once."""
        env = self._environments.get(search_path)
        if env is None:
            env = jinja2.Environment(
                loader=jinja2.FileSystemLoader(str(search_path)),
                undefined=jinja2.StrictUndefined,
                autoescape=jinja2.select_autoescape(default_for_string=True, default=True),
                keep_trailing_newline=True,
            )
            self._environments[search_path] = env
        return env

    def render(self, template_ref: str, data: dict[str, Any], src_file: Path) -> str:
        """Render a document through a template.

        With the default theme the bundled article template is used whatever
        the reference names; otherwise the reference is a path relative to
        the source directory.

        Args:
            template_ref: Value of the document's template attribute.
            data: Template variables; `body` is inserted unescaped.
            src_file: Source file, for error messages.

        Returns:
            The rendered page.

        Raises:
            TemplateError: If the template cannot be found or rendered.
        """
        if not template_ref:
            raise TemplateError(f"`template` attribute without path in {src_file}")

        if self.use_default_theme:
            search_path, name = TEMPLATES_DIR, DEFAULT_ARTICLE_TEMPLATE
        else:
            template_path = self.src_dir / template_ref
            search_path, name = template_path.parent, template_path.name

        context = dict(data)
        context["body"] = Markup(data.get("body", ""))

        try:
            template = self._environment(search_path).get_template(name)
            return template.render(**context)
        except jinja2.TemplateNotFound as e:
            raise TemplateError(
                f"Template `{template_ref}` not found for {src_file} (searched {search_path})"
            ) from e
        except jinja2.TemplateError as e:
            raise TemplateError(f"Failed to apply template `{template_ref}` to {src_file}", str(e)) from e
