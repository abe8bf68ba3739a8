"""Tests for sidebar navigation and template application."""

from pathlib import Path

import pytest

from conftest import write_book
from quire.book.project import load_project
from quire.build.convert.templates import Sidebar, TemplateRenderer, page_url, read_title
from quire.constants import UNTITLED
from quire.errors import TemplateError


class TestReadTitle:
    """Tests for sidebar titles."""

    def test_declared_name_wins(self, tmp_path):
        path = tmp_path / "a.adoc"
        path.write_text("= Heading\n")

        assert read_title("Declared", path) == "Declared"

    def test_heading_line_used(self, tmp_path):
        path = tmp_path / "a.adoc"
        path.write_text("= Heading\n\nBody\n")

        assert read_title("", path) == "Heading"

    def test_untitled_fallback(self, tmp_path):
        path = tmp_path / "a.adoc"
        path.write_text("Just text\n")

        assert read_title("", path) == UNTITLED


class TestSidebar:
    """Tests for Sidebar.from_project() and for_page()."""

    def test_items_follow_tree(self, book_root):
        project = load_project(book_root)

        sidebar, errors = Sidebar.from_project(project)

        assert errors == []
        assert [i.name for i in sidebar.items] == ["Home", "Chapter A", "B", "Guide"]
        guide = sidebar.items[3]
        assert guide.url == "/guide/index.html"
        assert [c.name for c in guide.children] == ["Setup"]
        assert guide.children[0].depth == 1

    def test_fold_level_closes_deep_entries(self, tmp_path):
        root = write_book(
            tmp_path / "book",
            {
                "index.yaml": {"summary": "index.adoc", "items": [{"dir": "part"}]},
                "index.adoc": "= Home\n",
                "part/index.yaml": {"summary": "index.adoc", "items": [{"dir": "sub"}]},
                "part/index.adoc": "= Part\n",
                "part/sub/index.yaml": {"summary": "index.adoc"},
                "part/sub/index.adoc": "= Sub\n",
            },
            book={"title": "T", "base_url": "/b", "fold_level": 1},
        )
        sidebar, _ = Sidebar.from_project(load_project(root))

        part = sidebar.items[1]
        assert part.open is True
        assert part.children[0].open is False

    def test_for_page_marks_active_and_opens_ancestors(self, tmp_path):
        root = write_book(
            tmp_path / "book",
            {
                "index.yaml": {"summary": "index.adoc", "items": [{"dir": "part"}]},
                "index.adoc": "= Home\n",
                "part/index.yaml": {"summary": "index.adoc", "items": [{"file": "deep.adoc"}]},
                "part/index.adoc": "= Part\n",
                "part/deep.adoc": "= Deep\n",
            },
            book={"title": "T", "fold_level": 0},
        )
        sidebar, _ = Sidebar.from_project(load_project(root))

        items = sidebar.for_page("/part/deep.html")

        part = items[1]
        assert part["open"] is True
        assert part["children"][0]["active"] is True
        assert items[0]["active"] is False
        # The shared sidebar is not modified
        assert sidebar.items[1].children[0].active is False

    def test_page_url_uses_base_url(self, tmp_path):
        root = write_book(
            tmp_path / "book",
            {"index.yaml": {"summary": "index.adoc"}, "index.adoc": "= Home\n"},
            book={"title": "T", "base_url": "/manual/"},
        )
        project = load_project(root)

        assert page_url(project, project.src_dir / "index.adoc") == "/manual/index.html"


class TestTemplateRenderer:
    """Tests for TemplateRenderer.render()."""

    def test_custom_template_gets_unescaped_body(self, tmp_path):
        (tmp_path / "page.html.j2").write_text("<title>{{ title }}</title>{{ body }}")
        renderer = TemplateRenderer(tmp_path)

        html = renderer.render(
            "page.html.j2", {"title": "A & B", "body": "<p>hi</p>"}, tmp_path / "a.adoc"
        )

        assert html == "<title>A &amp; B</title><p>hi</p>"

    def test_environment_reused_across_renders(self, tmp_path):
        (tmp_path / "page.html.j2").write_text("{{ body }}")
        renderer = TemplateRenderer(tmp_path)

        first = renderer.render("page.html.j2", {"body": "one"}, tmp_path / "a.adoc")
        second = renderer.render("page.html.j2", {"body": "two"}, tmp_path / "b.adoc")

        assert (first, second) == ("one", "two")
        assert renderer._environment(tmp_path) is renderer._environment(tmp_path)
        assert list(renderer._environments) == [tmp_path]

    def test_missing_template_raises(self, tmp_path):
        renderer = TemplateRenderer(tmp_path)

        with pytest.raises(TemplateError, match="not found"):
            renderer.render("nope.html.j2", {"body": ""}, tmp_path / "a.adoc")

    def test_undefined_variable_raises(self, tmp_path):
        (tmp_path / "page.html.j2").write_text("{{ missing }}")
        renderer = TemplateRenderer(tmp_path)

        with pytest.raises(TemplateError):
            renderer.render("page.html.j2", {"body": ""}, tmp_path / "a.adoc")

    def test_default_theme_template(self, tmp_path):
        renderer = TemplateRenderer(tmp_path, use_default_theme=True)
        data = {
            "body": "<p>content</p>",
            "title": "Guide",
            "attributes": {},
            "base_url": "",
            "url": "/index.html",
            "book": {"title": "Manual", "authors": []},
            "sidebar": [
                {
                    "name": "Home",
                    "url": "/index.html",
                    "depth": 0,
                    "open": True,
                    "active": True,
                    "children": [],
                }
            ],
        }

        html = renderer.render("anything", data, Path("a.adoc"))

        assert "<p>content</p>" in html
        assert "Manual" in html
        assert "/theme/css/quire.css" in html
