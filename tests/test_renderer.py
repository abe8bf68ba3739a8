"""Tests for the AsciiDoc renderer with the converter mocked out."""

from unittest.mock import AsyncMock, patch

import pytest

from conftest import write_book
from quire.book.project import load_project
from quire.build.cache import CacheStore
from quire.build.convert.renderer import AsciidocRenderer
from quire.build.renderer import BuildError
from quire.errors import ConversionError, TemplateError


@pytest.fixture
def project(tmp_path):
    root = write_book(
        tmp_path / "book",
        {
            "index.yaml": {
                "summary": "index.adoc",
                "items": [{"file": "plain.adoc"}, {"file": "broken.adoc"}],
            },
            "index.adoc": "= Home\n:template: layout/page.html.j2\n\nHello.\n",
            "plain.adoc": "= Plain\n\nNo template.\n",
            "broken.adoc": "= Broken\n:template: layout/missing.html.j2\n",
            "layout/page.html.j2": (
                "<h1>{{ title }}</h1>"
                "{% for item in sidebar %}[{{ item.name }}{% if item.active %}*{% endif %}]{% endfor %}"
                "{{ body }}"
            ),
        },
        book={
            "title": "Manual",
            "base_url": "/manual",
            "convert_opts": [["-a", ["imagesdir={base_url}/img"]]],
        },
    )
    return load_project(root)


@pytest.fixture
def renderer(project):
    diff = CacheStore(project.settings).create_diff(project.src_dir)
    renderer, errors = AsciidocRenderer.from_project(project, diff)
    assert errors == []
    return renderer


class TestAsciidocRenderer:
    """Tests for AsciidocRenderer."""

    def test_context_from_project(self, renderer, project):
        cmd = renderer.context.command(project.src_dir / "plain.adoc")

        assert cmd[-2:] == ["-a", "imagesdir=/manual/img"]
        assert renderer.context.dst_dir == str(project.site_dir)

    @pytest.mark.asyncio
    async def test_plain_document_is_converted_standalone(self, renderer, project):
        with patch(
            "quire.build.convert.renderer.run_asciidoctor", AsyncMock(return_value="<html/>")
        ) as run:
            html = await renderer.render(project.src_dir / "plain.adoc")

        assert html == "<html/>"
        assert run.call_args.args[1].embedded is False

    @pytest.mark.asyncio
    async def test_template_document_is_embedded_and_wrapped(self, renderer, project):
        with patch(
            "quire.build.convert.renderer.run_asciidoctor",
            AsyncMock(return_value="<p>Hello.</p>"),
        ) as run:
            html = await renderer.render(project.src_dir / "index.adoc")

        assert run.call_args.args[1].embedded is True
        assert html == "<h1>Home</h1>[Home*][Plain][Broken]<p>Hello.</p>"

    @pytest.mark.asyncio
    async def test_missing_template_is_a_build_error(self, renderer, project):
        src_file = project.src_dir / "broken.adoc"
        with patch(
            "quire.build.convert.renderer.run_asciidoctor", AsyncMock(return_value="<p/>")
        ):
            outcome = await renderer.build(src_file)

        assert isinstance(outcome, BuildError)
        assert isinstance(outcome.error, TemplateError)

    @pytest.mark.asyncio
    async def test_missing_source_raises(self, renderer, project):
        with pytest.raises(ConversionError):
            await renderer.render(project.src_dir / "nope.adoc")

    def test_can_skip_follows_cache(self, renderer, project):
        assert renderer.can_skip(project.src_dir / "plain.adoc") is False

    def test_fork_shares_cache_diff_but_not_sidebar(self, renderer):
        forked = renderer.fork()

        assert forked.cache_diff is renderer.cache_diff
        assert forked.sidebar is not renderer.sidebar
        assert forked.context == renderer.context

    def test_check_available(self, renderer):
        with patch("quire.build.convert.renderer.shutil.which", return_value="/usr/bin/asciidoctor"):
            renderer.check_available()

    def test_sidebar_title_errors_reported(self, project):
        (project.src_dir / "plain.adoc").unlink()
        diff = CacheStore(project.settings).create_diff(project.src_dir)

        _, errors = AsciidocRenderer.from_project(project, diff)

        assert len(errors) == 1
        assert "plain.adoc" in errors[0]
