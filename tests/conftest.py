"""Shared pytest fixtures for all tests.

Book projects are written into tmp_path with a small helper so each test can
describe exactly the tree it needs.
"""

import asyncio
from pathlib import Path
from typing import Any

import pytest
import yaml

from quire.build.cache import CacheDiff
from quire.build.renderer import Renderer
from quire.config import load_settings
from quire.errors import ConversionError


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Clear the load_settings cache around each test."""
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()


def write_book(root: Path, files: dict[str, Any], book: dict | None = None) -> Path:
    """Write a book project and return its root.

    Args:
        root: Project root; created if missing.
        files: Source-relative path -> content. Dicts and lists are dumped as
            YAML, anything else is written as text.
        book: Book file content. Defaults to a minimal book.
    """
    root.mkdir(parents=True, exist_ok=True)
    (root / "book.yaml").write_text(yaml.safe_dump(book or {"title": "Test Book"}))

    src = root / "src"
    for rel, content in files.items():
        path = src / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, (dict, list)):
            path.write_text(yaml.safe_dump(content))
        else:
            path.write_text(content)
    return root


@pytest.fixture
def book_root(tmp_path):
    """A book with two top-level files and one sub-directory.

    src/
    ├── index.yaml      summary index.adoc, items a.adoc, b.adoc, guide/
    ├── index.adoc
    ├── a.adoc
    ├── b.adoc
    └── guide/
        ├── index.yaml  summary index.adoc, items setup.adoc
        ├── index.adoc
        └── setup.adoc
    """
    return write_book(
        tmp_path / "book",
        {
            "index.yaml": {
                "summary": {"name": "Home", "path": "index.adoc"},
                "items": [
                    {"file": "a.adoc", "name": "Chapter A"},
                    {"file": "b.adoc"},
                    {"dir": "guide"},
                ],
            },
            "index.adoc": "= Home\n\nWelcome.\n",
            "a.adoc": "= A\n\nFirst chapter.\n",
            "b.adoc": "= B\n\nSecond chapter.\n",
            "guide/index.yaml": {
                "summary": "index.adoc",
                "items": [{"file": "setup.adoc"}],
            },
            "guide/index.adoc": "= Guide\n",
            "guide/setup.adoc": "= Setup\n\nInstall it.\n",
        },
    )


class FakeRenderer(Renderer):
    """Renderer that wraps file contents in a paragraph.

    Files whose name is in `failing` raise a ConversionError. Every forked copy
    appends to the same `rendered` list.
    """

    def __init__(self, cache_diff: CacheDiff, failing=(), rendered=None):
        self.cache_diff = cache_diff
        self.failing = set(failing)
        self.rendered = rendered if rendered is not None else []

    def can_skip(self, src_file: Path) -> bool:
        return not self.cache_diff.needs_build(src_file)

    def fork(self) -> "FakeRenderer":
        return FakeRenderer(self.cache_diff, self.failing, self.rendered)

    async def render(self, src_file: Path) -> str:
        await asyncio.sleep(0)
        if src_file.name in self.failing:
            raise ConversionError(src_file, f"Failed to convert file: {src_file}")
        self.rendered.append(src_file)
        return f"<p>{src_file.read_text()}</p>"


@pytest.fixture
def fake_renderer_factory():
    """Renderer factory for build_book that records every render."""
    rendered: list[Path] = []

    def factory(project, cache_diff, failing=()):
        return FakeRenderer(cache_diff, failing, rendered), []

    factory.rendered = rendered
    return factory


def fail_writes(monkeypatch, predicate):
    """Make Path.write_text raise OSError for every path matching predicate."""
    original = Path.write_text

    def write_text(self, *args, **kwargs):
        if predicate(self):
            raise OSError(f"No space left on device: {self}")
        return original(self, *args, **kwargs)

    monkeypatch.setattr(Path, "write_text", write_text)
