"""Tests for the document tree loader."""

import os
from pathlib import Path

import pytest

from quire.book.tree import (
    DirectoryNode,
    FileNode,
    LoadErrorKind,
    iter_documents,
    load_index_record,
    load_tree,
)
from quire.errors import IndexParseError, SummaryNotFoundError


def write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


class TestLoadIndexRecord:
    """Tests for reading one description file."""

    def test_summary_as_plain_path(self, tmp_path):
        index = write(tmp_path / "index.yaml", "summary: index.adoc\n")

        record = load_index_record(index)

        assert record.summary.path == "index.adoc"
        assert record.summary.name == ""
        assert record.items == []

    def test_summary_as_name_path_pair(self, tmp_path):
        index = write(tmp_path / "index.yaml", "summary: [Intro, index.adoc]\n")

        record = load_index_record(index)

        assert record.summary.name == "Intro"
        assert record.summary.path == "index.adoc"

    def test_invalid_yaml_raises(self, tmp_path):
        index = write(tmp_path / "index.yaml", "summary: [unclosed\n")

        with pytest.raises(IndexParseError) as exc_info:
            load_index_record(index)

        assert exc_info.value.path == index

    def test_item_with_file_and_dir_rejected(self, tmp_path):
        index = write(
            tmp_path / "index.yaml",
            "summary: index.adoc\nitems:\n  - {file: a.adoc, dir: b}\n",
        )

        with pytest.raises(IndexParseError):
            load_index_record(index)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(IndexParseError):
            load_index_record(tmp_path / "index.yaml")


class TestLoadTree:
    """Tests for recursive tree loading."""

    def test_loads_nested_tree(self, book_root):
        tree, errors = load_tree(book_root / "src" / "index.yaml")

        assert errors == []
        assert tree.name == "Home"
        assert tree.summary.name == "index.adoc"
        assert [type(c) for c in tree.children] == [FileNode, FileNode, DirectoryNode]
        assert tree.children[0].name == "Chapter A"

        guide = tree.children[2]
        assert guide.directory.name == "guide"
        assert [c.path.name for c in guide.children] == ["setup.adoc"]

    def test_missing_item_is_recorded_and_siblings_kept(self, tmp_path):
        """A, B, C declared; B missing: A and C load, one error names B."""
        src = tmp_path / "src"
        write(src / "index.adoc", "= Home\n")
        write(src / "a.adoc", "A")
        write(src / "c.adoc", "C")
        write(
            src / "index.yaml",
            "summary: index.adoc\nitems:\n"
            "  - {file: a.adoc}\n  - {file: b.adoc}\n  - {file: c.adoc}\n",
        )

        tree, errors = load_tree(src / "index.yaml")

        assert [c.path.name for c in tree.children] == ["a.adoc", "c.adoc"]
        assert len(errors) == 1
        assert errors[0].kind == LoadErrorKind.MISSING_ITEM
        assert errors[0].declared == Path("b.adoc")
        assert "b.adoc" in str(errors[0])

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="needs named pipes")
    def test_item_that_is_neither_file_nor_directory_recorded(self, tmp_path):
        src = tmp_path / "src"
        write(src / "index.adoc", "= Home\n")
        write(src / "a.adoc", "A")
        write(src / "c.adoc", "C")
        os.mkfifo(src / "pipe")
        write(
            src / "index.yaml",
            "summary: index.adoc\nitems:\n"
            "  - {file: a.adoc}\n  - {file: pipe}\n  - {file: c.adoc}\n",
        )

        tree, errors = load_tree(src / "index.yaml")

        assert [c.path.name for c in tree.children] == ["a.adoc", "c.adoc"]
        assert [e.kind for e in errors] == [LoadErrorKind.ODD_ITEM]
        assert errors[0].declared == Path("pipe")

    def test_missing_root_summary_raises(self, tmp_path):
        src = tmp_path / "src"
        write(src / "index.yaml", "summary: missing.adoc\n")

        with pytest.raises(SummaryNotFoundError) as exc_info:
            load_tree(src / "index.yaml")

        assert "missing.adoc" in str(exc_info.value)

    def test_sub_directory_without_summary_dropped(self, tmp_path):
        src = tmp_path / "src"
        write(src / "index.adoc", "= Home\n")
        write(src / "index.yaml", "summary: index.adoc\nitems:\n  - {dir: part}\n")
        write(src / "part" / "index.yaml", "summary: gone.adoc\n")

        tree, errors = load_tree(src / "index.yaml")

        assert tree.children == ()
        assert [e.kind for e in errors] == [LoadErrorKind.MISSING_SUMMARY]

    def test_directory_without_index_recorded(self, tmp_path):
        src = tmp_path / "src"
        write(src / "index.adoc", "= Home\n")
        write(src / "index.yaml", "summary: index.adoc\nitems:\n  - {dir: part}\n")
        (src / "part").mkdir()

        _, errors = load_tree(src / "index.yaml")

        assert [e.kind for e in errors] == [LoadErrorKind.MISSING_INDEX]

    def test_invalid_child_index_recorded(self, tmp_path):
        src = tmp_path / "src"
        write(src / "index.adoc", "= Home\n")
        write(src / "index.yaml", "summary: index.adoc\nitems:\n  - {dir: part}\n")
        write(src / "part" / "index.yaml", "items: [\n")

        _, errors = load_tree(src / "index.yaml")

        assert [e.kind for e in errors] == [LoadErrorKind.INVALID_INDEX]

    def test_errors_from_deep_levels_are_flattened(self, tmp_path):
        src = tmp_path / "src"
        write(src / "index.adoc", "= Home\n")
        write(src / "index.yaml", "summary: index.adoc\nitems:\n  - {dir: one}\n")
        write(src / "one" / "index.adoc", "= One\n")
        write(src / "one" / "index.yaml", "summary: index.adoc\nitems:\n  - {dir: two}\n")
        write(src / "one" / "two" / "index.adoc", "= Two\n")
        write(
            src / "one" / "two" / "index.yaml",
            "summary: index.adoc\nitems:\n  - {file: nope.adoc}\n",
        )

        tree, errors = load_tree(src / "index.yaml")

        assert len(errors) == 1
        assert errors[0].directory == (src / "one" / "two").resolve()
        # The sub-trees themselves still load
        assert tree.children[0].children[0].directory.name == "two"

    def test_self_including_directory_is_a_cycle(self, tmp_path):
        src = tmp_path / "src"
        write(src / "index.adoc", "= Home\n")
        write(src / "index.yaml", "summary: index.adoc\nitems:\n  - {dir: part}\n")
        write(src / "part" / "index.adoc", "= Part\n")
        write(src / "part" / "index.yaml", "summary: index.adoc\nitems:\n  - {dir: ..}\n")

        tree, errors = load_tree(src / "index.yaml")

        assert [e.kind for e in errors] == [LoadErrorKind.CYCLE]
        assert tree.children[0].children == ()


class TestIterDocuments:
    """Tests for depth-first flattening."""

    def test_summary_first_then_declaration_order(self, book_root):
        tree, _ = load_tree(book_root / "src" / "index.yaml")
        src = (book_root / "src").resolve()

        docs = [p.relative_to(src).as_posix() for p in iter_documents(tree)]

        assert docs == [
            "index.adoc",
            "a.adoc",
            "b.adoc",
            "guide/index.adoc",
            "guide/setup.adoc",
        ]
