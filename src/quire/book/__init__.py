"""Book project loading: the book file and the document tree."""

from quire.book.init import init_book
from quire.book.project import BookProject, find_book_file, load_book_config, load_project
from quire.book.schemas import BookConfig, IndexRecord
from quire.book.tree import (
    DirectoryNode,
    DocumentTreeNode,
    FileNode,
    LoadError,
    LoadErrorKind,
    iter_documents,
    load_tree,
)

__all__ = [
    "BookConfig",
    "BookProject",
    "DirectoryNode",
    "DocumentTreeNode",
    "FileNode",
    "IndexRecord",
    "LoadError",
    "LoadErrorKind",
    "find_book_file",
    "init_book",
    "iter_documents",
    "load_book_config",
    "load_project",
    "load_tree",
]
