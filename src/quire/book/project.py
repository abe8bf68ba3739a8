"""Book project: the book file, its configuration, and the document tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from pydantic import ValidationError

from quire.book.schemas import BookConfig
from quire.book.tree import DirectoryNode, LoadError, load_tree
from quire.config import Config, load_settings
from quire.constants import BOOK_FILE
from quire.errors import BookConfigError, BookNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookProject:
    """File structure of a book project.

    Attributes:
        root: Absolute path to the directory holding the book file.
        book: Parsed book file.
        tree: Root of the document tree.
        settings: Build settings for this project root.
        load_errors: Items dropped while loading the tree.
    """

    root: Path
    book: BookConfig
    tree: DirectoryNode
    settings: Config
    load_errors: tuple[LoadError, ...] = field(default_factory=tuple)

    @property
    def src_dir(self) -> Path:
        """Absolute path to the source directory."""
        return (self.root / self.book.src_dir).resolve()

    @property
    def site_dir(self) -> Path:
        """Absolute path to the site directory."""
        return self.root / self.book.site_dir

    def relative_source(self, src_file: Path) -> Path:
        """Path of a source file relative to the source directory."""
        return src_file.relative_to(self.src_dir)

    def output_relpath(self, src_file: Path) -> Path:
        """Relative location of a source file's rendered output."""
        return self.relative_source(src_file).with_suffix(self.settings.build.output_extension)

    def convert_only_files(self) -> list[Path]:
        """Files rendered but excluded from navigation, as absolute paths."""
        return [self.src_dir / p for p in self.book.converts]


def find_book_file(path: Path, book_file: str = BOOK_FILE) -> Path:
    """Find the book file in a directory or any of its ancestors.

    Args:
        path: Directory to start from.
        book_file: Name of the book file.

    Returns:
        Resolved path to the book file.

    Raises:
        BookNotFoundError: If the path is not a directory or no ancestor has a
            book file.
    """
    try:
        path = path.resolve(strict=True)
    except OSError as e:
        raise BookNotFoundError(f"Unable to find given directory path: {path}", str(e)) from e

    if not path.is_dir():
        raise BookNotFoundError(f"Given non-directory path: {path}")

    for directory in (path, *path.parents):
        candidate = directory / book_file
        if candidate.is_file():
            return candidate

    raise BookNotFoundError(f"Not found root directory (no `{book_file}` above {path})")


def load_book_config(book_file: Path) -> BookConfig:
    """Read and validate the book file.

    Raises:
        BookConfigError: If the file cannot be read, parsed or validated.
    """
    try:
        text = book_file.read_text(encoding="utf-8")
    except OSError as e:
        raise BookConfigError(f"Failed to read book file at: {book_file}", str(e)) from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise BookConfigError(f"Failed to parse book file at: {book_file}", str(e)) from e

    try:
        return BookConfig.model_validate(data if data is not None else {})
    except ValidationError as e:
        raise BookConfigError(f"Invalid book file at: {book_file}", str(e)) from e


def load_project(path: Path) -> BookProject:
    """Locate the book file above a directory and load the whole project.

    Args:
        path: The project root or any directory below it.

    Returns:
        The loaded BookProject. Items dropped from the tree are listed in
        `load_errors` rather than raised.

    Raises:
        BookNotFoundError: If no book file is found.
        BookConfigError: If the book file is invalid.
        IndexParseError: If the root description file is unreadable or invalid.
        SummaryNotFoundError: If the root summary document is missing.
    """
    book_path = find_book_file(path, BOOK_FILE)
    root = book_path.parent
    settings = load_settings(root)

    logger.info(f"Book file located at: {book_path}")
    book = load_book_config(book_path)

    index_file = root / book.src_dir / settings.paths.index_file
    tree, errors = load_tree(index_file)

    return BookProject(
        root=root,
        book=book,
        tree=tree,
        settings=settings,
        load_errors=tuple(errors),
    )
