"""Scaffolding of a new book project."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from quire.constants import BOOK_FILE, DEFAULT_SITE_DIR, DEFAULT_SRC_DIR, INDEX_FILE
from quire.errors import BookConfigError

logger = logging.getLogger(__name__)

SUMMARY_FILE = "index.adoc"

SUMMARY_TEMPLATE = """= {title}

Welcome to {title}.
"""


def init_book(directory: Path, title: str = "") -> list[Path]:
    """Create a minimal book project in a directory.

    Writes `book.yaml`, `src/index.yaml` and `src/index.adoc`. Existing
    description or summary files are left alone.

    Args:
        directory: Project root; created if missing.
        title: Book title. Defaults to the directory name.

    Returns:
        The files written.

    Raises:
        BookConfigError: If the directory already holds a book file or cannot
            be written.
    """
    directory = directory.resolve()
    book_path = directory / BOOK_FILE
    if book_path.exists():
        raise BookConfigError(f"A book already exists at {book_path}")

    title = title or directory.name
    src_dir = directory / DEFAULT_SRC_DIR

    book = {
        "title": title,
        "authors": [],
        "src_dir": DEFAULT_SRC_DIR,
        "site_dir": DEFAULT_SITE_DIR,
        "use_default_theme": True,
    }
    index = {"summary": SUMMARY_FILE, "items": []}

    files = {
        book_path: yaml.safe_dump(book, sort_keys=False),
        src_dir / INDEX_FILE: yaml.safe_dump(index, sort_keys=False),
        src_dir / SUMMARY_FILE: SUMMARY_TEMPLATE.format(title=title),
    }

    written = []
    try:
        src_dir.mkdir(parents=True, exist_ok=True)
        for path, content in files.items():
            if path.exists():
                logger.info(f"Keeping existing {path}")
                continue
            path.write_text(content, encoding="utf-8")
            written.append(path)
    except OSError as e:
        raise BookConfigError(f"Unable to create book at {directory}", str(e)) from e

    logger.info(f"Initialized book `{title}` at {directory}")
    return written
