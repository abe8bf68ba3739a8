"""Document tree loaded from per-directory description files.

Every source directory that takes part in the book has a description file
(``index.yaml`` by default) naming a summary document and an ordered list of
children:

    summary: {name: Introduction, path: index.adoc}
    items:
      - {file: getting-started.adoc, name: Getting started}
      - {dir: reference}

Loading is recursive and forgiving: a bad child entry is recorded as a
LoadError and skipped, so one broken entry never hides the rest of the book.
The only sub-tree-aborting case is a missing summary document, which is
recorded one level up.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator, Union

import yaml
from pydantic import ValidationError

from quire.book.schemas import IndexRecord
from quire.errors import IndexParseError, SummaryNotFoundError

logger = logging.getLogger(__name__)


class LoadErrorKind(str, Enum):
    """Why a declared child was left out of the tree."""

    MISSING_ITEM = "missing_item"
    ODD_ITEM = "odd_item"
    MISSING_INDEX = "missing_index"
    INVALID_INDEX = "invalid_index"
    MISSING_SUMMARY = "missing_summary"
    CYCLE = "cycle"


@dataclass(frozen=True)
class LoadError:
    """A child entry that could not be loaded.

    Attributes:
        kind: Category of the failure.
        declared: The path exactly as written in the description file.
        directory: Absolute path of the directory whose description declared it.
        message: Human-readable description.
    """

    kind: LoadErrorKind
    declared: Path
    directory: Path
    message: str

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class FileNode:
    """A document in the book.

    Attributes:
        name: Sidebar title; empty to read it from the document.
        path: Absolute, resolved path to the document.
    """

    name: str
    path: Path


@dataclass(frozen=True)
class DirectoryNode:
    """A directory in the book with its summary document and ordered children."""

    name: str
    directory: Path
    summary: Path
    children: tuple[DocumentTreeNode, ...] = field(default_factory=tuple)


DocumentTreeNode = Union[FileNode, DirectoryNode]


def load_index_record(index_file: Path) -> IndexRecord:
    """Read and validate one directory description file.

    Args:
        index_file: Path to the description file.

    Returns:
        The validated IndexRecord.

    Raises:
        IndexParseError: If the file cannot be read, is not valid YAML, or does
            not match the schema.
    """
    try:
        text = index_file.read_text(encoding="utf-8")
    except OSError as e:
        raise IndexParseError(index_file, f"Failed to read `{index_file}`", str(e)) from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise IndexParseError(index_file, f"Failed to parse `{index_file}`", str(e)) from e

    try:
        return IndexRecord.model_validate(data if data is not None else {})
    except ValidationError as e:
        raise IndexParseError(index_file, f"Invalid description file `{index_file}`", str(e)) from e


def load_tree(index_file: Path) -> tuple[DirectoryNode, list[LoadError]]:
    """Load a document tree rooted at a description file.

    Child description files are looked up under the same file name as the
    root one.

    Args:
        index_file: Path to the root description file.

    Returns:
        Tuple of (root DirectoryNode, flat list of LoadErrors from every level).

    Raises:
        IndexParseError: If the root description file is unreadable or invalid.
        SummaryNotFoundError: If the root summary document does not exist.
    """
    index_file = index_file.resolve()
    record = load_index_record(index_file)
    return _build_directory(record, index_file.parent, index_file.name, frozenset())


def _build_directory(
    record: IndexRecord,
    directory: Path,
    index_name: str,
    ancestors: frozenset[Path],
) -> tuple[DirectoryNode, list[LoadError]]:
    summary = directory / record.summary.path
    if not summary.is_file():
        raise SummaryNotFoundError(Path(record.summary.path), directory)

    active = ancestors | {directory}
    errors: list[LoadError] = []
    children: list[DocumentTreeNode] = []

    for item in record.items:
        declared = Path(item.target)
        target = directory / declared

        if not target.exists():
            errors.append(
                LoadError(
                    LoadErrorKind.MISSING_ITEM,
                    declared,
                    directory,
                    f"Unable to locate `{declared}` in `{directory}`",
                )
            )
            continue

        target = target.resolve()

        if target.is_file():
            children.append(FileNode(name=item.name, path=target))
            continue

        if not target.is_dir():
            errors.append(
                LoadError(
                    LoadErrorKind.ODD_ITEM,
                    declared,
                    directory,
                    f"Unexpected kind of item: {target}",
                )
            )
            continue

        if target in active:
            errors.append(
                LoadError(
                    LoadErrorKind.CYCLE,
                    declared,
                    directory,
                    f"Directory `{target}` includes itself through `{declared}` in `{directory}`",
                )
            )
            continue

        child_index = target / index_name
        if not child_index.is_file():
            errors.append(
                LoadError(
                    LoadErrorKind.MISSING_INDEX,
                    declared,
                    directory,
                    f"Found directory without `{index_name}`: {target}",
                )
            )
            continue

        try:
            child_record = load_index_record(child_index)
            child, child_errors = _build_directory(child_record, target, index_name, active)
        except IndexParseError as e:
            errors.append(LoadError(LoadErrorKind.INVALID_INDEX, declared, directory, str(e)))
            continue
        except SummaryNotFoundError as e:
            errors.append(LoadError(LoadErrorKind.MISSING_SUMMARY, declared, directory, str(e)))
            continue

        errors.extend(child_errors)
        children.append(child)

    logger.debug(f"Loaded {len(children)} items from {directory}")

    return (
        DirectoryNode(
            name=record.summary.name,
            directory=directory,
            summary=summary.resolve(),
            children=tuple(children),
        ),
        errors,
    )


def iter_documents(node: DirectoryNode) -> Iterator[Path]:
    """Yield every document of a tree depth-first.

    A directory's summary comes before its children, children follow
    declaration order, and a sub-directory is exhausted before its next
    sibling.
    """
    yield node.summary
    for child in node.children:
        if isinstance(child, DirectoryNode):
            yield from iter_documents(child)
        else:
            yield child.path
