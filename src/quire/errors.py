"""Exception hierarchy for the build pipeline.

Item-local errors are recorded and skipped by the loader, walker and
assembler. Only a few of these propagate as hard build failures.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class QuireError(Exception):
    """Base class for all quire errors."""

    def __init__(self, message: str, original_error: Optional[str] = None):
        self.message = message
        self.original_error = original_error
        super().__init__(message)

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}\n{self.original_error}"
        return self.message


# Book loading


class BookLoadError(QuireError):
    """Error while loading a book project."""


class BookNotFoundError(BookLoadError):
    """No book file was found in the given directory or its ancestors."""


class BookConfigError(BookLoadError):
    """The book file could not be read or validated."""


class IndexParseError(BookLoadError):
    """A directory description file could not be read or validated."""

    def __init__(self, path: Path, message: str, original_error: Optional[str] = None):
        self.path = path
        super().__init__(message, original_error)


class SummaryNotFoundError(BookLoadError):
    """A directory description names a summary document that does not exist."""

    def __init__(self, summary: Path, directory: Path):
        self.summary = summary
        self.directory = directory
        super().__init__(f"Unable to locate summary `{summary}` in `{directory}`")


# Cache


class CacheError(QuireError):
    """Error in the build cache."""


class UntrackedSourceError(CacheError):
    """A path was queried that is not part of the current snapshot."""


class CacheDriftError(CacheError):
    """The cache index claims a file is reusable but its artifact is missing."""

    def __init__(self, src_file: Path, artifact: Path):
        self.src_file = src_file
        self.artifact = artifact
        super().__init__(
            f"Unable to locate cached artifact at {artifact} for {src_file}. "
            "The cache is out of sync; run `quire clear` and rebuild."
        )


class CachePersistError(CacheError):
    """The updated cache index could not be written."""


# Rendering


class RenderError(QuireError):
    """Error while rendering a single source file."""


class ConversionError(RenderError):
    """The document-conversion engine failed for a file."""

    def __init__(self, src_file: Path, message: str, original_error: Optional[str] = None):
        self.src_file = src_file
        super().__init__(message, original_error)


class TemplateError(RenderError):
    """The template engine failed for a file."""


class ConverterNotFoundError(RenderError):
    """The document-conversion engine is not installed."""


# Site assembly


class SiteDirectoryError(QuireError):
    """The site directory does not exist and cannot be created."""
