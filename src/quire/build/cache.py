"""Modification-time build cache.

Skips re-rendering a source file when its modification time is unchanged
since the last successful build. Content is never hashed, so touching a file
forces an unnecessary re-render.

Cache directory layout (under the project root):

    .quire-cache/
    ├── artifacts/      # rendered output of every document from the last build
    │   ├── index.html
    │   └── guide/setup.html
    └── index.json      # snapshot: relative source path -> mtime
"""

from __future__ import annotations

import json
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional

from pydantic import BaseModel, Field, ValidationError

from quire.config import Config
from quire.errors import CachePersistError, UntrackedSourceError

logger = logging.getLogger(__name__)

CACHE_FORMAT_VERSION = 1


@dataclass(frozen=True)
class CacheEntry:
    """Last known modification time of one source file.

    Attributes:
        path: POSIX path relative to the source directory.
        mtime_ns: Modification time in nanoseconds.
    """

    path: str
    mtime_ns: int


class CacheSnapshot:
    """Modification times of every file under a source tree."""

    def __init__(self, entries: Iterable[CacheEntry] = (), complete: bool = True):
        self._entries: dict[str, CacheEntry] = {e.path: e for e in entries}
        # False when the build that saved it did not fully publish the site.
        self.complete = complete

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __iter__(self) -> Iterator[CacheEntry]:
        return iter(self.entries())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CacheSnapshot):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"CacheSnapshot({len(self._entries)} entries)"

    def get(self, path: str) -> Optional[CacheEntry]:
        return self._entries.get(path)

    def entries(self) -> list[CacheEntry]:
        """Entries sorted by path."""
        return [self._entries[p] for p in sorted(self._entries)]

    def without(self, paths: Iterable[str]) -> "CacheSnapshot":
        """Copy of this snapshot with the given paths dropped."""
        dropped = set(paths)
        return CacheSnapshot(
            (e for p, e in self._entries.items() if p not in dropped), complete=self.complete
        )

    def as_incomplete(self) -> "CacheSnapshot":
        """Copy of this snapshot that will not short-circuit the next build."""
        return CacheSnapshot(self._entries.values(), complete=False)


class _CacheIndexFile(BaseModel):
    """On-disk form of a snapshot."""

    version: int = Field(..., ge=1)
    complete: bool = True
    entries: list[dict[str, int | str]] = Field(default_factory=list)


def relative_key(path: Path, src_root: Path) -> str:
    """Cache key of a path: POSIX form relative to the source root."""
    if path.is_absolute():
        path = path.relative_to(src_root)
    return path.as_posix()


def take_snapshot(src_root: Path) -> CacheSnapshot:
    """Record the modification time of every file under a source directory.

    Args:
        src_root: Source directory to walk.

    Returns:
        CacheSnapshot keyed by path relative to src_root.

    Raises:
        OSError: If the directory or a file's metadata cannot be read.
    """
    if not src_root.is_dir():
        raise FileNotFoundError(f"Source directory not found: {src_root}")

    entries = []
    for path in src_root.rglob("*"):
        if not path.is_file():
            continue
        entries.append(
            CacheEntry(path=relative_key(path, src_root), mtime_ns=path.stat().st_mtime_ns)
        )
    return CacheSnapshot(entries)


class CacheDiff:
    """Previous snapshot (if any) paired with the current one."""

    def __init__(
        self,
        src_root: Path,
        previous: Optional[CacheSnapshot],
        current: CacheSnapshot,
    ):
        self.src_root = src_root
        self.previous = previous
        self.current = current

    def needs_build(self, src_path: Path) -> bool:
        """Check if a source file has to be rendered again.

        Args:
            src_path: Absolute path, or path relative to the source root.

        Returns:
            True when there is no previous snapshot, the file is new, or its
            modification time differs in either direction.

        Raises:
            UntrackedSourceError: If the file is not in the current snapshot.
        """
        try:
            key = relative_key(src_path, self.src_root)
        except ValueError as e:
            raise UntrackedSourceError(
                f"Source file is outside the source directory: {src_path}"
            ) from e

        current = self.current.get(key)
        if current is None:
            raise UntrackedSourceError(f"Given non-existing file in source directory: {key}")

        if self.previous is None:
            return True

        last = self.previous.get(key)
        if last is None:
            return True

        return last.mtime_ns != current.mtime_ns


class CacheStore:
    """Persisted cache index and artifact mirror of one project."""

    def __init__(self, settings: Config):
        self.root = settings.cache_path
        self.index_path = settings.cache_index_path
        self.artifacts_path = settings.artifacts_path
        self.output_extension = settings.build.output_extension

    def artifact_path(self, rel_path: Path) -> Path:
        """Location of a source file's rendered output in the mirror.

        Args:
            rel_path: Source path relative to the source directory.
        """
        return self.artifacts_path / rel_path.with_suffix(self.output_extension)

    def load_previous(self, force_rebuild: bool = False) -> Optional[CacheSnapshot]:
        """Load the snapshot written by the last completed build.

        A missing, empty or corrupted index means "start fresh" and is never
        an error.

        Args:
            force_rebuild: Ignore any stored snapshot.

        Returns:
            The previous snapshot, or None.
        """
        if force_rebuild:
            logger.info("Forced rebuild: ignoring build cache")
            return None

        if not self.index_path.is_file():
            return None

        try:
            raw = json.loads(self.index_path.read_text(encoding="utf-8"))
            index = _CacheIndexFile.model_validate(raw)
            if index.version != CACHE_FORMAT_VERSION:
                logger.warning(
                    f"Cache index version {index.version} is not supported, starting fresh"
                )
                return None
            snapshot = CacheSnapshot(
                (
                    CacheEntry(path=str(e["path"]), mtime_ns=int(e["mtime_ns"]))
                    for e in index.entries
                ),
                complete=index.complete,
            )
        except (OSError, ValueError, KeyError, TypeError, ValidationError) as e:
            logger.warning(f"Unable to read cache index at {self.index_path}, starting fresh: {e}")
            return None

        if len(snapshot) == 0:
            return None
        return snapshot

    def create_diff(self, src_root: Path, force_rebuild: bool = False) -> CacheDiff:
        """Snapshot the source tree and pair it with the previous snapshot."""
        previous = self.load_previous(force_rebuild)
        current = take_snapshot(src_root)
        logger.debug(
            f"Cache diff: {len(current)} tracked files, "
            f"{len(previous) if previous is not None else 0} previously recorded"
        )
        return CacheDiff(src_root, previous, current)

    def save(self, snapshot: CacheSnapshot) -> None:
        """Replace the stored snapshot with the given one.

        Raises:
            CachePersistError: If the index cannot be written.
        """
        payload = {
            "version": CACHE_FORMAT_VERSION,
            "complete": snapshot.complete,
            "entries": [{"path": e.path, "mtime_ns": e.mtime_ns} for e in snapshot.entries()],
        }
        tmp_path = self.index_path.with_name(self.index_path.name + ".tmp")
        try:
            self.index_path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.index_path)
        except OSError as e:
            raise CachePersistError(
                f"Unable to write cache index at {self.index_path}", str(e)
            ) from e
        logger.debug(f"Saved cache index with {len(snapshot)} entries")


def clear_cache(settings: Config) -> bool:
    """Delete the whole cache directory of a project.

    Returns:
        True if a cache directory existed and was removed.
    """
    if not settings.cache_path.is_dir():
        return False
    shutil.rmtree(settings.cache_path)
    logger.info(f"Removed cache directory {settings.cache_path}")
    return True
