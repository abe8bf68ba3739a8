"""Incremental concurrent build of a book into a static site."""

from quire.build.assembler import AssemblyResult, assemble_site, persist_cache
from quire.build.cache import CacheDiff, CacheEntry, CacheSnapshot, CacheStore, take_snapshot
from quire.build.pipeline import BuildReport, build_book
from quire.build.renderer import BuildError, BuildOutput, Renderer
from quire.build.walker import BuildProgress, WalkResult, walk_book

__all__ = [
    "AssemblyResult",
    "BuildError",
    "BuildOutput",
    "BuildProgress",
    "BuildReport",
    "CacheDiff",
    "CacheEntry",
    "CacheSnapshot",
    "CacheStore",
    "Renderer",
    "WalkResult",
    "assemble_site",
    "build_book",
    "persist_cache",
    "take_snapshot",
    "walk_book",
]
