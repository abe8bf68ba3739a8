"""Build pipeline: diff, walk, assemble, persist."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from quire.book.project import BookProject
from quire.build.assembler import AssemblyResult, assemble_site, persist_cache
from quire.build.cache import CacheDiff, CacheSnapshot, CacheStore
from quire.build.convert.renderer import AsciidocRenderer
from quire.build.renderer import Renderer
from quire.build.walker import ProgressCallback, WalkResult, read_reused, walk_book
from quire.diagnostics import log_errors, log_warnings
from quire.errors import CacheError

logger = logging.getLogger(__name__)

RendererFactory = Callable[[BookProject, CacheDiff], tuple[Renderer, list[str]]]


def default_renderer(project: BookProject, cache_diff: CacheDiff) -> tuple[Renderer, list[str]]:
    """Create the AsciiDoc renderer, failing early if the converter is missing."""
    renderer, errors = AsciidocRenderer.from_project(project, cache_diff)
    renderer.check_available()
    return renderer, errors


@dataclass
class BuildReport:
    """Summary of one build.

    Attributes:
        walk: Result of the render phase.
        assembly: Result of site assembly, None when the build was a no-op.
        snapshot: Cache snapshot persisted by this build, None for a no-op.
        setup_errors: Renderer setup diagnostics (e.g. unreadable titles).
        elapsed: Wall-clock seconds for the whole build.
    """

    walk: WalkResult
    assembly: Optional[AssemblyResult] = None
    snapshot: Optional[CacheSnapshot] = None
    setup_errors: list[str] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def skipped(self) -> bool:
        """True when nothing changed and the site was left untouched."""
        return self.assembly is None

    @property
    def error_count(self) -> int:
        count = len(self.walk.errors) + len(self.setup_errors)
        if self.assembly is not None:
            count += len(self.assembly.errors)
        return count


async def build_book(
    project: BookProject,
    force_rebuild: bool = False,
    verbose: bool = False,
    progress_callback: ProgressCallback | None = None,
    renderer_factory: RendererFactory = default_renderer,
) -> BuildReport:
    """Build a book project into its site directory.

    Items dropped while loading the tree and files that fail to render are
    reported, never raised. A build where no source changed since the last one
    and the site directory is present does nothing.

    Args:
        project: The loaded book project.
        force_rebuild: Ignore the previous cache snapshot.
        verbose: Log the final timing summary.
        progress_callback: Optional async callback for render progress.
        renderer_factory: Creates the renderer for this build.

    Returns:
        BuildReport of the build.

    Raises:
        CacheError: If the source tree cannot be scanned or the cache index
            cannot be written.
        SiteDirectoryError: If the site directory cannot be created.
        ConverterNotFoundError: If the default converter is not installed.
    """
    start = time.monotonic()
    log_errors(list(project.load_errors), "while loading the book")

    store = CacheStore(project.settings)
    try:
        cache_diff = store.create_diff(project.src_dir, force_rebuild)
    except OSError as e:
        raise CacheError(f"Unable to scan source directory {project.src_dir}", str(e)) from e

    renderer, setup_errors = renderer_factory(project, cache_diff)
    log_errors(setup_errors, "while preparing the renderer")

    walk = await walk_book(renderer, project, store, progress_callback=progress_callback)

    if walk.nothing_to_build:
        previous = cache_diff.previous
        unchanged = previous is not None and previous.complete and previous == cache_diff.current
        if unchanged and project.site_dir.is_dir():
            log_errors(walk.errors, "while building the book")
            logger.info("Site is up to date")
            return BuildReport(
                walk=walk, setup_errors=setup_errors, elapsed=time.monotonic() - start
            )

        # Non-document files such as includes changed: republish from the cache
        walk.outcomes.extend(read_reused(walk.reuse_set, project, store))
        log_errors(walk.errors, "while building the book")

    assembly = assemble_site(project, walk, store)
    log_warnings(assembly.warnings, "while assembling the site")
    log_errors(assembly.errors, "while assembling the site")

    snapshot = persist_cache(store, cache_diff.current, walk, project.src_dir, assembly)

    elapsed = time.monotonic() - start
    if verbose:
        logger.info(
            f"Built {walk.rendered_count} files in {elapsed:.2f} seconds "
            f"({walk.reused_count} reused, {len(walk.errors)} failed)"
        )

    return BuildReport(
        walk=walk,
        assembly=assembly,
        snapshot=snapshot,
        setup_errors=setup_errors,
        elapsed=elapsed,
    )
