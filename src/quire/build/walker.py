# src/quire/build/walker.py
"""Concurrent walker over the document tree.

Flattens the tree, partitions the files into a reuse set (unchanged since the
last build) and a render set, then renders the render set concurrently:

1. Flatten depth-first: summary, then children in declaration order, then the
   convert-only files.
2. Partition with the renderer's `can_skip` before dispatching anything, so the
   total for progress reporting is known up front.
3. Dispatch one task per file, each with its own forked renderer, and join
   them all. A failing task never cancels the others.
4. Read the reuse set back from the artifact cache.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Coroutine, Optional

from quire.book.project import BookProject
from quire.book.tree import iter_documents
from quire.build.cache import CacheStore
from quire.build.renderer import BuildError, BuildOutcome, BuildOutput, Renderer
from quire.diagnostics import log_errors
from quire.errors import CacheDriftError, CacheError

logger = logging.getLogger(__name__)


@dataclass
class BuildProgress:
    """Progress update during the render phase.

    Attributes:
        step: Number of render tasks finished so far.
        total_steps: Size of the render set.
        message: Human-readable progress message.
        src_file: File whose task just finished, if any.
        failed: Whether that task failed.
        timestamp: Time of progress update.
    """

    step: int = 0
    total_steps: int = 0
    message: str = ""
    src_file: Optional[Path] = None
    failed: bool = False
    timestamp: datetime = field(default_factory=datetime.now)


ProgressCallback = Callable[[BuildProgress], Coroutine[Any, Any, None]]


@dataclass
class WalkResult:
    """Outcomes of one walk, in completion order.

    Attributes:
        outcomes: One BuildOutput or BuildError per source file handled.
        render_set: Files that were dispatched for rendering.
        reuse_set: Files satisfied (or to be satisfied) from the artifact cache.
        elapsed: Wall-clock seconds spent in the walk.
    """

    outcomes: list[BuildOutcome] = field(default_factory=list)
    render_set: list[Path] = field(default_factory=list)
    reuse_set: list[Path] = field(default_factory=list)
    elapsed: float = 0.0

    @property
    def nothing_to_build(self) -> bool:
        return not self.render_set

    @property
    def outputs(self) -> list[BuildOutput]:
        return [o for o in self.outcomes if isinstance(o, BuildOutput)]

    @property
    def errors(self) -> list[BuildError]:
        return [o for o in self.outcomes if isinstance(o, BuildError)]

    @property
    def rendered_count(self) -> int:
        return sum(1 for o in self.outputs if not o.reused)

    @property
    def reused_count(self) -> int:
        return sum(1 for o in self.outputs if o.reused)


@dataclass(frozen=True)
class _Completion:
    src_file: Path
    failed: bool


def list_source_files(project: BookProject) -> list[Path]:
    """List every file to build: the tree depth-first, then convert-only files.

    A file declared more than once is listed at its first position only.
    """
    files = list(iter_documents(project.tree))
    files.extend(project.convert_only_files())
    return list(dict.fromkeys(files))


def partition_files(
    renderer: Renderer, files: list[Path]
) -> tuple[list[Path], list[Path], list[BuildOutcome]]:
    """Split files into render and reuse sets.

    Returns:
        Tuple of (render set, reuse set, errors for files the cache cannot
        classify, e.g. a convert-only file that does not exist).
    """
    to_render: list[Path] = []
    to_reuse: list[Path] = []
    failures: list[BuildOutcome] = []

    for src_file in files:
        try:
            skip = renderer.can_skip(src_file)
        except CacheError as e:
            failures.append(BuildError(error=e, src_file=src_file))
            continue
        (to_reuse if skip else to_render).append(src_file)

    return to_render, to_reuse, failures


def read_reused(files: list[Path], project: BookProject, store: CacheStore) -> list[BuildOutcome]:
    """Read the cached artifacts of the reuse set.

    A missing artifact means the index and the mirror are out of sync. That is
    reported as an error for the file; the file is not re-rendered.
    """
    outcomes: list[BuildOutcome] = []
    for src_file in files:
        artifact = store.artifact_path(project.relative_source(src_file))
        try:
            text = artifact.read_text(encoding="utf-8")
        except FileNotFoundError:
            outcomes.append(BuildError(error=CacheDriftError(src_file, artifact), src_file=src_file))
            continue
        except OSError as e:
            outcomes.append(
                BuildError(
                    error=CacheError(f"Unable to read cached artifact {artifact}", str(e)),
                    src_file=src_file,
                )
            )
            continue
        logger.debug(f"- skip: {src_file}")
        outcomes.append(BuildOutput(text=text, src_file=src_file, reused=True))
    return outcomes


async def _emit_progress(callback: ProgressCallback | None, progress: BuildProgress) -> None:
    if callback:
        await callback(progress)


async def _report_progress(
    queue: asyncio.Queue[_Completion],
    total: int,
    skipped: int,
    callback: ProgressCallback | None,
) -> int:
    """Drain completion events; the only owner of the progress counter."""
    completed = 0
    while completed < total:
        event = await queue.get()
        completed += 1
        await _emit_progress(
            callback,
            BuildProgress(
                step=completed,
                total_steps=total,
                message=f"Rendered {completed}/{total} files ({skipped} unchanged)...",
                src_file=event.src_file,
                failed=event.failed,
            ),
        )
    return completed


async def walk_book(
    renderer: Renderer,
    project: BookProject,
    store: CacheStore,
    progress_callback: ProgressCallback | None = None,
    parallel_limit: int | None = None,
) -> WalkResult:
    """Render every changed file of a book concurrently.

    Args:
        renderer: Renderer capability; forked once per render task.
        project: The loaded book project.
        store: Cache store providing the artifact mirror for the reuse set.
        progress_callback: Optional async callback for progress updates.
        parallel_limit: Maximum concurrently running renders. Defaults to the
            project's [build].parallel_limit.

    Returns:
        WalkResult. When nothing needs rendering it is returned immediately
        with no outcomes and `nothing_to_build` set.
    """
    start = time.monotonic()
    files = list_source_files(project)
    to_render, to_reuse, failures = partition_files(renderer, files)

    if not to_render:
        logger.info("No file to build")
        return WalkResult(
            outcomes=failures,
            render_set=[],
            reuse_set=to_reuse,
            elapsed=time.monotonic() - start,
        )

    limit = parallel_limit or project.settings.build.parallel_limit
    semaphore = asyncio.Semaphore(limit)
    queue: asyncio.Queue[_Completion] = asyncio.Queue()
    completed_outcomes: list[BuildOutcome] = []

    logger.info(f"Rendering {len(to_render)} files ({len(to_reuse)} unchanged)")
    await _emit_progress(
        progress_callback,
        BuildProgress(
            step=0,
            total_steps=len(to_render),
            message=f"Rendering files ({len(to_reuse)} unchanged, 0/{len(to_render)} rendered)...",
        ),
    )

    async def render_one(unit: Renderer, src_file: Path) -> None:
        async with semaphore:
            logger.debug(f"- convert: {src_file}")
            outcome = await unit.build(src_file)
        completed_outcomes.append(outcome)
        queue.put_nowait(_Completion(src_file, isinstance(outcome, BuildError)))

    # Every unit gets its own copy before anything is dispatched.
    units = [(renderer.fork(), src_file) for src_file in to_render]

    reporter = asyncio.create_task(
        _report_progress(queue, len(units), len(to_reuse), progress_callback)
    )
    tasks = [asyncio.create_task(render_one(unit, src_file)) for unit, src_file in units]
    await asyncio.gather(*tasks)
    await reporter

    outcomes = failures + completed_outcomes + read_reused(to_reuse, project, store)
    result = WalkResult(
        outcomes=outcomes,
        render_set=to_render,
        reuse_set=to_reuse,
        elapsed=time.monotonic() - start,
    )

    log_errors(result.errors, "while building the book")
    return result
