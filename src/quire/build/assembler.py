"""Site assembly after the render phase.

The site directory is rebuilt from scratch on every build that has something
to do. Dot-prefixed entries (e.g. `.git` of a deployment checkout) survive the
clear. The steps run in order:

1. Ensure the site directory exists.
2. Clear it, except dot entries.
3. Copy `includes` from the source directory.
4. Write every output document.
5. Apply `copies`.
6. Copy the bundled theme, without overwriting.
7. Mirror fresh renders into the artifact cache.

Only step 1 is fatal. Everything else is recorded per item and reported.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from quire.book.project import BookProject
from quire.build.cache import CacheSnapshot, CacheStore, relative_key
from quire.build.renderer import BuildOutput
from quire.build.walker import WalkResult
from quire.errors import SiteDirectoryError
from quire.theme import STATIC_DIR

logger = logging.getLogger(__name__)


@dataclass
class AssemblyResult:
    """Outcome of assembling the site directory.

    Attributes:
        errors: Items that could not be placed in the site.
        warnings: Items skipped for a benign reason.
        written: Output documents written to the site.
        failed_sources: Source files whose output did not reach the site or
            the artifact cache.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    written: list[Path] = field(default_factory=list)
    failed_sources: list[Path] = field(default_factory=list)


def ensure_site_dir(site_dir: Path) -> None:
    """Create the site directory if needed.

    Raises:
        SiteDirectoryError: If it cannot be created.
    """
    if site_dir.is_dir():
        return
    try:
        site_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise SiteDirectoryError(f"Unable to create site directory at {site_dir}", str(e)) from e
    logger.info(f"Created site directory at {site_dir}")


def clear_site_dir(site_dir: Path) -> list[str]:
    """Delete every entry of the site directory except dot-prefixed ones.

    Returns:
        Error messages for entries that could not be removed.
    """
    errors = []
    for entry in sorted(site_dir.iterdir()):
        if entry.name.startswith("."):
            continue
        try:
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
        except OSError as e:
            errors.append(f"Unable to remove {entry}: {e}")
    return errors


def copy_path(src: Path, dst: Path) -> None:
    """Copy a file or directory tree, merging into existing directories."""
    if src.is_dir():
        shutil.copytree(src, dst, dirs_exist_ok=True)
    else:
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst)


def copy_includes(project: BookProject) -> list[str]:
    """Copy the `includes` paths from the source to the site directory.

    Returns:
        Error messages naming each declared path that could not be copied.
    """
    errors = []
    for include in project.book.includes:
        declared = Path(include)
        if declared.is_absolute():
            errors.append(f"Include path must be relative: {include}")
            continue

        src = project.src_dir / declared
        if not src.exists():
            errors.append(f"Unable to locate include `{include}` at {src}")
            continue

        try:
            copy_path(src, project.site_dir / declared)
        except OSError as e:
            errors.append(f"Unable to copy include `{include}`: {e}")
    return errors


def write_outputs(
    project: BookProject, outputs: list[BuildOutput], result: AssemblyResult
) -> None:
    for output in outputs:
        dst = project.site_dir / project.output_relpath(output.src_file)
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
            dst.write_text(output.text, encoding="utf-8")
        except OSError as e:
            result.errors.append(f"Unable to write {dst}: {e}")
            result.failed_sources.append(output.src_file)
            continue
        result.written.append(dst)


def apply_copies(project: BookProject, result: AssemblyResult) -> None:
    """Copy `[src, dst]` pairs relative to the project root."""
    for src_rel, dst_rel in project.book.copies:
        src = project.root / src_rel
        dst = project.root / dst_rel
        if not src.exists():
            result.warnings.append(f"Copy source `{src_rel}` does not exist, skipped")
            continue
        try:
            copy_path(src, dst)
        except OSError as e:
            result.errors.append(f"Unable to copy `{src_rel}` to `{dst_rel}`: {e}")


def copy_theme(site_dir: Path, theme_dir: Path = STATIC_DIR) -> list[str]:
    """Copy the bundled theme files that are not already in the site.

    Returns:
        Error messages for files that could not be copied.
    """
    errors = []
    for src in sorted(theme_dir.rglob("*")):
        if not src.is_file():
            continue
        dst = site_dir / src.relative_to(theme_dir)
        if dst.exists():
            continue
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(src, dst)
        except OSError as e:
            errors.append(f"Unable to copy theme file {src.name}: {e}")
    return errors


def mirror_artifacts(
    project: BookProject, outputs: list[BuildOutput], store: CacheStore, result: AssemblyResult
) -> None:
    """Write freshly rendered outputs into the artifact cache.

    When a write fails, any artifact left from an earlier build is removed so
    it can never be read back as current.
    """
    for output in outputs:
        if output.reused:
            continue
        dst = store.artifact_path(project.relative_source(output.src_file))
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
            dst.write_text(output.text, encoding="utf-8")
        except OSError as e:
            result.errors.append(f"Unable to cache artifact of {output.src_file}: {e}")
            result.failed_sources.append(output.src_file)
            try:
                dst.unlink(missing_ok=True)
            except OSError as unlink_error:
                result.errors.append(f"Unable to remove stale artifact {dst}: {unlink_error}")


def assemble_site(project: BookProject, walk: WalkResult, store: CacheStore) -> AssemblyResult:
    """Write the site directory from the outputs of a walk.

    Args:
        project: The loaded book project.
        walk: Result of the walk, with reused outputs already read back.
        store: Cache store receiving the artifact mirror.

    Returns:
        AssemblyResult listing per-item errors and warnings.

    Raises:
        SiteDirectoryError: If the site directory cannot be created.
    """
    site_dir = project.site_dir
    ensure_site_dir(site_dir)

    result = AssemblyResult()
    result.errors.extend(clear_site_dir(site_dir))
    result.errors.extend(copy_includes(project))

    outputs = walk.outputs
    write_outputs(project, outputs, result)
    apply_copies(project, result)

    if project.book.use_default_theme:
        result.errors.extend(copy_theme(site_dir))

    mirror_artifacts(project, outputs, store, result)

    logger.info(f"Wrote {len(result.written)} documents to {site_dir}")
    return result


def persist_cache(
    store: CacheStore,
    snapshot: CacheSnapshot,
    walk: WalkResult,
    src_root: Path,
    assembly: Optional[AssemblyResult] = None,
) -> CacheSnapshot:
    """Save the snapshot, minus the files that failed to build or publish.

    Failed files keep no cache entry, so they are rendered again next time.
    A snapshot saved after an assembly with errors is marked incomplete, so
    the next build assembles the site again even if no source changed.

    Returns:
        The snapshot that was written.

    Raises:
        CachePersistError: If the index cannot be written.
    """
    sources = [error.src_file for error in walk.errors]
    if assembly is not None:
        sources.extend(assembly.failed_sources)

    failed = []
    for src_file in sources:
        try:
            failed.append(relative_key(src_file, src_root))
        except ValueError:
            continue

    persisted = snapshot.without(failed)
    if assembly is not None and assembly.errors:
        persisted = persisted.as_incomplete()
    store.save(persisted)
    return persisted
