"""Command-line entry point: `quire build`, `quire clear`, `quire init`."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from quire import __version__
from quire.book.init import init_book
from quire.book.project import load_project
from quire.build.cache import clear_cache
from quire.build.pipeline import build_book
from quire.build.walker import BuildProgress
from quire.config import ConfigError
from quire.errors import QuireError

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logger = logging.getLogger(__name__)

app = typer.Typer(
    help=f"Incremental static site builder for AsciiDoc books ({__version__})",
    no_args_is_help=True,
    add_completion=False,
)

DirArgument = Annotated[
    Optional[Path],
    typer.Argument(
        help="Project root or any directory below it. Defaults to the current directory.",
        show_default=False,
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Log debug output and the build summary."),
]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        level=logging.DEBUG if verbose else logging.INFO,
        force=True,
    )


def _fail(error: Exception) -> typer.Exit:
    logger.error(str(error))
    return typer.Exit(code=1)


async def _print_progress(progress: BuildProgress) -> None:
    logger.debug(progress.message)


@app.command()
def build(
    directory: DirArgument = None,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Ignore the build cache and render everything.")
    ] = False,
    verbose: VerboseOption = False,
) -> None:
    """Build the book into its site directory."""
    _configure_logging(verbose)
    try:
        project = load_project(directory or Path.cwd())
        report = asyncio.run(
            build_book(
                project,
                force_rebuild=force,
                verbose=verbose,
                progress_callback=_print_progress,
            )
        )
    except (QuireError, ConfigError) as e:
        raise _fail(e) from e

    if report.error_count:
        logger.warning(f"Build finished with {report.error_count} errors")


@app.command()
def clear(directory: DirArgument = None, verbose: VerboseOption = False) -> None:
    """Delete the build cache of the book."""
    _configure_logging(verbose)
    try:
        project = load_project(directory or Path.cwd())
        removed = clear_cache(project.settings)
    except (QuireError, ConfigError, OSError) as e:
        raise _fail(e) from e

    if not removed:
        logger.info("No build cache to clear")


@app.command()
def init(
    directory: DirArgument = None,
    title: Annotated[str, typer.Option("--title", "-t", help="Title of the new book.")] = "",
    verbose: VerboseOption = False,
) -> None:
    """Create a new book project."""
    _configure_logging(verbose)
    try:
        written = init_book(directory or Path.cwd(), title=title)
    except QuireError as e:
        raise _fail(e) from e

    for path in written:
        logger.info(f"Created {path}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
