"""Grouped reporting of non-fatal errors."""

import logging
from typing import Sequence

logger = logging.getLogger("quire")


def log_errors(errors: Sequence[object], header: str, kind: str = "error") -> None:
    """Log a count-prefixed list of errors under one header.

    Produces, for example::

        2 errors while building the book:
        - src/a.adoc: Failed to convert file
        - src/b.adoc: Failed to convert file

    Args:
        errors: Printable error items. Nothing is logged when empty.
        header: Text after the count, e.g. "while building the book".
        kind: Singular noun for the items ("error" or "warning").
    """
    if not errors:
        return

    noun = kind if len(errors) == 1 else f"{kind}s"
    level = logging.WARNING if kind == "warning" else logging.ERROR

    lines = [f"{len(errors)} {noun} {header}:"]
    lines.extend(f"- {item}" for item in errors)
    logger.log(level, "\n".join(lines))


def log_warnings(warnings: Sequence[object], header: str) -> None:
    """Log a count-prefixed list of warnings under one header."""
    log_errors(warnings, header, kind="warning")
