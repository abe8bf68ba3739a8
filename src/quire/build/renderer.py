"""Renderer capability used by the walker.

The walker only needs to know whether a file can be satisfied from the last
build and how to render one that cannot. Alternative document formats plug in
by implementing this interface.
"""

from __future__ import annotations

import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)


@dataclass
class BuildOutput:
    """Rendered text of one source file.

    Attributes:
        text: Rendered document.
        src_file: Absolute path to the source file.
        reused: True when read back from the artifact cache instead of rendered.
    """

    text: str
    src_file: Path
    reused: bool = False


@dataclass
class BuildError:
    """Failure to produce the output of one source file."""

    error: Exception
    src_file: Path

    def __str__(self) -> str:
        return f"{self.src_file}: {self.error}"


BuildOutcome = Union[BuildOutput, BuildError]


class Renderer(ABC):
    """Abstract base class for document renderers."""

    @abstractmethod
    def can_skip(self, src_file: Path) -> bool:
        """Check if the previous build's output of a file is still valid.

        Args:
            src_file: Absolute path to a source file.

        Returns:
            True if the cached artifact can be reused.
        """
        pass

    @abstractmethod
    async def render(self, src_file: Path) -> str:
        """Render one source file.

        Args:
            src_file: Absolute path to a source file.

        Returns:
            The rendered document.

        Raises:
            RenderError: If the file cannot be rendered.
        """
        pass

    def fork(self) -> "Renderer":
        """Independent copy for one concurrent render task.

        The default is a deep copy so no task shares mutable state with
        another. Renderers holding unpicklable handles override this.
        """
        return copy.deepcopy(self)

    async def build(self, src_file: Path) -> BuildOutcome:
        """Render a file and wrap the result as a per-file outcome.

        Failures of any kind are attributed to the file and returned, never
        raised, so one bad document does not affect other tasks.
        """
        try:
            text = await self.render(src_file)
        except Exception as e:
            logger.debug(f"Failed to render {src_file}: {e}")
            return BuildError(error=e, src_file=src_file)
        return BuildOutput(text=text, src_file=src_file)
