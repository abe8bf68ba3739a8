"""`asciidoctor` runner and document metadata extraction.

Converter options come from book.yaml and may contain placeholder tokens
that are replaced before the command runs:

* `{base_url}`: base url in the form `/base/url`
* `{src_dir}`: absolute path to the source directory
* `{dst_dir}`: absolute path to the site directory

For example:

    convert_opts:
      - ["-a", ["imagesdir={base_url}/static/img", "linkcss"]]
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

from quire.constants import (
    EMBEDDED_FLAG,
    PLACEHOLDER_BASE_URL,
    PLACEHOLDER_DST_DIR,
    PLACEHOLDER_SRC_DIR,
)
from quire.errors import ConversionError

logger = logging.getLogger(__name__)

# :name: value | :!name: | :name!:
ATTRIBUTE_ENTRY = re.compile(r"^:(?P<neg1>!?)(?P<name>\w[\w-]*)(?P<neg2>!?):(?:\s+(?P<value>.*))?$")


@dataclass(frozen=True)
class ConvertContext:
    """Everything needed to run the converter for one file.

    Attributes:
        src_dir: Source directory; also the working directory of the command.
        dst_dir: Site directory.
        base_url: URL prefix without trailing slash.
        options: Ordered (flag, args) pairs from book.yaml.
        converter: Name or path of the converter executable.
        embedded: Output the body only (no header and footer).
    """

    src_dir: str
    dst_dir: str
    base_url: str = ""
    options: tuple[tuple[str, tuple[str, ...]], ...] = field(default_factory=tuple)
    converter: str = "asciidoctor"
    embedded: bool = False

    def with_embedded(self, embedded: bool = True) -> "ConvertContext":
        return replace(self, embedded=embedded)

    def substitute(self, text: str) -> str:
        """Replace the placeholder tokens in an option argument or attribute value."""
        text = text.replace(PLACEHOLDER_BASE_URL, self.base_url)
        text = text.replace(PLACEHOLDER_SRC_DIR, self.src_dir)
        return text.replace(PLACEHOLDER_DST_DIR, self.dst_dir)

    def command(self, src_file: Path) -> list[str]:
        """Build the converter command line writing HTML to stdout."""
        cmd = [self.converter, str(src_file), "-o", "-", "-B", self.src_dir]

        for flag, args in self.options:
            if flag == EMBEDDED_FLAG:
                continue
            # A flag without arguments is passed once, otherwise once per argument
            if not args:
                cmd.append(flag)
                continue
            for arg in args:
                cmd.extend([flag, self.substitute(arg)])

        if self.embedded or any(flag == EMBEDDED_FLAG for flag, _ in self.options):
            cmd.append(EMBEDDED_FLAG)

        return cmd


@dataclass
class AdocMetadata:
    """Title and header attributes of an AsciiDoc document."""

    title: Optional[str] = None
    attributes: dict[str, str] = field(default_factory=dict)
    unset: set[str] = field(default_factory=set)

    def find_attr(self, name: str) -> Optional[str]:
        if name in self.unset:
            return None
        return self.attributes.get(name)


def _is_line_to_skip(line: str) -> bool:
    line = line.strip()
    return not line or line.startswith("//")


def extract_metadata(text: str, ctx: ConvertContext | None = None) -> AdocMetadata:
    """Extract the document title and header attributes.

    Leading blank and comment lines are skipped. The header ends at the first
    blank line after it starts. Attribute values have placeholders replaced
    when a context is given.

    Args:
        text: AsciiDoc source.
        ctx: Context used for placeholder substitution.

    Returns:
        AdocMetadata with the title (if any) and attributes.
    """
    metadata = AdocMetadata()
    lines = iter(text.splitlines())

    first = None
    for line in lines:
        if not _is_line_to_skip(line):
            first = line
            break

    if first is None:
        return metadata

    if first.startswith("= "):
        metadata.title = first[2:].strip()
        header = lines
    else:
        header = iter([first, *lines])

    for line in header:
        if not line.strip():
            break
        if line.lstrip().startswith("//"):
            continue

        match = ATTRIBUTE_ENTRY.match(line.strip())
        if not match:
            # author and revision lines
            continue

        name = match.group("name")
        if match.group("neg1") or match.group("neg2"):
            metadata.attributes.pop(name, None)
            metadata.unset.add(name)
            continue

        value = (match.group("value") or "").strip()
        if ctx is not None:
            value = ctx.substitute(value)
        metadata.attributes[name] = value
        metadata.unset.discard(name)

    return metadata


async def run_asciidoctor(src_file: Path, ctx: ConvertContext) -> str:
    """Convert one file and return the HTML written to stdout.

    Args:
        src_file: Absolute path to the source file.
        ctx: Converter context.

    Returns:
        The rendered HTML.

    Raises:
        ConversionError: If the converter cannot be started or exits non-zero.
    """
    cmd = ctx.command(src_file)

    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=ctx.src_dir,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ConversionError(
            src_file, f"Unable to run `{ctx.converter}` for {src_file}", str(e)
        ) from e

    stdout, stderr = await proc.communicate()
    err_text = stderr.decode("utf-8", errors="replace").strip()

    if proc.returncode != 0:
        raise ConversionError(
            src_file,
            f"Failed to convert file: {src_file} (exit status {proc.returncode})",
            err_text or None,
        )

    if err_text:
        logger.warning(f"{ctx.converter} reported for {src_file}:\n{err_text}")

    return stdout.decode("utf-8")
