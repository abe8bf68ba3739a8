"""Schemas for the book file and per-directory description files."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ConvertOption(BaseModel):
    """One converter flag with its arguments.

    Written in YAML as a two-element list: ``["-a", ["linkcss", "sectnums"]]``.
    A flag with no arguments is passed once; otherwise it is repeated for each
    argument.
    """

    flag: str = Field(..., min_length=1, description="Command-line flag")
    args: list[str] = Field(default_factory=list, description="Arguments for the flag")

    @model_validator(mode="before")
    @classmethod
    def _from_pair(cls, data):
        if isinstance(data, (list, tuple)):
            if len(data) != 2:
                raise ValueError("converter option must be a [flag, [args...]] pair")
            flag, args = data
            if isinstance(args, str):
                args = [args]
            return {"flag": flag, "args": args or []}
        return data


class BookConfig(BaseModel):
    """Deserialized from the book file in the root of a project."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., description="Title of the book")
    authors: list[str] = Field(default_factory=list, description="Authors of the book")
    base_url: str = Field("", description="Prefix for absolute site URLs, e.g. /my-book")
    src_dir: str = Field("src", description="Source directory, relative to the root")
    site_dir: str = Field("site", description="Output directory, relative to the root")
    includes: list[str] = Field(
        default_factory=list,
        description="Paths relative to src_dir copied verbatim into the site directory",
    )
    copies: list[tuple[str, str]] = Field(
        default_factory=list,
        description="(src, dst) pairs relative to the project root copied after the build",
    )
    use_default_theme: bool = Field(False, description="Copy and use the bundled theme")
    converts: list[str] = Field(
        default_factory=list,
        description="Files rendered but left out of the sidebar, e.g. 404.adoc",
    )
    convert_opts: list[ConvertOption] = Field(
        default_factory=list, description="Options passed to the converter"
    )
    fold_level: Optional[int] = Field(
        None, ge=0, description="Sidebar items up to this depth are open by default"
    )

    @field_validator("base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class SummaryRecord(BaseModel):
    """The document that describes a directory."""

    name: str = Field("", description="Sidebar title; empty to read it from the file")
    path: str = Field(..., min_length=1, description="Path relative to the directory")

    @model_validator(mode="before")
    @classmethod
    def _from_pair(cls, data):
        if isinstance(data, (list, tuple)):
            if len(data) != 2:
                raise ValueError("summary must be a [name, path] pair")
            return {"name": data[0], "path": data[1]}
        if isinstance(data, str):
            return {"path": data}
        return data


class IndexItemRecord(BaseModel):
    """A child entry: either ``{file: path, name: title}`` or ``{dir: path}``."""

    model_config = ConfigDict(extra="forbid")

    file: Optional[str] = None
    dir: Optional[str] = None
    name: str = ""

    @model_validator(mode="after")
    def _exactly_one_target(self) -> "IndexItemRecord":
        if (self.file is None) == (self.dir is None):
            raise ValueError("each item needs exactly one of `file` or `dir`")
        return self

    @property
    def target(self) -> str:
        return self.dir if self.dir is not None else self.file  # type: ignore[return-value]


class IndexRecord(BaseModel):
    """Deserialized from the description file of a source directory."""

    model_config = ConfigDict(extra="forbid")

    summary: SummaryRecord
    items: list[IndexItemRecord] = Field(default_factory=list)
