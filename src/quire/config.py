# src/quire/config.py
"""Configuration system for quire.

This module handles loading build settings from environment variables and an
optional INI file in the project root, providing sensible defaults, and
computing derived paths for the cache directory structure.
"""

from configparser import ConfigParser
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional
import os


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


CONFIG_FILE = "quire.ini"

# Schema: section -> key -> (type, default, min, max, description)
CONFIG_SCHEMA: dict[str, dict[str, tuple[type, Any, Any, Any, str]]] = {
    "build": {
        "parallel_limit": (int, 8, 1, 64, "Concurrent conversion subprocesses"),
        "output_extension": (str, ".html", None, None, "Extension of rendered files"),
        "converter": (str, "asciidoctor", None, None, "Document conversion command"),
    },
    "paths": {
        "index_file": (str, "index.yaml", None, None, "Directory description file name"),
        "cache_dir": (str, ".quire-cache", None, None, "Cache directory name"),
        "cache_index": (str, "index.json", None, None, "Cache index file name"),
        "artifacts_dir": (str, "artifacts", None, None, "Rendered artifact mirror"),
    },
}


@dataclass(frozen=True)
class BuildConfig:
    """Build-related configuration."""

    parallel_limit: int
    output_extension: str
    converter: str


@dataclass(frozen=True)
class PathsConfig:
    """Path names configuration."""

    index_file: str
    cache_dir: str
    cache_index: str
    artifacts_dir: str


def _defaults(section: str) -> dict[str, Any]:
    return {key: default for key, (_, default, _, _, _) in CONFIG_SCHEMA[section].items()}


def _load_section(
    parser: ConfigParser, section: str, schema: dict[str, tuple[type, Any, Any, Any, str]]
) -> dict[str, Any]:
    """Load and validate a configuration section.

    Args:
        parser: ConfigParser instance with loaded config
        section: Section name to load
        schema: Schema definition for the section

    Returns:
        Dictionary of validated configuration values

    Raises:
        ConfigError: If validation fails
    """
    result = {}

    for key, (typ, default, min_val, max_val, _) in schema.items():
        if not parser.has_option(section, key):
            result[key] = default
            continue

        raw_value = parser.get(section, key)
        if typ is not int:
            result[key] = raw_value
            continue

        try:
            value = int(raw_value)
        except ValueError as e:
            raise ConfigError(
                f"Invalid value for [{section}].{key}: {raw_value!r} (expected int)"
            ) from e
        if min_val is not None and value < min_val:
            raise ConfigError(f"Value for [{section}].{key} is {value}, but minimum is {min_val}")
        if max_val is not None and value > max_val:
            raise ConfigError(f"Value for [{section}].{key} is {value}, but maximum is {max_val}")
        result[key] = value

    return result


def _load_config(config_path: Optional[Path] = None) -> tuple[BuildConfig, PathsConfig]:
    """Load section configs from an INI file.

    Args:
        config_path: Path to config file. If None, uses defaults from schema.

    Returns:
        Tuple of (BuildConfig, PathsConfig).

    Raises:
        ConfigError: If validation fails
    """
    parser = ConfigParser()

    if config_path and config_path.exists():
        parser.read(config_path)

    build = BuildConfig(**_load_section(parser, "build", CONFIG_SCHEMA["build"]))
    paths = PathsConfig(**_load_section(parser, "paths", CONFIG_SCHEMA["paths"]))

    if not build.output_extension.startswith("."):
        raise ConfigError(
            f"Value for [build].output_extension must start with '.': {build.output_extension!r}"
        )

    return build, paths


@dataclass(frozen=True)
class Config:
    """Complete build configuration for one project root."""

    project_root: Path
    build: BuildConfig = None  # type: ignore[assignment]
    paths: PathsConfig = None  # type: ignore[assignment]

    def __post_init__(self):
        """Initialize section configs with defaults if not provided."""
        if self.build is None:
            object.__setattr__(self, "build", BuildConfig(**_defaults("build")))
        if self.paths is None:
            object.__setattr__(self, "paths", PathsConfig(**_defaults("paths")))

    @property
    def cache_path(self) -> Path:
        """Path to the hidden cache directory."""
        return self.project_root / self.paths.cache_dir

    @property
    def cache_index_path(self) -> Path:
        """Path to the serialized cache snapshot."""
        return self.cache_path / self.paths.cache_index

    @property
    def artifacts_path(self) -> Path:
        """Path to the mirror of previously rendered artifacts."""
        return self.cache_path / self.paths.artifacts_dir


@lru_cache(maxsize=8)
def load_settings(project_root: Path) -> Config:
    """Load settings for a project from environment variables and quire.ini.

    Settings are cached per project root.
    Use load_settings.cache_clear() to reload settings.

    Args:
        project_root: Directory containing the book file.

    Returns:
        Config object populated from the config file and environment.

    Raises:
        ConfigError: If the config file or an override is invalid.
    """
    config_file = project_root / CONFIG_FILE
    try:
        config_exists = config_file.is_file()
    except PermissionError:
        config_exists = False
    build, paths = _load_config(config_file if config_exists else None)

    parallel_limit_env = os.getenv("QUIRE_PARALLEL_LIMIT")
    if parallel_limit_env:
        try:
            parallel_limit = int(parallel_limit_env)
        except ValueError as e:
            raise ConfigError(f"Invalid QUIRE_PARALLEL_LIMIT: {parallel_limit_env!r}") from e
        if parallel_limit < 1:
            raise ConfigError(f"QUIRE_PARALLEL_LIMIT must be at least 1, got {parallel_limit}")
    else:
        parallel_limit = build.parallel_limit

    build = BuildConfig(
        parallel_limit=parallel_limit,
        output_extension=build.output_extension,
        converter=os.getenv("QUIRE_CONVERTER", build.converter),
    )

    return Config(project_root=project_root, build=build, paths=paths)
