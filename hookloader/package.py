"""Package-level loader configuration.

A package is the nearest ancestor directory of a module that holds a
``.hookloaderrc*`` file or a ``pyproject.toml`` with a ``[tool.hookloader]``
table. Options come from that file; options passed to ``activate`` are
persisted per package and take precedence over what is on disk.
"""

from __future__ import annotations

import json
import logging
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .exceptions import InvalidOptionError
from .options import LoaderOptions
from .options import create_options
from .paths import get_module_filename

logger = logging.getLogger(__name__)

RC_FILENAMES = (
    ".hookloaderrc",
    ".hookloaderrc.yaml",
    ".hookloaderrc.yml",
    ".hookloaderrc.json",
)
PYPROJECT = "pyproject.toml"
TOOL_TABLE = "hookloader"


@dataclass
class PackageConfig:
    """Effective loader configuration for one package."""

    directory: Path | None
    options: LoaderOptions
    source: Path | None = None  # None when persisted by activate()


def read_package_options(directory: Path) -> tuple[LoaderOptions, Path] | None:
    """Read loader options declared in ``directory``.

    Files that cannot be read are skipped with a warning. A ``pyproject.toml``
    only counts when it has a ``[tool.hookloader]`` table.

    Returns:
        (options, source file), or None if the directory is not a package root.

    Raises:
        InvalidOptionError: The configuration file is malformed.
    """
    for name in RC_FILENAMES:
        rc_path = directory / name
        if not rc_path.is_file():
            continue
        content = _read_text(rc_path)
        if content is not None:
            return create_options(_parse_rc(rc_path, content)), rc_path

    pyproject = directory / PYPROJECT
    if pyproject.is_file():
        content = _read_text(pyproject)
        if content is not None:
            try:
                data = tomllib.loads(content)
            except tomllib.TOMLDecodeError as e:
                raise InvalidOptionError(f"Cannot parse {pyproject}: {e}") from e
            tool = data.get("tool", {})
            if isinstance(tool, dict) and TOOL_TABLE in tool:
                return create_options(tool[TOOL_TABLE]), pyproject

    return None


def _read_text(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Ignoring unreadable configuration file {path}: {e}")
        return None


def _parse_rc(path: Path, content: str) -> Any:
    try:
        if path.suffix == ".json":
            return json.loads(content) if content.strip() else {}
        # Extensionless rc files may hold YAML or JSON; YAML parses both
        return yaml.safe_load(content) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise InvalidOptionError(f"Cannot parse {path}: {e}") from e


class PackageRegistry:
    """Finds and remembers package configuration for requesting modules."""

    def __init__(self) -> None:
        self._persisted: dict[Any, PackageConfig] = {}
        self._discovered: dict[Path, PackageConfig | None] = {}
        # Hosts without a file are keyed by identity; keep them alive
        self._anonymous_hosts: dict[int, Any] = {}

    def find_root(self, host: Any) -> Path | None:
        """Nearest ancestor directory of the host's file that is a package root."""
        filename = get_module_filename(host)
        if filename is None:
            return None

        start = Path(filename).resolve().parent
        for directory in (start, *start.parents):
            config = self._discover(directory)
            if config is not None:
                return directory
        return None

    def _discover(self, directory: Path) -> PackageConfig | None:
        if directory not in self._discovered:
            found = read_package_options(directory)
            if found is None:
                self._discovered[directory] = None
            else:
                options, source = found
                logger.debug(f"Discovered package configuration in {source}")
                self._discovered[directory] = PackageConfig(
                    directory=directory, options=options, source=source
                )
        return self._discovered[directory]

    def _key(self, host: Any) -> Any:
        root = self.find_root(host)
        if root is not None:
            return root
        filename = get_module_filename(host)
        if filename is not None:
            return Path(filename).resolve().parent
        self._anonymous_hosts[id(host)] = host
        return ("host", id(host))

    def lookup(self, host: Any) -> PackageConfig | None:
        """Persisted configuration for the host's package, else what is on disk."""
        key = self._key(host)
        if key in self._persisted:
            return self._persisted[key]
        if isinstance(key, Path):
            return self._discover(key)
        return None

    def persist(self, host: Any, options: LoaderOptions) -> PackageConfig:
        """Record ``options`` as the configuration of the host's package."""
        key = self._key(host)
        directory = key if isinstance(key, Path) else None
        config = PackageConfig(directory=directory, options=options)
        self._persisted[key] = config
        logger.debug(f"Persisted loader options for package {directory or key}")
        return config

    def clear(self) -> None:
        """Forget all persisted and discovered configuration."""
        self._persisted.clear()
        self._discovered.clear()
        self._anonymous_hosts.clear()
