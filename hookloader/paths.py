"""Path and module-request resolution for the loader.

These are the host-facing primitives: canonical real paths, Python module
resolution, and the identity of the loader's own files.
"""

from __future__ import annotations

import importlib.util
import logging
import os
import re
import sys
from importlib.machinery import ModuleSpec
from importlib.machinery import PathFinder
from pathlib import Path
from types import ModuleType
from typing import Any

from .exceptions import ResolutionError

logger = logging.getLogger(__name__)

# Drive-letter prefix such as "C:\" or "C:/"
_DRIVE_PATTERN = re.compile(r"^[A-Za-z]:[\\/]")
_DOTTED_NAME = re.compile(r"^\.*[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")

PACKAGE_DIR = Path(__file__).resolve().parent
OWN_FILENAME = str(PACKAGE_DIR / "__init__.py")


def is_path(value: str) -> bool:
    """Return True if ``value`` looks like a filesystem path, not a module name."""
    if not value:
        return False
    if value in (".", ".."):
        return True
    if value.startswith(("/", "./", "../")):
        return True
    if os.sep == "\\" or os.altsep:
        if value.startswith(("\\", ".\\", "..\\")) or _DRIVE_PATTERN.match(value):
            return True
    return False


def is_own_path(filename: str) -> bool:
    """Return True if ``filename`` is one of the loader's own source files."""
    try:
        Path(filename).resolve().relative_to(PACKAGE_DIR)
    except (OSError, ValueError):
        return False
    return True


def resolve_canonical_path(path: str | Path) -> str:
    """Resolve ``path`` to an absolute real path, following symlinks.

    Raises:
        ResolutionError: The path does not exist.
    """
    try:
        return str(Path(path).resolve(strict=True))
    except (OSError, RuntimeError) as e:
        raise ResolutionError(str(path), str(e)) from e


def resolve_module_request(name: str, from_module: Any = None) -> str:
    """Resolve a bare module request to the file that would be imported.

    Relative requests (leading dots) are resolved against the package of
    ``from_module``. Dotted names are found one segment at a time through
    the parent's search locations, so no package code runs; parents already
    in ``sys.modules`` are reused.

    Raises:
        ResolutionError: The request is not importable or has no file origin.
    """
    if not _DOTTED_NAME.match(name):
        raise ResolutionError(name, "not a module name")

    if name.startswith("."):
        package = getattr(from_module, "__package__", None)
        if not package:
            raise ResolutionError(name, "relative request without a parent package")
        try:
            name = importlib.util.resolve_name(name, package)
        except (ImportError, ValueError) as e:
            raise ResolutionError(name, str(e)) from e

    try:
        spec = _find_spec_without_import(name)
    except ResolutionError:
        raise
    except Exception as e:
        # Meta path finders may raise anything; callers only handle ResolutionError
        raise ResolutionError(name, f"{type(e).__name__}: {e}") from e

    if spec is None:
        raise ResolutionError(name, "module not found")
    if not spec.has_location or not spec.origin:
        raise ResolutionError(name, "module has no file origin")

    return resolve_canonical_path(spec.origin)


def _find_spec_without_import(name: str) -> ModuleSpec | None:
    spec: ModuleSpec | None = None
    fullname = ""
    for segment in name.split("."):
        if spec is not None and spec.submodule_search_locations is None:
            raise ResolutionError(name, f"{fullname} is not a package")
        search_path = spec.submodule_search_locations if spec is not None else None
        fullname = f"{fullname}.{segment}" if fullname else segment

        loaded = sys.modules.get(fullname)
        if loaded is not None and getattr(loaded, "__spec__", None) is not None:
            spec = loaded.__spec__
        elif search_path is None:
            # Top-level lookups consult the meta path but import nothing
            spec = importlib.util.find_spec(fullname)
        else:
            spec = PathFinder.find_spec(fullname, list(search_path))

        if spec is None:
            return None
    return spec


def get_module_name(host: Any) -> str:
    """Identity of a requesting module, used in activation fingerprints."""
    spec = getattr(host, "__spec__", None)
    name = getattr(spec, "name", None)
    if name:
        return name
    for attr in ("__name__", "__file__"):
        value = getattr(host, attr, None)
        if isinstance(value, str) and value:
            return value
    return ""


def get_module_filename(host: Any) -> str | None:
    """Filename a host was loaded from, if it has one."""
    filename = getattr(host, "__file__", None)
    if isinstance(filename, str) and filename:
        return filename
    return None


def root_module() -> ModuleType | None:
    """The module executing as ``__main__``, used as the default resolution parent."""
    return sys.modules.get("__main__")
