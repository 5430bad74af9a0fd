"""Module system seen by the loader.

The loader never reaches into interpreter internals directly; it talks to a
``ModuleSystem``: a filename-keyed cache, a resolver, and a way to run preload
requests. ``PythonModuleSystem`` implements it on top of importlib.
"""

from __future__ import annotations

import importlib
import importlib.util
import logging
import os
import sys
from collections.abc import Callable
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from types import ModuleType
from typing import Any
from typing import Protocol

from .exceptions import InvalidArgumentError
from .exceptions import ResolutionError
from .paths import is_path
from .paths import resolve_canonical_path
from .paths import resolve_module_request
from .paths import root_module

logger = logging.getLogger(__name__)

ResolveFilename = Callable[[str, Any], str]

FILE_MODULE_PREFIX = "hookloader_files"


class ModuleSystem(Protocol):
    """What the loader needs from the host's module machinery."""

    cache: dict[str, Any]

    def resolve_filename(self, request: str, parent: Any = None) -> str:
        """Resolve a request to a canonical filename.

        Raises:
            ResolutionError: The request cannot be resolved
        """
        ...

    def preload_modules(self, requests: list[str]) -> None:
        """Load each request, in order, before the main program runs."""
        ...


@dataclass
class VirtualLoaderSlot:
    """Resolver slot owned by a package-manager virtual loader.

    Rebinding points the virtual loader at the module system's resolver as it
    is *now*, so modules loaded afterwards see any hooks installed so far.
    """

    resolve_filename: ResolveFilename | None = None

    def rebind(self, module_system: ModuleSystem) -> None:
        self.resolve_filename = module_system.resolve_filename
        logger.debug("Rebound virtual loader resolver")


class PythonModuleSystem:
    """Module system backed by importlib, caching loaded modules by filename."""

    def __init__(self) -> None:
        self.cache: dict[str, ModuleType] = {}

    def resolve_filename(self, request: str, parent: Any = None) -> str:
        if is_path(request):
            base = Path.cwd()
            parent_file = getattr(parent, "__file__", None)
            if parent_file and not os.path.isabs(request):
                base = Path(parent_file).resolve().parent
            return resolve_canonical_path(base / request)
        return resolve_module_request(request, parent)

    def load(self, request: str, parent: Any = None) -> ModuleType:
        """Load ``request`` (a path or module name), reusing cached modules."""
        filename = self.resolve_filename(request, parent)
        cached = self.cache.get(filename)
        if cached is not None:
            return cached

        if is_path(request):
            module = self._load_file(filename)
        else:
            name = request
            if request.startswith("."):
                name = importlib.util.resolve_name(request, parent.__package__)
            module = importlib.import_module(name)

        self.cache[filename] = module
        logger.debug(f"Loaded '{request}' from {filename}")
        return module

    def _load_file(self, filename: str) -> ModuleType:
        stem = Path(filename).stem.replace(".", "_").replace("-", "_")
        # Namespaced so a loaded file never shadows a real top-level import
        name = f"{FILE_MODULE_PREFIX}.{stem}"
        spec = importlib.util.spec_from_file_location(name, filename)
        if spec is None or spec.loader is None:
            raise ResolutionError(filename, "no loader for file")
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        spec.loader.exec_module(module)
        return module

    def preload_modules(self, requests: list[str]) -> None:
        parent = root_module()
        for request in requests:
            logger.info(f"Preloading '{request}'")
            self.load(request, parent)


class RequireFunction:
    """Require-style entry point bound to a requesting module.

    Calling it loads a module relative to the host; ``resolve`` returns the
    filename a request would load and ``cache`` is the shared module cache.
    """

    def __init__(
        self,
        host: Any,
        module_system: PythonModuleSystem | ModuleSystem,
        state: Any = None,
    ):
        self.host = host
        self.module_system = module_system
        self.state = state  # LoaderState the activation resolved to

    def __call__(self, request: str) -> Any:
        if not isinstance(request, str) or not request:
            raise InvalidArgumentError("request", "non-empty string", request)
        load = getattr(self.module_system, "load", None)
        if load is None:
            raise TypeError(
                f"{type(self.module_system).__name__} cannot load modules"
            )
        return load(request, self.host)

    def resolve(self, request: str) -> str:
        return self.module_system.resolve_filename(request, self.host)

    @property
    def cache(self) -> dict[str, Any]:
        return self.module_system.cache


def evict(cache: dict[str, Any], keep: Callable[[str], bool]) -> list[str]:
    """Remove every cache entry whose filename fails ``keep``."""
    removed = [name for name in cache if not keep(name)]
    for name in removed:
        del cache[name]
    return removed


def find_first(names: Iterable[str], suffix: str) -> str | None:
    """First name ending with ``os.sep + suffix``, in iteration order."""
    for name in names:
        if name.endswith(os.sep + suffix):
            return name
    return None
