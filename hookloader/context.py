"""Process-wide loader context.

All state that must outlive a single call lives here: the activation cache,
the set of activated hosts, package configuration, the file reader and the
hook registry. One context is created lazily per process by
``get_context()``; it is never torn down before the process exits.
``reset_context()`` exists for tests and embedding hosts.
"""

from __future__ import annotations

import builtins
import logging
import sys
from dataclasses import dataclass
from dataclasses import field
from typing import Any

from .cache import ActivationCache
from .env import LoaderEnv
from .fs import DegradingFileReader
from .hooks import HookRegistry
from .module_system import ModuleSystem
from .module_system import PythonModuleSystem
from .module_system import VirtualLoaderSlot
from .orchestrator import Activator
from .package import PackageRegistry
from .preload import PreloadPartitioner
from .self_reference import SelfReferenceDetector

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class LoaderContext:
    """Explicit owner of the loader's process-lifetime state."""

    env: LoaderEnv = field(default_factory=LoaderEnv.from_environ)
    module_system: ModuleSystem = field(default_factory=PythonModuleSystem)
    hooks: HookRegistry = field(default_factory=HookRegistry)
    packages: PackageRegistry = field(default_factory=PackageRegistry)
    reader: DegradingFileReader = field(default_factory=DegradingFileReader)
    detector: SelfReferenceDetector = field(default_factory=SelfReferenceDetector)
    virtual_loader: VirtualLoaderSlot = field(default_factory=VirtualLoaderSlot)
    cache: ActivationCache = field(default_factory=ActivationCache)
    process_target: Any = sys
    vm_target: Any = builtins
    _installed: dict[int, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        self.activator = Activator(self)

    def is_installed(self, host: Any) -> bool:
        """True once ``host`` has been activated (identity, not equality)."""
        return id(host) in self._installed

    def mark_installed(self, host: Any) -> None:
        # Keep a reference so the id is not reused while recorded
        self._installed[id(host)] = host

    @property
    def installed_count(self) -> int:
        return len(self._installed)

    def partitioner(self) -> PreloadPartitioner:
        """Preload partitioner wired to this context's module system."""
        return PreloadPartitioner(
            register=self.module_system.preload_modules,
            rebind=lambda: self.virtual_loader.rebind(self.module_system),
            is_self_reference=self.detector,
            sentinel_filename=self.env.pnp_filename,
        )


_context: LoaderContext | None = None


def get_context() -> LoaderContext:
    """Return the process context, creating and bootstrapping it on first use."""
    global _context
    if _context is None:
        _context = LoaderContext()
        logger.debug("Created loader context")
        _context.activator.bootstrap()
    return _context


def reset_context(context: LoaderContext | None = None) -> LoaderContext | None:
    """Replace the process context (None forgets it). Returns the old one."""
    global _context
    previous, _context = _context, context
    return previous
