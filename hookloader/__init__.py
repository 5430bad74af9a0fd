"""
hookloader - activation cache and hook orchestration for the import system.
"""

__version__ = "1.0.0"

from typing import Any

from .cache import ActivationCache
from .cache import LoaderState
from .context import LoaderContext
from .context import get_context
from .context import reset_context
from .env import LoaderEnv
from .exceptions import HookInstallError
from .exceptions import HookLoaderError
from .exceptions import InvalidArgumentError
from .exceptions import InvalidOptionError
from .exceptions import ResolutionError
from .fingerprint import canonical_json
from .fingerprint import compute_fingerprint
from .fs import DegradingFileReader
from .fs import ReadPathState
from .hooks import HookRegistry
from .module_system import ModuleSystem
from .module_system import PythonModuleSystem
from .module_system import RequireFunction
from .module_system import VirtualLoaderSlot
from .options import InteropOptions
from .options import LoaderOptions
from .options import create_options
from .orchestrator import Activator
from .package import PackageConfig
from .package import PackageRegistry
from .preload import PreloadPartitioner
from .self_reference import SelfReferenceDetector


def activate(module: Any, options: Any = None) -> RequireFunction:
    """Activate the loader for ``module`` in the process context."""
    return get_context().activator.activate(module, options)


def read_file(filename: Any, encoding: Any = None) -> str | bytes | None:
    """Read a file through the process context's degrading reader."""
    return get_context().reader.read(filename, encoding)


__all__ = [
    "activate",
    "read_file",
    "ActivationCache",
    "Activator",
    "DegradingFileReader",
    "HookRegistry",
    "LoaderContext",
    "LoaderEnv",
    "LoaderOptions",
    "LoaderState",
    "InteropOptions",
    "ModuleSystem",
    "PackageConfig",
    "PackageRegistry",
    "PreloadPartitioner",
    "PythonModuleSystem",
    "ReadPathState",
    "RequireFunction",
    "SelfReferenceDetector",
    "VirtualLoaderSlot",
    "canonical_json",
    "compute_fingerprint",
    "create_options",
    "get_context",
    "reset_context",
    # Errors
    "HookLoaderError",
    "HookInstallError",
    "InvalidArgumentError",
    "InvalidOptionError",
    "ResolutionError",
]
