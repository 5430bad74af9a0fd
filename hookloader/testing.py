"""
Testing utilities for hookloader.
Provides recording doubles for the loader's collaborators.
"""

from collections.abc import Mapping
from typing import Any

from .context import LoaderContext
from .env import LoaderEnv
from .exceptions import ResolutionError
from .hooks import HOOK_KINDS
from .hooks import HookRegistry
from .module_system import VirtualLoaderSlot
from .self_reference import SelfReferenceDetector

LOADER_FILENAME = "/opt/hookloader/hookloader/__init__.py"


class StubResolver:
    """Resolves requests from a fixed table; anything else fails to resolve."""

    def __init__(self, table: Mapping[str, str] | None = None):
        self.table = dict(table or {})
        self.calls: list[str] = []

    def resolve_path(self, path: str) -> str:
        self.calls.append(path)
        if path in self.table:
            return self.table[path]
        raise ResolutionError(path, "not in stub table")

    def resolve_request(self, request: str, parent: Any = None) -> str:
        return self.resolve_path(request)


class RecordingModuleSystem:
    """Module system that records preload batches instead of importing."""

    def __init__(self, virtual_loader: VirtualLoaderSlot | None = None):
        self.cache: dict[str, Any] = {}
        self.batches: list[list[str]] = []
        self.events: list[tuple] = []
        self.virtual_loader = virtual_loader

    def resolve_filename(self, request: str, parent: Any = None) -> str:
        return request

    def preload_modules(self, requests: list[str]) -> None:
        batch = list(requests)
        self.batches.append(batch)
        resolver = self.virtual_loader.resolve_filename if self.virtual_loader else None
        self.events.append(("preload", batch, resolver))

    def load(self, request: str, parent: Any = None) -> Any:
        self.events.append(("load", request, parent))
        return self.cache.setdefault(request, object())


class HookRecorder:
    """Records hook installations.

    ``attach()`` registers a recording installer for every hook kind, so the
    registry's own idempotence can be observed through ``installs``.
    """

    def __init__(self):
        self.installs: list[tuple[str, Any]] = []

    def installer(self, kind: str):
        def install(target: Any) -> None:
            self.installs.append((kind, target))

        install.__name__ = f"record_{kind}"
        return install

    def attach(self, registry: HookRegistry) -> "HookRecorder":
        for kind in HOOK_KINDS:
            registry.register(kind, self.installer(kind))
        return self

    def kinds(self) -> list[str]:
        return [kind for kind, _ in self.installs]

    def clear(self):
        self.installs.clear()


def create_test_context(
    env: LoaderEnv | None = None,
    resolver: StubResolver | None = None,
    **overrides: Any,
) -> LoaderContext:
    """Create a loader context wired to recording doubles.

    The returned context has ``recorder`` (HookRecorder) and ``resolver``
    (StubResolver) attributes for assertions.
    """
    resolver = resolver or StubResolver({LOADER_FILENAME: LOADER_FILENAME})
    virtual_loader = overrides.pop("virtual_loader", VirtualLoaderSlot())
    module_system = overrides.pop(
        "module_system", RecordingModuleSystem(virtual_loader)
    )
    hooks = overrides.pop("hooks", HookRegistry())
    detector = overrides.pop(
        "detector",
        SelfReferenceDetector(
            own_filename=LOADER_FILENAME,
            resolve_path=resolver.resolve_path,
            resolve_request=resolver.resolve_request,
            parent_module=lambda: None,
        ),
    )

    context = LoaderContext(
        env=env or LoaderEnv(),
        module_system=module_system,
        hooks=hooks,
        detector=detector,
        virtual_loader=virtual_loader,
        **overrides,
    )
    context.recorder = HookRecorder().attach(hooks)
    context.resolver = resolver
    return context
