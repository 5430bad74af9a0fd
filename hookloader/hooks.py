"""
Hook installation registry.
Installs runtime hooks by kind, in priority order, once per target.
"""

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from typing import Literal

from .exceptions import HookInstallError

logger = logging.getLogger(__name__)

HookKind = Literal["module", "process", "vm", "main", "global"]
HOOK_KINDS: tuple[HookKind, ...] = ("module", "process", "vm", "main", "global")


@dataclass
class HookInstaller:
    """Registered hook installer with priority."""

    install: Callable[[Any], None]
    priority: int = 0
    name: str | None = None

    def __lt__(self, other: "HookInstaller") -> bool:
        """Sort by priority (lower number = earlier)."""
        return self.priority < other.priority


class HookRegistry:
    """
    Installs runtime hooks with per-target idempotence.

    Installers run sequentially by priority. Installing the same kind on the
    same target twice has no further effect; targets are tracked by identity,
    not equality. An installer that raises aborts the installation and is
    surfaced as HookInstallError; the target is not marked as hooked, and a
    retry resumes with the installers that have not yet succeeded.
    """

    MODULE = "module"
    PROCESS = "process"
    VM = "vm"
    MAIN = "main"
    GLOBAL = "global"

    def __init__(self):
        """Initialize empty hook registry."""
        self._installers: dict[str, list[HookInstaller]] = defaultdict(list)
        self._installed: dict[str, dict[int, Any]] = defaultdict(dict)
        # Targets whose last install failed, with the installers already applied
        self._partial: dict[str, dict[int, tuple[Any, list[HookInstaller]]]] = (
            defaultdict(dict)
        )

    def register(
        self,
        kind: HookKind,
        install: Callable[[Any], None],
        priority: int = 0,
        name: str | None = None,
    ) -> Callable[[], None]:
        """
        Register an installer for a hook kind.

        Args:
            kind: Hook kind ("module", "process", "vm", "main", "global")
            install: Function applying the hook to a target
            priority: Execution priority (lower = earlier)
            name: Optional installer name for debugging

        Returns:
            Unregister function
        """
        if kind not in HOOK_KINDS:
            raise ValueError(f"Unknown hook kind: {kind}")

        installer = HookInstaller(
            install=install,
            priority=priority,
            name=name or getattr(install, "__name__", repr(install)),
        )
        self._installers[kind].append(installer)
        self._installers[kind].sort()

        logger.debug(
            f"Registered {kind} hook '{installer.name}' with priority {priority}"
        )

        def unregister():
            """Remove this installer from the registry."""
            if installer in self._installers[kind]:
                self._installers[kind].remove(installer)
                logger.debug(f"Unregistered {kind} hook '{installer.name}'")

        return unregister

    def install(self, kind: HookKind, target: Any) -> bool:
        """
        Install every hook of ``kind`` on ``target``.

        Returns:
            True if hooks were installed, False if the target already had them
        """
        if self.is_installed(kind, target):
            logger.debug(f"{kind} hooks already installed on {_describe(target)}")
            return False

        # Installers that already succeeded on this target are not rerun
        _, applied = self._partial[kind].setdefault(id(target), (target, []))
        for installer in self._installers.get(kind, []):
            if any(done is installer for done in applied):
                continue
            try:
                installer.install(target)
            except Exception as e:
                logger.error(
                    f"Error in {kind} hook '{installer.name}' for {_describe(target)}: {e}"
                )
                raise HookInstallError(
                    f"{kind} hook '{installer.name}' failed: {e}"
                ) from e
            applied.append(installer)

        del self._partial[kind][id(target)]
        # Hold a reference so the id stays unique while recorded
        self._installed[kind][id(target)] = target
        logger.info(f"Installed {kind} hooks on {_describe(target)}")
        return True

    def is_installed(self, kind: HookKind, target: Any) -> bool:
        return id(target) in self._installed.get(kind, {})

    def list_installers(self, kind: HookKind | None = None) -> dict[str, list[str]]:
        """
        List registered installers.

        Args:
            kind: Optional kind to filter by

        Returns:
            Dict of hook kinds to installer names
        """
        if kind:
            installers = self._installers.get(kind, [])
            return {kind: [i.name for i in installers if i.name is not None]}
        return {
            k: [i.name for i in installers if i.name is not None]
            for k, installers in self._installers.items()
        }


def _describe(target: Any) -> str:
    return getattr(target, "__name__", None) or type(target).__name__
