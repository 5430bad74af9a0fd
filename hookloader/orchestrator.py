"""
Activation orchestration - the heart of hookloader.

The Activator decides when, and how often, runtime hooks are turned on:
- ``bootstrap()`` runs once per process and installs the hooks the startup
  mode calls for.
- ``activate()`` runs per requesting module; it initializes loader state
  once per activation fingerprint and hooks each host only once.

Every argument and option is validated before anything is mutated, so a
rejected call leaves no partial activation behind.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from typing import Any

from .cache import LoaderState
from .config_value import is_object_like
from .exceptions import InvalidArgumentError
from .fingerprint import compute_fingerprint
from .module_system import RequireFunction
from .module_system import evict
from .module_system import find_first
from .options import LoaderOptions
from .options import create_options
from .paths import is_own_path
from .preload import is_sentinel

if TYPE_CHECKING:
    from .context import LoaderContext

logger = logging.getLogger(__name__)


class Activator:
    """
    Installs loader hooks for a loader context.

    Hook kinds map to targets owned by the context: module and main hooks go
    on the module system, the process hook on the process target, vm and
    global hooks on the vm target.
    """

    def __init__(self, context: LoaderContext):
        self._context = context
        self._bootstrapped = False

    @property
    def bootstrapped(self) -> bool:
        return self._bootstrapped

    def bootstrap(self) -> None:
        """
        Install startup hooks according to the environment flags.

        Decision table (first matching row wins):
            check              -> vm
            eval or repl       -> module, process, vm
            cli/internal/side  -> module, main, process
        ``internal`` also installs the global hook, and ``preloaded`` clears
        foreign modules from the cache and applies the preload requests.
        """
        if self._bootstrapped:
            logger.debug("Loader already bootstrapped")
            return
        self._bootstrapped = True

        ctx = self._context
        env = ctx.env
        hooks = ctx.hooks

        if env.check:
            hooks.install("vm", ctx.vm_target)
        elif env.eval or env.repl:
            hooks.install("module", ctx.module_system)
            hooks.install("process", ctx.process_target)
            hooks.install("vm", ctx.vm_target)
        elif env.cli or env.internal or env.sideloaded:
            hooks.install("module", ctx.module_system)
            hooks.install("main", ctx.module_system)
            hooks.install("process", ctx.process_target)

        if env.internal:
            hooks.install("global", ctx.vm_target)

        if env.preloaded:
            removed = evict(ctx.module_system.cache, is_own_path)
            if removed:
                logger.debug(f"Evicted {len(removed)} modules loaded before the loader")
            batches = ctx.partitioner().apply(env.preload_modules)
            logger.info(f"Applied preloads in {len(batches)} batch(es)")

    def activate(self, host: Any, options: Any = None) -> RequireFunction:
        """
        Activate the loader for a requesting module.

        Args:
            host: Requesting module (any object-like value)
            options: Optional loader options (mapping, mode string, or
                LoaderOptions); when omitted the host's package configuration
                is used

        Returns:
            Require-style entry point bound to ``host``

        Raises:
            InvalidArgumentError: ``host`` is not object-like
            InvalidOptionError: ``options`` or package configuration is invalid
        """
        if not is_object_like(host):
            raise InvalidArgumentError("module", "object", host)

        ctx = self._context
        normalized: LoaderOptions | None = None
        if options is not None:
            normalized = create_options(options)

        fingerprint = compute_fingerprint(host, normalized, ctx.packages)

        # No activation state has been touched up to here
        state = ctx.cache.ensure_initialized(fingerprint)

        if normalized is not None:
            ctx.packages.persist(host, normalized)

        ctx.hooks.install("module", ctx.module_system)

        if not ctx.is_installed(host):
            ctx.hooks.install("process", ctx.process_target)
            ctx.mark_installed(host)

        if ctx.env.pnp:
            self._refresh_virtual_loader()

        logger.info(f"Activated loader for '{_host_name(host)}'")
        return self._require_for(host, state)

    def _refresh_virtual_loader(self) -> None:
        ctx = self._context
        sentinel = ctx.env.pnp_filename
        cache = ctx.module_system.cache

        stale = find_first(list(cache), sentinel)
        if stale is not None:
            del cache[stale]
            logger.debug(f"Evicted cached virtual loader {stale}")

        for request in ctx.env.preload_modules:
            if is_sentinel(request, sentinel):
                ctx.module_system.preload_modules([request])
                ctx.virtual_loader.rebind(ctx.module_system)
                break

    def _require_for(self, host: Any, state: LoaderState) -> RequireFunction:
        return RequireFunction(host, self._context.module_system, state)


def _host_name(host: Any) -> str:
    return getattr(host, "__name__", None) or type(host).__name__
