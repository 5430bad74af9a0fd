"""Tests for activation and bootstrap orchestration."""

import os
from types import ModuleType

import pytest

import hookloader
from hookloader.cache import ActivationCache
from hookloader.context import get_context
from hookloader.context import reset_context
from hookloader.env import LoaderEnv
from hookloader.exceptions import InvalidArgumentError
from hookloader.exceptions import InvalidOptionError
from hookloader.fingerprint import canonical_json
from hookloader.module_system import RequireFunction
from hookloader.options import create_options
from hookloader.paths import OWN_FILENAME
from hookloader.testing import LOADER_FILENAME
from hookloader.testing import create_test_context

SENTINEL = f"a{os.sep}.pnp.py"


def make_host(name: str = "app.main") -> ModuleType:
    return ModuleType(name)


class TestActivate:
    """Tests for Activator.activate()."""

    def test_returns_require_bound_to_host(self) -> None:
        ctx = create_test_context()
        host = make_host()

        require = ctx.activator.activate(host, {"mode": "auto"})

        assert isinstance(require, RequireFunction)
        assert require.host is host
        assert require.cache is ctx.module_system.cache
        assert require.state.fingerprint in ctx.cache

    @pytest.mark.parametrize("host", [None, "app.main", 7])
    def test_invalid_host_leaves_no_trace(self, host) -> None:
        ctx = create_test_context()

        with pytest.raises(InvalidArgumentError):
            ctx.activator.activate(host)

        assert len(ctx.cache) == 0
        assert ctx.installed_count == 0
        assert ctx.recorder.installs == []

    def test_invalid_options_leave_no_trace(self) -> None:
        ctx = create_test_context()
        host = make_host()

        with pytest.raises(InvalidOptionError):
            ctx.activator.activate(host, {"mode": "sometimes"})

        assert len(ctx.cache) == 0
        assert ctx.installed_count == 0
        assert ctx.recorder.installs == []
        assert ctx.packages.lookup(host) is None

    def test_same_request_initializes_once(self) -> None:
        initialized = []
        ctx = create_test_context(cache=ActivationCache(initialized.append))
        host = make_host()

        ctx.activator.activate(host, {"mode": "auto", "debug": True})
        ctx.activator.activate(host, {"debug": True, "mode": "auto"})

        assert len(initialized) == 1
        assert len(ctx.cache) == 1

    def test_different_options_initialize_separately(self) -> None:
        ctx = create_test_context()
        host = make_host()

        ctx.activator.activate(host, {"mode": "auto"})
        ctx.activator.activate(host, {"mode": "all"})

        assert len(ctx.cache) == 2

    def test_options_are_persisted_for_later_activation(self) -> None:
        ctx = create_test_context()
        host = make_host()

        ctx.activator.activate(host, "auto")
        require = ctx.activator.activate(host)

        expected = canonical_json(create_options({"mode": "auto"}))
        assert require.state.fingerprint == expected
        assert len(ctx.cache) == 2

    def test_without_options_or_package_state_is_uncached(self) -> None:
        ctx = create_test_context()

        first = ctx.activator.activate(make_host())
        second = ctx.activator.activate(make_host())

        assert first.state.fingerprint is None
        assert first.state is not second.state
        assert len(ctx.cache) == 0

    def test_hooks_installed_once(self) -> None:
        ctx = create_test_context()
        first, second = make_host("a"), make_host("b")

        ctx.activator.activate(first)
        ctx.activator.activate(first)
        ctx.activator.activate(second)

        assert ctx.recorder.kinds() == ["module", "process"]
        assert ctx.recorder.installs[0] == ("module", ctx.module_system)
        assert ctx.recorder.installs[1] == ("process", ctx.process_target)
        assert ctx.is_installed(first) and ctx.is_installed(second)
        assert ctx.installed_count == 2

    def test_reentrant_activation_during_initialization(self) -> None:
        ctx = create_test_context()
        host = make_host()
        initialized = []

        def initializer(state):
            initialized.append(state)
            ctx.activator.activate(host, {"mode": "auto"})

        ctx.cache = ActivationCache(initializer)
        ctx.activator.activate(host, {"mode": "auto"})

        assert len(initialized) == 1
        assert len(ctx.cache) == 1

    def test_virtual_loader_refresh(self) -> None:
        env = LoaderEnv(pnp=True, preloaded=False, preload_modules=["x.py", SENTINEL, "y.py"])
        ctx = create_test_context(env=env)
        stale = f"{os.sep}srv{os.sep}.pnp.py"
        ctx.module_system.cache.update({stale: object(), "/srv/other.py": object()})

        ctx.activator.activate(make_host())

        assert stale not in ctx.module_system.cache
        assert "/srv/other.py" in ctx.module_system.cache
        assert ctx.module_system.batches == [[SENTINEL]]
        assert ctx.virtual_loader.resolve_filename == ctx.module_system.resolve_filename

    def test_no_virtual_loader_work_outside_pnp_mode(self) -> None:
        env = LoaderEnv(preloaded=False, preload_modules=[SENTINEL])
        ctx = create_test_context(env=env)

        ctx.activator.activate(make_host())

        assert ctx.module_system.batches == []
        assert ctx.virtual_loader.resolve_filename is None


class TestBootstrap:
    """Tests for the startup decision table."""

    @pytest.mark.parametrize(
        ("flags", "expected"),
        [
            ({}, []),
            ({"check": True}, ["vm"]),
            ({"check": True, "eval": True}, ["vm"]),
            ({"eval": True}, ["module", "process", "vm"]),
            ({"repl": True}, ["module", "process", "vm"]),
            ({"cli": True}, ["module", "main", "process"]),
            ({"sideloaded": True}, ["module", "main", "process"]),
            ({"internal": True}, ["module", "main", "process", "global"]),
        ],
    )
    def test_decision_table(self, flags, expected) -> None:
        ctx = create_test_context(env=LoaderEnv(**flags))
        ctx.activator.bootstrap()
        assert ctx.recorder.kinds() == expected

    def test_bootstrap_runs_once(self) -> None:
        ctx = create_test_context(env=LoaderEnv(cli=True))
        ctx.activator.bootstrap()
        ctx.activator.bootstrap()

        assert ctx.recorder.kinds() == ["module", "main", "process"]
        assert ctx.activator.bootstrapped

    def test_preloaded_evicts_foreign_modules_and_partitions(self) -> None:
        env = LoaderEnv(preload_modules=["x.py", SENTINEL, LOADER_FILENAME, "y.py"])
        ctx = create_test_context(env=env)
        ctx.module_system.cache.update(
            {OWN_FILENAME: object(), "/elsewhere/mod.py": object()}
        )

        ctx.activator.bootstrap()

        assert list(ctx.module_system.cache) == [OWN_FILENAME]
        assert ctx.module_system.batches == [["x.py", SENTINEL], ["y.py"]]
        first, second = ctx.module_system.events
        assert first[2] is None
        assert second[2] == ctx.module_system.resolve_filename


class TestProcessContext:
    """Tests for the module-level entry points."""

    def test_activate_uses_process_context(self) -> None:
        ctx = create_test_context()
        reset_context(ctx)

        hookloader.activate(make_host(), {"mode": "auto"})

        assert len(ctx.cache) == 1

    def test_activate_rejects_invalid_host(self) -> None:
        reset_context(create_test_context())
        with pytest.raises(InvalidArgumentError):
            hookloader.activate(None)

    def test_get_context_is_created_once(self, monkeypatch) -> None:
        for name in list(os.environ):
            if name.startswith("HOOKLOADER_"):
                monkeypatch.delenv(name)

        ctx = get_context()

        assert get_context() is ctx
        assert ctx.activator.bootstrapped
