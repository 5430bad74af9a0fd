"""Tests for the importlib-backed module system and its helpers."""

import json
import os
import sys
import uuid
from pathlib import Path
from types import ModuleType

import pytest

from hookloader.exceptions import InvalidArgumentError
from hookloader.exceptions import ResolutionError
from hookloader.module_system import FILE_MODULE_PREFIX
from hookloader.module_system import PythonModuleSystem
from hookloader.module_system import RequireFunction
from hookloader.module_system import VirtualLoaderSlot
from hookloader.module_system import evict
from hookloader.module_system import find_first


@pytest.fixture
def module_file(tmp_path: Path) -> Path:
    # Unique stem so the module does not collide with anything in sys.modules
    path = tmp_path / f"loaded_{uuid.uuid4().hex}.py"
    path.write_text("VALUE = 42\n")
    return path


class TestPythonModuleSystem:
    """Tests for loading and resolution through importlib."""

    def test_load_file_by_path(self, module_file: Path) -> None:
        system = PythonModuleSystem()
        module = system.load(str(module_file))

        assert module.VALUE == 42
        assert system.cache[str(module_file.resolve())] is module

    def test_loaded_file_does_not_shadow_top_level_module(self, tmp_path: Path) -> None:
        shadow = tmp_path / "json.py"
        shadow.write_text("SHADOW = True\n")

        module = PythonModuleSystem().load(str(shadow))

        assert module.SHADOW is True
        assert sys.modules["json"] is json
        assert sys.modules[f"{FILE_MODULE_PREFIX}.json"] is module
        assert module.__name__ == f"{FILE_MODULE_PREFIX}.json"

    def test_load_is_cached(self, module_file: Path) -> None:
        system = PythonModuleSystem()
        first = system.load(str(module_file))
        module_file.write_text("VALUE = 0\n")

        assert system.load(str(module_file)) is first

    def test_relative_path_resolves_against_parent(self, module_file: Path) -> None:
        parent = ModuleType("parent")
        parent.__file__ = str(module_file.parent / "parent.py")
        system = PythonModuleSystem()

        resolved = system.resolve_filename(f"./{module_file.name}", parent)

        assert resolved == str(module_file.resolve())

    def test_load_module_by_name(self) -> None:
        system = PythonModuleSystem()
        assert system.load("json") is json
        assert str(Path(json.__file__).resolve()) in system.cache

    def test_missing_path(self, tmp_path: Path) -> None:
        with pytest.raises(ResolutionError):
            PythonModuleSystem().load(str(tmp_path / "missing.py"))

    def test_missing_module(self) -> None:
        with pytest.raises(ResolutionError, match="module not found"):
            PythonModuleSystem().resolve_filename("hookloader_no_such_module")

    def test_preload_modules_loads_in_order(self, tmp_path: Path) -> None:
        order_file = tmp_path / "order.txt"
        paths = []
        for label in ("one", "two"):
            path = tmp_path / f"preload_{label}_{uuid.uuid4().hex}.py"
            path.write_text(
                f"with open({str(order_file)!r}, 'a') as f:\n    f.write('{label} ')\n"
            )
            paths.append(str(path))

        PythonModuleSystem().preload_modules(paths)

        assert order_file.read_text() == "one two "


class TestRequireFunction:
    """Tests for the require-style function returned by activation."""

    def test_call_loads_relative_to_host(self, module_file: Path) -> None:
        host = ModuleType("host")
        host.__file__ = str(module_file.parent / "host.py")
        system = PythonModuleSystem()
        require = RequireFunction(host, system)

        assert require(f"./{module_file.name}").VALUE == 42
        assert require.resolve(f"./{module_file.name}") == str(module_file.resolve())
        assert require.cache is system.cache

    @pytest.mark.parametrize("request_", ["", None, 42])
    def test_call_rejects_bad_request(self, request_) -> None:
        require = RequireFunction(ModuleType("host"), PythonModuleSystem())
        with pytest.raises(InvalidArgumentError):
            require(request_)

    def test_call_without_loader(self) -> None:
        class ResolveOnly:
            cache: dict = {}

            def resolve_filename(self, request, parent=None):
                return request

            def preload_modules(self, requests):
                pass

        require = RequireFunction(ModuleType("host"), ResolveOnly())
        with pytest.raises(TypeError, match="cannot load"):
            require("anything")


class TestHelpers:
    """Tests for cache eviction and lookup helpers."""

    def test_evict_removes_rejected_entries(self) -> None:
        cache = {"/a/keep.py": 1, "/a/drop.py": 2, "/b/keep.py": 3}
        removed = evict(cache, lambda name: name.endswith("keep.py"))

        assert removed == ["/a/drop.py"]
        assert list(cache) == ["/a/keep.py", "/b/keep.py"]

    def test_find_first_matches_whole_filename(self) -> None:
        names = [
            os.path.join("a", "x.pnp.py"),
            os.path.join("b", ".pnp.py"),
            os.path.join("c", ".pnp.py"),
        ]
        assert find_first(names, ".pnp.py") == names[1]
        assert find_first(names, "missing.py") is None

    def test_virtual_loader_rebind(self) -> None:
        system = PythonModuleSystem()
        slot = VirtualLoaderSlot()
        assert slot.resolve_filename is None

        slot.rebind(system)

        assert slot.resolve_filename == system.resolve_filename
