"""Detection of configuration values that point back at the loader itself."""

import logging
import os
from collections.abc import Callable
from typing import Any

from .config_value import ObjectValue
from .config_value import OtherValue
from .config_value import StringValue
from .config_value import classify
from .exceptions import ResolutionError
from .paths import OWN_FILENAME
from .paths import is_path
from .paths import resolve_canonical_path
from .paths import resolve_module_request
from .paths import root_module

logger = logging.getLogger(__name__)

FLAG_PREFIX = "-"


class SelfReferenceDetector:
    """
    Reports whether a configuration value names this loader.

    Strings are resolved (as paths, or as module requests relative to the
    root module) and compared with the loader's own canonical filename.
    Containers are searched recursively, short-circuiting on the first hit.
    Anything that fails to resolve is not a self-reference.
    """

    def __init__(
        self,
        own_filename: str = OWN_FILENAME,
        resolve_path: Callable[[str], str] = resolve_canonical_path,
        resolve_request: Callable[[str, Any], str] = resolve_module_request,
        parent_module: Callable[[], Any] = root_module,
    ):
        self.own_filename = own_filename
        self._resolve_path = resolve_path
        self._resolve_request = resolve_request
        self._parent_module = parent_module

    def __call__(self, value: Any) -> bool:
        return self.is_self_reference(value)

    def is_self_reference(self, value: Any) -> bool:
        """Return True if ``value`` (or anything nested in it) names the loader."""
        return self._check(value, set())

    def _check(self, value: Any, visited: set[int]) -> bool:
        node = classify(value)

        if isinstance(node, StringValue):
            return self._check_string(node.value)

        if isinstance(node, ObjectValue):
            # Guard against cyclic configuration
            if id(node.value) in visited:
                return False
            visited.add(id(node.value))
            return any(self._check(child, visited) for child in node.children())

        if isinstance(node, OtherValue):
            return False

        raise TypeError(f"Unhandled config value variant: {node!r}")

    def _check_string(self, value: str) -> bool:
        try:
            if is_path(value):
                resolved = self._resolve_path(os.path.abspath(value))
            elif not value.startswith(FLAG_PREFIX):
                resolved = self._resolve_request(value, self._parent_module())
            else:
                return False
        except ResolutionError as e:
            logger.debug(f"Not a self-reference ({e})")
            return False

        return resolved == self.own_filename
