"""Preload request partitioning around the virtual-loader sentinel.

Preload requests run in order. When one of them is the package manager's
virtual loader, the requests up to and including it are loaded first, the
virtual loader is pointed at the (now hooked) resolver, and only then are
the remaining requests loaded.
"""

import logging
import os
from collections.abc import Callable
from collections.abc import Iterable
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_SENTINEL_FILENAME = ".pnp.py"


def is_sentinel(request: str, sentinel_filename: str = DEFAULT_SENTINEL_FILENAME) -> bool:
    """True if ``request`` names the virtual loader file."""
    return request.endswith(os.sep + sentinel_filename)


class PreloadPartitioner:
    """
    Registers preload requests in one or two ordered batches.

    Args:
        register: Performs the preloads for one batch
        rebind: Points the virtual loader at the current resolver
        is_self_reference: Predicate for requests naming this loader
        sentinel_filename: Filename identifying the virtual loader
    """

    def __init__(
        self,
        register: Callable[[list[str]], None],
        rebind: Callable[[], None],
        is_self_reference: Callable[[Any], bool],
        sentinel_filename: str = DEFAULT_SENTINEL_FILENAME,
    ):
        self._register = register
        self._rebind = rebind
        self._is_self_reference = is_self_reference
        self.sentinel_filename = sentinel_filename

    def partition(self, requests: Iterable[str]) -> tuple[list[str], int]:
        """
        Drop self-references and locate the sentinel.

        Returns:
            (retained requests, index of the first sentinel in them or -1)
        """
        retained: list[str] = []
        sentinel_index = -1

        for request in requests:
            if self._is_self_reference(request):
                logger.debug(f"Skipping preload of the loader itself: '{request}'")
                continue
            if is_sentinel(request, self.sentinel_filename):
                if sentinel_index == -1:
                    sentinel_index = len(retained)
                else:
                    logger.warning(
                        f"Ignoring extra virtual loader preload '{request}'"
                    )
            retained.append(request)

        return retained, sentinel_index

    def apply(self, requests: Iterable[str]) -> list[list[str]]:
        """
        Register preloads, splitting at the sentinel.

        Returns:
            The batches passed to ``register``, in call order
        """
        retained, sentinel_index = self.partition(requests)

        if sentinel_index == -1:
            if not retained:
                return []
            self._register(retained)
            return [retained]

        split = sentinel_index + 1
        head, tail = retained[:split], retained[split:]
        self._register(head)
        self._rebind()
        self._register(tail)
        return [head, tail]
