"""File reading with a fast path that degrades permanently on failure.

The fast path reads raw bytes with ``os.open``/``os.read`` and treats a
missing file as an ordinary ``None`` result. It cannot cope with everything
(directories, unreadable files, undecodable content); the first time it
raises, the reader switches to the general ``pathlib`` path for the rest
of its lifetime.
"""

import codecs
import logging
import os
from collections.abc import Callable
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024


class ReadPathState(Enum):
    """Fast-path state machine states."""

    FAST_AVAILABLE = "fast_available"  # Fast path is tried for UTF-8 reads
    DEGRADED = "degraded"  # Fast path failed once; never tried again


def _is_utf8(encoding: Any) -> bool:
    if not isinstance(encoding, str):
        return False
    try:
        return codecs.lookup(encoding).name == "utf-8"
    except LookupError:
        return False


def fast_read(filename: str) -> str | None:
    """Read a UTF-8 file, returning None if it does not exist.

    Raises:
        OSError: Any failure other than a missing file (e.g. a directory)
        UnicodeDecodeError: Content is not valid UTF-8
    """
    try:
        fd = os.open(filename, os.O_RDONLY | getattr(os, "O_BINARY", 0))
    except (FileNotFoundError, NotADirectoryError):
        return None

    chunks = []
    try:
        while chunk := os.read(fd, _CHUNK_SIZE):
            chunks.append(chunk)
    finally:
        os.close(fd)
    return b"".join(chunks).decode("utf-8")


def slow_read(filename: str, encoding: str | None = None) -> str | bytes | None:
    """General read: text in ``encoding``, bytes when None, None on failure."""
    path = Path(filename)
    try:
        if encoding is None:
            return path.read_bytes()
        return path.read_text(encoding=encoding)
    except (OSError, UnicodeDecodeError, LookupError) as e:
        logger.debug(f"Could not read {filename}: {e}")
        return None


@dataclass(eq=False)
class DegradingFileReader:
    """
    Two-tier file reader with a one-way fast -> slow transition.

    State Machine:
        FAST_AVAILABLE -> DEGRADED (first fast-path exception)
        DEGRADED is terminal.

    Example:
        reader = DegradingFileReader()
        source = reader.read("module.py", "utf-8")
    """

    fast_path: Callable[[str], str | None] | None = fast_read
    slow_path: Callable[[str, str | None], str | bytes | None] = slow_read
    _state: ReadPathState = field(init=False)

    def __post_init__(self) -> None:
        self._state = (
            ReadPathState.FAST_AVAILABLE
            if callable(self.fast_path)
            else ReadPathState.DEGRADED
        )

    @property
    def state(self) -> ReadPathState:
        """Current fast-path state."""
        return self._state

    @property
    def fast_path_enabled(self) -> bool:
        return self._state == ReadPathState.FAST_AVAILABLE

    def degrade(self) -> bool:
        """
        Disable the fast path for good.

        Returns:
            True if state changed, False if already degraded
        """
        if self._state == ReadPathState.FAST_AVAILABLE:
            self._state = ReadPathState.DEGRADED
            return True
        return False

    def read(self, filename: Any, encoding: Any = None) -> str | bytes | None:
        """
        Read ``filename``.

        Returns:
            File content, or None when the filename is not a string or the
            file cannot be read
        """
        if not isinstance(filename, str):
            return None

        if self.fast_path_enabled and _is_utf8(encoding):
            try:
                return self.fast_path(filename)
            except Exception as e:
                if self.degrade():
                    logger.debug(
                        f"Fast read failed for {filename} ({e!r}); using slow path from now on"
                    )

        return self.slow_path(filename, encoding)
