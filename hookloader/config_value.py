"""Tagged view over arbitrary configuration values.

Configuration handed to the loader is whatever the caller built: strings,
nested mappings, lists, numbers. ``ConfigValue.of()`` classifies one layer
of such a value so callers can dispatch on the variant instead of probing
types at every step.
"""

from collections.abc import Iterator
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

_SCALARS = (type(None), bool, int, float, complex, bytes, bytearray)


@dataclass(frozen=True)
class StringValue:
    """A string leaf (path, module name, flag, or plain text)."""

    value: str


@dataclass(frozen=True)
class ObjectValue:
    """A container whose members are reached by key (mappings and sequences)."""

    value: Any

    def children(self) -> Iterator[Any]:
        """Yield member values in insertion (or index) order."""
        if isinstance(self.value, Mapping):
            yield from self.value.values()
        else:
            yield from self.value


@dataclass(frozen=True)
class OtherValue:
    """Anything else: numbers, booleans, None, opaque objects."""

    value: Any


ConfigValue = StringValue | ObjectValue | OtherValue


def classify(value: Any) -> ConfigValue:
    """Wrap ``value`` in the variant that describes it."""
    if isinstance(value, str):
        return StringValue(value)
    if isinstance(value, _SCALARS):
        return OtherValue(value)
    if isinstance(value, (Mapping, list, tuple, set, frozenset)):
        return ObjectValue(value)
    return OtherValue(value)


def is_object_like(value: Any) -> bool:
    """True for values that carry identity and members (not primitives)."""
    return value is not None and not isinstance(value, (str, *_SCALARS))
