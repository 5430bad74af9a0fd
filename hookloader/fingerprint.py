"""Activation fingerprints.

A fingerprint is the canonical JSON form of "this exact activation request":
structurally equal configuration from the same requester always serializes
to the same string, whatever order its keys were written in.
"""

import json
from collections.abc import Callable
from collections.abc import Mapping
from pathlib import PurePath
from typing import Any

from pydantic import BaseModel

from .config_value import is_object_like
from .exceptions import InvalidArgumentError
from .exceptions import InvalidOptionError
from .options import LoaderOptions
from .options import create_options
from .package import PackageRegistry
from .paths import get_module_name


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, PurePath):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=canonical_json)
    if isinstance(value, Mapping):
        return dict(value)
    raise InvalidOptionError(
        f"Value of type {type(value).__name__} cannot be part of a fingerprint"
    )


def canonical_json(value: Any) -> str:
    """Serialize ``value`` deterministically (sorted keys, no whitespace)."""
    try:
        return json.dumps(
            value,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            default=_to_jsonable,
        )
    except (TypeError, ValueError) as e:
        raise InvalidOptionError(f"Configuration is not serializable: {e}") from e


def compute_fingerprint(
    host: Any,
    options: Any = None,
    packages: PackageRegistry | None = None,
    normalize: Callable[[Any], LoaderOptions] = create_options,
) -> str | None:
    """
    Compute the activation fingerprint for ``host``.

    Args:
        host: Requesting module (any object-like value)
        options: Raw activation options, or None to use package configuration
        packages: Registry used to find persisted package configuration
        normalize: Options normalizer

    Returns:
        Fingerprint string, or None when no options were given and the host
        has no package configuration.

    Raises:
        InvalidArgumentError: ``host`` is not object-like
        InvalidOptionError: ``options`` failed normalization
    """
    if not is_object_like(host):
        raise InvalidArgumentError("module", "object", host)

    if options is None:
        config = (packages or PackageRegistry()).lookup(host)
        if config is None:
            return None
        return canonical_json(config.options)

    normalized = normalize(options)
    return canonical_json({"name": get_module_name(host), "options": normalized})
