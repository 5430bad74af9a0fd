"""
Loader options.
Uses Pydantic for validation and normalization.
"""

from collections.abc import Mapping
from typing import Any
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field
from pydantic import ValidationError
from pydantic import field_validator

from .exceptions import InvalidOptionError

INTEROP_FLAGS = (
    "cache",
    "es_module",
    "extensions",
    "interop",
    "mutable_namespace",
    "named_exports",
    "paths",
    "vars",
    "dedefault",
    "top_level_return",
)


class InteropOptions(BaseModel):
    """Per-feature switches for loading legacy (require-style) modules."""

    model_config = ConfigDict(extra="forbid")

    cache: bool = True
    es_module: bool = True
    extensions: bool = True
    interop: bool = True
    mutable_namespace: bool = True
    named_exports: bool = True
    paths: bool = True
    vars: bool = True
    dedefault: bool = False
    top_level_return: bool = False

    @classmethod
    def all(cls, enabled: bool) -> "InteropOptions":
        """Every flag set to ``enabled``."""
        return cls(**dict.fromkeys(INTEROP_FLAGS, enabled))


class LoaderOptions(BaseModel):
    """Normalized activation options.

    Unknown keys are rejected so that typos surface as errors instead of
    silently producing a different activation fingerprint.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    mode: Literal["strict", "auto", "all"] = Field(
        default="strict",
        description="Which files are treated as declarative modules",
    )
    cache: bool | str = Field(
        default=True, description="Enable the compile cache, or its directory"
    )
    debug: bool = False
    source_map: bool | None = None
    await_: bool = Field(default=False, alias="await")
    force: bool = False
    main_fields: list[str] = Field(default_factory=lambda: ["main"])
    cjs: InteropOptions = Field(default_factory=InteropOptions)

    @field_validator("cjs", mode="before")
    @classmethod
    def _expand_cjs(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return InteropOptions.all(value)
        return value

    @field_validator("main_fields", mode="before")
    @classmethod
    def _wrap_main_field(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value


def create_options(raw: Any) -> LoaderOptions:
    """Normalize user-supplied options.

    Accepts a mapping, an existing ``LoaderOptions``, or a bare mode string
    (``"auto"`` is shorthand for ``{"mode": "auto"}``).

    Raises:
        InvalidOptionError: Unknown keys or values of the wrong type.
    """
    if isinstance(raw, LoaderOptions):
        return raw.model_copy(deep=True)
    if isinstance(raw, str):
        raw = {"mode": raw}
    if not isinstance(raw, Mapping):
        raise InvalidOptionError(
            f"Options must be a mapping or mode string, got {type(raw).__name__}"
        )

    try:
        return LoaderOptions.model_validate(dict(raw))
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'options'}: {err['msg']}"
            for err in e.errors()
        )
        raise InvalidOptionError(f"Invalid loader options: {details}") from e
