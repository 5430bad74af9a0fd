"""Environment flags describing how the interpreter was started."""

import os
from collections.abc import Mapping

from pydantic import BaseModel
from pydantic import Field
from pydantic import model_validator

from .preload import DEFAULT_SENTINEL_FILENAME

ENV_PREFIX = "HOOKLOADER_"
TRUTHY = frozenset({"1", "true", "yes", "on"})

_FLAGS = ("check", "eval", "repl", "cli", "internal", "sideloaded", "preloaded", "pnp")


class LoaderEnv(BaseModel):
    """Startup mode of the process.

    check: syntax check only; eval: code passed on the command line;
    repl: interactive interpreter; cli: started through the ``hookloader``
    command; internal: loaded by the loader's own tooling; sideloaded:
    activated from a ``sitecustomize``-style hook; preloaded: loaded as a
    preload request; pnp: running under a virtual-filesystem package manager.
    """

    check: bool = False
    eval: bool = False
    repl: bool = False
    cli: bool = False
    internal: bool = False
    sideloaded: bool = False
    preloaded: bool = False
    pnp: bool = False
    preload_modules: list[str] = Field(default_factory=list)
    pnp_filename: str = DEFAULT_SENTINEL_FILENAME

    @model_validator(mode="after")
    def _preloaded_when_requests_given(self) -> "LoaderEnv":
        if self.preload_modules and "preloaded" not in self.model_fields_set:
            self.preloaded = True
        return self

    @classmethod
    def from_environ(cls, environ: Mapping[str, str] | None = None) -> "LoaderEnv":
        """Build flags from ``HOOKLOADER_*`` environment variables."""
        environ = os.environ if environ is None else environ
        values: dict = {}

        for flag in _FLAGS:
            raw = environ.get(f"{ENV_PREFIX}{flag.upper()}")
            if raw is not None:
                values[flag] = raw.strip().lower() in TRUTHY

        if preload := environ.get(f"{ENV_PREFIX}PRELOAD"):
            values["preload_modules"] = [p for p in preload.split(os.pathsep) if p]

        if pnp_filename := environ.get(f"{ENV_PREFIX}PNP_FILENAME"):
            values["pnp_filename"] = pnp_filename

        return cls(**values)
