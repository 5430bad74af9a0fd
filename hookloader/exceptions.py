"""Exception hierarchy for hookloader."""


class HookLoaderError(Exception):
    """Base exception for all loader errors."""


class InvalidArgumentError(HookLoaderError, TypeError):
    """Caller passed a value of the wrong kind (e.g. a non-object host)."""

    def __init__(self, name: str, expected: str, actual: object = None):
        self.name = name
        self.expected = expected
        super().__init__(
            f"The '{name}' argument must be of type {expected}. "
            f"Received {type(actual).__name__}"
        )


class InvalidOptionError(HookLoaderError, ValueError):
    """Loader options are unrecognized or malformed."""


class ResolutionError(HookLoaderError, LookupError):
    """A path or module request could not be resolved to a file."""

    def __init__(self, request: str, reason: str | None = None):
        self.request = request
        message = f"Cannot resolve '{request}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class HookInstallError(HookLoaderError):
    """A hook installer failed while modifying the runtime."""
