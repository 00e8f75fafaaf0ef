class PrecomputeError(Exception):
    """Base class for every failure raised while precomputing a code example."""


class MalformedInputError(PrecomputeError):
    def __init__(self, message: str, path: str | None = None, line: int | None = None, column: int | None = None):
        super().__init__(message)
        self.path = path
        self.line = line
        self.column = column


class UnresolvedPathError(PrecomputeError):
    def __init__(self, value: str, reason: str):
        super().__init__(f"Cannot resolve path {value!r}: {reason}")
        self.value = value


class ConfigurationError(PrecomputeError):
    pass
