"""Error classes for himalaya-cache."""

from pathlib import Path


class HimalayaCacheError(Exception):
    """Base class for all himalaya-cache errors."""


class InvalidScopeError(HimalayaCacheError):
    """Raised when a sync scope combines flags that make no sense together."""


class AgentError(HimalayaCacheError):
    """Raised when the himalaya agent cannot deliver a result."""

    def __init__(self, message: str, command: list[str] | None = None) -> None:
        super().__init__(message)
        self.command = command


class AgentLaunchError(AgentError):
    """Raised when the himalaya binary cannot be started at all."""


class AgentCommandError(AgentError):
    """Raised when himalaya ran but kept failing after every retry."""

    def __init__(self, stderr: str, command: list[str] | None = None) -> None:
        self.stderr = stderr.strip()
        super().__init__(
            f"himalaya command failed after retries: {self.stderr or 'unknown error'}",
            command,
        )


class DecodeError(HimalayaCacheError):
    """Raised when JSON from himalaya or from a cache file cannot be parsed."""

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class CacheIoError(HimalayaCacheError):
    """Raised when a filesystem operation on the cache fails."""

    def __init__(self, path: Path, cause: OSError, action: str = "access") -> None:
        super().__init__(f"{action} {path}: {cause.strerror or cause}")
        self.path = path
        self.cause = cause


class CacheNotFoundError(CacheIoError):
    """Raised when an expected cache file or directory does not exist."""
