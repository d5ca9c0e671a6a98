"""Exceptions raised by refsweep.

Per-ref deletion failures are never raised; they are collected as data in
``AggregateResult.failed_items``. The exceptions below are structural errors
that abort the whole operation.
"""


class RefSweepError(Exception):
    """Base class for refsweep errors."""


class GitUnavailableError(RefSweepError):
    """Raised when git cannot be invoked at all."""

    def __init__(self, message: str, command: str | None = None):
        self.command = command
        super().__init__(message)


class NotAGitRepositoryError(GitUnavailableError):
    """Raised when the working path is not inside a git repository."""


class ConfigError(RefSweepError):
    """Raised for invalid configuration values."""


class MaintenanceError(RefSweepError):
    """Raised when post-delete pruning or garbage collection fails."""
