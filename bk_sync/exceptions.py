"""Exceptions related to bk-sync."""

__all__ = [
    "BkSyncException",
    "InputException",
    "CommandException",
    "LaunchError",
    "CommandTimeoutError",
    "SyncError",
    "RevisionDiscoveryError",
    "ChangelogExtractionError",
    "NoBaselineWarning",
]


class BkSyncException(Exception):
    """Generic base exception used for this library."""


class InputException(BkSyncException):
    """Raised when the input files or values are not formatted as expected."""


class CommandException(BkSyncException):
    """Raised when there is a failure running a subcommand."""


class LaunchError(CommandException):
    """Raised when the backend executable is missing or cannot be run."""


class CommandTimeoutError(CommandException):
    """Raised when a subcommand did not finish within its timeout."""


class SyncError(BkSyncException):
    """Raised when the local repository could not be cloned or pulled."""

    def __init__(self, source: str, message: str) -> None:
        super().__init__(message)
        self.source = source


class RevisionDiscoveryError(BkSyncException):
    """Raised when the latest changeset of a repository could not be determined."""

    def __init__(self, target: str, message: str) -> None:
        super().__init__(f"{message} ({target})")
        self.target = target


class ChangelogExtractionError(BkSyncException):
    """Raised when the changelog command fails."""


class NoBaselineWarning(UserWarning):
    """Issued when there is no previous changeset to compute a changelog from."""
