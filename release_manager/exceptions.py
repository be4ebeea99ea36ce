"""Exceptions related to release-manager."""

__all__ = [
    "ReleaseManagerException",
    "InputException",
    "CommandException",
    "HelmException",
    "BackendUnavailable",
    "ObjectNotFoundError",
    "MultipleStateFiles",
    "StateConflict",
    "ValueOverrideError",
]


class ReleaseManagerException(Exception):
    """Generic base exception used for this library."""


class InputException(ReleaseManagerException):
    """Raised when stored files or values are not formatted as expected."""


class ValueOverrideError(InputException):
    """Raised when a value override can't be applied to a release."""

    def __init__(self, release_name: str, key: str, message: str) -> None:
        super().__init__(
            f"Unable to set value '{key}' on release {release_name}: {message}"
        )
        self.release_name = release_name
        self.key = key


class CommandException(ReleaseManagerException):
    """Raised when there is a failure running a subcommand."""


class HelmException(CommandException):
    """Raised when there is a failure running a helm command."""


class BackendUnavailable(ReleaseManagerException):
    """Raised when the storage backend can't be reached or read."""


class ObjectNotFoundError(ReleaseManagerException):
    """Raised when an object is not found in the backend."""


class MultipleStateFiles(ReleaseManagerException):
    """Raised when a storage path contains more than one state file."""

    def __init__(self, path: str, count: int) -> None:
        super().__init__(f"Found {count} state files at {path}")
        self.path = path
        self.count = count


class StateConflict(ReleaseManagerException):
    """Raised when remote state is already owned by another release manager."""

    def __init__(self, path: str, message: str) -> None:
        super().__init__(message)
        self.path = path
