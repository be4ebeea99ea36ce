"""Storage backend interface used to persist releases and state."""

from abc import ABC, abstractmethod

__all__ = ["Backend"]


class Backend(ABC):
    """Narrow interface to a storage location holding release files.

    Paths are relative to the root the backend was configured with. Writes
    overwrite unconditionally; there is no compare-and-swap.
    """

    @abstractmethod
    async def list(self, path: str) -> list[str]:
        """Return the names of entries at the path.

        A path naming a single object returns that object's name, a missing
        path returns an empty list.

        Raises:
            BackendUnavailable: If the backend can't be read.
        """

    @abstractmethod
    async def read(self, path: str) -> bytes:
        """Return the contents of the object at the path.

        Raises:
            ObjectNotFoundError: If the object does not exist.
            BackendUnavailable: If the backend can't be read.
        """

    @abstractmethod
    async def write(self, path: str, content: bytes) -> None:
        """Write the contents to the object at the path, replacing it."""

    @abstractmethod
    async def delete(self, path: str) -> None:
        """Delete the object at the path, doing nothing if it is absent."""

    @property
    @abstractmethod
    def path_separator(self) -> str:
        """Separator used to join path components."""
