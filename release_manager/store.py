"""Module for reading and writing release files in the storage backend."""

import logging

from . import release
from .backend import Backend
from .config import DEFAULT_READ_CONCURRENCY
from .pool import BoundedPool
from .release import Release

_LOGGER = logging.getLogger(__name__)

__all__ = ["ReleaseStore", "remote_path"]


def remote_path(backend: Backend, storage_path: str, name: str) -> str:
    """Return the backend path of a file stored under the storage path."""
    if storage_path == backend.path_separator:
        return name
    return f"{storage_path}{backend.path_separator}{name}"


class ReleaseStore:
    """Holds one file per release under the storage path.

    Objects in the storage path that are not release files, such as the
    state file, are ignored.
    """

    def __init__(
        self,
        backend: Backend,
        storage_path: str,
        read_concurrency: int = DEFAULT_READ_CONCURRENCY,
    ) -> None:
        """Initialize ReleaseStore."""
        self._backend = backend
        self._storage_path = storage_path
        self._read_concurrency = read_concurrency

    @property
    def storage_path(self) -> str:
        """The storage path holding the release files."""
        return self._storage_path

    def path(self, name: str) -> str:
        """Return the backend path of a file in the storage path."""
        return remote_path(self._backend, self._storage_path, name)

    async def stored_release_names(self) -> list[str]:
        """Return the file names of releases currently stored in the backend."""
        _LOGGER.debug("Finding releases stored in %s", self._storage_path)
        names = await self._backend.list(self._storage_path)
        return [name for name in names if release.is_release_filename(name)]

    async def read_release(self, name: str) -> Release:
        """Read the release stored in the specified file."""
        path = self.path(name)
        _LOGGER.debug("Reading remote release %s", path)
        return release.decode(await self._backend.read(path))

    async def stored_releases(self) -> list[Release]:
        """Return all releases stored in the backend.

        A file that can't be read or decoded is logged and left out of the
        result.
        """
        names = await self.stored_release_names()
        pool = BoundedPool(self._read_concurrency)
        results = await pool.map(self.read_release, names)
        releases: list[Release] = []
        for name, result in zip(names, results):
            if isinstance(result, Exception):
                _LOGGER.warning("Unable to read stored release %s: %s", name, result)
                continue
            if isinstance(result, BaseException):
                raise result
            releases.append(result)
        return releases

    async def write_release(self, rel: Release) -> None:
        """Write the release to the backend."""
        path = self.path(release.filename(rel))
        _LOGGER.debug("Writing remote release %s", path)
        await self._backend.write(path, release.encode(rel))

    async def delete_release(self, name: str) -> None:
        """Delete the release stored in the specified file."""
        path = self.path(name)
        _LOGGER.debug("Removing remote release %s", path)
        await self._backend.delete(path)
