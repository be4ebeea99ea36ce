"""Module for an in memory storage backend."""

import logging

from release_manager.exceptions import ObjectNotFoundError

from .backend import Backend

_LOGGER = logging.getLogger(__name__)


class InMemoryBackend(Backend):
    """In-memory implementation of the Backend interface.

    Objects are kept in a flat dictionary keyed by full path, like an
    object store bucket.
    """

    def __init__(self, objects: dict[str, bytes] | None = None) -> None:
        """Initialize the InMemoryBackend."""
        self._objects: dict[str, bytes] = dict(objects or {})
        self.writes: list[str] = []
        self.deletes: list[str] = []

    @property
    def objects(self) -> dict[str, bytes]:
        """Return a copy of the stored objects."""
        return dict(self._objects)

    @property
    def path_separator(self) -> str:
        return "/"

    def _key(self, path: str) -> str:
        return path.strip(self.path_separator)

    async def list(self, path: str) -> list[str]:
        key = self._key(path)
        if key in self._objects:
            return [key.rsplit(self.path_separator, 1)[-1]]
        prefix = f"{key}{self.path_separator}" if key else ""
        names = []
        for name in self._objects:
            if not name.startswith(prefix):
                continue
            rest = name[len(prefix) :]
            if self.path_separator not in rest:
                names.append(rest)
        return sorted(names)

    async def read(self, path: str) -> bytes:
        if (content := self._objects.get(self._key(path))) is None:
            raise ObjectNotFoundError(f"Object {path} not found")
        return content

    async def write(self, path: str, content: bytes) -> None:
        _LOGGER.debug("Writing object %s", path)
        self._objects[self._key(path)] = content
        self.writes.append(self._key(path))

    async def delete(self, path: str) -> None:
        _LOGGER.debug("Deleting object %s", path)
        self._objects.pop(self._key(path), None)
        self.deletes.append(self._key(path))
