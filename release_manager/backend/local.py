"""Module for a storage backend on the local filesystem."""

import logging
from pathlib import Path

import aiofiles
import aiofiles.os

from release_manager.exceptions import BackendUnavailable, ObjectNotFoundError

from .backend import Backend

_LOGGER = logging.getLogger(__name__)


class LocalBackend(Backend):
    """Stores objects as files under a root directory."""

    def __init__(self, root: Path) -> None:
        """Initialize LocalBackend."""
        self._root = root

    @property
    def path_separator(self) -> str:
        return "/"

    def _path(self, path: str) -> Path:
        return self._root / path.strip(self.path_separator)

    async def list(self, path: str) -> list[str]:
        full_path = self._path(path)
        try:
            if await aiofiles.os.path.isfile(full_path):
                return [full_path.name]
            if not await aiofiles.os.path.isdir(full_path):
                return []
            names = await aiofiles.os.listdir(full_path)
        except OSError as err:
            raise BackendUnavailable(f"Unable to list {full_path}: {err}") from err
        return sorted(names)

    async def read(self, path: str) -> bytes:
        full_path = self._path(path)
        _LOGGER.debug("Reading file %s", full_path)
        try:
            async with aiofiles.open(full_path, mode="rb") as stored_file:
                return await stored_file.read()
        except FileNotFoundError as err:
            raise ObjectNotFoundError(f"Object {path} not found") from err
        except OSError as err:
            raise BackendUnavailable(f"Unable to read {full_path}: {err}") from err

    async def write(self, path: str, content: bytes) -> None:
        full_path = self._path(path)
        _LOGGER.debug("Writing file %s", full_path)
        try:
            await aiofiles.os.makedirs(full_path.parent, exist_ok=True)
            async with aiofiles.open(full_path, mode="wb") as stored_file:
                await stored_file.write(content)
        except OSError as err:
            raise BackendUnavailable(f"Unable to write {full_path}: {err}") from err

    async def delete(self, path: str) -> None:
        full_path = self._path(path)
        _LOGGER.debug("Deleting file %s", full_path)
        try:
            await aiofiles.os.remove(full_path)
        except FileNotFoundError:
            _LOGGER.debug("File %s already removed", full_path)
        except OSError as err:
            raise BackendUnavailable(f"Unable to delete {full_path}: {err}") from err
