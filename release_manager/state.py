"""Module for the release manager state file.

The state file marks a storage path as owned by a release manager release.
While it exists, the release manager deployed as that release is exporting
its cluster to the storage path, and another cluster must not be configured
to write to the same path. The file is written by export whenever the
manager release is found and deleted once it is gone.
"""

from dataclasses import dataclass, field
import json
import logging
from typing import Any

from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig
from mashumaro.exceptions import MissingField, InvalidFieldValue

from . import release
from .backend import Backend
from .exceptions import (
    InputException,
    MultipleStateFiles,
    ObjectNotFoundError,
    ReleaseManagerException,
)
from .release import Release
from .store import remote_path

_LOGGER = logging.getLogger(__name__)

__all__ = ["Info", "StateManager", "STATE_FILENAME"]


STATE_FILENAME = "releasemanager.state.json"


@dataclass(eq=False)
class Info(DataClassDictMixin):
    """Identifies the release manager release that owns a storage path."""

    release_filename: str = field(metadata=field_options(alias="releaseFilename"))
    """The stored file name of the manager release."""

    release_name: str = field(metadata=field_options(alias="releaseName"))
    """The name of the manager release."""

    release_version: int = field(metadata=field_options(alias="releaseVersion"))
    """The revision of the manager release."""

    def __eq__(self, other: Any) -> bool:
        """Compare each field of the state."""
        if not isinstance(other, Info):
            return NotImplemented
        return (
            self.release_filename == other.release_filename
            and self.release_name == other.release_name
            and self.release_version == other.release_version
        )

    def serialize(self) -> bytes:
        """Serialize the state for storage."""
        return json.dumps(self.to_dict()).encode("utf-8")

    @classmethod
    def parse(cls, content: bytes) -> "Info":
        """Parse serialized state."""
        try:
            doc = json.loads(content)
        except ValueError as err:
            raise InputException(f"Unable to parse state: {err}") from err
        if not isinstance(doc, dict):
            raise InputException(f"Invalid state, expected an object: {doc}")
        try:
            return cls.from_dict(doc)
        except (MissingField, InvalidFieldValue) as err:
            raise InputException(f"Invalid state: {err}") from err

    class Config(BaseConfig):
        serialize_by_alias = True


class StateManager:
    """Reads and writes the state file for a storage path."""

    def __init__(
        self,
        backend: Backend,
        storage_path: str,
        release_name: str | None = None,
    ) -> None:
        """Initialize StateManager.

        The release name identifies the manager release when exporting.
        """
        self._backend = backend
        self._storage_path = storage_path
        self._release_name = release_name
        self._written = False

    @property
    def path(self) -> str:
        """The backend path of the state file."""
        return remote_path(self._backend, self._storage_path, STATE_FILENAME)

    @property
    def storage_path(self) -> str:
        """The storage path the state file marks as owned."""
        return self._storage_path

    async def read(self) -> Info:
        """Read the state from the backend.

        Raises:
            ObjectNotFoundError: If there is no state file.
        """
        path = self.path
        _LOGGER.debug("Reading state from %s", path)
        return Info.parse(await self._backend.read(path))

    async def exists(self) -> bool:
        """Return True if the state file exists."""
        path = self.path
        _LOGGER.info("Check if remote state file %s exists", path)
        names = await self._backend.list(path)
        if len(names) > 1:
            raise MultipleStateFiles(path, len(names))
        return len(names) == 1

    async def load(self) -> Info | None:
        """Return the current state, or None if the storage path is unowned."""
        if not await self.exists():
            return None
        try:
            return await self.read()
        except ObjectNotFoundError:
            return None

    async def update(self, info: Info) -> bool:
        """Write the state if it differs from what is stored.

        The first update always writes. Later updates compare against the
        stored state and write when it changed or can't be read. Returns
        True if the state was written.
        """
        update = True
        if self._written:
            try:
                update = await self.read() != info
            except ReleaseManagerException as err:
                _LOGGER.warning("Error reading remote state: %s", err)
        if not update:
            _LOGGER.debug("State %s is unchanged", info.release_name)
            return False
        _LOGGER.debug("Updating state %s", info.release_name)
        await self._backend.write(self.path, info.serialize())
        self._written = True
        return True

    async def update_from_releases(self, releases: list[Release]) -> None:
        """Update the state from the releases currently deployed.

        The state is removed when the manager release is no longer deployed.
        """
        if not self._release_name:
            _LOGGER.debug("No manager release name specified. Ignoring state.")
            return
        for rel in releases:
            if rel.name == self._release_name:
                await self.update(
                    Info(
                        release_filename=release.filename(rel),
                        release_name=self._release_name,
                        release_version=rel.version,
                    )
                )
                return
        _LOGGER.debug(
            "Manager release %s doesn't exist. Removing state.", self._release_name
        )
        await self.remove()

    async def remove(self) -> None:
        """Remove the state from the backend."""
        path = self.path
        _LOGGER.debug("Removing remote state %s", path)
        await self._backend.delete(path)
        self._written = False

    async def reset(self) -> None:
        """Remove state left over from a previous run of the manager release."""
        self._written = False
        if not self._release_name:
            return
        path = self.path
        _LOGGER.info("Removing old state %s", path)
        try:
            await self.remove()
        except ReleaseManagerException as err:
            _LOGGER.warning("Error cleaning up old release manager state: %s", err)
