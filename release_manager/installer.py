"""Interfaces to the cluster that releases are exported from and installed to."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from .release import Release

__all__ = [
    "Installer",
    "ReleaseLister",
    "InstallResult",
    "InstallStatus",
]


class InstallStatus(str, Enum):
    """The outcome of installing a single release."""

    INSTALLED = "installed"
    ALREADY_EXISTS = "already_exists"
    FAILED = "failed"


@dataclass(frozen=True)
class InstallResult:
    """Result of an install, tagged with the kind of outcome."""

    status: InstallStatus
    error: str | None = None

    @classmethod
    def installed(cls) -> "InstallResult":
        return cls(InstallStatus.INSTALLED)

    @classmethod
    def already_exists(cls, error: str | None = None) -> "InstallResult":
        return cls(InstallStatus.ALREADY_EXISTS, error)

    @classmethod
    def failed(cls, error: str) -> "InstallResult":
        return cls(InstallStatus.FAILED, error)


class Installer(ABC):
    """Installs a release into a cluster."""

    @abstractmethod
    async def install(self, release: Release) -> InstallResult:
        """Install the release.

        Failures are returned as a result rather than raised so that a
        release that already exists can be told apart from other errors.
        """


class ReleaseLister(ABC):
    """Lists the releases deployed in a cluster."""

    @abstractmethod
    async def list_releases(self, namespaces: list[str] | None = None) -> list[Release]:
        """Return deployed releases, restricted to namespaces when given."""
