"""Shared fixtures for release-manager tests."""

import asyncio
from typing import Any

import pytest

from release_manager.backend import InMemoryBackend
from release_manager.installer import Installer, InstallResult
from release_manager.release import Chart, Release


def make_release(
    name: str,
    namespace: str = "default",
    version: int = 1,
    values: dict[str, Any] | None = None,
) -> Release:
    """Create a release for tests."""
    return Release(
        name=name,
        namespace=namespace,
        version=version,
        chart=Chart(name=f"{name}-chart", version="1.0.0", repo_url="https://charts.example.com"),
        values=values or {},
    )


class FakeInstaller(Installer):
    """Installer that records releases and returns canned results."""

    def __init__(
        self,
        results: dict[str, InstallResult] | None = None,
        delay: float = 0.0,
    ) -> None:
        self.results = results or {}
        self.delay = delay
        self.installed: list[Release] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def install(self, release: Release) -> InstallResult:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            self.installed.append(release)
            return self.results.get(release.name, InstallResult.installed())
        finally:
            self.in_flight -= 1


@pytest.fixture(name="backend")
def backend_fixture() -> InMemoryBackend:
    """Fixture for an empty in memory backend."""
    return InMemoryBackend()


@pytest.fixture(name="installer")
def installer_fixture() -> FakeInstaller:
    """Fixture for an installer that always succeeds."""
    return FakeInstaller()
