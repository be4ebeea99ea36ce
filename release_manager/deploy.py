"""Deploys a batch of stored releases to a cluster.

Releases flow through these stages, in order:
- Filtered by namespace, using the original namespace of the release
- Value overrides applied to every remaining release
- Moved to the target namespace, if one is configured
- The release manager release is pointed at the new storage path
- Rendered (dry-run) or installed, with a bounded number of installs at once

An install failure only affects that release. The batch waits for every
install to finish and reports the outcome of each release.
"""

from dataclasses import dataclass, field
from enum import Enum
import logging

from . import release
from .config import Config, STORAGE_PATH_VALUE
from .exceptions import ReleaseManagerException
from .installer import Installer, InstallResult, InstallStatus
from .pool import BoundedPool
from .release import Release
from .state import Info

_LOGGER = logging.getLogger(__name__)

__all__ = [
    "Deployer",
    "DeployReport",
    "ReleaseOutcome",
    "filter_by_namespace",
    "apply_value_overrides",
]


class ReleaseOutcome(str, Enum):
    """Terminal state of a release in a deployment."""

    DRY_RUN = "dry_run"
    INSTALLED = "installed"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class DeployReport:
    """Outcome of every release dispatched in a batch."""

    outcomes: dict[str, ReleaseOutcome] = field(default_factory=dict)
    """Outcome keyed by the namespaced name the release was stored with."""

    errors: dict[str, str] = field(default_factory=dict)
    """Error message keyed by namespaced name, for failed releases."""

    def _with(self, outcome: ReleaseOutcome) -> list[str]:
        return [name for name, value in self.outcomes.items() if value == outcome]

    @property
    def installed(self) -> list[str]:
        return self._with(ReleaseOutcome.INSTALLED)

    @property
    def skipped(self) -> list[str]:
        return self._with(ReleaseOutcome.SKIPPED)

    @property
    def failed(self) -> list[str]:
        return self._with(ReleaseOutcome.FAILED)

    @property
    def rendered(self) -> list[str]:
        return self._with(ReleaseOutcome.DRY_RUN)


def filter_by_namespace(
    releases: list[Release],
    namespaces: list[str] | None = None,
    exclude_namespaces: list[str] | None = None,
) -> list[Release]:
    """Return the releases selected by the namespace flags.

    An allow-list takes precedence over an exclude-list when both are set.
    """
    if namespaces:
        return [r for r in releases if r.namespace in namespaces]
    if exclude_namespaces:
        return [r for r in releases if r.namespace not in exclude_namespaces]
    return releases


def apply_value_overrides(
    releases: list[Release], values: dict[str, str] | None = None
) -> list[Release]:
    """Return copies of the releases with every value override applied.

    Raises:
        ValueOverrideError: If any override can't be applied to any release.
    """
    if not values:
        return releases
    _LOGGER.debug("Updating release values")
    result = []
    for rel in releases:
        for key, value in values.items():
            rel = release.update_value(rel, key, value)
        result.append(rel)
    return result


class Deployer:
    """Deploys releases according to the import configuration."""

    def __init__(
        self,
        config: Config,
        installer: Installer | None = None,
        skip_existing: bool = True,
    ) -> None:
        """Initialize Deployer.

        When skip_existing is set a release that is already installed is
        reported as skipped rather than failed.
        """
        self._config = config
        self._installer = installer
        self._skip_existing = skip_existing

    def process(self, releases: list[Release]) -> list[Release]:
        """Filter the releases and apply value overrides to the remainder."""
        import_config = self._config.import_config
        selected = filter_by_namespace(
            releases, import_config.namespaces, import_config.exclude_namespaces
        )
        if len(selected) != len(releases):
            _LOGGER.debug(
                "Filtered out %d releases by namespace", len(releases) - len(selected)
            )
        return apply_value_overrides(selected, import_config.values)

    def prepare(self, rel: Release, state: Info | None) -> Release:
        """Rewrite a release for the target cluster."""
        import_config = self._config.import_config
        if import_config.target_namespace:
            rel = release.with_namespace(rel, import_config.target_namespace)
        new_path = import_config.new_storage_path
        if new_path and state is not None and rel.name == state.release_name:
            _LOGGER.debug("Updating storage path of manager release %s", rel.name)
            rel = release.update_value(rel, STORAGE_PATH_VALUE, new_path)
        return rel

    async def deploy(
        self, releases: list[Release], state: Info | None = None
    ) -> DeployReport:
        """Install or render every release and wait for all to finish."""
        report = DeployReport()
        dispatch: list[tuple[str, Release]] = []
        for rel in releases:
            key = rel.namespaced_name
            print(f"Deploying release {rel.name} to namespace {rel.namespace}")
            try:
                rel = self.prepare(rel, state)
            except ReleaseManagerException as err:
                _LOGGER.error("Unable to update release %s. Skipping: %s", rel.name, err)
                report.outcomes[key] = ReleaseOutcome.FAILED
                report.errors[key] = str(err)
                continue
            if self._config.dry_run:
                print(release.render(rel, self._config.verbose))
                report.outcomes[key] = ReleaseOutcome.DRY_RUN
                continue
            dispatch.append((key, rel))

        if not dispatch:
            return report
        if self._installer is None:
            raise ValueError("An installer is required to deploy releases")

        installer = self._installer

        async def install(item: tuple[str, Release]) -> None:
            key, rel = item
            try:
                result = await installer.install(rel)
            except Exception as err:
                result = InstallResult.failed(str(err) or type(err).__name__)
            self._record(report, key, rel, result)

        pool = BoundedPool(self._config.import_config.max_concurrency)
        await pool.map(install, dispatch)
        _LOGGER.info(
            "Deployed %d releases (%d skipped, %d failed)",
            len(report.installed),
            len(report.skipped),
            len(report.failed),
        )
        return report

    def _record(
        self, report: DeployReport, key: str, rel: Release, result: InstallResult
    ) -> None:
        if result.status == InstallStatus.INSTALLED:
            print(f"Successfully deployed release {rel.name}")
            report.outcomes[key] = ReleaseOutcome.INSTALLED
        elif result.status == InstallStatus.ALREADY_EXISTS and self._skip_existing:
            print(f"Skipping release: {rel.name} already exists")
            report.outcomes[key] = ReleaseOutcome.SKIPPED
        else:
            _LOGGER.error("Error deploying release %s: %s", rel.name, result.error)
            report.outcomes[key] = ReleaseOutcome.FAILED
            report.errors[key] = result.error or result.status.value
