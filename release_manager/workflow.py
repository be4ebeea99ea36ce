"""Workflows for exporting releases and deploying stored releases.

Export writes the releases deployed in a cluster to the storage path and
keeps the state file current. Import and transfer read the stored releases
back, check the state file for conflicts and install the releases into the
current cluster.
"""

from dataclasses import dataclass, field
import logging

from . import release
from .config import Config
from .conflict import resolve_state_conflict
from .deploy import Deployer, DeployReport, filter_by_namespace
from .installer import Installer, ReleaseLister
from .pool import BoundedPool
from .release import Release
from .state import StateManager
from .store import ReleaseStore

_LOGGER = logging.getLogger(__name__)

__all__ = [
    "ExportWorkflow",
    "ExportReport",
    "ImportWorkflow",
    "TransferWorkflow",
]


@dataclass
class ExportReport:
    """Files changed in the storage path by an export."""

    written: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class ExportWorkflow:
    """Exports the releases deployed in the cluster to the backend."""

    def __init__(
        self,
        config: Config,
        lister: ReleaseLister,
        store: ReleaseStore,
        state: StateManager,
    ) -> None:
        """Initialize ExportWorkflow."""
        self._config = config
        self._lister = lister
        self._store = store
        self._state = state

    async def run(self) -> ExportReport:
        """Run the export.

        The manager release is looked up among all deployed releases, while
        only releases in the exported namespaces are written. Stored files
        outside of the exported namespaces are left alone.
        """
        deployed = await self._lister.list_releases()
        namespaces = self._config.export.namespaces
        releases = filter_by_namespace(deployed, namespaces)
        current = {release.filename(rel) for rel in releases}
        stale = [
            name
            for name in await self._store.stored_release_names()
            if name not in current
            and (not namespaces or release.filename_namespace(name) in namespaces)
        ]
        report = ExportReport()

        if self._config.dry_run:
            for rel in releases:
                print(f"Exporting release {rel.name}")
                print(release.render(rel, self._config.verbose))
            for name in stale:
                print(f"Removing stale release {name}")
            return report

        async def write(rel: Release) -> None:
            name = release.filename(rel)
            try:
                await self._store.write_release(rel)
            except Exception as err:
                _LOGGER.error("Error exporting release %s: %s", rel.name, err)
                report.failed.append(name)
                return
            report.written.append(name)

        pool = BoundedPool(self._config.read_concurrency)
        await pool.map(write, releases)

        for name in stale:
            _LOGGER.debug("Removing stale release %s", name)
            await self._store.delete_release(name)
            report.deleted.append(name)

        await self._state.update_from_releases(deployed)
        return report


class ImportWorkflow:
    """Installs stored releases into the cluster.

    Releases that already exist in the cluster are skipped.
    """

    skip_existing = True

    def __init__(
        self,
        config: Config,
        installer: Installer | None,
        store: ReleaseStore,
        state: StateManager,
    ) -> None:
        """Initialize ImportWorkflow."""
        self._config = config
        self._store = store
        self._state = state
        self._deployer = Deployer(config, installer, skip_existing=self.skip_existing)

    def process(self, releases: list[Release]) -> list[Release]:
        """Select and rewrite the stored releases before checking state."""
        return self._deployer.process(releases)

    async def run(self) -> DeployReport:
        """Run the import."""
        releases = self.process(await self._store.stored_releases())
        info = await self._state.load()
        import_config = self._config.import_config
        resolve_state_conflict(
            info,
            self._state.path,
            import_config.new_storage_path,
            force=import_config.force,
            dry_run=self._config.dry_run,
        )
        return await self._deployer.deploy(releases, info)


class TransferWorkflow(ImportWorkflow):
    """Installs every stored release into the cluster as is.

    No namespace filters or value overrides are applied, and a release that
    already exists is reported as a failure.
    """

    skip_existing = False

    def process(self, releases: list[Release]) -> list[Release]:
        return releases
