"""Tests for the export, import and transfer workflows."""

import pytest

from release_manager import release
from release_manager.backend import InMemoryBackend
from release_manager.config import Config, ExportConfig, ImportConfig
from release_manager.exceptions import StateConflict
from release_manager.installer import InstallResult, ReleaseLister
from release_manager.release import Release
from release_manager.state import Info, StateManager, STATE_FILENAME
from release_manager.store import ReleaseStore
from release_manager.workflow import ExportWorkflow, ImportWorkflow, TransferWorkflow

from .conftest import FakeInstaller, make_release

STORAGE_PATH = "cluster-a"
STATE_PATH = f"{STORAGE_PATH}/{STATE_FILENAME}"


class FakeLister(ReleaseLister):
    """Lister returning a fixed set of releases."""

    def __init__(self, releases: list[Release]) -> None:
        self.releases = releases

    async def list_releases(self, namespaces: list[str] | None = None) -> list[Release]:
        if namespaces:
            return [r for r in self.releases if r.namespace in namespaces]
        return list(self.releases)


def export_workflow(
    backend: InMemoryBackend, config: Config, releases: list[Release]
) -> ExportWorkflow:
    return ExportWorkflow(
        config,
        FakeLister(releases),
        ReleaseStore(backend, STORAGE_PATH),
        StateManager(backend, STORAGE_PATH, config.export.release_name),
    )


def import_workflow(
    backend: InMemoryBackend,
    config: Config,
    installer: FakeInstaller,
    cls: type[ImportWorkflow] = ImportWorkflow,
) -> ImportWorkflow:
    return cls(
        config,
        installer,
        ReleaseStore(backend, STORAGE_PATH),
        StateManager(backend, STORAGE_PATH),
    )


async def seed(backend: InMemoryBackend, releases: list[Release], info: Info | None) -> None:
    """Populate the backend as a previous export would."""
    store = ReleaseStore(backend, STORAGE_PATH)
    for rel in releases:
        await store.write_release(rel)
    if info:
        await backend.write(STATE_PATH, info.serialize())


async def test_export(backend: InMemoryBackend) -> None:
    """Test releases and state are written to the backend."""
    config = Config(export=ExportConfig(release_name="mgr"))
    releases = [make_release("app"), make_release("mgr", version=3)]
    report = await export_workflow(backend, config, releases).run()
    assert sorted(report.written) == [
        "default.app.release.yaml",
        "default.mgr.release.yaml",
    ]
    assert sorted(backend.objects) == [
        "cluster-a/default.app.release.yaml",
        "cluster-a/default.mgr.release.yaml",
        STATE_PATH,
    ]
    state = await StateManager(backend, STORAGE_PATH).read()
    assert state == Info("default.mgr.release.yaml", "mgr", 3)


async def test_export_same_name_in_namespaces(backend: InMemoryBackend) -> None:
    """Test releases sharing a name in different namespaces are all exported."""
    releases = [make_release("redis", "team-a"), make_release("redis", "team-b")]
    await export_workflow(backend, Config(), releases).run()
    stored = await ReleaseStore(backend, STORAGE_PATH).stored_releases()
    assert sorted(r.namespaced_name for r in stored) == [
        "team-a/redis",
        "team-b/redis",
    ]


async def test_export_removes_stale(backend: InMemoryBackend) -> None:
    """Test releases no longer deployed are removed along with the state."""
    await seed(
        backend,
        [make_release("old"), make_release("mgr")],
        Info("default.mgr.release.yaml", "mgr", 1),
    )
    config = Config(export=ExportConfig(release_name="mgr"))
    report = await export_workflow(backend, config, [make_release("app")]).run()
    assert sorted(report.deleted) == [
        "default.mgr.release.yaml",
        "default.old.release.yaml",
    ]
    assert sorted(backend.objects) == ["cluster-a/default.app.release.yaml"]


async def test_export_namespaces(backend: InMemoryBackend) -> None:
    """Test only releases in the export namespaces are written."""
    config = Config(export=ExportConfig(namespaces=["default"]))
    releases = [make_release("a", "default"), make_release("b", "kube-system")]
    report = await export_workflow(backend, config, releases).run()
    assert report.written == ["default.a.release.yaml"]


async def test_export_namespaces_keeps_manager_state(
    backend: InMemoryBackend,
) -> None:
    """Test the manager release is found outside of the exported namespaces."""
    config = Config(export=ExportConfig(release_name="mgr", namespaces=["default"]))
    releases = [make_release("app"), make_release("mgr", "releasemanager", version=2)]
    report = await export_workflow(backend, config, releases).run()
    assert report.written == ["default.app.release.yaml"]
    state = StateManager(backend, STORAGE_PATH)
    assert await state.exists()
    assert await state.read() == Info("releasemanager.mgr.release.yaml", "mgr", 2)


async def test_export_namespaces_stale(backend: InMemoryBackend) -> None:
    """Test only stored files of the exported namespaces are removed."""
    await seed(
        backend,
        [make_release("old", "default"), make_release("dns", "kube-system")],
        None,
    )
    config = Config(export=ExportConfig(namespaces=["default"]))
    report = await export_workflow(backend, config, [make_release("app")]).run()
    assert report.deleted == ["default.old.release.yaml"]
    assert sorted(backend.objects) == [
        "cluster-a/default.app.release.yaml",
        "cluster-a/kube-system.dns.release.yaml",
    ]


async def test_export_dry_run(
    backend: InMemoryBackend, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test a dry-run export doesn't change the backend."""
    await seed(backend, [make_release("old")], None)
    config = Config(export=ExportConfig(release_name="mgr"), dry_run=True)
    await export_workflow(backend, config, [make_release("mgr")]).run()
    assert list(backend.objects) == ["cluster-a/default.old.release.yaml"]
    out = capsys.readouterr().out
    assert "Exporting release mgr" in out
    assert "Removing stale release default.old.release.yaml" in out


async def test_import(backend: InMemoryBackend, installer: FakeInstaller) -> None:
    """Test stored releases are installed when there is no state."""
    await seed(backend, [make_release("a"), make_release("b")], None)
    report = await import_workflow(backend, Config(), installer).run()
    assert sorted(report.installed) == ["default/a", "default/b"]


async def test_import_conflict(
    backend: InMemoryBackend, installer: FakeInstaller
) -> None:
    """Test existing state without a new path stops the import."""
    await seed(
        backend, [make_release("mgr"), make_release("a")], Info("mgr-1.yaml", "mgr", 3)
    )
    with pytest.raises(StateConflict, match=STATE_PATH):
        await import_workflow(backend, Config(), installer).run()
    assert installer.installed == []


async def test_import_conflict_force(
    backend: InMemoryBackend, installer: FakeInstaller
) -> None:
    """Test forcing the import installs the manager release unchanged."""
    await seed(
        backend,
        [make_release("mgr", values={"path": STORAGE_PATH}), make_release("a")],
        Info("mgr-1.yaml", "mgr", 3),
    )
    config = Config(import_config=ImportConfig(force=True))
    report = await import_workflow(backend, config, installer).run()
    assert sorted(report.installed) == ["default/a", "default/mgr"]
    values = {r.name: r.values for r in installer.installed}
    assert values["mgr"] == {"path": STORAGE_PATH}


async def test_import_conflict_dry_run(
    backend: InMemoryBackend, installer: FakeInstaller
) -> None:
    """Test a dry-run import reports the conflict and changes nothing."""
    await seed(backend, [make_release("mgr")], Info("mgr-1.yaml", "mgr", 3))
    writes = list(backend.writes)
    config = Config(dry_run=True)
    report = await import_workflow(backend, config, installer).run()
    assert report.rendered == ["default/mgr"]
    assert installer.installed == []
    assert backend.writes == writes


async def test_import_new_path(
    backend: InMemoryBackend, installer: FakeInstaller
) -> None:
    """Test the manager release writes to the new path on the new cluster."""
    await seed(
        backend,
        [make_release("mgr", values={"path": STORAGE_PATH}), make_release("a")],
        Info("default.mgr.release.yaml", "mgr", 3),
    )
    config = Config(import_config=ImportConfig(new_storage_path="cluster-b"))
    await import_workflow(backend, config, installer).run()
    values = {r.name: r.values for r in installer.installed}
    assert values == {"mgr": {"path": "cluster-b"}, "a": {}}


async def test_import_filters_and_overrides(
    backend: InMemoryBackend, installer: FakeInstaller
) -> None:
    """Test namespace filters and value overrides are applied."""
    await seed(
        backend,
        [make_release("a", "default"), make_release("b", "kube-system")],
        None,
    )
    config = Config(
        import_config=ImportConfig(
            exclude_namespaces=["kube-system"],
            values={"cluster": "b"},
            target_namespace="restored",
        )
    )
    await import_workflow(backend, config, installer).run()
    assert [(r.name, r.namespace, r.values) for r in installer.installed] == [
        ("a", "restored", {"cluster": "b"})
    ]


async def test_import_skips_existing(
    backend: InMemoryBackend,
) -> None:
    """Test a release that already exists is skipped."""
    await seed(backend, [make_release("x"), make_release("y")], None)
    installer = FakeInstaller(results={"x": InstallResult.already_exists()})
    report = await import_workflow(backend, Config(), installer).run()
    assert report.skipped == ["default/x"]
    assert report.installed == ["default/y"]


async def test_transfer(backend: InMemoryBackend) -> None:
    """Test transfer ignores filters and fails existing releases."""
    await seed(
        backend, [make_release("x", "kube-system"), make_release("y", "default")], None
    )
    installer = FakeInstaller(results={"x": InstallResult.already_exists("exists")})
    config = Config(
        import_config=ImportConfig(namespaces=["default"], values={"a": "b"})
    )
    report = await import_workflow(backend, config, installer, TransferWorkflow).run()
    assert report.failed == ["kube-system/x"]
    assert report.installed == ["default/y"]
    assert all(r.values == {} for r in installer.installed)


async def test_transfer_conflict(
    backend: InMemoryBackend, installer: FakeInstaller
) -> None:
    """Test transfer has the same safety checks as import."""
    await seed(
        backend, [make_release("mgr")], Info("default.mgr.release.yaml", "mgr", 1)
    )
    with pytest.raises(StateConflict):
        await import_workflow(backend, Config(), installer, TransferWorkflow).run()


async def test_import_ignores_state_file_as_release(
    backend: InMemoryBackend, installer: FakeInstaller
) -> None:
    """Test the state file is never treated as a stored release."""
    await seed(
        backend, [make_release("a")], Info("default.mgr.release.yaml", "mgr", 1)
    )
    config = Config(import_config=ImportConfig(new_storage_path="cluster-b"))
    await import_workflow(backend, config, installer).run()
    assert [r.name for r in installer.installed] == ["a"]
    assert release.is_release_filename(STATE_FILENAME) is False
