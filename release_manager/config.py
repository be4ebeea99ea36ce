"""Configuration objects for release-manager.

The command line tool builds a single `Config` and hands it to each
component constructor.
"""

from dataclasses import dataclass, field

__all__ = [
    "Config",
    "BackendConfig",
    "ExportConfig",
    "ImportConfig",
    "HelmConfig",
    "DEFAULT_MAX_CONCURRENCY",
    "DEFAULT_READ_CONCURRENCY",
    "DEFAULT_RELEASE_TIMEOUT",
    "STORAGE_PATH_VALUE",
]


DEFAULT_MAX_CONCURRENCY = 5
DEFAULT_READ_CONCURRENCY = 20
DEFAULT_RELEASE_TIMEOUT = 300

# Chart value holding the storage path of a release manager release
STORAGE_PATH_VALUE = "path"


@dataclass
class BackendConfig:
    """Configuration for the storage backend."""

    storage_path: str = "/"
    """Path under the backend root where releases and state are kept."""


@dataclass
class ExportConfig:
    """Configuration for exporting releases."""

    release_name: str | None = None
    """Helm release name of the release manager that owns the storage path."""

    namespaces: list[str] = field(default_factory=list)
    """Only export releases in these namespaces, or all when empty."""


@dataclass
class ImportConfig:
    """Configuration for importing or transferring stored releases."""

    new_storage_path: str | None = None
    """Storage path to assign to the imported release manager release."""

    force: bool = False
    """Skip safety checks against existing remote state."""

    namespaces: list[str] = field(default_factory=list)
    """Only import releases from these namespaces."""

    exclude_namespaces: list[str] = field(default_factory=list)
    """Skip releases from these namespaces."""

    target_namespace: str | None = None
    """Install all releases into this namespace."""

    values: dict[str, str] = field(default_factory=dict)
    """Values overridden on every release, keyed by dotted path."""

    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    """Maximum number of releases installed at once."""


@dataclass
class HelmConfig:
    """Configuration for the helm client."""

    release_timeout: int = DEFAULT_RELEASE_TIMEOUT
    """Seconds to wait for an individual release to install."""

    kube_context: str | None = None
    """Name of the kubeconfig context to use instead of the current one."""


@dataclass
class Config:
    """Top level configuration shared by the workflows."""

    backend: BackendConfig = field(default_factory=BackendConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    import_config: ImportConfig = field(default_factory=ImportConfig)
    helm: HelmConfig = field(default_factory=HelmConfig)

    dry_run: bool = False
    """Report what would happen without changing the backend or cluster."""

    verbose: bool = False
    """Render full releases in dry-run output."""

    read_concurrency: int = DEFAULT_READ_CONCURRENCY
    """Maximum number of stored releases decoded at once."""
