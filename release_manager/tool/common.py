"""Common flags and setup shared by the release-manager commands."""

from argparse import (
    ArgumentParser,
    BooleanOptionalAction,
    Action,
    ArgumentError,
    ArgumentTypeError,
    Namespace,
)
import logging
import pathlib
from typing import Any

from release_manager.backend import Backend, LocalBackend
from release_manager.config import (
    Config,
    BackendConfig,
    HelmConfig,
    DEFAULT_MAX_CONCURRENCY,
    DEFAULT_READ_CONCURRENCY,
    DEFAULT_RELEASE_TIMEOUT,
)
from release_manager.state import StateManager
from release_manager.store import ReleaseStore

_LOGGER = logging.getLogger(__name__)


class ValuesAppendAction(Action):
    """Append a key=value pair to the argument dict."""

    def __call__(
        self,
        parser: ArgumentParser,
        namespace: Namespace,
        values: Any,
        option_string: str | None = None,
    ) -> None:
        result = getattr(namespace, self.dest) or {}
        if "=" not in values:
            raise ArgumentError(self, f"Expected key=value format but got '{values}'")
        k, v = values.split("=", 1)
        if not k:
            raise ArgumentError(self, f"Expected key=value format but got '{values}'")
        result[k] = v
        setattr(namespace, self.dest, result)


def positive_int(value: str) -> int:
    """Parse a flag value that must be a positive integer."""
    try:
        result = int(value)
    except ValueError as err:
        raise ArgumentTypeError(f"Expected an integer but got '{value}'") from err
    if result < 1:
        raise ArgumentTypeError(f"Expected a positive integer but got {result}")
    return result


def parse_namespaces(value: str | None) -> list[str]:
    """Parse a comma separated list of namespaces, ignoring whitespace."""
    if not value:
        return []
    return [ns for ns in value.replace(" ", "").split(",") if ns]


def add_common_flags(args: ArgumentParser) -> None:
    """Add flags for the backend and output to the arguments object."""
    args.add_argument(
        "--backend-path",
        help="Local directory used as the root of the storage backend",
        type=pathlib.Path,
        default=pathlib.Path("."),
    )
    args.add_argument(
        "--path",
        dest="storage_path",
        help="Path within the backend where releases and state are stored",
        type=str,
        default="/",
    )
    args.add_argument(
        "--dry-run",
        default=False,
        action=BooleanOptionalAction,
        help="Print what would be done without changing the backend or cluster",
    )
    args.add_argument(
        "--verbose",
        default=False,
        action=BooleanOptionalAction,
        help="Print full releases in dry-run output",
    )
    args.add_argument(
        "--read-concurrency",
        type=positive_int,
        default=DEFAULT_READ_CONCURRENCY,
        help="Maximum number of stored releases read or written at once",
    )


def add_helm_flags(args: ArgumentParser) -> None:
    """Add flags for talking to the cluster."""
    args.add_argument(
        "--kube-context",
        type=str,
        default=None,
        help="The kubeconfig context to use",
    )


def add_deploy_flags(args: ArgumentParser) -> None:
    """Add flags shared by the commands that install stored releases."""
    add_helm_flags(args)
    args.add_argument(
        "--new-path",
        type=str,
        default=None,
        help="When installing a stored release manager release, update its storage path",
    )
    args.add_argument(
        "--force",
        default=False,
        action=BooleanOptionalAction,
        help="Skip safety checks",
    )
    args.add_argument(
        "--max-concurrency",
        type=positive_int,
        default=DEFAULT_MAX_CONCURRENCY,
        help="Maximum number of releases installed at once",
    )
    args.add_argument(
        "--release-timeout",
        type=int,
        default=DEFAULT_RELEASE_TIMEOUT,
        help="The time, in seconds, to wait for an individual release to install",
    )


def build_config(**kwargs: Any) -> Config:
    """Build the configuration shared by every command from CLI arguments."""
    return Config(
        backend=BackendConfig(storage_path=kwargs.get("storage_path") or "/"),
        helm=HelmConfig(
            release_timeout=kwargs.get("release_timeout") or DEFAULT_RELEASE_TIMEOUT,
            kube_context=kwargs.get("kube_context"),
        ),
        dry_run=kwargs.get("dry_run", False),
        verbose=kwargs.get("verbose", False),
        read_concurrency=kwargs.get("read_concurrency") or DEFAULT_READ_CONCURRENCY,
    )


def build_backend(backend_path: pathlib.Path) -> Backend:
    """Create the storage backend rooted at the specified directory."""
    return LocalBackend(backend_path)


def build_store(backend: Backend, config: Config) -> ReleaseStore:
    """Create the release store for the configured storage path."""
    return ReleaseStore(
        backend, config.backend.storage_path, read_concurrency=config.read_concurrency
    )


def build_state(backend: Backend, config: Config) -> StateManager:
    """Create the state manager for the configured storage path."""
    return StateManager(
        backend, config.backend.storage_path, release_name=config.export.release_name
    )
