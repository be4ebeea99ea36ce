"""Release-manager import action."""

import logging
import pathlib
import tempfile
from argparse import (
    ArgumentParser,
    _SubParsersAction as SubParsersAction,
)
from typing import Any, cast

from release_manager.config import ImportConfig
from release_manager.helm import Helm
from release_manager.workflow import ImportWorkflow

from . import common

_LOGGER = logging.getLogger(__name__)


class ImportAction:
    """Install the releases stored in the backend into the cluster."""

    workflow_cls: type[ImportWorkflow] = ImportWorkflow

    @classmethod
    def register(
        cls,
        subparsers: SubParsersAction,  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "import",
                help="Import helm release state",
                description=(
                    "Retrieve state from the configured backend and install all "
                    "exported releases to the current cluster. If a release manager "
                    "release is stored in the remote state and --new-path is not "
                    "set, this command will fail unless --force is given. Releases "
                    "that already exist in the cluster are skipped."
                ),
            ),
        )
        args.add_argument(
            "--namespace",
            dest="namespaces",
            action="append",
            default=None,
            help="Only import releases from this namespace (repeatable)",
        )
        args.add_argument(
            "--exclude-namespace",
            dest="exclude_namespaces",
            action="append",
            default=None,
            help="Skip releases from this namespace (repeatable)",
        )
        args.add_argument(
            "--target-namespace",
            type=str,
            default=None,
            help="Install every release into this namespace",
        )
        args.add_argument(
            "--values",
            action=common.ValuesAppendAction,
            default=None,
            help="Override a value on every release, as key=value (repeatable)",
        )
        common.add_common_flags(args)
        common.add_deploy_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(
        self,
        backend_path: pathlib.Path,
        **kwargs: Any,
    ) -> None:
        """Async Action implementation."""
        config = common.build_config(**kwargs)
        config.import_config = ImportConfig(
            new_storage_path=kwargs.get("new_path"),
            force=kwargs.get("force", False),
            namespaces=kwargs.get("namespaces") or [],
            exclude_namespaces=kwargs.get("exclude_namespaces") or [],
            target_namespace=kwargs.get("target_namespace"),
            values=kwargs.get("values") or {},
            max_concurrency=kwargs["max_concurrency"],
        )
        backend = common.build_backend(backend_path)
        with tempfile.TemporaryDirectory() as tmp_dir:
            workflow = self.workflow_cls(
                config,
                Helm(pathlib.Path(tmp_dir), config.helm),
                common.build_store(backend, config),
                common.build_state(backend, config),
            )
            report = await workflow.run()
        if not config.dry_run:
            print(
                f"Installed {len(report.installed)} releases, "
                f"skipped {len(report.skipped)}, failed {len(report.failed)}"
            )
