"""Release-manager export action."""

import logging
import pathlib
import tempfile
from argparse import (
    ArgumentParser,
    _SubParsersAction as SubParsersAction,
)
from typing import Any, cast

from release_manager.config import ExportConfig
from release_manager.helm import Helm
from release_manager.workflow import ExportWorkflow

from . import common

_LOGGER = logging.getLogger(__name__)


class ExportAction:
    """Export the releases deployed in the cluster to the backend."""

    @classmethod
    def register(
        cls,
        subparsers: SubParsersAction,  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "export",
                help="Export helm release state",
                description=(
                    "Collect the metadata of every release deployed in the cluster "
                    "and write it to the configured backend, where it can later be "
                    "used by import to install the releases on a different cluster. "
                    "Set --release-name to the release of this release manager so "
                    "that other clusters don't write to the same path."
                ),
            ),
        )
        args.add_argument(
            "--release-name",
            type=str,
            default=None,
            help="The helm release name of the release manager",
        )
        args.add_argument(
            "--namespaces",
            type=str,
            default=None,
            help="A comma-delimited list of namespaces to export, all by default",
        )
        common.add_common_flags(args)
        common.add_helm_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(
        self,
        backend_path: pathlib.Path,
        release_name: str | None,
        namespaces: str | None,
        **kwargs: Any,
    ) -> None:
        """Async Action implementation."""
        config = common.build_config(**kwargs)
        config.export = ExportConfig(
            release_name=release_name,
            namespaces=common.parse_namespaces(namespaces),
        )
        backend = common.build_backend(backend_path)
        state = common.build_state(backend, config)
        if not config.dry_run:
            await state.reset()
        with tempfile.TemporaryDirectory() as tmp_dir:
            workflow = ExportWorkflow(
                config,
                Helm(pathlib.Path(tmp_dir), config.helm),
                common.build_store(backend, config),
                state,
            )
            report = await workflow.run()
        if not config.dry_run:
            print(
                f"Exported {len(report.written)} releases, "
                f"removed {len(report.deleted)} stale releases"
            )
