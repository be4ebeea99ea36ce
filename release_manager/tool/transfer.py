"""Release-manager transfer action."""

from argparse import (
    ArgumentParser,
    _SubParsersAction as SubParsersAction,
)
from typing import cast

from release_manager.workflow import TransferWorkflow

from . import common
from .import_releases import ImportAction


class TransferAction(ImportAction):
    """Install every release stored in the backend into the cluster as is."""

    workflow_cls = TransferWorkflow

    @classmethod
    def register(
        cls,
        subparsers: SubParsersAction,  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "transfer",
                help="Transfer helm release state",
                description=(
                    "Install every release stored in the configured backend to the "
                    "current cluster without filtering or changing values. The same "
                    "safety checks as import apply, and a release that already "
                    "exists is reported as a failure."
                ),
            ),
        )
        common.add_common_flags(args)
        common.add_deploy_flags(args)
        args.set_defaults(cls=cls)
        return args
