"""Release-manager state action."""

import logging
import pathlib
from argparse import (
    ArgumentParser,
    _SubParsersAction as SubParsersAction,
)
from typing import Any, cast

from . import common

_LOGGER = logging.getLogger(__name__)


class StateAction:
    """Show or remove the release manager state file."""

    @classmethod
    def register(
        cls,
        subparsers: SubParsersAction,  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "state",
                help="Show or remove the remote state",
                description=(
                    "Print the release manager release that owns the storage path, "
                    "or remove the state file to release ownership of the path."
                ),
            ),
        )
        args.add_argument(
            "state_command",
            choices=["show", "remove"],
            help="Operation to perform on the state file",
        )
        common.add_common_flags(args)
        args.set_defaults(cls=cls)
        return args

    async def run(
        self,
        backend_path: pathlib.Path,
        state_command: str,
        **kwargs: Any,
    ) -> None:
        """Async Action implementation."""
        config = common.build_config(**kwargs)
        state = common.build_state(common.build_backend(backend_path), config)
        if state_command == "remove":
            if config.dry_run:
                print(f"Would remove state {state.path}")
                return
            await state.remove()
            print(f"Removed state {state.path}")
            return
        if (info := await state.load()) is None:
            print(f"No state found at {state.path}")
            return
        print(
            f"Release {info.release_name} revision {info.release_version} "
            f"({info.release_filename}) owns {config.backend.storage_path}"
        )
