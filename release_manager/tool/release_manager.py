"""Command line tool for exporting and importing helm releases."""

import argparse
import asyncio
import logging
import sys
import traceback

from release_manager.exceptions import ReleaseManagerException
from . import export, import_releases, transfer, state

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Command line utility for saving the helm releases of a cluster "
            "and installing them on another cluster."
        ),
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    export.ExportAction.register(subparsers)
    import_releases.ImportAction.register(subparsers)
    transfer.TransferAction.register(subparsers)
    state.StateAction.register(subparsers)
    return parser


def main() -> None:
    """Release-manager command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args()

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except ReleaseManagerException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("release-manager error: ", err, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
