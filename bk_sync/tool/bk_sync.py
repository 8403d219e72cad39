"""Command line tool for keeping a local BitKeeper repository in sync."""

import argparse
import asyncio
import logging
import sys
import traceback

from bk_sync.bk import BK_BIN
from bk_sync.exceptions import BkSyncException
from . import checkout, poll, version

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Command line utility for syncing a BitKeeper repository.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )
    parser.add_argument(
        "--bk-exe",
        help="Path to the bk executable",
        default=BK_BIN,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    checkout.CheckoutAction.register(subparsers)
    poll.PollAction.register(subparsers)
    version.VersionAction.register(subparsers)
    return parser


def main() -> None:
    """bk-sync command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args()

    if args.log_level:
        logging.basicConfig(level=args.log_level)

    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except BkSyncException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("bk-sync error: ", err, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
