"""Command line tool for checking the version of the bk executable."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import cast
import sys

from bk_sync.bk import check_version

_LOGGER = logging.getLogger(__name__)


class VersionAction:
    """bk-sync version action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "version",
                help="Check that the bk executable is a supported version",
            ),
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        bk_exe: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        result = await check_version(bk_exe)
        print(f"{result.status}: {result.message}")
        if not result.ok:
            sys.exit(1)
