"""Command line tool for polling the upstream repository for changes."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import cast
import pathlib

from bk_sync.poll import compare_remote_revision
from bk_sync.store import YamlFileStore

from .common import add_config_flags, load_config, print_yaml

_LOGGER = logging.getLogger(__name__)


class PollAction:
    """bk-sync poll action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "poll",
                help="Check whether the upstream repository has new changes",
                description=(
                    "Compare the latest changeset of the upstream repository "
                    "with the changeset recorded by the last build."
                ),
            ),
        )
        add_config_flags(args)
        args.add_argument(
            "--last-build-id",
            help="Build whose changeset is the baseline (default: latest record)",
            type=int,
            default=None,
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        config: pathlib.Path,
        history: pathlib.Path,
        last_build_id: int | None,
        bk_exe: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        repo_config = await load_config(config)
        store = await YamlFileStore.load(history)
        result = await compare_remote_revision(
            repo_config, store, last_build_id=last_build_id, bk_exe=bk_exe
        )
        print_yaml(
            {
                "result": str(result.result),
                "baseline": result.baseline,
                "current": result.current,
            }
        )
