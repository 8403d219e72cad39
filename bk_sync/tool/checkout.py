"""Command line tool for running the checkout of a build."""

import logging
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import cast
import pathlib

from bk_sync.checkout import checkout
from bk_sync.store import YamlFileStore

from .common import add_config_flags, load_config, print_yaml

_LOGGER = logging.getLogger(__name__)


class CheckoutAction:
    """bk-sync checkout action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "checkout",
                help="Clone or pull the repository and record the build",
                description=(
                    "Bring the local repository up to date, save the changes "
                    "since the previous build and record the latest changeset."
                ),
            ),
        )
        add_config_flags(args)
        args.add_argument(
            "--workspace",
            help="Workspace directory containing the local repository",
            type=pathlib.Path,
            default=pathlib.Path("."),
        )
        args.add_argument(
            "--build-id",
            help="Number of the build being checked out",
            type=int,
            required=True,
        )
        args.add_argument(
            "--previous-build-id",
            help="Build whose changeset is the changelog baseline (default: previous)",
            type=int,
            default=None,
        )
        args.add_argument(
            "--changelog",
            help="File the changelog is written to",
            type=pathlib.Path,
            required=True,
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        config: pathlib.Path,
        history: pathlib.Path,
        workspace: pathlib.Path,
        build_id: int,
        previous_build_id: int | None,
        changelog: pathlib.Path,
        bk_exe: str,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        repo_config = await load_config(config)
        store = await YamlFileStore.load(history)
        try:
            record = await checkout(
                repo_config,
                build_id=build_id,
                previous_build_id=previous_build_id,
                workspace=workspace.absolute(),
                changelog_file=changelog,
                store=store,
                bk_exe=bk_exe,
            )
        finally:
            await store.save()
        print_yaml(record.to_dict())
