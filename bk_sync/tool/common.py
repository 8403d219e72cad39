"""Common flags and helpers for the bk-sync actions."""

from argparse import ArgumentParser
import pathlib

import aiofiles
import yaml

from bk_sync.exceptions import InputException
from bk_sync.records import RepositoryConfig


def add_config_flags(args: ArgumentParser) -> None:
    """Add flags that locate the job configuration and build history."""
    args.add_argument(
        "--config",
        help="YAML file with the repository configuration of the job",
        type=pathlib.Path,
        required=True,
    )
    args.add_argument(
        "--history",
        help="YAML file holding the changeset recorded for each build",
        type=pathlib.Path,
        required=True,
    )


async def load_config(path: pathlib.Path) -> RepositoryConfig:
    """Read the repository configuration file."""
    try:
        async with aiofiles.open(path, mode="r", encoding="utf-8") as f:
            content = await f.read()
    except FileNotFoundError as err:
        raise InputException(f"Configuration file not found: {path}") from err
    return RepositoryConfig.parse_yaml(content)


def print_yaml(data: dict) -> None:  # type: ignore[type-arg]
    """Print a document to stdout."""
    print(yaml.dump(data, sort_keys=False, explicit_start=True), end="")
