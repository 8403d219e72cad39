"""Library for building the command lines of the BitKeeper `bk` executable.

Every interaction with the backend goes through one of the argument builders
in this module, so that the exact command line contract lives in one place:

  - `bk changes -r+ -d:CSETKEY: -D <repo>` reports the latest changeset key
  - `bk changes -v -r<baseline>.. -d<template>` renders the changelog
  - `bk pull -u -c<attempts> [-q] <source>` updates an existing mirror
  - `bk clone [-q] <source> <local_path>` makes a fresh mirror
  - `bk version` reports the version of the executable
"""

from dataclasses import dataclass
from enum import StrEnum
import logging
import re

from .command import Command, Launcher, capture
from .exceptions import CommandException

__all__ = [
    "BK_BIN",
    "CHANGELOG_TEMPLATE",
    "MIN_VERSION",
    "VersionCheck",
    "VersionStatus",
    "check_version",
    "parse_version",
]

_LOGGER = logging.getLogger(__name__)


BK_BIN = "bk"

# Per changeset a user line followed by nested comment and tag lines. Without
# changeset grouping each file is listed on its own line instead.
CHANGELOG_TEMPLATE = (
    "$if(:CHANGESET:){U :USER:\n$each(:C:){C (:C:)\n}$each(:TAG:){T (:TAG:)\n}}"
    "$unless(:CHANGESET:){F :GFILE:\n}"
)

MIN_VERSION = (4, 0, 1)

VERSION_PATTERN = re.compile(r"BitKeeper version is bk-([0-9.]+)")


def latest_changeset_args(bk_exe: str, repository: str) -> list[str]:
    """Arguments that print the key of the most recent changeset only."""
    return [bk_exe, "changes", "-r+", "-d:CSETKEY:", "-D", repository]


def changes_since_args(bk_exe: str, baseline: str) -> list[str]:
    """Arguments that render every change after the baseline changeset."""
    return [bk_exe, "changes", "-v", f"-r{baseline}..", f"-d{CHANGELOG_TEMPLATE}"]


def pull_args(bk_exe: str, source: str, max_attempts: int, quiet: bool) -> list[str]:
    """Arguments that pull and update the mirror, retried by bk itself."""
    args = [bk_exe, "pull", "-u", f"-c{max_attempts}"]
    if quiet:
        args.append("-q")
    args.append(source)
    return args


def clone_args(bk_exe: str, source: str, local_path: str, quiet: bool) -> list[str]:
    """Arguments that clone the source into the local path."""
    args = [bk_exe, "clone"]
    if quiet:
        args.append("-q")
    args.extend([source, local_path])
    return args


def version_args(bk_exe: str) -> list[str]:
    """Arguments that print the version of the executable."""
    return [bk_exe, "version"]


def parse_version(output: str) -> str | None:
    """Return the version string reported by `bk version`, if any."""
    if match := VERSION_PATTERN.search(output):
        return match.group(1)
    return None


def _version_tuple(version: str) -> tuple[int, ...]:
    parts = version.strip(".").split(".")
    if not all(parts):
        raise ValueError(f"Malformed version number '{version}'")
    return tuple(int(part) for part in parts)


class VersionStatus(StrEnum):
    """Outcome of checking the version of the executable."""

    OK = "ok"
    TOO_OLD = "too_old"
    UNKNOWN = "unknown"
    ERROR = "error"


@dataclass(frozen=True)
class VersionCheck:
    """Result of a version check with a message suitable for display."""

    status: VersionStatus
    message: str
    version: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == VersionStatus.OK


def evaluate_version(output: str) -> VersionCheck:
    """Compare the version in the output of `bk version` to the minimum."""
    required = ".".join(str(part) for part in MIN_VERSION)
    if (version := parse_version(output)) is None:
        return VersionCheck(VersionStatus.ERROR, "Unable to check bk version")
    try:
        found = _version_tuple(version)
    except ValueError:
        return VersionCheck(
            VersionStatus.UNKNOWN,
            f"Can't tell if this bk is {required} or later "
            f"(detected version is {version})",
            version,
        )
    if found >= MIN_VERSION:
        return VersionCheck(VersionStatus.OK, f"bk version {version}", version)
    return VersionCheck(
        VersionStatus.TOO_OLD,
        f"This bk is version {version} but we need {required}+",
        version,
    )


async def check_version(
    bk_exe: str = BK_BIN, launcher: Launcher | None = None
) -> VersionCheck:
    """Run `bk version` and check it against the minimum supported version."""
    try:
        _, out = await capture(Command(version_args(bk_exe)), launcher)
    except CommandException as err:
        _LOGGER.debug("Version check of %s failed: %s", bk_exe, err)
        return VersionCheck(VersionStatus.ERROR, "Unable to check bk version")
    return evaluate_version(out)
