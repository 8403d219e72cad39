"""Discovery of the latest changeset of a repository.

The same query serves two purposes: after a checkout it runs against the
local mirror to produce the record of the build, and while polling it runs
directly against the upstream source to see whether anything new arrived.
"""

import logging
from pathlib import Path

from . import bk
from .command import Command, Launcher, capture
from .exceptions import RevisionDiscoveryError
from .records import ChangesetRevision

__all__ = [
    "latest_changeset",
    "parse_changeset",
]

_LOGGER = logging.getLogger(__name__)


def parse_changeset(output: str) -> ChangesetRevision | None:
    """Return the first non-empty line of the output, trimmed."""
    for line in output.splitlines():
        if line := line.strip():
            return line
    return None


async def latest_changeset(
    repository: str,
    *,
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    bk_exe: str = bk.BK_BIN,
    launcher: Launcher | None = None,
    timeout: float | None = None,
) -> ChangesetRevision:
    """Return the key of the most recent changeset in the repository.

    The repository is either a path relative to `cwd` (the local mirror) or
    the URL of a remote repository. Without a launcher a local one is used,
    which is the case when polling outside of a running build.
    """
    cmd = Command(
        bk.latest_changeset_args(bk_exe, repository),
        cwd=cwd,
        env=env,
        timeout=timeout,
    )
    returncode, out = await capture(cmd, launcher)
    if returncode != 0:
        _dump_output(out)
        _LOGGER.error("Failed to check the latest changeset of %s", repository)
        raise RevisionDiscoveryError(
            repository, f"Failed to check the latest changeset (exit {returncode})"
        )
    if (revision := parse_changeset(out)) is None:
        _dump_output(out)
        _LOGGER.error("Failed to identify a revision of %s", repository)
        raise RevisionDiscoveryError(repository, "Failed to identify a revision")
    _LOGGER.debug("Latest changeset of %s is %s", repository, revision)
    return revision


def _dump_output(out: str) -> None:
    """Write the raw command output to the log to assist trouble-shooting."""
    for line in out.splitlines():
        _LOGGER.error("  %s", line)
