"""Extraction of the changes made since the previous build.

The changelog artifact holds the raw output of `bk changes` rendered with
`bk.CHANGELOG_TEMPLATE`, which is read later by whatever presents the changes
of a build. The first build of a job has no previous changeset, in which case
the artifact is left empty and the build carries on.
"""

import asyncio
import logging
from pathlib import Path
import warnings

from . import bk
from .command import Command, Launcher, LocalLauncher
from .exceptions import ChangelogExtractionError, NoBaselineWarning
from .records import ChangesetRevision

__all__ = [
    "save_changelog",
]

_LOGGER = logging.getLogger(__name__)


async def save_changelog(
    changelog_file: Path,
    baseline: ChangesetRevision | None,
    *,
    local_repo: Path,
    env: dict[str, str] | None = None,
    bk_exe: str = bk.BK_BIN,
    launcher: Launcher | None = None,
    timeout: float | None = None,
) -> bool:
    """Write the changes after the baseline changeset to the changelog file.

    Returns False when there was no baseline and the changelog is empty.
    """
    if launcher is None:
        launcher = LocalLauncher()
    # The sink is written synchronously by the launcher, only the open blocks.
    changelog = await asyncio.to_thread(changelog_file.open, "wb")
    with changelog:
        if not baseline:
            message = "No most recent changeset available for changelog"
            _LOGGER.error(message)
            warnings.warn(message, NoBaselineWarning, stacklevel=2)
            return False

        cmd = Command(
            bk.changes_since_args(bk_exe, baseline),
            cwd=local_repo,
            env=env,
            timeout=timeout,
        )
        if (returncode := await launcher.launch(cmd, changelog)) != 0:
            _LOGGER.error("Failed to save changelog (exit %s)", returncode)
            raise ChangelogExtractionError(
                f"Failed to save changelog since {baseline} (exit {returncode})"
            )
    _LOGGER.info("Changelog saved")
    return True
