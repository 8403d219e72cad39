"""Decide whether the upstream repository changed since the last build.

Polling does not need a workspace: the latest changeset is queried directly
from the upstream source and compared to the changeset recorded by the last
build of the job.
"""

from dataclasses import dataclass
from enum import StrEnum
import logging
from pathlib import Path

from . import bk
from .command import Launcher
from .records import ChangesetRevision, RepositoryConfig
from .revision import latest_changeset
from .store import RecordStore

__all__ = [
    "PollingResult",
    "PollResult",
    "compare_remote_revision",
]

_LOGGER = logging.getLogger(__name__)


class PollingResult(StrEnum):
    """Verdict of a poll."""

    NO_CHANGES = "NO_CHANGES"
    SIGNIFICANT = "SIGNIFICANT"


@dataclass(frozen=True)
class PollResult:
    """Verdict of a poll along with the revisions that were compared."""

    result: PollingResult
    current: ChangesetRevision
    baseline: ChangesetRevision | None = None

    @property
    def changed(self) -> bool:
        return self.result == PollingResult.SIGNIFICANT


def compare(
    baseline: ChangesetRevision | None, current: ChangesetRevision
) -> PollingResult:
    """Compare revisions, where no baseline never matches any revision."""
    if baseline is not None and current == baseline:
        return PollingResult.NO_CHANGES
    return PollingResult.SIGNIFICANT


async def compare_remote_revision(
    config: RepositoryConfig,
    store: RecordStore,
    *,
    last_build_id: int | None = None,
    bk_exe: str = bk.BK_BIN,
    launcher: Launcher | None = None,
    cwd: Path | None = None,
) -> PollResult:
    """Compare the latest upstream changeset to the record of the last build.

    The baseline is the record of `last_build_id`, by default the most recent
    build the store knows of. A build without a record, such as one whose
    checkout failed, has no baseline. No build environment is passed to the
    backend.
    """
    if last_build_id is not None:
        record = store.get_record(last_build_id)
    else:
        record = store.last_record()
    baseline = record.revision if record else None

    current = await latest_changeset(
        config.source,
        cwd=cwd,
        env={},
        bk_exe=bk_exe,
        launcher=launcher,
        timeout=config.timeout,
    )
    result = compare(baseline, current)
    _LOGGER.info(
        "Polled %s: %s (baseline %s, current %s)",
        config.source,
        result,
        baseline,
        current,
    )
    return PollResult(result=result, current=current, baseline=baseline)
