"""Checkout of the upstream repository for a single build.

A checkout runs three steps strictly in sequence:

  1. Update the local mirror with `RepositorySync` (pull or clone)
  2. Save the changelog since the changeset recorded by the previous build
  3. Query the latest changeset of the mirror and record it for this build

The record is only created once the mirror is up to date, so the changelog
range and the recorded changeset always agree. Any failure aborts the
checkout before a record is stored.
"""

import asyncio
import logging
from pathlib import Path

from . import bk
from .changelog import save_changelog
from .command import Launcher, LocalLauncher, Sink
from .context import trace_context
from .records import BuildSyncRecord, RepositoryConfig
from .revision import latest_changeset
from .store import RecordStore
from .sync import RepositorySync, Sleep

__all__ = [
    "checkout",
    "calc_revision_state",
]

_LOGGER = logging.getLogger(__name__)


async def checkout(
    config: RepositoryConfig,
    *,
    build_id: int,
    workspace: Path,
    changelog_file: Path,
    store: RecordStore,
    previous_build_id: int | None = None,
    bk_exe: str = bk.BK_BIN,
    launcher: Launcher | None = None,
    env: dict[str, str] | None = None,
    sink: Sink | None = None,
    sleep: Sleep = asyncio.sleep,
) -> BuildSyncRecord:
    """Update the mirror, save the changelog and record the latest changeset.

    The changelog baseline is the record of `previous_build_id`, which
    defaults to the build right before `build_id`.
    """
    if launcher is None:
        launcher = LocalLauncher()
    if previous_build_id is None:
        previous = store.previous_record(build_id)
    else:
        previous = store.get_record(previous_build_id)
    store.register_build(build_id)
    local_repo = config.module_root(workspace)

    with trace_context(f"Checkout #{build_id}"):
        with trace_context("Sync"):
            syncer = RepositorySync(
                config, bk_exe=bk_exe, launcher=launcher, sink=sink, sleep=sleep
            )
            await syncer.sync(workspace, env)

        with trace_context("Changelog"):
            await save_changelog(
                changelog_file,
                previous.revision if previous else None,
                local_repo=local_repo,
                env=env,
                bk_exe=bk_exe,
                launcher=launcher,
                timeout=config.timeout,
            )

        with trace_context("Revision"):
            revision = await latest_changeset(
                config.local_path,
                cwd=workspace,
                env=env,
                bk_exe=bk_exe,
                launcher=launcher,
                timeout=config.timeout,
            )

    record = BuildSyncRecord(build_id=build_id, revision=revision)
    store.add_record(record)
    _LOGGER.info("Build #%s is at changeset %s", build_id, revision)
    return record


async def calc_revision_state(
    config: RepositoryConfig,
    *,
    build_id: int,
    workspace: Path,
    bk_exe: str = bk.BK_BIN,
    launcher: Launcher | None = None,
    env: dict[str, str] | None = None,
) -> BuildSyncRecord:
    """Return the latest changeset of an existing mirror without updating it."""
    revision = await latest_changeset(
        config.local_path,
        cwd=workspace,
        env=env,
        bk_exe=bk_exe,
        launcher=launcher,
        timeout=config.timeout,
    )
    return BuildSyncRecord(build_id=build_id, revision=revision)
