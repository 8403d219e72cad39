"""Bring the local mirror of the upstream repository up to date.

An existing mirror is updated with `bk pull` when the job is configured to
do so. Otherwise, or when there is no mirror yet, the mirror is removed and
cloned again from the source. Clone has no retry of its own so failed
attempts are retried here, each starting from an empty directory after a
fixed delay.

The backoff sleep, the removal of the old mirror and every backend command
are points where cancellation of the running task is observed and
propagated, so an aborted build does not keep retrying.
"""

import asyncio
from collections.abc import Awaitable, Callable
from enum import StrEnum
import logging
from pathlib import Path
import shutil

import aiofiles.os
from aiofiles.ospath import exists, isdir, islink

from . import bk
from .command import Command, Launcher, LocalLauncher, Sink, build_log_sink
from .exceptions import CommandTimeoutError, SyncError
from .records import RepositoryConfig

__all__ = [
    "RepositorySync",
    "SyncMode",
]

_LOGGER = logging.getLogger(__name__)


Sleep = Callable[[float], Awaitable[None]]


class SyncMode(StrEnum):
    """How the local mirror was brought up to date."""

    PULL = "pull"
    CLONE = "clone"


async def _remove_tree(path: Path) -> None:
    """Remove a file or directory tree if present."""
    if await islink(path) or (await exists(path) and not await isdir(path)):
        await aiofiles.os.remove(path)
    elif await isdir(path):
        _LOGGER.debug("Removing existing repository %s", path)
        await asyncio.to_thread(shutil.rmtree, path)


class RepositorySync:
    """Updates the local mirror by pulling or cloning from the source."""

    def __init__(
        self,
        config: RepositoryConfig,
        *,
        bk_exe: str = bk.BK_BIN,
        launcher: Launcher | None = None,
        sink: Sink | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialize RepositorySync.

        The sink receives the output of pull and clone, by default the build
        log. The sleep function is used for the delay between clone attempts.
        """
        self._config = config
        self._bk_exe = bk_exe
        self._launcher = launcher or LocalLauncher()
        self._sink = sink or build_log_sink()
        self._sleep = sleep

    async def choose_mode(self, workspace: Path) -> SyncMode:
        """Pull only when configured to and the mirror already exists."""
        local_repo = self._config.module_root(workspace)
        if self._config.use_pull and await exists(local_repo):
            return SyncMode.PULL
        return SyncMode.CLONE

    async def sync(
        self, workspace: Path, env: dict[str, str] | None = None
    ) -> SyncMode:
        """Pull or clone the mirror inside the workspace."""
        mode = await self.choose_mode(workspace)
        _LOGGER.debug("Updating %s using %s", self._config.local_path, mode)
        if mode == SyncMode.PULL:
            await self.pull(workspace, env)
        else:
            await self.clone(workspace, env)
        return mode

    async def pull(self, workspace: Path, env: dict[str, str] | None = None) -> None:
        """Pull and update the existing mirror from the source."""
        config = self._config
        cmd = Command(
            bk.pull_args(
                self._bk_exe, config.source, config.max_attempts, config.quiet
            ),
            cwd=config.module_root(workspace),
            env=env,
            timeout=config.timeout,
        )
        if (returncode := await self._launcher.launch(cmd, self._sink)) != 0:
            _LOGGER.error(
                "Failed to pull from %s (exit %s)", config.source, returncode
            )
            raise SyncError(config.source, f"Failed to pull from {config.source}")
        _LOGGER.info("Pull completed")

    async def clone(self, workspace: Path, env: dict[str, str] | None = None) -> int:
        """Clone a fresh mirror, retrying failed attempts.

        Returns the number of attempts it took.
        """
        config = self._config
        local_repo = config.module_root(workspace)
        await aiofiles.os.makedirs(workspace, exist_ok=True)
        cmd = Command(
            bk.clone_args(
                self._bk_exe, config.source, config.local_path, config.quiet
            ),
            cwd=workspace,
            env=env,
            timeout=config.timeout,
        )

        attempt = 0
        returncode: int | None = None
        while attempt < config.max_attempts:
            if attempt > 0:
                await self._sleep(config.retry_delay)
                _LOGGER.error(
                    "Retrying clone (attempt %d of %d)",
                    attempt + 1,
                    config.max_attempts,
                )
            await _remove_tree(local_repo)
            attempt += 1
            try:
                returncode = await self._launcher.launch(cmd, self._sink)
            except CommandTimeoutError as err:
                _LOGGER.error("Clone attempt %d timed out: %s", attempt, err)
                returncode = None
                continue
            if returncode == 0:
                break

        if returncode != 0:
            _LOGGER.error(
                "Failed to clone after %d attempts from %s", attempt, config.source
            )
            raise SyncError(
                config.source,
                f"Failed to clone after {attempt} attempts from {config.source}",
            )
        _LOGGER.info("New clone made")
        return attempt
