"""Test helpers for bk-sync tools."""

import sys

from bk_sync.command import Command, capture

BK_SYNC_CMD = [sys.executable, "-m", "bk_sync"]


async def run_command(
    args: list[str], env: dict[str, str] | None = None
) -> tuple[int, str]:
    """Run bk-sync and return its exit code and combined output."""
    return await capture(Command(BK_SYNC_CMD + args, env=env))
