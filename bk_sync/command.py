"""Library for launching the backend executable using asyncio.

A `Launcher` runs a single `Command` to completion, forwarding everything the
process writes on stdout and stderr to a sink and returning the exit code. A
non-zero exit code is reported to the caller, who decides whether it matters.

This example captures the output of a command in memory:
```python
from bk_sync.command import Command, capture

returncode, out = await capture(Command(["bk", "version"]))
```
"""

import asyncio
from abc import ABC, abstractmethod
import io
import logging
import os
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from .exceptions import CommandTimeoutError, LaunchError

_LOGGER = logging.getLogger(__name__)

_READ_SIZE = 4096

__all__ = [
    "Command",
    "Launcher",
    "LocalLauncher",
    "LogSink",
    "Sink",
    "build_log_sink",
    "capture",
]


class Sink(Protocol):
    """Destination for the output of a launched process."""

    def write(self, data: bytes, /) -> Any:
        """Accept a chunk of process output."""


def format_path(path: Path) -> str:
    """Format path for debugging."""
    if path.is_absolute():
        cwd = Path.cwd()
        if path.is_relative_to(cwd):
            rel_path = str(path.relative_to(cwd))
            return f"{rel_path} (abs)"
    return str(path)


@dataclass
class Command:
    """An instance of a command to run."""

    cmd: list[str]
    """Array of command line arguments."""

    cwd: Path | None = None
    """Current working directory."""

    env: dict[str, str] | None = None
    """Environment variables added to the inherited environment."""

    timeout: float | None = None
    """Seconds to wait before the process is killed, or None to wait forever."""

    @property
    def string(self) -> str:
        """Render the command as a single string."""
        return " ".join([shlex.quote(arg) for arg in self.cmd])

    def __str__(self) -> str:
        """Render as a debug string."""
        cwd: str = ""
        if self.cwd:
            cwd = f"({format_path(self.cwd)}) "
        return f"{cwd}{self.string}"


class LogSink:
    """Sink that writes each line of process output to a logger."""

    def __init__(self, logger: logging.Logger, level: int = logging.INFO) -> None:
        """Initialize LogSink."""
        self._logger = logger
        self._level = level
        self._pending = b""

    def write(self, data: bytes, /) -> int:
        """Log every complete line, holding back any trailing partial line."""
        *lines, self._pending = (self._pending + data).split(b"\n")
        for line in lines:
            self._emit(line)
        return len(data)

    def flush(self) -> None:
        """Log any partial line still held back."""
        if self._pending:
            self._emit(self._pending)
            self._pending = b""

    def _emit(self, line: bytes) -> None:
        self._logger.log(
            self._level, "%s", line.decode("utf-8", errors="replace").rstrip("\r")
        )


class Launcher(ABC):
    """Runs commands on behalf of a build."""

    @abstractmethod
    async def launch(self, cmd: Command, sink: Sink) -> int:
        """Run the command to completion and return its exit code.

        All stdout and stderr output of the process is written to the sink.
        """


async def _pump(proc: asyncio.subprocess.Process, sink: Sink) -> None:
    assert proc.stdout is not None, "stdout should be available when PIPE is specified"
    while chunk := await proc.stdout.read(_READ_SIZE):
        sink.write(chunk)
    await proc.wait()


async def _stop(proc: asyncio.subprocess.Process, kill: bool = False) -> None:
    """Stop a process that is still running and reap it."""
    if proc.returncode is not None:
        return
    try:
        if kill:
            proc.kill()
        else:
            proc.terminate()
    except ProcessLookupError:
        pass
    await proc.wait()


class LocalLauncher(Launcher):
    """Launcher that spawns processes on the local machine."""

    async def launch(self, cmd: Command, sink: Sink) -> int:
        """Run the command, streaming its output into the sink."""
        _LOGGER.debug("Running command: %s", cmd)
        env = {
            **os.environ,
            **(cmd.env if cmd.env else {}),
        }
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd.cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                cwd=cmd.cwd,
                env=env,
            )
        except OSError as err:
            raise LaunchError(f"Unable to launch '{cmd}': {err}") from err

        try:
            await asyncio.wait_for(_pump(proc, sink), cmd.timeout)
        except asyncio.exceptions.TimeoutError as err:
            await _stop(proc, kill=True)
            raise CommandTimeoutError(
                f"Command '{cmd}' timed out after {cmd.timeout}s"
            ) from err
        except asyncio.CancelledError:
            _LOGGER.debug("Command cancelled, stopping process: %s", cmd)
            await _stop(proc)
            raise
        finally:
            if isinstance(sink, LogSink):
                sink.flush()

        _LOGGER.debug("Command '%s' exited with %s", cmd, proc.returncode)
        assert proc.returncode is not None
        return proc.returncode


async def capture(cmd: Command, launcher: Launcher | None = None) -> tuple[int, str]:
    """Run the command buffering its output, returning exit code and output."""
    if launcher is None:
        launcher = LocalLauncher()
    buf = io.BytesIO()
    returncode = await launcher.launch(cmd, buf)
    return returncode, buf.getvalue().decode("utf-8", errors="replace")


BUILD_LOG = "bk_sync.build"
"""Name of the logger receiving the output of backend commands."""


def build_log_sink() -> LogSink:
    """Return a sink that writes process output to the build log."""
    return LogSink(logging.getLogger(BUILD_LOG))
