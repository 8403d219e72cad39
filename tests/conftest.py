"""Test fixtures for bk-sync."""

from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass
import pathlib

import pytest

from bk_sync.command import Command, Launcher, Sink


@dataclass
class FakeResult:
    """Scripted outcome of a single backend command."""

    returncode: int = 0
    output: bytes = b""
    exc: BaseException | None = None
    side_effect: Callable[[Command], None] | None = None


def command_key(cmd: Command) -> str:
    """Name used to script a backend command by its subcommand."""
    if cmd.cmd[1] == "changes" and "-r+" in cmd.cmd:
        return "latest"
    return cmd.cmd[1]


def make_clone_dir(cmd: Command) -> None:
    """Create the destination directory of a clone like bk would."""
    assert cmd.cwd is not None
    (cmd.cwd / cmd.cmd[-1]).mkdir(parents=True)


class FakeLauncher(Launcher):
    """Launcher that records commands and replays scripted results.

    Results are consumed in order per subcommand, the last one repeating.
    Clones create their destination directory unless scripted otherwise.
    """

    def __init__(self) -> None:
        self.commands: list[Command] = []
        self._results: dict[str, deque[FakeResult]] = defaultdict(deque)
        self._last: dict[str, FakeResult] = {}

    def script(self, key: str, *results: FakeResult) -> None:
        self._results[key].extend(results)

    def calls(self, key: str) -> list[Command]:
        return [cmd for cmd in self.commands if command_key(cmd) == key]

    @property
    def keys(self) -> list[str]:
        return [command_key(cmd) for cmd in self.commands]

    async def launch(self, cmd: Command, sink: Sink) -> int:
        self.commands.append(cmd)
        key = command_key(cmd)
        if results := self._results[key]:
            result = self._last[key] = results.popleft()
        elif key in self._last:
            result = self._last[key]
        else:
            result = FakeResult(side_effect=make_clone_dir if key == "clone" else None)
        if result.exc is not None:
            raise result.exc
        if result.side_effect is not None:
            result.side_effect(cmd)
        sink.write(result.output)
        return result.returncode


class SleepRecorder:
    """Replacement for asyncio.sleep that records the requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture(name="launcher")
def launcher_fixture() -> FakeLauncher:
    """Fixture for a scripted launcher."""
    return FakeLauncher()


@pytest.fixture(name="sleep")
def sleep_fixture() -> SleepRecorder:
    """Fixture recording backoff delays instead of waiting."""
    return SleepRecorder()


@pytest.fixture(name="workspace")
def workspace_fixture(tmp_path: pathlib.Path) -> pathlib.Path:
    """Fixture for an empty build workspace."""
    path = tmp_path / "workspace"
    path.mkdir()
    return path
