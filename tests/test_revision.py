"""Tests for discovering the latest changeset."""

import logging
import pathlib

import pytest

from bk_sync.exceptions import RevisionDiscoveryError
from bk_sync.revision import latest_changeset, parse_changeset

from conftest import FakeLauncher, FakeResult


@pytest.mark.parametrize(
    ("output", "expected"),
    [
        ("abc123\n", "abc123"),
        ("  cset42  \nignored\n", "cset42"),
        ("\r\n\nfirst\r\nsecond\r\n", "first"),
        ("", None),
        ("   \n\n", None),
    ],
    ids=["single", "first-line-wins", "crlf", "empty", "blank"],
)
def test_parse_changeset(output: str, expected: str | None) -> None:
    """Test the first non-empty line of the output is the changeset."""
    assert parse_changeset(output) == expected


async def test_latest_changeset(
    launcher: FakeLauncher, workspace: pathlib.Path
) -> None:
    """Test querying the local mirror from the workspace."""
    launcher.script("latest", FakeResult(output=b"abc123\n"))
    revision = await latest_changeset(
        "repo", cwd=workspace, env={"BUILD_ID": "3"}, launcher=launcher
    )
    assert revision == "abc123"
    cmd = launcher.commands[0]
    assert cmd.cmd == ["bk", "changes", "-r+", "-d:CSETKEY:", "-D", "repo"]
    assert cmd.cwd == workspace
    assert cmd.env == {"BUILD_ID": "3"}


async def test_empty_output(
    launcher: FakeLauncher, caplog: pytest.LogCaptureFixture
) -> None:
    """Test that no changeset in the output is an error."""
    launcher.script("latest", FakeResult(output=b""))
    with pytest.raises(RevisionDiscoveryError, match="Failed to identify a revision"):
        await latest_changeset("bk://host/repo", launcher=launcher)
    assert "Failed to identify a revision of bk://host/repo" in caplog.text


async def test_command_failure_dumps_output(
    launcher: FakeLauncher, caplog: pytest.LogCaptureFixture
) -> None:
    """Test the raw output is logged when the query fails."""
    launcher.script(
        "latest", FakeResult(returncode=1, output=b"ERROR-cannot open repository\n")
    )
    with caplog.at_level(logging.ERROR):
        with pytest.raises(RevisionDiscoveryError) as exc_info:
            await latest_changeset("bk://host/repo", launcher=launcher)
    assert exc_info.value.target == "bk://host/repo"
    assert "ERROR-cannot open repository" in caplog.text
    assert "Failed to check the latest changeset" in caplog.text


async def test_default_launcher(tmp_path: pathlib.Path) -> None:
    """Test that a local launcher is used when none is given."""
    fake_bk = tmp_path / "bk"
    fake_bk.write_text("#!/bin/sh\necho 'lm@host|ChangeSet|20240101|1'\n")
    fake_bk.chmod(0o755)
    revision = await latest_changeset("repo", cwd=tmp_path, bk_exe=str(fake_bk))
    assert revision == "lm@host|ChangeSet|20240101|1"
