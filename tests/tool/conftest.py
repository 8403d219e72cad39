"""Fixtures for running bk-sync against a fake bk executable."""

import pathlib

import pytest

# Stands in for bk: the latest changeset is read from the file named by
# FAKE_BK_REVISION and every invocation is appended to FAKE_BK_LOG.
FAKE_BK = """#!/bin/sh
echo "$@" >> "$FAKE_BK_LOG"
case "$1" in
  version)
    echo "BitKeeper version is bk-${FAKE_BK_VERSION:-7.3.3} for x86_64-glibc"
    ;;
  clone)
    for last; do :; done
    mkdir -p "$last"
    ;;
  pull)
    ;;
  changes)
    if [ "$2" = "-r+" ]; then
      cat "$FAKE_BK_REVISION"
    else
      echo "U alice"
      echo "C (Upstream change)"
    fi
    ;;
  *)
    exit 2
    ;;
esac
"""


@pytest.fixture(name="fake_bk")
def fake_bk_fixture(tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the fake bk executable."""
    path = tmp_path / "bin" / "bk"
    path.parent.mkdir()
    path.write_text(FAKE_BK)
    path.chmod(0o755)
    return path


@pytest.fixture(name="revision_file")
def revision_file_fixture(tmp_path: pathlib.Path) -> pathlib.Path:
    """File holding the changeset the fake bk reports as latest."""
    path = tmp_path / "revision"
    path.write_text("init1\n")
    return path


@pytest.fixture(name="fake_env")
def fake_env_fixture(
    tmp_path: pathlib.Path, revision_file: pathlib.Path
) -> dict[str, str]:
    """Environment for the fake bk executable."""
    return {
        "FAKE_BK_REVISION": str(revision_file),
        "FAKE_BK_LOG": str(tmp_path / "bk.log"),
    }


@pytest.fixture(name="job_config")
def job_config_fixture(tmp_path: pathlib.Path) -> pathlib.Path:
    """Job configuration that pulls into an existing mirror."""
    path = tmp_path / "job.yaml"
    path.write_text(
        "source: bk://bk.example.com/project\n"
        "local_path: project\n"
        "use_pull: true\n"
        "quiet: true\n"
        "retry_delay: 0\n"
    )
    return path
