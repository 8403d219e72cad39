"""Tests for the bk-sync command line tool."""

import pathlib

import yaml

from . import run_command


def _document(output: str) -> dict:  # type: ignore[type-arg]
    """Return the YAML document printed after any log output."""
    return yaml.safe_load(output[output.index("---") :])  # type: ignore[no-any-return]


async def test_checkout_then_poll(
    tmp_path: pathlib.Path,
    fake_bk: pathlib.Path,
    fake_env: dict[str, str],
    revision_file: pathlib.Path,
    job_config: pathlib.Path,
) -> None:
    """Test a clone, a poll, a pull and a final poll."""
    workspace = tmp_path / "ws"
    history = tmp_path / "history.yaml"
    common = ["--bk-exe", str(fake_bk)]
    files = ["--config", str(job_config), "--history", str(history)]

    returncode, out = await run_command(
        common
        + ["checkout"]
        + files
        + [
            "--workspace",
            str(workspace),
            "--build-id",
            "1",
            "--changelog",
            str(tmp_path / "changelog1.txt"),
        ],
        env=fake_env,
    )
    assert returncode == 0, out
    assert _document(out) == {"build_id": 1, "revision": "init1"}
    assert (workspace / "project").is_dir()
    assert (tmp_path / "changelog1.txt").read_text() == ""

    returncode, out = await run_command(common + ["poll"] + files, env=fake_env)
    assert returncode == 0, out
    assert _document(out) == {
        "result": "NO_CHANGES",
        "baseline": "init1",
        "current": "init1",
    }

    revision_file.write_text("init2\n")
    returncode, out = await run_command(common + ["poll"] + files, env=fake_env)
    assert returncode == 0, out
    assert _document(out)["result"] == "SIGNIFICANT"

    returncode, out = await run_command(
        common
        + ["checkout"]
        + files
        + [
            "--workspace",
            str(workspace),
            "--build-id",
            "2",
            "--changelog",
            str(tmp_path / "changelog2.txt"),
        ],
        env=fake_env,
    )
    assert returncode == 0, out
    assert _document(out) == {"build_id": 2, "revision": "init2"}
    assert (tmp_path / "changelog2.txt").read_text() == (
        "U alice\nC (Upstream change)\n"
    )

    invocations = (tmp_path / "bk.log").read_text().splitlines()
    assert invocations[0] == "clone -q bk://bk.example.com/project project"
    assert "pull -u -c9 -q bk://bk.example.com/project" in invocations
    assert any(line.startswith("changes -v -rinit1..") for line in invocations)


async def test_version(fake_bk: pathlib.Path, fake_env: dict[str, str]) -> None:
    """Test checking a supported bk version."""
    returncode, out = await run_command(
        ["--bk-exe", str(fake_bk), "version"], env=fake_env
    )
    assert returncode == 0, out
    assert out == "ok: bk version 7.3.3\n"


async def test_version_too_old(
    fake_bk: pathlib.Path, fake_env: dict[str, str]
) -> None:
    """Test an old bk version fails the check."""
    returncode, out = await run_command(
        ["--bk-exe", str(fake_bk), "version"],
        env={**fake_env, "FAKE_BK_VERSION": "3.2.8"},
    )
    assert returncode == 1
    assert out == "too_old: This bk is version 3.2.8 but we need 4.0.1+\n"


async def test_missing_config(tmp_path: pathlib.Path) -> None:
    """Test a missing configuration file is reported as an error."""
    returncode, out = await run_command(
        [
            "poll",
            "--config",
            str(tmp_path / "missing.yaml"),
            "--history",
            str(tmp_path / "history.yaml"),
        ]
    )
    assert returncode == 1
    assert "bk-sync error:" in out
    assert "Configuration file not found" in out


async def test_checkout_failure(
    tmp_path: pathlib.Path, job_config: pathlib.Path
) -> None:
    """Test a bk executable that cannot be launched aborts the checkout."""
    history = tmp_path / "history.yaml"
    returncode, out = await run_command(
        [
            "--bk-exe",
            str(tmp_path / "missing-bk"),
            "checkout",
            "--config",
            str(job_config),
            "--history",
            str(history),
            "--workspace",
            str(tmp_path / "ws"),
            "--build-id",
            "1",
            "--changelog",
            str(tmp_path / "changelog.txt"),
        ]
    )
    assert returncode == 1
    assert "Unable to launch" in out
    assert yaml.safe_load(history.read_text()) == {"records": [], "last_build_id": 1}
