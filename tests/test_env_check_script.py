"""Tests for the settings validation and drift detection script."""

from __future__ import annotations

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import os
from pathlib import Path
from typing import Iterator

import pytest

from scripts import check_env

APP_ID = "0f1e2d3c-4b5a-4968-8776-5a4b3c2d1e0f"


def _write_env(env_path: Path, **values: str) -> None:
    contents = "\n".join(f"{key}={value}" for key, value in values.items())
    env_path.write_text(contents + "\n", encoding="utf-8")


@pytest.fixture(autouse=True)
def _isolated_env() -> Iterator[None]:
    # Settings read HEALTHVAULT_ variables from the environment before the file.
    saved = dict(os.environ)
    for key in [key for key in os.environ if key.startswith("HEALTHVAULT_")]:
        del os.environ[key]
    yield
    os.environ.clear()
    os.environ.update(saved)


@pytest.mark.parametrize("command", ["record", "verify", "check"])
def test_missing_env_file_is_a_runtime_error(tmp_path: Path, command: str) -> None:
    argv = [command, "--env-file", str(tmp_path / ".missing-env")]
    if command != "check":
        argv.extend(["--hash-file", str(tmp_path / ".env.sha256")])

    assert check_env.main(argv) == check_env.EXIT_RUNTIME_ERROR


def test_check_prints_resolved_settings(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    env_file = tmp_path / ".env"
    _write_env(
        env_file,
        HEALTHVAULT_MASTER_APPLICATION_ID=APP_ID,
        HEALTHVAULT_REST_HEALTHVAULT_URL="https://rest.example",
    )

    assert check_env.main(["check", "--env-file", str(env_file)]) == check_env.EXIT_OK

    output = capsys.readouterr().out
    assert APP_ID in output
    assert "https://rest.example/" in output


def test_record_then_verify_detects_drift(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    hash_file = tmp_path / ".env.sha256"
    _write_env(env_file, HEALTHVAULT_MASTER_APPLICATION_ID=APP_ID)
    args = ["--env-file", str(env_file), "--hash-file", str(hash_file)]

    assert check_env.main(["record", *args]) == check_env.EXIT_OK
    assert hash_file.read_text(encoding="utf-8").strip()
    assert check_env.main(["verify", *args]) == check_env.EXIT_OK

    _write_env(
        env_file,
        HEALTHVAULT_MASTER_APPLICATION_ID=APP_ID,
        HEALTHVAULT_IS_MULTI_RECORD_APP="true",
    )

    assert check_env.main(["verify", *args]) == check_env.EXIT_CHECKSUM_ERROR


def test_verify_without_baseline(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    _write_env(env_file, HEALTHVAULT_MASTER_APPLICATION_ID=APP_ID)

    exit_code = check_env.main(
        ["verify", "--env-file", str(env_file), "--hash-file", str(tmp_path / "missing")]
    )

    assert exit_code == check_env.EXIT_RUNTIME_ERROR


@pytest.mark.parametrize(
    "values",
    [
        {"HEALTHVAULT_LOG_LEVEL": "DEBUG"},
        {"HEALTHVAULT_MASTER_APPLICATION_ID": "not-a-guid"},
    ],
)
def test_missing_or_invalid_values_fail_validation(tmp_path: Path, values: dict) -> None:
    env_file = tmp_path / ".env"
    _write_env(env_file, **values)

    exit_code = check_env.main(["check", "--env-file", str(env_file)])

    assert exit_code == check_env.EXIT_VALIDATION_ERROR
