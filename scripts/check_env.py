"""Validate HealthVault client settings and detect unexpected ``.env`` edits.

``check`` loads ``HealthVaultSettings`` from the given file and prints the
resolved, non-secret values. ``record`` additionally stores a SHA256 baseline
of the file and ``verify`` compares the file against that baseline.

Example usages::

    python -m scripts.check_env check --env-file .env

    python -m scripts.check_env record --env-file .env --hash-file .env.sha256
    python -m scripts.check_env verify --env-file .env --hash-file .env.sha256
"""

from __future__ import annotations

import argparse
import hashlib
import sys
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from healthvault.core.config import HealthVaultSettings

EXIT_OK = 0
EXIT_VALIDATION_ERROR = 2
EXIT_CHECKSUM_ERROR = 3
EXIT_RUNTIME_ERROR = 5


def _file_digest(env_file: Path) -> str:
    return hashlib.sha256(env_file.read_bytes()).hexdigest()


def _load_settings(env_file: Path) -> HealthVaultSettings:
    return HealthVaultSettings(_env_file=env_file)  # type: ignore[call-arg]


def _check(settings: HealthVaultSettings) -> int:
    print(f"master application id: {settings.master_application_id}")
    print(f"platform url:          {settings.default_healthvault_url}")
    print(f"shell url:             {settings.default_healthvault_shell_url}")
    print(f"rest url:              {settings.rest_healthvault_url}")
    print(f"local store:           {settings.store_path}")
    encrypted = "yes" if settings.security.store_encryption_secret else "no"
    print(f"store encrypted:       {encrypted}")
    return EXIT_OK


def _record(env_file: Path, hash_file: Path) -> int:
    digest = _file_digest(env_file)
    hash_file.write_text(f"{digest}\n", encoding="utf-8")
    print(f"Baseline {digest} written to {hash_file}")
    return EXIT_OK


def _verify(env_file: Path, hash_file: Path) -> int:
    if not hash_file.exists():
        print(
            f"No baseline at {hash_file}; run 'record' first.",
            file=sys.stderr,
        )
        return EXIT_RUNTIME_ERROR

    expected = hash_file.read_text(encoding="utf-8").strip()
    actual = _file_digest(env_file)
    if expected != actual:
        print(
            f"{env_file} changed since the baseline was recorded\n"
            f"  baseline: {expected}\n"
            f"  current:  {actual}",
            file=sys.stderr,
        )
        return EXIT_CHECKSUM_ERROR

    print(f"{env_file} matches the recorded baseline.")
    return EXIT_OK


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Validate HealthVault client settings and watch .env for drift."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text, needs_hash in (
        ("check", "Validate settings and print the resolved values.", False),
        ("record", "Validate settings and write a checksum baseline.", True),
        ("verify", "Validate settings and compare against the baseline.", True),
    ):
        subparser = subparsers.add_parser(name, help=help_text)
        subparser.add_argument(
            "--env-file",
            default=".env",
            type=Path,
            help="Environment file to validate (default: .env).",
        )
        if needs_hash:
            subparser.add_argument(
                "--hash-file",
                required=True,
                type=Path,
                help="Checksum baseline location.",
            )

    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env_file: Path = args.env_file

    if not env_file.exists():
        print(f"Environment file {env_file} does not exist.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        settings = _load_settings(env_file)
    except ValidationError as exc:
        print(
            "HealthVault settings are missing or invalid:\n"
            f"{exc.json(indent=2)}",
            file=sys.stderr,
        )
        return EXIT_VALIDATION_ERROR
    except OSError as exc:
        print(f"Could not read {env_file}: {exc}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    handlers: dict[str, Callable[[], int]] = {
        "check": lambda: _check(settings),
        "record": lambda: _record(env_file, args.hash_file),
        "verify": lambda: _verify(env_file, args.hash_file),
    }
    return handlers[args.command]()


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
