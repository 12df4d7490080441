#!/usr/bin/env python
"""Interactive sign-in helper for a self-provisioned HealthVault client.

The first ``sign-in`` opens the Shell consent page in a browser and asks for
the URL the browser lands on; later runs reuse the credentials cached in the
local store.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from healthvault.clients.browser_auth import ConsoleBrowserAuthBroker  # noqa: E402
from healthvault.core.config import get_settings  # noqa: E402
from healthvault.core.exceptions import HealthVaultError, OperationCancelled  # noqa: E402
from healthvault.core.logging import configure_logging  # noqa: E402
from healthvault.dependencies import get_connection_factory  # noqa: E402
from healthvault.models.person import PersonInfo  # noqa: E402
from healthvault.services.soda_connection import HealthVaultSodaConnection  # noqa: E402


def _print_person(person: PersonInfo | None) -> None:
    if person is None:
        print("Not signed in.")
        return
    print(f"Signed in as {person.name} ({person.person_id})")
    for record in person.authorized_records.values():
        marker = "*" if record.id == person.selected_record_id else " "
        label = record.display_name or record.name
        print(f" {marker} {label} [{record.id}]")


async def _connection() -> HealthVaultSodaConnection:
    return await get_connection_factory().get_or_create_soda_connection(
        ConsoleBrowserAuthBroker()
    )


async def sign_in() -> int:
    connection = await _connection()
    await connection.authenticate()
    _print_person(connection.person_info)
    return 0


async def authorize_records() -> int:
    connection = await _connection()
    await connection.authenticate()
    await connection.authorize_additional_records()
    _print_person(connection.person_info)
    return 0


async def whoami() -> int:
    connection = await _connection()
    _print_person(await connection.get_person_info())
    return 0


async def sign_out() -> int:
    connection = await _connection()
    await connection.deauthorize_application()
    print("Signed out; cached credentials removed.")
    return 0


COMMANDS = {
    "sign-in": sign_in,
    "authorize-records": authorize_records,
    "whoami": whoami,
    "sign-out": sign_out,
}


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Sign in to HealthVault and manage the cached credentials."
    )
    parser.add_argument("command", choices=sorted(COMMANDS))
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override HEALTHVAULT_LOG_LEVEL for this run.",
    )
    args = parser.parse_args(argv)

    configure_logging(args.log_level or get_settings().log_level)
    try:
        return asyncio.run(COMMANDS[args.command]())
    except OperationCancelled:
        print("Cancelled.", file=sys.stderr)
        return 1
    except HealthVaultError as exc:
        print(f"HealthVault error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
