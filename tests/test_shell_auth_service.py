try:
    from . import _bootstrap  # noqa: F401
    from ._fakes import MASTER_APP_ID, FakeBroker
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401
    from _fakes import MASTER_APP_ID, FakeBroker  # type: ignore

from urllib.parse import parse_qs, urlsplit

import pytest

from healthvault.core.exceptions import ShellAuthError
from healthvault.services.shell_auth import (
    ShellAuthService,
    is_complete_url,
    parse_instance_id,
)


def _query(url: str) -> dict:
    return {key: values[0] for key, values in parse_qs(urlsplit(url).query).items()}


def test_provisioning_url_for_single_record_app() -> None:
    service = ShellAuthService(FakeBroker())

    url = service.build_provisioning_url(
        "https://account.test", MASTER_APP_ID, "token+with/chars", "instance-1"
    )

    assert url.startswith("https://account.test/redirect.aspx?")
    assert _query(url) == {
        "appid": str(MASTER_APP_ID),
        "appCreationToken": "token+with/chars",
        "instanceName": "instance-1",
        "ismra": "false",
    }
    assert "aib" not in url


def test_provisioning_url_flags_multi_record_and_multi_instance() -> None:
    service = ShellAuthService(FakeBroker(), is_multi_record_app=True, multi_instance_aware=True)

    query = _query(
        service.build_provisioning_url("https://account.test/", MASTER_APP_ID, "t", "i")
    )

    assert query["ismra"] == "true"
    assert query["aib"] == "true"


def test_authorize_records_url() -> None:
    service = ShellAuthService(FakeBroker(), is_multi_record_app=True)

    url = service.build_authorize_records_url("https://us.account.test/", MASTER_APP_ID)

    assert url == f"https://us.account.test/redirect.aspx?appid={MASTER_APP_ID}&ismra=true"


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("https://account.test/application/complete?instanceid=1", "1"),
        ("https://account.test/application/complete?foo=bar&instanceid=42&other=1", "42"),
        ("https://account.test/Application/Complete?instanceid=eu-2&target=x", "eu-2"),
        ("https://account.test/application/complete?instanceid=", ""),
    ],
)
def test_parse_instance_id(url: str, expected: str) -> None:
    assert is_complete_url(url)
    assert parse_instance_id(url) == expected


def test_parse_instance_id_requires_marker() -> None:
    with pytest.raises(ShellAuthError):
        parse_instance_id("https://account.test/application/complete?target=x")


def test_is_complete_url_rejects_intermediate_pages() -> None:
    assert not is_complete_url("https://account.test/signin?returnUrl=x")


@pytest.mark.asyncio
async def test_provision_application_returns_instance_id() -> None:
    broker = FakeBroker("https://account.test/application/complete?instanceid=7&x=y")
    service = ShellAuthService(broker)

    instance_id = await service.provision_application(
        "https://account.test/", MASTER_APP_ID, "token", "instance"
    )

    assert instance_id == "7"
    assert len(broker.urls) == 1
