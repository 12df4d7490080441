try:
    from . import _bootstrap  # noqa: F401
    from ._fakes import (
        RECORD_ID,
        SESSION_SHARED_SECRET,
        FakePlatform,
        InMemorySecretStore,
        make_connection,
        seed_store,
        session_credential,
    )
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401
    from _fakes import (  # type: ignore
        RECORD_ID,
        SESSION_SHARED_SECRET,
        FakePlatform,
        InMemorySecretStore,
        make_connection,
        seed_store,
        session_credential,
    )

import base64
import hashlib
import hmac
import json
from datetime import datetime, timezone
from typing import List

import httpx
import pytest

from healthvault.clients.rest_request import HealthServiceRestRequest, build_signature_string
from healthvault.core.config import SDK_USER_AGENT
from healthvault.core.exceptions import HealthHttpError, InvalidStateError
from healthvault.services.soda_connection import ConnectionState

SIGNED_AT = datetime(2017, 6, 1, 8, 0, 0, tzinfo=timezone.utc)


def _expected_hmac(message: str) -> str:
    key = base64.b64decode(SESSION_SHARED_SECRET)
    digest = hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


async def _authenticated_connection(platform: FakePlatform | None = None):
    secrets = InMemorySecretStore()
    await seed_store(secrets)
    connection = make_connection(platform or FakePlatform(), secrets=secrets)
    await connection.authenticate()
    return connection


def test_signature_string_joins_fields_with_ampersands() -> None:
    signed = build_signature_string(
        "POST", "/v3/goals", "MSH-V1 app-token=T", "abc=", "application/json", SIGNED_AT
    )
    assert signed == "POST&/v3/goals&MSH-V1 app-token=T&abc=&application/json&2017-06-01 08:00:00Z"


@pytest.mark.asyncio
async def test_content_request_headers() -> None:
    connection = await _authenticated_connection()
    body = '{"name":"walk"}'
    request = HealthServiceRestRequest(
        connection, "post", "v3/goals", query={"x": "1"}, body=body, record_id=RECORD_ID
    )

    headers = request.build_headers(SIGNED_AT)

    auth_header = f"MSH-V1 app-token=stored-token,record-id={RECORD_ID}"
    content_hash = base64.b64encode(hashlib.sha256(body.encode("utf-8")).digest()).decode("ascii")
    assert headers["Authorization"] == auth_header
    assert headers["Content-Type"] == "application/json"
    assert headers["x-msh-sha256"] == content_hash
    assert headers["Date"] == "Thu, 01 Jun 2017 08:00:00 GMT"
    assert headers["User-Agent"] == SDK_USER_AGENT
    assert "CorrelationId" not in headers

    expected = _expected_hmac(
        f"POST&/v3/goals?x=1&{auth_header}&{content_hash}&application/json&2017-06-01 08:00:00Z"
    )
    assert headers["x-msh-hmac"] == f"V1-HMACSHA256 {expected}"


@pytest.mark.asyncio
async def test_non_content_request_signs_empty_hash_and_type() -> None:
    connection = await _authenticated_connection()
    request = HealthServiceRestRequest(connection, "GET", "v3/goals", body="ignored")

    headers = request.build_headers(SIGNED_AT)

    assert request.body is None
    assert "Content-Type" not in headers
    assert "x-msh-sha256" not in headers
    expected = _expected_hmac("GET&/v3/goals&MSH-V1 app-token=stored-token&&&2017-06-01 08:00:00Z")
    assert headers["x-msh-hmac"] == f"V1-HMACSHA256 {expected}"


def test_headers_require_a_session_credential() -> None:
    connection = make_connection(FakePlatform())
    request = HealthServiceRestRequest(connection, "GET", "v3/goals")

    with pytest.raises(InvalidStateError):
        request.build_headers(SIGNED_AT)


@pytest.mark.asyncio
async def test_unauthorized_response_refreshes_session_and_resends_once() -> None:
    platform = FakePlatform()
    connection = await _authenticated_connection(platform)
    seen: List[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers["Authorization"])
        if len(seen) == 1:
            return httpx.Response(401)
        return httpx.Response(200, json={"ok": True})

    request = HealthServiceRestRequest(
        connection, "GET", "v3/goals", transport=httpx.MockTransport(handler)
    )
    response = await request.execute()

    assert response.status_code == 200
    assert json.loads(response.body) == {"ok": True}
    assert seen == ["MSH-V1 app-token=stored-token", "MSH-V1 app-token=session-token-1"]
    assert platform.calls["CreateAuthenticatedSessionToken"] == 1


@pytest.mark.asyncio
async def test_failure_status_raises_http_error() -> None:
    connection = await _authenticated_connection()
    request = HealthServiceRestRequest(
        connection,
        "DELETE",
        "v3/goals/1",
        transport=httpx.MockTransport(lambda request: httpx.Response(403, text="forbidden")),
    )

    with pytest.raises(HealthHttpError) as exc_info:
        await request.execute()

    assert exc_info.value.status_code == 403
    assert exc_info.value.message == "forbidden"


@pytest.mark.asyncio
async def test_expired_credential_is_refreshed_before_signing() -> None:
    platform = FakePlatform()
    connection = await _authenticated_connection(platform)
    connection.session_credential = session_credential("expired-token", expired=True)
    seen: List[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers["Authorization"])
        return httpx.Response(200, json={})

    request = HealthServiceRestRequest(
        connection, "GET", "v3/goals", transport=httpx.MockTransport(handler)
    )
    await request.execute()

    assert seen == ["MSH-V1 app-token=session-token-1"]
    assert platform.calls["CreateAuthenticatedSessionToken"] == 1


@pytest.mark.asyncio
async def test_unauthenticated_connection_signs_in_before_sending() -> None:
    platform = FakePlatform()
    secrets = InMemorySecretStore()
    await seed_store(secrets)
    connection = make_connection(platform, secrets=secrets)
    seen: List[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers["Authorization"])
        return httpx.Response(200, json={})

    request = HealthServiceRestRequest(
        connection, "GET", "v3/goals", transport=httpx.MockTransport(handler)
    )
    await request.execute()

    assert seen == ["MSH-V1 app-token=stored-token"]
    assert connection.state is ConnectionState.READY
