try:
    from . import _bootstrap  # noqa: F401
    from ._fakes import APP_INSTANCE_ID, APP_SHARED_SECRET
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401
    from _fakes import APP_INSTANCE_ID, APP_SHARED_SECRET  # type: ignore

import base64
import hashlib
import hmac
from datetime import datetime, timedelta, timezone
from xml.etree import ElementTree

import pytest

from healthvault.core.exceptions import HealthServiceInvalidResponseError, InvalidStateError
from healthvault.schemas.request import HealthServiceResponseData
from healthvault.services.cryptographer import Cryptographer
from healthvault.services.request_message import HealthVaultMethods
from healthvault.services.session_credentials import SessionCredentialClient

SIGNED_AT = datetime(2017, 6, 1, 8, 0, 0, tzinfo=timezone.utc)


class StubConnection:
    application_id = APP_INSTANCE_ID

    def __init__(self, info: str) -> None:
        self.info = info
        self.calls: list = []

    async def execute(self, method, method_version, parameters=None, **kwargs):
        self.calls.append((method, method_version, parameters))
        return HealthServiceResponseData(
            status_code=0, info=ElementTree.fromstring(f"<info>{self.info}</info>")
        )


def _client(connection: StubConnection) -> SessionCredentialClient:
    return SessionCredentialClient(
        cryptographer=Cryptographer(),
        default_lifetime=timedelta(hours=4),
        connection=connection,  # type: ignore[arg-type]
        app_shared_secret=APP_SHARED_SECRET,
    )


def test_content_xml_layout() -> None:
    client = _client(StubConnection(""))

    assert client.build_content_xml(SIGNED_AT) == (
        f"<content><app-id>{APP_INSTANCE_ID}</app-id><hmac>HMACSHA256</hmac>"
        "<signing-time>2017-06-01 08:00:00Z</signing-time></content>"
    )


def test_credential_is_signed_with_application_secret() -> None:
    client = _client(StubConnection(""))

    credential = ElementTree.fromstring(client.build_credential_xml(SIGNED_AT))

    assert credential.tag == "appserver2"
    hmac_sig, content = list(credential)
    assert hmac_sig.tag == "hmacSig"
    assert hmac_sig.get("algName") == "HMACSHA256"
    content_bytes = client.build_content_xml(SIGNED_AT).encode("utf-8")
    expected = hmac.new(base64.b64decode(APP_SHARED_SECRET), content_bytes, hashlib.sha256).digest()
    assert hmac_sig.text == base64.b64encode(expected).decode("ascii")
    assert content.findtext("app-id") == str(APP_INSTANCE_ID)


def test_request_info_wraps_credential() -> None:
    client = _client(StubConnection(""))

    info = ElementTree.fromstring(client.build_request_info(SIGNED_AT))

    assert info.tag == "auth-info"
    assert info.findtext("app-id") == str(APP_INSTANCE_ID)
    assert info.find("credential/appserver2/content/signing-time") is not None


def test_missing_shared_secret_is_rejected() -> None:
    client = _client(StubConnection(""))
    client.app_shared_secret = None

    with pytest.raises(InvalidStateError):
        client.build_credential_xml(SIGNED_AT)


@pytest.mark.asyncio
async def test_get_session_credential_parses_response() -> None:
    connection = StubConnection(
        "<token>tok</token><shared-secret>c2VjcmV0</shared-secret>"
        "<expires>2030-01-01T00:00:00Z</expires>"
    )

    credential = await _client(connection).get_session_credential()

    assert credential.token == "tok"
    assert credential.shared_secret == "c2VjcmV0"
    assert credential.expiration_utc == datetime(2030, 1, 1, tzinfo=timezone.utc)
    [(method, version, parameters)] = connection.calls
    assert method is HealthVaultMethods.CREATE_AUTHENTICATED_SESSION_TOKEN
    assert version == 2
    assert parameters.startswith("<auth-info>")


@pytest.mark.asyncio
async def test_missing_expiry_uses_default_lifetime() -> None:
    connection = StubConnection("<token>tok</token><shared-secret>c2VjcmV0</shared-secret>")
    before = datetime.now(timezone.utc)

    credential = await _client(connection).get_session_credential()

    assert before + timedelta(hours=4) <= credential.expiration_utc
    assert credential.expiration_utc <= datetime.now(timezone.utc) + timedelta(hours=4)
    assert not credential.is_expired()


@pytest.mark.asyncio
async def test_incomplete_response_is_invalid() -> None:
    connection = StubConnection("<shared-secret>c2VjcmV0</shared-secret>")

    with pytest.raises(HealthServiceInvalidResponseError):
        await _client(connection).get_session_credential()


def test_expiry_boundary() -> None:
    client = _client(StubConnection(""))
    credential = client._parse_credential(
        ElementTree.fromstring(
            "<info><token>t</token><shared-secret>s</shared-secret>"
            "<expires>2017-06-01T08:00:00Z</expires></info>"
        ),
        SIGNED_AT,
    )

    assert credential.is_expired(SIGNED_AT)
    assert not credential.is_expired(SIGNED_AT - timedelta(seconds=1))
