try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from healthvault.core.exceptions import HealthServiceError, HealthServiceInvalidResponseError
from healthvault.services.response_parser import HealthServiceResponseParser


def test_success_exposes_info_section() -> None:
    body = (
        b'<response xmlns="urn:com.microsoft.wc.methods.response">'
        b"<status><code>0</code></status><info><token>abc</token></info></response>"
    )

    data = HealthServiceResponseParser().parse(body, response_id="r-1")

    assert data.status_code == 0
    assert data.response_id == "r-1"
    assert data.info is not None
    assert data.info[0].text == "abc"


def test_success_without_info() -> None:
    data = HealthServiceResponseParser().parse("<response><status><code>0</code></status></response>")

    assert data.info is None


def test_failure_status_raises_with_message() -> None:
    body = (
        "<response><status><code>65</code><error><message>Session expired</message>"
        "</error></status></response>"
    )

    with pytest.raises(HealthServiceError) as exc_info:
        HealthServiceResponseParser().parse(body)

    assert exc_info.value.status_code == 65
    assert exc_info.value.error == "Session expired"
    assert exc_info.value.is_session_expired


@pytest.mark.parametrize(
    "body",
    [
        "not xml",
        "<response><status></status></response>",
        "<response><status><code>zero</code></status></response>",
    ],
)
def test_malformed_responses_are_invalid(body: str) -> None:
    with pytest.raises(HealthServiceInvalidResponseError) as exc_info:
        HealthServiceResponseParser().parse(body)

    assert not exc_info.value.is_session_expired
