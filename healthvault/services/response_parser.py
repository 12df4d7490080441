"""Parse XML platform responses into status and info sections."""

from __future__ import annotations

import logging
from typing import Optional
from xml.etree import ElementTree

from healthvault.core.exceptions import (
    HealthServiceError,
    HealthServiceInvalidResponseError,
    HealthServiceStatusCode,
)
from healthvault.schemas.request import HealthServiceResponseData
from healthvault.utils.xml import find_child, find_text

logger = logging.getLogger(__name__)


class HealthServiceResponseParser:
    """Turn a response body into ``HealthServiceResponseData`` or raise."""

    def parse(
        self, body: bytes | str, *, response_id: Optional[str] = None
    ) -> HealthServiceResponseData:
        try:
            root = ElementTree.fromstring(body)
        except ElementTree.ParseError as exc:
            raise HealthServiceInvalidResponseError(
                "The platform returned a response that is not valid XML."
            ) from exc

        status = find_child(root, "status")
        code_text = find_text(status, "code") if status is not None else None
        if code_text is None:
            raise HealthServiceInvalidResponseError("The platform response has no status code.")
        try:
            code = int(code_text)
        except ValueError as exc:
            raise HealthServiceInvalidResponseError(
                f"Unrecognized status code {code_text!r}."
            ) from exc

        if code != HealthServiceStatusCode.OK:
            error = find_child(status, "error")
            message = find_text(error, "message") if error is not None else None
            logger.debug("Platform status %s: %s", code, message)
            raise HealthServiceError(code, message)

        return HealthServiceResponseData(
            status_code=code,
            info=find_child(root, "info"),
            response_id=response_id,
        )


__all__ = ["HealthServiceResponseParser"]
