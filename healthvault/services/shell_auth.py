"""
Shell consent flows for provisioning and record authorization.

These helpers build the Shell redirect URLs and read the instance id the Shell
hands back once the user completes the flow.
"""

from __future__ import annotations

import logging
from urllib.parse import urlencode
from uuid import UUID

from healthvault.clients.browser_auth import BrowserAuthBroker
from healthvault.core.exceptions import ShellAuthError

logger = logging.getLogger(__name__)

SUCCESS_MARKER = "application/complete"
INSTANCE_ID_MARKER = "instanceid="


def _xml_bool(value: bool) -> str:
    return "true" if value else "false"


def is_complete_url(url: str) -> bool:
    return SUCCESS_MARKER in url.lower()


def parse_instance_id(url: str) -> str:
    """Return the value following ``instanceid=`` up to the next ``&``."""
    start = url.find(INSTANCE_ID_MARKER)
    if start < 0:
        raise ShellAuthError("The Shell did not return an instance id.")
    start += len(INSTANCE_ID_MARKER)
    end = url.find("&", start)
    return url[start:] if end < 0 else url[start:end]


class ShellAuthService:
    """Build Shell redirect URLs and run them through a browser broker."""

    def __init__(
        self,
        broker: BrowserAuthBroker,
        *,
        is_multi_record_app: bool = False,
        multi_instance_aware: bool = False,
    ) -> None:
        self._broker = broker
        self._is_multi_record_app = is_multi_record_app
        self._multi_instance_aware = multi_instance_aware

    def build_provisioning_url(
        self,
        shell_url: str,
        master_app_id: UUID,
        app_creation_token: str,
        app_instance_id: str,
    ) -> str:
        params = {
            "appid": str(master_app_id),
            "appCreationToken": app_creation_token,
            "instanceName": app_instance_id,
            "ismra": _xml_bool(self._is_multi_record_app),
        }
        if self._multi_instance_aware:
            params["aib"] = "true"
        return self._redirect_url(shell_url, params)

    def build_authorize_records_url(self, shell_url: str, master_app_id: UUID) -> str:
        params = {
            "appid": str(master_app_id),
            "ismra": _xml_bool(self._is_multi_record_app),
        }
        return self._redirect_url(shell_url, params)

    async def provision_application(
        self,
        shell_url: str,
        master_app_id: UUID,
        app_creation_token: str,
        app_instance_id: str,
    ) -> str:
        """Run the provisioning consent flow and return the environment instance id."""
        url = self.build_provisioning_url(
            shell_url, master_app_id, app_creation_token, app_instance_id
        )
        logger.info("Starting Shell provisioning for application instance %s", app_instance_id)
        result_url = await self._broker.authenticate(url, is_complete_url)
        return parse_instance_id(result_url)

    async def authorize_additional_records(self, shell_url: str, master_app_id: UUID) -> None:
        url = self.build_authorize_records_url(shell_url, master_app_id)
        logger.info("Starting Shell record authorization")
        await self._broker.authenticate(url, is_complete_url)

    @staticmethod
    def _redirect_url(shell_url: str, params: dict) -> str:
        return f"{shell_url.rstrip('/')}/redirect.aspx?{urlencode(params)}"


__all__ = [
    "ShellAuthService",
    "is_complete_url",
    "parse_instance_id",
]
