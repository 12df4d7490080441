"""
Client for platform-level methods: provisioning and service discovery.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, Iterable
from uuid import UUID
from xml.etree import ElementTree

from healthvault.core.exceptions import HealthServiceInvalidResponseError
from healthvault.models.credentials import ApplicationCreationInfo
from healthvault.models.platform import ServiceInfo, ServiceInstance
from healthvault.services.request_message import HealthVaultMethods
from healthvault.utils.xml import find_child, find_text, iter_children, parse_guid

if TYPE_CHECKING:
    from healthvault.services.connection import HealthVaultConnectionBase


class PlatformClient:
    """Call platform methods that are not tied to a person or record."""

    def __init__(self, connection: "HealthVaultConnectionBase") -> None:
        self._connection = connection

    async def new_application_creation_info(self) -> ApplicationCreationInfo:
        response = await self._connection.execute(
            HealthVaultMethods.NEW_APPLICATION_CREATION_INFO, 1
        )
        info = response.info
        app_id = find_text(info, "app-id") if info is not None else None
        shared_secret = find_text(info, "shared-secret") if info is not None else None
        app_token = find_text(info, "app-token") if info is not None else None
        if not app_id or not shared_secret or not app_token:
            raise HealthServiceInvalidResponseError(
                "NewApplicationCreationInfo response is incomplete."
            )
        return ApplicationCreationInfo(
            app_instance_id=parse_guid(app_id, "app-id"),
            shared_secret=shared_secret,
            app_creation_token=app_token,
        )

    async def get_service_definition(
        self, sections: Iterable[str] = ("topology",)
    ) -> ServiceInfo:
        parameters = "<sections>" + "".join(
            f"<section>{section}</section>" for section in sections
        ) + "</sections>"
        response = await self._connection.execute(
            HealthVaultMethods.GET_SERVICE_DEFINITION, 2, parameters
        )
        return _parse_service_info(response.info)

    async def remove_application_record_authorization(self, record_id: UUID) -> None:
        await self._connection.execute(
            HealthVaultMethods.REMOVE_APPLICATION_RECORD_AUTHORIZATION,
            1,
            record_id=record_id,
        )


def _parse_service_info(info: ElementTree.Element | None) -> ServiceInfo:
    if info is None:
        return ServiceInfo()
    instances_element = find_child(info, "instances")
    if instances_element is None:
        return ServiceInfo()

    instances: Dict[str, ServiceInstance] = {}
    for element in iter_children(instances_element, "instance"):
        instance = ServiceInstance(
            id=find_text(element, "id", ""),
            name=find_text(element, "name", ""),
            description=find_text(element, "description", ""),
            health_service_url=find_text(element, "url", ""),
            shell_url=find_text(element, "shell-url", ""),
        )
        instances[instance.id] = instance
    return ServiceInfo(
        current_instance_id=instances_element.get("current-instance-id"),
        service_instances=instances,
    )


__all__ = ["PlatformClient"]
