"""
Models describing the platform's regional deployments.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class ServiceInstance(BaseModel):
    """One regional deployment of the platform."""

    id: str
    name: str
    description: str = ""
    health_service_url: str = Field(..., description="XML method endpoint (wildcat.ashx).")
    shell_url: str = Field(..., description="Root of the Shell web front-end.")


class ServiceInfo(BaseModel):
    """Topology section of the platform's service definition."""

    current_instance_id: Optional[str] = None
    service_instances: Dict[str, ServiceInstance] = Field(default_factory=dict)

    def get_instance(self, instance_id: str) -> Optional[ServiceInstance]:
        """Look up an instance by id, ignoring case."""
        wanted = instance_id.lower()
        for key, instance in self.service_instances.items():
            if key.lower() == wanted:
                return instance
        return None


__all__ = ["ServiceInfo", "ServiceInstance"]
