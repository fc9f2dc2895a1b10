from __future__ import annotations

from typing import Any, Protocol

from rsconnector.capabilities.base import Capability, ComposedClient, attach
from rsconnector.domain.models import ResourceType, SystemStatus
from rsconnector.infra.http.response import ensure_array


class SystemApi(Protocol):
    async def get_resource_types(self) -> list[ResourceType]: ...
    async def get_api_version(self) -> str: ...
    async def get_system_status(self) -> SystemStatus: ...


class SystemCapability(Capability):
    __slots__ = ()
    capability_name = "system"

    async def get_resource_types(self) -> list[ResourceType]:
        return ensure_array(await self.request("get_resource_types", {}))

    async def get_api_version(self) -> str:
        result = await self.request("get_api_version", {})
        if isinstance(result, (int, float)) and not isinstance(result, bool):
            return str(result)
        return result if isinstance(result, str) else ""

    async def get_system_status(self) -> SystemStatus:
        data = await self.request("get_system_status", {})
        return data if isinstance(data, dict) else {}


def with_system(client: Any) -> ComposedClient:
    return attach(client, SystemCapability)


__all__ = ["SystemApi", "SystemCapability", "with_system"]
