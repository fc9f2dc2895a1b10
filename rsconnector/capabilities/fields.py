from __future__ import annotations

from typing import Any, Protocol

from rsconnector.capabilities.base import Capability, ComposedClient, attach
from rsconnector.domain.error_codes import ErrorCode
from rsconnector.domain.models import FieldDefinition, FieldOption, Node, extract_ref, normalize_field
from rsconnector.errors import ResourceSpaceError, validate_id
from rsconnector.infra.http.response import ensure_array, to_number


class FieldsApi(Protocol):
    async def get_fields(self, resource_type: int | None = None) -> list[FieldDefinition]: ...
    async def get_field_options(self, field_id: int) -> list[FieldOption]: ...
    async def get_field_values(self, field_id: int) -> list[str]: ...
    async def get_nodes(self, field_id: int, parent: int | None = None) -> list[Node]: ...
    async def set_node(self, field_id: int, name: str, parent: int | None = None) -> int: ...
    async def update_field(self, resource_id: int, field_id: int, value: str) -> bool: ...
    async def resolve_field_display_name(self, field_id: int, value: str | int | None) -> str: ...


class FieldsCapability(Capability):
    __slots__ = ()
    capability_name = "fields"

    async def get_fields(self, resource_type: int | None = None) -> list[FieldDefinition]:
        data = await self.request("get_resource_type_fields", {"by_resource_types": resource_type})
        return [normalize_field(row) for row in ensure_array(data) if isinstance(row, dict)]

    async def get_field_options(self, field_id: int) -> list[FieldOption]:
        validate_id(field_id, "field ID")
        return ensure_array(await self.request("get_field_options", {"ref": field_id}))

    async def get_field_values(self, field_id: int) -> list[str]:
        # get_field_values нет в официальном индексе API.
        validate_id(field_id, "field ID")
        data = await self.request("get_field_values", {"field": field_id})
        return data if isinstance(data, list) else []

    async def get_nodes(self, field_id: int, parent: int | None = None) -> list[Node]:
        validate_id(field_id, "field ID")
        return ensure_array(await self.request("get_nodes", {"ref": field_id, "parent": parent}))

    async def set_node(self, field_id: int, name: str, parent: int | None = None) -> int:
        """Создаёт узел или возвращает существующий с тем же именем (returnexisting)."""
        validate_id(field_id, "field ID")
        params: dict[str, Any] = {
            "ref": "null",
            "resource_type_field": field_id,
            "name": name,
            "returnexisting": True,
            "parent": parent,
        }
        ref = extract_ref(await self.request("set_node", params))
        if ref is None:
            raise ResourceSpaceError(
                "set_node returned invalid ref", "set_node", code=ErrorCode.INVALID_REF.value
            )
        return ref

    async def update_field(self, resource_id: int, field_id: int, value: str) -> bool:
        validate_id(resource_id, "resource ID")
        validate_id(field_id, "field ID")
        result = await self.request("update_field", {"resource": resource_id, "field": field_id, "value": value})
        return result is not False

    async def resolve_field_display_name(self, field_id: int, value: str | int | None) -> str:
        """
        Назначение:
            Значение поля-справочника может быть ref узла; возвращает отображаемое имя.
            Нечисловое значение возвращается как есть.
        """
        if value is None:
            return ""
        text = str(value).strip()
        if not text:
            return ""

        num = to_number(text)
        if num is None or str(num) != text:
            return text

        for option in await self.get_field_options(field_id):
            if to_number(option.get("ref")) == num:
                name = str(option.get("name") or "").strip()
                return name or text
        return text


def with_fields(client: Any) -> ComposedClient:
    return attach(client, FieldsCapability)


__all__ = ["FieldsApi", "FieldsCapability", "with_fields"]
