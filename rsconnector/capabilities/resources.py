from __future__ import annotations

from typing import Any, Protocol

from rsconnector.capabilities.base import Capability, ComposedClient, attach
from rsconnector.domain.error_codes import ErrorCode
from rsconnector.domain.models import (
    AlternativeFile,
    Resource,
    ResourceFieldData,
    ResourcePathOptions,
    extract_ref,
)
from rsconnector.errors import ResourceSpaceError, validate_id
from rsconnector.infra.http.response import ensure_array
from rsconnector.infra.http.url_rewriter import site_root

# Признаки ошибки в строке, которую get_resource_path вернул вместо пути.
_PATH_ERROR_MARKERS = ("error", "not found", "invalid")


class ResourcesApi(Protocol):
    async def get_resource(self, ref: int) -> Resource | None: ...
    async def get_resource_field_data(self, ref: int, field_id: int | None = None) -> list[ResourceFieldData]: ...
    async def get_resource_path(self, ref: int, options: ResourcePathOptions | None = None) -> str: ...
    async def get_resource_log(self, ref: int) -> list[Any]: ...
    async def get_related_resources(self, ref: int) -> list[Resource]: ...
    async def get_alternative_files(self, ref: int) -> list[AlternativeFile]: ...
    async def create_resource(self, resource_type: int, archive: int | None = None) -> int: ...
    async def copy_resource(self, ref: int) -> int: ...
    async def delete_resource(self, ref: int) -> bool: ...


class ResourcesCapability(Capability):
    __slots__ = ()
    capability_name = "resources"

    async def get_resource(self, ref: int) -> Resource | None:
        validate_id(ref, "resource ref")
        data = await self.request("get_resource_data", {"resource": ref})
        return data or None

    async def get_resource_field_data(self, ref: int, field_id: int | None = None) -> list[ResourceFieldData]:
        validate_id(ref, "resource ref")
        params: dict[str, Any] = {"resource": ref}
        if field_id is not None:
            validate_id(field_id, "field ID")
            params["field"] = field_id

        data = await self.request("get_resource_field_data", params)
        if not data:
            return []
        return data if isinstance(data, list) else [data]

    async def get_resource_path(self, ref: int, options: ResourcePathOptions | None = None) -> str:
        """
        Назначение:
            URL файла/превью ресурса.
        Контракт:
            - Абсолютный URL переписывается на внутренний адрес (если настроен).
            - Относительный путь дополняется корнем сайта.
            - Пустой ответ или строка-ошибка -> "".
        """
        validate_id(ref, "resource ref")
        options = options or ResourcePathOptions()
        params: dict[str, Any] = {
            "ref": ref,
            "size": options.size,
            "generate": 1 if options.create_if_missing else 0,
            "extension": options.extension,
            "page": options.page,
        }
        if options.watermarked is not None:
            params["watermarked"] = 1 if options.watermarked else 0

        path = await self.request("get_resource_path", params)
        if not isinstance(path, str) or not path.strip():
            return ""

        lower = path.lower()
        if any(marker in lower for marker in _PATH_ERROR_MARKERS):
            return ""

        if path.startswith(("http://", "https://")):
            return self.rewrite_url(path)

        normalized = path if path.startswith("/") else f"/{path}"
        return f"{site_root(self.config.base_url)}{normalized}"

    async def get_resource_log(self, ref: int) -> list[Any]:
        validate_id(ref, "resource ref")
        return ensure_array(await self.request("get_resource_log", {"resource": ref}))

    async def get_related_resources(self, ref: int) -> list[Resource]:
        validate_id(ref, "resource ref")
        return ensure_array(await self.request("get_related_resources", {"ref": ref}))

    async def get_alternative_files(self, ref: int) -> list[AlternativeFile]:
        validate_id(ref, "resource ref")
        return ensure_array(await self.request("get_alternative_files", {"resource": ref}))

    async def create_resource(self, resource_type: int, archive: int | None = None) -> int:
        validate_id(resource_type, "resource type")
        result = await self.request("create_resource", {"resource_type": resource_type, "archive": archive})
        ref = extract_ref(result)
        if ref is None:
            raise ResourceSpaceError(
                "create_resource returned invalid ref", "create_resource", code=ErrorCode.INVALID_REF.value
            )
        return ref

    async def copy_resource(self, ref: int) -> int:
        validate_id(ref, "resource ref")
        new_ref = extract_ref(await self.request("copy_resource", {"from": ref}))
        if new_ref is None:
            raise ResourceSpaceError(
                "copy_resource returned invalid ref", "copy_resource", code=ErrorCode.INVALID_REF.value
            )
        return new_ref

    async def delete_resource(self, ref: int) -> bool:
        validate_id(ref, "resource ref")
        result = await self.request("delete_resource", {"resource": ref})
        return result is not False


def with_resources(client: Any) -> ComposedClient:
    return attach(client, ResourcesCapability)


__all__ = ["ResourcesApi", "ResourcesCapability", "with_resources"]
