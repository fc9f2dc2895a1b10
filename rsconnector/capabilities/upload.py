from __future__ import annotations

from typing import Any, Protocol

from rsconnector.capabilities.base import Capability, ComposedClient, attach
from rsconnector.domain.error_codes import ErrorCode
from rsconnector.domain.models import extract_ref
from rsconnector.errors import ResourceSpaceError, validate_id


class UploadApi(Protocol):
    async def upload_file(
        self,
        resource_id: int,
        file_path: str,
        *,
        no_exif: bool = False,
        auto_rotate: bool = False,
        revert: bool = False,
    ) -> bool: ...

    async def add_alternative_file(self, resource_id: int, name: str, description: str, file_path: str) -> int: ...


class UploadCapability(Capability):
    """file_path: путь на диске сервера или URL, который сервер сможет скачать сам."""

    __slots__ = ()
    capability_name = "upload"

    async def upload_file(
        self,
        resource_id: int,
        file_path: str,
        *,
        no_exif: bool = False,
        auto_rotate: bool = False,
        revert: bool = False,
    ) -> bool:
        validate_id(resource_id, "resource ID")
        params: dict[str, Any] = {"ref": resource_id, "file_path": file_path}
        if no_exif:
            params["no_exif"] = 1
        if auto_rotate:
            params["autorotate"] = 1
        if revert:
            params["revert"] = 1

        result = await self.request("upload_file", params)
        return result is not False

    async def add_alternative_file(self, resource_id: int, name: str, description: str, file_path: str) -> int:
        validate_id(resource_id, "resource ID")
        result = await self.request(
            "add_alternative_file",
            {"resource": resource_id, "name": name, "description": description, "file": file_path},
        )
        ref = extract_ref(result)
        if ref is None:
            raise ResourceSpaceError(
                "add_alternative_file returned invalid ref", "add_alternative_file", code=ErrorCode.INVALID_REF.value
            )
        return ref


def with_upload(client: Any) -> ComposedClient:
    return attach(client, UploadCapability)


__all__ = ["UploadApi", "UploadCapability", "with_upload"]
