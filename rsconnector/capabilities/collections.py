from __future__ import annotations

from typing import Any, Protocol

from rsconnector.capabilities.base import Capability, ComposedClient, attach
from rsconnector.domain.error_codes import ErrorCode
from rsconnector.domain.models import Collection, Resource, SearchOptions, extract_ref, normalize_collection
from rsconnector.errors import ResourceSpaceError, validate_id
from rsconnector.infra.http.response import ensure_array

COLLECTION_FETCH_ALL = 9999


class CollectionsApi(Protocol):
    async def get_collections(self, user_id: int | None = None) -> list[Collection]: ...
    async def get_collection_resources(
        self, collection_id: int, options: SearchOptions | None = None
    ) -> list[Resource]: ...
    async def get_all_featured_collections(self) -> list[Collection]: ...
    async def get_featured_collections(self, parent: int) -> list[Collection]: ...
    async def search_collections(self, query: str) -> list[Collection]: ...
    async def create_collection(self, name: str) -> int: ...
    async def delete_collection(self, collection_id: int) -> bool: ...
    async def add_to_collection(self, collection_id: int, resource_id: int) -> bool: ...
    async def remove_from_collection(self, collection_id: int, resource_id: int) -> bool: ...
    async def share_collection(self, collection_id: int, emails: list[str], message: str | None = None) -> bool: ...


def _collections(data: Any) -> list[Collection]:
    return [normalize_collection(row) for row in ensure_array(data) if isinstance(row, dict)]


class CollectionsCapability(Capability):
    __slots__ = ()
    capability_name = "collections"

    async def get_collections(self, user_id: int | None = None) -> list[Collection]:
        return _collections(await self.request("get_user_collections", {"user": user_id}))

    async def get_collection_resources(
        self, collection_id: int, options: SearchOptions | None = None
    ) -> list[Resource]:
        """Ресурсы коллекции в порядке сортировки коллекции (do_search + !collection<ID>)."""
        validate_id(collection_id, "collection ID")
        options = options or SearchOptions()
        params: dict[str, Any] = {
            "search": f"!collection{collection_id}",
            "order_by": "collection",
            "sort": "ASC",
            "offset": 0,
            "fetchrows": options.limit if options.limit is not None else COLLECTION_FETCH_ALL,
        }
        if options.data_joins:
            params["data_joins"] = ",".join(str(f) for f in options.data_joins)
        return ensure_array(await self.request("do_search", params))

    async def get_all_featured_collections(self) -> list[Collection]:
        rows = _collections(await self.request("get_all_featured_collections", {}))
        return [c for c in rows if c["ref"]]

    async def get_featured_collections(self, parent: int) -> list[Collection]:
        rows = _collections(await self.request("get_featured_collections", {"parent": parent}))
        return [c for c in rows if c["ref"]]

    async def search_collections(self, query: str) -> list[Collection]:
        return _collections(await self.request("search_public_collections", {"search": query}))

    async def create_collection(self, name: str) -> int:
        ref = extract_ref(await self.request("create_collection", {"name": name}))
        if ref is None:
            raise ResourceSpaceError(
                "create_collection returned invalid ref", "create_collection", code=ErrorCode.INVALID_REF.value
            )
        return ref

    async def delete_collection(self, collection_id: int) -> bool:
        validate_id(collection_id, "collection ID")
        result = await self.request("delete_collection", {"collection": collection_id})
        return result is not False

    async def add_to_collection(self, collection_id: int, resource_id: int) -> bool:
        result = await self.request(
            "add_resource_to_collection", {"resource": resource_id, "collection": collection_id}
        )
        return result is not False

    async def remove_from_collection(self, collection_id: int, resource_id: int) -> bool:
        result = await self.request(
            "remove_resource_from_collection", {"resource": resource_id, "collection": collection_id}
        )
        return result is not False

    async def share_collection(self, collection_id: int, emails: list[str], message: str | None = None) -> bool:
        # collection_email нет в официальном индексе API.
        result = await self.request(
            "collection_email",
            {"ref": collection_id, "emails": ",".join(emails), "message": message or None},
        )
        return result is not False


def with_collections(client: Any) -> ComposedClient:
    return attach(client, CollectionsCapability)


__all__ = ["CollectionsApi", "CollectionsCapability", "with_collections"]
