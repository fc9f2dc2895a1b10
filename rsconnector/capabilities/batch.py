from __future__ import annotations

from typing import Any, Protocol, Sequence

from rsconnector.capabilities.base import Capability, ComposedClient, attach
from rsconnector.config import DEFAULT_MAX_BATCH_SIZE
from rsconnector.errors import BatchSizeLimitError, validate_id


class BatchApi(Protocol):
    async def batch_field_update(self, resource_ids: Sequence[int], field_id: int, value: str) -> bool: ...
    async def batch_delete(self, resource_ids: Sequence[int]) -> bool: ...
    async def batch_collection_add(self, collection_id: int, resource_ids: Sequence[int]) -> bool: ...
    async def batch_collection_remove(self, collection_id: int, resource_ids: Sequence[int]) -> bool: ...
    async def batch_nodes_add(self, resource_ids: Sequence[int], node_ids: Sequence[int]) -> bool: ...
    async def batch_nodes_remove(self, resource_ids: Sequence[int], node_ids: Sequence[int]) -> bool: ...
    async def batch_archive_status(self, resource_ids: Sequence[int], archive_status: int) -> bool: ...


def enforce_batch_limit(ids: Sequence[Any], max_size: int | None = None) -> None:
    """
    Назначение:
        Предусловие для массовых операций: не больше max_size идентификаторов.
    Ошибки:
        BatchSizeLimitError: до любого сетевого вызова.
    """
    limit = max_size if max_size is not None else DEFAULT_MAX_BATCH_SIZE
    if len(ids) > limit:
        raise BatchSizeLimitError(len(ids), limit)


def _csv(ids: Sequence[int]) -> str:
    return ",".join(str(i) for i in ids)


class BatchCapability(Capability):
    __slots__ = ()
    capability_name = "batch"

    def _enforce(self, ids: Sequence[int]) -> None:
        enforce_batch_limit(ids, self.config.max_batch_size)

    async def batch_field_update(self, resource_ids: Sequence[int], field_id: int, value: str) -> bool:
        self._enforce(resource_ids)
        validate_id(field_id, "field ID")
        result = await self.request(
            "update_field", {"resource": _csv(resource_ids), "field": field_id, "value": value}
        )
        return result is not False

    async def batch_delete(self, resource_ids: Sequence[int]) -> bool:
        self._enforce(resource_ids)
        result = await self.request("delete_resource", {"resource": _csv(resource_ids)})
        return result is not False

    async def batch_collection_add(self, collection_id: int, resource_ids: Sequence[int]) -> bool:
        self._enforce(resource_ids)
        for resource_id in resource_ids:
            await self.request(
                "add_resource_to_collection", {"resource": resource_id, "collection": collection_id}
            )
        return True

    async def batch_collection_remove(self, collection_id: int, resource_ids: Sequence[int]) -> bool:
        self._enforce(resource_ids)
        for resource_id in resource_ids:
            await self.request(
                "remove_resource_from_collection", {"resource": resource_id, "collection": collection_id}
            )
        return True

    async def batch_nodes_add(self, resource_ids: Sequence[int], node_ids: Sequence[int]) -> bool:
        self._enforce(resource_ids)
        # add_resource_nodes_multi: несколько ресурсов и узлов за один вызов.
        result = await self.request(
            "add_resource_nodes_multi", {"resourceid": _csv(resource_ids), "nodes": _csv(node_ids)}
        )
        return result is not False

    async def batch_nodes_remove(self, resource_ids: Sequence[int], node_ids: Sequence[int]) -> bool:
        self._enforce(resource_ids)
        # remove_resource_nodes не документирован: по вызову на ресурс.
        nodestring = _csv(node_ids)
        for resource_id in resource_ids:
            await self.request("remove_resource_nodes", {"resource": resource_id, "nodestring": nodestring})
        return True

    async def batch_archive_status(self, resource_ids: Sequence[int], archive_status: int) -> bool:
        self._enforce(resource_ids)
        result = await self.request(
            "update_resource_archive_status", {"resource": _csv(resource_ids), "archive": archive_status}
        )
        return result is not False


def with_batch(client: Any) -> ComposedClient:
    return attach(client, BatchCapability)


__all__ = ["BatchApi", "BatchCapability", "enforce_batch_limit", "with_batch"]
