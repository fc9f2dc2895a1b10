from __future__ import annotations

from typing import Any, Protocol

from rsconnector.capabilities.base import Capability, ComposedClient, attach
from rsconnector.domain.models import Resource, SearchOptions, SearchResult
from rsconnector.errors import validate_id
from rsconnector.infra.http.response import ensure_array

DEFAULT_LIMIT = 24


class SearchApi(Protocol):
    async def search(self, query: str, options: SearchOptions | None = None) -> SearchResult: ...

    async def search_by_field(
        self, field_id: int, value: str, options: SearchOptions | None = None
    ) -> list[Resource]: ...


def _search_params(search: str, options: SearchOptions) -> dict[str, Any]:
    # do_search ждёт fetchrows, а не limit.
    params: dict[str, Any] = {
        "search": search,
        "order_by": options.order_by,
        "offset": options.offset,
        "fetchrows": options.limit if options.limit is not None else DEFAULT_LIMIT,
    }
    if options.data_joins:
        params["data_joins"] = ",".join(str(f) for f in options.data_joins)
    return params


class SearchCapability(Capability):
    """Полнотекстовый поиск ресурсов (do_search)."""

    __slots__ = ()
    capability_name = "search"

    async def search(self, query: str, options: SearchOptions | None = None) -> SearchResult:
        """
        Контракт:
            - query в синтаксисе сервера ("sunset", "!collection42", "!field8=value").
            - Возвращает страницу: count = число ресурсов на странице.
        """
        options = options or SearchOptions()
        params = _search_params(query, options)
        if options.sort:
            params["sort"] = options.sort
        if options.resource_types:
            params["restypes"] = options.resource_types
        if options.archive is not None:
            params["archive"] = options.archive

        resources = ensure_array(await self.request("do_search", params))
        return SearchResult(resources=resources, count=len(resources), offset=options.offset)

    async def search_by_field(
        self, field_id: int, value: str, options: SearchOptions | None = None
    ) -> list[Resource]:
        validate_id(field_id, "field ID")
        options = options or SearchOptions()
        params = _search_params(f"!field{field_id}={value}", options)
        return ensure_array(await self.request("do_search", params))


def with_search(client: Any) -> ComposedClient:
    return attach(client, SearchCapability)


__all__ = ["SearchApi", "SearchCapability", "with_search", "DEFAULT_LIMIT"]
