from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from rsconnector.infra.http.response import to_number

# Записи домена: обычные dict: сервер отдаёт произвольный набор колонок.
Resource = dict[str, Any]
ResourceFieldData = dict[str, Any]
AlternativeFile = dict[str, Any]
Collection = dict[str, Any]
User = dict[str, Any]
FieldDefinition = dict[str, Any]
FieldOption = dict[str, Any]
Node = dict[str, Any]
ResourceType = dict[str, Any]
SystemStatus = dict[str, Any]


@dataclass(frozen=True)
class SearchOptions:
    order_by: str = "relevance"
    sort: str | None = None  # ASC | DESC
    offset: int = 0
    limit: int | None = None
    resource_types: str | None = None
    archive: int | None = None
    data_joins: tuple[int, ...] = ()


@dataclass
class SearchResult:
    """
    Назначение:
        Страница результатов поиска.
    Примечание:
        count: размер этой страницы, а не общее число результатов на сервере.
    """

    resources: list[Resource] = field(default_factory=list)
    count: int = 0
    offset: int = 0


@dataclass(frozen=True)
class ResourcePathOptions:
    size: str = "pre"
    extension: str | None = None
    page: int | None = None
    watermarked: bool | None = None
    create_if_missing: bool = True


@dataclass(frozen=True)
class CreateUserParams:
    """Параметры создания пользователя. Группы здесь нет и быть не должно."""

    username: str
    email: str | None = None
    fullname: str | None = None
    password: str | None = field(default=None, repr=False)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CreateUserParams":
        # Лишние ключи (usergroup, approved, ...) отбрасываются.
        return cls(
            username=data["username"],
            email=data.get("email"),
            fullname=data.get("fullname"),
            password=data.get("password"),
        )


@dataclass(frozen=True)
class SaveUserResult:
    success: bool
    error: str | None = None


def normalize_user(row: Mapping[str, Any]) -> User:
    return {
        **row,
        "ref": to_number(row.get("ref")) or 0,
        "usergroup": to_number(row.get("usergroup")) or 0,
    }


def normalize_collection(row: Mapping[str, Any]) -> Collection:
    """ref/parent/order_by часто приходят строками."""
    result: Collection = {**row, "ref": to_number(row.get("ref")) or 0}
    if "parent" in row:
        result["parent"] = to_number(row["parent"])
    if "order_by" in row:
        result["order_by"] = to_number(row["order_by"])
    return result


def normalize_field(row: Mapping[str, Any]) -> FieldDefinition:
    result: FieldDefinition = {
        **row,
        "ref": to_number(row.get("ref")) or 0,
        "name": row.get("name"),
        "title": row.get("title"),
        "type": to_number(row.get("type")) or 0,
    }
    if "resource_type" in row:
        result["resource_type"] = to_number(row["resource_type"])
    return result


def extract_ref(result: Any, *keys: str) -> int | None:
    """
    Достаёт числовой ref из ответа: голое число/строка или {ref: n} (и другие ключи по порядку).
    """
    if isinstance(result, dict):
        for key in keys or ("ref",):
            ref = to_number(result.get(key))
            if ref is not None:
                return int(ref)
        return None
    ref = to_number(result)
    return int(ref) if ref is not None else None
