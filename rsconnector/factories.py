from __future__ import annotations

from typing import Any, Protocol

import httpx

from rsconnector.capabilities import (
    BatchApi,
    CollectionsApi,
    FieldsApi,
    ResourcesApi,
    SearchApi,
    SystemApi,
    UploadApi,
    UsersApi,
    with_batch,
    with_collections,
    with_fields,
    with_resources,
    with_search,
    with_system,
    with_upload,
    with_users,
)
from rsconnector.capabilities.base import CapabilityFn, compose
from rsconnector.config import ClientConfig
from rsconnector.infra.http.rs_client import RSClientCore

BASIC_CAPABILITIES: tuple[CapabilityFn, ...] = (
    with_search,
    with_resources,
    with_collections,
    with_fields,
    with_system,
)
ADMIN_CAPABILITIES: tuple[CapabilityFn, ...] = BASIC_CAPABILITIES + (with_users, with_batch, with_upload)


class BasicClient(SearchApi, ResourcesApi, CollectionsApi, FieldsApi, SystemApi, Protocol):
    """Клиент пресета BASIC_CAPABILITIES."""


class AdminClient(BasicClient, UsersApi, BatchApi, UploadApi, Protocol):
    """Клиент пресета ADMIN_CAPABILITIES."""


def create_client(
    config: ClientConfig,
    *capabilities: CapabilityFn,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Any:
    """
    Клиент только с выбранными capability, например create_client(config, with_search, with_system).
    Без capability возвращается голое ядро RSClientCore.
    """
    return compose(RSClientCore(config, transport=transport), *capabilities)


def create_basic_client(config: ClientConfig, transport: httpx.AsyncBaseTransport | None = None) -> BasicClient:
    """
    Поиск, ресурсы, коллекции, поля, системная информация (чтение и запись).
    Без управления пользователями, массовых операций и загрузки файлов.
    """
    return create_client(config, *BASIC_CAPABILITIES, transport=transport)


def create_admin_client(config: ClientConfig, transport: httpx.AsyncBaseTransport | None = None) -> AdminClient:
    """Полный доступ: basic + users, batch, upload."""
    return create_client(config, *ADMIN_CAPABILITIES, transport=transport)


__all__ = [
    "BASIC_CAPABILITIES",
    "ADMIN_CAPABILITIES",
    "BasicClient",
    "AdminClient",
    "create_client",
    "create_basic_client",
    "create_admin_client",
]
