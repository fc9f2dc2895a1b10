from __future__ import annotations

import functools
import logging
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Mapping

from rsconnector.config import ClientConfig
from rsconnector.infra.http.rs_client import RSClientCore


class _SealedMeta(type):
    """Метакласс, запрещающий подмену атрибутов у уже созданных классов."""

    def __setattr__(cls, name: str, value: Any) -> None:
        if getattr(cls, "_sealed", False):
            raise AttributeError(f"{cls.__name__} is sealed; cannot set {name!r}")
        super().__setattr__(name, value)

    def __delattr__(cls, name: str) -> None:
        if getattr(cls, "_sealed", False):
            raise AttributeError(f"{cls.__name__} is sealed; cannot delete {name!r}")
        super().__delattr__(name)


class Capability(metaclass=_SealedMeta):
    """
    Назначение/ответственность:
        Базовый миксин для набора методов API (search, users, batch, ...).
    Контракт:
        - Методы работают через self.request / self.config / self.log ядра.
        - Своего состояния не хранят (__slots__ пустой).
    """

    __slots__ = ()
    _sealed = True
    capability_name: ClassVar[str] = ""

    if TYPE_CHECKING:
        # Предоставляются ComposedClient.
        config: ClientConfig
        log: logging.Logger

        async def request(self, function_name: str, params: Mapping[str, Any] | None = None) -> Any: ...

        def rewrite_url(self, url: str) -> str: ...


class ComposedClient(metaclass=_SealedMeta):
    """
    Назначение/ответственность:
        Неизменяемая обёртка над RSClientCore с подключёнными capability-миксинами.
    Инварианты/гарантии:
        - Экземпляр нельзя изменить: присвоение/удаление атрибутов -> AttributeError.
        - Доступны только методы подключённых capability.
    """

    __slots__ = ("_core",)
    _sealed = True
    _capabilities: ClassVar[tuple[type[Capability], ...]] = ()

    def __init__(self, core: RSClientCore):
        object.__setattr__(self, "_core", core)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable; cannot set {name!r}")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable; cannot delete {name!r}")

    def __repr__(self) -> str:
        return f"<{type(self).__name__} capabilities={sorted(self.capabilities)}>"

    @property
    def core(self) -> RSClientCore:
        return self._core

    @property
    def config(self) -> ClientConfig:
        return self._core.config

    @property
    def log(self) -> logging.Logger:
        return self._core.log

    @property
    def capabilities(self) -> frozenset[str]:
        return frozenset(c.capability_name for c in self._capabilities)

    async def request(self, function_name: str, params: Mapping[str, Any] | None = None) -> Any:
        return await self._core.request(function_name, params)

    def rewrite_url(self, url: str) -> str:
        return self._core.rewrite_url(url)


def _public_methods(capability: type[Capability]) -> set[str]:
    return {
        name
        for name, value in vars(capability).items()
        if not name.startswith("_") and callable(value)
    }


@functools.lru_cache(maxsize=None)
def _composed_class(capabilities: tuple[type[Capability], ...]) -> type[ComposedClient]:
    name = "RSClient[" + ",".join(c.capability_name for c in capabilities) + "]"
    return _SealedMeta(
        name,
        (*capabilities, ComposedClient),
        {"__slots__": (), "_capabilities": capabilities, "__module__": __name__},
    )


def attach(client: RSClientCore | ComposedClient, capability: type[Capability]) -> ComposedClient:
    """
    Назначение:
        Подключает capability к клиенту и возвращает НОВЫЙ неизменяемый клиент.
    Контракт:
        - Исходный клиент не меняется; ядро (RSClientCore) разделяется.
        - Повторное подключение той же capability ничего не меняет.
        - Две разные capability с одинаковым именем метода -> TypeError.
    """
    if isinstance(client, ComposedClient):
        core = client.core
        existing = type(client)._capabilities
    elif isinstance(client, RSClientCore):
        core = client
        existing = ()
    else:
        raise TypeError(f"Cannot attach capability to {type(client).__name__}")

    if not (isinstance(capability, type) and issubclass(capability, Capability)):
        raise TypeError(f"{capability!r} is not a Capability")

    if capability in existing:
        return _composed_class(existing)(core)

    taken = set().union(*(_public_methods(c) for c in existing)) if existing else set()
    clash = taken & _public_methods(capability)
    if clash:
        raise TypeError(f"Capability {capability.capability_name} redefines methods: {sorted(clash)}")

    combined = tuple(sorted((*existing, capability), key=lambda c: c.capability_name))
    return _composed_class(combined)(core)


CapabilityFn = Callable[[Any], Any]


def compose(base: RSClientCore | ComposedClient, *capabilities: CapabilityFn) -> Any:
    """compose(base, c1, c2, ...) == cN(...c1(base))."""
    client: Any = base
    for capability in capabilities:
        client = capability(client)
    return client


__all__ = ["Capability", "ComposedClient", "attach", "compose", "CapabilityFn"]
