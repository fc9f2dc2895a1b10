from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping
from urllib.parse import urlencode

from rsconnector.infra.http.signature import sign

PRINCIPAL_KEY = "principal"
AUTH_MODE_API_KEY = "apiKey"
AUTH_MODE_SESSION_KEY = "sessionKey"
SESSION_KEY_SUFFIX = "&authmode=sessionkey"


@dataclass(frozen=True)
class SignedQuery:
    """
    Назначение:
        Подписанная строка запроса на время одного вызова.
    Инварианты:
        - sign посчитан по query без суффикса authmode.
    """

    query: str
    sign: str


def _to_wire(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_query_string(principal: str, params: Mapping[str, Any]) -> str:
    """
    Назначение:
        Каноническая строка запроса: principal первым, затем params в порядке вставки.
    Контракт:
        - Ключи со значением None пропускаются целиком.
        - bool -> true/false, числа -> десятичная запись.
        - Эта же строка и отправляется, и подписывается.
    """
    pairs: list[tuple[str, str]] = [(PRINCIPAL_KEY, principal)]
    for key, value in params.items():
        if value is None:
            continue
        pairs.append((key, _to_wire(value)))
    return urlencode(pairs)


def build_signed_query(
    principal: str,
    secret: str,
    auth_mode: str,
    function_name: str,
    params: Mapping[str, Any] | None = None,
) -> SignedQuery:
    """
    Назначение:
        Собирает подписанный запрос к API.
    Алгоритм:
        - function ставится первым параметром после principal.
        - Подпись считается по канонической строке.
        - В режиме sessionKey к УЖЕ подписанной строке дописывается authmode=sessionkey.
    """
    all_params: dict[str, Any] = {"function": function_name}
    for key, value in (params or {}).items():
        if key == "function":
            continue
        all_params[key] = value

    canonical = build_query_string(principal, all_params)
    signature = sign(secret, canonical)

    query = canonical + SESSION_KEY_SUFFIX if auth_mode == AUTH_MODE_SESSION_KEY else canonical
    return SignedQuery(query=query, sign=signature)


__all__ = [
    "PRINCIPAL_KEY",
    "AUTH_MODE_API_KEY",
    "AUTH_MODE_SESSION_KEY",
    "SignedQuery",
    "build_query_string",
    "build_signed_query",
]
