from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from typing import Any

from rsconnector.common.sanitize import truncateText
from rsconnector.errors import ApiPermissionError, ResourceSpaceError

# Фразы, которыми сервер сигнализирует об ошибке в теле 200-ответа.
ERROR_PATTERNS: tuple[str, ...] = ("error:", "permission denied", "access denied")
PERMISSION_PATTERNS: tuple[str, ...] = ("permission denied", "access denied")

DETAIL_LIMIT = 200

KIND_OK = "ok"
KIND_PERMISSION = "permission"
KIND_API_ERROR = "api_error"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


@dataclass(frozen=True)
class NormalizedResponse:
    """
    Назначение/ответственность:
        Результат классификации сырого ответа: Ok(value) | Err(kind, detail).
    Инварианты:
        - kind == "ok" -> value содержит нормализованное значение, detail is None.
        - иначе value is None, detail: усечённый текст ошибки.
    """

    kind: str
    value: Any = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.kind == KIND_OK


def classify_response(raw: Any) -> NormalizedResponse:
    """
    Назначение:
        Разбирает ответ сервера в одно предсказуемое значение без исключений.

    Алгоритм:
        - None -> Ok(None).
        - Строка: сначала поиск фраз ошибок (отказ в доступе важнее общей ошибки),
          затем попытка json.loads; если не JSON: строка как есть (URL, путь).
        - dict с ключом error -> Err(api_error).
        - Остальное возвращается без изменений.
    """
    if raw is None:
        return NormalizedResponse(KIND_OK)

    if isinstance(raw, str):
        lower = raw.lower()
        if any(p in lower for p in PERMISSION_PATTERNS):
            return NormalizedResponse(KIND_PERMISSION, detail=truncateText(raw, DETAIL_LIMIT))
        if lower.startswith("error") or any(p in lower for p in ERROR_PATTERNS):
            return NormalizedResponse(KIND_API_ERROR, detail=truncateText(raw, DETAIL_LIMIT))
        try:
            return NormalizedResponse(KIND_OK, value=json.loads(raw))
        except ValueError:
            return NormalizedResponse(KIND_OK, value=raw)

    if isinstance(raw, dict) and "error" in raw:
        message = raw.get("error") or "Unknown error"
        return NormalizedResponse(KIND_API_ERROR, detail=str(message))

    return NormalizedResponse(KIND_OK, value=raw)


def normalize_response(raw: Any, function_name: str) -> Any:
    """
    Контракт (вход/выход):
        Вход: распарсенное тело ответа (или сырой текст) и имя функции API.
        Выход: нормализованное значение; ошибки сервера -> ApiPermissionError/ResourceSpaceError.
    """
    result = classify_response(raw)
    if result.ok:
        return result.value
    if result.kind == KIND_PERMISSION:
        raise ApiPermissionError(function_name, result.detail)
    raise ResourceSpaceError(
        f"ResourceSpace API error: {result.detail}",
        function_name,
        rs_error=result.detail,
    )


def to_number(value: Any) -> int | float | None:
    """
    Мягкое приведение к числу: сервер часто отдаёт идентификаторы строками.
    Никогда не бросает исключений; нечисловое -> None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else None
    return None


def ensure_array(data: Any) -> list[Any]:
    """
    Гарантирует список: list как есть, None -> [], обёртки {resources: [...]} / {data: [...]}
    разворачиваются, всё остальное -> []. Исключений не бросает.
    """
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("resources", "data"):
            if isinstance(data.get(key), list):
                return data[key]
    return []


__all__ = [
    "NormalizedResponse",
    "classify_response",
    "normalize_response",
    "to_number",
    "ensure_array",
]
