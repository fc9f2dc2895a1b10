from __future__ import annotations

import hashlib
import hmac


def sign(secret: str, query: str) -> str:
    """
    Назначение:
        Подпись запроса ResourceSpace: sha256(secret + query) в hex (нижний регистр).
    Контракт:
        - Одинаковый алгоритм для API-ключа и session key.
        - query: каноническая строка БЕЗ authmode (сервер вырезает его до проверки).
    """
    return hashlib.sha256((secret + query).encode("utf-8")).hexdigest()


def constant_time_equals(left: str, right: str) -> bool:
    """Сравнение подписей/токенов за постоянное время."""
    return hmac.compare_digest(left.encode("utf-8"), right.encode("utf-8"))


__all__ = ["sign", "constant_time_equals"]
