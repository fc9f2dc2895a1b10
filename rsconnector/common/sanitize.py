import json
from typing import Any, Mapping
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

# Ключи параметров, значения которых никогда не попадают в логи.
SENSITIVE_PARAM_KEYS: tuple[str, ...] = ("password", "secret", "key", "session_key", "sessionkey")


def maskSecret(value: str | None) -> str | None:
    """
    Назначение:
        Маскирует секреты для безопасного вывода в stdout/logs.

    Входные данные:
        value: str | None
            Исходное значение (например, API-ключ).

    Выходные данные:
        str | None
            Если value задано: возвращает '***', иначе None.
    """
    if value is None:
        return None
    return "***"


def truncateText(value: str | None, limit: int = 200) -> str | None:
    """
    Назначение:
        Ограничивает длину текста ответа, чтобы не раздувать сообщения об ошибках и логи.

    Выходные данные:
        str | None
            Первые limit символов; None, если вход None.
    """
    if value is None:
        return None
    return value[:limit]


def maskSecretsInObject(obj: object, sensitive_keys: tuple[str, ...] = SENSITIVE_PARAM_KEYS) -> object:
    """
    Назначение:
        Рекурсивно маскирует значения по заданным ключам в структурах dict/list.

    Выходные данные:
        object
            Новая структура с замаскированными секретами.
    """
    sensitive = {key.lower() for key in sensitive_keys}
    if isinstance(obj, dict):
        masked: dict[str, object] = {}
        for k, v in obj.items():
            if str(k).lower() in sensitive:
                masked[k] = maskSecret(str(v) if v is not None else None)
            else:
                masked[k] = maskSecretsInObject(v, sensitive_keys)
        return masked
    if isinstance(obj, list):
        return [maskSecretsInObject(item, sensitive_keys) for item in obj]
    return obj


def redact_params(params: Mapping[str, Any]) -> dict[str, Any]:
    """
    Назначение:
        Копия параметров запроса для логирования без секретов.
    Алгоритм:
        - Значения чувствительных ключей -> '***' (регистр ключа не важен).
        - Строковые значения с JSON-объектом (save_user data=...) маскируются рекурсивно.
    """
    sensitive = {key.lower() for key in SENSITIVE_PARAM_KEYS}
    redacted: dict[str, Any] = {}
    for k, v in params.items():
        if k.lower() in sensitive:
            redacted[k] = maskSecret(str(v) if v is not None else None)
        elif isinstance(v, str) and v.startswith("{"):
            try:
                nested = json.loads(v)
            except ValueError:
                redacted[k] = v
                continue
            redacted[k] = json.dumps(maskSecretsInObject(nested), separators=(",", ":"))
        else:
            redacted[k] = maskSecretsInObject(v)
    return redacted


def redact_url(url: str) -> str:
    """
    Назначение:
        URL запроса для логов: секретные параметры строки запроса -> '***'.
    Контракт:
        - Правила маскирования те же, что у redact_params (включая JSON в data).
        - URL без строки запроса возвращается без изменений.
    """
    parts = urlsplit(url)
    if not parts.query:
        return url
    pairs = parse_qsl(parts.query, keep_blank_values=True)
    redacted = redact_params(dict(pairs))
    query = urlencode([(k, redacted[k]) for k, _ in pairs], safe="*")
    return urlunsplit(parts._replace(query=query))
