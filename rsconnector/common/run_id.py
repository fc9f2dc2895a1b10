from __future__ import annotations

import re
import uuid

from rsconnector.errors import ConfigurationError

# run_id попадает в имя лог-файла: только безопасные символы, без ведущей точки.
RUN_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9._-]{0,63}$")


def resolve_run_id(candidate: str | None) -> str:
    """
    Назначение:
        run_id запуска CLI: переданный пользователем или новый uuid4.
    Контракт:
        - None или пустая строка -> str(uuid.uuid4()).
        - Иначе значение (без пробелов по краям) должно соответствовать RUN_ID_PATTERN.
    Ошибки:
        ConfigurationError, если run_id не годится для имени файла (например "../x").
    """
    if candidate is None or not candidate.strip():
        return str(uuid.uuid4())
    value = candidate.strip()
    if not RUN_ID_PATTERN.match(value):
        raise ConfigurationError(
            f"run_id must be 1-64 characters of letters, digits, '.', '_' or '-' "
            f"and must not start with '.', got {value!r}"
        )
    return value


__all__ = ["RUN_ID_PATTERN", "resolve_run_id"]
