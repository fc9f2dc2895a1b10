from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict

from rsconnector.domain.error_codes import ErrorCode


@dataclass
class AppError(Exception):
    """
    Унифицированная ошибка клиента.
    """

    category: str
    code: str
    message: str
    retryable: bool = False
    details: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "code": self.code,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details or {},
        }


class ConfigurationError(AppError):
    """Конфигурация клиента неполна или некорректна. Фатально для экземпляра."""

    def __init__(self, message: str):
        super().__init__(category="config", code=ErrorCode.CONFIG_INVALID.value, message=message)


class ResourceSpaceError(AppError):
    def __init__(
        self,
        message: str,
        function_name: str,
        status_code: int | None = None,
        rs_error: str | None = None,
        code: str | None = None,
        retryable: bool = False,
    ):
        """
        Назначение:
            Ошибка удалённого API (или транспорта до него).
        Контракт:
            - function_name: имя функции API, на которой произошёл сбой.
            - status_code/rs_error: HTTP-статус и текст ошибки от сервера, если есть.
            - исходное исключение доступно через __cause__ (raise ... from exc).
        """
        super().__init__(
            category="api",
            code=code or ErrorCode.from_status(status_code).value,
            message=message,
            retryable=retryable,
            details={
                "function": function_name,
                "status_code": status_code,
                "rs_error": rs_error,
            },
        )
        self.function_name = function_name
        self.status_code = status_code
        self.rs_error = rs_error


class ApiPermissionError(ResourceSpaceError):
    """
    Назначение:
        Отказ в доступе со стороны сервера (HTTP 401/403 или текст "access denied").
    Примечание:
        Отдельный подтип, чтобы вызывающий код мог отличить отказ от пустого результата.
    """

    def __init__(self, function_name: str, detail: str | None = None, status_code: int | None = None):
        suffix = f": {detail}" if detail else ""
        super().__init__(
            f"Permission denied for {function_name}{suffix}",
            function_name,
            status_code=status_code,
            rs_error=detail,
            code=ErrorCode.PERMISSION_DENIED.value,
        )


class ValidationError(AppError):
    """Некорректный ввод вызывающего кода; поднимается до любого сетевого вызова."""

    def __init__(self, message: str, details: Dict[str, Any] | None = None):
        super().__init__(
            category="validation",
            code=ErrorCode.VALIDATION_ERROR.value,
            message=message,
            details=details or {},
        )


class BatchSizeLimitError(AppError):
    def __init__(self, actual: int, max_size: int):
        super().__init__(
            category="batch",
            code=ErrorCode.BATCH_SIZE_LIMIT.value,
            message=f"Batch size {actual} exceeds maximum {max_size}",
            details={"actual": actual, "max_size": max_size},
        )
        self.actual = actual
        self.max_size = max_size


class SecurityError(AppError):
    def __init__(
        self,
        message: str,
        function_name: str | None = None,
        user_ref: int | None = None,
        code: str | None = None,
    ):
        """
        Назначение:
            Инвариант безопасности не удалось соблюсти.
        Контракт:
            - Всегда фатальна для текущей операции.
            - user_ref/function_name дают оператору контекст для ручного вмешательства.
        """
        super().__init__(
            category="security",
            code=code or ErrorCode.SECURITY_VIOLATION.value,
            message=message,
            details={"function": function_name, "user_ref": user_ref},
        )
        self.function_name = function_name
        self.user_ref = user_ref


def validate_id(value: object, label: str) -> int:
    """
    Проверяет, что идентификатор: положительное целое. Иначе ValidationError.
    """
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(
            f"Invalid {label}: expected a positive integer, got {value!r}",
            details={"label": label},
        )
    return value


__all__ = [
    "AppError",
    "ConfigurationError",
    "ResourceSpaceError",
    "ApiPermissionError",
    "ValidationError",
    "BatchSizeLimitError",
    "SecurityError",
    "validate_id",
]
