from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """
    Назначение:
        Единая таксономия кодов ошибок клиента ResourceSpace.
    """

    CONFIG_INVALID = "CONFIG_INVALID"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    HTTP_5XX = "HTTP_5XX"
    API_ERROR = "API_ERROR"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    INVALID_REF = "INVALID_REF"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    BATCH_SIZE_LIMIT = "BATCH_SIZE_LIMIT"
    SECURITY_VIOLATION = "SECURITY_VIOLATION"
    USER_LOCKDOWN_FAILED = "USER_LOCKDOWN_FAILED"

    @classmethod
    def from_status(cls, status_code: int | None) -> "ErrorCode":
        """
        Назначение:
            Подбор общего кода по HTTP-статусу.
        """
        if status_code in (401, 403):
            return cls.PERMISSION_DENIED
        if status_code is not None and status_code >= 500:
            return cls.HTTP_5XX
        return cls.API_ERROR
