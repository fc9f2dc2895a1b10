from __future__ import annotations

import json
import logging
from typing import Any, Mapping

import httpx

from rsconnector.common.sanitize import redact_params, redact_url, truncateText
from rsconnector.config import ClientConfig, validate_config
from rsconnector.domain.error_codes import ErrorCode
from rsconnector.errors import ApiPermissionError, ResourceSpaceError
from rsconnector.infra.http.query_builder import build_signed_query
from rsconnector.infra.http.response import normalize_response
from rsconnector.infra.http.url_rewriter import rewrite_to_internal_url

DEFAULT_LOGGER_NAME = "rsconnector.client"
HTTPX_LOGGER_NAME = "httpx"


class QuerySecretsFilter(logging.Filter):
    """
    Назначение:
        Маскирует секреты в URL, которые httpx пишет в свой логгер
        ("HTTP Request: GET https://...?password=..."). Сам ключ API
        в URL не передаётся, но пароли login/save_user идут строкой запроса.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.args, tuple) and record.args:
            record.args = tuple(_redact_arg(arg) for arg in record.args)
        elif not record.args and isinstance(record.msg, str) and "?" in record.msg:
            record.msg = " ".join(redact_url(part) if "?" in part else part for part in record.msg.split(" "))
        return True


def _redact_arg(arg: Any) -> Any:
    if isinstance(arg, httpx.URL) or (isinstance(arg, str) and "?" in arg):
        return redact_url(str(arg))
    return arg


def install_httpx_log_filter() -> None:
    """Подключает QuerySecretsFilter к логгеру httpx один раз на процесс."""
    httpx_logger = logging.getLogger(HTTPX_LOGGER_NAME)
    if not any(isinstance(f, QuerySecretsFilter) for f in httpx_logger.filters):
        httpx_logger.addFilter(QuerySecretsFilter())


class RSClientCore:
    """
    Назначение/ответственность:
        Ядро клиента ResourceSpace: подпись запроса, HTTP-транспорт, нормализация ответа.
        Методов API само не содержит: они подключаются capability-миксинами.
    Ограничения:
        - Только GET: сервер проверяет подпись по строке запроса, тело запроса не подписывается.
        - Ретраев нет; каждый вызов делает одну попытку с таймаутом из конфигурации.
        - Общего изменяемого состояния между вызовами нет: на каждый вызов свой AsyncClient.
    """

    def __init__(self, config: ClientConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.config = validate_config(config)
        self.log = self.config.logger or logging.getLogger(DEFAULT_LOGGER_NAME)
        install_httpx_log_filter()
        self._transport = transport

    def _base_url(self) -> str:
        return (self.config.internal_url or self.config.base_url).rstrip("/")

    def build_url(self, function_name: str, params: Mapping[str, Any] | None = None) -> str:
        """Полный адрес запроса: {base}/?{query}&sign={signature}."""
        signed = build_signed_query(
            self.config.user,
            self.config.secret,
            self.config.auth_mode,
            function_name,
            params,
        )
        return f"{self._base_url()}/?{signed.query}&sign={signed.sign}"

    async def request(self, function_name: str, params: Mapping[str, Any] | None = None) -> Any:
        """
        Контракт (вход/выход):
            Вход: имя функции API и её параметры (None-значения не отправляются).
            Выход: нормализованный ответ (None | скаляр | dict | list).
        Ошибки/исключения:
            - ApiPermissionError: HTTP 401/403 или текст отказа в теле.
            - ResourceSpaceError: 5xx, таймаут, сетевая ошибка, ошибка в теле ответа.
        """
        params = dict(params or {})
        url = self.build_url(function_name, params)

        # Редакция секретов безусловна и не зависит от настроек логгера.
        self.log.debug(
            "RS API request: function=%s auth_mode=%s user=%s params=%s",
            function_name,
            self.config.auth_mode,
            self.config.user,
            redact_params(params),
        )

        try:
            async with httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport) as client:
                resp = await client.get(url, headers={"Accept": "application/json"})
        except httpx.TimeoutException as exc:
            self.log.error("RS API timeout: function=%s timeout=%ss", function_name, self.config.timeout)
            raise ResourceSpaceError(
                f"API request timed out: {function_name}",
                function_name,
                code=ErrorCode.TIMEOUT.value,
                retryable=True,
            ) from exc
        except httpx.HTTPError as exc:
            self.log.error("RS API error: function=%s error=%s", function_name, exc)
            raise ResourceSpaceError(
                f"API request failed: {function_name} - {exc}",
                function_name,
                code=ErrorCode.NETWORK_ERROR.value,
                retryable=True,
            ) from exc

        if resp.status_code >= 500:
            raise ResourceSpaceError(
                f"ResourceSpace server error: {resp.status_code}",
                function_name,
                status_code=resp.status_code,
                rs_error=truncateText(resp.text) or None,
            )

        # 403 приходит с телом "[]": нельзя принять его за пустой результат.
        if resp.status_code in (401, 403):
            raise ApiPermissionError(function_name, f"HTTP {resp.status_code}", status_code=resp.status_code)

        text = resp.text
        try:
            data: Any = json.loads(text)
        except ValueError:
            data = text

        result = normalize_response(data, function_name)

        self.log.debug(
            "RS API response: function=%s status=%s type=%s",
            function_name,
            resp.status_code,
            type(result).__name__,
        )
        return result

    def rewrite_url(self, url: str) -> str:
        """URL от сервера -> адрес во внутренней сети. Без internal_url ничего не меняет."""
        return rewrite_to_internal_url(url, self.config.base_url, self.config.internal_url)


__all__ = ["RSClientCore", "QuerySecretsFilter", "install_httpx_log_filter"]
