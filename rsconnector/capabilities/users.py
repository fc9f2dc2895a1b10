from __future__ import annotations

import asyncio
import json
from typing import Any, Mapping, Protocol

from rsconnector.capabilities.base import Capability, ComposedClient, attach
from rsconnector.domain.error_codes import ErrorCode
from rsconnector.domain.models import CreateUserParams, SaveUserResult, User, extract_ref, normalize_user
from rsconnector.errors import ApiPermissionError, ResourceSpaceError, SecurityError, validate_id
from rsconnector.infra.http.response import ensure_array

# save_user на сервере принимает ЛЮБУЮ колонку таблицы user (usergroup, approved,
# ip_restrict, account_expires, ...). Наружу пропускаем только профиль.
SAVE_USER_ALLOWED_FIELDS: tuple[str, ...] = ("fullname", "email", "password", "comments")

LOCKDOWN_MAX_ATTEMPTS = 3
LOCKDOWN_BACKOFF_SECONDS = 0.5

MIN_SESSION_KEY_LENGTH = 32


class UsersApi(Protocol):
    async def get_user(self, username: str) -> User | None: ...
    async def get_full_user(self, username_or_ref: str | int) -> User | None: ...
    async def get_user_ref(self, username: str) -> int | None: ...
    async def get_users(self, filter: str | None = None) -> list[User]: ...
    async def check_credentials(self, username: str, password: str) -> str | None: ...
    async def create_user(self, params: CreateUserParams | Mapping[str, Any]) -> int: ...
    async def save_user(self, user_ref: int, data: Mapping[str, Any]) -> SaveUserResult: ...


def filter_user_fields(data: Mapping[str, Any]) -> dict[str, Any]:
    """Оставляет только разрешённые поля профиля; None-значения отбрасываются."""
    return {
        key: data[key]
        for key in SAVE_USER_ALLOWED_FIELDS
        if key in data and data[key] is not None
    }


def _dump(data: Mapping[str, Any]) -> str:
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False)


def _first_user(data: Any) -> User | None:
    rows = [row for row in ensure_array(data) if isinstance(row, dict)]
    return normalize_user(rows[0]) if rows else None


class UsersCapability(Capability):
    """
    Назначение/ответственность:
        Управление пользователями с защитой от повышения привилегий.
    Инварианты/гарантии:
        - usergroup нового пользователя берётся только из config.signup_usergroup.
        - Новый пользователь сразу переводится в approved=0 (по умолчанию сервер ставит 1).
        - save_user пропускает только SAVE_USER_ALLOWED_FIELDS.
    """

    __slots__ = ()
    capability_name = "users"

    async def get_user(self, username: str) -> User | None:
        data = await self.request("get_users", {"find": username, "exact_username_match": True})
        return _first_user(data)

    async def get_full_user(self, username_or_ref: str | int) -> User | None:
        params: dict[str, Any] = {"find": str(username_or_ref)}
        if isinstance(username_or_ref, str):
            params["exact_username_match"] = True
        return _first_user(await self.request("get_users", params))

    async def get_user_ref(self, username: str) -> int | None:
        user = await self.get_user(username)
        return user["ref"] if user else None

    async def get_users(self, filter: str | None = None) -> list[User]:
        data = await self.request("get_users", {"find": filter or None})
        return [normalize_user(row) for row in ensure_array(data) if isinstance(row, dict)]

    async def check_credentials(self, username: str, password: str) -> str | None:
        """
        Контракт:
            - Успех: session key (строка не короче 32 символов).
            - Отказ сервера в теле ответа или отказ в доступе -> None.
            - Транспортные сбои и 5xx пробрасываются: это не "неверный пароль".
        """
        try:
            result = await self.request("login", {"username": username, "password": password})
        except ApiPermissionError:
            return None
        except ResourceSpaceError as err:
            if err.code != ErrorCode.API_ERROR.value or err.status_code is not None:
                raise
            return None
        if isinstance(result, str) and len(result) >= MIN_SESSION_KEY_LENGTH:
            return result
        return None

    async def create_user(self, params: CreateUserParams | Mapping[str, Any]) -> int:
        """
        Назначение:
            Создание учётной записи в два неатомарных шага.

        Алгоритм:
            1. new_user ровно с {username, usergroup}; usergroup: из конфигурации.
            2. save_user с approved=0 (+ fullname/email/password), до LOCKDOWN_MAX_ATTEMPTS
               попыток с линейной задержкой.

        Ошибки/исключения:
            - ResourceSpaceError: new_user не вернул ref.
            - SecurityError: пользователь создан, но перевести его в approved=0 не удалось.
              В сообщении ref: оператор должен вмешаться вручную.
        """
        if not isinstance(params, CreateUserParams):
            params = CreateUserParams.from_mapping(params)

        usergroup = self.config.signup_usergroup
        result = await self.request("new_user", {"username": params.username, "usergroup": usergroup})

        ref = extract_ref(result, "ref", "user")
        if ref is None:
            raise ResourceSpaceError(
                "new_user returned invalid ref", "new_user", code=ErrorCode.INVALID_REF.value
            )

        lockdown: dict[str, Any] = {"approved": 0}
        lockdown.update(
            {
                k: v
                for k, v in (("fullname", params.fullname), ("email", params.email), ("password", params.password))
                if v
            }
        )

        last_error: Exception | None = None
        for attempt in range(1, LOCKDOWN_MAX_ATTEMPTS + 1):
            try:
                response = await self.request("save_user", {"ref": ref, "data": _dump(lockdown)})
                if isinstance(response, dict) and response.get("status") == "fail":
                    raise ResourceSpaceError(
                        f"save_user rejected lock-down for user {ref}", "save_user", rs_error=str(response.get("data"))
                    )
                self.log.info("User created: ref=%s usergroup=%s approved=0", ref, usergroup)
                return ref
            except ResourceSpaceError as err:
                last_error = err
                if attempt < LOCKDOWN_MAX_ATTEMPTS:
                    self.log.warning(
                        "create_user save_user attempt %s/%s failed, retrying: user_ref=%s error=%s",
                        attempt,
                        LOCKDOWN_MAX_ATTEMPTS,
                        ref,
                        err,
                    )
                    await asyncio.sleep(LOCKDOWN_BACKOFF_SECONDS * attempt)

        self.log.critical("User %s created but lock-down failed; account may be auto-approved", ref)
        raise SecurityError(
            f"CRITICAL: User {ref} was created but save_user failed after {LOCKDOWN_MAX_ATTEMPTS} attempts. "
            f"User may be auto-approved (server default approved=1). "
            f"Manually set approved=0 for user ref {ref}. Cause: {last_error}",
            function_name="save_user",
            user_ref=ref,
            code=ErrorCode.USER_LOCKDOWN_FAILED.value,
        ) from last_error

    async def save_user(self, user_ref: int, data: Mapping[str, Any]) -> SaveUserResult:
        """
        Контракт:
            - Поля вне SAVE_USER_ALLOWED_FIELDS отбрасываются без предупреждения.
            - Не осталось ни одного поля -> SecurityError, запрос не отправляется.
            - JSend fail / неизвестный формат -> SaveUserResult(success=False).
            - Ошибки транспорта и сервера пробрасываются.
        """
        sanitized = filter_user_fields(data)
        if not sanitized:
            raise SecurityError(
                "No valid fields to update. Allowed fields: " + ", ".join(SAVE_USER_ALLOWED_FIELDS),
                function_name="save_user",
            )
        validate_id(user_ref, "user ref")

        result = await self.request("save_user", {"ref": user_ref, "data": _dump(sanitized)})

        if result is True:
            return SaveUserResult(success=True)
        if isinstance(result, dict):
            status = result.get("status")
            if status == "success":
                return SaveUserResult(success=True)
            if status == "fail":
                fail_data = result.get("data")
                message = fail_data.get("message") if isinstance(fail_data, dict) else None
                return SaveUserResult(success=False, error=message or "Save failed")
        return SaveUserResult(success=False, error="Unexpected response format")


def with_users(client: Any) -> ComposedClient:
    return attach(client, UsersCapability)


__all__ = [
    "UsersApi",
    "UsersCapability",
    "SAVE_USER_ALLOWED_FIELDS",
    "filter_user_fields",
    "with_users",
]
