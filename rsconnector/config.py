from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from rsconnector.errors import ConfigurationError
from rsconnector.infra.http.query_builder import AUTH_MODE_API_KEY, AUTH_MODE_SESSION_KEY

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_BATCH_SIZE = 100
DEFAULT_SIGNUP_USERGROUP = 9
MIN_SECRET_LENGTH = 32
DEFAULT_ENV_PREFIX = "RESOURCESPACE"

AUTH_MODES = (AUTH_MODE_API_KEY, AUTH_MODE_SESSION_KEY)


@dataclass(frozen=True)
class ClientConfig:
    """
    Назначение:
        Неизменяемая конфигурация клиента ResourceSpace.
    Инварианты (после validate_config):
        - base_url, user заданы; secret не короче MIN_SECRET_LENGTH.
        - auth_mode ∈ {apiKey, sessionKey}.
        - timeout > 0, max_batch_size > 0.
    """

    base_url: str
    user: str
    secret: str = field(repr=False)
    auth_mode: str = AUTH_MODE_API_KEY
    internal_url: str | None = None
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE
    # Группа для новых пользователей. Никогда не берётся из аргументов вызова.
    signup_usergroup: int = DEFAULT_SIGNUP_USERGROUP
    logger: logging.Logger | None = field(default=None, repr=False, compare=False)


def _require_number(name: str, value: object, types: tuple[type, ...]) -> None:
    # bool является подклассом int, но числом конфигурации не считается.
    if isinstance(value, bool) or not isinstance(value, types):
        kind = "an integer" if types == (int,) else "a number"
        raise ConfigurationError(f"{name} must be {kind}, got {value!r}")


def validate_config(config: ClientConfig) -> ClientConfig:
    """
    Назначение:
        Однократная проверка конфигурации при создании клиента.
    Ошибки:
        ConfigurationError на любом нарушении; дальше в рантайме сюрпризов нет.
    """
    if not config.base_url:
        raise ConfigurationError("base_url is required")
    if not config.user:
        raise ConfigurationError("user is required")
    if not config.secret:
        raise ConfigurationError("secret is required")
    if len(config.secret) < MIN_SECRET_LENGTH:
        raise ConfigurationError(
            f"secret must be at least {MIN_SECRET_LENGTH} characters (got {len(config.secret)})"
        )
    if config.auth_mode not in AUTH_MODES:
        raise ConfigurationError(f'auth_mode must be "apiKey" or "sessionKey", got "{config.auth_mode}"')

    updates: dict[str, Any] = {}
    if config.timeout is None:
        updates["timeout"] = DEFAULT_TIMEOUT_SECONDS
    else:
        _require_number("timeout", config.timeout, (int, float))
        if config.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {config.timeout}")
    if config.max_batch_size is None:
        updates["max_batch_size"] = DEFAULT_MAX_BATCH_SIZE
    else:
        _require_number("max_batch_size", config.max_batch_size, (int,))
        if config.max_batch_size <= 0:
            raise ConfigurationError(f"max_batch_size must be positive, got {config.max_batch_size}")
    if config.signup_usergroup is None:
        updates["signup_usergroup"] = DEFAULT_SIGNUP_USERGROUP
    else:
        _require_number("signup_usergroup", config.signup_usergroup, (int,))

    return dataclasses.replace(config, **updates) if updates else config


def _env_get(environ: Mapping[str, str], name: str) -> str | None:
    v = environ.get(name)
    if v is None or v.strip() == "":
        return None
    return v.strip()


def _parse_int(v: str | None) -> int | None:
    if v is None:
        return None
    try:
        return int(v)
    except ValueError:
        return None


def _parse_float(v: str | None) -> float | None:
    if v is None:
        return None
    try:
        return float(v)
    except ValueError:
        return None


def _read_env(prefix: str, environ: Mapping[str, str]) -> dict[str, Any]:
    p = f"{prefix}_" if prefix else ""
    return {
        "base_url": _env_get(environ, f"{p}API_URL") or _env_get(environ, f"{p}URL"),
        "user": _env_get(environ, f"{p}API_USER") or _env_get(environ, f"{p}USER"),
        "secret": _env_get(environ, f"{p}API_KEY") or _env_get(environ, f"{p}SECRET"),
        "internal_url": _env_get(environ, f"{p}INTERNAL_URL"),
        "auth_mode": _env_get(environ, f"{p}AUTH_MODE"),
        "timeout_seconds": _parse_float(_env_get(environ, f"{p}TIMEOUT")),
        "max_batch_size": _parse_int(_env_get(environ, f"{p}MAX_BATCH_SIZE")),
        "signup_usergroup": _parse_int(_env_get(environ, f"{p}SIGNUP_USERGROUP")),
    }


def config_from_env(
    prefix: str = DEFAULT_ENV_PREFIX,
    environ: Mapping[str, str] | None = None,
) -> ClientConfig | None:
    """
    Назначение:
        Собирает ClientConfig из переменных окружения.
    Контракт:
        - Нет обязательных переменных (URL, USER, KEY/SECRET) -> None, без исключений,
          чтобы вызывающий код мог выбрать свой fallback.
        - Валидация не выполняется здесь: она происходит при создании клиента.
    """
    env = _read_env(prefix, os.environ if environ is None else environ)
    if not env["base_url"] or not env["user"] or not env["secret"]:
        return None

    optional: dict[str, Any] = {}
    if env["internal_url"]:
        optional["internal_url"] = env["internal_url"]
    if env["timeout_seconds"] is not None:
        optional["timeout"] = env["timeout_seconds"]
    if env["max_batch_size"] is not None:
        optional["max_batch_size"] = env["max_batch_size"]
    if env["signup_usergroup"] is not None:
        optional["signup_usergroup"] = env["signup_usergroup"]

    return ClientConfig(
        base_url=env["base_url"],
        user=env["user"],
        secret=env["secret"],
        auth_mode=env["auth_mode"] or AUTH_MODE_API_KEY,
        **optional,
    )


@dataclass(frozen=True)
class Settings:
    # API
    base_url: str | None = None
    internal_url: str | None = None
    user: str | None = None
    secret: str | None = None
    auth_mode: str = AUTH_MODE_API_KEY
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_batch_size: int = DEFAULT_MAX_BATCH_SIZE
    signup_usergroup: int = DEFAULT_SIGNUP_USERGROUP

    # Logging
    log_dir: str = "./logs"
    log_level: str = "INFO"


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    sources_used: list[str]


def _read_yaml_config(path: Path) -> dict:
    if not path.exists():
        return {}
    if not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            return {}
        return data


_YAML_NUMBER_PARSERS = {
    "timeout_seconds": _parse_float,
    "max_batch_size": _parse_int,
    "signup_usergroup": _parse_int,
}


def _coerce_yaml_numbers(cfg: dict) -> dict:
    """
    Числа в YAML могут быть записаны строкой ("30"). Такие строки приводятся;
    непарсящиеся значения остаются как есть и отвергаются validate_config.
    """
    result = dict(cfg)
    for key, parse in _YAML_NUMBER_PARSERS.items():
        value = result.get(key)
        if isinstance(value, str):
            parsed = parse(value.strip())
            if parsed is not None:
                result[key] = parsed
    return result


def loadSettings(
    config_path: str | None,
    cli_overrides: dict,
    environ: Mapping[str, str] | None = None,
) -> LoadedSettings:
    """
    Priority: CLI > ENV > config > defaults
    """
    sources: list[str] = []
    known = {f.name for f in dataclasses.fields(Settings)}
    merged: dict[str, Any] = {f.name: f.default for f in dataclasses.fields(Settings)}

    # 1) config file
    if config_path:
        cfg = _read_yaml_config(Path(config_path))
        if cfg:
            sources.append("config")
            merged.update({k: v for k, v in _coerce_yaml_numbers(cfg).items() if k in known})

    # 2) env
    envSource = os.environ if environ is None else environ
    env = _read_env(DEFAULT_ENV_PREFIX, envSource)
    env["log_level"] = _env_get(envSource, f"{DEFAULT_ENV_PREFIX}_LOG_LEVEL")
    if any(v is not None for v in env.values()):
        sources.append("env")
    merged.update({k: v for k, v in env.items() if v is not None})

    # 3) CLI overrides (only those explicitly passed)
    if any(v is not None for v in cli_overrides.values()):
        sources.append("cli")
    merged.update({k: v for k, v in cli_overrides.items() if v is not None and k in known})

    return LoadedSettings(settings=Settings(**merged), sources_used=sources)


def settings_to_config(settings: Settings, logger: logging.Logger | None = None) -> ClientConfig:
    """Переводит настройки CLI в ClientConfig и валидирует его."""
    return validate_config(
        ClientConfig(
            base_url=settings.base_url or "",
            user=settings.user or "",
            secret=settings.secret or "",
            auth_mode=settings.auth_mode,
            internal_url=settings.internal_url,
            timeout=settings.timeout_seconds,
            max_batch_size=settings.max_batch_size,
            signup_usergroup=settings.signup_usergroup,
            logger=logger,
        )
    )


__all__ = [
    "ClientConfig",
    "validate_config",
    "config_from_env",
    "Settings",
    "LoadedSettings",
    "loadSettings",
    "settings_to_config",
]
