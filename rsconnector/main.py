from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Callable

import typer

from rsconnector.capabilities import with_search, with_system, with_users
from rsconnector.common.run_id import resolve_run_id
from rsconnector.common.sanitize import maskSecret
from rsconnector.config import Settings, loadSettings, settings_to_config
from rsconnector.domain.models import CreateUserParams, SearchOptions
from rsconnector.errors import AppError, ConfigurationError, SecurityError
from rsconnector.factories import create_client
from rsconnector.logging_setup import closeLogger, createCommandLogger, logEvent

app = typer.Typer(no_args_is_help=True, add_completion=False)
userApp = typer.Typer(no_args_is_help=True)

EXIT_OK = 0
EXIT_FAILED = 2
EXIT_SECURITY = 3


def requireApi(settings: Settings) -> None:
    """
    Назначение:
        Проверяет наличие параметров API для команд, которым нужен доступ к серверу.

    Поведение:
        - Если чего-то не хватает: exit code 2.
    """
    missing = []
    if not settings.base_url:
        missing.append("base_url")
    if not settings.user:
        missing.append("user")
    if not settings.secret:
        missing.append("secret")

    if missing:
        typer.echo(f"ERROR: missing API settings: {', '.join(missing)}", err=True)
        raise typer.Exit(code=EXIT_FAILED)


def printRunHeader(runId: str, command: str, settings: Settings, sources: list[str]) -> None:
    """Печатает безопасную сводку параметров запуска (без секретов)."""
    typer.echo(
        f"run_id={runId} command={command} "
        f"base_url={settings.base_url} user={settings.user} auth_mode={settings.auth_mode} "
        f"secret={maskSecret(settings.secret)} sources={sources}"
    )


def runWithLogger(
    ctx: typer.Context,
    commandName: str,
    runner: Callable[[logging.Logger, Settings], int],
) -> None:
    """
    Назначение:
        Унифицированная обвязка выполнения команд:
        - создаёт логгер + файл лога
        - проверяет параметры API
        - переводит ошибки клиента в exit code

    Поведение:
        - Нет параметров API / невалидная конфигурация: exit code 2.
        - SecurityError: exit code 3 (нужно вмешательство оператора).
    """
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]
    sources = ctx.obj["sources"]

    logger, _logFilePath = createCommandLogger(
        commandName=commandName,
        logDir=settings.log_dir,
        runId=runId,
        logLevel=settings.log_level,
    )

    exitCode = EXIT_OK
    try:
        logEvent(logger, logging.INFO, runId, "core", "Command started")
        printRunHeader(runId, commandName, settings, sources)
        try:
            requireApi(settings)
        except typer.Exit:
            logEvent(logger, logging.ERROR, runId, "config", "Missing API settings")
            exitCode = EXIT_FAILED
            return

        try:
            exitCode = runner(logger, settings)
        except SecurityError as exc:
            logEvent(logger, logging.CRITICAL, runId, "security", str(exc))
            typer.echo(f"SECURITY: {exc}", err=True)
            exitCode = EXIT_SECURITY
        except ConfigurationError as exc:
            logEvent(logger, logging.ERROR, runId, "config", str(exc))
            typer.echo(f"ERROR: invalid configuration: {exc}", err=True)
            exitCode = EXIT_FAILED
        except AppError as exc:
            logEvent(logger, logging.ERROR, runId, "api", f"{exc.code}: {exc}")
            typer.echo(f"ERROR: {exc} (see logs)", err=True)
            exitCode = EXIT_FAILED
    finally:
        logEvent(logger, logging.INFO, runId, "core", f"Command finished exit_code={exitCode}")
        closeLogger(logger)
        if exitCode != EXIT_OK:
            raise typer.Exit(code=exitCode)


@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(None, "--config", help="Path to config.yml"),
    runId: str | None = typer.Option(None, "--run-id", help="Run identifier: letters, digits, ._- (max 64). If omitted, a UUID is generated."),
    logLevel: str | None = typer.Option(None, "--log-level", help="Log level: ERROR|WARN|INFO|DEBUG"),
    logDir: str | None = typer.Option(None, "--log-dir", help="Directory for logs."),
    baseUrl: str | None = typer.Option(None, "--base-url", help="ResourceSpace API URL, e.g. https://dam.example.com/api/"),
    internalUrl: str | None = typer.Option(None, "--internal-url", help="Internal network URL of the API"),
    user: str | None = typer.Option(None, "--user", help="API user"),
    secret: str | None = typer.Option(None, "--secret", help="API key or session key (avoid; use env/file)"),
    secretFile: str | None = typer.Option(None, "--secret-file", help="Read API key from file"),
    authMode: str | None = typer.Option(None, "--auth-mode", help="apiKey|sessionKey"),
    timeoutSeconds: float | None = typer.Option(None, "--timeout-seconds", help="API timeout in seconds"),
    maxBatchSize: int | None = typer.Option(None, "--max-batch-size", help="Max ids per batch operation"),
    signupUsergroup: int | None = typer.Option(None, "--signup-usergroup", help="Usergroup for created users"),
):
    """
    Назначение:
        Глобальная инициализация CLI:
        - генерирует/принимает run_id
        - загружает настройки (CLI > ENV > config > defaults)
        - сохраняет всё в ctx.obj для подкоманд
    """
    if secretFile and not secret:
        p = Path(secretFile)
        if not p.exists() or not p.is_file():
            typer.echo(f"ERROR: secret-file not found: {secretFile}", err=True)
            raise typer.Exit(code=EXIT_FAILED)
        secret = p.read_text(encoding="utf-8").strip()

    try:
        runId = resolve_run_id(runId)
    except ConfigurationError as exc:
        typer.echo(f"ERROR: invalid configuration: {exc}", err=True)
        raise typer.Exit(code=EXIT_FAILED)

    cliOverrides = {
        "base_url": baseUrl,
        "internal_url": internalUrl,
        "user": user,
        "secret": secret,
        "auth_mode": authMode,
        "timeout_seconds": timeoutSeconds,
        "max_batch_size": maxBatchSize,
        "signup_usergroup": signupUsergroup,
        "log_level": logLevel,
        "log_dir": logDir,
    }
    loaded = loadSettings(config_path=config, cli_overrides=cliOverrides)

    ctx.obj = {
        "runId": runId,
        "settings": loaded.settings,
        "sources": loaded.sources_used,
        "configPath": config,
    }


@app.command("check-api")
def checkApi(ctx: typer.Context):
    """Проверка доступности API и подписи (get_api_version)."""

    def execute(logger: logging.Logger, settings: Settings) -> int:
        client = create_client(settings_to_config(settings, logger), with_system)
        version = asyncio.run(client.get_api_version())
        typer.echo(f"api ok version={version or 'unknown'}")
        return EXIT_OK

    runWithLogger(ctx, "check-api", execute)


@app.command("search")
def search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Search string, e.g. 'sunset' or '!collection42'"),
    limit: int = typer.Option(24, "--limit", help="Rows to fetch"),
    offset: int = typer.Option(0, "--offset", help="Offset of the first row"),
    orderBy: str = typer.Option("relevance", "--order-by", help="Sort field"),
):
    """Поиск ресурсов; печатает JSON."""

    def execute(logger: logging.Logger, settings: Settings) -> int:
        client = create_client(settings_to_config(settings, logger), with_search)
        options = SearchOptions(order_by=orderBy, offset=offset, limit=limit)
        result = asyncio.run(client.search(query, options))
        typer.echo(
            json.dumps(
                {"count": result.count, "offset": result.offset, "resources": result.resources},
                ensure_ascii=False,
            )
        )
        return EXIT_OK

    runWithLogger(ctx, "search", execute)


@userApp.command("create")
def userCreate(
    ctx: typer.Context,
    username: str = typer.Option(..., "--username", help="Login of the new user"),
    email: str | None = typer.Option(None, "--email", help="E-mail"),
    fullname: str | None = typer.Option(None, "--fullname", help="Display name"),
):
    """Создание пользователя (группа: только из настроек, approved=0)."""

    def execute(logger: logging.Logger, settings: Settings) -> int:
        client = create_client(settings_to_config(settings, logger), with_users)
        params = CreateUserParams(username=username, email=email, fullname=fullname)
        ref = asyncio.run(client.create_user(params))
        typer.echo(f"user created ref={ref} usergroup={settings.signup_usergroup} approved=0")
        return EXIT_OK

    runWithLogger(ctx, "user-create", execute)


app.add_typer(userApp, name="user")
