from __future__ import annotations

import pytest

from rsconnector.config import (
    ClientConfig,
    Settings,
    config_from_env,
    loadSettings,
    settings_to_config,
    validate_config,
)
from rsconnector.errors import ConfigurationError

BASE = "https://dam.example.com/api/"
SECRET = "a" * 32


def make_config(**overrides) -> ClientConfig:
    values = {"base_url": BASE, "user": "admin", "secret": SECRET}
    values.update(overrides)
    return ClientConfig(**values)


@pytest.mark.parametrize(
    ("overrides", "fragment"),
    [
        ({"base_url": ""}, "base_url"),
        ({"user": ""}, "user"),
        ({"secret": ""}, "secret is required"),
        ({"secret": "a" * 31}, "at least 32"),
        ({"auth_mode": "basic"}, "auth_mode"),
        ({"timeout": 0}, "timeout"),
        ({"max_batch_size": 0}, "max_batch_size"),
    ],
)
def test_validate_config_rejects_invalid_values(overrides, fragment):
    with pytest.raises(ConfigurationError) as exc:
        validate_config(make_config(**overrides))

    assert fragment in str(exc.value)
    assert exc.value.code == "CONFIG_INVALID"


def test_validate_config_applies_defaults():
    config = validate_config(make_config(timeout=None, max_batch_size=None, signup_usergroup=None))

    assert config.timeout == 30.0
    assert config.max_batch_size == 100
    assert config.signup_usergroup == 9


def test_secret_is_hidden_from_repr():
    assert SECRET not in repr(make_config())


def test_config_from_env_returns_none_without_required_vars():
    assert config_from_env(environ={}) is None
    assert config_from_env(environ={"RESOURCESPACE_API_URL": BASE, "RESOURCESPACE_API_USER": "admin"}) is None


def test_config_from_env_reads_prefixed_variables():
    environ = {
        "RESOURCESPACE_API_URL": BASE,
        "RESOURCESPACE_USER": "admin",
        "RESOURCESPACE_SECRET": SECRET,
        "RESOURCESPACE_INTERNAL_URL": "http://rs:8080/api/",
        "RESOURCESPACE_AUTH_MODE": "sessionKey",
        "RESOURCESPACE_TIMEOUT": "5",
        "RESOURCESPACE_MAX_BATCH_SIZE": "10",
        "RESOURCESPACE_SIGNUP_USERGROUP": "4",
    }

    config = config_from_env(environ=environ)

    assert config is not None
    assert config.base_url == BASE
    assert config.user == "admin"
    assert config.secret == SECRET
    assert config.internal_url == "http://rs:8080/api/"
    assert config.auth_mode == "sessionKey"
    assert config.timeout == 5.0
    assert config.max_batch_size == 10
    assert config.signup_usergroup == 4


def test_config_from_env_custom_prefix_and_defaults():
    environ = {"DAM_URL": BASE, "DAM_API_USER": "admin", "DAM_API_KEY": SECRET, "DAM_TIMEOUT": "oops"}

    config = config_from_env("DAM", environ)

    assert config is not None
    assert config.auth_mode == "apiKey"
    assert config.timeout == 30.0


def test_load_settings_priority_cli_over_env_over_config(tmp_path):
    cfg = tmp_path / "config.yml"
    cfg.write_text(
        "\n".join(
            [
                'base_url: "https://cfg.example.com/api/"',
                'user: "cfg_user"',
                "max_batch_size: 20",
                "signup_usergroup: 3",
            ]
        ),
        encoding="utf-8",
    )
    environ = {"RESOURCESPACE_API_USER": "env_user", "RESOURCESPACE_MAX_BATCH_SIZE": "30"}

    loaded = loadSettings(str(cfg), {"user": "cli_user", "secret": SECRET, "base_url": None}, environ=environ)

    settings = loaded.settings
    assert settings.base_url == "https://cfg.example.com/api/"
    assert settings.user == "cli_user"
    assert settings.max_batch_size == 30
    assert settings.signup_usergroup == 3
    assert loaded.sources_used == ["config", "env", "cli"]


def test_load_settings_defaults_without_sources(tmp_path):
    loaded = loadSettings(str(tmp_path / "missing.yml"), {}, environ={})

    assert loaded.sources_used == []
    assert loaded.settings.timeout_seconds == 30.0
    assert loaded.settings.log_level == "INFO"


def test_settings_to_config_validates():
    loaded = loadSettings(None, {"base_url": BASE, "user": "admin"}, environ={})

    with pytest.raises(ConfigurationError):
        settings_to_config(loaded.settings)


@pytest.mark.parametrize(
    ("overrides", "fragment"),
    [
        ({"timeout_seconds": "30"}, "timeout must be a number"),
        ({"timeout_seconds": True}, "timeout must be a number"),
        ({"max_batch_size": "100"}, "max_batch_size must be an integer"),
        ({"max_batch_size": 10.5}, "max_batch_size must be an integer"),
        ({"signup_usergroup": "nine"}, "signup_usergroup must be an integer"),
    ],
)
def test_settings_with_wrong_types_raise_configuration_error(overrides, fragment):
    settings = Settings(base_url=BASE, user="admin", secret=SECRET, **overrides)

    with pytest.raises(ConfigurationError) as exc:
        settings_to_config(settings)

    assert fragment in str(exc.value)


def test_yaml_numbers_written_as_strings_are_parsed(tmp_path):
    cfg = tmp_path / "config.yml"
    cfg.write_text(
        "\n".join(['timeout_seconds: "12.5"', 'max_batch_size: "40"', 'signup_usergroup: "oops"']),
        encoding="utf-8",
    )

    settings = loadSettings(str(cfg), {"base_url": BASE, "user": "admin", "secret": SECRET}, environ={}).settings

    assert settings.timeout_seconds == 12.5
    assert settings.max_batch_size == 40
    with pytest.raises(ConfigurationError):
        settings_to_config(settings)
