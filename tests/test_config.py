"""Tests for settings loading and validation."""

import pytest
from pydantic import ValidationError

from tailmesh.config import (
    DEFAULT_OUTPUT_LIMIT_BYTES,
    DEFAULT_TAILSCALE_PATH,
    FALLBACK_TAILSCALE_PATH,
    Settings,
    get_settings,
)


def test_defaults(monkeypatch):
    for name in (
        "TAILMESH_TAILSCALE_PATH",
        "TAILMESH_TAILSCALE_FALLBACK_PATH",
        "TAILMESH_OUTPUT_LIMIT_BYTES",
        "TAILMESH_COMMAND_TIMEOUT_SECONDS",
        "TAILMESH_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.tailscale_path == DEFAULT_TAILSCALE_PATH == "/usr/bin/tailscale"
    assert settings.tailscale_fallback_path == FALLBACK_TAILSCALE_PATH == "/usr/local/bin/tailscale"
    assert settings.output_limit_bytes == DEFAULT_OUTPUT_LIMIT_BYTES == 1_048_576
    assert settings.timeout == 30.0
    assert settings.log_level == "INFO"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("TAILMESH_TAILSCALE_PATH", "/opt/tailscale/bin/tailscale")
    monkeypatch.setenv("TAILMESH_OUTPUT_LIMIT_BYTES", "2048")
    monkeypatch.setenv("TAILMESH_LOG_LEVEL", "debug")

    settings = Settings()

    assert settings.tailscale_path == "/opt/tailscale/bin/tailscale"
    assert settings.output_limit_bytes == 2048
    assert settings.log_level == "DEBUG"


def test_zero_timeout_disables_timeout():
    assert Settings(command_timeout_seconds=0).timeout is None
    assert Settings(command_timeout_seconds=None).timeout is None


@pytest.mark.parametrize(
    "overrides",
    [
        {"output_limit_bytes": 0},
        {"command_timeout_seconds": -1},
        {"tailscale_path": "  "},
        {"log_level": "chatty"},
    ],
)
def test_invalid_settings_are_rejected(overrides):
    with pytest.raises(ValidationError):
        Settings(**overrides)


def test_get_settings_is_cached():
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()


def test_dotenv_in_working_directory_is_ignored(monkeypatch, tmp_path):
    monkeypatch.delenv("TAILMESH_LOG_LEVEL", raising=False)
    monkeypatch.delenv("TAILMESH_TAILSCALE_PATH", raising=False)
    (tmp_path / ".env").write_text(
        "TAILMESH_LOG_LEVEL=chatty\nTAILMESH_TAILSCALE_PATH=/from/dotenv\n"
    )
    monkeypatch.chdir(tmp_path)

    settings = Settings()

    assert settings.log_level == "INFO"
    assert settings.tailscale_path == DEFAULT_TAILSCALE_PATH


def test_empty_fallback_path_is_accepted(monkeypatch):
    monkeypatch.setenv("TAILMESH_TAILSCALE_FALLBACK_PATH", "")

    assert Settings().tailscale_fallback_path == ""
