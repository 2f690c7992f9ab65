"""Tests for config module."""

import importlib
from pathlib import Path

import dotenv
import pytest

import cadence_bot.config as config_mod


@pytest.fixture(autouse=True)
def _restore_config(monkeypatch):
    yield
    monkeypatch.undo()
    importlib.reload(config_mod)


def test_missing_token_exits(monkeypatch):
    monkeypatch.delenv("DISCORD_TOKEN", raising=False)
    monkeypatch.setattr(dotenv, "load_dotenv", lambda: None)

    with pytest.raises(SystemExit):
        importlib.reload(config_mod)


def test_valid_config_loads(monkeypatch, tmp_path):
    monkeypatch.setenv("DISCORD_TOKEN", "abc")
    monkeypatch.setenv("CADENCE_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("CADENCE_TIMEZONE", "Europe/Moscow")
    monkeypatch.setenv("CADENCE_HEALTH_PORT", "8080")
    monkeypatch.setenv("CADENCE_LOG_LEVEL", "debug")
    monkeypatch.setenv("CADENCE_OWNER_ONLY", "1")

    importlib.reload(config_mod)

    assert config_mod.DISCORD_TOKEN == "abc"
    assert config_mod.DATA_DIR == tmp_path
    assert config_mod.TZ.key == "Europe/Moscow"
    assert config_mod.HEALTH_PORT == 8080
    assert config_mod.LOG_LEVEL == "DEBUG"
    assert config_mod.OWNER_ONLY is True


def test_defaults(monkeypatch):
    monkeypatch.setenv("DISCORD_TOKEN", "abc")
    for var in (
        "CADENCE_DATA_DIR",
        "CADENCE_HEALTH_PORT",
        "CADENCE_OWNER_ONLY",
        "CADENCE_LOG_LEVEL",
        "SUPABASE_URL",
        "SUPABASE_KEY",
    ):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(dotenv, "load_dotenv", lambda: None)

    importlib.reload(config_mod)

    assert config_mod.DATA_DIR == Path.home() / ".cadence-bot"
    assert config_mod.HEALTH_PORT is None
    assert config_mod.LOG_LEVEL == "INFO"
    assert config_mod.OWNER_ONLY is False
    assert config_mod.SUPABASE_URL is None
