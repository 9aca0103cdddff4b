"""Tests for environment-driven settings."""

from pathlib import Path

import pytest

from invoice_builder import config

ENV_VARS = (
    "NOTION_API_KEY",
    "NOTION_CLIENTS_DB",
    "NOTION_INVOICES_DB",
    "INVOICER_DATA_DIR",
    "INVOICER_LOG_LEVEL",
    "INVOICER_HTTP_TIMEOUT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the tests
    monkeypatch.setattr(config, "load_dotenv", lambda *a, **kw: False)


def test_defaults():
    settings = config.load_settings()
    assert settings.notion_enabled is False
    assert settings.data_dir == config.DEFAULT_DATA_DIR
    assert settings.log_level == "INFO"
    assert settings.http_timeout == 30


def test_notion_enabled_needs_all_three(monkeypatch):
    monkeypatch.setenv("NOTION_API_KEY", "secret")
    monkeypatch.setenv("NOTION_CLIENTS_DB", "clients")
    assert config.load_settings().notion_enabled is False
    monkeypatch.setenv("NOTION_INVOICES_DB", "invoices")
    assert config.load_settings().notion_enabled is True


def test_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("INVOICER_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("INVOICER_LOG_LEVEL", "debug")
    monkeypatch.setenv("INVOICER_HTTP_TIMEOUT", "5")
    settings = config.load_settings()
    assert settings.data_dir == Path(tmp_path)
    assert settings.log_level == "DEBUG"
    assert settings.http_timeout == 5


@pytest.mark.parametrize("raw", ["soon", "0", "-3"])
def test_bad_timeout_falls_back(monkeypatch, raw):
    monkeypatch.setenv("INVOICER_HTTP_TIMEOUT", raw)
    assert config.load_settings().http_timeout == 30
