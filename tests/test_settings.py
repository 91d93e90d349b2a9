"""
Tests for environment-driven settings.
"""

import importlib

import pytest

import config.settings as settings


@pytest.fixture
def env_dir(tmp_path, monkeypatch):
    """Working directory with its own .env; settings are reloaded from the real environment afterwards."""
    monkeypatch.chdir(tmp_path)
    # registered so that values written by load_dotenv are removed on undo
    monkeypatch.setenv("INVOICE_MODEL", "placeholder")
    monkeypatch.delenv("INVOICE_MODEL")
    yield tmp_path
    monkeypatch.undo()
    importlib.reload(settings)


class TestDotenv:
    def test_model_read_from_env_file(self, env_dir):
        (env_dir / ".env").write_text("INVOICE_MODEL=gpt-from-dotenv\n")
        importlib.reload(settings)
        assert settings.DEFAULT_MODEL == "gpt-from-dotenv"

    def test_process_environment_wins(self, env_dir, monkeypatch):
        (env_dir / ".env").write_text("INVOICE_MODEL=gpt-from-dotenv\n")
        monkeypatch.setenv("INVOICE_MODEL", "gpt-from-shell")
        importlib.reload(settings)
        assert settings.DEFAULT_MODEL == "gpt-from-shell"

    def test_default_model_without_env_file(self, env_dir):
        importlib.reload(settings)
        assert settings.DEFAULT_MODEL == "gpt-4o-mini"
