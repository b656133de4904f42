"""Tests for configuration."""

from pathlib import Path

import pytest

from mailseeker.config import (
    DEFAULT_GRAPH_BASE_URL,
    PROJECT_ROOT,
    BotSettings,
    resolve_db_path,
)
from mailseeker.exceptions import ConfigurationError

ENV_VARS = [
    "OAUTH_CONNECTION_NAME",
    "TRUSTED_CHANNEL_ID",
    "INTENT_CONFIDENCE_THRESHOLD",
    "INTENT_NONE",
    "INTENT_HELLO",
    "INTENT_MAIL_GET",
    "LOGIN_TIMEOUT_SECONDS",
    "PASSCODE_PATTERN",
    "MAIL_PAGE_SIZE",
    "TOKEN_SERVICE_URL",
    "BOT_APP_TOKEN",
    "GRAPH_BASE_URL",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestBotSettings:
    """Tests for BotSettings."""

    def test_defaults(self):
        """Test the default policy constants."""
        settings = BotSettings(oauth_connection_name="graph")

        assert settings.trusted_channel_id == "msteams"
        assert settings.intent_confidence_threshold == 0.95
        assert settings.login_timeout_seconds == 300
        assert settings.mail_page_size == 100
        assert settings.graph_base_url == DEFAULT_GRAPH_BASE_URL
        assert (settings.intent_none, settings.intent_hello, settings.intent_mail_get) == (
            "None",
            "General_Hello",
            "Mail_Get",
        )

    def test_connection_name_required(self):
        """Test that an empty connection name is a configuration error."""
        with pytest.raises(ConfigurationError):
            BotSettings(oauth_connection_name="")

    def test_threshold_range(self):
        """Test that the threshold must be a probability."""
        with pytest.raises(ConfigurationError):
            BotSettings(oauth_connection_name="graph", intent_confidence_threshold=1.5)

    def test_from_env(self, clean_env):
        """Test reading settings from the environment."""
        clean_env.setenv("OAUTH_CONNECTION_NAME", "outlook")
        clean_env.setenv("INTENT_CONFIDENCE_THRESHOLD", "0.8")
        clean_env.setenv("MAIL_PAGE_SIZE", "25")
        clean_env.setenv("BOT_APP_TOKEN", "secret")

        settings = BotSettings.from_env()

        assert settings.oauth_connection_name == "outlook"
        assert settings.intent_confidence_threshold == 0.8
        assert settings.mail_page_size == 25
        assert settings.bot_app_token == "secret"
        assert settings.trusted_channel_id == "msteams"

    def test_intent_tags_from_env(self, clean_env):
        """Test that intent names are read from the environment."""
        clean_env.setenv("OAUTH_CONNECTION_NAME", "outlook")
        clean_env.setenv("INTENT_HELLO", "Saludo")
        clean_env.setenv("INTENT_MAIL_GET", "BuscarCorreo")

        settings = BotSettings.from_env()

        assert settings.intent_hello == "Saludo"
        assert settings.intent_mail_get == "BuscarCorreo"
        assert settings.intent_none == "None"

    def test_empty_intent_tag(self):
        """Test that an empty intent name is a configuration error."""
        with pytest.raises(ConfigurationError):
            BotSettings(oauth_connection_name="graph", intent_hello="")

    def test_from_env_missing_connection(self, clean_env):
        """Test that startup fails without a connection name."""
        with pytest.raises(ConfigurationError):
            BotSettings.from_env()

    def test_from_env_bad_number(self, clean_env):
        """Test that a non-numeric setting is a configuration error."""
        clean_env.setenv("OAUTH_CONNECTION_NAME", "outlook")
        clean_env.setenv("LOGIN_TIMEOUT_SECONDS", "cinco")

        with pytest.raises(ConfigurationError):
            BotSettings.from_env()


class TestResolveDbPath:
    """Tests for resolve_db_path."""

    def test_memory(self):
        """Test that the in-memory database is passed through."""
        assert resolve_db_path(":memory:") == ":memory:"

    def test_relative_path(self):
        """Test that relative paths are anchored at the project root."""
        assert resolve_db_path("03_data/test.db") == PROJECT_ROOT / "03_data/test.db"

    def test_absolute_path(self, tmp_path):
        """Test that absolute paths are kept."""
        db = tmp_path / "bot.db"
        assert resolve_db_path(str(db)) == Path(db)
