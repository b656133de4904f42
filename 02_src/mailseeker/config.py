"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .exceptions import ConfigurationError

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "mailseeker.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"

DEFAULT_TOKEN_SERVICE_URL = "https://api.botframework.com"
DEFAULT_GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        DATA_DIR.mkdir(parents=True, exist_ok=True)
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


@dataclass(frozen=True)
class BotSettings:
    """Policy constants and collaborator endpoints."""

    oauth_connection_name: str
    trusted_channel_id: str = "msteams"
    intent_confidence_threshold: float = 0.95
    intent_none: str = "None"
    intent_hello: str = "General_Hello"
    intent_mail_get: str = "Mail_Get"
    login_timeout_seconds: int = 300
    passcode_pattern: str = r"^\d{6}$"
    mail_page_size: int = 100
    token_service_url: str = DEFAULT_TOKEN_SERVICE_URL
    bot_app_token: str | None = None
    graph_base_url: str = DEFAULT_GRAPH_BASE_URL

    def __post_init__(self) -> None:
        if not self.oauth_connection_name:
            raise ConfigurationError("OAUTH_CONNECTION_NAME is required")
        if not 0.0 <= self.intent_confidence_threshold <= 1.0:
            raise ConfigurationError(
                "INTENT_CONFIDENCE_THRESHOLD must be between 0 and 1"
            )
        if not (self.intent_none and self.intent_hello and self.intent_mail_get):
            raise ConfigurationError("Intent tags must not be empty")

    @classmethod
    def from_env(cls) -> "BotSettings":
        """Build settings from environment variables."""
        try:
            threshold = float(os.getenv("INTENT_CONFIDENCE_THRESHOLD", "0.95"))
            login_timeout = int(os.getenv("LOGIN_TIMEOUT_SECONDS", "300"))
            page_size = int(os.getenv("MAIL_PAGE_SIZE", "100"))
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        return cls(
            oauth_connection_name=os.getenv("OAUTH_CONNECTION_NAME", ""),
            trusted_channel_id=os.getenv("TRUSTED_CHANNEL_ID", "msteams"),
            intent_confidence_threshold=threshold,
            intent_none=os.getenv("INTENT_NONE", "None"),
            intent_hello=os.getenv("INTENT_HELLO", "General_Hello"),
            intent_mail_get=os.getenv("INTENT_MAIL_GET", "Mail_Get"),
            login_timeout_seconds=login_timeout,
            passcode_pattern=os.getenv("PASSCODE_PATTERN", r"^\d{6}$"),
            mail_page_size=page_size,
            token_service_url=os.getenv("TOKEN_SERVICE_URL", DEFAULT_TOKEN_SERVICE_URL),
            bot_app_token=os.getenv("BOT_APP_TOKEN") or None,
            graph_base_url=os.getenv("GRAPH_BASE_URL", DEFAULT_GRAPH_BASE_URL),
        )
