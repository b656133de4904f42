"""Results returned by the auth and intent collaborators."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class AuthResult:
    """Outcome of a login attempt: a bearer token or nothing."""

    token: str | None = None
    connection_name: str | None = None

    @property
    def succeeded(self) -> bool:
        return bool(self.token)

    @classmethod
    def failed(cls) -> "AuthResult":
        return cls(token=None)


@dataclass(frozen=True)
class IntentResult:
    """Top-scoring intent of an utterance."""

    intent: str
    confidence: float
    entities: dict[str, Any] = field(default_factory=dict)
