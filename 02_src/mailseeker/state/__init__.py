"""State module."""

from .store import (
    BotStateAccessors,
    ConversationStateStore,
    StatePropertyAccessor,
    TurnState,
)

__all__ = [
    "BotStateAccessors",
    "ConversationStateStore",
    "StatePropertyAccessor",
    "TurnState",
]
