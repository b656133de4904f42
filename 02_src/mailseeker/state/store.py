"""Conversation- and user-scoped state persisted between turns."""

import copy
import json
from typing import Any, Literal

from ..exceptions import ConfigurationError
from ..logging_config import get_logger
from ..models import Turn
from ..storage import IStorage

logger = get_logger(__name__)

Scope = Literal["conversation", "user"]


class ConversationStateStore:
    """Key/value store over IStorage, partitioned per conversation and user.

    Nothing is cached in process: every turn reads its bags from storage
    and writes them back before it returns.
    """

    def __init__(self, storage: IStorage):
        if storage is None:
            raise ConfigurationError("storage is required")
        self._storage = storage

    @staticmethod
    def conversation_key(turn: Turn) -> str:
        if not turn.channel_id or not turn.conversation_id:
            raise ConfigurationError("turn needs channel_id and conversation_id")
        return f"{turn.channel_id}/conversations/{turn.conversation_id}"

    @staticmethod
    def user_key(turn: Turn) -> str:
        if not turn.channel_id or not turn.sender.id:
            raise ConfigurationError("turn needs channel_id and a sender id")
        return f"{turn.channel_id}/users/{turn.sender.id}"

    async def get(self, key: str) -> dict[str, Any] | None:
        return await self._storage.get_state(key)

    async def set(self, key: str, value: dict[str, Any]) -> None:
        await self._storage.save_state(key, value)

    async def delete(self, key: str) -> None:
        await self._storage.delete_state(key)

    async def load(self, turn: Turn) -> "TurnState":
        """Read the conversation and user bags the turn operates on."""
        conversation_key = self.conversation_key(turn)
        user_key = self.user_key(turn)
        return TurnState(
            storage=self._storage,
            conversation_key=conversation_key,
            conversation=await self.get(conversation_key),
            user_key=user_key,
            user=await self.get(user_key),
        )


class TurnState:
    """State bags of one turn with change tracking."""

    def __init__(
        self,
        storage: IStorage,
        conversation_key: str,
        conversation: dict[str, Any] | None,
        user_key: str,
        user: dict[str, Any] | None,
    ):
        self._storage = storage
        self._keys: dict[Scope, str] = {
            "conversation": conversation_key,
            "user": user_key,
        }
        self._bags: dict[Scope, dict[str, Any]] = {
            "conversation": copy.deepcopy(conversation) if conversation else {},
            "user": copy.deepcopy(user) if user else {},
        }
        self._snapshots: dict[Scope, str | None] = {
            "conversation": _snapshot(conversation),
            "user": _snapshot(user),
        }

    def bag(self, scope: Scope) -> dict[str, Any]:
        return self._bags[scope]

    @property
    def conversation(self) -> dict[str, Any]:
        return self._bags["conversation"]

    @property
    def user(self) -> dict[str, Any]:
        return self._bags["user"]

    def changes(self) -> dict[str, dict[str, Any] | None]:
        """Storage writes needed to persist this turn (None deletes)."""
        changes: dict[str, dict[str, Any] | None] = {}
        for scope, bag in self._bags.items():
            current = _snapshot(bag)
            if current == self._snapshots[scope]:
                continue
            changes[self._keys[scope]] = copy.deepcopy(bag) if bag else None
        return changes

    async def save_changes(self) -> None:
        """Flush both bags in one transaction; no-op when nothing changed."""
        changes = self.changes()
        if not changes:
            return

        await self._storage.save_states(changes)
        for scope, bag in self._bags.items():
            self._snapshots[scope] = _snapshot(bag)
        logger.debug("Flushed state keys: %s", ", ".join(changes))


class StatePropertyAccessor:
    """Named property inside one scope of a TurnState."""

    def __init__(self, scope: Scope, name: str):
        self.scope = scope
        self.name = name

    def get(self, state: TurnState, default: Any = None) -> Any:
        return state.bag(self.scope).get(self.name, default)

    def set(self, state: TurnState, value: Any) -> None:
        state.bag(self.scope)[self.name] = value

    def delete(self, state: TurnState) -> None:
        state.bag(self.scope).pop(self.name, None)


class BotStateAccessors:
    """State properties used by the bot."""

    DIALOG_STATE_NAME = "MailSeekerBotAccessors.DialogState"
    COMMAND_STATE_NAME = "MailSeekerBotAccessors.CommandState"

    def __init__(self, connection_name: str, state_store: ConversationStateStore):
        if not connection_name:
            raise ConfigurationError("connection_name is required")
        if state_store is None:
            raise ConfigurationError("state_store is required")

        self.connection_name = connection_name
        self.state_store = state_store
        self.dialog_state = StatePropertyAccessor(
            "conversation", self.DIALOG_STATE_NAME
        )
        self.command_state = StatePropertyAccessor("user", self.COMMAND_STATE_NAME)


def _snapshot(bag: dict[str, Any] | None) -> str | None:
    if not bag:
        return None
    return json.dumps(bag, sort_keys=True, ensure_ascii=False)
