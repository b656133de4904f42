"""Per-turn context and channel transport."""

from typing import Protocol

from .models import Reply, Turn


class IChannelTransport(Protocol):
    """Delivers replies back to the channel."""

    async def send(self, conversation_id: str, reply: Reply) -> None:
        """Send a reply to a conversation."""
        ...


class BufferedTransport:
    """Collects replies so the HTTP layer can return them with the response."""

    def __init__(self):
        self.replies: list[Reply] = []

    async def send(self, conversation_id: str, reply: Reply) -> None:
        self.replies.append(reply)


class TurnContext:
    """The turn being processed plus the means to answer it."""

    def __init__(self, turn: Turn, transport: IChannelTransport):
        self.turn = turn
        self._transport = transport
        self.responded = False

    async def send(self, reply: Reply) -> None:
        await self._transport.send(self.turn.conversation_id, reply)
        self.responded = True

    async def send_text(self, text: str) -> None:
        await self.send(Reply(text=text))
