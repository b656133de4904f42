"""Messaging API routes."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from fastapi import APIRouter, HTTPException

from ...app import IApplication
from ...exceptions import UntrustedChannelError
from ...logging_config import get_logger
from ...models import ChannelAccount, Turn, TurnType

logger = get_logger(__name__)


class ChannelAccountModel(BaseModel):
    """A participant on the channel."""

    id: str
    name: str = ""


class ConversationModel(BaseModel):
    """Conversation reference."""

    id: str


class ActivityRequest(BaseModel):
    """Inbound activity as delivered by the channel."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    id: str | None = None
    channel_id: str = Field(alias="channelId")
    conversation: ConversationModel
    sender: ChannelAccountModel = Field(alias="from")
    recipient: ChannelAccountModel
    text: str | None = None
    name: str | None = None
    value: dict[str, Any] | None = None
    members_added: list[ChannelAccountModel] = Field(
        default_factory=list, alias="membersAdded"
    )

    def to_turn(self, turn_type: TurnType) -> Turn:
        return Turn(
            id=self.id,
            type=turn_type,
            channel_id=self.channel_id,
            conversation_id=self.conversation.id,
            sender=ChannelAccount(id=self.sender.id, name=self.sender.name),
            recipient=ChannelAccount(id=self.recipient.id, name=self.recipient.name),
            text=self.text or "",
            name=self.name,
            value=self.value,
            members_added=[
                ChannelAccount(id=m.id, name=m.name) for m in self.members_added
            ],
        )


class TurnResponse(BaseModel):
    """Replies produced by the turn."""

    replies: list[dict[str, Any]]


def create_messaging_router(app: IApplication) -> APIRouter:
    """Create messaging router."""
    router = APIRouter(prefix="/api", tags=["messaging"])

    @router.post("/messages", response_model=TurnResponse)
    async def post_activity(request: ActivityRequest) -> dict:
        """Process one turn for the bot."""
        try:
            turn_type = TurnType(request.type)
        except ValueError:
            logger.debug("Ignoring activity of type %s", request.type)
            return {"replies": []}

        try:
            replies = await app.handle_turn(request.to_turn(turn_type))
            return {"replies": [reply.to_dict() for reply in replies]}
        except UntrustedChannelError as e:
            logger.error("Rejected turn: %s", e)
            raise HTTPException(status_code=500, detail="Internal error")
        except Exception as e:
            logger.error("Turn failed: %s", e, exc_info=True)
            raise HTTPException(status_code=500, detail=str(e))

    return router
