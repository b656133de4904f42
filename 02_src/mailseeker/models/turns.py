"""Turn and reply data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TurnType(str, Enum):
    """Kinds of inbound activity delivered by the channel."""

    MESSAGE = "message"
    EVENT = "event"
    INVOKE = "invoke"
    CONVERSATION_UPDATE = "conversationUpdate"


class AttachmentLayout(str, Enum):
    """How a reply's attachments are laid out by the channel."""

    LIST = "list"
    CAROUSEL = "carousel"


@dataclass
class ChannelAccount:
    """A participant (user or bot) on a channel."""

    id: str
    name: str = ""


@dataclass
class Turn:
    """One inbound event for a conversation. Lives only for one turn."""

    type: TurnType
    channel_id: str
    conversation_id: str
    sender: ChannelAccount
    recipient: ChannelAccount
    text: str = ""
    id: str | None = None
    name: str | None = None  # event/invoke name, e.g. "tokens/response"
    value: dict[str, Any] | None = None
    members_added: list[ChannelAccount] = field(default_factory=list)


@dataclass
class CardImage:
    """Image shown on a card."""

    url: str
    alt: str = ""


@dataclass
class CardAction:
    """Button on a card."""

    type: str  # "openUrl", "signin"
    title: str
    value: str


@dataclass
class HeroCard:
    """Card with a title, subtitle, text, images and buttons."""

    title: str
    subtitle: str = ""
    text: str = ""
    images: list[CardImage] = field(default_factory=list)
    buttons: list[CardAction] = field(default_factory=list)

    content_type = "application/vnd.microsoft.card.hero"

    def to_attachment(self) -> dict:
        return {
            "contentType": self.content_type,
            "content": {
                "title": self.title,
                "subtitle": self.subtitle,
                "text": self.text,
                "images": [{"url": i.url, "alt": i.alt} for i in self.images],
                "buttons": [
                    {"type": b.type, "title": b.title, "value": b.value}
                    for b in self.buttons
                ],
            },
        }


@dataclass
class SigninCard:
    """Card asking the user to sign in."""

    text: str
    title: str
    url: str

    content_type = "application/vnd.microsoft.card.signin"

    def to_attachment(self) -> dict:
        return {
            "contentType": self.content_type,
            "content": {
                "text": self.text,
                "buttons": [{"type": "signin", "title": self.title, "value": self.url}],
            },
        }


@dataclass
class Reply:
    """Outbound activity sent to the conversation."""

    text: str | None = None
    attachments: list[dict] = field(default_factory=list)
    attachment_layout: AttachmentLayout = AttachmentLayout.LIST

    def to_dict(self) -> dict:
        return {
            "type": "message",
            "text": self.text,
            "attachments": self.attachments,
            "attachmentLayout": self.attachment_layout.value,
        }
