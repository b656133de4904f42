"""Core data models for MailSeeker."""

from .dialog import DialogFrame, DialogStackState
from .mail import EmailAddress, MailFilter, MailMessage
from .results import AuthResult, IntentResult
from .tracing import TraceEvent
from .turns import (
    AttachmentLayout,
    CardAction,
    CardImage,
    ChannelAccount,
    HeroCard,
    Reply,
    SigninCard,
    Turn,
    TurnType,
)

__all__ = [
    # Turns
    "Turn",
    "TurnType",
    "ChannelAccount",
    "Reply",
    "AttachmentLayout",
    "HeroCard",
    "SigninCard",
    "CardAction",
    "CardImage",
    # Mail
    "EmailAddress",
    "MailFilter",
    "MailMessage",
    # Collaborator results
    "AuthResult",
    "IntentResult",
    # Dialog
    "DialogFrame",
    "DialogStackState",
    # Tracing
    "TraceEvent",
]
