"""Dialog module."""

from .graph_dialog import GRAPH_DIALOG_ID, GraphDialog
from .prompts import LOGIN_PROMPT_ID, OAuthPrompt
from .stack import (
    DialogContext,
    DialogSet,
    DialogTurnResult,
    DialogTurnStatus,
    IPrompt,
    WaterfallDialog,
    WaterfallStepContext,
)

__all__ = [
    "GRAPH_DIALOG_ID",
    "GraphDialog",
    "LOGIN_PROMPT_ID",
    "OAuthPrompt",
    "DialogContext",
    "DialogSet",
    "DialogTurnResult",
    "DialogTurnStatus",
    "IPrompt",
    "WaterfallDialog",
    "WaterfallStepContext",
]
