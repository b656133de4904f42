"""MailSeeker bot core."""

from .app import Application, IApplication
from .auth import IAuthProvider, LoginPrompt, TokenServiceAuthProvider
from .config import BotSettings
from .dialogs import DialogSet, GraphDialog, OAuthPrompt, WaterfallDialog
from .dispatcher import TurnDispatcher
from .exceptions import (
    CollaboratorError,
    ConfigurationError,
    MailSeekerError,
    UntrustedChannelError,
)
from .llm import ILLMProvider, LLMProvider
from .mail import GraphMailProvider, IMailProvider, MailSearch
from .models import (
    AuthResult,
    ChannelAccount,
    IntentResult,
    MailFilter,
    MailMessage,
    Reply,
    Turn,
    TurnType,
)
from .nlu import IIntentClassifier, LLMIntentClassifier
from .routing import IntentRouter
from .state import BotStateAccessors, ConversationStateStore
from .storage import IStorage, Storage
from .tracker import ITracker, Tracker
from .turns import BufferedTransport, IChannelTransport, TurnContext

__all__ = [
    # Application
    "Application",
    "IApplication",
    "BotSettings",
    # Models
    "Turn",
    "TurnType",
    "ChannelAccount",
    "Reply",
    "AuthResult",
    "IntentResult",
    "MailFilter",
    "MailMessage",
    # Errors
    "MailSeekerError",
    "ConfigurationError",
    "CollaboratorError",
    "UntrustedChannelError",
    # Components
    "IStorage",
    "Storage",
    "ITracker",
    "Tracker",
    "ConversationStateStore",
    "BotStateAccessors",
    "IChannelTransport",
    "BufferedTransport",
    "TurnContext",
    "DialogSet",
    "WaterfallDialog",
    "GraphDialog",
    "OAuthPrompt",
    "TurnDispatcher",
    "IntentRouter",
    "IAuthProvider",
    "LoginPrompt",
    "TokenServiceAuthProvider",
    "ILLMProvider",
    "LLMProvider",
    "IIntentClassifier",
    "LLMIntentClassifier",
    "IMailProvider",
    "GraphMailProvider",
    "MailSearch",
]
