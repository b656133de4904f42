"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from mailseeker.auth import LoginPrompt  # noqa: E402
from mailseeker.models import (  # noqa: E402
    AuthResult,
    ChannelAccount,
    EmailAddress,
    MailMessage,
    Reply,
    SigninCard,
    Turn,
    TurnType,
)

BOT = ChannelAccount(id="bot-1", name="MailSeekerBot")
USER = ChannelAccount(id="user-1", name="Pepe")


class FakeAuthProvider:
    """In-memory identity provider.

    A user becomes signed in when a `tokens/response` event or a six-digit
    passcode message arrives; `begin_login` then hands out the token.
    """

    def __init__(self, token: str = "graph-token", signed_in: bool = False):
        self.token = token
        self.signed_in = signed_in
        self.begin_calls = 0
        self.sign_out_calls = 0

    async def begin_login(self, turn: Turn) -> LoginPrompt:
        self.begin_calls += 1
        if self.signed_in:
            return LoginPrompt(result=AuthResult(token=self.token))
        card = SigninCard(text="Por favor, inicia sesión", title="Login", url="https://login")
        return LoginPrompt(card=Reply(attachments=[card.to_attachment()]))

    async def complete_login(self, turn: Turn) -> AuthResult | None:
        if turn.type == TurnType.EVENT and turn.name == "tokens/response":
            token = (turn.value or {}).get("token")
            self.signed_in = bool(token)
            return AuthResult(token=token)
        if turn.type == TurnType.MESSAGE and turn.text.strip().isdigit() and len(turn.text.strip()) == 6:
            self.signed_in = True
            return AuthResult(token=self.token)
        return None

    async def sign_out(self, turn: Turn) -> None:
        self.sign_out_calls += 1
        self.signed_in = False


def make_turn(
    turn_type: TurnType = TurnType.MESSAGE,
    text: str = "",
    channel_id: str = "msteams",
    conversation_id: str = "conv-1",
    sender: ChannelAccount = USER,
    **kwargs,
) -> Turn:
    """Build a turn addressed to the bot."""
    return Turn(
        type=turn_type,
        text=text,
        channel_id=channel_id,
        conversation_id=conversation_id,
        sender=sender,
        recipient=BOT,
        **kwargs,
    )


def token_event(token: str | None = "graph-token", **kwargs) -> Turn:
    """The event a channel sends once the user finished signing in."""
    return make_turn(
        TurnType.EVENT,
        name="tokens/response",
        value={"token": token, "connectionName": "graph"},
        **kwargs,
    )


def mail(subject: str, name: str, address: str, msg_id: str | None = None) -> MailMessage:
    return MailMessage(
        id=msg_id or f"{name}-{subject}",
        subject=subject,
        sender=EmailAddress(name=name, address=address),
        body_preview=f"Preview of {subject}",
        web_link=f"https://outlook.office.com/mail/{msg_id or subject}",
    )


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from mailseeker.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def tracker(storage):
    """Create Tracker with storage."""
    from mailseeker.tracker import Tracker

    return Tracker(storage)


@pytest.fixture
def state_store(storage):
    """Create ConversationStateStore over storage."""
    from mailseeker.state import ConversationStateStore

    return ConversationStateStore(storage)


@pytest.fixture
def accessors(state_store):
    """Create the bot's state accessors."""
    from mailseeker.state import BotStateAccessors

    return BotStateAccessors("graph", state_store)


@pytest.fixture
def settings():
    """Bot settings used by tests."""
    from mailseeker.config import BotSettings

    return BotSettings(oauth_connection_name="graph")


@pytest.fixture
def auth_provider():
    """Identity provider with no signed-in user."""
    return FakeAuthProvider()


@pytest.fixture
def mock_classifier():
    """Create mock intent classifier (returns nothing recognized)."""
    classifier = Mock()
    classifier.classify = AsyncMock(return_value=None)
    return classifier


@pytest.fixture
def inbox():
    """Three inbox messages, newest first."""
    return [
        mail("Reunión del lunes", "Luis Pérez", "luis@contoso.com", "m1"),
        mail("Factura de octubre", "Ana García", "ana@contoso.com", "m2"),
        mail("Re: presupuesto", "Marta Ruiz", "marta@contoso.com", "m3"),
    ]


@pytest.fixture
def mock_mail(inbox):
    """Create mock mail provider returning the inbox."""
    provider = Mock()
    provider.search = AsyncMock(return_value=inbox)
    return provider


@pytest.fixture
def mock_llm():
    """Create mock LLM provider."""
    llm = Mock()
    llm.complete = AsyncMock(return_value="Test response")
    return llm


@pytest.fixture
def router(mock_mail, tracker, settings):
    """Create IntentRouter with the mocked mail provider."""
    from mailseeker.mail import MailSearch
    from mailseeker.routing import IntentRouter

    return IntentRouter(
        mail_search=MailSearch(mock_mail, tracker, page_size=settings.mail_page_size),
        tracker=tracker,
        confidence_threshold=settings.intent_confidence_threshold,
    )


@pytest.fixture
def dispatcher(settings, accessors, auth_provider, mock_classifier, router, tracker):
    """Create TurnDispatcher wired to fakes."""
    from mailseeker.dispatcher import TurnDispatcher

    return TurnDispatcher(
        settings=settings,
        accessors=accessors,
        auth_provider=auth_provider,
        classifier=mock_classifier,
        router=router,
        tracker=tracker,
    )


@pytest.fixture
def run_turn(dispatcher):
    """Process a turn with a fresh transport; returns the texts and replies."""
    from mailseeker.turns import BufferedTransport, TurnContext

    async def _run(turn: Turn) -> list[Reply]:
        transport = BufferedTransport()
        await dispatcher.on_turn(TurnContext(turn, transport))
        return transport.replies

    return _run
