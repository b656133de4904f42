"""Application bootstrap and lifecycle management."""

import asyncio
import os
from typing import Protocol

from .auth import IAuthProvider, TokenServiceAuthProvider
from .config import BotSettings, resolve_db_path
from .dispatcher import TurnDispatcher
from .llm import ILLMProvider, LLMProvider
from .logging_config import get_logger
from .mail import GraphMailProvider, IMailProvider, MailSearch
from .models import Reply, Turn
from .nlu import IIntentClassifier, IntentTags, LLMIntentClassifier
from .routing import IntentRouter
from .state import BotStateAccessors, ConversationStateStore
from .storage import IStorage, Storage
from .tracker import ITracker, Tracker
from .turns import BufferedTransport, TurnContext

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...

    async def handle_turn(self, turn: Turn) -> list[Reply]:
        """Process one inbound turn and return the replies it produced."""
        ...


class Application:
    """Main application bootstrap.

    Collaborators can be injected; whatever is not injected is built from
    settings when the application starts.
    """

    def __init__(
        self,
        db_path: str | None = None,
        settings: BotSettings | None = None,
        auth_provider: IAuthProvider | None = None,
        classifier: IIntentClassifier | None = None,
        mail_provider: IMailProvider | None = None,
        llm_provider: ILLMProvider | None = None,
    ):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        self._settings = settings

        self._auth = auth_provider
        self._classifier = classifier
        self._mail = mail_provider
        self._llm = llm_provider

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._tracker: ITracker | None = None
        self._state_store: ConversationStateStore | None = None
        self._dispatcher: TurnDispatcher | None = None
        self._owned_clients: list = []

        # Turns of one conversation are processed one at a time; a lock lives
        # only while some turn holds or waits on it
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        if self._settings is None:
            self._settings = BotSettings.from_env()
        settings = self._settings

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. Tracker and state store (depend on Storage)
        self._tracker = Tracker(self._storage)
        self._state_store = ConversationStateStore(self._storage)
        accessors = BotStateAccessors(settings.oauth_connection_name, self._state_store)

        # 3. External collaborators
        if self._auth is None:
            self._auth = TokenServiceAuthProvider(
                connection_name=settings.oauth_connection_name,
                base_url=settings.token_service_url,
                app_token=settings.bot_app_token,
                passcode_pattern=settings.passcode_pattern,
            )
            self._owned_clients.append(self._auth)
        tags = IntentTags(
            none=settings.intent_none,
            hello=settings.intent_hello,
            mail_get=settings.intent_mail_get,
        )
        if self._classifier is None:
            if self._llm is None:
                self._llm = LLMProvider()
            self._classifier = LLMIntentClassifier(self._llm, tags=tags)
        if self._mail is None:
            self._mail = GraphMailProvider(base_url=settings.graph_base_url)
            self._owned_clients.append(self._mail)
        logger.info("Collaborators initialized")

        # 4. Routing and dialogs
        router = IntentRouter(
            mail_search=MailSearch(
                self._mail, self._tracker, page_size=settings.mail_page_size
            ),
            tracker=self._tracker,
            confidence_threshold=settings.intent_confidence_threshold,
            tags=tags,
        )
        self._dispatcher = TurnDispatcher(
            settings=settings,
            accessors=accessors,
            auth_provider=self._auth,
            classifier=self._classifier,
            router=router,
            tracker=self._tracker,
        )
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        for client in self._owned_clients:
            await client.aclose()
        self._owned_clients.clear()
        self._dispatcher = None
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Reset data between test runs."""
        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")

    async def handle_turn(self, turn: Turn) -> list[Reply]:
        """Process one inbound turn and return the replies it produced."""
        transport = BufferedTransport()
        key = f"{turn.channel_id}/{turn.conversation_id}"
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                await self.dispatcher.on_turn(TurnContext(turn, transport))
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]
        return transport.replies

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def dispatcher(self) -> TurnDispatcher:
        """Get turn dispatcher instance."""
        if not self._dispatcher:
            raise RuntimeError("Application not started")
        return self._dispatcher

    @property
    def state_store(self) -> ConversationStateStore:
        """Get conversation state store instance."""
        if not self._state_store:
            raise RuntimeError("Application not started")
        return self._state_store
