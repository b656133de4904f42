"""TurnDispatcher: top-level state machine run once per inbound turn."""

import asyncio

from .auth import IAuthProvider
from .config import BotSettings
from .dialogs import GRAPH_DIALOG_ID, DialogContext, DialogSet, GraphDialog, OAuthPrompt
from .exceptions import CollaboratorError, ConfigurationError, UntrustedChannelError
from .logging_config import bind_turn, get_logger
from .models import DialogStackState, TurnType
from .nlu import IIntentClassifier
from .routing import IntentRouter
from .state import BotStateAccessors, TurnState
from .tracker import ITracker
from .turns import TurnContext

logger = get_logger(__name__)

LOGOUT_COMMAND = "logout"
HELP_COMMAND = "help"

LOGOUT_TEXT = "Hecho, sesión cerrada"
HELP_TEXT = "Hola, puedo buscar por ti determinados emails, simplemente pregúntame!"
WELCOME_TEXT = (
    "Hola {name}, bienvenido! Soy MailSeekerBot, "
    "puedes pedirme que busque por ti determinados emails"
)
APOLOGY_TEXT = "Lo siento, ahora mismo no puedo atenderte. Inténtalo de nuevo en un rato"


class TurnDispatcher:
    """Routes each turn to a built-in command, the active dialog or a new one.

    States of a conversation:
        Idle                  no frame on the stack
        AwaitingCommandRoute  a message turn being matched against commands
        DialogActive          graphDialog suspended on the login prompt
    """

    def __init__(
        self,
        settings: BotSettings,
        accessors: BotStateAccessors,
        auth_provider: IAuthProvider,
        classifier: IIntentClassifier,
        router: IntentRouter,
        tracker: ITracker,
    ):
        for name, value in (
            ("settings", settings),
            ("accessors", accessors),
            ("auth_provider", auth_provider),
            ("classifier", classifier),
            ("router", router),
            ("tracker", tracker),
        ):
            if value is None:
                raise ConfigurationError(f"{name} is required")

        self._settings = settings
        self._accessors = accessors
        self._auth = auth_provider
        self._tracker = tracker

        self._dialogs = DialogSet()
        self._dialogs.add_prompt(
            OAuthPrompt(auth_provider, timeout_seconds=settings.login_timeout_seconds)
        )
        self._dialogs.add(
            GraphDialog(
                accessors,
                classifier,
                router,
                passcode_pattern=settings.passcode_pattern,
            )
        )

    async def on_turn(self, context: TurnContext) -> None:
        """Handle one turn and flush conversation and user state."""
        turn = context.turn

        if turn.type == TurnType.INVOKE and turn.channel_id != self._settings.trusted_channel_id:
            raise UntrustedChannelError(
                f"Invoke turns are only accepted from {self._settings.trusted_channel_id}, "
                f"got {turn.channel_id}"
            )

        state = await self._accessors.state_store.load(turn)
        stack = DialogStackState.from_dict(self._accessors.dialog_state.get(state))

        with bind_turn(turn.conversation_id, turn.id):
            logger.info("Turn %s received on %s", turn.type.value, turn.channel_id)
            await self._tracker.track(
                event_type="turn_received",
                actor="turn_dispatcher",
                data={
                    "conversation_id": turn.conversation_id,
                    "user_id": turn.sender.id,
                    "type": turn.type.value,
                    "dialog_active": bool(stack.frames),
                },
            )

            cancelled = False
            try:
                await self._handle(context, state, stack)
            except CollaboratorError as e:
                logger.error("Collaborator failure: %s", e, exc_info=True)
                stack.clear()
                await context.send_text(APOLOGY_TEXT)
            except asyncio.CancelledError:
                # Nothing from a cancelled turn reaches the store
                cancelled = True
                logger.warning("Turn cancelled, state not flushed")
                raise
            finally:
                if not cancelled:
                    await self._flush(state, stack)

            await self._tracker.track(
                event_type="turn_completed",
                actor="turn_dispatcher",
                data={
                    "conversation_id": turn.conversation_id,
                    "responded": context.responded,
                    "dialog_active": bool(stack.frames),
                },
            )

    async def _handle(
        self,
        context: TurnContext,
        state: TurnState,
        stack: DialogStackState,
    ) -> None:
        turn = context.turn

        if turn.type == TurnType.MESSAGE:
            command = (turn.text or "").strip().lower()
            if command == LOGOUT_COMMAND:
                await self._auth.sign_out(turn)
                await context.send_text(LOGOUT_TEXT)
            elif command == HELP_COMMAND:
                await context.send_text(HELP_TEXT)
            else:
                await self._continue_or_begin(self._dialogs.create_context(context, stack, state))

        elif turn.type in (TurnType.EVENT, TurnType.INVOKE):
            await self._continue_or_begin(self._dialogs.create_context(context, stack, state))

        elif turn.type == TurnType.CONVERSATION_UPDATE:
            newcomers = [m for m in turn.members_added if m.id != turn.recipient.id]
            if newcomers:
                await context.send_text(WELCOME_TEXT.format(name=newcomers[0].name))

    async def _continue_or_begin(self, dc: DialogContext) -> None:
        await dc.continue_dialog()
        if not dc.stack.frames and not dc.context.responded:
            await dc.begin_dialog(GRAPH_DIALOG_ID)

    async def _flush(self, state: TurnState, stack: DialogStackState) -> None:
        if stack.frames:
            self._accessors.dialog_state.set(state, stack.to_dict())
        else:
            self._accessors.dialog_state.delete(state)
        await state.save_changes()
