"""graphDialog: log the user in, then classify and dispatch the command."""

import re

from ..logging_config import get_logger
from ..models import AuthResult, TurnType
from ..nlu import IIntentClassifier
from ..routing import IntentRouter
from ..state import BotStateAccessors
from .prompts import LOGIN_PROMPT_ID
from .stack import DialogTurnResult, WaterfallDialog, WaterfallStepContext

logger = get_logger(__name__)

GRAPH_DIALOG_ID = "graphDialog"

LOGIN_FAILED_TEXT = "El login no ha podido efectuarse correctamente, inténtalo más tarde"
LOGIN_SUCCEEDED_TEXT = (
    "Genial, has iniciado sesión!, cuando quieras cerrarla basta con decirme 'logout'"
)


class GraphDialog(WaterfallDialog):
    """Two steps: buffer the command and prompt for login; then process it."""

    def __init__(
        self,
        accessors: BotStateAccessors,
        classifier: IIntentClassifier,
        router: IntentRouter,
        passcode_pattern: str = r"^\d{6}$",
        login_prompt_id: str = LOGIN_PROMPT_ID,
    ):
        super().__init__(GRAPH_DIALOG_ID, [self.prompt_step, self.process_step])
        self._accessors = accessors
        self._classifier = classifier
        self._router = router
        self._passcode = re.compile(passcode_pattern)
        self._login_prompt_id = login_prompt_id

    def is_passcode(self, text: str) -> bool:
        return bool(self._passcode.match((text or "").strip()))

    async def prompt_step(self, step: WaterfallStepContext) -> DialogTurnResult:
        turn = step.context.turn

        # Passcodes belong to the identity provider, never to the command buffer
        if turn.type == TurnType.MESSAGE and not self.is_passcode(turn.text):
            self._accessors.command_state.set(step.state, turn.text)

        return await step.prompt(self._login_prompt_id)

    async def process_step(self, step: WaterfallStepContext) -> DialogTurnResult:
        context = step.context
        auth: AuthResult | None = step.result

        if auth is None or not auth.succeeded:
            await context.send_text(LOGIN_FAILED_TEXT)
            return await step.end_dialog()

        turn = context.turn
        buffered = self._accessors.command_state.get(step.state, default="") or ""
        self._accessors.command_state.delete(step.state)

        if step.resumed and (not turn.text or self.is_passcode(turn.text)):
            # This turn only delivers the login result: replay the buffered command
            await context.send_text(LOGIN_SUCCEEDED_TEXT)
            turn.text = buffered
            turn.type = TurnType.MESSAGE
            logger.info("Resuming buffered command for %s", turn.sender.id)

        try:
            intent_result = await self._classifier.classify(turn.text)
            await self._router.route(intent_result, context, auth.token)
        finally:
            ended = await step.end_dialog()
        return ended
