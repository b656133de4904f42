"""Login prompt backed by the auth provider."""

from datetime import datetime, timedelta, timezone
from typing import Callable

from ..auth import IAuthProvider
from ..logging_config import get_logger
from ..models import AuthResult, TurnType
from ..turns import TurnContext

logger = get_logger(__name__)

LOGIN_PROMPT_ID = "loginPrompt"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OAuthPrompt:
    """Asks the user to sign in and waits for the token to arrive.

    Resolves immediately when the user already holds a token. Otherwise the
    sign-in card is sent and the prompt waits until a turn carries the login
    result or the timeout elapses, which yields a failed AuthResult.
    """

    def __init__(
        self,
        auth_provider: IAuthProvider,
        prompt_id: str = LOGIN_PROMPT_ID,
        timeout_seconds: int = 300,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.prompt_id = prompt_id
        self._auth = auth_provider
        self._timeout = timedelta(seconds=timeout_seconds)
        self._clock = clock

    async def begin(self, context: TurnContext, state: dict) -> AuthResult | None:
        login = await self._auth.begin_login(context.turn)
        if login.result is not None and login.result.succeeded:
            return login.result

        state["expires_at"] = (self._clock() + self._timeout).isoformat()
        if login.card is not None:
            await context.send(login.card)
        return None

    async def resume(self, context: TurnContext, state: dict) -> AuthResult | None:
        expires_at = state.get("expires_at")
        if expires_at and self._clock() >= datetime.fromisoformat(expires_at):
            logger.info("Login prompt expired for %s", context.turn.sender.id)
            return AuthResult.failed()

        result = await self._auth.complete_login(context.turn)
        if result is not None:
            return result

        # Anything else typed while waiting gets the sign-in card again
        if context.turn.type == TurnType.MESSAGE and not context.responded:
            login = await self._auth.begin_login(context.turn)
            if login.result is not None and login.result.succeeded:
                return login.result
            if login.card is not None:
                await context.send(login.card)
        return None
