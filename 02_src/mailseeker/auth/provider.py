"""Delegated login against the Bot Framework token service."""

import base64
import json
import re
from dataclasses import dataclass
from typing import Protocol

import httpx

from ..config import DEFAULT_TOKEN_SERVICE_URL
from ..exceptions import CollaboratorError
from ..logging_config import get_logger
from ..models import AuthResult, Reply, SigninCard, Turn, TurnType

logger = get_logger(__name__)

TOKEN_RESPONSE_EVENT = "tokens/response"
VERIFY_STATE_INVOKE = "signin/verifyState"


@dataclass
class LoginPrompt:
    """What begin_login produced: a token already held, or a card to show."""

    result: AuthResult | None = None
    card: Reply | None = None


class IAuthProvider(Protocol):
    """Identity provider seen as a black box."""

    async def begin_login(self, turn: Turn) -> LoginPrompt:
        """Return the user's token if present, otherwise a sign-in prompt."""
        ...

    async def complete_login(self, turn: Turn) -> AuthResult | None:
        """Extract the login result this turn carries, None if it carries none."""
        ...

    async def sign_out(self, turn: Turn) -> None:
        """Forget the user's token. Succeeds when no session exists."""
        ...


class TokenServiceAuthProvider:
    """Bot Framework token service client (GetToken / GetSignInUrl / SignOut)."""

    def __init__(
        self,
        connection_name: str,
        base_url: str = DEFAULT_TOKEN_SERVICE_URL,
        app_token: str | None = None,
        passcode_pattern: str = r"^\d{6}$",
        prompt_text: str = "Por favor, inicia sesión",
        prompt_title: str = "Login",
        client: httpx.AsyncClient | None = None,
    ):
        self._connection_name = connection_name
        self._passcode = re.compile(passcode_pattern)
        self._prompt_text = prompt_text
        self._prompt_title = prompt_title

        headers = {"Authorization": f"Bearer {app_token}"} if app_token else {}
        self._client = client or httpx.AsyncClient(
            base_url=base_url, headers=headers, timeout=10.0
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def begin_login(self, turn: Turn) -> LoginPrompt:
        """Return the user's token if present, otherwise a sign-in card."""
        result = await self._get_token(turn)
        if result.succeeded:
            return LoginPrompt(result=result)

        url = await self._get_sign_in_url(turn)
        card = SigninCard(text=self._prompt_text, title=self._prompt_title, url=url)
        return LoginPrompt(card=Reply(attachments=[card.to_attachment()]))

    async def complete_login(self, turn: Turn) -> AuthResult | None:
        """Extract the login result this turn carries, None if it carries none."""
        if turn.type == TurnType.EVENT and turn.name == TOKEN_RESPONSE_EVENT:
            value = turn.value or {}
            return AuthResult(
                token=value.get("token") or None,
                connection_name=value.get("connectionName", self._connection_name),
            )

        code = None
        if turn.type == TurnType.INVOKE and turn.name == VERIFY_STATE_INVOKE:
            code = (turn.value or {}).get("state")
        elif turn.type == TurnType.MESSAGE and self._passcode.match((turn.text or "").strip()):
            code = turn.text.strip()
        if not code:
            return None

        result = await self._get_token(turn, code=code)
        if not result.succeeded:
            # A rejected code leaves the login pending
            logger.info("Login code rejected for %s", turn.sender.id)
            return None
        return result

    async def sign_out(self, turn: Turn) -> None:
        """Forget the user's token. Succeeds when no session exists."""
        try:
            response = await self._client.delete(
                "/api/usertoken/SignOut",
                params={
                    "userId": turn.sender.id,
                    "connectionName": self._connection_name,
                    "channelId": turn.channel_id,
                },
            )
            if response.status_code != 404:
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise CollaboratorError("auth", f"sign out failed: {e}") from e

        logger.info("Signed out user %s", turn.sender.id)

    async def _get_token(self, turn: Turn, code: str | None = None) -> AuthResult:
        params = {
            "userId": turn.sender.id,
            "connectionName": self._connection_name,
            "channelId": turn.channel_id,
        }
        if code:
            params["code"] = code

        try:
            response = await self._client.get("/api/usertoken/GetToken", params=params)
            if response.status_code == 404:
                return AuthResult.failed()
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise CollaboratorError("auth", f"token lookup failed: {e}") from e

        return AuthResult(
            token=data.get("token") or None,
            connection_name=data.get("connectionName", self._connection_name),
        )

    async def _get_sign_in_url(self, turn: Turn) -> str:
        state = {
            "ConnectionName": self._connection_name,
            "Conversation": {
                "channelId": turn.channel_id,
                "conversation": {"id": turn.conversation_id},
                "user": {"id": turn.sender.id},
                "bot": {"id": turn.recipient.id},
            },
        }
        encoded = base64.b64encode(json.dumps(state).encode("utf-8")).decode("ascii")

        try:
            response = await self._client.get(
                "/api/botsignin/GetSignInUrl", params={"state": encoded}
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise CollaboratorError("auth", f"sign-in url failed: {e}") from e

        return response.text.strip().strip('"')
