"""Tests for TokenServiceAuthProvider."""

import base64
import json

import httpx
import pytest

from conftest import make_turn, token_event
from mailseeker.auth import TokenServiceAuthProvider
from mailseeker.exceptions import CollaboratorError
from mailseeker.models import AuthResult, TurnType


class TokenService:
    """Scripted token service answering through httpx.MockTransport."""

    def __init__(self, token: str | None = None, sign_in_url: str = "https://signin/abc"):
        self.token = token
        self.sign_in_url = sign_in_url
        self.requests: list[httpx.Request] = []
        self.fail_with: int | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with:
            return httpx.Response(self.fail_with)

        path = request.url.path
        if path.endswith("/GetToken"):
            code = request.url.params.get("code")
            token = self.token or ("from-code" if code == "123456" else None)
            if token is None:
                return httpx.Response(404)
            return httpx.Response(200, json={"token": token, "connectionName": "graph"})
        if path.endswith("/GetSignInUrl"):
            return httpx.Response(200, text=f'"{self.sign_in_url}"')
        if path.endswith("/SignOut"):
            return httpx.Response(404 if self.token is None else 200)
        return httpx.Response(500)


def provider_for(service: TokenService) -> TokenServiceAuthProvider:
    client = httpx.AsyncClient(
        base_url="https://token.test", transport=httpx.MockTransport(service)
    )
    return TokenServiceAuthProvider(connection_name="graph", client=client)


class TestBeginLogin:
    """Tests for begin_login."""

    async def test_existing_token(self):
        """Test that a stored token is returned without a card."""
        service = TokenService(token="abc")

        login = await provider_for(service).begin_login(make_turn(text="hola"))

        assert login.result == AuthResult(token="abc", connection_name="graph")
        assert login.card is None
        params = service.requests[0].url.params
        assert params["userId"] == "user-1"
        assert params["connectionName"] == "graph"
        assert params["channelId"] == "msteams"

    async def test_sign_in_card(self):
        """Test that an anonymous user gets a card with the sign-in link."""
        service = TokenService()

        login = await provider_for(service).begin_login(make_turn(text="hola"))

        assert login.result is None
        content = login.card.attachments[0]["content"]
        assert content["buttons"][0]["value"] == "https://signin/abc"

        # Query decoding may turn "+" into spaces
        encoded = service.requests[1].url.params["state"].replace(" ", "+")
        state = json.loads(base64.b64decode(encoded))
        assert state["ConnectionName"] == "graph"
        assert state["Conversation"]["conversation"]["id"] == "conv-1"

    async def test_service_error(self):
        """Test that a token service failure is reported as an auth failure."""
        service = TokenService()
        service.fail_with = 503

        with pytest.raises(CollaboratorError) as exc:
            await provider_for(service).begin_login(make_turn())
        assert exc.value.collaborator == "auth"


class TestCompleteLogin:
    """Tests for complete_login."""

    async def test_token_response_event(self):
        """Test that the token is read from the event without a request."""
        service = TokenService()

        result = await provider_for(service).complete_login(token_event("evt-token"))

        assert result.token == "evt-token"
        assert service.requests == []

    async def test_token_response_without_token(self):
        """Test that an empty token response is a failed login."""
        result = await provider_for(TokenService()).complete_login(token_event(None))

        assert result is not None
        assert not result.succeeded

    async def test_passcode_exchanged(self):
        """Test that a magic code is exchanged for a token."""
        service = TokenService()

        result = await provider_for(service).complete_login(make_turn(text=" 123456 "))

        assert result.token == "from-code"
        assert service.requests[0].url.params["code"] == "123456"

    async def test_verify_state_invoke(self):
        """Test that the verifyState invoke carries the code."""
        turn = make_turn(TurnType.INVOKE, name="signin/verifyState", value={"state": "123456"})

        result = await provider_for(TokenService()).complete_login(turn)

        assert result.token == "from-code"

    async def test_wrong_passcode_keeps_waiting(self):
        """Test that an unknown code carries no login result."""
        service = TokenService()

        result = await provider_for(service).complete_login(make_turn(text="654321"))

        assert result is None
        assert service.requests[0].url.params["code"] == "654321"

    async def test_wrong_verify_state_keeps_waiting(self):
        """Test that a verifyState invoke with an unknown code carries nothing."""
        turn = make_turn(TurnType.INVOKE, name="signin/verifyState", value={"state": "000000"})

        assert await provider_for(TokenService()).complete_login(turn) is None

    async def test_ordinary_message_carries_nothing(self):
        """Test that regular text is not a login result."""
        service = TokenService()

        assert await provider_for(service).complete_login(make_turn(text="hola 123456")) is None
        assert service.requests == []


class TestSignOut:
    """Tests for sign_out."""

    async def test_sign_out(self):
        """Test that sign out calls the token service."""
        service = TokenService(token="abc")

        await provider_for(service).sign_out(make_turn(text="logout"))

        assert service.requests[0].method == "DELETE"
        assert service.requests[0].url.path == "/api/usertoken/SignOut"

    async def test_sign_out_without_session(self):
        """Test that signing out with no session succeeds."""
        await provider_for(TokenService()).sign_out(make_turn(text="logout"))

    async def test_sign_out_failure(self):
        """Test that a server error is reported."""
        service = TokenService()
        service.fail_with = 500

        with pytest.raises(CollaboratorError):
            await provider_for(service).sign_out(make_turn(text="logout"))
