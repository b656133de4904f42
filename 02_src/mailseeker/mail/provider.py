"""Inbox access through Microsoft Graph."""

from typing import Protocol

import httpx

from ..config import DEFAULT_GRAPH_BASE_URL
from ..exceptions import CollaboratorError
from ..logging_config import get_logger
from ..models import EmailAddress, MailMessage

logger = get_logger(__name__)


class IMailProvider(Protocol):
    """Mail provider seen as a black box."""

    async def search(self, token: str, page_size: int = 100) -> list[MailMessage]:
        """Return up to page_size most recent inbox messages, newest first."""
        ...


class GraphMailProvider:
    """Reads the signed-in user's inbox via the Graph REST API."""

    def __init__(
        self,
        base_url: str = DEFAULT_GRAPH_BASE_URL,
        timezone_name: str = "UTC",
        client: httpx.AsyncClient | None = None,
    ):
        self._timezone_name = timezone_name
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=15.0)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def search(self, token: str, page_size: int = 100) -> list[MailMessage]:
        """Return up to page_size most recent inbox messages, newest first."""
        if not token:
            raise ValueError("token is required")

        try:
            response = await self._client.get(
                "/me/mailFolders/inbox/messages",
                params={
                    "$top": page_size,
                    "$orderby": "receivedDateTime desc",
                    "$select": "id,subject,from,bodyPreview,webLink",
                },
                headers={
                    "Authorization": f"Bearer {token}",
                    "Prefer": f'outlook.timezone="{self._timezone_name}"',
                },
            )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise CollaboratorError("mail", f"inbox request failed: {e}") from e

        messages = [_to_message(item) for item in payload.get("value", [])]
        logger.info("Graph returned %s inbox messages", len(messages))
        return messages


def _to_message(item: dict) -> MailMessage:
    address = (item.get("from") or {}).get("emailAddress") or {}
    return MailMessage(
        id=item.get("id", ""),
        subject=item.get("subject") or "",
        sender=EmailAddress(
            name=address.get("name") or "",
            address=address.get("address") or "",
        ),
        body_preview=item.get("bodyPreview") or "",
        web_link=item.get("webLink") or "",
    )
