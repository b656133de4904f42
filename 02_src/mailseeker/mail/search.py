"""Mail retrieval flow: search, filter and render the results as cards."""

from ..logging_config import get_logger
from ..models import (
    AttachmentLayout,
    CardAction,
    CardImage,
    HeroCard,
    MailFilter,
    MailMessage,
    Reply,
)
from ..tracker import ITracker
from ..turns import TurnContext
from .provider import IMailProvider

logger = get_logger(__name__)

OUTLOOK_LOGO_URL = (
    "https://botframeworksamples.blob.core.windows.net/samples/OutlookLogo.jpg"
)

SEARCHING_TEXT = "Dame un momento, estoy buscando..."
FOUND_TEXT = "Terminé!, he encontrado {count} mail"
NOTHING_FOUND_TEXT = "No he encontrado nada..."
OPEN_MAIL_TITLE = "Ver mail"


def apply_filter(messages: list[MailMessage], mail_filter: MailFilter) -> list[MailMessage]:
    """Keep messages matching sender name and subject, then take the first count."""
    sender = mail_filter.sender.lower()
    subject = mail_filter.subject.lower()

    matches = [
        message
        for message in messages
        if (not sender or sender in message.sender.name.lower())
        and (not subject or subject in message.subject.lower())
    ]
    return matches[: mail_filter.count]


def mail_card(message: MailMessage) -> HeroCard:
    return HeroCard(
        title=message.subject,
        subtitle=f"{message.sender.name} <{message.sender.address}>",
        text=message.body_preview,
        images=[CardImage(url=OUTLOOK_LOGO_URL, alt="Outlook Logo")],
        buttons=[CardAction(type="openUrl", title=OPEN_MAIL_TITLE, value=message.web_link)],
    )


class MailSearch:
    """Runs a filtered inbox search and replies with a card carousel."""

    def __init__(
        self,
        mail_provider: IMailProvider,
        tracker: ITracker,
        page_size: int = 100,
    ):
        self._mail = mail_provider
        self._tracker = tracker
        self._page_size = page_size

    async def run(self, context: TurnContext, token: str, mail_filter: MailFilter) -> list[MailMessage]:
        await context.send_text(SEARCHING_TEXT)
        logger.debug(
            "Mail filter from=%r subject=%r count=%s",
            mail_filter.sender,
            mail_filter.subject,
            mail_filter.count,
        )

        messages = await self._mail.search(token, page_size=self._page_size)
        results = apply_filter(messages, mail_filter)

        await self._tracker.track(
            event_type="mail_search_completed",
            actor="mail_search",
            data={
                "conversation_id": context.turn.conversation_id,
                "fetched": len(messages),
                "matched": len(results),
            },
        )

        await context.send_text(FOUND_TEXT.format(count=len(results)))

        if results:
            await context.send(
                Reply(
                    attachments=[mail_card(m).to_attachment() for m in results],
                    attachment_layout=AttachmentLayout.CAROUSEL,
                )
            )
        else:
            await context.send_text(NOTHING_FOUND_TEXT)

        return results
