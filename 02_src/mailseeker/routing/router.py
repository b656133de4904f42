"""IntentRouter: confidence gate and per-intent handlers."""

from typing import Any

from ..logging_config import get_logger
from ..mail import MailSearch
from ..models import IntentResult, MailFilter
from ..nlu import IntentTags
from ..tracker import ITracker
from ..turns import TurnContext

logger = get_logger(__name__)

NOT_UNDERSTOOD_TEXT = "No te entiendo..."
HELLO_TEXT = "Hola!"
DIAGNOSTIC_TEXT = "Intent: {intent} ({confidence})."


def _last(value: Any) -> Any:
    # Recognizers may return every occurrence of an entity; the last one wins
    if isinstance(value, (list, tuple)):
        return value[-1] if value else None
    return value


def mail_filter_from_entities(entities: dict[str, Any]) -> MailFilter:
    """Build a MailFilter from the `from`, `subject` and `count` entities."""
    sender = _last(entities.get("from"))
    subject = _last(entities.get("subject"))
    count = _last(entities.get("count"))

    try:
        count = int(count) if count is not None else 1
    except (TypeError, ValueError):
        count = 1

    return MailFilter(
        sender=str(sender).lower() if sender else "",
        subject=str(subject).lower() if subject else "",
        count=count if count > 0 else 1,
    )


class IntentRouter:
    """Dispatches a classifier result to its handler."""

    def __init__(
        self,
        mail_search: MailSearch,
        tracker: ITracker,
        confidence_threshold: float = 0.95,
        tags: IntentTags | None = None,
    ):
        self._mail_search = mail_search
        self._tracker = tracker
        self._threshold = confidence_threshold
        self._tags = tags or IntentTags()

    def understood(self, intent_result: IntentResult | None) -> bool:
        return (
            intent_result is not None
            and bool(intent_result.intent)
            and intent_result.intent != self._tags.none
            and intent_result.confidence > self._threshold
        )

    async def route(
        self,
        intent_result: IntentResult | None,
        context: TurnContext,
        token: str,
    ) -> None:
        await self._tracker.track(
            event_type="intent_classified",
            actor="intent_router",
            data={
                "conversation_id": context.turn.conversation_id,
                "intent": intent_result.intent if intent_result else None,
                "confidence": intent_result.confidence if intent_result else None,
            },
        )

        if not self.understood(intent_result):
            await context.send_text(NOT_UNDERSTOOD_TEXT)
            return

        if intent_result.intent == self._tags.hello:
            await context.send_text(HELLO_TEXT)
        elif intent_result.intent == self._tags.mail_get:
            mail_filter = mail_filter_from_entities(intent_result.entities)
            await self._mail_search.run(context, token, mail_filter)
        else:
            logger.info("No handler for intent %s", intent_result.intent)
            await context.send_text(
                DIAGNOSTIC_TEXT.format(
                    intent=intent_result.intent, confidence=intent_result.confidence
                )
            )
