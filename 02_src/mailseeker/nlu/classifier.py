"""Intent classification of user utterances."""

import json
import re
from dataclasses import dataclass
from string import Template
from typing import Protocol

from ..llm import ILLMProvider
from ..logging_config import get_logger
from ..models import IntentResult

logger = get_logger(__name__)

INTENT_NONE = "None"
INTENT_HELLO = "General_Hello"
INTENT_MAIL_GET = "Mail_Get"

_SYSTEM_PROMPT_TEMPLATE = Template("""You classify requests sent to a mail assistant bot.
Users mostly write in Spanish.

Return ONLY a JSON object, no markdown:
{
  "intent": one of ["$hello", "$mail_get", "$none"],
  "confidence": number between 0 and 1,
  "entities": {
    "from": sender name the user asks about or null,
    "subject": words the subject must contain or null,
    "count": how many mails the user wants (integer) or null
  }
}

Rules:
- "$hello" = greetings ("hola", "buenos días").
- "$mail_get" = the user wants to find or read mails ("buscar correos de Ana",
  "enséñame los 3 últimos mails sobre facturas").
- Anything else is "$none".
- Only fill entities for "$mail_get". Copy names and words as the user wrote them.

Examples:
"hola" -> {"intent": "$hello", "confidence": 0.99, "entities": {}}
"buscar correos de Ana" -> {"intent": "$mail_get", "confidence": 0.98, "entities": {"from": "Ana"}}
"dame los 2 últimos mails con asunto factura" -> {"intent": "$mail_get", "confidence": 0.97, "entities": {"subject": "factura", "count": 2}}
""")


@dataclass(frozen=True)
class IntentTags:
    """Intent names shared by the classifier and the router."""

    none: str = INTENT_NONE
    hello: str = INTENT_HELLO
    mail_get: str = INTENT_MAIL_GET


def build_system_prompt(tags: IntentTags) -> str:
    return _SYSTEM_PROMPT_TEMPLATE.substitute(
        none=tags.none, hello=tags.hello, mail_get=tags.mail_get
    )


CLASSIFIER_SYSTEM_PROMPT = build_system_prompt(IntentTags())

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


class IIntentClassifier(Protocol):
    """Classifies text into (intent, confidence, entities)."""

    async def classify(self, text: str) -> IntentResult | None:
        """Return the top-scoring intent, or None when nothing was recognized."""
        ...


class LLMIntentClassifier:
    """Intent classifier backed by Claude."""

    def __init__(
        self,
        llm_provider: ILLMProvider,
        max_tokens: int = 256,
        tags: IntentTags | None = None,
    ):
        self._llm = llm_provider
        self._max_tokens = max_tokens
        self._system = build_system_prompt(tags or IntentTags())

    async def classify(self, text: str) -> IntentResult | None:
        """Return the top-scoring intent, or None when nothing was recognized.

        LLM failures propagate as CollaboratorError.
        """
        if not text or not text.strip():
            return None

        raw = await self._llm.complete(
            messages=[{"role": "user", "content": text}],
            system=self._system,
            max_tokens=self._max_tokens,
        )
        result = parse_classification(raw)
        if result is None:
            logger.warning("Unparseable classification for %r: %s", text[:100], raw[:200])
        return result


def parse_classification(raw: str) -> IntentResult | None:
    """Parse the classifier's JSON verdict, None when malformed."""
    match = _JSON_OBJECT.search(raw or "")
    if not match:
        return None

    try:
        data = json.loads(match.group(0))
        intent = str(data["intent"])
        confidence = float(data.get("confidence", 0.0))
    except (ValueError, KeyError, TypeError):
        return None

    entities = data.get("entities") or {}
    if not isinstance(entities, dict):
        entities = {}

    return IntentResult(
        intent=intent,
        confidence=min(max(confidence, 0.0), 1.0),
        entities={k: v for k, v in entities.items() if v is not None},
    )
