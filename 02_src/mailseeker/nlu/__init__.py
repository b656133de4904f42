"""Natural-language understanding module."""

from .classifier import (
    INTENT_HELLO,
    INTENT_MAIL_GET,
    INTENT_NONE,
    IIntentClassifier,
    IntentTags,
    LLMIntentClassifier,
    parse_classification,
)

__all__ = [
    "INTENT_HELLO",
    "INTENT_MAIL_GET",
    "INTENT_NONE",
    "IIntentClassifier",
    "IntentTags",
    "LLMIntentClassifier",
    "parse_classification",
]
