"""Conversation agents: language detection, reply classification and response composition."""

from .language import detect_language
from .confirmation import ReplyClassifier, ReplyIntent, classify_reply
from .localization import translate, entity_label
from .composer import ResponseComposer

__all__ = [
    "detect_language",
    "ReplyClassifier",
    "ReplyIntent",
    "classify_reply",
    "translate",
    "entity_label",
    "ResponseComposer",
]
