"""Classifier for replies to a pending confirmation."""

import logging
import re
from enum import Enum
from typing import Iterable

logger = logging.getLogger(__name__)


class ReplyIntent(str, Enum):
    """How a reply to a confirmation prompt is read."""
    AFFIRM = "affirm"
    NEGATE = "negate"
    UNCLEAR = "unclear"


AFFIRMATIVE_PHRASES = [
    # English
    "yes", "y", "yeah", "yep", "yup", "sure", "ok", "okay", "k", "confirm", "confirmed",
    "go ahead", "do it", "proceed", "sounds good", "please do", "absolutely", "correct",
    "that's right", "looks good", "lgtm", "approve", "approved", "go for it", "yes please",
    # Hindi
    "हाँ", "हां", "जी", "ठीक है", "कर दो", "haan", "han", "ji", "theek hai", "thik hai", "kar do",
    # Spanish
    "sí", "si", "claro", "vale", "de acuerdo", "adelante", "confirmar", "confirmo", "hazlo", "correcto",
    # French
    "oui", "d'accord", "vas-y", "allez-y", "confirmer", "je confirme", "parfait", "bien sûr",
    # German
    "ja", "jawohl", "klar", "genau", "bestätigen", "mach das", "in ordnung", "passt",
    # Japanese
    "はい", "ええ", "うん", "お願いします", "実行して", "確認", "オーケー", "いいよ", "了解",
    # Chinese
    "是", "是的", "好", "好的", "确认", "可以", "行", "对", "没问题", "执行",
]

NEGATIVE_PHRASES = [
    # English
    "no", "n", "not", "nope", "nah", "cancel", "stop", "don't", "do not", "never mind", "nevermind",
    "abort", "hold on", "not now", "reject",
    # Hindi
    "नहीं", "नही", "मत", "रद्द", "nahi", "nahin", "mat karo", "ruko",
    # Spanish
    "cancelar", "cancela", "detente", "mejor no",
    # French
    "non", "annuler", "annule", "arrête", "pas maintenant",
    # German
    "nein", "abbrechen", "stopp", "nicht",
    # Japanese
    "いいえ", "いや", "キャンセル", "やめて", "中止", "待って",
    # Chinese
    "不", "取消", "别", "算了", "等一下",
]

# Words that turn an agreement into something else ("yes, but ...")
QUALIFIERS = [
    "but", "except", "change", "instead", "however", "actually", "only", "without", "wait",
    "lekin", "magar", "pero", "excepto", "cambia", "mais", "sauf", "plutôt", "aber", "außer",
    "statt", "लेकिन", "मगर", "でも", "けど", "ただし", "但是", "不过", "改",
]

MAX_AFFIRM_WORDS = 6
MAX_AFFIRM_CHARS = 12

_CJK = re.compile(r"[\u0900-\u097F\u3040-\u30FF\u4E00-\u9FFF]")


def _normalize(text: str) -> str:
    text = (text or "").strip().lower()
    text = text.replace("’", "'")
    return re.sub(r"[.!,;:\s]+", " ", text).strip()


def _contains(text: str, phrases: Iterable[str]) -> bool:
    for phrase in phrases:
        if _CJK.search(phrase):
            if phrase in text:
                return True
        elif re.search(rf"(?<![\w']){re.escape(phrase)}(?![\w'])", text):
            return True
    return False


class ReplyClassifier:
    """
    Reads a reply to "Would you like me to proceed?".

    Only short replies count as answers. Among those, negation wins over
    affirmation, and an affirmative phrase counts only without a qualifier
    or question. Longer utterances such as "how many guests have not
    replied?" are UNCLEAR: they never confirm and are handled as new requests.
    """

    def __init__(
        self,
        affirmative: Iterable[str] = AFFIRMATIVE_PHRASES,
        negative: Iterable[str] = NEGATIVE_PHRASES,
        qualifiers: Iterable[str] = QUALIFIERS
    ):
        self.affirmative = list(affirmative)
        self.negative = list(negative)
        self.qualifiers = list(qualifiers)

    def classify(self, text: str) -> ReplyIntent:
        reply = _normalize(text)
        if not reply:
            return ReplyIntent.UNCLEAR

        short = self._short(reply)
        if short and _contains(reply, self.negative):
            intent = ReplyIntent.NEGATE
        elif "?" in reply or _contains(reply, self.qualifiers):
            intent = ReplyIntent.UNCLEAR
        elif short and _contains(reply, self.affirmative):
            intent = ReplyIntent.AFFIRM
        else:
            intent = ReplyIntent.UNCLEAR

        logger.debug(f"Reply '{text}' classified as {intent.value}")
        return intent

    @staticmethod
    def _short(reply: str) -> bool:
        if _CJK.search(reply):
            return len(reply.replace(" ", "")) <= MAX_AFFIRM_CHARS
        return len(reply.split()) <= MAX_AFFIRM_WORDS


def classify_reply(text: str) -> ReplyIntent:
    """Classify ``text`` with the default phrase lists."""
    return ReplyClassifier().classify(text)
