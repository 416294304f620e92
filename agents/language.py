"""Utterance language detection."""

import re
from typing import Dict, Optional, Set

from schemas.context import Language

_DEVANAGARI = re.compile(r"[\u0900-\u097F]")
_KANA = re.compile(r"[\u3040-\u30FF]")
_HAN = re.compile(r"[\u4E00-\u9FFF]")
_WORD = re.compile(r"[^\W\d_]+(?:'[^\W\d_]+)?", re.UNICODE)

STOPWORDS: Dict[Language, Set[str]] = {
    Language.ENGLISH: {
        "the", "to", "and", "is", "are", "for", "of", "add", "please", "yes", "what",
        "how", "much", "guest", "guests", "update", "show", "me", "my", "with", "her", "his",
        "their", "them", "it", "that", "this", "we", "have", "wedding", "go", "ahead",
    },
    Language.HINDI: {
        "hai", "hain", "karo", "kar", "kijiye", "nahi", "nahin", "haan", "mehmaan", "mehman",
        "jodo", "jod", "mein", "ka", "ki", "ke", "ko", "aur", "kitna", "kya", "theek", "shaadi",
    },
    Language.SPANISH: {
        "el", "la", "los", "las", "de", "del", "que", "y", "para", "por", "con", "una", "agregar",
        "añadir", "invitado", "invitados", "sí", "boda", "cuánto", "hemos", "gastado", "favor",
        "presupuesto", "confirmado", "cancelar", "vale", "claro",
    },
    Language.FRENCH: {
        "le", "les", "des", "du", "et", "pour", "avec", "est", "ajouter", "ajoute", "invité",
        "invités", "oui", "non", "mariage", "combien", "avons", "dépensé", "budget", "mettre",
        "d'accord", "annuler", "au", "aux", "une",
    },
    Language.GERMAN: {
        "der", "die", "das", "und", "für", "mit", "ist", "ein", "eine", "hinzufügen", "gast",
        "gäste", "ja", "nein", "hochzeit", "wie", "viel", "haben", "ausgegeben", "bitte",
        "bestätigen", "abbrechen", "zu", "den",
    },
}

_ACCENT_HINTS = (
    (Language.SPANISH, re.compile(r"[ñ¿¡]")),
    (Language.GERMAN, re.compile(r"[ßäöü]")),
    (Language.FRENCH, re.compile(r"[çèêëàâîôœù]")),
)


def detect_language(text: str, default: Optional[Language] = None) -> Language:
    """
    Detect the language of an utterance.

    Script ranges decide Hindi (Devanagari), Japanese (kana) and Chinese
    (Han without kana). Latin-script text is scored by stopword hits plus
    accent hints. Text with no signal at all (e.g. "ok", an id, a number)
    returns ``default`` so a conversation keeps its language.

    Args:
        text: The user's utterance
        default: Language to fall back to (English when None)

    Returns:
        Detected Language
    """
    fallback = default or Language.ENGLISH
    if not text or not text.strip():
        return fallback

    if _DEVANAGARI.search(text):
        return Language.HINDI
    if _KANA.search(text):
        return Language.JAPANESE
    if _HAN.search(text):
        return Language.CHINESE

    lowered = text.lower()
    words = _WORD.findall(lowered)
    scores = {language: 0 for language in STOPWORDS}
    for word in words:
        for language, stopwords in STOPWORDS.items():
            if word in stopwords:
                scores[language] += 1
    for language, pattern in _ACCENT_HINTS:
        if pattern.search(lowered):
            scores[language] += 2

    best = max(scores.values())
    if best == 0:
        return fallback

    # English wins ties; it is the product's base language
    if scores[Language.ENGLISH] == best:
        return Language.ENGLISH
    return max(scores, key=lambda language: scores[language])
