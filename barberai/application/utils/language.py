from __future__ import annotations

import re
from enum import Enum

_ARABIC_RE = re.compile("[\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF\uFB50-\uFDFF\uFE70-\uFEFF]")


class Language(str, Enum):
    ARABIC = "ar"
    ENGLISH = "en"


DEFAULT_LANGUAGE = Language.ENGLISH


def detect_language(text: str) -> Language:
    """Classify text by script. Any Arabic character wins; empty or ambiguous input is English."""
    if text and _ARABIC_RE.search(text):
        return Language.ARABIC
    return DEFAULT_LANGUAGE


def has_language_signal(text: str) -> bool:
    return bool(text) and any(ch.isalpha() or _ARABIC_RE.match(ch) for ch in text)


def resolve_language(text: str, previous: str | None) -> str:
    """
    Language for the reply to ``text``.
    Messages without letters ("14:00", a phone number, an emoji) keep the previous language.
    """
    if not has_language_signal(text) and previous:
        return previous
    return detect_language(text).value
