from __future__ import annotations

import re
from functools import lru_cache

from barberai.application.utils.language import Language, detect_language

_DIGITS = str.maketrans("٠١٢٣٤٥٦٧٨٩۰۱۲۳۴۵۶۷۸۹", "01234567890123456789")
_DIACRITICS_RE = re.compile("[\u064B-\u0652\u0640]")
_PUNCT_RE = re.compile(r"[?!,;\"'()*،؛؟…]")

AFFIRMATIVE_TOKENS = (
    "yes",
    "yeah",
    "yep",
    "yup",
    "sure",
    "ok",
    "okay",
    "confirm",
    "confirmed",
    "book it",
    "go ahead",
    "correct",
    "sounds good",
    "y",
    "👍",
    "نعم",
    "ايوه",
    "ايوا",
    "اي",
    "اكيد",
    "تمام",
    "موافق",
    "اوكي",
    "اكد",
    "تاكيد",
    "ماشي",
    "طيب",
    "احجز",
)

NEGATIVE_TOKENS = (
    "no",
    "nope",
    "nah",
    "change",
    "wrong",
    "n",
    "لا",
    "لاء",
    "كلا",
    "مو",
    "مش",
    "غير موافق",
    "ما ابي",
    "ما بدي",
    "بدل",
    "غير",
)

RESTART_TOKENS = (
    "start over",
    "restart",
    "cancel",
    "reset",
    "from scratch",
    "من جديد",
    "من الاول",
    "الغاء",
    "الغي",
    "كنسل",
)

REMINDER_OPT_OUT_TOKENS = (
    "no reminder",
    "no reminders",
    "without reminder",
    "without a reminder",
    "dont remind",
    "don't remind",
    "do not remind",
    "cancel the reminder",
    "cancel reminder",
    "cancel my reminder",
    "skip the reminder",
    "بدون تذكير",
    "بلا تذكير",
    "لا تذكرني",
    "ما ابي تذكير",
    "ما بدي تذكير",
    "لا داعي للتذكير",
    "الغي التذكير",
    "الغاء التذكير",
)

_NOT_A_NAME = AFFIRMATIVE_TOKENS + NEGATIVE_TOKENS + RESTART_TOKENS + REMINDER_OPT_OUT_TOKENS

_PHONE_RE = re.compile(r"\+?\d[\d\s\-]{6,}\d")
_NAME_INTRO_RE = re.compile(
    r"(?<!\w)(my name is|my name's|name is|name|i am|i'm|im|this is|it's|it is|call me|"
    r"اسمي|الاسم|انا|أنا|معك)(?!\w)",
    re.IGNORECASE,
)
_PHONE_WORDS_RE = re.compile(
    r"(?<!\w)(my number is|my number|number|phone|mobile|cell|and|"
    r"و?(?:رقمي|الرقم|رقم|جوالي|جوال|موبايل|هاتف))(?!\w)",
    re.IGNORECASE,
)


def normalize_digits(text: str) -> str:
    return text.translate(_DIGITS)


def normalize_text(text: str) -> str:
    """Lowercase, unify Arabic letter variants and digits, strip punctuation."""
    if not isinstance(text, str):
        text = str(text or "")
    normalized = normalize_digits(text.strip())
    normalized = _DIACRITICS_RE.sub("", normalized)
    normalized = normalized.replace("أ", "ا").replace("إ", "ا").replace("آ", "ا")
    normalized = normalized.replace("ى", "ي").replace("ة", "ه")
    normalized = normalized.replace("’", "'")
    normalized = _PUNCT_RE.sub(" ", normalized.lower())
    return re.sub(r"\s+", " ", normalized).strip()


@lru_cache(maxsize=1024)
def keyword_pattern(keyword: str) -> re.Pattern[str]:
    """
    Whole-word pattern for a keyword, exposing the keyword itself as group "kw".
    Arabic keywords tolerate the attached prefixes و/ف/ب/ل and the article ال.
    """
    escaped = re.escape(normalize_text(keyword))
    if detect_language(keyword) == Language.ARABIC:
        return re.compile(rf"(?:^|(?<=\s))(?:و|ف|ب|ل)?(?:ال)?(?P<kw>{escaped})(?=\s|$)")
    return re.compile(rf"(?<![\w'])(?P<kw>{escaped})(?![\w'])")


def contains_keyword(normalized: str, keyword: str) -> bool:
    return keyword_pattern(keyword).search(normalized) is not None


def contains_any(normalized: str, keywords: tuple[str, ...]) -> bool:
    return any(contains_keyword(normalized, kw) for kw in keywords)


def strip_keywords(normalized: str, keywords: tuple[str, ...]) -> str:
    for kw in keywords:
        normalized = keyword_pattern(kw).sub(" ", normalized)
    return re.sub(r"\s+", " ", normalized).strip()


def is_restart_request(text: str) -> bool:
    """Reminder opt-outs such as "cancel the reminder" are not a restart."""
    normalized = strip_keywords(normalize_text(text), REMINDER_OPT_OUT_TOKENS)
    return contains_any(normalized, RESTART_TOKENS)


def wants_no_reminder(text: str) -> bool:
    return contains_any(normalize_text(text), REMINDER_OPT_OUT_TOKENS)


def classify_confirmation(text: str) -> str | None:
    """Return "yes", "no" or None when the answer is missing or contradictory."""
    normalized = strip_keywords(normalize_text(text), REMINDER_OPT_OUT_TOKENS)
    if not normalized:
        return None
    yes = contains_any(normalized, AFFIRMATIVE_TOKENS)
    no = contains_any(normalized, NEGATIVE_TOKENS)
    if yes and not no:
        return "yes"
    if no and not yes:
        return "no"
    return None


def extract_phone(text: str) -> str | None:
    match = _PHONE_RE.search(normalize_digits(text))
    if not match:
        return None
    return re.sub(r"[\s\-]", "", match.group(0))


def extract_contact(text: str, ignore: tuple[str, ...] = ()) -> tuple[str | None, str | None]:
    """
    Split a free-form reply like "I'm Ali, 0501234567" into (name, phone).

    Confirmation and restart words never count as a name, nor do the phrases
    in ``ignore`` (the engine passes relative day words such as "tomorrow").
    """
    cleaned = normalize_digits(text or "")
    phone = extract_phone(cleaned)
    if phone:
        cleaned = _PHONE_RE.sub(" ", cleaned)
    cleaned = _NAME_INTRO_RE.sub(" ", cleaned)
    cleaned = _PHONE_WORDS_RE.sub(" ", cleaned)
    cleaned = re.sub(r"[^\w\s'\-]", " ", cleaned)
    words = [w for w in cleaned.split() if w not in {"و", "-", "'"}]
    words = _drop_phrases(words, _NOT_A_NAME + ignore)
    name = " ".join(words).strip(" -'")
    if not name or not any(ch.isalpha() for ch in name):
        return None, phone
    return name[:60], phone


def _drop_phrases(words: list[str], phrases: tuple[str, ...]) -> list[str]:
    normalized = [normalize_text(w) for w in words]
    keep = [True] * len(words)
    for phrase in phrases:
        parts = normalize_text(phrase).split()
        if not parts:
            continue
        for start in range(len(words) - len(parts) + 1):
            if normalized[start:start + len(parts)] == parts:
                keep[start:start + len(parts)] = [False] * len(parts)
    return [word for word, kept in zip(words, keep) if kept]
