from __future__ import annotations

import re
from datetime import date, timedelta

from barberai.application.utils.message_rules import contains_any, contains_keyword, normalize_text

DAY_AFTER_TOMORROW = ("day after tomorrow", "بعد بكره", "بعد بكرا", "بعد غد", "بعد الغد", "بعد بكرة")
TOMORROW = ("tomorrow", "tmrw", "tmr", "بكره", "بكرا", "غدا", "الغد", "بكرة")
TODAY = ("today", "tonight", "اليوم", "الليله", "النهارده")
RELATIVE_DAYS = DAY_AFTER_TOMORROW + TOMORROW + TODAY

NEXT_MARKERS = ("next", "الجاي", "القادم", "الجايه", "الي بعده")

DAY_NAMES = {
    "monday": 0,
    "mon": 0,
    "tuesday": 1,
    "tue": 1,
    "tues": 1,
    "wednesday": 2,
    "wed": 2,
    "thursday": 3,
    "thu": 3,
    "thur": 3,
    "thurs": 3,
    "friday": 4,
    "fri": 4,
    "saturday": 5,
    "sat": 5,
    "sunday": 6,
    "sun": 6,
    "الاثنين": 0,
    "الاتنين": 0,
    "اثنين": 0,
    "الثلاثاء": 1,
    "الثلاثا": 1,
    "التلات": 1,
    "الاربعاء": 2,
    "الاربعا": 2,
    "الخميس": 3,
    "الجمعه": 4,
    "السبت": 5,
    "الاحد": 6,
}

MONTH_NAMES = {
    "january": 1,
    "jan": 1,
    "february": 2,
    "feb": 2,
    "march": 3,
    "mar": 3,
    "april": 4,
    "apr": 4,
    "may": 5,
    "june": 6,
    "jun": 6,
    "july": 7,
    "jul": 7,
    "august": 8,
    "aug": 8,
    "september": 9,
    "sep": 9,
    "sept": 9,
    "october": 10,
    "oct": 10,
    "november": 11,
    "nov": 11,
    "december": 12,
    "dec": 12,
    "يناير": 1,
    "كانون الثاني": 1,
    "فبراير": 2,
    "شباط": 2,
    "مارس": 3,
    "اذار": 3,
    "ابريل": 4,
    "نيسان": 4,
    "مايو": 5,
    "ايار": 5,
    "يونيو": 6,
    "حزيران": 6,
    "يوليو": 7,
    "تموز": 7,
    "اغسطس": 8,
    "سبتمبر": 9,
    "ايلول": 9,
    "اكتوبر": 10,
    "تشرين الاول": 10,
    "نوفمبر": 11,
    "تشرين الثاني": 11,
    "ديسمبر": 12,
    "كانون الاول": 12,
}

MORNING_MARKERS = ("am", "a m", "morning", "ص", "صباحا", "الصبح", "صباح", "الصباح")
EVENING_MARKERS = (
    "pm",
    "p m",
    "afternoon",
    "evening",
    "tonight",
    "م",
    "مساء",
    "مساءا",
    "المسا",
    "المساء",
    "العصر",
    "عصرا",
    "الظهر",
    "بالليل",
    "الليل",
    "الليله",
)

_ISO_RE = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")
_DAY_MONTH_RE = re.compile(r"(?<![\d:])(\d{1,2})[/\-](\d{1,2})(?:[/\-](\d{2,4}))?(?![\d:])")
_DAY_NUMBER_RE = re.compile(r"(?<![\d:/])(\d{1,2})(?:st|nd|rd|th)?(?![\d:/])")
_YEAR_RE = re.compile(r"\b(20\d{2})\b")

_CLOCK_RE = re.compile(r"(?<![\d/\-])(\d{1,2})[:.](\d{2})(?![\d/\-])")
_HOUR_WITH_MARKER_RE = re.compile(r"(?<![\d:/\-])(\d{1,2})\s*(am|pm|a m|p m)(?![a-z])")
_AT_HOUR_RE = re.compile(r"(?:\bat|@|الساعه|ساعه|الساعة)\s*(\d{1,2})(?![\d:/\-])")
_BARE_HOUR_RE = re.compile(r"^(\d{1,2})$")


def parse_date_preference(text: str, reference_date: date) -> date | None:
    """
    Parse a day from free text in English or Arabic. Returns None if no date is mentioned.

    Ambiguous expressions resolve to the nearest future occurrence: a bare weekday
    that is today means today, "next <weekday>" skips today, and a day/month that
    already passed this year moves to next year.
    """
    normalized = normalize_text(text)
    if not normalized:
        return None

    match = _ISO_RE.search(normalized)
    if match:
        return _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    if contains_any(normalized, DAY_AFTER_TOMORROW):
        return reference_date + timedelta(days=2)

    if contains_any(normalized, TOMORROW):
        return reference_date + timedelta(days=1)

    if contains_any(normalized, TODAY):
        return reference_date

    match = _DAY_MONTH_RE.search(normalized)
    if match:
        day, month = int(match.group(1)), int(match.group(2))
        year = _expand_year(match.group(3)) if match.group(3) else None
        return _resolve_day_month(day, month, year, reference_date)

    for month_name, month_num in _longest_first(MONTH_NAMES):
        if not contains_keyword(normalized, month_name):
            continue
        day = _day_next_to_month(normalized, month_name)
        if day is None:
            continue
        year_match = _YEAR_RE.search(normalized)
        year = int(year_match.group(1)) if year_match else None
        return _resolve_day_month(day, month_num, year, reference_date)

    for day_name, day_num in _longest_first(DAY_NAMES):
        if contains_keyword(normalized, day_name):
            days_ahead = (day_num - reference_date.weekday()) % 7
            if days_ahead == 0 and contains_any(normalized, NEXT_MARKERS):
                days_ahead = 7
            return reference_date + timedelta(days=days_ahead)

    return None


def candidate_times(text: str) -> list[str]:
    """
    Every "HH:MM" the text could mean, most likely first.
    A bare hour without am/pm ("3", "الساعة 3") yields both 03:00 and 15:00.
    """
    normalized = normalize_text(text)
    if not normalized:
        return []

    hour: int | None = None
    minute = 0
    marker = _meridiem(normalized)

    match = _CLOCK_RE.search(normalized)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
    else:
        match = _HOUR_WITH_MARKER_RE.search(normalized)
        if match:
            hour = int(match.group(1))
            marker = "pm" if match.group(2).replace(" ", "") == "pm" else "am"
        else:
            match = _AT_HOUR_RE.search(normalized) or _BARE_HOUR_RE.search(normalized)
            if match is None and marker is not None:
                match = _DAY_NUMBER_RE.search(normalized)
            if match:
                hour = int(match.group(1))
            elif contains_any(normalized, ("noon", "midday", "الظهر")):
                hour, marker = 12, "noon"

    if hour is None or hour > 23 or minute > 59:
        return []

    if hour > 12 or marker == "noon":
        return [f"{hour:02d}:{minute:02d}"]
    if marker == "pm":
        return [f"{hour % 12 + 12:02d}:{minute:02d}"]
    if marker == "am":
        return [f"{hour % 12:02d}:{minute:02d}"]
    candidates = [f"{hour:02d}:{minute:02d}"]
    if hour < 12:
        candidates.append(f"{hour + 12:02d}:{minute:02d}")
    return candidates


def _meridiem(normalized: str) -> str | None:
    if contains_any(normalized, EVENING_MARKERS):
        return "pm"
    if contains_any(normalized, MORNING_MARKERS):
        return "am"
    return None


def _day_next_to_month(normalized: str, month_name: str) -> int | None:
    month = re.escape(normalize_text(month_name))
    match = re.search(rf"(?<![\d:])(\d{{1,2}})(?:st|nd|rd|th)?\s*(?:of\s+)?(?:ال)?{month}", normalized)
    if match is None:
        match = re.search(rf"{month}\s*(\d{{1,2}})(?:st|nd|rd|th)?(?![\d:])", normalized)
    return int(match.group(1)) if match else None


def _resolve_day_month(day: int, month: int, year: int | None, reference_date: date) -> date | None:
    if year is not None:
        return _safe_date(year, month, day)
    candidate = _safe_date(reference_date.year, month, day)
    if candidate is None:
        return None
    if candidate < reference_date:
        return _safe_date(reference_date.year + 1, month, day)
    return candidate


def _expand_year(raw: str) -> int:
    year = int(raw)
    return year + 2000 if year < 100 else year


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _longest_first(names: dict[str, int]) -> list[tuple[str, int]]:
    return sorted(names.items(), key=lambda item: len(item[0]), reverse=True)
