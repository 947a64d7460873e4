"""
Date extraction for chat messages.

Turns whatever the user wrote ("15 july 2024", "08/10/2025", "yesterday",
"august 10", "last week") into a DateSpec. Partial and vague dates are
returned as NeedsYear / NeedsClarification so the caller can ask instead of
guessing. "Today" always comes from the system clock at call time.
"""

import datetime as dt
import re

from budgetbuddy.models.schemas import (
    DateSpec,
    ExactDate,
    NeedsClarification,
    NeedsYear,
    TodayDate,
)

MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

_MONTH = (
    r"(jan(?:uary)?|feb(?:ruary)?|mar(?:ch)?|apr(?:il)?|may|june?|july?"
    r"|aug(?:ust)?|sep(?:t(?:ember)?)?|oct(?:ober)?|nov(?:ember)?|dec(?:ember)?)"
)
_DAY = r"(\d{1,2})(?:st|nd|rd|th)?"

DAY_MONTH_YEAR = re.compile(rf"\b{_DAY}\s+(?:of\s+)?{_MONTH}\b,?\s+(\d{{4}})\b")
MONTH_DAY_YEAR = re.compile(rf"\b{_MONTH}\s+{_DAY}\b,?\s+(\d{{4}})\b")
SLASH_DATE = re.compile(r"\b(\d{1,2})/(\d{1,2})/(\d{4})\b")
ISO_DATE = re.compile(r"\b(\d{4})-(\d{1,2})-(\d{1,2})\b")

DAY_MONTH = re.compile(rf"\b{_DAY}\s+(?:of\s+)?{_MONTH}\b")
MONTH_DAY = re.compile(rf"\b{_MONTH}\s+{_DAY}\b")
SLASH_NO_YEAR = re.compile(r"\b(\d{1,2})/(\d{1,2})\b")

VAGUE_PHRASES = (
    "last week",
    "last weekend",
    "last month",
    "last year",
    "few days ago",
    "the other day",
    "recently",
)


def today() -> dt.date:
    return dt.date.today()


def _month_number(name: str) -> int:
    return MONTHS[name[:3]]


FULL_DATE_PATTERNS = (
    (DAY_MONTH_YEAR, lambda m: dt.date(int(m[3]), _month_number(m[2]), int(m[1]))),
    (MONTH_DAY_YEAR, lambda m: dt.date(int(m[3]), _month_number(m[1]), int(m[2]))),
    (SLASH_DATE, lambda m: dt.date(int(m[3]), int(m[2]), int(m[1]))),
    (ISO_DATE, lambda m: dt.date(int(m[1]), int(m[2]), int(m[3]))),
)

PARTIAL_DATE_PATTERNS = (DAY_MONTH, MONTH_DAY, SLASH_NO_YEAR)


def parse_iso(value: str) -> dt.date | None:
    try:
        return dt.date.fromisoformat(value.strip())
    except ValueError:
        return None


def extract_date(message: str, proposed: str | None = None) -> DateSpec:
    """Work out which day an expense message refers to.

    ``proposed`` is the date the language model filled in, if any. A valid
    ISO date there is trusted as-is; anything else is ignored and the message
    itself is examined.
    """
    if proposed:
        exact = parse_iso(proposed)
        if exact is not None:
            return ExactDate(value=exact)

    text = message.lower()

    for pattern, build in FULL_DATE_PATTERNS:
        match = pattern.search(text)
        if match:
            try:
                return ExactDate(value=build(match))
            except ValueError:
                # 31 february and friends
                return NeedsClarification(text=match.group(0))

    for pattern in PARTIAL_DATE_PATTERNS:
        match = pattern.search(text)
        if match:
            return NeedsYear(text=match.group(0))

    for phrase in VAGUE_PHRASES:
        if phrase in text:
            return NeedsClarification(text=phrase)

    if "day before yesterday" in text:
        return ExactDate(value=today() - dt.timedelta(days=2))
    if re.search(r"\byesterday\b", text):
        return ExactDate(value=today() - dt.timedelta(days=1))
    return TodayDate()


def resolve_date(spec: DateSpec) -> dt.date:
    """Concrete day for an exact or "today" spec."""
    if isinstance(spec, ExactDate):
        return spec.value
    if isinstance(spec, TodayDate):
        return today()
    raise ValueError(f"Date needs clarification: {spec.text!r}")
