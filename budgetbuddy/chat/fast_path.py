"""
Deterministic shortcuts for messages that don't need the language model.

Rules run in priority order and the first hit wins:

1. reset today's figure ("reset today", "clear today", "set today to 0")
2. zero/remove the budget ("budget 0", "remove budget", "no budget")
3. record a debt ("harish owes me 500 for dinner") when both a friend name
   and an amount can be pulled out of the message

Anything else returns None and goes to the language model.
"""

import re
from decimal import Decimal

from loguru import logger

from budgetbuddy.models.schemas import AddDebt, ResetToday, SetBudget

# A number that is zero as a whole: "0", "₹0", "0.00" but not "500" or "0.5"
ZERO_AMOUNT = re.compile(r"(?<![\d.,])0+(?:\.0+)?(?![\d.,]*\d)")

DEBT_KEYWORDS = {"debt", "debts", "owe", "owes", "owed", "lend", "lent", "borrow", "borrowed"}

FRIEND_PATTERNS = (
    re.compile(r"friend\s+name\s*:\s*([a-z]\w*)", re.IGNORECASE),
    re.compile(r"\b([a-z]\w*)\s+owes?\b", re.IGNORECASE),
    re.compile(r"\bowe\s+([a-z]\w*)", re.IGNORECASE),
    re.compile(r"\blent\s+\S*\d\S*\s+to\s+([a-z]\w*)", re.IGNORECASE),
    re.compile(r"\b(?:lent|lend)\s+(?:to\s+)?([a-z]\w*)", re.IGNORECASE),
    re.compile(r"\b([a-z]\w*)\s+lent\b", re.IGNORECASE),
)
NOT_A_NAME = {
    "i", "me", "you", "we", "us", "they", "them", "he", "she", "him", "her",
    "it", "who", "to", "money", "still", "also", "now", "i'll", "my", "friend",
    "in", "for", "on", "at", "back", "a", "the", "some",
}

AMOUNT = re.compile(r"(\d+)")
DIRECTION_PHRASE = re.compile(
    r"\b(they owe me|owe them|i owe|owe me|lent to|gave to|paid for)\b", re.IGNORECASE
)
DESCRIPTION_STOPWORDS = {
    "debt", "debts", "owe", "owes", "friend", "name", "they", "me", "i", "for",
    "add", "lent", "to", "a", "the",
}


def has_zero_amount(text: str) -> bool:
    return ZERO_AMOUNT.search(text) is not None


def find_friend_name(message: str) -> str | None:
    for pattern in FRIEND_PATTERNS:
        for match in pattern.finditer(message):
            candidate = match.group(1)
            if candidate.lower() not in NOT_A_NAME and candidate.lower() not in DEBT_KEYWORDS:
                return candidate
    return None


def debt_direction(message: str) -> str:
    match = DIRECTION_PHRASE.search(message)
    if match:
        phrase = match.group(1).lower()
        if "i owe" in phrase or "owe them" in phrase:
            return "I_OWE_THEM"
    return "THEY_OWE_ME"


def debt_description(message: str, friend_name: str) -> str:
    words = []
    for word in message.lower().split():
        if any(ch.isdigit() for ch in word) or not any(ch.isalpha() for ch in word):
            continue
        word = word.strip(".,:;!?\"'")
        if word in DESCRIPTION_STOPWORDS or word == friend_name.lower():
            continue
        words.append(word)
    return " ".join(words) or "expense"


def match_debt(message: str) -> AddDebt | None:
    words = set(re.findall(r"[a-z]+", message.lower()))
    if not words & DEBT_KEYWORDS:
        return None

    friend_name = find_friend_name(message)
    amount = AMOUNT.search(message)
    if friend_name is None or amount is None:
        logger.debug("Debt keywords present but name/amount missing, deferring to LLM")
        return None

    return AddDebt(
        friend_name=friend_name,
        amount=Decimal(amount.group(1)),
        direction=debt_direction(message),
        description=debt_description(message, friend_name),
        response_text="I'll add that debt record for you.",
    )


def match_fast_path(message: str) -> ResetToday | SetBudget | AddDebt | None:
    text = message.lower()

    if "reset today" in text or "clear today" in text or (
        "set today" in text and has_zero_amount(text)
    ):
        return ResetToday(response_text="Resetting today's spending to ₹0.")

    if ("budget" in text and has_zero_amount(text)) or (
        "remove budget" in text or "no budget" in text
    ):
        return SetBudget(amount=Decimal(0), response_text="Removing your monthly budget.")

    return match_debt(message)
