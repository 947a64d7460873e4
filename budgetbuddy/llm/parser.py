from decimal import Decimal
from typing import get_args

from loguru import logger

from budgetbuddy.chat.dates import extract_date, today
from budgetbuddy.llm.oracle import (
    InvalidOutput,
    OracleError,
    QuotaExceeded,
    RateLimited,
    TextOracle,
    classify_failure,
)
from budgetbuddy.llm.prompts import build_system_prompt
from budgetbuddy.models.schemas import (
    CATEGORIES,
    DEBT_DIRECTIONS,
    AddDebt,
    AddExpense,
    DebtQueryType,
    ExpenseQueryType,
    GeneralHelp,
    IntentResult,
    OracleIntent,
    QueryDebts,
    QueryExpenses,
    ResetToday,
    SetBudget,
    SetBudgetLeft,
    Unclear,
)

QUOTA_MESSAGE = (
    "I'm currently unable to help due to AI service quota limits. "
    "You can still add expenses and debts using the forms on the dashboard."
)
RATE_LIMIT_MESSAGE = "I'm being rate limited. Please wait a moment and try again."
GENERIC_FAILURE_MESSAGE = (
    "I'm having trouble connecting to my AI service right now. "
    "Please try again in a moment."
)


def failure_message(error: OracleError) -> str:
    if isinstance(error, QuotaExceeded):
        return QUOTA_MESSAGE
    if isinstance(error, RateLimited):
        return RATE_LIMIT_MESSAGE
    return GENERIC_FAILURE_MESSAGE


def _money(*candidates: float | None) -> Decimal:
    for value in candidates:
        if value is not None:
            return Decimal(str(value))
    raise ValueError("amount is required for this intent")


def _category(value: str | None) -> str | None:
    value = (value or "").strip().lower()
    return value if value in CATEGORIES else None


def _choice(value: str | None, options: tuple[str, ...], default: str) -> str:
    value = (value or "").strip().lower()
    return value if value in options else default


def to_intent(raw: OracleIntent, message: str) -> IntentResult:
    """Turn the model's flat JSON into the typed intent it describes.

    Raises ValueError (pydantic's ValidationError included) when the fields
    the chosen intent needs are missing or out of range.
    """
    text = raw.response_text

    if raw.intent == "add_expense":
        date = extract_date(message, raw.date)
        return AddExpense(
            amount=Decimal(str(raw.amount)) if raw.amount is not None else None,
            category=_category(raw.category) or "others",
            description=(raw.description or "").strip() or "expense",
            date=date,
            response_text=text,
        )

    if raw.intent == "add_debt":
        direction = (raw.debt_type or "").strip().upper()
        return AddDebt(
            friend_name=(raw.friend_name or "").strip(),
            amount=_money(raw.debt_amount, raw.amount),
            direction=direction if direction in DEBT_DIRECTIONS else "THEY_OWE_ME",
            description=(raw.debt_description or raw.description or "").strip()
            or "expense",
            response_text=text,
        )

    if raw.intent == "query_expenses":
        return QueryExpenses(
            query_type=_choice(raw.query_type, get_args(ExpenseQueryType), "total"),
            category_filter=_category(raw.category_filter),
            response_text=text,
        )

    if raw.intent == "query_debts":
        return QueryDebts(
            query_type=_choice(raw.query_type, get_args(DebtQueryType), "list"),
            response_text=text,
        )

    if raw.intent == "set_budget":
        return SetBudget(amount=_money(raw.budget_amount, raw.amount), response_text=text)

    if raw.intent == "set_budget_left":
        return SetBudgetLeft(
            target_remaining=_money(raw.budget_left, raw.budget_amount, raw.amount),
            response_text=text,
        )

    if raw.intent == "reset_today":
        return ResetToday(response_text=text)

    if raw.intent == "general_help":
        return GeneralHelp(response_text=text)

    return Unclear(response_text=text)


class IntentParser:
    """Classifies a chat message with the language model.

    Never raises: every oracle failure comes back as an ``Unclear`` intent
    whose text tells the user what went wrong.
    """

    def __init__(self, oracle: TextOracle):
        self.oracle = oracle
        self.output_schema = OracleIntent.model_json_schema()

    def classify(self, message: str) -> IntentResult:
        system_prompt = build_system_prompt(today())

        try:
            data = self.oracle.complete(system_prompt, message, self.output_schema)
        except Exception as e:
            return self._failed(classify_failure(e))

        try:
            intent = to_intent(OracleIntent.model_validate(data), message)
        except ValueError as e:
            return self._failed(InvalidOutput(str(e)))

        logger.info("LLM classified message as {}", intent.intent)
        return intent

    def _failed(self, error: OracleError) -> Unclear:
        logger.warning("LLM classification failed ({}): {}", type(error).__name__, error)
        return Unclear(response_text=failure_message(error))
