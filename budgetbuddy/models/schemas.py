import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Literal, get_args

from pydantic import BaseModel, Field

Category = Literal[
    "canteen",
    "travel",
    "books",
    "mobile",
    "accommodation",
    "entertainment",
    "medical",
    "clothing",
    "stationery",
    "others",
]
CATEGORIES: tuple[str, ...] = get_args(Category)

DebtDirection = Literal["I_OWE_THEM", "THEY_OWE_ME"]
DEBT_DIRECTIONS: tuple[str, ...] = get_args(DebtDirection)

IntentName = Literal[
    "add_expense",
    "add_debt",
    "query_expenses",
    "query_debts",
    "set_budget",
    "set_budget_left",
    "reset_today",
    "general_help",
    "unclear",
]

ExpenseQueryType = Literal["total", "today", "month", "category", "recent"]
DebtQueryType = Literal["total_owed", "total_owing", "net_balance", "list"]


# ── Records ─────────────────────────────────────────────────────────


class Expense(BaseModel):
    id: int | None = None
    amount: Decimal = Field(gt=0)
    category: Category
    description: str
    date: dt.date
    created_at: dt.datetime = Field(default_factory=dt.datetime.now)


class Debt(BaseModel):
    id: int | None = None
    friend_name: str
    amount: Decimal = Field(gt=0)
    direction: DebtDirection
    description: str
    is_settled: bool = False
    created_at: dt.datetime = Field(default_factory=dt.datetime.now)
    settled_at: dt.datetime | None = None


class DashboardStats(BaseModel):
    today_total: Decimal
    month_total: Decimal
    year_total: Decimal
    budget_left: Decimal
    avg_daily: Decimal
    monthly_budget: Decimal


# ── Dates ───────────────────────────────────────────────────────────


class ExactDate(BaseModel):
    kind: Literal["exact"] = "exact"
    value: dt.date


class TodayDate(BaseModel):
    kind: Literal["today"] = "today"


class NeedsYear(BaseModel):
    """A day and month were given but no year, e.g. "august 10"."""

    kind: Literal["needs_year"] = "needs_year"
    text: str


class NeedsClarification(BaseModel):
    """A vague reference such as "last week" that can't be pinned to a day."""

    kind: Literal["needs_clarification"] = "needs_clarification"
    text: str


DateSpec = Annotated[
    ExactDate | TodayDate | NeedsYear | NeedsClarification,
    Field(discriminator="kind"),
]


# ── Intents ─────────────────────────────────────────────────────────
# response_text is a draft. The dispatcher rewrites it once it knows what
# actually happened.


class AddExpense(BaseModel):
    intent: Literal["add_expense"] = "add_expense"
    # None when the message named no amount; the dispatcher asks for it
    amount: Decimal | None = Field(default=None, gt=0)
    category: Category = "others"
    description: str = "expense"
    date: DateSpec = Field(default_factory=TodayDate)
    response_text: str = ""


class AddDebt(BaseModel):
    intent: Literal["add_debt"] = "add_debt"
    friend_name: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    direction: DebtDirection = "THEY_OWE_ME"
    description: str = "expense"
    response_text: str = ""


class QueryExpenses(BaseModel):
    intent: Literal["query_expenses"] = "query_expenses"
    query_type: ExpenseQueryType = "total"
    category_filter: Category | None = None
    response_text: str = ""


class QueryDebts(BaseModel):
    intent: Literal["query_debts"] = "query_debts"
    query_type: DebtQueryType = "list"
    response_text: str = ""


class SetBudget(BaseModel):
    intent: Literal["set_budget"] = "set_budget"
    amount: Decimal = Field(ge=0)
    response_text: str = ""


class SetBudgetLeft(BaseModel):
    intent: Literal["set_budget_left"] = "set_budget_left"
    target_remaining: Decimal = Field(ge=0)
    response_text: str = ""


class ResetToday(BaseModel):
    intent: Literal["reset_today"] = "reset_today"
    response_text: str = ""


class GeneralHelp(BaseModel):
    intent: Literal["general_help"] = "general_help"
    response_text: str = ""


class Unclear(BaseModel):
    intent: Literal["unclear"] = "unclear"
    response_text: str = ""


IntentResult = Annotated[
    AddExpense
    | AddDebt
    | QueryExpenses
    | QueryDebts
    | SetBudget
    | SetBudgetLeft
    | ResetToday
    | GeneralHelp
    | Unclear,
    Field(discriminator="intent"),
]


class OracleIntent(BaseModel):
    """Flat structured-output shape requested from the language model.

    Only ``intent`` and ``response_text`` are required; which of the other
    fields matter depends on the intent. The parser turns this into one of
    the typed intent models above.
    """

    intent: IntentName
    amount: float | None = None
    category: str | None = None
    description: str | None = None
    date: str | None = None
    query_type: str | None = None
    category_filter: str | None = None
    budget_amount: float | None = None
    budget_left: float | None = None
    friend_name: str | None = None
    debt_amount: float | None = None
    debt_type: str | None = None
    debt_description: str | None = None
    response_text: str


# ── Chat ────────────────────────────────────────────────────────────


class ChatState(str, Enum):
    RECEIVED = "received"
    FAST_PATH_MATCHED = "fast_path_matched"
    ORACLE_CLASSIFIED = "oracle_classified"
    DATE_NEEDS_CLARIFICATION = "date_needs_clarification"
    ACTION_DISPATCHED = "action_dispatched"
    QUERY_ANSWERED = "query_answered"
    UNCLEAR = "unclear"


class ChatRequest(BaseModel):
    message: str


class ChatResponse(BaseModel):
    response_text: str
    intent: IntentName
    state: ChatState
    amount: Decimal | None = None
    category: Category | None = None
    description: str | None = None
    date: dt.date | None = None
    friend_name: str | None = None
    # None when the intent doesn't touch the record store
    action_succeeded: bool | None = None


# ── REST payloads ───────────────────────────────────────────────────


class CreateExpenseRequest(BaseModel):
    amount: Decimal = Field(gt=0)
    category: Category
    description: str = Field(min_length=1)
    date: dt.date | None = None


class UpdateExpenseRequest(BaseModel):
    amount: Decimal | None = Field(default=None, gt=0)
    category: Category | None = None
    description: str | None = None
    date: dt.date | None = None


class CreateDebtRequest(BaseModel):
    friend_name: str = Field(min_length=1)
    amount: Decimal = Field(gt=0)
    direction: DebtDirection
    description: str = Field(min_length=1)


class AmountRequest(BaseModel):
    amount: Decimal = Field(ge=0)
