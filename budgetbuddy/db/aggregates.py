"""Spending aggregates shared by the dashboard and the chat assistant.

Manual overrides win over figures computed from rows, so the chat assistant
and the dashboard always quote the same numbers.
"""

import datetime as dt
from decimal import Decimal

from budgetbuddy.db.repository import RecordStore
from budgetbuddy.models.schemas import DashboardStats, Expense

AVG_DAILY_WINDOW_DAYS = 30


def sum_amounts(expenses: list[Expense]) -> Decimal:
    return sum((e.amount for e in expenses), Decimal(0))


def expenses_on(expenses: list[Expense], day: dt.date) -> list[Expense]:
    return [e for e in expenses if e.date == day]


def expenses_in_month(expenses: list[Expense], year: int, month: int) -> list[Expense]:
    return [e for e in expenses if e.date.year == year and e.date.month == month]


def today_total(store: RecordStore) -> Decimal:
    override = store.get_today_override()
    if override is not None:
        return override
    return sum_amounts(expenses_on(store.list_expenses(), dt.date.today()))


def month_total(store: RecordStore) -> Decimal:
    """Month-to-date spending for the current calendar month."""
    override = store.get_month_override()
    if override is not None:
        return override
    today = dt.date.today()
    return sum_amounts(expenses_in_month(store.list_expenses(), today.year, today.month))


def avg_daily(store: RecordStore) -> Decimal:
    override = store.get_avg_daily_override()
    if override is not None:
        return override
    since = dt.date.today() - dt.timedelta(days=AVG_DAILY_WINDOW_DAYS)
    recent = [e for e in store.list_expenses() if e.date >= since]
    return (sum_amounts(recent) / AVG_DAILY_WINDOW_DAYS).quantize(Decimal("0.01"))


def compute_stats(
    store: RecordStore, year: int | None = None, month: int | None = None
) -> DashboardStats:
    today = dt.date.today()
    year = year or today.year
    month = month or today.month
    expenses = store.list_expenses()

    if (year, month) == (today.year, today.month):
        month_figure = month_total(store)
    else:
        month_figure = sum_amounts(expenses_in_month(expenses, year, month))

    budget = store.get_budget()
    return DashboardStats(
        today_total=today_total(store),
        month_total=month_figure,
        year_total=sum_amounts([e for e in expenses if e.date.year == year]),
        budget_left=budget - month_figure,
        avg_daily=avg_daily(store),
        monthly_budget=budget,
    )
