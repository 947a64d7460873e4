import datetime as dt
from decimal import Decimal

import pytest

from budgetbuddy.db.aggregates import compute_stats, month_total
from budgetbuddy.models.schemas import (
    AddDebt,
    AddExpense,
    ChatState,
    ExactDate,
    GeneralHelp,
    NeedsClarification,
    NeedsYear,
    QueryDebts,
    QueryExpenses,
    ResetToday,
    SetBudget,
    SetBudgetLeft,
    TodayDate,
    Unclear,
)


def test_add_expense_today(dispatcher, store):
    intent = AddExpense(
        amount=Decimal(80), category="canteen", description="lunch", response_text="draft"
    )

    response = dispatcher.dispatch(intent, "I spent 80 on lunch")

    assert response.state == ChatState.ACTION_DISPATCHED
    assert response.action_succeeded is True
    assert response.response_text == (
        "Great! I've added your expense: ₹80 for lunch in the canteen category for today."
    )
    [expense] = store.list_expenses()
    assert expense.date == dt.date.today()
    assert expense.amount == Decimal(80)


def test_add_expense_on_exact_date(dispatcher, store):
    intent = AddExpense(
        amount=Decimal(450),
        category="books",
        description="physics textbook",
        date=ExactDate(value=dt.date(2024, 7, 15)),
    )

    response = dispatcher.dispatch(intent, "textbook 450 on 15 july 2024")

    [expense] = store.list_expenses()
    assert expense.date == dt.date(2024, 7, 15)
    assert response.date == dt.date(2024, 7, 15)
    assert response.response_text.endswith("for July 15, 2024.")


@pytest.mark.parametrize(
    "date, quoted",
    [(NeedsYear(text="august 10"), "august 10"), (NeedsClarification(text="last week"), "last week")],
)
def test_unresolved_date_asks_and_stores_nothing(dispatcher, store, date, quoted):
    intent = AddExpense(amount=Decimal(60), category="travel", description="auto fare", date=date)

    response = dispatcher.dispatch(intent, "auto fare 60")

    assert response.state == ChatState.DATE_NEEDS_CLARIFICATION
    assert response.action_succeeded is None
    assert f'"{quoted}"' in response.response_text
    assert "₹60 for auto fare" in response.response_text
    assert store.list_expenses() == []


def test_unresolved_date_without_amount_echoes_only_what_was_understood(dispatcher, store):
    intent = AddExpense(description="lunch", date=NeedsYear(text="august 10"))

    response = dispatcher.dispatch(intent, "add lunch expense on august 10")

    assert response.state == ChatState.DATE_NEEDS_CLARIFICATION
    assert response.response_text.startswith("I understood your expense for lunch.")
    assert "₹" not in response.response_text
    assert store.list_expenses() == []


def test_missing_amount_asks_and_stores_nothing(dispatcher, store):
    response = dispatcher.dispatch(AddExpense(description="lunch"), "add lunch expense")

    assert response.state == ChatState.UNCLEAR
    assert response.action_succeeded is None
    assert "How much did you spend on lunch?" in response.response_text
    assert store.list_expenses() == []


def test_add_debt(dispatcher, store):
    intent = AddDebt(friend_name="harish", amount=Decimal(500), description="dinner")

    response = dispatcher.dispatch(intent, "harish owes me 500 for dinner")

    assert response.response_text == "Got it! I've recorded that harish owes you ₹500 for dinner."
    [debt] = store.list_debts()
    assert debt.friend_name == "harish"
    assert debt.direction == "THEY_OWE_ME"
    assert debt.is_settled is False


def test_add_debt_i_owe(dispatcher):
    intent = AddDebt(
        friend_name="john", amount=Decimal(200), direction="I_OWE_THEM", description="lunch"
    )

    response = dispatcher.dispatch(intent, "I owe john 200 for lunch")

    assert "you owe john ₹200" in response.response_text


def test_set_budget_is_idempotent(dispatcher, store):
    intent = SetBudget(amount=Decimal(5000))

    dispatcher.dispatch(intent, "budget 5000")
    once = store.get_budget()
    dispatcher.dispatch(intent, "budget 5000")

    assert store.get_budget() == once == Decimal(5000)


def test_zero_budget_is_phrased_differently(dispatcher, store):
    positive = dispatcher.dispatch(SetBudget(amount=Decimal(5000)), "x")
    zero = dispatcher.dispatch(SetBudget(amount=Decimal(0)), "x")

    assert "₹5,000" in positive.response_text
    assert "removed your monthly budget" in zero.response_text
    assert store.get_budget() == 0


@pytest.mark.parametrize("target", [Decimal(0), Decimal(1200), Decimal("99.50")])
def test_set_budget_left(dispatcher, store, target):
    store.append_expense(Decimal(300), "canteen", "lunch", dt.date.today())
    store.append_expense(Decimal(700), "books", "notes", dt.date.today().replace(day=1))

    response = dispatcher.dispatch(SetBudgetLeft(target_remaining=target), "x")

    assert store.get_budget() - month_total(store) == target
    assert compute_stats(store).budget_left == target
    assert response.amount == Decimal(1000) + target


def test_set_budget_left_respects_month_override(dispatcher, store):
    store.set_month_override(Decimal(2500))

    dispatcher.dispatch(SetBudgetLeft(target_remaining=Decimal(500)), "x")

    assert store.get_budget() == Decimal(3000)


def test_reset_today_keeps_rows(dispatcher, store):
    store.append_expense(Decimal(80), "canteen", "lunch", dt.date.today())

    response = dispatcher.dispatch(ResetToday(), "reset today")

    assert response.action_succeeded is True
    assert store.get_today_override() == 0
    assert len(store.list_expenses()) == 1


def test_reset_today_then_today_query(dispatcher, store):
    store.append_expense(Decimal(80), "canteen", "lunch", dt.date.today())
    dispatcher.dispatch(ResetToday(), "reset today")

    response = dispatcher.dispatch(QueryExpenses(query_type="today"), "how much did I spend today?")

    assert response.state == ChatState.QUERY_ANSWERED
    assert "₹0" in response.response_text


def test_storage_failure_is_reported_not_raised(dispatcher, store, monkeypatch):
    def broken(*args, **kwargs):
        raise OSError("disk full")

    monkeypatch.setattr(store, "append_expense", broken)

    response = dispatcher.dispatch(
        AddExpense(amount=Decimal(80), category="canteen", description="lunch", date=TodayDate()),
        "lunch 80",
    )

    assert response.intent == "add_expense"
    assert response.action_succeeded is False
    assert "form" in response.response_text


def test_failed_lookup_is_answered_not_raised(dispatcher, store, monkeypatch):
    def broken(*args, **kwargs):
        raise OSError("corrupt ledger")

    monkeypatch.setattr(store, "list_expenses", broken)
    monkeypatch.setattr(store, "list_debts", broken)

    expenses = dispatcher.dispatch(QueryExpenses(query_type="total"), "how much in total?")
    debts = dispatcher.dispatch(QueryDebts(query_type="list"), "who owes me?")

    assert expenses.state == ChatState.QUERY_ANSWERED
    assert "couldn't look up your expenses" in expenses.response_text
    assert "couldn't look up your debts" in debts.response_text


def test_category_question_reaches_the_insight_prompt(dispatcher, store, oracle):
    store.append_expense(Decimal(80), "canteen", "lunch", dt.date(2024, 1, 5))
    store.append_expense(Decimal(400), "books", "notes", dt.date(2024, 1, 6))
    oracle.text = "Mostly notes."

    response = dispatcher.dispatch(
        QueryExpenses(query_type="category", category_filter="books"),
        "what do I buy in books?",
    )

    assert response.response_text == "Mostly notes."
    assert response.category == "books"
    assert "Category asked about: books" in oracle.calls[0]
    assert '"description": "notes"' in oracle.calls[0]
    assert '"description": "lunch"' not in oracle.calls[0]


def test_help_and_unclear_pass_through(dispatcher, store):
    help_response = dispatcher.dispatch(GeneralHelp(response_text="Try 'spent 50 on tea'"), "help")
    unclear = dispatcher.dispatch(Unclear(response_text="Sorry?"), "???")

    assert help_response.response_text == "Try 'spent 50 on tea'"
    assert unclear.response_text == "Sorry?"
    assert unclear.state == ChatState.UNCLEAR
    assert store.list_expenses() == []
