from decimal import Decimal

import pytest

from budgetbuddy.chat.fast_path import has_zero_amount, match_fast_path
from budgetbuddy.models.schemas import AddDebt, ResetToday, SetBudget


def test_harish_owes_me_for_dinner():
    intent = match_fast_path("harish owes me 500 for dinner")

    assert isinstance(intent, AddDebt)
    assert intent.friend_name == "harish"
    assert intent.amount == Decimal(500)
    assert intent.direction == "THEY_OWE_ME"
    assert intent.description == "dinner"


def test_i_owe_someone():
    intent = match_fast_path("I owe john 200 for lunch")

    assert isinstance(intent, AddDebt)
    assert intent.friend_name == "john"
    assert intent.amount == Decimal(200)
    assert intent.direction == "I_OWE_THEM"
    assert intent.description == "lunch"


def test_friend_name_label_format():
    intent = match_fast_path("add debts friend name : harish , they owe me for dinner 500")

    assert isinstance(intent, AddDebt)
    assert intent.friend_name == "harish"
    assert intent.amount == Decimal(500)
    assert intent.direction == "THEY_OWE_ME"
    assert intent.description == "dinner"


def test_lent_to_friend():
    intent = match_fast_path("lent 300 to sarah for books")

    assert isinstance(intent, AddDebt)
    assert intent.friend_name == "sarah"
    assert intent.amount == Decimal(300)
    assert intent.direction == "THEY_OWE_ME"
    assert intent.description == "books"


@pytest.mark.parametrize(
    "message, amount",
    [
        ("ravi owes me 120 and 80 more later", 120),
        ("I owe priya 75 for 2 coffees", 75),
        ("meera owes 1,500 for rent", 1),
    ],
)
def test_amount_is_first_integer(message, amount):
    intent = match_fast_path(message)

    assert isinstance(intent, AddDebt)
    assert intent.amount == Decimal(amount)


@pytest.mark.parametrize(
    "message, direction",
    [
        ("I owe kiran 50", "I_OWE_THEM"),
        ("yes i owe ravi 50 for snacks", "I_OWE_THEM"),
        ("kiran owes me 50", "THEY_OWE_ME"),
        ("they owe me 50, kiran owes", "THEY_OWE_ME"),
        ("lent to kiran 50", "THEY_OWE_ME"),
    ],
)
def test_direction_follows_type_phrase(message, direction):
    intent = match_fast_path(message)

    assert isinstance(intent, AddDebt)
    assert intent.direction == direction


def test_debt_without_amount_defers():
    assert match_fast_path("harish owes me for dinner") is None


def test_debt_without_name_defers():
    assert match_fast_path("I borrowed 200 yesterday") is None


def test_description_defaults_to_expense():
    intent = match_fast_path("harish owes me 500")

    assert isinstance(intent, AddDebt)
    assert intent.description == "expense"


@pytest.mark.parametrize(
    "message",
    ["reset today", "Please clear today's spending", "set today to 0", "set today's total ₹0"],
)
def test_reset_today(message):
    assert isinstance(match_fast_path(message), ResetToday)


@pytest.mark.parametrize(
    "message", ["set budget to 0", "budget ₹0 please", "remove budget", "I want no budget"]
)
def test_zero_budget(message):
    intent = match_fast_path(message)

    assert isinstance(intent, SetBudget)
    assert intent.amount == 0


def test_non_zero_budget_goes_to_llm():
    assert match_fast_path("Set my budget to ₹5000") is None


def test_reset_wins_over_budget():
    assert isinstance(match_fast_path("reset today and set budget 0"), ResetToday)


def test_budget_wins_over_debt():
    intent = match_fast_path("no budget, harish owes me 500")

    assert isinstance(intent, SetBudget)


def test_plain_expense_not_matched():
    assert match_fast_path("I spent ₹80 on lunch at canteen") is None


def test_keyword_inside_other_word_ignored():
    assert match_fast_path("bought a calendar for 120") is None


@pytest.mark.parametrize(
    "text, expected",
    [("0", True), ("₹0", True), ("0.00", True), ("5000", False), ("0.5", False), ("10.0", False)],
)
def test_zero_amount_detection(text, expected):
    assert has_zero_amount(text) is expected
