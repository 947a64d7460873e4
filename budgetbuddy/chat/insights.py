import json

from loguru import logger

from budgetbuddy.chat.dates import today
from budgetbuddy.chat.formatting import format_inr, plural
from budgetbuddy.db.aggregates import expenses_on, sum_amounts, today_total
from budgetbuddy.db.repository import RecordStore
from budgetbuddy.llm.oracle import TextOracle, classify_failure
from budgetbuddy.llm.prompts import INSIGHT_PROMPT_TEMPLATE, INSIGHT_SYSTEM_PROMPT
from budgetbuddy.models.schemas import Debt, Expense

NO_EXPENSES_MESSAGE = (
    "You haven't recorded any expenses yet. Add your first one with the form, "
    "or tell me something like 'I spent ₹50 on coffee at canteen'."
)
NOTHING_TODAY_MESSAGE = "You've spent ₹0 today. Great news, your wallet is safe! 💸"
NO_DEBTS_MESSAGE = "No pending debts! You're all clear."


def _debt_line(index: int, debt: Debt) -> str:
    line = f"{index}. *{debt.friend_name}* — {format_inr(debt.amount)}"
    if debt.description:
        line += f" — {debt.description}"
    return line


def debt_summary(debts: list[Debt]) -> str:
    """Pending debts grouped by direction, with subtotals."""
    if not debts:
        return NO_DEBTS_MESSAGE

    they_owe = [d for d in debts if d.direction == "THEY_OWE_ME"]
    i_owe = [d for d in debts if d.direction == "I_OWE_THEM"]

    lines = ["*Pending debts:*\n"]
    counter = 1
    for title, group in (("They owe you:", they_owe), ("You owe:", i_owe)):
        if not group:
            continue
        lines.append(f"*{title}*")
        for debt in group:
            lines.append(_debt_line(counter, debt))
            counter += 1
        lines.append(f"_Subtotal: {format_inr(sum_amounts(group))}_\n")

    net = sum_amounts(they_owe) - sum_amounts(i_owe)
    lines.append(f"*Net balance: {_net_phrase(net)}*")
    return "\n".join(lines)


def _net_phrase(net) -> str:
    if net > 0:
        return f"your friends owe you {format_inr(net)}"
    if net < 0:
        return f"you owe {format_inr(-net)}"
    return "all square"


class InsightGenerator:
    """Answers spending and debt questions, from the numbers where possible.

    Questions about "today" or totals are computed directly from the record
    store. Only open-ended expense questions go to the language model, and if
    that fails the user still gets the deterministic totals.
    """

    def __init__(self, store: RecordStore, oracle: TextOracle, expense_limit: int = 10):
        self.store = store
        self.oracle = oracle
        self.expense_limit = expense_limit

    def answer_expense_query(self, question: str, category_filter: str | None = None) -> str:
        lowered = question.lower()
        expenses = self.store.list_expenses()

        if "today" in lowered:
            return self.today_answer(expenses)
        if "total" in lowered or "how much" in lowered:
            return self.total_answer(expenses)
        if not expenses:
            return NO_EXPENSES_MESSAGE

        try:
            answer = self.oracle.complete_text(
                INSIGHT_SYSTEM_PROMPT,
                self._insight_prompt(expenses, question, category_filter),
            )
        except Exception as e:
            error = classify_failure(e)
            logger.warning(
                "Insight generation failed ({}): {}, answering with totals",
                type(error).__name__,
                error,
            )
            return self.total_answer(expenses)

        return answer.strip() or self.total_answer(expenses)

    def today_answer(self, expenses: list[Expense]) -> str:
        override = self.store.get_today_override()
        if override is not None:
            if override == 0:
                return NOTHING_TODAY_MESSAGE
            return f"Today's spending stands at {format_inr(override)}."

        rows = expenses_on(expenses, today())
        total = sum_amounts(rows)
        if total == 0:
            return NOTHING_TODAY_MESSAGE
        items = ", ".join(f"{format_inr(e.amount)} on {e.description}" for e in rows)
        return (
            f"Today you've spent {format_inr(total)} across "
            f"{plural(len(rows), 'expense')}: {items}."
        )

    def total_answer(self, expenses: list[Expense]) -> str:
        return (
            f"Your total expenses so far are {format_inr(sum_amounts(expenses))} "
            f"across {plural(len(expenses), 'transaction')}. "
            f"Today's spending: {format_inr(today_total(self.store))}."
        )

    def _insight_prompt(
        self, expenses: list[Expense], question: str, category_filter: str | None = None
    ) -> str:
        rows = expenses
        if category_filter:
            rows = [e for e in expenses if e.category == category_filter]
        recent = [
            e.model_dump(mode="json", exclude={"id", "created_at"})
            for e in rows[: self.expense_limit]
        ]
        return INSIGHT_PROMPT_TEMPLATE.format(
            expenses=json.dumps(recent, ensure_ascii=False),
            count=len(expenses),
            today_total=format_inr(today_total(self.store)),
            overall_total=format_inr(sum_amounts(expenses)),
            category=category_filter or "any",
            question=question,
        )

    def answer_debt_query(self, query_type: str) -> str:
        debts = self.store.list_debts(settled=False)
        i_owe = [d for d in debts if d.direction == "I_OWE_THEM"]
        they_owe = [d for d in debts if d.direction == "THEY_OWE_ME"]

        if query_type == "total_owed":
            if not i_owe:
                return "You don't owe anyone right now. 🎉"
            return (
                f"You owe {format_inr(sum_amounts(i_owe))} in total across "
                f"{plural(len(i_owe), 'debt')}."
            )

        if query_type == "total_owing":
            if not they_owe:
                return "Nobody owes you anything right now."
            return (
                f"Your friends owe you {format_inr(sum_amounts(they_owe))} in total "
                f"across {plural(len(they_owe), 'debt')}."
            )

        if query_type == "net_balance":
            net = sum_amounts(they_owe) - sum_amounts(i_owe)
            return f"Net balance: {_net_phrase(net)}."

        return debt_summary(debts)
