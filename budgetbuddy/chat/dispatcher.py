from decimal import Decimal

from loguru import logger

from budgetbuddy.chat.dates import resolve_date, today
from budgetbuddy.chat.formatting import format_display_date, format_inr
from budgetbuddy.chat.insights import InsightGenerator
from budgetbuddy.db.aggregates import month_total
from budgetbuddy.db.repository import RecordStore
from budgetbuddy.models.schemas import (
    AddDebt,
    AddExpense,
    ChatResponse,
    ChatState,
    GeneralHelp,
    IntentResult,
    NeedsClarification,
    NeedsYear,
    QueryDebts,
    QueryExpenses,
    ResetToday,
    SetBudget,
    SetBudgetLeft,
    Unclear,
)


class ActionDispatcher:
    """Carries out a classified intent against the record store.

    Each handler performs at most one write, then replaces the draft
    response text with what was actually stored. A failed write becomes an
    apology pointing at the dashboard forms; it is never retried.
    """

    def __init__(self, store: RecordStore, insights: InsightGenerator):
        self.store = store
        self.insights = insights
        self._handlers = {
            "add_expense": self._add_expense,
            "add_debt": self._add_debt,
            "query_expenses": self._query_expenses,
            "query_debts": self._query_debts,
            "set_budget": self._set_budget,
            "set_budget_left": self._set_budget_left,
            "reset_today": self._reset_today,
            "general_help": self._pass_through,
            "unclear": self._pass_through,
        }

    def dispatch(self, intent: IntentResult, message: str) -> ChatResponse:
        return self._handlers[intent.intent](intent, message)

    def _add_expense(self, intent: AddExpense, message: str) -> ChatResponse:
        response = ChatResponse(
            response_text=intent.response_text,
            intent=intent.intent,
            state=ChatState.ACTION_DISPATCHED,
            amount=intent.amount,
            category=intent.category,
            description=intent.description,
        )
        if intent.amount is not None:
            understood = (
                f"I understood your expense: {format_inr(intent.amount)} "
                f"for {intent.description}."
            )
        else:
            understood = f"I understood your expense for {intent.description}."

        if isinstance(intent.date, NeedsYear):
            year = today().year
            partial = intent.date.text
            response.state = ChatState.DATE_NEEDS_CLARIFICATION
            response.response_text = (
                f"{understood} But which year did you mean for \"{partial}\"? "
                f"Please say something like \"{partial} {year - 1}\" or \"{partial} {year}\"."
            )
            return response

        if isinstance(intent.date, NeedsClarification):
            year = today().year
            response.state = ChatState.DATE_NEEDS_CLARIFICATION
            response.response_text = (
                f"{understood} Could you be more specific about \"{intent.date.text}\"? "
                f"Please give an exact date like \"august 10 {year}\" or \"10/08/{year}\"."
            )
            return response

        if intent.amount is None:
            response.state = ChatState.UNCLEAR
            response.response_text = (
                f"How much did you spend on {intent.description}? "
                f"Try something like \"{intent.description} 80\"."
            )
            return response

        expense_date = resolve_date(intent.date)
        response.date = expense_date
        try:
            self.store.append_expense(
                intent.amount, intent.category, intent.description, expense_date
            )
        except Exception:
            logger.exception("Failed to save expense from chat")
            response.action_succeeded = False
            response.response_text = (
                "I understood your expense details, but couldn't save it. "
                "Please try using the form instead."
            )
            return response

        when = "today" if expense_date == today() else format_display_date(expense_date)
        response.action_succeeded = True
        response.response_text = (
            f"Great! I've added your expense: {format_inr(intent.amount)} for "
            f"{intent.description} in the {intent.category} category for {when}."
        )
        return response

    def _add_debt(self, intent: AddDebt, message: str) -> ChatResponse:
        response = ChatResponse(
            response_text=intent.response_text,
            intent=intent.intent,
            state=ChatState.ACTION_DISPATCHED,
            amount=intent.amount,
            description=intent.description,
            friend_name=intent.friend_name,
        )
        try:
            self.store.append_debt(
                intent.friend_name, intent.amount, intent.direction, intent.description
            )
        except Exception:
            logger.exception("Failed to save debt from chat")
            response.action_succeeded = False
            response.response_text = (
                "I understood the debt details, but couldn't save them. "
                "Please try adding it from the debt tracker form instead."
            )
            return response

        amount = format_inr(intent.amount)
        if intent.direction == "I_OWE_THEM":
            what = f"you owe {intent.friend_name} {amount}"
        else:
            what = f"{intent.friend_name} owes you {amount}"
        response.action_succeeded = True
        response.response_text = (
            f"Got it! I've recorded that {what} for {intent.description}."
        )
        return response

    def _set_budget(self, intent: SetBudget, message: str) -> ChatResponse:
        response = ChatResponse(
            response_text=intent.response_text,
            intent=intent.intent,
            state=ChatState.ACTION_DISPATCHED,
            amount=intent.amount,
        )
        try:
            self.store.set_budget(intent.amount)
        except Exception:
            logger.exception("Failed to save budget from chat")
            response.action_succeeded = False
            response.response_text = (
                "I understood you want to set a budget, but couldn't save it. "
                "Please try setting it from the dashboard instead."
            )
            return response

        response.action_succeeded = True
        if intent.amount == 0:
            response.response_text = (
                "Done! I've removed your monthly budget, so there's no spending "
                "limit now. Set one anytime, e.g. \"Set my budget to ₹5000\"."
            )
        else:
            response.response_text = (
                f"Perfect! I've set your monthly budget to {format_inr(intent.amount)}. "
                "You can now track how much you have left to spend each month."
            )
        return response

    def _set_budget_left(self, intent: SetBudgetLeft, message: str) -> ChatResponse:
        response = ChatResponse(
            response_text=intent.response_text,
            intent=intent.intent,
            state=ChatState.ACTION_DISPATCHED,
        )
        try:
            spent = month_total(self.store)
            budget = spent + intent.target_remaining
            self.store.set_budget(budget)
        except Exception:
            logger.exception("Failed to update budget from chat")
            response.action_succeeded = False
            response.response_text = (
                "I understood how much budget you want left, but couldn't save it. "
                "Please try setting your budget from the dashboard instead."
            )
            return response

        response.amount = budget
        response.action_succeeded = True
        response.response_text = (
            f"Done! You've spent {format_inr(spent)} this month, so I've set your "
            f"monthly budget to {format_inr(budget)}. That leaves exactly "
            f"{format_inr(intent.target_remaining)} to spend."
        )
        return response

    def _reset_today(self, intent: ResetToday, message: str) -> ChatResponse:
        response = ChatResponse(
            response_text=intent.response_text,
            intent=intent.intent,
            state=ChatState.ACTION_DISPATCHED,
            amount=Decimal(0),
        )
        try:
            self.store.set_today_override(Decimal(0))
        except Exception:
            logger.exception("Failed to reset today's spending from chat")
            response.action_succeeded = False
            response.response_text = (
                "I couldn't reset today's spending. "
                "Please try editing it on the dashboard instead."
            )
            return response

        response.action_succeeded = True
        response.response_text = (
            "Done! Today's spending now shows ₹0. Your expense records are kept, "
            "and anything you add later today will be counted again."
        )
        return response

    def _query_expenses(self, intent: QueryExpenses, message: str) -> ChatResponse:
        response = ChatResponse(
            response_text=intent.response_text,
            intent=intent.intent,
            state=ChatState.QUERY_ANSWERED,
            category=intent.category_filter,
        )
        try:
            response.response_text = self.insights.answer_expense_query(
                message, category_filter=intent.category_filter
            )
        except Exception:
            logger.exception("Failed to answer expense question from chat")
            response.response_text = (
                "I couldn't look up your expenses right now. "
                "Please check the dashboard instead."
            )
        return response

    def _query_debts(self, intent: QueryDebts, message: str) -> ChatResponse:
        response = ChatResponse(
            response_text=intent.response_text,
            intent=intent.intent,
            state=ChatState.QUERY_ANSWERED,
        )
        try:
            response.response_text = self.insights.answer_debt_query(intent.query_type)
        except Exception:
            logger.exception("Failed to answer debt question from chat")
            response.response_text = (
                "I couldn't look up your debts right now. "
                "Please check the debt tracker instead."
            )
        return response

    def _pass_through(self, intent: GeneralHelp | Unclear, message: str) -> ChatResponse:
        state = ChatState.UNCLEAR if intent.intent == "unclear" else ChatState.QUERY_ANSWERED
        return ChatResponse(
            response_text=intent.response_text, intent=intent.intent, state=state
        )
