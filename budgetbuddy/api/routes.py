import datetime as dt

from fastapi import APIRouter, HTTPException
from loguru import logger

from budgetbuddy.db.aggregates import compute_stats
from budgetbuddy.deps import pipeline, store
from budgetbuddy.models.schemas import (
    AmountRequest,
    ChatRequest,
    ChatResponse,
    CreateDebtRequest,
    CreateExpenseRequest,
    DashboardStats,
    Debt,
    Expense,
    UpdateExpenseRequest,
)

router = APIRouter(prefix="/api")


@router.post("/chat", response_model=ChatResponse)
def chat(request: ChatRequest):
    if not request.message.strip():
        raise HTTPException(status_code=400, detail="Message is required")
    return pipeline.handle_chat_message(request.message)


# ── Expenses ────────────────────────────────────────────────────────


@router.get("/expenses", response_model=list[Expense])
def list_expenses(
    category: str | None = None,
    start_date: dt.date | None = None,
    end_date: dt.date | None = None,
):
    return store.list_expenses(category=category, start=start_date, end=end_date)


@router.get("/expenses/analytics/stats", response_model=DashboardStats)
def get_stats(year: int | None = None, month: int | None = None):
    if month is not None and not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="Month must be between 1 and 12")
    return compute_stats(store, year=year, month=month)


@router.get("/expenses/{expense_id}", response_model=Expense)
def get_expense(expense_id: int):
    expense = store.get_expense(expense_id)
    if expense is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense


@router.post("/expenses", response_model=Expense, status_code=201)
def create_expense(request: CreateExpenseRequest):
    expense = store.append_expense(
        request.amount,
        request.category,
        request.description,
        request.date or dt.date.today(),
    )
    logger.info("Created expense #{} ({})", expense.id, expense.description)
    return expense


@router.put("/expenses/{expense_id}", response_model=Expense)
def update_expense(expense_id: int, request: UpdateExpenseRequest):
    updated = store.update_expense(expense_id, **request.model_dump(exclude_none=True))
    if updated is None:
        raise HTTPException(status_code=404, detail="Expense not found")
    logger.info("Updated expense #{}", expense_id)
    return updated


@router.delete("/expenses/{expense_id}")
def delete_expense(expense_id: int):
    if not store.delete_expense(expense_id):
        raise HTTPException(status_code=404, detail="Expense not found")
    logger.info("Deleted expense #{}", expense_id)
    return {"detail": "Expense deleted"}


# ── Manual stat overrides ───────────────────────────────────────────


@router.post("/stats/set-today")
def set_today_total(request: AmountRequest):
    store.set_today_override(request.amount)
    return {"success": True}


@router.post("/stats/set-month")
def set_month_total(request: AmountRequest):
    store.set_month_override(request.amount)
    return {"success": True}


@router.post("/stats/set-avg-daily")
def set_avg_daily(request: AmountRequest):
    store.set_avg_daily_override(request.amount)
    return {"success": True}


@router.post("/stats/set-budget")
def set_budget(request: AmountRequest):
    store.set_budget(request.amount)
    logger.info("Budget set to {}", request.amount)
    return {"success": True}


# ── Debts ───────────────────────────────────────────────────────────


@router.get("/debts", response_model=list[Debt])
def list_debts(settled: bool | None = None):
    return store.list_debts(settled=settled)


@router.post("/debts", response_model=Debt, status_code=201)
def create_debt(request: CreateDebtRequest):
    debt = store.append_debt(
        request.friend_name, request.amount, request.direction, request.description
    )
    logger.info("Created debt #{} for {}", debt.id, debt.friend_name)
    return debt


@router.post("/debts/{debt_id}/settle", response_model=Debt)
def settle_debt(debt_id: int):
    existing = store.get_debt(debt_id)
    if existing is None:
        raise HTTPException(status_code=404, detail="Debt not found")
    if existing.is_settled:
        raise HTTPException(status_code=400, detail="Debt is already settled")

    settled = store.settle_debt(debt_id)
    logger.info("Settled debt #{}", debt_id)
    return settled


@router.delete("/debts/{debt_id}")
def delete_debt(debt_id: int):
    if not store.delete_debt(debt_id):
        raise HTTPException(status_code=404, detail="Debt not found")
    logger.info("Deleted debt #{}", debt_id)
    return {"detail": "Debt deleted"}
