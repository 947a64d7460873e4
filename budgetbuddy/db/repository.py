import datetime as dt
import threading
from decimal import Decimal

from tinydb import Query, TinyDB
from tinydb.storages import MemoryStorage

from budgetbuddy.models.schemas import Debt, Expense

Meta = Query()


class RecordStore:
    """Expenses, debts, the monthly budget and manual stat overrides.

    Budget and overrides live as keyed documents in a ``meta`` table. The
    today override is stamped with the day it was set and stops applying at
    midnight or as soon as another expense dated today is recorded. The month
    override is stamped with its month the same way.
    """

    def __init__(
        self,
        db_path: str = "budget_buddy.json",
        default_budget: Decimal = Decimal("10000"),
    ):
        if db_path:
            self.db = TinyDB(db_path)
        else:
            self.db = TinyDB(storage=MemoryStorage)
        self.expenses = self.db.table("expenses")
        self.debts = self.db.table("debts")
        self.meta = self.db.table("meta")
        self.default_budget = default_budget
        self._lock = threading.RLock()

    def close(self) -> None:
        with self._lock:
            self.db.close()

    # ── Expenses ────────────────────────────────────────────────────

    def append_expense(
        self, amount: Decimal, category: str, description: str, date: dt.date
    ) -> Expense:
        expense = Expense(
            amount=amount, category=category, description=description, date=date
        )
        data = expense.model_dump(mode="json")
        data.pop("id", None)
        with self._lock:
            expense.id = self.expenses.insert(data)
            if date == dt.date.today():
                self.meta.remove(Meta.key == "today_override")
        return expense

    def get_expense(self, id: int) -> Expense | None:
        with self._lock:
            doc = self.expenses.get(doc_id=id)
        if doc is None:
            return None
        return Expense(id=doc.doc_id, **doc)

    def list_expenses(
        self,
        category: str | None = None,
        start: dt.date | None = None,
        end: dt.date | None = None,
    ) -> list[Expense]:
        """All expenses, newest first, optionally filtered (bounds inclusive)."""
        with self._lock:
            docs = self.expenses.all()
        expenses = [Expense(id=doc.doc_id, **doc) for doc in docs]
        if category:
            expenses = [e for e in expenses if e.category == category]
        if start:
            expenses = [e for e in expenses if e.date >= start]
        if end:
            expenses = [e for e in expenses if e.date <= end]
        expenses.sort(key=lambda e: (e.date, e.created_at), reverse=True)
        return expenses

    def update_expense(self, id: int, **fields) -> Expense | None:
        updates = {k: v for k, v in fields.items() if v is not None}
        with self._lock:
            doc = self.expenses.get(doc_id=id)
            if doc is None:
                return None
            if updates:
                merged = Expense(**{**doc, **updates})
                data = merged.model_dump(mode="json", include=set(updates))
                self.expenses.update(data, doc_ids=[id])
        return self.get_expense(id)

    def delete_expense(self, id: int) -> bool:
        with self._lock:
            if self.expenses.get(doc_id=id) is None:
                return False
            self.expenses.remove(doc_ids=[id])
        return True

    # ── Debts ───────────────────────────────────────────────────────

    def append_debt(
        self, friend_name: str, amount: Decimal, direction: str, description: str
    ) -> Debt:
        debt = Debt(
            friend_name=friend_name,
            amount=amount,
            direction=direction,
            description=description,
        )
        data = debt.model_dump(mode="json")
        data.pop("id", None)
        with self._lock:
            debt.id = self.debts.insert(data)
        return debt

    def get_debt(self, id: int) -> Debt | None:
        with self._lock:
            doc = self.debts.get(doc_id=id)
        if doc is None:
            return None
        return Debt(id=doc.doc_id, **doc)

    def list_debts(self, settled: bool | None = None) -> list[Debt]:
        """Debts, newest first. ``settled`` filters on the settled flag."""
        with self._lock:
            docs = self.debts.all()
        debts = [Debt(id=doc.doc_id, **doc) for doc in docs]
        if settled is not None:
            debts = [d for d in debts if d.is_settled == settled]
        debts.sort(key=lambda d: d.created_at, reverse=True)
        return debts

    def settle_debt(self, id: int) -> Debt | None:
        with self._lock:
            if self.debts.get(doc_id=id) is None:
                return None
            self.debts.update(
                {"is_settled": True, "settled_at": dt.datetime.now().isoformat()},
                doc_ids=[id],
            )
        return self.get_debt(id)

    def delete_debt(self, id: int) -> bool:
        with self._lock:
            if self.debts.get(doc_id=id) is None:
                return False
            self.debts.remove(doc_ids=[id])
        return True

    # ── Budget & overrides ──────────────────────────────────────────

    def _get_meta(self, key: str) -> dict | None:
        with self._lock:
            return self.meta.get(Meta.key == key)

    def _set_meta(self, key: str, **fields) -> None:
        with self._lock:
            self.meta.upsert({"key": key, **fields}, Meta.key == key)

    def get_budget(self) -> Decimal:
        doc = self._get_meta("budget")
        if doc is None:
            return self.default_budget
        return Decimal(doc["value"])

    def set_budget(self, amount: Decimal) -> None:
        self._set_meta("budget", value=str(amount))

    def set_today_override(self, amount: Decimal) -> None:
        self._set_meta(
            "today_override", value=str(amount), day=dt.date.today().isoformat()
        )

    def get_today_override(self) -> Decimal | None:
        doc = self._get_meta("today_override")
        if doc is None or doc.get("day") != dt.date.today().isoformat():
            return None
        return Decimal(doc["value"])

    def set_month_override(self, amount: Decimal) -> None:
        self._set_meta(
            "month_override", value=str(amount), month=dt.date.today().strftime("%Y-%m")
        )

    def get_month_override(self) -> Decimal | None:
        doc = self._get_meta("month_override")
        if doc is None or doc.get("month") != dt.date.today().strftime("%Y-%m"):
            return None
        return Decimal(doc["value"])

    def set_avg_daily_override(self, amount: Decimal) -> None:
        self._set_meta("avg_daily_override", value=str(amount))

    def get_avg_daily_override(self) -> Decimal | None:
        doc = self._get_meta("avg_daily_override")
        if doc is None:
            return None
        return Decimal(doc["value"])

    def clear_overrides(self) -> None:
        with self._lock:
            self.meta.remove(
                Meta.key.one_of(["today_override", "month_override", "avg_daily_override"])
            )
