"""
Application controller.

Holds the state, the store and the queue of notices shown on the next
render. User-caused failures (bad input, bad import files, storage errors)
come back as ``Notification`` objects; nothing raised here reaches a route.
"""

from datetime import date as dt_date, datetime, time

from .log import get_logger
from .logic import (
    generate_id,
    parse_amount_to_cents,
    parse_date,
    validate_description,
    validate_kind,
)
from .models import EXPENSE, INCOME, Notification, Transaction
from .repo import (
    ImportFormatError,
    export_csv,
    export_snapshot,
    import_snapshot,
    load_state,
    save_state,
)
from .state import BudgetState, StateEvent
from .store import KeyValueStore, StorageError
from .views import format_money

logger = get_logger(__name__)

KIND_LABELS = {INCOME: "Income", EXPENSE: "Expense"}

DEMO_INCOME = [
    ("Salary", "2500", 1, "Work"),
    ("Book sale", "150", 2, "Sales"),
]
DEMO_EXPENSES = [
    ("Rent", "800", 3, "Housing"),
    ("Groceries", "120", 3, "Food"),
    ("Transport", "100", 3, "Transport"),
]


class BudgetController:
    def __init__(
        self,
        state: BudgetState,
        store: KeyValueStore,
        storage_key: str = "budget_tracker",
    ):
        self.state = state
        self.store = store
        self.storage_key = storage_key
        self._notices: list[Notification] = []
        self._loading = False
        state.subscribe(self._persist)

    def notify(self, message: str, level: str = "info") -> Notification:
        notice = Notification(message, level)
        self._notices.append(notice)
        return notice

    def pending_notices(self) -> list[Notification]:
        notices, self._notices = self._notices, []
        return notices

    def _persist(self, event: StateEvent) -> None:
        if self._loading:
            return
        try:
            save_state(self.store, self.storage_key, self.state)
        except StorageError as exc:
            logger.error("state_save_failed", action=event.action, error=str(exc))
            self.notify("Your data could not be saved.", "warning")

    def load(self) -> Notification:
        result = load_state(self.store, self.storage_key)
        self._loading = True
        try:
            self.state.replace(result.income, result.expenses)
        finally:
            self._loading = False
        if result.warning:
            return self.notify(result.warning, "warning")
        if not len(self.state):
            return self.notify(
                "Welcome! Start by adding your income and expenses.", "info"
            )
        return self.notify(f"Loaded {len(self.state)} transactions.", "success")

    def add(
        self,
        kind: str,
        description: str,
        amount: str,
        date: str,
        category: str = "",
    ) -> Notification:
        try:
            txn = Transaction(
                id=generate_id(),
                description=validate_description(description),
                amount_cents=parse_amount_to_cents(amount),
                date=parse_date(date),
                category=(category or "").strip(),
                kind=validate_kind(kind),
            )
        except ValueError as exc:
            logger.info("transaction_rejected", kind=kind, reason=str(exc))
            return self.notify(f"Please complete all fields correctly: {exc}.", "error")
        self.state.add(txn)
        return self.notify(
            f"{KIND_LABELS[txn.kind]} added: {txn.description} - "
            f"{format_money(txn.amount_cents)}",
            "success",
        )

    def delete(self, txn_id: str) -> Notification:
        if self.state.delete(txn_id) is None:
            return self.notify("Transaction not found.", "error")
        return self.notify("Transaction deleted.", "info")

    def clear(self, confirm: bool) -> Notification:
        if not confirm:
            return self.notify("Nothing was deleted: confirmation required.", "warning")
        self.state.clear()
        return self.notify("All transactions have been deleted.", "info")

    def export_json(self, now: datetime | None = None) -> str:
        logger.info("snapshot_exported", transactions=len(self.state))
        return export_snapshot(self.state, now=now)

    def export_csv(self, txns=None) -> str:
        return export_csv(self.state.all() if txns is None else txns)

    def import_json(self, text: str | bytes) -> Notification:
        try:
            income, expenses = import_snapshot(text)
        except ImportFormatError as exc:
            logger.warning("snapshot_import_failed", error=str(exc))
            return self.notify("Import failed. Check the file format.", "error")
        self.state.replace(income, expenses)
        logger.info("snapshot_imported", income=len(income), expenses=len(expenses))
        return self.notify(
            f"Imported {len(income) + len(expenses)} transactions.", "success"
        )

    def load_demo(self, today: dt_date | None = None) -> Notification:
        current = today or dt_date.today()

        def build(rows, kind):
            return [
                Transaction(
                    id=generate_id(),
                    description=description,
                    amount_cents=parse_amount_to_cents(amount),
                    date=datetime.combine(current.replace(day=day), time(12, 0)),
                    category=category,
                    kind=kind,
                )
                for description, amount, day, category in rows
            ]

        self.state.replace(build(DEMO_INCOME, INCOME), build(DEMO_EXPENSES, EXPENSE))
        return self.notify("Sample data loaded.", "info")
