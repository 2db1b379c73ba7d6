"""
In-memory application state.

``BudgetState`` owns the two record lists for the lifetime of the app and
tells subscribers about every mutation. Persistence and the dashboard view
hook in as subscribers; nothing else writes to the lists.
"""

from dataclasses import dataclass
from typing import Callable

from .log import get_logger
from .models import INCOME, Transaction

logger = get_logger(__name__)

ADDED = "added"
DELETED = "deleted"
CLEARED = "cleared"
REPLACED = "replaced"


@dataclass(frozen=True)
class StateEvent:
    action: str
    txn: Transaction | None = None


Listener = Callable[[StateEvent], None]


class BudgetState:
    def __init__(self, income=None, expenses=None):
        self.income: list[Transaction] = list(income or [])
        self.expenses: list[Transaction] = list(expenses or [])
        self._listeners: list[Listener] = []

    def __len__(self) -> int:
        return len(self.income) + len(self.expenses)

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: StateEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    def _list_for(self, kind: str) -> list[Transaction]:
        return self.income if kind == INCOME else self.expenses

    def all(self) -> list[Transaction]:
        return self.income + self.expenses

    def get(self, txn_id: str) -> Transaction | None:
        for txn in self.all():
            if txn.id == txn_id:
                return txn
        return None

    def add(self, txn: Transaction) -> None:
        if self.get(txn.id) is not None:
            raise ValueError("transaction id already exists")
        self._list_for(txn.kind).append(txn)
        logger.info("transaction_added", txn_id=txn.id, kind=txn.kind)
        self._emit(StateEvent(ADDED, txn))

    def delete(self, txn_id: str) -> Transaction | None:
        for records in (self.income, self.expenses):
            for index, txn in enumerate(records):
                if txn.id == txn_id:
                    del records[index]
                    logger.info("transaction_deleted", txn_id=txn_id, kind=txn.kind)
                    self._emit(StateEvent(DELETED, txn))
                    return txn
        return None

    def clear(self) -> None:
        self.income = []
        self.expenses = []
        logger.info("transactions_cleared")
        self._emit(StateEvent(CLEARED))

    def replace(self, income, expenses) -> None:
        self.income = list(income)
        self.expenses = list(expenses)
        logger.info(
            "transactions_replaced",
            income=len(self.income),
            expenses=len(self.expenses),
        )
        self._emit(StateEvent(REPLACED))
