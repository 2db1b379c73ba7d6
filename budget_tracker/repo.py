"""
Snapshot persistence and import/export.

The whole state is stored as one JSON document::

    {"income": [...], "expenses": [...], "saved_at": "..."}

Export writes the same two arrays plus an ``exported_at`` stamp and a
``summary`` block. Import only requires the two arrays.
"""

import csv
import json
from dataclasses import dataclass, field
from datetime import datetime
from io import StringIO

from .analytics import sort_txns, summarize
from .log import get_logger
from .logic import (
    amount_to_cents,
    cents_to_amount,
    parse_date,
    validate_description,
)
from .models import EXPENSE, INCOME, Transaction
from .store import KeyValueStore, StorageError

logger = get_logger(__name__)


class ImportFormatError(ValueError):
    """Import file is not a snapshot with both record arrays."""


@dataclass
class LoadResult:
    income: list[Transaction] = field(default_factory=list)
    expenses: list[Transaction] = field(default_factory=list)
    warning: str | None = None


def txn_to_dict(txn: Transaction) -> dict:
    return {
        "id": txn.id,
        "description": txn.description,
        "amount": float(cents_to_amount(txn.amount_cents)),
        "date": txn.date.isoformat(),
        "category": txn.category,
        "kind": txn.kind,
    }


def txn_from_dict(raw, kind: str) -> Transaction:
    if not isinstance(raw, dict):
        raise ValueError("record must be an object")
    txn_id = raw.get("id")
    if not txn_id or not isinstance(txn_id, str):
        raise ValueError("record id missing")
    description = validate_description(raw.get("description"))
    category = raw.get("category") or ""
    return Transaction(
        id=txn_id,
        description=description,
        amount_cents=amount_to_cents(raw.get("amount")),
        date=parse_date(raw.get("date")),
        category=category.strip() if isinstance(category, str) else "",
        kind=kind,
    )


def _records_from_list(raw_list, kind: str, seen: set[str]) -> tuple[list, int]:
    records = []
    dropped = 0
    for raw in raw_list:
        try:
            txn = txn_from_dict(raw, kind)
        except ValueError:
            dropped += 1
            continue
        if txn.id in seen:
            dropped += 1
            continue
        seen.add(txn.id)
        records.append(txn)
    return records, dropped


def _snapshot(state) -> dict:
    return {
        "income": [txn_to_dict(t) for t in state.income],
        "expenses": [txn_to_dict(t) for t in state.expenses],
    }


def save_state(store: KeyValueStore, key: str, state, now: datetime | None = None) -> None:
    payload = _snapshot(state)
    payload["saved_at"] = (now or datetime.now()).isoformat()
    store.set(key, json.dumps(payload))
    logger.debug(
        "state_saved", key=key, income=len(state.income), expenses=len(state.expenses)
    )


def load_state(store: KeyValueStore, key: str) -> LoadResult:
    try:
        text = store.get(key)
    except StorageError as exc:
        logger.warning("state_load_failed", key=key, error=str(exc))
        return LoadResult(warning="Saved data could not be read; starting empty.")
    if text is None:
        return LoadResult()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("state_parse_failed", key=key, error=str(exc))
        return LoadResult(warning="Saved data is corrupted; starting empty.")
    if not isinstance(data, dict):
        logger.warning("state_parse_failed", key=key, error="not an object")
        return LoadResult(warning="Saved data is corrupted; starting empty.")

    seen: set[str] = set()
    raw_income = data.get("income") if isinstance(data.get("income"), list) else []
    raw_expenses = (
        data.get("expenses") if isinstance(data.get("expenses"), list) else []
    )
    income, dropped_income = _records_from_list(raw_income, INCOME, seen)
    expenses, dropped_expenses = _records_from_list(raw_expenses, EXPENSE, seen)
    dropped = dropped_income + dropped_expenses

    warning = None
    if dropped:
        logger.warning("state_records_dropped", key=key, dropped=dropped)
        warning = f"{dropped} invalid saved record(s) were skipped."
    logger.info("state_loaded", key=key, income=len(income), expenses=len(expenses))
    return LoadResult(income=income, expenses=expenses, warning=warning)


def export_snapshot(state, now: datetime | None = None) -> str:
    summary = summarize(state.income, state.expenses)
    payload = _snapshot(state)
    payload["exported_at"] = (now or datetime.now()).isoformat()
    payload["summary"] = {
        "total_income": float(cents_to_amount(summary.income_cents)),
        "total_expenses": float(cents_to_amount(summary.expense_cents)),
        "balance": float(cents_to_amount(summary.balance_cents)),
    }
    return json.dumps(payload, indent=2)


def import_snapshot(text: str | bytes) -> tuple[list[Transaction], list[Transaction]]:
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ImportFormatError("invalid format: not JSON") from exc
    if not isinstance(data, dict):
        raise ImportFormatError("invalid format: expected an object")
    raw_income = data.get("income")
    raw_expenses = data.get("expenses")
    if not isinstance(raw_income, list) or not isinstance(raw_expenses, list):
        raise ImportFormatError("invalid format: income and expenses are required")

    seen: set[str] = set()
    income, dropped_income = _records_from_list(raw_income, INCOME, seen)
    expenses, dropped_expenses = _records_from_list(raw_expenses, EXPENSE, seen)
    if dropped_income or dropped_expenses:
        raise ImportFormatError(
            f"invalid format: {dropped_income + dropped_expenses} bad record(s)"
        )
    return income, expenses


def export_csv(txns) -> str:
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(["id", "kind", "date", "description", "category", "amount"])
    for txn in sort_txns(txns):
        writer.writerow(
            [
                txn.id,
                txn.kind,
                txn.date.isoformat(),
                txn.description,
                txn.category,
                f"{cents_to_amount(txn.amount_cents)}",
            ]
        )
    return "\ufeff" + output.getvalue()
