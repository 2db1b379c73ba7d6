import json
from datetime import datetime

import pytest

from budget_tracker.analytics import summarize
from budget_tracker.models import Transaction
from budget_tracker.repo import (
    ImportFormatError,
    export_csv,
    export_snapshot,
    import_snapshot,
    load_state,
    save_state,
)
from budget_tracker.state import BudgetState
from budget_tracker.store import MemoryStore, StorageError

KEY = "budget_tracker"


def txn(txn_id, kind, amount_cents, when="2026-03-01T10:00:00", category=""):
    return Transaction(
        id=txn_id,
        description=f"record {txn_id}",
        amount_cents=amount_cents,
        date=datetime.fromisoformat(when),
        category=category,
        kind=kind,
    )


def sample_state():
    return BudgetState(
        income=[txn("i1", "income", 50000), txn("i2", "income", 30000, category="Sales")],
        expenses=[txn("e1", "expense", 20000, "2026-03-02T09:15:00", "Rent")],
    )


class BrokenStore:
    def get(self, key):
        raise StorageError("disk gone")

    def set(self, key, value):
        raise StorageError("disk gone")

    def delete(self, key):
        raise StorageError("disk gone")


def test_save_then_load_restores_records():
    store = MemoryStore()
    state = sample_state()

    save_state(store, KEY, state, now=datetime(2026, 3, 5, 8, 0))
    payload = json.loads(store.get(KEY))
    result = load_state(store, KEY)

    assert payload["saved_at"] == "2026-03-05T08:00:00"
    assert payload["income"][0] == {
        "id": "i1",
        "description": "record i1",
        "amount": 500.0,
        "date": "2026-03-01T10:00:00",
        "category": "",
        "kind": "income",
    }
    assert result.warning is None
    assert result.income == state.income
    assert result.expenses == state.expenses


def test_load_missing_key_is_empty_without_warning():
    result = load_state(MemoryStore(), KEY)
    assert (result.income, result.expenses, result.warning) == ([], [], None)


@pytest.mark.parametrize("stored", ["{not json", "[1, 2]", '"text"'])
def test_load_corrupted_snapshot_degrades_to_empty(stored):
    result = load_state(MemoryStore({KEY: stored}), KEY)
    assert result.income == []
    assert result.expenses == []
    assert "corrupted" in result.warning


def test_load_storage_failure_degrades_to_empty():
    result = load_state(BrokenStore(), KEY)
    assert result.income == [] and result.expenses == []
    assert result.warning


def test_load_drops_invalid_records_and_uses_list_kind():
    stored = {
        "income": [
            {"id": "ok", "description": "Salary", "amount": 100, "date": "2026-03-01", "kind": "expense"},
            {"id": "", "description": "no id", "amount": 5, "date": "2026-03-01"},
            {"id": "neg", "description": "negative", "amount": -5, "date": "2026-03-01"},
            {"id": "str", "description": "text", "amount": "abc", "date": "2026-03-01"},
            {"id": "nodate", "description": "no date", "amount": 5},
            {"id": "blank", "description": "   ", "amount": 5, "date": "2026-03-01"},
            {"id": "early", "description": "too early", "amount": 5, "date": "0001-01-01T00:00:00+01:00"},
            "garbage",
        ],
        "expenses": [
            {"id": "ok", "description": "duplicate id", "amount": 5, "date": "2026-03-01"},
        ],
    }
    result = load_state(MemoryStore({KEY: json.dumps(stored)}), KEY)

    assert [t.id for t in result.income] == ["ok"]
    assert result.income[0].kind == "income"
    assert result.income[0].amount_cents == 10000
    assert result.expenses == []
    assert result.warning == "8 invalid saved record(s) were skipped."


def test_export_includes_summary_block():
    text = export_snapshot(sample_state(), now=datetime(2026, 3, 31))
    data = json.loads(text)

    assert data["exported_at"] == "2026-03-31T00:00:00"
    assert data["summary"] == {
        "total_income": 800.0,
        "total_expenses": 200.0,
        "balance": 600.0,
    }
    assert len(data["income"]) == 2
    assert len(data["expenses"]) == 1


def test_import_of_export_reproduces_totals():
    state = sample_state()

    income, expenses = import_snapshot(export_snapshot(state))

    assert summarize(income, expenses) == summarize(state.income, state.expenses)
    assert income == state.income
    assert expenses == state.expenses


def test_import_ignores_summary_block():
    payload = {
        "income": [{"id": "a", "description": "Pay", "amount": 10, "date": "2026-01-01"}],
        "expenses": [],
        "summary": {"total_income": 99999},
    }
    income, expenses = import_snapshot(json.dumps(payload))
    assert summarize(income, expenses).income_cents == 1000


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "[]",
        json.dumps({"income": []}),
        json.dumps({"expenses": []}),
        json.dumps({"income": {}, "expenses": []}),
        json.dumps({"income": [{"id": "a"}], "expenses": []}),
        json.dumps(
            {
                "income": [{"id": "a", "description": "   ", "amount": 5, "date": "2026-01-01"}],
                "expenses": [],
            }
        ),
        json.dumps(
            {
                "income": [
                    {"id": "a", "description": "x", "amount": 5, "date": "0001-01-01T00:00:00+01:00"}
                ],
                "expenses": [],
            }
        ),
    ],
)
def test_import_rejects_invalid_format(text):
    with pytest.raises(ImportFormatError, match="invalid format"):
        import_snapshot(text)


def test_export_csv_rows():
    state = sample_state()
    text = export_csv(state.all())

    assert text.startswith("\ufeff")
    lines = text.lstrip("\ufeff").splitlines()
    assert lines[0] == "id,kind,date,description,category,amount"
    assert lines[1] == "e1,expense,2026-03-02T09:15:00,record e1,Rent,200.00"
    assert len(lines) == 4


def test_import_rejects_repeated_ids():
    record = {"id": "a", "description": "Pay", "amount": 10, "date": "2026-01-01"}
    payload = {"income": [record], "expenses": [dict(record, description="Rent")]}

    with pytest.raises(ImportFormatError, match="1 bad record"):
        import_snapshot(json.dumps(payload))
