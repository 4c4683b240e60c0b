import json
from datetime import datetime

import pytest

from budgetmill import config
from budgetmill.categories import CategoryRegistry
from budgetmill.domain import Money, RecurringInterval, Severity, TransactionType
from budgetmill.errors import NotFoundError, ValidationError
from budgetmill.services import BudgetService
from budgetmill.store import TransactionStore
from budgetmill.transforms import dump_seed, load_seed


def test_load_seed():
    categories, transactions, budgets = load_seed(config.get_seed_path())

    assert len(categories) >= 10
    assert len(transactions) >= 10
    assert len(budgets) >= 3
    rent = next(t for t in transactions if t.title == "Rent")
    assert rent.recurring_interval == RecurringInterval.MONTHLY
    assert rent.amount == Money.of(2500)


def test_seed_passes_store_validation():
    categories, transactions, budgets = load_seed(config.get_seed_path())
    store = TransactionStore(CategoryRegistry(categories), transactions=transactions)
    service = BudgetService(store, budgets)

    severities = {store.registry.get(b.category_id).name: s.severity for b, s in service.statuses()}
    assert severities["Shopping"] == Severity.OVER_BUDGET
    assert severities["Food"] == Severity.APPROACHING_LIMIT


def test_dump_then_load(tmp_path):
    categories, transactions, budgets = load_seed(config.get_seed_path())
    reg = CategoryRegistry(categories)
    pets = reg.create("Pets", TransactionType.EXPENSE, budget="80.5")

    path = tmp_path / "seed.json"
    dump_seed(str(path), reg.list_categories(), transactions, budgets)
    categories2, transactions2, budgets2 = load_seed(str(path))

    assert pets in categories2
    assert transactions2 == transactions
    assert budgets2 == budgets
    assert json.loads(path.read_text(encoding="utf-8"))["transactions"][0]["amount"] == "8000.00"


def test_unknown_category_reference(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps({"transactions": [{
        "id": "t1", "title": "x", "amount": "1", "type": "expense",
        "category_id": "missing", "date": "2024-12-01T00:00:00",
    }]}), encoding="utf-8")
    with pytest.raises(NotFoundError):
        load_seed(str(path))


def test_malformed_date(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps({"budgets": [{
        "id": "b1", "category_id": "exp-food", "cap": "10", "period": "monthly",
        "start_date": "first of december", "end_date": "2025-01-01T00:00:00",
    }]}), encoding="utf-8")
    with pytest.raises(ValidationError) as exc:
        load_seed(str(path))
    assert exc.value.field == "start_date"


def test_seed_dates_are_naive():
    _, transactions, _ = load_seed(config.get_seed_path())
    assert all(isinstance(t.date, datetime) and t.date.tzinfo is None for t in transactions)


def test_offset_date_rejected(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps({"transactions": [{
        "id": "t1", "title": "Lunch", "amount": "25.50", "type": "expense",
        "category_id": "exp-food", "date": "2024-12-05T12:00:00+08:00",
    }]}), encoding="utf-8")
    with pytest.raises(ValidationError) as exc:
        load_seed(str(path))
    assert exc.value.field == "date"
