from datetime import date, datetime

import pytest

from budgetmill import memo
from budgetmill.categories import CategoryRegistry
from budgetmill.domain import BudgetPeriod, Money, Period, Severity, Transaction, TransactionType
from budgetmill.errors import NotFoundError, ValidationError
from budgetmill.events import BUDGET_ALERT
from budgetmill.services import ReportService, BudgetService
from budgetmill.store import TransactionStore


def make_services():
    reg = CategoryRegistry()
    store = TransactionStore(reg)
    return reg, store, BudgetService(store), ReportService(store)


def make_tx(reg, title, amount, cat_id, when, note=None):
    category = reg.get(cat_id)
    return Transaction.create(title, amount, category.type, category, when, note=note)


def test_budget_status_follows_store():
    reg, store, budgets, _ = make_services()
    b = budgets.create("exp-food", 1000, BudgetPeriod.MONTHLY, date(2024, 12, 19))
    for amount, day in ((300, 1), (400, 15), (350, 29)):
        store.add(make_tx(reg, "food", amount, "exp-food", datetime(2024, 12, day)))

    status = budgets.status(b.id)
    assert status.spent == Money.of(1050)
    assert status.is_over_budget

    last = store.query().take(3)[-1]
    store.remove(last.id)
    assert budgets.status(b.id).spent == Money.of(700)

    store.update(store.query().first().id, amount=100)
    assert budgets.status(b.id).spent == Money.of(500)


def test_alert_published_when_threshold_crossed():
    reg, store, budgets, _ = make_services()
    alerts = []
    store.bus.subscribe(BUDGET_ALERT, lambda event, payload: alerts.append(payload))
    b = budgets.create("exp-food", 100, BudgetPeriod.MONTHLY, date(2024, 12, 1))

    store.add(make_tx(reg, "small", 50, "exp-food", datetime(2024, 12, 2)))
    assert alerts == []

    store.add(make_tx(reg, "more", 40, "exp-food", datetime(2024, 12, 3)))
    assert alerts[-1]["severity"] == Severity.APPROACHING_LIMIT
    assert alerts[-1]["budget_id"] == b.id

    store.add(make_tx(reg, "too much", 20, "exp-food", datetime(2024, 12, 4)))
    assert alerts[-1]["severity"] == Severity.OVER_BUDGET
    assert alerts[-1]["spent"] == Money.of(110)


def test_no_alert_outside_window_or_for_income():
    reg, store, budgets, _ = make_services()
    alerts = []
    store.bus.subscribe(BUDGET_ALERT, lambda event, payload: alerts.append(payload))
    budgets.create("exp-food", 10, BudgetPeriod.MONTHLY, date(2024, 12, 1))

    store.add(make_tx(reg, "november", 50, "exp-food", datetime(2024, 11, 30)))
    store.add(make_tx(reg, "pay", 5000, "inc-salary", datetime(2024, 12, 2)))
    assert alerts == []


def test_budget_validation():
    _, _, budgets, _ = make_services()
    with pytest.raises(ValidationError):
        budgets.create("inc-salary", 100)
    with pytest.raises(NotFoundError):
        budgets.create("nope", 100)
    with pytest.raises(NotFoundError):
        budgets.get("nope")

    b = budgets.create("exp-food", 100)
    with pytest.raises(ValidationError):
        budgets.add(b)
    assert budgets.remove(b.id) == b
    assert budgets.budgets() == ()


def test_totals_and_search():
    reg, store, budgets, _ = make_services()
    budgets.create("exp-food", 100, BudgetPeriod.MONTHLY, date(2024, 12, 1))
    budgets.create("exp-transport", 50, BudgetPeriod.MONTHLY, date(2024, 12, 1))
    store.add(make_tx(reg, "feast", 200, "exp-food", datetime(2024, 12, 5)))

    totals = budgets.totals()
    assert totals.total_cap == Money.of(150)
    assert totals.total_spent == Money.of(200)
    assert totals.total_remaining == Money.of(-50)

    assert [b.category_id for b in budgets.search("trans")] == ["exp-transport"]
    assert [s.remaining for _, s in budgets.statuses()] == [Money.zero(), Money.of(50)]


def test_statistics_report():
    reg, store, _, reports = make_services()
    store.add(make_tx(reg, "pay", 8000, "inc-salary", datetime(2024, 12, 1)))
    store.add(make_tx(reg, "lunch", 25, "exp-food", datetime(2024, 12, 2)))
    store.add(make_tx(reg, "snack", 15, "exp-food", datetime(2024, 12, 2)))
    store.add(make_tx(reg, "bus", 6, "exp-transport", datetime(2024, 12, 5)))
    store.add(make_tx(reg, "old", 999, "exp-food", datetime(2024, 11, 5)))

    report = reports.statistics(Period.THIS_MONTH, date(2024, 12, 19))
    result = report["result"]

    assert [s["aggregator"] for s in report["steps"]] == [
        "summary_step", "categories_step", "trend_step", "daily_average_step",
    ]
    assert result["summary"].total_income == Money.of(8000)
    assert result["summary"].total_expense == Money.of(46)
    assert {c.name: m for c, m in result["expense_by_category"].items()} == {
        "Food": Money.of(40), "Transport": Money.of(6),
    }
    trend = result["expense_trend"]
    assert len(trend) == 19
    assert trend[0] == (date(2024, 12, 1), Money.zero())
    assert trend[1] == (date(2024, 12, 2), Money.of(40))


def test_custom_aggregators_see_accumulated_results():
    _, _, _, reports = make_services()

    def first(trans, period, reference_date, acc):
        return {"n": len(trans)}

    def second(trans, period, reference_date, acc):
        return {"n_plus_one": acc["n"] + 1}

    reports.aggregators = (first, second)
    assert reports.statistics(Period.ALL, date(2024, 12, 1))["result"] == {"n": 0, "n_plus_one": 1}


def test_transactions_listing_filters_and_sorts():
    reg, store, _, reports = make_services()
    store.add(make_tx(reg, "Lunch with client", 80, "exp-food", datetime(2024, 12, 3)))
    store.add(make_tx(reg, "Dinner", 60, "exp-food", datetime(2024, 12, 9), note="Lunch receipt"))
    store.add(make_tx(reg, "Taxi", 30, "exp-transport", datetime(2024, 12, 4)))
    store.add(make_tx(reg, "Lunch refund", 30, "inc-other", datetime(2024, 12, 5)))

    rows = reports.transactions(Period.THIS_MONTH, date(2024, 12, 19), TransactionType.EXPENSE, "lunch")
    assert [t.title for t in rows] == ["Dinner", "Lunch with client"]

    rows = reports.transactions(Period.ALL, date(2024, 12, 19), category_id="exp-transport")
    assert [t.title for t in rows] == ["Taxi"]


def test_category_totals_cached_per_period_key():
    reg, store, _, _ = make_services()
    store.add(make_tx(reg, "lunch", 25, "exp-food", datetime(2024, 12, 2)))
    snapshot = store.snapshot()

    memo.category_totals.cache_clear()
    first = memo.category_totals(snapshot, Period.THIS_MONTH, date(2024, 12, 19))
    second = memo.category_totals(snapshot, Period.THIS_MONTH, date(2024, 12, 19))
    assert first == second
    assert memo.category_totals.cache_info().hits == 1

    store.add(make_tx(reg, "dinner", 15, "exp-food", datetime(2024, 12, 3)))
    fresh = memo.category_totals(store.snapshot(), Period.THIS_MONTH, date(2024, 12, 19))
    assert dict(fresh)[reg.get("exp-food")] == Money.of(40)
