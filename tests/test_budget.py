from datetime import date, datetime
from decimal import Decimal

import pytest

from budgetmill.budget import (
    check_budget, compute_status, make_budget, period_window, severity, total_across_budgets,
)
from budgetmill.categories import CategoryRegistry
from budgetmill.domain import Budget, BudgetPeriod, Money, Severity, Transaction, TransactionType
from budgetmill.errors import ValidationError

REG = CategoryRegistry()


def make_tx(amount, when, cat_id="exp-food", tx_type=None):
    category = REG.get(cat_id)
    return Transaction.create("tx", amount, tx_type or category.type, category, when)


def december_budget(cap, cat_id="exp-food", budget_id="b1"):
    return Budget(budget_id, cat_id, Money.of(cap), BudgetPeriod.MONTHLY,
                  datetime(2024, 12, 1), datetime(2025, 1, 1))


def test_over_budget_example():
    b = december_budget(1000)
    trans = (
        make_tx(300, datetime(2024, 12, 1)),
        make_tx(400, datetime(2024, 12, 15)),
        make_tx(350, datetime(2024, 12, 29)),
    )
    status = compute_status(b, trans)

    assert status.spent == Money.of(1050)
    assert status.remaining == Money.zero()
    assert status.is_over_budget is True
    assert status.progress == Decimal(1)
    assert status.severity == Severity.OVER_BUDGET


def test_spent_only_counts_matching_expenses_in_window():
    b = december_budget(1000)
    trans = (
        make_tx(100, datetime(2024, 12, 5)),
        make_tx(999, datetime(2024, 12, 5), cat_id="exp-transport"),
        make_tx(500, datetime(2024, 12, 5), tx_type=TransactionType.INCOME),
        make_tx(700, datetime(2024, 11, 30, 23, 59)),
    )
    assert compute_status(b, trans).spent == Money.of(100)


def test_transaction_at_end_date_is_excluded():
    b = december_budget(1000)
    trans = (
        make_tx(100, datetime(2024, 12, 1)),
        make_tx(200, datetime(2025, 1, 1)),
    )
    assert compute_status(b, trans).spent == Money.of(100)


def test_status_is_idempotent():
    b = december_budget(500)
    trans = (make_tx(120, datetime(2024, 12, 3)), make_tx(80, datetime(2024, 12, 9)))
    assert compute_status(b, trans) == compute_status(b, trans)


def test_progress_and_remaining_under_cap():
    status = compute_status(december_budget(200), (make_tx(50, datetime(2024, 12, 2)),))
    assert status.progress == Decimal("0.25")
    assert status.remaining == Money.of(150)
    assert status.is_over_budget is False
    assert status.severity == Severity.NORMAL


@pytest.mark.parametrize("spent,expected", [
    (800, Severity.NORMAL),
    (850, Severity.APPROACHING_LIMIT),
    (1000, Severity.APPROACHING_LIMIT),
    (1000.01, Severity.OVER_BUDGET),
])
def test_severity_thresholds(spent, expected):
    status = compute_status(december_budget(1000), (make_tx(spent, datetime(2024, 12, 2)),))
    assert status.severity == expected


def test_severity_custom_threshold():
    assert severity(Money.of(60), Money.of(100), Decimal("0.6"), threshold=Decimal("0.5")) == \
        Severity.APPROACHING_LIMIT


def test_zero_cap():
    b = december_budget(0)
    assert compute_status(b, ()).progress == 0
    assert compute_status(b, ()).severity == Severity.NORMAL

    status = compute_status(b, (make_tx(10, datetime(2024, 12, 2)),))
    assert status.progress == 0
    assert status.is_over_budget is True
    assert status.remaining == Money.zero()


def test_totals_remaining_may_be_negative():
    food = december_budget(100, budget_id="b1")
    transport = december_budget(100, cat_id="exp-transport", budget_id="b2")
    trans = (make_tx(300, datetime(2024, 12, 4)),)

    totals = total_across_budgets((food, transport), trans)
    assert totals.total_cap == Money.of(200)
    assert totals.total_spent == Money.of(300)
    assert totals.total_remaining == Money.of(-100)
    assert compute_status(food, trans).remaining == Money.zero()


def test_totals_empty():
    totals = total_across_budgets((), ())
    assert totals.total_cap == Money.zero()
    assert totals.total_remaining == Money.zero()


def test_period_window():
    assert period_window(BudgetPeriod.MONTHLY, date(2024, 12, 19)) == \
        (datetime(2024, 12, 1), datetime(2025, 1, 1))
    assert period_window(BudgetPeriod.YEARLY, date(2024, 12, 19)) == \
        (datetime(2024, 1, 1), datetime(2025, 1, 1))
    start, end = period_window(BudgetPeriod.WEEKLY, date(2024, 12, 19))
    assert (end - start).days == 7
    assert start <= datetime(2024, 12, 19) < end


def test_make_budget():
    b = make_budget("exp-food", "600", BudgetPeriod.MONTHLY, date(2024, 2, 10))
    assert b.cap == Money.of(600)
    assert b.start_date == datetime(2024, 2, 1)
    assert b.end_date == datetime(2024, 3, 1)

    with pytest.raises(ValidationError):
        make_budget("exp-food", "-1", BudgetPeriod.MONTHLY, date(2024, 2, 10))


def test_check_budget():
    b = december_budget(1000)
    ok = check_budget(b, (make_tx(300, datetime(2024, 12, 1)),))
    assert ok.is_right()
    assert ok.unwrap() == b

    over = check_budget(b, (make_tx(1050, datetime(2024, 12, 1)),))
    assert over.is_left()
    error = over.get_error()
    assert error["error"] == "budget_exceeded"
    assert error["over_budget"] == Money.of(50)
