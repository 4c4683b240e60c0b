"""Budget tracking: spend-vs-cap status for a budget and totals across budgets.

``spent`` is always recomputed from the transactions passed in; a Budget
never stores it. Spending counts only expense transactions of the budget's
category dated inside ``[start_date, end_date)``, so a transaction exactly
at ``end_date`` belongs to the next period.
"""

from decimal import Decimal
from typing import Iterable, Optional

from budgetmill import config
from budgetmill.domain import (
    Budget, BudgetPeriod, BudgetStatus, BudgetTotals, Money, Severity, Transaction,
    TransactionType, new_id,
)
from budgetmill.errors import ValidationError
from budgetmill.functional import Either, Left, Right
from budgetmill.windows import DateLike, window

_PERIOD_UNITS = {
    BudgetPeriod.WEEKLY: "week",
    BudgetPeriod.MONTHLY: "month",
    BudgetPeriod.YEARLY: "year",
}


def period_window(period: BudgetPeriod, reference: DateLike):
    """Calendar window of the given budget period containing ``reference``."""
    return window(_PERIOD_UNITS[BudgetPeriod(period)], reference)


def make_budget(category_id: str, cap, period: BudgetPeriod, reference: DateLike,
                budget_id: Optional[str] = None) -> Budget:
    cap = Money.of(cap)
    if cap.is_negative():
        raise ValidationError("Budget cap must not be negative", field="cap")
    start, end = period_window(period, reference)
    return Budget(
        id=budget_id or new_id(),
        category_id=category_id,
        cap=cap,
        period=BudgetPeriod(period),
        start_date=start,
        end_date=end,
    )


def spent_for(budget: Budget, transactions: Iterable[Transaction]) -> Money:
    return Money.total(
        (t.amount for t in transactions
         if t.type == TransactionType.EXPENSE
         and t.category.id == budget.category_id
         and budget.contains(t.date)),
        currency=budget.cap.currency,
    )


def severity(spent: Money, cap: Money, progress: Decimal,
             threshold: Optional[Decimal] = None) -> Severity:
    # over budget wins regardless of the warning threshold
    if spent > cap:
        return Severity.OVER_BUDGET
    limit = config.WARNING_THRESHOLD if threshold is None else Decimal(threshold)
    if progress > limit:
        return Severity.APPROACHING_LIMIT
    return Severity.NORMAL


def compute_status(budget: Budget, transactions: Iterable[Transaction],
                   threshold: Optional[Decimal] = None) -> BudgetStatus:
    cap = budget.cap
    spent = spent_for(budget, transactions)
    progress = min(spent.ratio(cap), Decimal(1)) if cap.is_positive() else Decimal(0)
    remaining = max(cap - spent, Money.zero(cap.currency))
    return BudgetStatus(
        spent=spent,
        remaining=remaining,
        progress=progress,
        is_over_budget=spent > cap,
        severity=severity(spent, cap, progress, threshold),
    )


def total_across_budgets(budgets: Iterable[Budget], transactions: Iterable[Transaction]) -> BudgetTotals:
    budgets = tuple(budgets)
    transactions = tuple(transactions)
    currency = budgets[0].cap.currency if budgets else None
    total_cap = Money.total((b.cap for b in budgets), currency)
    total_spent = Money.total((spent_for(b, transactions) for b in budgets), currency)
    # unlike a single budget's remaining this is not floored at zero
    return BudgetTotals(
        total_cap=total_cap,
        total_spent=total_spent,
        total_remaining=total_cap - total_spent,
    )


def check_budget(budget: Budget, transactions: Iterable[Transaction]) -> Either[dict, Budget]:
    status = compute_status(budget, transactions)
    if status.is_over_budget:
        return Left({
            "error": "budget_exceeded",
            "message": f"Budget limit exceeded for category {budget.category_id}",
            "category_id": budget.category_id,
            "limit": budget.cap,
            "spent": status.spent,
            "over_budget": status.spent - budget.cap,
        })
    return Right(budget)
