import asyncio
from typing import Dict, Iterable, List, Tuple

from budgetmill.budget import compute_status
from budgetmill.domain import Budget, BudgetStatus, Money, Transaction, TransactionType


async def expenses_by_month(trans: Iterable[Transaction], months: List[str]) -> Dict[str, Money]:
    """Total expenses per month, one task per month.

    months: list of YYYY-MM strings (e.g. '2024-12').
    """
    trans = tuple(trans)

    async def month_total(month: str) -> Tuple[str, Money]:
        total = Money.total(
            t.amount for t in trans
            if t.type == TransactionType.EXPENSE and t.date.strftime("%Y-%m") == month
        )
        await asyncio.sleep(0)
        return month, total

    results = await asyncio.gather(*(month_total(m) for m in months))
    return dict(results)


async def budget_statuses(budgets: Iterable[Budget], trans: Iterable[Transaction]) -> Dict[str, BudgetStatus]:
    """compute_status for every budget, gathered concurrently."""
    trans = tuple(trans)

    async def one(b: Budget) -> Tuple[str, BudgetStatus]:
        status = compute_status(b, trans)
        await asyncio.sleep(0)
        return b.id, status

    results = await asyncio.gather(*(one(b) for b in budgets))
    return dict(results)
