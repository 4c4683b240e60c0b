from datetime import date
from functools import lru_cache
from typing import Optional, Tuple

from budgetmill.aggregation import filter_by_period, filter_by_type, group_by_category
from budgetmill.domain import Category, Money, Period, Transaction, TransactionType


@lru_cache(maxsize=128)
def category_totals(
    transactions: Tuple[Transaction, ...],
    period: Period,
    reference_date: date,
    tx_type: Optional[TransactionType] = TransactionType.EXPENSE,
) -> Tuple[Tuple[Category, Money], ...]:
    """Cached group_by_category for one period key.

    Keyed on the transaction tuple itself, so adding a transaction (a new
    tuple) can never return a stale result.
    """
    selected = filter_by_type(filter_by_period(transactions, period, reference_date), tx_type)
    return tuple(group_by_category(selected).items())
