"""Filters and aggregations consumed by the transaction list and the charts.

Every function here is pure: it takes transactions and returns new data,
never touching the store. Dates are naive datetimes.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from budgetmill import windows
from budgetmill.categories import CategoryRegistry
from budgetmill.domain import (
    Budget, Bucket, Category, Money, Period, Summary, Transaction, TransactionType,
)
from budgetmill.filters import by_category, by_date_range, by_text, by_type
from budgetmill.lazy import iter_transactions, lazy_top_categories

_PERIOD_UNITS = {
    Period.TODAY: "day",
    Period.THIS_WEEK: "week",
    Period.THIS_MONTH: "month",
    Period.THIS_YEAR: "year",
}


def period_bounds(period: Period, reference_date: windows.DateLike) -> Optional[Tuple[datetime, datetime]]:
    """[start, end) of the calendar period containing reference_date; None for ``all``."""
    period = Period(period)
    if period == Period.ALL:
        return None
    return windows.window(_PERIOD_UNITS[period], reference_date)


def filter_by_period(trans: Iterable[Transaction], period: Period,
                     reference_date: windows.DateLike) -> Iterator[Transaction]:
    bounds = period_bounds(period, reference_date)
    if bounds is None:
        return iter_transactions(trans)
    return iter_transactions(trans, by_date_range(*bounds))


def filter_by_type(trans: Iterable[Transaction], tx_type: Optional[TransactionType]) -> Iterator[Transaction]:
    return iter_transactions(trans, by_type(TransactionType(tx_type) if tx_type else None))


def filter_by_category(trans: Iterable[Transaction], cat_id: Optional[str]) -> Iterator[Transaction]:
    return iter_transactions(trans, by_category(cat_id))


def search_text(trans: Iterable[Transaction], text: Optional[str]) -> Iterator[Transaction]:
    return iter_transactions(trans, by_text(text))


def group_by_category(trans: Iterable[Transaction]) -> Dict[Category, Money]:
    """Total amount per category, in order of first appearance.

    Categories without transactions in ``trans`` get no entry at all.
    """
    totals: Dict[Category, Money] = {}
    for t in trans:
        if t.category in totals:
            totals[t.category] = totals[t.category] + t.amount
        else:
            totals[t.category] = t.amount
    return totals


def top_categories(trans: Iterable[Transaction], k: int = 5,
                   tx_type: TransactionType = TransactionType.EXPENSE) -> List[Tuple[Category, Money]]:
    return list(lazy_top_categories(trans, k, tx_type))


def time_series(
    trans: Iterable[Transaction],
    bucket: Bucket = Bucket.DAY,
    dense: bool = False,
    start: Optional[windows.DateLike] = None,
    end: Optional[windows.DateLike] = None,
) -> List[Tuple[date, Money]]:
    """Totals per calendar bucket, ascending by bucket start.

    Sparse mode returns only buckets holding transactions. Dense mode
    returns every bucket from ``start`` (or the first bucket with data)
    through ``end`` (or the last bucket with data), zero-filled. ``start``
    and ``end`` also limit which transactions count.
    """
    unit = Bucket(bucket).value
    lo = windows.start_of(unit, start) if start is not None else None
    hi = windows.start_of(unit, end) if end is not None else None

    totals: Dict[datetime, Money] = {}
    currency = None
    for t in trans:
        key = windows.start_of(unit, t.date)
        if (lo is not None and key < lo) or (hi is not None and key > hi):
            continue
        currency = t.amount.currency
        totals[key] = totals[key] + t.amount if key in totals else t.amount

    if not dense:
        return [(k.date(), totals[k]) for k in sorted(totals)]

    if lo is None:
        lo = min(totals) if totals else None
    if hi is None:
        hi = max(totals) if totals else None
    if lo is None or hi is None:
        return []

    series = []
    key = lo
    while key <= hi:
        series.append((key.date(), totals.get(key, Money.zero(currency))))
        key = windows.next_start(unit, key)
    return series


def summarize(trans: Iterable[Transaction], currency: Optional[str] = None) -> Summary:
    income = Money.zero(currency)
    expense = Money.zero(currency)
    count = 0
    for t in trans:
        count += 1
        if t.type == TransactionType.INCOME:
            income = income + t.amount
        else:
            expense = expense + t.amount
    return Summary(total_income=income, total_expense=expense, net=income - expense, count=count)


def daily_average(trans: Iterable[Transaction], period: Period, reference_date: windows.DateLike,
                  tx_type: TransactionType = TransactionType.EXPENSE) -> Money:
    """Average per elapsed day of the period, counting through reference_date.

    For ``all`` the span runs from the earliest transaction.
    """
    trans = tuple(filter_by_type(filter_by_period(trans, period, reference_date), tx_type))
    total = Money.total((t.amount for t in trans), trans[0].amount.currency if trans else None)
    bounds = period_bounds(period, reference_date)
    if bounds is not None:
        first = bounds[0]
    elif trans:
        first = windows.start_of("day", min(t.date for t in trans))
    else:
        return total
    days = (windows.start_of("day", reference_date) - first).days + 1
    if days <= 0:
        return total
    return Money.rounded(total.amount / Decimal(days), total.currency)


def search_budgets(budgets: Iterable[Budget], registry: CategoryRegistry,
                   text: Optional[str]) -> List[Budget]:
    """Budgets whose category name contains ``text``, case-insensitively."""
    needle = (text or "").strip().casefold()
    if not needle:
        return list(budgets)
    return [
        b for b in budgets
        if b.category_id in registry and needle in registry.get(b.category_id).name.casefold()
    ]
