from itertools import islice
from typing import Callable, Dict, Iterable, Iterator, Optional, Tuple

from budgetmill.domain import Category, Money, Transaction, TransactionType


def iter_transactions(
    trans: Iterable[Transaction], pred: Optional[Callable[[Transaction], bool]] = None
) -> Iterator[Transaction]:
    for t in trans:
        if pred is None or pred(t):
            yield t


class QueryView:
    """Restartable, lazily filtered view over a sequence of transactions.

    Each iteration re-reads the source, so a view reflects the store's
    contents at the time it is iterated.
    """

    def __init__(self, source: Callable[[], Iterable[Transaction]],
                 pred: Optional[Callable[[Transaction], bool]] = None):
        self._source = source
        self._pred = pred

    def __iter__(self) -> Iterator[Transaction]:
        return iter_transactions(self._source(), self._pred)

    def first(self) -> Optional[Transaction]:
        return next(iter(self), None)

    def take(self, n: int) -> Tuple[Transaction, ...]:
        return tuple(islice(self, max(0, n)))

    def count(self) -> int:
        return sum(1 for _ in self)


def lazy_top_categories(
    trans: Iterable[Transaction], k: int, tx_type: TransactionType = TransactionType.EXPENSE
) -> Iterator[Tuple[Category, Money]]:
    totals: Dict[Category, Money] = {}

    for t in trans:
        if t.type == tx_type:
            totals[t.category] = totals.get(t.category, Money.zero(t.amount.currency)) + t.amount

    ordered = sorted(totals.items(), key=lambda item: item[1], reverse=True)

    for category, total in ordered[: max(0, k)]:
        yield category, total
