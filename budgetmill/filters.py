from datetime import datetime
from typing import Callable, Optional

from budgetmill.domain import Money, Transaction, TransactionType

Predicate = Callable[[Transaction], bool]


def by_id(tx_id: str) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return t.id == tx_id

    return _filter


def by_category(cat_id: Optional[str]) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return cat_id is None or t.category.id == cat_id

    return _filter


def by_type(tx_type: Optional[TransactionType]) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return tx_type is None or t.type == tx_type

    return _filter


def by_date_range(start: datetime, end: datetime) -> Predicate:
    """Half-open: start <= date < end."""
    def _filter(t: Transaction) -> bool:
        return start <= t.date < end

    return _filter


def by_amount_range(min: Money, max: Money) -> Predicate:
    def _filter(t: Transaction) -> bool:
        return min <= t.amount <= max

    return _filter


def by_text(text: Optional[str]) -> Predicate:
    needle = (text or "").strip().casefold()

    def _filter(t: Transaction) -> bool:
        if not needle:
            return True
        if needle in t.title.casefold():
            return True
        if needle in t.category.name.casefold():
            return True
        # missing note is a non-match
        return t.note is not None and needle in t.note.casefold()

    return _filter

