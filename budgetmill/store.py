from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from budgetmill.categories import CategoryRegistry
from budgetmill.domain import Money, Transaction, TransactionType, RecurringInterval
from budgetmill.errors import NotFoundError, ValidationError
from budgetmill.events import EventBus, TRANSACTION_ADDED, TRANSACTION_REMOVED, TRANSACTION_UPDATED
from budgetmill.functional import validate_transaction
from budgetmill.lazy import QueryView
from budgetmill.logging_setup import get_logger

logger = get_logger(__name__)


class TransactionStore:
    """Ordered, validated collection of transactions.

    Insertion order is kept for iteration; sort by date for display.
    """

    def __init__(self, registry: CategoryRegistry, bus: Optional[EventBus] = None,
                 transactions: Iterable[Transaction] = ()):
        self.registry = registry
        self.bus = bus or EventBus()
        self._items: List[Transaction] = []
        self._index: Dict[str, int] = {}
        for t in transactions:
            self._append(self._validate(t))

    def _validate(self, t: Transaction) -> Transaction:
        return validate_transaction(t, self.registry.list_categories()).unwrap()

    def _append(self, t: Transaction) -> None:
        if t.id in self._index:
            raise ValidationError(f"Transaction with ID {t.id} already exists", field="id")
        self._index[t.id] = len(self._items)
        self._items.append(t)

    def _reindex(self) -> None:
        self._index = {t.id: i for i, t in enumerate(self._items)}

    def add(self, transaction: Transaction) -> str:
        t = self._validate(transaction)
        self._append(t)
        logger.info("added %s %s %s (%s)", t.type.value, t.amount, t.title, t.id)
        self.bus.publish(TRANSACTION_ADDED, {"transaction": t})
        return t.id

    def get(self, tx_id: str) -> Transaction:
        try:
            return self._items[self._index[tx_id]]
        except KeyError:
            raise NotFoundError("transaction", tx_id) from None

    def query(self, predicate: Optional[Callable[[Transaction], bool]] = None) -> QueryView:
        return QueryView(lambda: tuple(self._items), predicate)

    def update(self, tx_id: str, **changes) -> Transaction:
        old = self.get(tx_id)
        if "id" in changes and changes["id"] != tx_id:
            raise ValidationError("Transaction id cannot be changed", field="id")
        if isinstance(changes.get("category"), str):
            changes["category"] = self.registry.get(changes["category"])
        try:
            if "amount" in changes:
                changes["amount"] = Money.of(changes["amount"])
            if "type" in changes:
                changes["type"] = TransactionType(changes["type"])
            if changes.get("recurring_interval") is not None:
                changes["recurring_interval"] = RecurringInterval(changes["recurring_interval"])
            new = replace(old, **changes)
        except (TypeError, ValueError) as e:
            raise ValidationError(str(e)) from e
        new = self._validate(new)
        self._items[self._index[tx_id]] = new
        logger.info("updated transaction %s", tx_id)
        self.bus.publish(TRANSACTION_UPDATED, {"transaction": new, "previous": old})
        return new

    def remove(self, tx_id: str) -> Transaction:
        old = self.get(tx_id)
        del self._items[self._index[tx_id]]
        self._reindex()
        logger.info("removed transaction %s", tx_id)
        self.bus.publish(TRANSACTION_REMOVED, {"transaction": old})
        return old

    def recent(self, limit: int = 10) -> Tuple[Transaction, ...]:
        ordered = sorted(self._items, key=lambda t: t.date, reverse=True)
        return tuple(ordered[: max(0, limit)])

    def snapshot(self) -> Tuple[Transaction, ...]:
        return tuple(self._items)

    def __iter__(self):
        return iter(tuple(self._items))

    def __len__(self) -> int:
        return len(self._items)
