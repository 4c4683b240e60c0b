from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from budgetmill import aggregation, memo
from budgetmill.budget import compute_status, make_budget, total_across_budgets
from budgetmill.domain import (
    Budget, BudgetPeriod, BudgetStatus, BudgetTotals, Bucket, Period, Severity,
    Transaction, TransactionType,
)
from budgetmill.errors import NotFoundError, ValidationError
from budgetmill.events import BUDGET_ALERT, TRANSACTION_ADDED, TRANSACTION_UPDATED, Event
from budgetmill.functional import pipe
from budgetmill.logging_setup import get_logger
from budgetmill.store import TransactionStore

logger = get_logger(__name__)


class BudgetService:
    """Owns the budgets and answers status questions against a store.

    Budgets reference categories by id only. Status is recomputed from the
    store on every call, and a BUDGET_ALERT is published whenever a new or
    edited expense pushes one of its budgets past the warning threshold.
    """

    def __init__(self, store: TransactionStore, budgets: Iterable[Budget] = ()):
        self.store = store
        self._budgets: Dict[str, Budget] = {}
        for b in budgets:
            self.add(b)
        store.bus.subscribe(TRANSACTION_ADDED, self._on_transaction)
        store.bus.subscribe(TRANSACTION_UPDATED, self._on_transaction)

    def add(self, budget: Budget) -> Budget:
        if budget.id in self._budgets:
            raise ValidationError(f"Budget with ID {budget.id} already exists", field="id")
        category = self.store.registry.get(budget.category_id)
        if category.type != TransactionType.EXPENSE:
            raise ValidationError(f"Budgets apply to expense categories, {category.name} is income",
                                  field="category_id")
        if budget.cap.is_negative():
            raise ValidationError("Budget cap must not be negative", field="cap")
        self._budgets[budget.id] = budget
        logger.info("added %s budget %s for %s", budget.period.value, budget.cap, category.name)
        return budget

    def create(self, category_id: str, cap, period: BudgetPeriod = BudgetPeriod.MONTHLY,
               reference: Optional[date] = None) -> Budget:
        return self.add(make_budget(category_id, cap, period, reference or date.today()))

    def get(self, budget_id: str) -> Budget:
        try:
            return self._budgets[budget_id]
        except KeyError:
            raise NotFoundError("budget", budget_id) from None

    def remove(self, budget_id: str) -> Budget:
        budget = self.get(budget_id)
        del self._budgets[budget_id]
        return budget

    def budgets(self) -> Tuple[Budget, ...]:
        return tuple(self._budgets.values())

    def status(self, budget_id: str) -> BudgetStatus:
        return compute_status(self.get(budget_id), self.store.snapshot())

    def statuses(self) -> List[Tuple[Budget, BudgetStatus]]:
        transactions = self.store.snapshot()
        return [(b, compute_status(b, transactions)) for b in self._budgets.values()]

    def totals(self) -> BudgetTotals:
        return total_across_budgets(self._budgets.values(), self.store.snapshot())

    def search(self, text: Optional[str]) -> List[Budget]:
        return aggregation.search_budgets(self._budgets.values(), self.store.registry, text)

    def _on_transaction(self, event: Event, payload: dict) -> List[dict]:
        t: Transaction = payload["transaction"]
        if t.type != TransactionType.EXPENSE:
            return []
        alerts = []
        for b in self._budgets.values():
            if b.category_id != t.category.id or not b.contains(t.date):
                continue
            status = compute_status(b, self.store.snapshot())
            if status.severity == Severity.NORMAL:
                continue
            alert = {
                "budget_id": b.id,
                "category_id": b.category_id,
                "severity": status.severity,
                "spent": status.spent,
                "limit": b.cap,
            }
            logger.warning("budget %s is %s: %s / %s", b.id, status.severity.value, status.spent, b.cap)
            self.store.bus.publish(BUDGET_ALERT, alert)
            alerts.append(alert)
        return alerts


Aggregator = Callable[[Tuple[Transaction, ...], Period, date, Dict[str, Any]], Dict[str, Any]]


def summary_step(trans, period, reference_date, acc) -> Dict[str, Any]:
    return {"summary": aggregation.summarize(aggregation.filter_by_period(trans, period, reference_date))}


def categories_step(trans, period, reference_date, acc) -> Dict[str, Any]:
    return {"expense_by_category": dict(memo.category_totals(trans, period, reference_date))}


def trend_step(trans, period, reference_date, acc) -> Dict[str, Any]:
    bounds = aggregation.period_bounds(period, reference_date)
    bucket = Bucket.MONTH if period in (Period.THIS_YEAR, Period.ALL) else Bucket.DAY
    expenses = list(aggregation.filter_by_type(trans, TransactionType.EXPENSE))
    if bounds is None:
        series = aggregation.time_series(expenses, bucket, dense=True)
    else:
        series = aggregation.time_series(expenses, bucket, dense=True, start=bounds[0], end=reference_date)
    return {"expense_trend": series}


def daily_average_step(trans, period, reference_date, acc) -> Dict[str, Any]:
    return {"daily_average_expense": aggregation.daily_average(trans, period, reference_date)}


DEFAULT_AGGREGATORS: Tuple[Aggregator, ...] = (summary_step, categories_step, trend_step, daily_average_step)


class ReportService:
    """Runs a sequence of aggregators over the store for one period.

    Each aggregator gets the transactions, the period, the reference date and
    the results accumulated so far; its dict output is merged into the result.
    """

    def __init__(self, store: TransactionStore, aggregators: Sequence[Aggregator] = DEFAULT_AGGREGATORS):
        self.store = store
        self.aggregators = aggregators

    def statistics(self, period: Period = Period.THIS_MONTH, reference_date: Optional[date] = None) -> Dict[str, Any]:
        period = Period(period)
        reference_date = reference_date or date.today()
        trans = self.store.snapshot()
        report = {"period": period, "reference_date": reference_date, "steps": [], "result": {}}
        acc: Dict[str, Any] = {}
        for agg in self.aggregators:
            out = agg(trans, period, reference_date, acc)
            report["steps"].append({"aggregator": getattr(agg, "__name__", str(agg)), "output": out})
            if isinstance(out, dict):
                acc.update(out)
        report["result"] = acc
        logger.debug("statistics for %s at %s over %d transactions", period.value, reference_date, len(trans))
        return report

    def transactions(self, period: Period = Period.ALL, reference_date: Optional[date] = None,
                     tx_type: Optional[TransactionType] = None, text: Optional[str] = None,
                     category_id: Optional[str] = None) -> List[Transaction]:
        """Filtered list for the transactions screen, newest first."""
        reference_date = reference_date or date.today()
        return pipe(
            self.store.snapshot(),
            lambda ts: aggregation.filter_by_period(ts, period, reference_date),
            lambda ts: aggregation.filter_by_type(ts, tx_type),
            lambda ts: aggregation.filter_by_category(ts, category_id),
            lambda ts: aggregation.search_text(ts, text),
            lambda ts: sorted(ts, key=lambda t: t.date, reverse=True),
        )
