"""JSON seed format for categories, transactions and budgets.

Amounts are written as strings so they round-trip through Decimal, and
dates as ISO-8601. A seed without a ``categories`` key uses the preset
categories.
"""

import json
from datetime import datetime
from typing import Dict, Iterable, Tuple

from budgetmill.categories import DEFAULT_EXPENSE_CATEGORIES, DEFAULT_INCOME_CATEGORIES
from budgetmill.domain import (
    Budget, BudgetPeriod, Category, Money, RecurringInterval, Transaction, TransactionType,
)
from budgetmill.errors import NotFoundError, ValidationError
from budgetmill.logging_setup import get_logger

logger = get_logger(__name__)


def _parse_date(value: str, field: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Malformed date {value!r}", field=field) from None
    if parsed.tzinfo is not None:
        raise ValidationError(f"Date {value!r} carries a UTC offset", field=field)
    return parsed


def category_from_record(r: dict) -> Category:
    return Category(
        id=r["id"],
        name=r["name"],
        icon=r.get("icon", "tag.fill"),
        color=r.get("color", "#8E8E93"),
        type=TransactionType(r["type"]),
        budget=Money.of(r["budget"]) if r.get("budget") is not None else None,
        is_default=r.get("is_default", False),
    )


def category_to_record(c: Category) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "icon": c.icon,
        "color": c.color,
        "type": c.type.value,
        "budget": str(c.budget.amount) if c.budget is not None else None,
        "is_default": c.is_default,
    }


def transaction_from_record(r: dict, categories: Dict[str, Category]) -> Transaction:
    try:
        category = categories[r["category_id"]]
    except KeyError:
        raise NotFoundError("category", r["category_id"]) from None
    interval = r.get("recurring_interval")
    return Transaction(
        id=r["id"],
        title=r["title"],
        amount=Money.of(r["amount"]),
        type=TransactionType(r["type"]),
        category=category,
        date=_parse_date(r["date"], "date"),
        note=r.get("note"),
        is_recurring=r.get("is_recurring", False),
        recurring_interval=RecurringInterval(interval) if interval else None,
    )


def transaction_to_record(t: Transaction) -> dict:
    return {
        "id": t.id,
        "title": t.title,
        "amount": str(t.amount.amount),
        "type": t.type.value,
        "category_id": t.category.id,
        "date": t.date.isoformat(),
        "note": t.note,
        "is_recurring": t.is_recurring,
        "recurring_interval": t.recurring_interval.value if t.recurring_interval else None,
    }


def budget_from_record(r: dict) -> Budget:
    return Budget(
        id=r["id"],
        category_id=r["category_id"],
        cap=Money.of(r["cap"]),
        period=BudgetPeriod(r["period"]),
        start_date=_parse_date(r["start_date"], "start_date"),
        end_date=_parse_date(r["end_date"], "end_date"),
    )


def budget_to_record(b: Budget) -> dict:
    return {
        "id": b.id,
        "category_id": b.category_id,
        "cap": str(b.cap.amount),
        "period": b.period.value,
        "start_date": b.start_date.isoformat(),
        "end_date": b.end_date.isoformat(),
    }


def load_seed(
    path: str,
) -> Tuple[
    Tuple[Category, ...],
    Tuple[Transaction, ...],
    Tuple[Budget, ...],
]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if "categories" in data:
        categories = tuple(category_from_record(c) for c in data["categories"])
    else:
        categories = DEFAULT_EXPENSE_CATEGORIES + DEFAULT_INCOME_CATEGORIES
    by_id = {c.id: c for c in categories}
    transactions = tuple(transaction_from_record(t, by_id) for t in data.get("transactions", ()))
    budgets = tuple(budget_from_record(b) for b in data.get("budgets", ()))

    logger.info("loaded seed %s: %d categories, %d transactions, %d budgets",
                path, len(categories), len(transactions), len(budgets))
    return categories, transactions, budgets


def dump_seed(
    path: str,
    categories: Iterable[Category],
    transactions: Iterable[Transaction],
    budgets: Iterable[Budget],
) -> None:
    data = {
        "categories": [category_to_record(c) for c in categories],
        "transactions": [transaction_to_record(t) for t in transactions],
        "budgets": [budget_to_record(b) for b in budgets],
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
