from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from functools import total_ordering
from typing import Iterable, Optional
from uuid import uuid4

from budgetmill import config
from budgetmill.errors import ValidationError

_CENTS = Decimal("0.01")


def new_id() -> str:
    return str(uuid4())


class TransactionType(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"


class RecurringInterval(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class BudgetPeriod(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Period(str, Enum):
    TODAY = "today"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"
    THIS_YEAR = "this_year"
    ALL = "all"


class Bucket(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class Severity(str, Enum):
    NORMAL = "normal"
    APPROACHING_LIMIT = "approaching_limit"
    OVER_BUDGET = "over_budget"


@total_ordering
@dataclass(frozen=True)
class Money:
    """Decimal amount in a single currency, at most two decimal places."""

    amount: Decimal
    currency: str = config.CURRENCY

    def __post_init__(self):
        value = self.amount
        if isinstance(value, float):
            value = str(value)
        try:
            value = Decimal(value)
            if not value.is_finite():
                raise InvalidOperation
            cents = value.quantize(_CENTS)
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError(f"Invalid amount: {self.amount!r}", field="amount")
        if cents != value:
            raise ValidationError(
                f"Amount {self.amount!r} has more than two decimal places", field="amount"
            )
        object.__setattr__(self, "amount", cents)

    @classmethod
    def rounded(cls, value, currency: Optional[str] = None) -> "Money":
        """Money for a computed value such as a quotient, rounded half up to cents."""
        try:
            value = Decimal(value).quantize(_CENTS, rounding=ROUND_HALF_UP)
        except (InvalidOperation, TypeError, ValueError):
            raise ValidationError(f"Invalid amount: {value!r}", field="amount")
        return cls(value, currency or config.CURRENCY)

    @classmethod
    def of(cls, value, currency: Optional[str] = None) -> "Money":
        if isinstance(value, Money):
            return value
        return cls(value, currency or config.CURRENCY)

    @classmethod
    def zero(cls, currency: Optional[str] = None) -> "Money":
        return cls(Decimal(0), currency or config.CURRENCY)

    @classmethod
    def total(cls, values: Iterable["Money"], currency: Optional[str] = None) -> "Money":
        acc = cls.zero(currency)
        for v in values:
            acc = acc + v
        return acc

    def _check(self, other: "Money") -> None:
        if not isinstance(other, Money):
            raise TypeError(f"Expected Money, got {type(other).__name__}")
        if other.currency != self.currency:
            raise ValidationError(
                f"Currency mismatch: {self.currency} vs {other.currency}", field="currency"
            )

    def __add__(self, other):
        if isinstance(other, int) and other == 0:
            return self
        self._check(other)
        return Money(self.amount + other.amount, self.currency)

    __radd__ = __add__

    def __sub__(self, other):
        self._check(other)
        return Money(self.amount - other.amount, self.currency)

    def __neg__(self):
        return Money(-self.amount, self.currency)

    def __lt__(self, other):
        self._check(other)
        return self.amount < other.amount

    def ratio(self, other: "Money") -> Decimal:
        """self / other as a Decimal; 0 when other is zero."""
        self._check(other)
        if other.amount == 0:
            return Decimal(0)
        return self.amount / other.amount

    def is_positive(self) -> bool:
        return self.amount > 0

    def is_negative(self) -> bool:
        return self.amount < 0

    def __str__(self) -> str:
        return f"{self.amount:,.2f} {self.currency}"


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    icon: str
    color: str                     # hex, e.g. "#FF9500"
    type: TransactionType
    budget: Optional[Money] = None  # optional cap shown on the category
    is_default: bool = False


@dataclass(frozen=True)
class Transaction:
    id: str
    title: str
    amount: Money                  # always positive, sign comes from type
    type: TransactionType
    category: Category
    date: datetime
    note: Optional[str] = None
    is_recurring: bool = False
    recurring_interval: Optional[RecurringInterval] = None

    @classmethod
    def create(cls, title: str, amount, type: TransactionType, category: Category,
               date: Optional[datetime] = None, **kwargs) -> "Transaction":
        return cls(
            id=kwargs.pop("id", None) or new_id(),
            title=title,
            amount=Money.of(amount),
            type=TransactionType(type),
            category=category,
            date=date or datetime.now(),
            **kwargs,
        )

    @property
    def signed_amount(self) -> Money:
        return -self.amount if self.type == TransactionType.EXPENSE else self.amount


# A budget caps spending for one category over [start_date, end_date)
@dataclass(frozen=True)
class Budget:
    id: str
    category_id: str
    cap: Money
    period: BudgetPeriod
    start_date: datetime
    end_date: datetime

    def __post_init__(self):
        for name in ("start_date", "end_date"):
            value = getattr(self, name)
            if not isinstance(value, datetime) or value.tzinfo is not None:
                raise ValidationError(f"Budget {name} must be a naive datetime, got {value!r}", field=name)
        if self.end_date <= self.start_date:
            raise ValidationError("Budget end date must be after its start date", field="end_date")

    def contains(self, when: datetime) -> bool:
        return self.start_date <= when < self.end_date


@dataclass(frozen=True)
class BudgetStatus:
    spent: Money
    remaining: Money
    progress: Decimal
    is_over_budget: bool
    severity: Severity


@dataclass(frozen=True)
class BudgetTotals:
    total_cap: Money
    total_spent: Money
    total_remaining: Money  # may be negative


@dataclass(frozen=True)
class Summary:
    total_income: Money
    total_expense: Money
    net: Money
    count: int = 0
