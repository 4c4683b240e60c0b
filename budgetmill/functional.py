from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Generic, Iterable, TypeVar

from budgetmill.domain import Category, RecurringInterval, Transaction, TransactionType, Money
from budgetmill.errors import ValidationError

T = TypeVar('T')
U = TypeVar('U')
E = TypeVar('E')


class Maybe(Generic[T], ABC):

    @abstractmethod
    def get_or_else(self, default: T) -> T:
        pass

    @abstractmethod
    def is_some(self) -> bool:
        pass

    def is_none(self) -> bool:
        return not self.is_some()


class Some(Maybe[T]):

    def __init__(self, value: T):
        self._value = value

    def get_or_else(self, default: T) -> T:
        return self._value

    def is_some(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"Some({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Some) and self._value == other._value


class Nothing(Maybe[T]):

    def get_or_else(self, default: T) -> T:
        return default

    def is_some(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "Nothing()"

    def __eq__(self, other) -> bool:
        return isinstance(other, Nothing)


class Either(Generic[E, T], ABC):

    @abstractmethod
    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        pass

    @abstractmethod
    def is_right(self) -> bool:
        pass

    def is_left(self) -> bool:
        return not self.is_right()

    @abstractmethod
    def unwrap(self) -> T:
        """Return the value, or raise the error held by a Left."""


class Right(Either[E, T]):

    def __init__(self, value: T):
        self._value = value

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return f(self._value)

    def is_right(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self._value

    def get_error(self) -> E:
        raise ValueError("Cannot get error from Right")

    def __repr__(self) -> str:
        return f"Right({self._value!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Right) and self._value == other._value


class Left(Either[E, T]):

    def __init__(self, error: E):
        self._error = error

    def bind(self, f: Callable[[T], 'Either[E, U]']) -> 'Either[E, U]':
        return self

    def is_right(self) -> bool:
        return False

    def unwrap(self) -> T:
        if isinstance(self._error, BaseException):
            raise self._error
        raise ValidationError(str(self._error))

    def get_error(self) -> E:
        return self._error

    def __repr__(self) -> str:
        return f"Left({self._error!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Left) and self._error == other._error


def safe_category(cats: Iterable[Category], cat_id: str) -> Maybe[Category]:
    for cat in cats:
        if cat.id == cat_id:
            return Some(cat)
    return Nothing()


def _check_fields(t: Transaction) -> Either[ValidationError, Transaction]:
    if not isinstance(t.amount, Money) or not t.amount.is_positive():
        return Left(ValidationError(f"Amount must be greater than zero, got {t.amount}", field="amount"))
    if not isinstance(t.type, TransactionType):
        return Left(ValidationError(f"Unknown transaction type {t.type!r}", field="type"))
    if not t.title or not t.title.strip():
        return Left(ValidationError("Title must not be empty", field="title"))
    if not isinstance(t.date, datetime) or t.date.tzinfo is not None:
        return Left(ValidationError(f"Date must be a naive datetime, got {t.date!r}", field="date"))
    return Right(t)


def _check_recurring(t: Transaction) -> Either[ValidationError, Transaction]:
    if t.is_recurring and not isinstance(t.recurring_interval, RecurringInterval):
        return Left(ValidationError("Recurring transactions need an interval", field="recurring_interval"))
    if not t.is_recurring and t.recurring_interval is not None:
        return Left(ValidationError("Only recurring transactions may have an interval", field="recurring_interval"))
    return Right(t)


def _check_category(cats: Iterable[Category]) -> Callable[[Transaction], Either[ValidationError, Transaction]]:
    def _check(t: Transaction) -> Either[ValidationError, Transaction]:
        if t.category is None:
            return Left(ValidationError("Category is required", field="category"))
        if not isinstance(t.category, Category):
            return Left(ValidationError(f"Not a category: {t.category!r}", field="category"))
        found = safe_category(cats, t.category.id)
        if found.is_none():
            return Left(ValidationError(f"Category with ID {t.category.id} does not exist", field="category"))
        category = found.get_or_else(None)
        if category.type != t.type:
            return Left(ValidationError(
                f"{category.type.value.capitalize()} category {category.name} "
                f"cannot hold a {t.type.value} transaction",
                field="category",
            ))
        return Right(t)
    return _check


def validate_transaction(
    t: Transaction,
    cats: Iterable[Category],
) -> Either[ValidationError, Transaction]:
    cats = tuple(cats)
    return Right(t).bind(_check_fields).bind(_check_recurring).bind(_check_category(cats))


def pipe(x, *funcs):
    """pipe(x, f, g, h) == h(g(f(x)))"""
    res = x
    for f in funcs:
        res = f(res)
    return res
