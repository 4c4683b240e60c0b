from typing import Dict, Iterable, Optional, Tuple

from budgetmill.domain import Category, Money, TransactionType, new_id
from budgetmill.errors import NotFoundError, ValidationError
from budgetmill.logging_setup import get_logger

logger = get_logger(__name__)

DEFAULT_EXPENSE_CATEGORIES: Tuple[Category, ...] = (
    Category("exp-food", "Food", "fork.knife", "#FF9500", TransactionType.EXPENSE, is_default=True),
    Category("exp-transport", "Transport", "car.fill", "#007AFF", TransactionType.EXPENSE, is_default=True),
    Category("exp-shopping", "Shopping", "bag.fill", "#34C759", TransactionType.EXPENSE, is_default=True),
    Category("exp-entertainment", "Entertainment", "gamecontroller.fill", "#AF52DE", TransactionType.EXPENSE, is_default=True),
    Category("exp-medical", "Medical", "cross.fill", "#FF3B30", TransactionType.EXPENSE, is_default=True),
    Category("exp-education", "Education", "book.fill", "#5AC8FA", TransactionType.EXPENSE, is_default=True),
    Category("exp-housing", "Housing", "house.fill", "#FFCC00", TransactionType.EXPENSE, is_default=True),
    Category("exp-other", "Other", "ellipsis.circle.fill", "#8E8E93", TransactionType.EXPENSE, is_default=True),
)

DEFAULT_INCOME_CATEGORIES: Tuple[Category, ...] = (
    Category("inc-salary", "Salary", "banknote.fill", "#34C759", TransactionType.INCOME, is_default=True),
    Category("inc-bonus", "Bonus", "gift.fill", "#FF9500", TransactionType.INCOME, is_default=True),
    Category("inc-investment", "Investment", "chart.line.uptrend.xyaxis", "#007AFF", TransactionType.INCOME, is_default=True),
    Category("inc-part-time", "Part-time", "briefcase.fill", "#AF52DE", TransactionType.INCOME, is_default=True),
    Category("inc-other", "Other", "ellipsis.circle.fill", "#8E8E93", TransactionType.INCOME, is_default=True),
)


class CategoryRegistry:
    """Catalog of expense and income categories, keyed by id.

    Starts with the preset categories unless ``categories`` is given.
    """

    def __init__(self, categories: Optional[Iterable[Category]] = None):
        self._by_id: Dict[str, Category] = {}
        if categories is None:
            categories = DEFAULT_EXPENSE_CATEGORIES + DEFAULT_INCOME_CATEGORIES
        for c in categories:
            self.register(c)

    def register(self, category: Category) -> Category:
        if category.id in self._by_id:
            raise ValidationError(f"Category with ID {category.id} already exists", field="id")
        if not category.name.strip():
            raise ValidationError("Category name must not be empty", field="name")
        self._by_id[category.id] = category
        return category

    def create(self, name: str, type: TransactionType, icon: str = "tag.fill",
               color: str = "#8E8E93", budget=None) -> Category:
        """Register a user-defined category."""
        category = Category(
            id=new_id(),
            name=name,
            icon=icon,
            color=color,
            type=TransactionType(type),
            budget=Money.of(budget) if budget is not None else None,
        )
        self.register(category)
        logger.info("registered category %s (%s)", category.name, category.type.value)
        return category

    def get(self, category_id: str) -> Category:
        try:
            return self._by_id[category_id]
        except KeyError:
            raise NotFoundError("category", category_id) from None

    def list_categories(self, type: Optional[TransactionType] = None) -> Tuple[Category, ...]:
        if type is None:
            return tuple(self._by_id.values())
        return tuple(c for c in self._by_id.values() if c.type == type)

    def __contains__(self, category_id: str) -> bool:
        return category_id in self._by_id

    def __iter__(self):
        return iter(self._by_id.values())

    def __len__(self) -> int:
        return len(self._by_id)
