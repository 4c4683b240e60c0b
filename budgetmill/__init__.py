"""BudgetMill: transactions, per-category budgets and chart aggregations."""

__version__ = "0.1.0"
