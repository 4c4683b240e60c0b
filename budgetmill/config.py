"""Configuration for the BudgetMill model and dashboard.

Values are read once from the environment at import time. Anything not set
falls back to the defaults below.
"""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path

_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

SEED_PATH = Path(os.getenv("BUDGETMILL_SEED_PATH", _PROJECT_ROOT / "data" / "seed.json"))

CURRENCY = os.getenv("BUDGETMILL_CURRENCY", "CNY")

# progress above this ratio is reported as approaching the limit
WARNING_THRESHOLD = Decimal(os.getenv("BUDGETMILL_WARNING_THRESHOLD", "0.8"))

# 0 = Monday ... 6 = Sunday
WEEK_START = int(os.getenv("BUDGETMILL_WEEK_START", "0")) % 7

LOG_LEVEL = os.getenv("BUDGETMILL_LOG_LEVEL", "INFO")


def get_seed_path() -> str:
    return str(SEED_PATH)
