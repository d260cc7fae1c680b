"""Query package: deterministic read-side calculations."""

from finance_tracker.queries.dashboard import DashboardCalculator
from finance_tracker.queries.listing import (
    filter_expenses,
    filter_income,
    group_expenses,
    list_expenses,
    list_income,
)

__all__ = [
    "DashboardCalculator",
    "filter_expenses",
    "filter_income",
    "group_expenses",
    "list_expenses",
    "list_income",
]
