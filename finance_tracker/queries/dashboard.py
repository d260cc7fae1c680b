"""
Dashboard Calculations

DESIGN DECISION: Dashboard figures are computed deterministically from the
stored records, the same way the ledger is. Expenses are always placed by
their effective date (due date, else purchase date), so the dashboard and
the daily ledger agree on which month an installment belongs to.
"""

import datetime
from collections import defaultdict
from decimal import Decimal
from typing import Optional, Sequence

from finance_tracker.ledger.dates import add_months, month_key
from finance_tracker.models.dashboard import (
    CategoryShare,
    DashboardSummary,
    MonthlyData,
)
from finance_tracker.models.parsing import ZERO
from finance_tracker.models.records import Expense, Income

UNCATEGORIZED = "Uncategorized"


class DashboardCalculator:
    """
    Computes the headline dashboard for the month containing `today`.

    GUARANTEES:
    - Only stored records contribute
    - Undated records are counted in no month
    - Category shares add up to 100% (up to rounding)
    """

    def __init__(self, today: Optional[datetime.date] = None, trend_months: int = 6):
        self.today = today or datetime.date.today()
        self.trend_months = trend_months

    def calculate(
        self,
        expenses: Sequence[Expense],
        income: Sequence[Income],
    ) -> DashboardSummary:
        current = month_key(self.today)

        expenses_by_month = self._expenses_by_month(expenses)
        income_by_month = self._income_by_month(income)

        month_expenses = [
            e for e in expenses
            if e.effective_date is not None and month_key(e.effective_date) == current
        ]

        unpaid = [e for e in expenses if not e.is_paid]

        return DashboardSummary(
            reference_date=self.today,
            total_income_this_month=income_by_month.get(current, ZERO),
            total_expenses_this_month=expenses_by_month.get(current, ZERO),
            total_unpaid_expenses=sum((e.amount for e in unpaid), ZERO),
            unpaid_expenses=unpaid,
            expenses_by_category=self._category_breakdown(month_expenses),
            monthly_trend=self._monthly_trend(expenses_by_month, income_by_month),
        )

    def _expenses_by_month(self, expenses: Sequence[Expense]) -> dict[str, Decimal]:
        totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for expense in expenses:
            if expense.effective_date is not None:
                totals[month_key(expense.effective_date)] += expense.amount
        return totals

    def _income_by_month(self, income: Sequence[Income]) -> dict[str, Decimal]:
        totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for item in income:
            if item.date is not None:
                totals[month_key(item.date)] += item.amount
        return totals

    def _category_breakdown(self, expenses: Sequence[Expense]) -> list[CategoryShare]:
        """Group expenses by category, largest first."""
        grouped: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for expense in expenses:
            grouped[expense.category or UNCATEGORIZED] += expense.amount

        total = sum(grouped.values(), ZERO)
        shares = []
        for category, amount in grouped.items():
            percentage = float(amount / total * 100) if total > 0 else 0.0
            shares.append(
                CategoryShare(
                    category=category,
                    amount=amount,
                    percentage=round(min(percentage, 100.0), 2),
                )
            )
        shares.sort(key=lambda s: s.amount, reverse=True)
        return shares

    def _monthly_trend(
        self,
        expenses_by_month: dict[str, Decimal],
        income_by_month: dict[str, Decimal],
    ) -> list[MonthlyData]:
        """Oldest month first, ending with the current month."""
        first_of_month = self.today.replace(day=1)
        trend = []
        for offset in range(self.trend_months - 1, -1, -1):
            key = month_key(add_months(first_of_month, -offset))
            trend.append(
                MonthlyData(
                    month=key,
                    total_income=income_by_month.get(key, ZERO),
                    total_expenses=expenses_by_month.get(key, ZERO),
                )
            )
        return trend
