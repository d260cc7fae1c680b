"""Dashboard Models"""

import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from finance_tracker.models.parsing import ZERO
from finance_tracker.models.records import Expense


class MonthlyData(BaseModel):
    """Income and expense totals for one calendar month."""

    month: str = Field(..., pattern=r"^\d{4}-\d{2}$", description="YYYY-MM")
    total_income: Decimal = ZERO
    total_expenses: Decimal = ZERO

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expenses


class CategoryShare(BaseModel):
    category: str
    amount: Decimal
    percentage: float = Field(ge=0.0, le=100.0)


class DashboardSummary(BaseModel):
    """Headline figures for the month containing `reference_date`."""

    reference_date: datetime.date
    total_income_this_month: Decimal = ZERO
    total_expenses_this_month: Decimal = ZERO
    total_unpaid_expenses: Decimal = ZERO
    unpaid_expenses: list[Expense] = Field(default_factory=list)
    expenses_by_category: list[CategoryShare] = Field(default_factory=list)
    monthly_trend: list[MonthlyData] = Field(default_factory=list)

    @property
    def balance_this_month(self) -> Decimal:
        return self.total_income_this_month - self.total_expenses_this_month

    @property
    def is_overspent(self) -> bool:
        """Expenses exceed income this month."""
        return self.balance_this_month < 0
