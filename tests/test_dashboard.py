"""Tests for dashboard calculations."""

import pytest
from datetime import date
from decimal import Decimal

from finance_tracker.models import Expense, Income
from finance_tracker.queries import DashboardCalculator


@pytest.fixture
def records():
    expenses = [
        Expense(date="2024-03-02", amount=100, category="Groceries", paid=True),
        Expense(date="2024-03-10", amount=300, category="Rent"),
        # bought in February, due in March: belongs to March
        Expense(date="2024-02-20", due_date="2024-03-05", amount=100, category="Groceries"),
        Expense(date="2024-01-15", amount=50, category="Fun", paid=True),
        Expense(date="garbage", amount=999, category="Fun"),
    ]
    income = [
        Income(date="2024-03-01", amount=1000, source="Salary"),
        Income(date="2024-02-01", amount=900, source="Salary"),
        Income(date="2023-10-01", amount=700, source="Salary"),
    ]
    return expenses, income


class TestDashboardCalculator:
    """Tests for DashboardCalculator."""

    def test_month_totals_use_effective_date(self, records):
        """Due dates decide the month of an expense."""
        summary = DashboardCalculator(today=date(2024, 3, 15)).calculate(*records)
        assert summary.total_expenses_this_month == Decimal("500")
        assert summary.total_income_this_month == Decimal("1000")
        assert summary.balance_this_month == Decimal("500")
        assert not summary.is_overspent

    def test_unpaid_expenses(self, records):
        """Every unpaid expense is listed, whatever its month."""
        summary = DashboardCalculator(today=date(2024, 3, 15)).calculate(*records)
        assert len(summary.unpaid_expenses) == 3
        assert summary.total_unpaid_expenses == Decimal("1399")

    def test_category_breakdown(self, records):
        """Current-month categories, largest first, with shares."""
        summary = DashboardCalculator(today=date(2024, 3, 15)).calculate(*records)
        categories = [(c.category, c.amount, c.percentage) for c in summary.expenses_by_category]
        assert categories == [
            ("Rent", Decimal("300"), 60.0),
            ("Groceries", Decimal("200"), 40.0),
        ]

    def test_six_month_trend(self, records):
        """Six months ending with the current one, oldest first."""
        summary = DashboardCalculator(today=date(2024, 3, 15)).calculate(*records)
        months = [m.month for m in summary.monthly_trend]
        assert months == ["2023-10", "2023-11", "2023-12", "2024-01", "2024-02", "2024-03"]

        trend = {m.month: m for m in summary.monthly_trend}
        assert trend["2023-10"].total_income == Decimal("700")
        assert trend["2024-01"].total_expenses == Decimal("50")
        assert trend["2024-02"].total_expenses == Decimal("0")
        assert trend["2024-02"].balance == Decimal("900")

    def test_overspent_month(self):
        """Expenses above income flag the month."""
        summary = DashboardCalculator(today=date(2024, 5, 1)).calculate(
            [Expense(date="2024-05-01", amount=10)], []
        )
        assert summary.is_overspent
        assert summary.expenses_by_category[0].category == "Uncategorized"
        assert summary.expenses_by_category[0].percentage == 100.0

    def test_empty_records(self):
        """No records gives zeros and an empty breakdown."""
        summary = DashboardCalculator(today=date(2024, 5, 1)).calculate([], [])
        assert summary.total_income_this_month == Decimal("0")
        assert summary.expenses_by_category == []
        assert len(summary.monthly_trend) == 6


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
