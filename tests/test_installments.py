"""Tests for installment plans."""

import pytest
from datetime import date
from decimal import Decimal

from finance_tracker.ledger import compute_daily_summaries
from finance_tracker.models import Account
from finance_tracker.services.installments import build_installment_plan, split_amount


class TestSplitAmount:
    """Tests for split_amount."""

    def test_even_split(self):
        """Amounts that divide evenly are split evenly."""
        assert split_amount(Decimal("300"), 3) == [Decimal("100")] * 3

    def test_last_share_takes_remainder(self):
        """Rounding leftovers go to the last installment."""
        shares = split_amount(Decimal("100"), 3)
        assert shares == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
        assert sum(shares) == Decimal("100")


class TestBuildInstallmentPlan:
    """Tests for build_installment_plan."""

    def test_plan_shape(self):
        """N sibling expenses sharing one group."""
        plan = build_installment_plan(
            base_date=date(2024, 1, 15),
            total_amount="1000",
            total_installments=4,
            category="Electronics",
            payment_method="Card",
        )
        assert len(plan) == 4
        assert len({e.installment_group for e in plan}) == 1
        assert [e.installment_number for e in plan] == [1, 2, 3, 4]
        assert all(e.total_installments == 4 for e in plan)
        assert all(e.is_installment and e.paid is False for e in plan)
        assert len({e.id for e in plan}) == 4

    def test_plan_sums_to_total(self):
        """The installments add up to the purchase exactly."""
        plan = build_installment_plan(date(2024, 1, 1), Decimal("199.99"), 7, "Misc")
        assert sum(e.amount for e in plan) == Decimal("199.99")

    def test_due_dates_step_monthly_with_clamping(self):
        """Jan 31 is followed by the last day of each shorter month."""
        plan = build_installment_plan(date(2024, 1, 31), 300, 3, "Misc")
        assert [e.due_date for e in plan] == [
            date(2024, 1, 31),
            date(2024, 2, 29),
            date(2024, 3, 31),
        ]

    def test_due_date_overrides(self):
        """Edited due dates replace the monthly schedule."""
        plan = build_installment_plan(
            date(2024, 1, 10), 200, 2, "Misc", due_dates=[None, date(2024, 3, 1)]
        )
        assert plan[0].due_date == date(2024, 1, 10)
        assert plan[1].due_date == date(2024, 3, 1)

    def test_single_installment(self):
        """One installment is the whole amount."""
        plan = build_installment_plan(date(2024, 1, 10), "49,90", 1, "Misc")
        assert plan[0].amount == Decimal("49.90")

    @pytest.mark.parametrize("count", [0, -2])
    def test_rejects_bad_count(self, count):
        """At least one installment is required."""
        with pytest.raises(ValueError):
            build_installment_plan(date(2024, 1, 1), 100, count, "Misc")

    @pytest.mark.parametrize("amount", [0, -50, "abc", None])
    def test_rejects_bad_amount(self, amount):
        """The total must be a positive number."""
        with pytest.raises(ValueError):
            build_installment_plan(date(2024, 1, 1), amount, 3, "Misc")

    def test_ledger_books_each_installment_on_its_due_date(self):
        """The ledger sees installments as ordinary dated expenses."""
        account = Account(id="card", name="Card", initial_balance=Decimal("0"))
        plan = build_installment_plan(
            date(2024, 1, 5), 90, 3, "Misc", account_id="card"
        )
        summaries = compute_daily_summaries(
            [account], plan, [], [], date(2024, 1, 1), date(2024, 3, 31)
        )
        rows = {s.date: s.accounts["card"] for s in summaries}
        assert rows[date(2024, 1, 5)].daily_expenses == Decimal("30")
        assert rows[date(2024, 2, 5)].daily_expenses == Decimal("30")
        assert rows[date(2024, 3, 5)].final_balance == Decimal("-90")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
