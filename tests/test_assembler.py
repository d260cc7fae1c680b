"""Tests for summary ordering and account column ordering."""

import pytest
from datetime import date
from decimal import Decimal

from finance_tracker.ledger import (
    assemble_summaries,
    column_labels,
    compute_daily_summaries,
    order_accounts,
    sort_summaries,
)
from finance_tracker.models import (
    Account,
    AccountDayFigures,
    AccountSortKey,
    DailySummary,
    Expense,
    Income,
    SortDirection,
    SummarySortKey,
)


@pytest.fixture
def accounts():
    return [
        Account(id="c", name="cash", initial_balance=Decimal("50")),
        Account(id="a", name="Bank", initial_balance=Decimal("900")),
        Account(id="b", name="broker", initial_balance=Decimal("300")),
    ]


@pytest.fixture
def summaries(accounts):
    expenses = [
        Expense(date="2024-01-02", amount=800, account_id="a"),
        Expense(date="2024-01-02", amount=10, account_id="c"),
    ]
    income = [Income(date="2024-01-03", amount=20, account_id="c")]
    return compute_daily_summaries(
        accounts, expenses, income, [], date(2024, 1, 1), date(2024, 1, 3)
    )


class TestSortSummaries:
    """Tests for ledger row ordering."""

    def test_default_is_date_descending(self, summaries):
        """Newest day first."""
        assert [s.date.day for s in summaries] == [3, 2, 1]

    def test_date_ascending(self, summaries):
        """Oldest day first when asked."""
        ordered = sort_summaries(summaries, SummarySortKey.DATE, SortDirection.ASC)
        assert [s.date.day for s in ordered] == [1, 2, 3]

    def test_by_total_balance(self, summaries):
        """Rows can be ordered by total balance."""
        ordered = sort_summaries(summaries, "balance", "desc")
        totals = [s.total_daily_balance for s in ordered]
        assert totals == sorted(totals, reverse=True)
        assert ordered[0].date == date(2024, 1, 1)

    def test_dates_compare_as_dates(self):
        """Ordering uses calendar order, not string order."""
        rows = [
            DailySummary(date=date(2024, 1, 9)),
            DailySummary(date=date(2024, 1, 10)),
        ]
        assert [s.date.day for s in sort_summaries(rows)] == [10, 9]


class TestAssembleSummaries:
    """Tests for assemble_summaries."""

    def test_missing_figures_fall_back_to_initial_balance(self, accounts):
        """An account without figures shows its opening balance."""
        rows = assemble_summaries([date(2024, 1, 1)], accounts, {
            "a": {date(2024, 1, 1): AccountDayFigures(final_balance=Decimal("1"))},
        })
        assert rows[0].accounts["c"].final_balance == Decimal("50")
        assert rows[0].total_daily_balance == Decimal("351")


class TestOrderAccounts:
    """Tests for order_accounts."""

    def test_by_name_is_case_insensitive(self, accounts):
        """Names sort without regard to case."""
        ordered = order_accounts(accounts, sort_by=AccountSortKey.NAME)
        assert [a.name for a in ordered] == ["Bank", "broker", "cash"]

    def test_by_name_descending(self, accounts):
        """Direction reverses the order."""
        ordered = order_accounts(accounts, sort_by="name", direction="desc")
        assert [a.name for a in ordered] == ["cash", "broker", "Bank"]

    def test_by_initial_balance(self, accounts):
        """BALANCE uses the opening balance."""
        ordered = order_accounts(accounts, sort_by=AccountSortKey.BALANCE)
        assert [a.id for a in ordered] == ["c", "b", "a"]

    def test_by_final_balance(self, accounts, summaries):
        """FINAL_BALANCE uses the most recent day."""
        ordered = order_accounts(
            accounts, summaries, sort_by=AccountSortKey.FINAL_BALANCE,
            direction=SortDirection.DESC,
        )
        # a: 100, b: 300, c: 60
        assert [a.id for a in ordered] == ["b", "a", "c"]

    def test_by_activity(self, accounts, summaries):
        """ACTIVITY sums inflow and outflow over the period."""
        ordered = order_accounts(
            accounts, summaries, sort_by=AccountSortKey.ACTIVITY,
            direction=SortDirection.DESC,
        )
        # a: 800, c: 30, b: 0
        assert [a.id for a in ordered] == ["a", "c", "b"]

    def test_visible_filter(self, accounts):
        """Only visible accounts are returned."""
        ordered = order_accounts(accounts, visible_ids=["b", "c"])
        assert [a.id for a in ordered] == ["b", "c"]

    def test_empty_visible_set_means_all(self, accounts):
        """No selection shows every account."""
        assert len(order_accounts(accounts, visible_ids=[])) == 3

    def test_custom_follows_user_order(self, accounts):
        """CUSTOM keeps the order the user picked."""
        ordered = order_accounts(
            accounts, sort_by=AccountSortKey.CUSTOM, custom_order=["b", "a", "c"]
        )
        assert [a.id for a in ordered] == ["b", "a", "c"]

    def test_custom_order_does_not_hide_accounts(self, accounts):
        """Accounts left out of the custom order are shown last."""
        ordered = order_accounts(
            accounts, sort_by=AccountSortKey.CUSTOM, custom_order=["b", "c"]
        )
        assert [a.id for a in ordered] == ["b", "c", "a"]

    def test_custom_order_respects_visibility(self, accounts):
        """The visible set and the custom order are independent."""
        ordered = order_accounts(
            accounts,
            sort_by=AccountSortKey.CUSTOM,
            visible_ids=["a", "b"],
            custom_order=["b", "c", "a"],
        )
        assert [a.id for a in ordered] == ["b", "a"]

    def test_custom_without_selection_keeps_input_order(self, accounts):
        """With nothing selected, CUSTOM is the stored order."""
        ordered = order_accounts(accounts, sort_by=AccountSortKey.CUSTOM)
        assert [a.id for a in ordered] == ["c", "a", "b"]

    def test_ties_keep_input_order(self):
        """The sort is stable."""
        tied = [
            Account(id="x", name="Same"),
            Account(id="y", name="same"),
            Account(id="z", name="SAME"),
        ]
        assert [a.id for a in order_accounts(tied)] == ["x", "y", "z"]
        assert [a.id for a in order_accounts(tied, direction="desc")] == ["x", "y", "z"]

    def test_duplicate_ids_are_shown_once(self):
        """Two accounts with one id produce one column."""
        dupes = [Account(id="x", name="One"), Account(id="x", name="Two")]
        assert [a.name for a in order_accounts(dupes)] == ["One"]


class TestColumnLabels:
    """Tests for column_labels."""

    def test_unique_names_are_used_as_is(self, accounts):
        """Distinct names label their own columns."""
        assert column_labels(accounts) == {"c": "cash", "a": "Bank", "b": "broker"}

    def test_shared_names_get_their_id(self):
        """Two accounts with one name still get distinct columns."""
        labels = column_labels([
            Account(id="a1", name="Card"),
            Account(id="a2", name="Card"),
            Account(id="a3", name=""),
        ])
        assert labels == {"a1": "Card (a1)", "a2": "Card (a2)", "a3": "(a3)"}
        assert len(set(labels.values())) == 3


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
