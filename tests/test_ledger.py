"""
Tests for the daily account ledger.

Covers the balance invariant, transfer handling, date coverage and the
forward scan against the full historical resum.
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from finance_tracker.ledger import (
    AccountResolver,
    ResolutionMethod,
    aggregate_account_day,
    aggregate_accounts,
    build_ledger,
    compute_daily_summaries,
    expand_date_range,
)
from finance_tracker.models import (
    Account,
    AccountSortKey,
    Expense,
    FinanceSnapshot,
    Income,
    LedgerFilters,
    SortDirection,
    Transfer,
)


@pytest.fixture
def checking():
    return Account(id="a1", name="Checking", initial_balance=Decimal("1000"))


@pytest.fixture
def mixed_snapshot():
    """Three accounts with every kind of movement, some before the range."""
    accounts = [
        Account(id="a1", name="Checking", initial_balance=Decimal("1000")),
        Account(id="a2", name="Savings", initial_balance=Decimal("0")),
        Account(id="a3", name="Card", initial_balance=Decimal("-150")),
    ]
    expenses = [
        Expense(id="e1", date="2023-12-20", amount=100, payment_method="Checking"),
        Expense(id="e2", date="2024-01-04", amount="49.90", account_id="a3"),
        Expense(id="e3", date="2023-12-28", due_date="2024-01-08", amount=300,
                payment_method="Card"),
        Expense(id="e4", date="2024-01-06", amount=20, payment_method="Nowhere"),
        Expense(id="e5", date="garbage", amount=999, payment_method="Checking"),
        Expense(id="e6", date="2024-01-06", amount="n/a", payment_method="Checking"),
        Expense(id="e7", date="2024-02-01", amount=75, payment_method="Checking"),
    ]
    income = [
        Income(id="i1", date="2023-12-31", amount=2000, account="Checking"),
        Income(id="i2", date="2024-01-05", amount=150, account_id="a2"),
        Income(id="i3", date="05/01/2024", amount=10, account="a1"),
    ]
    transfers = [
        Transfer(id="t1", date="2024-01-02", amount=300, from_account="a1", to_account="a2"),
        Transfer(id="t2", date="2023-12-30", amount=50, from_account="a2", to_account="a3"),
        Transfer(id="t3", date="2024-01-09", amount=100, from_account="a1", to_account="a3"),
        Transfer(id="t4", date="2024-01-03", amount=40, from_account="a1", to_account="ghost"),
    ]
    return FinanceSnapshot(
        accounts=accounts,
        expenses=expenses,
        income=income,
        transfers=transfers,
    )


def by_date(summaries):
    return {s.date: s for s in summaries}


class TestScenarios:
    """The reference scenarios."""

    def test_single_account_scenario(self, checking):
        """Income on the 3rd and an expense on the 5th."""
        expenses = [Expense(date="2024-01-05", amount=200, payment_method="Checking")]
        income = [Income(date="2024-01-03", amount=500, account="Checking")]

        summaries = compute_daily_summaries(
            [checking], expenses, income, [], date(2024, 1, 1), date(2024, 1, 10)
        )
        rows = by_date(summaries)

        assert len(summaries) == 10
        for day in (1, 2):
            assert rows[date(2024, 1, day)].accounts["a1"].final_balance == Decimal("1000")
        for day in (3, 4):
            assert rows[date(2024, 1, day)].accounts["a1"].final_balance == Decimal("1500")
        for day in range(5, 11):
            assert rows[date(2024, 1, day)].accounts["a1"].final_balance == Decimal("1300")

        assert rows[date(2024, 1, 3)].accounts["a1"].daily_income == Decimal("500")
        assert rows[date(2024, 1, 5)].accounts["a1"].daily_expenses == Decimal("200")
        for summary in summaries:
            assert summary.total_daily_balance == summary.accounts["a1"].final_balance

    def test_transfer_scenario(self):
        """Money moved between accounts is never created or lost."""
        accounts = [
            Account(id="a1", name="Checking", initial_balance=Decimal("1000")),
            Account(id="a2", name="Savings", initial_balance=Decimal("0")),
        ]
        transfers = [
            Transfer(date="2024-01-02", amount=300, from_account="a1", to_account="a2"),
        ]

        summaries = compute_daily_summaries(
            accounts, [], [], transfers, date(2024, 1, 1), date(2024, 1, 5)
        )
        rows = by_date(summaries)

        first = rows[date(2024, 1, 1)]
        assert first.accounts["a1"].final_balance == Decimal("1000")
        assert first.accounts["a2"].final_balance == Decimal("0")

        for day in range(2, 6):
            row = rows[date(2024, 1, day)]
            assert row.accounts["a1"].final_balance == Decimal("700")
            assert row.accounts["a2"].final_balance == Decimal("300")

        transfer_day = rows[date(2024, 1, 2)]
        assert transfer_day.accounts["a1"].daily_expenses == Decimal("300")
        assert transfer_day.accounts["a2"].daily_income == Decimal("300")

        for summary in summaries:
            assert summary.total_daily_balance == Decimal("1000")


class TestInvariants:
    """Properties that hold for any input."""

    def test_balance_invariant(self, mixed_snapshot):
        """final_balance equals initial balance plus all movement up to the day."""
        snapshot = mixed_snapshot
        resolver = AccountResolver(snapshot.accounts)
        summaries = compute_daily_summaries(
            snapshot.accounts, snapshot.expenses, snapshot.income, snapshot.transfers,
            date(2024, 1, 1), date(2024, 1, 10),
        )

        for summary in summaries:
            day = summary.date
            for account in snapshot.accounts:
                expected = account.initial_balance
                expected += sum(
                    (i.amount for i in snapshot.income
                     if i.date and i.date <= day and resolver.resolve(i) == account.id),
                    Decimal("0"),
                )
                expected -= sum(
                    (e.amount for e in snapshot.expenses
                     if e.effective_date and e.effective_date <= day
                     and resolver.resolve(e) == account.id),
                    Decimal("0"),
                )
                expected += sum(
                    (t.amount for t in snapshot.transfers
                     if t.date <= day and t.to_account == account.id),
                    Decimal("0"),
                )
                expected -= sum(
                    (t.amount for t in snapshot.transfers
                     if t.date <= day and t.from_account == account.id),
                    Decimal("0"),
                )
                assert summary.accounts[account.id].final_balance == expected

    def test_total_balance_is_sum_of_accounts(self, mixed_snapshot):
        """total_daily_balance sums every account's final balance."""
        snapshot = mixed_snapshot
        summaries = compute_daily_summaries(
            snapshot.accounts, snapshot.expenses, snapshot.income, snapshot.transfers,
            date(2024, 1, 1), date(2024, 1, 10),
        )
        for summary in summaries:
            assert summary.total_daily_balance == sum(
                cell.final_balance for cell in summary.accounts.values()
            )

    def test_forward_scan_matches_full_resum(self, mixed_snapshot):
        """Every cell of the forward scan equals the single-cell definition."""
        snapshot = mixed_snapshot
        days = expand_date_range(date(2023, 12, 25), date(2024, 1, 15))
        resolver = AccountResolver(snapshot.accounts)

        figures = aggregate_accounts(
            days, snapshot.accounts, snapshot.expenses, snapshot.income, snapshot.transfers
        )

        for account in snapshot.accounts:
            for day in days:
                reference = aggregate_account_day(
                    day, account, snapshot.expenses, snapshot.income, snapshot.transfers,
                    resolver=resolver,
                )
                assert figures[account.id][day] == reference

    def test_one_row_per_day_newest_first(self, mixed_snapshot):
        """Rows cover the range exactly once, in descending date order."""
        snapshot = mixed_snapshot
        summaries = compute_daily_summaries(
            snapshot.accounts, snapshot.expenses, snapshot.income, snapshot.transfers,
            date(2023, 12, 20), date(2024, 2, 5),
        )
        dates = [s.date for s in summaries]
        assert len(dates) == len(set(dates)) == 48
        assert dates == sorted(dates, reverse=True)
        assert dates[0] == date(2024, 2, 5)
        assert dates[-1] == date(2023, 12, 20)

    def test_idempotent(self, mixed_snapshot):
        """Recomputing with the same inputs gives identical output."""
        snapshot = mixed_snapshot
        args = (
            snapshot.accounts, snapshot.expenses, snapshot.income, snapshot.transfers,
            date(2024, 1, 1), date(2024, 1, 31),
        )
        first = compute_daily_summaries(*args)
        second = compute_daily_summaries(*args)
        assert [s.model_dump_json() for s in first] == [s.model_dump_json() for s in second]


class TestEdgeCases:
    """Edge cases of the engine."""

    def test_reversed_range_is_empty(self, checking):
        """End before start yields an empty ledger."""
        assert compute_daily_summaries(
            [checking], [], [], [], date(2024, 1, 10), date(2024, 1, 1)
        ) == []

    def test_range_is_capped(self, checking):
        """A year-long range returns max_days rows, starting at the start."""
        summaries = compute_daily_summaries(
            [checking], [], [], [], date(2024, 1, 1), date(2024, 12, 31), max_days=90
        )
        assert len(summaries) == 90
        assert min(s.date for s in summaries) == date(2024, 1, 1)
        assert max(s.date for s in summaries) == date(2024, 3, 30)

    def test_account_without_records(self, checking):
        """No records means zero movement and a flat balance."""
        summaries = compute_daily_summaries(
            [checking], [], [], [], date(2024, 1, 1), date(2024, 1, 3)
        )
        for summary in summaries:
            cell = summary.accounts["a1"]
            assert cell.daily_income == Decimal("0")
            assert cell.daily_expenses == Decimal("0")
            assert cell.final_balance == Decimal("1000")

    def test_no_accounts(self):
        """Without accounts every row is empty with a zero total."""
        summaries = compute_daily_summaries([], [], [], [], date(2024, 1, 1), date(2024, 1, 2))
        assert len(summaries) == 2
        assert all(s.accounts == {} for s in summaries)
        assert all(s.total_daily_balance == Decimal("0") for s in summaries)

    def test_history_before_range_opens_the_balance(self, checking):
        """Movements before the first day are part of the opening balance."""
        income = [Income(date="2023-06-01", amount=250, account_id="a1")]
        summaries = compute_daily_summaries(
            [checking], [], income, [], date(2024, 1, 1), date(2024, 1, 1)
        )
        cell = summaries[0].accounts["a1"]
        assert cell.final_balance == Decimal("1250")
        assert cell.daily_income == Decimal("0")

    def test_movements_after_range_are_ignored(self, checking):
        """Future records do not leak into earlier balances."""
        expenses = [Expense(date="2024-02-01", amount=999, account_id="a1")]
        summaries = compute_daily_summaries(
            [checking], expenses, [], [], date(2024, 1, 1), date(2024, 1, 31)
        )
        assert all(s.accounts["a1"].final_balance == Decimal("1000") for s in summaries)

    def test_expense_uses_due_date(self, checking):
        """An installment hits the ledger on its due date."""
        expenses = [
            Expense(date="2024-01-02", due_date="2024-01-04", amount=100, account_id="a1"),
        ]
        rows = by_date(compute_daily_summaries(
            [checking], expenses, [], [], date(2024, 1, 1), date(2024, 1, 5)
        ))
        assert rows[date(2024, 1, 2)].accounts["a1"].daily_expenses == Decimal("0")
        assert rows[date(2024, 1, 3)].accounts["a1"].final_balance == Decimal("1000")
        assert rows[date(2024, 1, 4)].accounts["a1"].daily_expenses == Decimal("100")
        assert rows[date(2024, 1, 4)].accounts["a1"].final_balance == Decimal("900")

    def test_unreadable_due_date_matches_no_day(self, checking):
        """A due date that cannot be read does not fall back to the purchase date."""
        expenses = [
            Expense(date="2024-01-02", due_date="31/02/2024", amount=100, account_id="a1"),
        ]
        assert expenses[0].effective_date is None
        summaries = compute_daily_summaries(
            [checking], expenses, [], [], date(2024, 1, 1), date(2024, 1, 5)
        )
        assert len(summaries) == 5
        assert all(s.accounts["a1"].final_balance == Decimal("1000") for s in summaries)
        assert all(s.accounts["a1"].daily_expenses == Decimal("0") for s in summaries)

    def test_malformed_records_degrade(self, checking):
        """Bad dates match no day and bad amounts count as zero."""
        expenses = [
            Expense(date="not-a-date", amount=500, account_id="a1"),
            Expense(date="2024-01-02", amount="abc", account_id="a1"),
            Expense(date="2024-01-02", amount=-30, account_id="a1"),
        ]
        rows = by_date(compute_daily_summaries(
            [checking], expenses, [], [], date(2024, 1, 1), date(2024, 1, 3)
        ))
        assert rows[date(2024, 1, 2)].accounts["a1"].daily_expenses == Decimal("30")
        assert rows[date(2024, 1, 3)].accounts["a1"].final_balance == Decimal("970")

    def test_self_transfer_is_neutral(self, checking):
        """A transfer to the same account shows both ways and nets to zero."""
        transfers = [Transfer(date="2024-01-01", amount=80, from_account="a1", to_account="a1")]
        cell = compute_daily_summaries(
            [checking], [], [], transfers, date(2024, 1, 1), date(2024, 1, 1)
        )[0].accounts["a1"]
        assert cell.daily_income == Decimal("80")
        assert cell.daily_expenses == Decimal("80")
        assert cell.final_balance == Decimal("1000")

    def test_transfer_to_unknown_account_still_debits_sender(self, checking):
        """Only the known side of a transfer is booked."""
        transfers = [Transfer(date="2024-01-01", amount=40, from_account="a1", to_account="ghost")]
        cell = compute_daily_summaries(
            [checking], [], [], transfers, date(2024, 1, 1), date(2024, 1, 1)
        )[0].accounts["a1"]
        assert cell.final_balance == Decimal("960")

    def test_failure_returns_empty_list(self, checking):
        """Unexpected errors are logged and produce an empty ledger."""
        assert compute_daily_summaries(
            [checking], [object()], [], [], date(2024, 1, 1), date(2024, 1, 2)
        ) == []


class TestAccountResolver:
    """Tests for AccountResolver."""

    def test_account_id_wins(self):
        """An explicit account_id takes precedence over the name."""
        resolver = AccountResolver([
            Account(id="a1", name="Checking"),
            Account(id="a2", name="Savings"),
        ])
        expense = Expense(amount=1, account_id="a2", payment_method="Checking")
        assert resolver.resolve_with_method(expense) == ("a2", ResolutionMethod.ACCOUNT_ID)

    def test_unknown_account_id_falls_back_to_name(self):
        """A stale account_id does not hide a valid name."""
        resolver = AccountResolver([Account(id="a1", name="Checking")])
        expense = Expense(amount=1, account_id="gone", payment_method="Checking")
        assert resolver.resolve_with_method(expense) == ("a1", ResolutionMethod.LEGACY_NAME)

    def test_legacy_field_holding_an_id(self):
        """Old records sometimes stored the id in the name field."""
        resolver = AccountResolver([Account(id="a1", name="Checking")])
        income = Income(amount=1, account="a1")
        assert resolver.resolve_with_method(income) == ("a1", ResolutionMethod.LEGACY_ID)

    def test_name_match_is_exact(self):
        """Partial names do not match."""
        resolver = AccountResolver([Account(id="a1", name="Checking Account")])
        assert resolver.resolve(Expense(amount=1, payment_method="Checking")) is None

    def test_duplicate_names_go_to_first_account(self):
        """The first account in list order owns a duplicated name."""
        resolver = AccountResolver([
            Account(id="a1", name="Wallet"),
            Account(id="a2", name="Wallet"),
        ])
        assert resolver.resolve(Income(amount=1, account="Wallet")) == "a1"

    def test_income_source_is_not_an_account(self):
        """Income is matched on its account, never its source."""
        resolver = AccountResolver([Account(id="a1", name="Salary")])
        assert resolver.resolve(Income(amount=1, source="Salary")) is None


class TestBuildLedger:
    """Tests for build_ledger."""

    def test_view_orders_visible_accounts(self, mixed_snapshot):
        """Hidden accounts still count toward the total."""
        filters = LedgerFilters(
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 10),
            visible_accounts=["a3", "a1"],
            custom_order=["a3", "a1"],
            sort_by=AccountSortKey.CUSTOM,
        )
        view = build_ledger(mixed_snapshot, filters)

        assert [a.id for a in view.visible_accounts] == ["a3", "a1"]
        assert view.day_count == 10
        latest = view.latest
        assert set(latest.accounts) == {"a1", "a2", "a3"}
        assert latest.total_daily_balance == sum(
            c.final_balance for c in latest.accounts.values()
        )

    def test_custom_order_shows_every_account(self, mixed_snapshot):
        """A custom column order without a selection keeps all accounts."""
        filters = LedgerFilters(
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 10),
            custom_order=["a3", "a1"],
            sort_by=AccountSortKey.CUSTOM,
        )
        view = build_ledger(mixed_snapshot, filters)
        assert [a.id for a in view.visible_accounts] == ["a3", "a1", "a2"]

    def test_reversed_filters_give_empty_view(self, mixed_snapshot):
        """A reversed range gives an empty view, not an error."""
        filters = LedgerFilters(
            start_date=date(2024, 1, 10),
            end_date=date(2024, 1, 1),
            sort_direction=SortDirection.DESC,
        )
        view = build_ledger(mixed_snapshot, filters)
        assert view.is_empty
        assert len(view.visible_accounts) == 3


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
