"""
Ledger Models

Inputs and outputs of the daily account ledger: the filter state the
presentation layer sends, the per-day summaries the engine derives, and the
view that bundles summaries with the ordered account columns.

DailySummary is derived data. It is never persisted and is recomputed in
full whenever an input changes.
"""

import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from finance_tracker.models.parsing import ZERO
from finance_tracker.models.records import Account, Expense, Income, Transfer


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class AccountSortKey(str, Enum):
    """How account columns are ordered in the ledger table."""
    NAME = "name"
    BALANCE = "balance"                # initial balance
    FINAL_BALANCE = "final_balance"    # balance on the most recent day shown
    ACTIVITY = "activity"              # income + expenses over the period
    CUSTOM = "custom"                  # order of the visible-account selection


class SummarySortKey(str, Enum):
    """How ledger rows are ordered."""
    DATE = "date"
    BALANCE = "balance"                # total daily balance


class DateRange(BaseModel):
    """An inclusive calendar range."""

    start_date: datetime.date
    end_date: datetime.date

    @property
    def is_reversed(self) -> bool:
        return self.end_date < self.start_date

    @property
    def span_days(self) -> int:
        """Number of calendar days covered (0 for a reversed range)."""
        if self.is_reversed:
            return 0
        return (self.end_date - self.start_date).days + 1


class AccountDayFigures(BaseModel):
    """Movement and closing balance of one account on one day."""
    model_config = ConfigDict(frozen=True)

    daily_income: Decimal = ZERO
    daily_expenses: Decimal = ZERO
    final_balance: Decimal = ZERO

    @property
    def activity(self) -> Decimal:
        return self.daily_income + self.daily_expenses


class DailySummary(BaseModel):
    """
    One row of the ledger.

    `accounts` is keyed by account id. `total_daily_balance` is the sum of
    final balances, a snapshot rather than a flow.
    """

    date: datetime.date
    accounts: dict[str, AccountDayFigures] = Field(default_factory=dict)
    total_daily_balance: Decimal = ZERO


class LedgerFilters(BaseModel):
    """
    Filter state owned by the presentation layer.

    An empty `visible_accounts` list means every account is visible.
    `custom_order` lists account ids for CUSTOM ordering; it does not hide
    the accounts it leaves out.
    """

    start_date: datetime.date
    end_date: datetime.date
    visible_accounts: list[str] = Field(default_factory=list)
    custom_order: list[str] = Field(default_factory=list)
    sort_by: AccountSortKey = AccountSortKey.NAME
    sort_direction: SortDirection = SortDirection.ASC

    @property
    def date_range(self) -> DateRange:
        return DateRange(start_date=self.start_date, end_date=self.end_date)

    @classmethod
    def last_days(
        cls,
        days: int,
        today: Optional[datetime.date] = None,
        **kwargs,
    ) -> "LedgerFilters":
        """Filters covering the `days` days ending today."""
        today = today or datetime.date.today()
        start = today - datetime.timedelta(days=max(days, 1) - 1)
        return cls(start_date=start, end_date=today, **kwargs)


class FinanceSnapshot(BaseModel):
    """The four record streams as loaded at one moment."""

    accounts: list[Account] = Field(default_factory=list)
    expenses: list[Expense] = Field(default_factory=list)
    income: list[Income] = Field(default_factory=list)
    transfers: list[Transfer] = Field(default_factory=list)

    @property
    def record_count(self) -> int:
        return (
            len(self.accounts)
            + len(self.expenses)
            + len(self.income)
            + len(self.transfers)
        )


class LedgerView(BaseModel):
    """
    What the presentation layer renders.

    `summaries` cover every account; `visible_accounts` holds the columns to
    show, already filtered and ordered.
    """

    summaries: list[DailySummary] = Field(default_factory=list)
    visible_accounts: list[Account] = Field(default_factory=list)
    filters: Optional[LedgerFilters] = None
    fingerprint: Optional[str] = None
    computed_at: datetime.datetime = Field(default_factory=datetime.datetime.utcnow)

    @property
    def day_count(self) -> int:
        return len(self.summaries)

    @property
    def is_empty(self) -> bool:
        return not self.summaries

    @property
    def latest(self) -> Optional[DailySummary]:
        """Most recent day in the view."""
        if not self.summaries:
            return None
        return max(self.summaries, key=lambda s: s.date)

    @property
    def current_total_balance(self) -> Decimal:
        latest = self.latest
        return latest.total_daily_balance if latest else ZERO

    def _period_sum(self, attribute: str) -> Decimal:
        visible = {account.id for account in self.visible_accounts}
        total = ZERO
        for summary in self.summaries:
            for account_id, cell in summary.accounts.items():
                if account_id in visible:
                    total += getattr(cell, attribute)
        return total

    @property
    def period_income(self) -> Decimal:
        """Inflows over the whole range for the visible accounts."""
        return self._period_sum("daily_income")

    @property
    def period_expenses(self) -> Decimal:
        """Outflows over the whole range for the visible accounts."""
        return self._period_sum("daily_expenses")
