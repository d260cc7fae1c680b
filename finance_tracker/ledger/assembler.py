"""
Turns per-account figures into ledger rows and orders what gets shown.
"""

import datetime
from collections import Counter
from decimal import Decimal
from typing import Optional, Sequence, Union

from finance_tracker.models.ledger import (
    AccountDayFigures,
    AccountSortKey,
    DailySummary,
    SortDirection,
    SummarySortKey,
)
from finance_tracker.models.parsing import ZERO
from finance_tracker.models.records import Account


def assemble_summaries(
    days: Sequence[datetime.date],
    accounts: Sequence[Account],
    figures: dict[str, dict[datetime.date, AccountDayFigures]],
) -> list[DailySummary]:
    """
    One DailySummary per day, newest first.

    The total balance covers every account, including ones hidden from the
    table.
    """
    summaries = []
    for day in days:
        cells = {}
        for account in accounts:
            if account.id in cells:
                continue
            cell = figures.get(account.id, {}).get(day)
            if cell is None:
                cell = AccountDayFigures(final_balance=account.initial_balance)
            cells[account.id] = cell

        total = sum((cell.final_balance for cell in cells.values()), ZERO)
        summaries.append(
            DailySummary(date=day, accounts=cells, total_daily_balance=total)
        )

    return sort_summaries(summaries)


def sort_summaries(
    summaries: Sequence[DailySummary],
    sort_by: Union[SummarySortKey, str] = SummarySortKey.DATE,
    direction: Union[SortDirection, str] = SortDirection.DESC,
) -> list[DailySummary]:
    """Order ledger rows by date or by total balance."""
    sort_by = SummarySortKey(sort_by)
    reverse = SortDirection(direction) == SortDirection.DESC

    if sort_by == SummarySortKey.BALANCE:
        return sorted(
            summaries,
            key=lambda s: (s.total_daily_balance, s.date),
            reverse=reverse,
        )
    return sorted(summaries, key=lambda s: s.date, reverse=reverse)


def _latest_summary(summaries: Sequence[DailySummary]) -> Optional[DailySummary]:
    if not summaries:
        return None
    return max(summaries, key=lambda s: s.date)


def _activity(account_id: str, summaries: Sequence[DailySummary]) -> Decimal:
    total = ZERO
    for summary in summaries:
        cell = summary.accounts.get(account_id)
        if cell is not None:
            total += cell.activity
    return total


def order_accounts(
    accounts: Sequence[Account],
    summaries: Sequence[DailySummary] = (),
    sort_by: Union[AccountSortKey, str] = AccountSortKey.NAME,
    direction: Union[SortDirection, str] = SortDirection.ASC,
    visible_ids: Optional[Sequence[str]] = None,
    custom_order: Optional[Sequence[str]] = None,
) -> list[Account]:
    """
    Filter accounts to the visible set and order them.

    An empty or missing `visible_ids` shows every account. Ties keep the
    input order. With CUSTOM, accounts follow their position in
    `custom_order` and anything not listed goes last.
    """
    sort_by = AccountSortKey(sort_by)
    reverse = SortDirection(direction) == SortDirection.DESC
    visible_ids = list(visible_ids or [])
    custom_order = list(custom_order or [])

    seen: set[str] = set()
    shown = []
    for account in accounts:
        if account.id in seen:
            continue
        seen.add(account.id)
        if visible_ids and account.id not in visible_ids:
            continue
        shown.append(account)

    if sort_by == AccountSortKey.CUSTOM:
        position: dict[str, int] = {}
        for index, account_id in enumerate(custom_order):
            position.setdefault(account_id, index)
        return sorted(
            shown,
            key=lambda a: position.get(a.id, len(custom_order)),
            reverse=reverse,
        )

    if sort_by == AccountSortKey.NAME:
        key = lambda a: a.name.casefold()
    elif sort_by == AccountSortKey.BALANCE:
        key = lambda a: a.initial_balance
    elif sort_by == AccountSortKey.FINAL_BALANCE:
        latest = _latest_summary(summaries)

        def key(a: Account) -> Decimal:
            cell = latest.accounts.get(a.id) if latest else None
            return cell.final_balance if cell else a.initial_balance
    else:
        activity = {a.id: _activity(a.id, summaries) for a in shown}
        key = lambda a: activity[a.id]

    return sorted(shown, key=key, reverse=reverse)


def column_labels(accounts: Sequence[Account]) -> dict[str, str]:
    """
    Table label per account id.

    Names shared by several accounts, and blank names, get the id appended
    so every column stays distinct.
    """
    counts = Counter(account.name for account in accounts)
    return {
        account.id: account.name
        if account.name and counts[account.name] == 1
        else f"{account.name} ({account.id})".lstrip()
        for account in accounts
    }
