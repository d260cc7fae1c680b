"""
Per-account daily aggregation.

For every (day, account) cell the ledger shows:

- daily_expenses: expenses whose effective date is that day, plus
  transfers leaving the account that day
- daily_income: income dated that day, plus transfers arriving that day
- final_balance: initial balance plus all net movement up to and
  including that day

A transfer shows up in both display buckets (out for the sender, in for the
receiver) yet moves each balance exactly once.

`aggregate_accounts` is the production path: one forward scan per account
carrying the running balance. `aggregate_account_day` re-sums the whole
history for a single cell and is kept as the reference definition.
"""

import datetime
from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from finance_tracker.ledger.resolver import AccountResolver
from finance_tracker.models.ledger import AccountDayFigures
from finance_tracker.models.parsing import ZERO
from finance_tracker.models.records import Account, Expense, Income, Transfer

# account id -> day -> amount
DailyAmounts = dict[str, dict[datetime.date, Decimal]]


def aggregate_account_day(
    day: datetime.date,
    account: Account,
    expenses: Iterable[Expense],
    income: Iterable[Income],
    transfers: Iterable[Transfer],
    resolver: Optional[AccountResolver] = None,
) -> AccountDayFigures:
    """
    Figures for one account on one day, summed from the full history.

    Pass a resolver built from the complete account list when name
    duplicates matter; by default only `account` itself is known.
    """
    resolver = resolver or AccountResolver([account])

    daily_income = ZERO
    daily_expenses = ZERO
    balance = account.initial_balance

    for expense in expenses:
        when = expense.effective_date
        if when is None or when > day or resolver.resolve(expense) != account.id:
            continue
        balance -= expense.amount
        if when == day:
            daily_expenses += expense.amount

    for item in income:
        if item.date is None or item.date > day or resolver.resolve(item) != account.id:
            continue
        balance += item.amount
        if item.date == day:
            daily_income += item.amount

    for transfer in transfers:
        if transfer.date is None or transfer.date > day:
            continue
        if transfer.from_account == account.id:
            balance -= transfer.amount
            if transfer.date == day:
                daily_expenses += transfer.amount
        if transfer.to_account == account.id:
            balance += transfer.amount
            if transfer.date == day:
                daily_income += transfer.amount

    return AccountDayFigures(
        daily_income=daily_income,
        daily_expenses=daily_expenses,
        final_balance=balance,
    )


def bucket_movements(
    accounts: Sequence[Account],
    expenses: Iterable[Expense],
    income: Iterable[Income],
    transfers: Iterable[Transfer],
) -> tuple[DailyAmounts, DailyAmounts]:
    """
    Group every dated movement by account and day.

    Returns (inflows, outflows). Records with no date or no resolvable
    account are dropped.
    """
    resolver = AccountResolver(accounts)
    inflows: DailyAmounts = defaultdict(lambda: defaultdict(lambda: ZERO))
    outflows: DailyAmounts = defaultdict(lambda: defaultdict(lambda: ZERO))

    for expense in expenses:
        account_id = resolver.resolve(expense)
        if expense.effective_date is not None and account_id is not None:
            outflows[account_id][expense.effective_date] += expense.amount

    for item in income:
        account_id = resolver.resolve(item)
        if item.date is not None and account_id is not None:
            inflows[account_id][item.date] += item.amount

    for transfer in transfers:
        if transfer.date is None:
            continue
        if resolver.knows(transfer.from_account):
            outflows[transfer.from_account][transfer.date] += transfer.amount
        if resolver.knows(transfer.to_account):
            inflows[transfer.to_account][transfer.date] += transfer.amount

    return inflows, outflows


def aggregate_accounts(
    days: Sequence[datetime.date],
    accounts: Sequence[Account],
    expenses: Iterable[Expense],
    income: Iterable[Income],
    transfers: Iterable[Transfer],
) -> dict[str, dict[datetime.date, AccountDayFigures]]:
    """
    Figures for every account on every day, by forward scan.

    `days` must be ascending. Movements dated before the first day are
    folded into the opening balance; movements after the last day are
    ignored.
    """
    result: dict[str, dict[datetime.date, AccountDayFigures]] = {
        account.id: {} for account in accounts
    }
    if not days:
        return result

    inflows, outflows = bucket_movements(accounts, expenses, income, transfers)
    first_day = days[0]

    for account in accounts:
        if result[account.id]:
            # duplicate id; the first account already owns the column
            continue

        account_in = inflows.get(account.id, {})
        account_out = outflows.get(account.id, {})

        balance = account.initial_balance
        balance += sum((v for d, v in account_in.items() if d < first_day), ZERO)
        balance -= sum((v for d, v in account_out.items() if d < first_day), ZERO)

        cells = {}
        for day in days:
            daily_income = account_in.get(day, ZERO)
            daily_expenses = account_out.get(day, ZERO)
            balance = balance + daily_income - daily_expenses
            cells[day] = AccountDayFigures(
                daily_income=daily_income,
                daily_expenses=daily_expenses,
                final_balance=balance,
            )
        result[account.id] = cells

    return result
