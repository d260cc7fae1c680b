"""
Expense and Income Lists

Filtering and grouping behind the list pages. Like the ledger, the lists
place an expense on its effective date and resolve accounts by id first,
so a filtered list and the ledger agree on what belongs where.
"""

import datetime
from typing import Optional, Sequence, Union

from finance_tracker.ledger.resolver import AccountResolver
from finance_tracker.models.listing import (
    ExpenseFilters,
    ExpenseGroup,
    ExpenseListing,
    IncomeFilters,
    IncomeListing,
)
from finance_tracker.models.records import Account, Expense, Income


def _contains(haystack: Optional[str], needle: Optional[str]) -> bool:
    if not needle:
        return True
    return bool(haystack) and needle.casefold() in haystack.casefold()


def _in_range(
    when: Optional[datetime.date],
    start: Optional[datetime.date],
    end: Optional[datetime.date],
) -> bool:
    if start is None and end is None:
        return True
    # undated records cannot satisfy a date bound
    if when is None:
        return False
    if start is not None and when < start:
        return False
    if end is not None and when > end:
        return False
    return True


def _belongs_to(
    record: Union[Expense, Income],
    account: Optional[str],
    resolver: AccountResolver,
) -> bool:
    if not account:
        return True
    if resolver.resolve(record) == account:
        return True
    # unresolved records still match on what they store
    return account in (record.account_id, AccountResolver.legacy_reference(record))


def filter_expenses(
    expenses: Sequence[Expense],
    filters: Optional[ExpenseFilters] = None,
    accounts: Sequence[Account] = (),
) -> list[Expense]:
    """Expenses matching every set filter, in stored order."""
    filters = filters or ExpenseFilters()
    resolver = AccountResolver(accounts)
    return [
        e for e in expenses
        if (not filters.category or e.category == filters.category)
        and _belongs_to(e, filters.account, resolver)
        and _contains(e.description, filters.description)
        and _contains(e.location, filters.location)
        and _in_range(e.effective_date, filters.start_date, filters.end_date)
        and (not filters.installment_group or e.installment_group == filters.installment_group)
    ]


def filter_income(
    income: Sequence[Income],
    filters: Optional[IncomeFilters] = None,
    accounts: Sequence[Account] = (),
) -> list[Income]:
    """Income matching every set filter, in stored order."""
    filters = filters or IncomeFilters()
    resolver = AccountResolver(accounts)
    return [
        i for i in income
        if (not filters.source or i.source == filters.source)
        and _belongs_to(i, filters.account, resolver)
        and _contains(i.notes, filters.description)
        and _contains(i.location, filters.location)
        and _in_range(i.date, filters.start_date, filters.end_date)
    ]


def group_expenses(expenses: Sequence[Expense]) -> list[ExpenseGroup]:
    """
    Collect installments by their group, keeping first-seen order.

    Installments inside a group are ordered by installment number.
    """
    groups: dict[str, ExpenseGroup] = {}
    for expense in expenses:
        if expense.is_installment and expense.installment_group:
            key = expense.installment_group
            group = groups.setdefault(key, ExpenseGroup(key=key, is_installment_group=True))
        else:
            key = expense.id
            group = groups.setdefault(key, ExpenseGroup(key=key))
        group.expenses.append(expense)

    for group in groups.values():
        if group.is_installment_group:
            group.expenses.sort(key=lambda e: e.installment_number or 0)
    return list(groups.values())


def list_expenses(
    expenses: Sequence[Expense],
    filters: Optional[ExpenseFilters] = None,
    accounts: Sequence[Account] = (),
) -> ExpenseListing:
    matched = filter_expenses(expenses, filters, accounts)
    return ExpenseListing(expenses=matched, groups=group_expenses(matched))


def list_income(
    income: Sequence[Income],
    filters: Optional[IncomeFilters] = None,
    accounts: Sequence[Account] = (),
) -> IncomeListing:
    return IncomeListing(income=filter_income(income, filters, accounts))
