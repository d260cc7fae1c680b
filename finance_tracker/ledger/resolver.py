"""
Account resolution for transaction records.

Transfers always carry account ids. Expenses and income may carry an
`account_id`, but older records only hold the account *name* in
`payment_method` / `account`. Resolution order:

1. `account_id`, if it names a known account
2. the legacy field, if it equals a known account id
3. the legacy field, if it equals an account name exactly

Duplicate names resolve to the first account in list order.
"""

from enum import Enum
from typing import Iterable, Optional, Union

from finance_tracker.models.records import Account, Expense, Income


class ResolutionMethod(str, Enum):
    ACCOUNT_ID = "account_id"
    LEGACY_ID = "legacy_id"
    LEGACY_NAME = "legacy_name"
    UNRESOLVED = "unresolved"


class AccountResolver:
    """Maps expense and income records onto account ids."""

    def __init__(self, accounts: Iterable[Account]):
        self._ids: set[str] = set()
        self._by_name: dict[str, str] = {}
        for account in accounts:
            self._ids.add(account.id)
            # first account wins for duplicated names
            self._by_name.setdefault(account.name, account.id)

    def knows(self, account_id: Optional[str]) -> bool:
        return account_id is not None and account_id in self._ids

    @staticmethod
    def legacy_reference(record: Union[Expense, Income]) -> Optional[str]:
        if isinstance(record, Expense):
            return record.payment_method
        return record.account

    def resolve_with_method(
        self,
        record: Union[Expense, Income],
    ) -> tuple[Optional[str], ResolutionMethod]:
        if self.knows(record.account_id):
            return record.account_id, ResolutionMethod.ACCOUNT_ID

        legacy = self.legacy_reference(record)
        if legacy:
            if legacy in self._ids:
                return legacy, ResolutionMethod.LEGACY_ID
            if legacy in self._by_name:
                return self._by_name[legacy], ResolutionMethod.LEGACY_NAME

        return None, ResolutionMethod.UNRESOLVED

    def resolve(self, record: Union[Expense, Income]) -> Optional[str]:
        """Account id the record belongs to, or None."""
        return self.resolve_with_method(record)[0]
