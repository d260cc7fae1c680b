"""
In-Memory Storage Implementation

Dict-backed repositories used by the test-suite and by the demo page when
no spreadsheet is configured. Insertion order is preserved, so accounts come
back in the order they were created.
"""

from typing import Iterable, Optional
from uuid import UUID

from finance_tracker.models.audit import AuditEvent
from finance_tracker.models.records import Account, Expense, Income, Transfer
from finance_tracker.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    FinanceRepositoryInterface,
    NotFoundError,
)


class InMemoryFinanceRepository(FinanceRepositoryInterface):
    """Finance repository that keeps every stream in a dict keyed by id."""

    def __init__(
        self,
        accounts: Optional[Iterable[Account]] = None,
        expenses: Optional[Iterable[Expense]] = None,
        income: Optional[Iterable[Income]] = None,
        transfers: Optional[Iterable[Transfer]] = None,
    ):
        self._accounts: dict[str, Account] = {a.id: a for a in accounts or []}
        self._expenses: dict[str, Expense] = {e.id: e for e in expenses or []}
        self._income: dict[str, Income] = {i.id: i for i in income or []}
        self._transfers: dict[str, Transfer] = {t.id: t for t in transfers or []}

    async def list_accounts(self) -> list[Account]:
        return list(self._accounts.values())

    async def list_expenses(self) -> list[Expense]:
        return list(self._expenses.values())

    async def list_income(self) -> list[Income]:
        return list(self._income.values())

    async def list_transfers(self) -> list[Transfer]:
        return list(self._transfers.values())

    async def save_account(self, account: Account) -> bool:
        self._accounts[account.id] = account
        return True

    async def save_expense(self, expense: Expense) -> bool:
        self._expenses[expense.id] = expense
        return True

    async def save_expenses(self, expenses: list[Expense]) -> int:
        clashes = [e.id for e in expenses if e.id in self._expenses]
        if clashes:
            raise DuplicateError(f"Expenses already exist: {', '.join(clashes)}")
        for expense in expenses:
            self._expenses[expense.id] = expense
        return len(expenses)

    async def save_income(self, income: Income) -> bool:
        self._income[income.id] = income
        return True

    async def save_transfer(self, transfer: Transfer) -> bool:
        self._transfers[transfer.id] = transfer
        return True

    async def delete_expense(self, expense_id: str) -> bool:
        if expense_id not in self._expenses:
            raise NotFoundError(f"Expense not found: {expense_id}")
        del self._expenses[expense_id]
        return True

    async def delete_installment_group(self, installment_group: str) -> int:
        members = [
            expense_id
            for expense_id, expense in self._expenses.items()
            if expense.installment_group == installment_group
        ]
        if not members:
            raise NotFoundError(f"Installment group not found: {installment_group}")
        for expense_id in members:
            del self._expenses[expense_id]
        return len(members)

    async def delete_income(self, income_id: str) -> bool:
        if income_id not in self._income:
            raise NotFoundError(f"Income not found: {income_id}")
        del self._income[income_id]
        return True


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
