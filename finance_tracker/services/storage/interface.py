"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing and the demo page
3. Keep the ledger engine decoupled from persistence

The ledger only ever reads the four streams; writes exist so that
installment plans and manual entries can be stored.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from finance_tracker.models.audit import AuditEvent
from finance_tracker.models.ledger import FinanceSnapshot
from finance_tracker.models.records import Account, Expense, Income, Transfer


class FinanceRepositoryInterface(ABC):
    """
    Abstract interface for the accounts, expenses, income and transfers streams.

    Any storage implementation (Google Sheets, PostgreSQL, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def list_accounts(self) -> list[Account]:
        """Accounts in the user's preferred order."""
        pass

    @abstractmethod
    async def list_expenses(self) -> list[Expense]:
        pass

    @abstractmethod
    async def list_income(self) -> list[Income]:
        pass

    @abstractmethod
    async def list_transfers(self) -> list[Transfer]:
        pass

    @abstractmethod
    async def save_account(self, account: Account) -> bool:
        """
        Insert or replace an account.

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def save_expense(self, expense: Expense) -> bool:
        """
        Insert or replace an expense.

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def save_expenses(self, expenses: list[Expense]) -> int:
        """
        Insert several expenses at once (installment plans).

        Returns:
            Number of expenses written
        """
        pass

    @abstractmethod
    async def save_income(self, income: Income) -> bool:
        pass

    @abstractmethod
    async def save_transfer(self, transfer: Transfer) -> bool:
        pass

    @abstractmethod
    async def delete_expense(self, expense_id: str) -> bool:
        """
        Delete an expense by ID.

        Raises:
            NotFoundError: If the expense doesn't exist
        """
        pass

    @abstractmethod
    async def delete_installment_group(self, installment_group: str) -> int:
        """
        Delete every installment of a group.

        Returns:
            Number of expenses deleted

        Raises:
            NotFoundError: If no expense belongs to the group
        """
        pass

    @abstractmethod
    async def delete_income(self, income_id: str) -> bool:
        """
        Delete an income record by ID.

        Raises:
            NotFoundError: If the income doesn't exist
        """
        pass

    async def load_snapshot(self) -> FinanceSnapshot:
        """Load all four streams."""
        accounts, expenses, income, transfers = await asyncio.gather(
            self.list_accounts(),
            self.list_expenses(),
            self.list_income(),
            self.list_transfers(),
        )
        return FinanceSnapshot(
            accounts=accounts,
            expenses=expenses,
            income=income,
            transfers=transfers,
        )


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Events sharing a correlation ID, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Most recent events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
