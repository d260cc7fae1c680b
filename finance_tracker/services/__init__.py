"""Services package."""

from finance_tracker.services.installments import build_installment_plan
from finance_tracker.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    FinanceRepositoryInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsFinanceRepository,
    InMemoryAuditStorage,
    InMemoryFinanceRepository,
    NotFoundError,
    StorageError,
)

__all__ = [
    # Installments
    "build_installment_plan",
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "FinanceRepositoryInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsFinanceRepository",
    "InMemoryAuditStorage",
    "InMemoryFinanceRepository",
    "NotFoundError",
    "StorageError",
]
