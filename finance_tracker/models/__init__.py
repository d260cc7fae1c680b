"""
Data Models Package

This package contains all Pydantic models used in the finance tracker.
All data flowing through the system must conform to these schemas.
"""

from finance_tracker.models.records import (
    Account,
    AccountType,
    Expense,
    FinanceRecord,
    Income,
    Transfer,
    new_record_id,
)
from finance_tracker.models.ledger import (
    AccountDayFigures,
    AccountSortKey,
    DailySummary,
    DateRange,
    FinanceSnapshot,
    LedgerFilters,
    LedgerView,
    SortDirection,
    SummarySortKey,
)
from finance_tracker.models.dashboard import (
    CategoryShare,
    DashboardSummary,
    MonthlyData,
)
from finance_tracker.models.listing import (
    ExpenseFilters,
    ExpenseGroup,
    ExpenseListing,
    IncomeFilters,
    IncomeListing,
)
from finance_tracker.models.validation import (
    RecordType,
    ValidationIssue,
    ValidationResult,
)
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "Account",
    "AccountType",
    "Expense",
    "FinanceRecord",
    "Income",
    "Transfer",
    "new_record_id",
    # Ledger models
    "AccountDayFigures",
    "AccountSortKey",
    "DailySummary",
    "DateRange",
    "FinanceSnapshot",
    "LedgerFilters",
    "LedgerView",
    "SortDirection",
    "SummarySortKey",
    # Dashboard models
    "CategoryShare",
    "DashboardSummary",
    "MonthlyData",
    # List models
    "ExpenseFilters",
    "ExpenseGroup",
    "ExpenseListing",
    "IncomeFilters",
    "IncomeListing",
    # Validation models
    "RecordType",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
