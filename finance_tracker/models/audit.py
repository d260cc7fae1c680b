"""
Audit Models for the Finance Tracker

Every significant action in the system is logged for audit purposes:
loading records, recomputing the ledger, saving or deleting records,
and every failure on the way.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Loading
    RECORDS_LOADED = "records_loaded"

    # Ledger computation
    LEDGER_RECOMPUTED = "ledger_recomputed"
    LEDGER_CACHE_HIT = "ledger_cache_hit"
    LEDGER_COMPUTATION_FAILED = "ledger_computation_failed"

    # Validation
    VALIDATION_COMPLETED = "validation_completed"

    # Persistence
    ACCOUNT_SAVED = "account_saved"
    EXPENSE_SAVED = "expense_saved"
    EXPENSE_DELETED = "expense_deleted"
    INSTALLMENT_GROUP_DELETED = "installment_group_deleted"
    INCOME_DELETED = "income_deleted"
    INCOME_SAVED = "income_saved"
    TRANSFER_SAVED = "transfer_saved"
    INSTALLMENT_PLAN_CREATED = "installment_plan_created"

    # System events
    STORAGE_ERROR = "storage_error"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'expense', 'ledger', 'snapshot')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one ledger request)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, entity_type, entity_id,
         correlation_id, description, details_json, error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.ledger_recomputed(fingerprint, days, accounts, correlation_id)
        event = AuditEventBuilder.expense_saved(expense_id, amount, correlation_id)
    """

    @staticmethod
    def records_loaded(
        accounts: int,
        expenses: int,
        income: int,
        transfers: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        total = accounts + expenses + income + transfers
        return AuditEvent(
            event_type=AuditEventType.RECORDS_LOADED,
            entity_type="snapshot",
            correlation_id=correlation_id,
            description=f"Loaded {total} records",
            details={
                "accounts": accounts,
                "expenses": expenses,
                "income": income,
                "transfers": transfers,
            },
        )

    @staticmethod
    def ledger_recomputed(
        fingerprint: str,
        day_count: int,
        account_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_RECOMPUTED,
            entity_type="ledger",
            entity_id=fingerprint,
            correlation_id=correlation_id,
            description=f"Ledger recomputed: {day_count} days x {account_count} accounts",
            details={
                "day_count": day_count,
                "account_count": account_count,
            },
        )

    @staticmethod
    def ledger_cache_hit(
        fingerprint: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_CACHE_HIT,
            severity=AuditSeverity.DEBUG,
            entity_type="ledger",
            entity_id=fingerprint,
            correlation_id=correlation_id,
            description="Inputs unchanged; reused previous ledger",
        )

    @staticmethod
    def ledger_computation_failed(
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_COMPUTATION_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="ledger",
            correlation_id=correlation_id,
            description="Ledger computation failed; showing an empty ledger",
            error_message=error_message,
        )

    @staticmethod
    def validation_completed(
        records_checked: int,
        error_count: int,
        issue_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_COMPLETED,
            severity=AuditSeverity.WARNING if error_count else AuditSeverity.INFO,
            entity_type="snapshot",
            correlation_id=correlation_id,
            description=f"Validated {records_checked} records: {issue_count} issues",
            details={
                "records_checked": records_checked,
                "error_count": error_count,
                "issue_count": issue_count,
            },
        )

    @staticmethod
    def record_saved(
        record_type: str,
        record_id: str,
        amount: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        event_types = {
            "account": AuditEventType.ACCOUNT_SAVED,
            "expense": AuditEventType.EXPENSE_SAVED,
            "income": AuditEventType.INCOME_SAVED,
            "transfer": AuditEventType.TRANSFER_SAVED,
        }
        details = {"amount": amount} if amount is not None else {}
        return AuditEvent(
            event_type=event_types[record_type],
            entity_type=record_type,
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"{record_type.capitalize()} saved: {record_id}",
            details=details,
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        expense_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            entity_type="expense",
            entity_id=expense_id,
            correlation_id=correlation_id,
            description=f"Expense deleted: {expense_id}",
            is_user_action=True,
        )

    @staticmethod
    def installment_group_deleted(
        installment_group: str,
        deleted_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSTALLMENT_GROUP_DELETED,
            entity_type="installment_group",
            entity_id=installment_group,
            correlation_id=correlation_id,
            description=f"Installment group deleted: {deleted_count} installments",
            details={"deleted_count": deleted_count},
            is_user_action=True,
        )

    @staticmethod
    def income_deleted(
        income_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INCOME_DELETED,
            entity_type="income",
            entity_id=income_id,
            correlation_id=correlation_id,
            description=f"Income deleted: {income_id}",
            is_user_action=True,
        )

    @staticmethod
    def installment_plan_created(
        installment_group: str,
        total_installments: int,
        total_amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSTALLMENT_PLAN_CREATED,
            entity_type="installment_group",
            entity_id=installment_group,
            correlation_id=correlation_id,
            description=f"Installment plan created: {total_installments}x for {total_amount}",
            details={
                "total_installments": total_installments,
                "total_amount": total_amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={"operation": operation},
            correlation_id=correlation_id,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
