"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Traceability of every ledger recompute and every write
2. A record of what failed when the page showed an empty ledger
3. History the user can open in the AuditLog sheet

The audit logger:
- Is async so it fits the orchestrator's flows
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from finance_tracker.models.audit import AuditEvent, AuditEventBuilder
from finance_tracker.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structlog output through stdlib logging at `level`."""
    level_value = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", level=level_value)
    # basicConfig is a no-op once handlers exist
    logging.getLogger().setLevel(level_value)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("finance_tracker.audit")

    @property
    def has_storage(self) -> bool:
        return self._storage is not None

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_records_loaded(
        self,
        accounts: int,
        expenses: int,
        income: int,
        transfers: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.records_loaded(
            accounts=accounts,
            expenses=expenses,
            income=income,
            transfers=transfers,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_ledger_recomputed(
        self,
        fingerprint: str,
        day_count: int,
        account_count: int,
        correlation_id: UUID,
    ) -> None:
        """Log a fresh ledger computation."""
        event = AuditEventBuilder.ledger_recomputed(
            fingerprint=fingerprint,
            day_count=day_count,
            account_count=account_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_ledger_cache_hit(
        self,
        fingerprint: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.ledger_cache_hit(
            fingerprint=fingerprint,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_ledger_failed(
        self,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a ledger computation that fell back to an empty view."""
        event = AuditEventBuilder.ledger_computation_failed(
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_validation_completed(
        self,
        records_checked: int,
        error_count: int,
        issue_count: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.validation_completed(
            records_checked=records_checked,
            error_count=error_count,
            issue_count=issue_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_record_saved(
        self,
        record_type: str,
        record_id: str,
        amount: Optional[str],
        correlation_id: UUID,
    ) -> None:
        """Log an account, expense, income or transfer write."""
        event = AuditEventBuilder.record_saved(
            record_type=record_type,
            record_id=record_id,
            amount=amount,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_expense_deleted(
        self,
        expense_id: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.expense_deleted(
            expense_id=expense_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_installment_group_deleted(
        self,
        installment_group: str,
        deleted_count: int,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.installment_group_deleted(
            installment_group=installment_group,
            deleted_count=deleted_count,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_income_deleted(
        self,
        income_id: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.income_deleted(
            income_id=income_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_installment_plan_created(
        self,
        installment_group: str,
        total_installments: int,
        total_amount: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.installment_plan_created(
            installment_group=installment_group,
            total_installments=total_installments,
            total_amount=total_amount,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a failed repository call."""
        event = AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., opening the ledger).
    Pass it through all subsequent operations.
    """
    return uuid4()
