"""
Tests for the audit logger.
"""

import pytest
from unittest.mock import AsyncMock
from uuid import UUID

from finance_tracker.audit import AuditLogger, create_correlation_id
from finance_tracker.models import AuditEventBuilder, AuditEventType, AuditSeverity
from finance_tracker.services.storage import InMemoryAuditStorage


class TestAuditLogger:
    """Tests for AuditLogger."""

    @pytest.mark.asyncio
    async def test_log_without_storage(self):
        """Local-only logging always succeeds."""
        audit = AuditLogger()
        assert audit.has_storage is False
        assert await audit.log(AuditEventBuilder.expense_deleted("e1")) is True

    @pytest.mark.asyncio
    async def test_log_persists_event(self):
        """Events reach the configured storage."""
        storage = InMemoryAuditStorage()
        audit = AuditLogger(storage)
        event = AuditEventBuilder.ledger_cache_hit("abc")

        assert await audit.log(event) is True
        assert storage.events == [event]

    @pytest.mark.asyncio
    async def test_storage_failure_is_not_raised(self):
        """A broken audit sink must not break the caller."""
        storage = AsyncMock()
        storage.append_event.side_effect = RuntimeError("sheet gone")
        audit = AuditLogger(storage)

        assert await audit.log(AuditEventBuilder.expense_deleted("e1")) is False

    @pytest.mark.asyncio
    async def test_helpers_share_correlation_id(self):
        """Helper methods carry the correlation id through."""
        storage = InMemoryAuditStorage()
        audit = AuditLogger(storage)
        cid = create_correlation_id()

        await audit.log_records_loaded(2, 3, 1, 0, correlation_id=cid)
        await audit.log_ledger_recomputed("abc", 30, 2, correlation_id=cid)
        await audit.log_storage_error("load_snapshot", "timeout", correlation_id=cid)

        events = await storage.get_events_by_correlation_id(cid)
        assert [e.event_type for e in events] == [
            AuditEventType.RECORDS_LOADED,
            AuditEventType.LEDGER_RECOMPUTED,
            AuditEventType.STORAGE_ERROR,
        ]
        assert events[-1].severity == AuditSeverity.ERROR
        assert events[-1].details == {"operation": "load_snapshot"}

    @pytest.mark.asyncio
    async def test_log_error(self):
        """Test system error logging."""
        storage = InMemoryAuditStorage()
        audit = AuditLogger(storage)
        await audit.log_error("KeyError", "missing", details={"key": "x"})

        event = storage.events[0]
        assert event.event_type == AuditEventType.SYSTEM_ERROR
        assert event.error_message == "missing"
        assert event.details == {"key": "x"}


def test_correlation_ids_are_unique():
    """Each user action gets its own id."""
    first = create_correlation_id()
    assert isinstance(first, UUID)
    assert first != create_correlation_id()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
