"""Tests for audit models and the audit logger."""

import asyncio
from uuid import uuid4

import pytest

from household_ledger.audit import AuditLogger, configure_logging, create_correlation_id
from household_ledger.config import LoggingSettings
from household_ledger.exceptions import NegativeResultNotAllowedError
from household_ledger.models.audit import (
    AuditSeverity,
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventType,
)
from household_ledger.services.storage import AuditStorageInterface, InMemoryAuditStorage


class FailingAuditStorage(AuditStorageInterface):
    async def append_event(self, event):
        raise RuntimeError("disk full")

    async def get_events_by_correlation_id(self, correlation_id):
        return []

    async def get_events_by_entity(self, entity_type, entity_id):
        return []

    async def get_recent_events(self, limit=100):
        return []


class TestLedgerEventModels:
    """Tests for audit-related models."""

    def test_event_creation(self):
        """Test LedgerEvent model creation."""
        event = LedgerEvent(
            event_type=LedgerEventType.ENTRY_REGISTERED,
            description="Entry registered",
        )
        assert event.event_type == LedgerEventType.ENTRY_REGISTERED
        assert event.severity == AuditSeverity.INFO
        assert event.timestamp.tzinfo is not None

    def test_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = LedgerEvent(
            event_type=LedgerEventType.AGGREGATE_PATCHED,
            description="Line patched",
            details={"amount": "1500.00"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "aggregate_patched"
        assert log_dict["details"]["amount"] == "1500.00"

    def test_builder_entry_registered(self):
        entry_id = uuid4()
        correlation_id = uuid4()

        event = LedgerEventBuilder.entry_registered(
            entry_id=entry_id,
            item_code="food",
            amount="1500.00",
            target_year_month="202404",
            correlation_id=correlation_id,
        )

        assert event.entity_id == str(entry_id)
        assert event.correlation_id == correlation_id
        assert event.details["item_code"] == "food"

    def test_builder_edit_aborted(self):
        error = NegativeResultNotAllowedError("expenditure amount", "-100.00")
        event = LedgerEventBuilder.edit_aborted("edit", error, entity_id="abc")

        assert event.event_type == LedgerEventType.EDIT_ABORTED
        assert event.severity == AuditSeverity.ERROR
        assert event.error_code == "NegativeResultNotAllowedError"
        assert event.details["field"] == "expenditure amount"

    def test_builder_aggregate_patched_entity(self):
        event = LedgerEventBuilder.aggregate_patched("food", "202404", "10.00", 3)
        assert event.entity_type == "ledger_line"
        assert event.entity_id == "food@202404"


class TestAuditLogger:
    """The logger persists when it can and never raises when it can't."""

    def test_log_persists(self):
        async def scenario():
            storage = InMemoryAuditStorage()
            audit_logger = AuditLogger(storage)
            correlation_id = create_correlation_id()

            await audit_logger.log_entry_deleted(uuid4(), "food", "10.00", correlation_id)
            await audit_logger.log_version_conflict("edit", 1, "stale", correlation_id)

            events = await storage.get_events_by_correlation_id(correlation_id)
            assert [e.event_type for e in events] == [
                LedgerEventType.ENTRY_DELETED,
                LedgerEventType.VERSION_CONFLICT,
            ]

        asyncio.run(scenario())

    def test_without_storage(self):
        assert asyncio.run(AuditLogger().log(
            LedgerEventBuilder.system_error("Boom", "boom")
        )) is True

    def test_storage_failure_is_swallowed(self):
        result = asyncio.run(AuditLogger(FailingAuditStorage()).log(
            LedgerEventBuilder.system_error("Boom", "boom")
        ))
        assert result is False

    @pytest.mark.parametrize("json_logs", [True, False])
    def test_configure_logging(self, json_logs):
        configure_logging(LoggingSettings(level="debug", json_logs=json_logs))
        configure_logging(LoggingSettings())
