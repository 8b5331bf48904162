"""
Audit Logger

DESIGN DECISION: Every ledger change is logged.
This provides:
1. Complete traceability of every aggregate patch
2. Debugging capability when an edit is aborted
3. A record of which entries fed which monthly totals

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the flow if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
import sys
from typing import Optional
from uuid import UUID, uuid4

import structlog

from household_ledger.config import LoggingSettings, get_settings
from household_ledger.models.audit import AuditSeverity, LedgerEvent, LedgerEventBuilder
from household_ledger.services.storage import AuditStorageInterface


def configure_logging(settings: Optional[LoggingSettings] = None) -> None:
    """
    Configure structlog on top of the standard library logger.

    JSON lines by default; a console renderer when ``json_logs`` is off.
    """
    settings = settings or get_settings().logging

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=settings.level,
    )
    logging.getLogger().setLevel(settings.level)

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.json_logs
        else structlog.dev.ConsoleRenderer()
    )
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
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Configure structlog for local logging
configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit storage backend, when one is configured
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
        self._logger = structlog.get_logger(__name__)

    async def log(self, event: LedgerEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
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

    async def log_entry_registered(
        self,
        entry_id: UUID,
        item_code: str,
        amount: str,
        target_year_month: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = LedgerEventBuilder.entry_registered(
            entry_id=entry_id,
            item_code=item_code,
            amount=amount,
            target_year_month=target_year_month,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_shopping_registered(
        self,
        entry_ids: list[UUID],
        target_year_month: str,
        coupon_price: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = LedgerEventBuilder.shopping_registered(
            entry_ids=entry_ids,
            target_year_month=target_year_month,
            coupon_price=coupon_price,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_entry_updated(
        self,
        entry_id: UUID,
        before: str,
        after: str,
        outcome: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = LedgerEventBuilder.entry_updated(
            entry_id=entry_id,
            before=before,
            after=after,
            outcome=outcome,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_entry_deleted(
        self,
        entry_id: UUID,
        item_code: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = LedgerEventBuilder.entry_deleted(
            entry_id=entry_id,
            item_code=item_code,
            amount=amount,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_aggregate_patched(
        self,
        item_code: str,
        target_year_month: str,
        amount: str,
        version: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log one written aggregate line."""
        event = LedgerEventBuilder.aggregate_patched(
            item_code=item_code,
            target_year_month=target_year_month,
            amount=amount,
            version=version,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_edit_aborted(
        self,
        operation: str,
        error: Exception,
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a ledger operation aborted by a data error."""
        event = LedgerEventBuilder.edit_aborted(
            operation=operation,
            error=error,
            entity_id=entity_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_version_conflict(
        self,
        operation: str,
        attempt: int,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = LedgerEventBuilder.version_conflict(
            operation=operation,
            attempt=attempt,
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
        event = LedgerEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a ledger operation and pass it through
    every event that operation produces.
    """
    return uuid4()
