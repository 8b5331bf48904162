"""
Audit Models for the Household Ledger

Every change to a ledger entry or aggregate line is recorded, as is every
edit that had to be aborted. An aborted edit means stored data was already
inconsistent, so it must never pass silently.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class LedgerEventType(str, Enum):
    """Types of events we audit."""
    # Entries
    ENTRY_REGISTERED = "entry_registered"
    ENTRY_UPDATED = "entry_updated"
    ENTRY_DELETED = "entry_deleted"
    SHOPPING_REGISTERED = "shopping_registered"

    # Aggregate ledger
    AGGREGATE_PATCHED = "aggregate_patched"

    # Failures
    EDIT_ABORTED = "edit_aborted"
    VERSION_CONFLICT = "version_conflict"
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class LedgerEvent(BaseModel):
    """
    A single audit event.

    Every significant ledger action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: LedgerEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - which entry or line is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'entry', 'ledger_line')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Entry UUID or '<item_code>@<YYYYMM>' for ledger lines"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID shared by all events of one ledger operation"
    )

    description: str = Field(..., max_length=500)
    details: dict[str, Any] = Field(default_factory=dict)

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
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
        }


def line_key(item_code: str, target_year_month: str) -> str:
    return f"{item_code}@{target_year_month}"


class LedgerEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = LedgerEventBuilder.entry_registered(entry_id, "food", "1500.00", "202404", cid)
        event = LedgerEventBuilder.edit_aborted(entry_id, error, cid)
    """

    @staticmethod
    def entry_registered(
        entry_id: UUID,
        item_code: str,
        amount: str,
        target_year_month: str,
        correlation_id: Optional[UUID] = None
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.ENTRY_REGISTERED,
            entity_type="entry",
            entity_id=str(entry_id),
            correlation_id=correlation_id,
            description=f"Entry registered: {item_code} {amount} ({target_year_month})",
            details={
                "item_code": item_code,
                "amount": amount,
                "target_year_month": target_year_month,
            },
        )

    @staticmethod
    def shopping_registered(
        entry_ids: list[UUID],
        target_year_month: str,
        coupon_price: str,
        correlation_id: Optional[UUID] = None
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SHOPPING_REGISTERED,
            entity_type="shopping",
            correlation_id=correlation_id,
            description=f"Shopping registered with {len(entry_ids)} category entries",
            details={
                "entry_ids": [str(entry_id) for entry_id in entry_ids],
                "target_year_month": target_year_month,
                "coupon_price": coupon_price,
            },
        )

    @staticmethod
    def entry_updated(
        entry_id: UUID,
        before: str,
        after: str,
        outcome: str,
        correlation_id: Optional[UUID] = None
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.ENTRY_UPDATED,
            entity_type="entry",
            entity_id=str(entry_id),
            correlation_id=correlation_id,
            description=f"Entry updated: {before} -> {after} ({outcome})",
            details={
                "before": before,
                "after": after,
                "outcome": outcome,
            },
        )

    @staticmethod
    def entry_deleted(
        entry_id: UUID,
        item_code: str,
        amount: str,
        correlation_id: Optional[UUID] = None
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.ENTRY_DELETED,
            entity_type="entry",
            entity_id=str(entry_id),
            correlation_id=correlation_id,
            description=f"Entry deleted: {item_code} {amount}",
            details={
                "item_code": item_code,
                "amount": amount,
            },
        )

    @staticmethod
    def aggregate_patched(
        item_code: str,
        target_year_month: str,
        amount: str,
        version: int,
        correlation_id: Optional[UUID] = None
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.AGGREGATE_PATCHED,
            entity_type="ledger_line",
            entity_id=line_key(item_code, target_year_month),
            correlation_id=correlation_id,
            description=f"Aggregate line patched: {item_code} = {amount}",
            details={
                "amount": amount,
                "version": version,
            },
        )

    @staticmethod
    def edit_aborted(
        operation: str,
        error: Exception,
        entity_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.EDIT_ABORTED,
            severity=AuditSeverity.ERROR,
            entity_type="entry",
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Ledger {operation} aborted: {type(error).__name__}",
            error_code=type(error).__name__,
            error_message=str(error),
            details={
                "operation": operation,
                "field": getattr(error, "field", None),
                "value": str(getattr(error, "value", None)),
            },
        )

    @staticmethod
    def version_conflict(
        operation: str,
        attempt: int,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.VERSION_CONFLICT,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Version conflict during {operation} (attempt {attempt})",
            error_message=error_message,
            details={
                "operation": operation,
                "attempt": attempt,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
