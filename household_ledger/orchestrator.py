"""
Ledger Orchestrator

Ties the money engine to storage and defines the end-to-end flows for:
1. Registration (entry -> aggregate lines added/patched, entry saved)
2. Edit (before/after delta -> aggregate lines patched, entry saved)
3. Deletion (entry amount removed from aggregate lines, entry deleted)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Each flow is one read-modify-write of the month's aggregate lines and
  the entries behind them, committed together
- Only version conflicts are retried; data errors abort immediately
- Every step is audited

Retrying re-reads the entry and the lines, so a retried edit is computed
against what the competing writer left behind.
"""

from typing import Awaitable, Callable, Optional, Sequence, TypeVar
from uuid import UUID

import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from household_ledger.aggregation import AggregateLedgerHolder, ItemHierarchy
from household_ledger.audit import AuditLogger, create_correlation_id
from household_ledger.config import LedgerSettings, get_settings
from household_ledger.exceptions import LedgerDataError
from household_ledger.models.amounts import ExpenditureAmount, ShoppingCategory
from household_ledger.models.delta import DeltaResult
from household_ledger.models.ledger import ExpenditureEntry, SpendingLedgerLine
from household_ledger.models.shopping import ShoppingRegistration
from household_ledger.services.storage import (
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
    VersionConflictError,
)


logger = structlog.get_logger(__name__)

T = TypeVar("T")


class ExpenditureLedgerFlow:
    """
    Orchestrates changes to expenditure entries and their monthly
    aggregate lines.

    Flow (per operation):
    1. Read → load the month's aggregate lines with their versions
    2. Apply → patch lines through the holder (pure computation)
    3. Commit → write lines and the entry atomically under the version check

    A version conflict in step 3 restarts the whole unit from step 1, so a
    stale entry is never written next to fresh totals.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        hierarchy: Optional[ItemHierarchy] = None,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[LedgerSettings] = None,
    ):
        self._storage = storage
        self._hierarchy = hierarchy or ItemHierarchy()
        self._audit_logger = audit_logger
        self._settings = settings or get_settings().ledger

    # =========================================================================
    # PUBLIC FLOWS
    # =========================================================================

    async def register(
        self,
        entry: ExpenditureEntry,
        correlation_id: Optional[UUID] = None,
    ) -> ExpenditureEntry:
        """
        Register a new entry and add it to the aggregate lines.

        Raises:
            DuplicateError: If the entry is already registered
            LedgerDataError: If the aggregate cannot absorb the entry
            VersionConflictError: If retries are exhausted
        """
        correlation_id = correlation_id or create_correlation_id()

        async def unit() -> list[SpendingLedgerLine]:
            if await self._storage.get_entry(entry.entry_id) is not None:
                raise DuplicateError(f"Entry already registered: {entry.entry_id}")
            _, written = await self._apply(
                entry.target_year_month,
                lambda h: h.add(entry),
                saved_entries=[entry],
            )
            return written

        written = await self._run("register", unit, correlation_id, str(entry.entry_id))

        if self._audit_logger:
            await self._audit_logger.log_entry_registered(
                entry_id=entry.entry_id,
                item_code=entry.item_code,
                amount=str(entry.amount),
                target_year_month=entry.target_year_month,
                correlation_id=correlation_id,
            )
        await self._audit_lines(written, correlation_id)
        return entry

    async def register_shopping(
        self,
        registration: ShoppingRegistration,
        item_codes: dict[ShoppingCategory, str],
        correlation_id: Optional[UUID] = None,
    ) -> list[ExpenditureEntry]:
        """
        Register a shopping trip: one entry per category with a non-zero
        post-coupon amount, all added in a single commit.
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            entries = registration.to_entries(item_codes)
        except LedgerDataError as e:
            await self._abort("register_shopping", e, None, correlation_id)
            raise

        def add_all(holder: AggregateLedgerHolder) -> None:
            for entry in entries:
                holder.add(entry)

        async def unit() -> list[SpendingLedgerLine]:
            _, written = await self._apply(
                registration.target_year_month,
                add_all,
                saved_entries=entries,
            )
            return written

        written = await self._run("register_shopping", unit, correlation_id, None)

        if self._audit_logger:
            await self._audit_logger.log_shopping_registered(
                entry_ids=[entry.entry_id for entry in entries],
                target_year_month=registration.target_year_month,
                coupon_price=str(registration.coupon_price),
                correlation_id=correlation_id,
            )
        await self._audit_lines(written, correlation_id)
        return entries

    async def edit(
        self,
        entry_id: UUID,
        new_amount: ExpenditureAmount,
        correlation_id: Optional[UUID] = None,
    ) -> DeltaResult[SpendingLedgerLine]:
        """
        Change an entry's amount and patch the aggregate by the difference.

        An unchanged amount returns an UNCHANGED result and writes nothing.

        Raises:
            NotFoundError: If the entry doesn't exist
            NegativeResultNotAllowedError: If a stored total was already
                smaller than its entries (the edit is aborted)
        """
        correlation_id = correlation_id or create_correlation_id()
        outcome = {}

        async def unit() -> DeltaResult[SpendingLedgerLine]:
            before = await self._load_entry(entry_id)
            after = before.with_amount(new_amount)
            outcome["before"] = before

            result, written = await self._apply(
                before.target_year_month,
                lambda h: h.update(before, after),
                saved_entries=[after],
            )
            outcome["written"] = written
            if not result.is_updated:
                return result

            own_line = next(
                (line for line in written if line.item_code == after.item_code),
                result.patched_ledger_line,
            )
            return result.model_copy(update={"patched_ledger_line": own_line})

        result = await self._run("edit", unit, correlation_id, str(entry_id))

        if result.is_updated and self._audit_logger:
            await self._audit_logger.log_entry_updated(
                entry_id=entry_id,
                before=str(outcome["before"].amount),
                after=str(new_amount),
                outcome=result.outcome.value,
                correlation_id=correlation_id,
            )
            await self._audit_lines(outcome["written"], correlation_id)
        return result

    async def delete(
        self,
        entry_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> ExpenditureEntry:
        """Remove an entry and subtract it from the aggregate lines."""
        correlation_id = correlation_id or create_correlation_id()

        async def unit() -> tuple[ExpenditureEntry, list[SpendingLedgerLine]]:
            entry = await self._load_entry(entry_id)
            _, written = await self._apply(
                entry.target_year_month,
                lambda h: h.delete(entry),
                deleted_entries=[entry],
            )
            return entry, written

        entry, written = await self._run("delete", unit, correlation_id, str(entry_id))

        if self._audit_logger:
            await self._audit_logger.log_entry_deleted(
                entry_id=entry.entry_id,
                item_code=entry.item_code,
                amount=str(entry.amount),
                correlation_id=correlation_id,
            )
        await self._audit_lines(written, correlation_id)
        return entry

    # =========================================================================
    # INTERNALS
    # =========================================================================

    async def _apply(
        self,
        target_year_month: str,
        change: Callable[[AggregateLedgerHolder], T],
        saved_entries: Sequence[ExpenditureEntry] = (),
        deleted_entries: Sequence[ExpenditureEntry] = (),
    ) -> tuple[T, list[SpendingLedgerLine]]:
        """
        One read-modify-write of a month's aggregate lines.

        The entries are committed together with the lines, and only when
        the change touched any line.
        """
        lines = await self._storage.list_lines(target_year_month)
        holder = AggregateLedgerHolder.from_lines(target_year_month, lines, self._hierarchy)
        result = change(holder)
        if not holder.has_changes():
            return result, []
        written = await self._storage.commit_lines(
            holder.added_lines(),
            holder.updated_lines(),
            saved_entries=saved_entries,
            deleted_entries=deleted_entries,
        )
        return result, written

    async def _run(
        self,
        operation: str,
        unit: Callable[[], Awaitable[T]],
        correlation_id: UUID,
        entity_id: Optional[str],
    ) -> T:
        """Run ``unit``, retrying it on version conflicts only."""
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(VersionConflictError),
            stop=stop_after_attempt(self._settings.edit_max_attempts),
            wait=wait_exponential(
                multiplier=self._settings.retry_wait_multiplier,
                max=self._settings.retry_wait_max,
            ),
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    try:
                        result = await unit()
                    except VersionConflictError as e:
                        await self._conflict(
                            operation,
                            attempt.retry_state.attempt_number,
                            e,
                            correlation_id,
                        )
                        raise
        except LedgerDataError as e:
            await self._abort(operation, e, entity_id, correlation_id)
            raise
        except VersionConflictError as e:
            logger.error(
                "ledger_retries_exhausted",
                operation=operation,
                entity_id=entity_id,
                attempts=self._settings.edit_max_attempts,
                error=str(e),
            )
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="VersionConflictError",
                    error_message=str(e),
                    details={"operation": operation, "entity_id": entity_id},
                    correlation_id=correlation_id,
                )
            raise
        except StorageError as e:
            logger.error(
                "ledger_storage_failed",
                operation=operation,
                entity_id=entity_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise
        return result

    async def _load_entry(self, entry_id: UUID) -> ExpenditureEntry:
        entry = await self._storage.get_entry(entry_id)
        if entry is None:
            raise NotFoundError(f"Entry not found: {entry_id}")
        return entry

    async def _abort(
        self,
        operation: str,
        error: LedgerDataError,
        entity_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        logger.error(
            "ledger_operation_aborted",
            operation=operation,
            entity_id=entity_id,
            error_type=type(error).__name__,
            field=error.field,
            error=str(error),
        )
        if self._audit_logger:
            await self._audit_logger.log_edit_aborted(
                operation=operation,
                error=error,
                entity_id=entity_id,
                correlation_id=correlation_id,
            )

    async def _conflict(
        self,
        operation: str,
        attempt: int,
        error: VersionConflictError,
        correlation_id: UUID,
    ) -> None:
        logger.warning(
            "ledger_version_conflict",
            operation=operation,
            attempt=attempt,
            error=str(error),
        )
        if self._audit_logger:
            await self._audit_logger.log_version_conflict(
                operation=operation,
                attempt=attempt,
                error_message=str(error),
                correlation_id=correlation_id,
            )

    async def _audit_lines(
        self,
        lines: list[SpendingLedgerLine],
        correlation_id: UUID,
    ) -> None:
        if not self._audit_logger:
            return
        for line in lines:
            await self._audit_logger.log_aggregate_patched(
                item_code=line.item_code,
                target_year_month=line.target_year_month,
                amount=str(line.amount),
                version=line.version,
                correlation_id=correlation_id,
            )
