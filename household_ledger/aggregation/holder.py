"""
Aggregate Ledger Holder

Holds the aggregate lines of one month while a batch of entry changes is
applied to them. Every change hits the entry's own item line and then each
ancestor line up the item hierarchy, so parent totals stay the sum of
their children without a rescan.

The holder only tracks which lines it created or patched; writing them back
(with the version check) is the caller's job.
"""

from enum import Enum
from typing import Iterable, Optional

import structlog

from household_ledger.exceptions import (
    AggregateNotFoundError,
    CrossFieldInconsistencyError,
    LedgerDataError,
    MissingRequiredComponentError,
)
from household_ledger.models.delta import DeltaOutcome, DeltaResult, compute_delta
from household_ledger.models.ledger import ExpenditureEntry, SpendingLedgerLine


logger = structlog.get_logger(__name__)


class ItemHierarchy:
    """Spending item code -> parent item code. Unknown codes are roots."""

    def __init__(self, parents: Optional[dict[str, str]] = None):
        self._parents = dict(parents or {})

    def parent_of(self, item_code: str) -> Optional[str]:
        return self._parents.get(item_code)

    def chain(self, item_code: str) -> list[str]:
        """The item itself followed by its ancestors, nearest first."""
        codes = [item_code]
        parent = self.parent_of(item_code)
        while parent is not None:
            if parent in codes:
                raise CrossFieldInconsistencyError(
                    "item hierarchy",
                    parent,
                    f"Cycle in item hierarchy [chain={' > '.join(codes)} > {parent}]",
                )
            codes.append(parent)
            parent = self.parent_of(parent)
        return codes


class LineStatus(str, Enum):
    LOADED = "loaded"
    ADDED = "added"
    UPDATED = "updated"


class AggregateLedgerHolder:
    """
    Working copy of one month's aggregate lines.

    Each operation is all-or-nothing across the item chain: new line
    values are computed first and only stored once every line succeeded.
    """

    def __init__(self, target_year_month: str, hierarchy: ItemHierarchy):
        self.target_year_month = target_year_month
        self._hierarchy = hierarchy
        self._lines: dict[str, SpendingLedgerLine] = {}
        self._status: dict[str, LineStatus] = {}
        self._original_versions: dict[str, int] = {}

    @classmethod
    def from_lines(
        cls,
        target_year_month: str,
        lines: Iterable[SpendingLedgerLine],
        hierarchy: ItemHierarchy,
    ) -> "AggregateLedgerHolder":
        holder = cls(target_year_month, hierarchy)
        for line in lines:
            if line.target_year_month != target_year_month:
                raise CrossFieldInconsistencyError(
                    "target_year_month",
                    line.target_year_month,
                    f"Line belongs to another month "
                    f"[holder={target_year_month}][line={line.target_year_month}]",
                )
            holder._lines[line.item_code] = line
            holder._status[line.item_code] = LineStatus.LOADED
            holder._original_versions[line.item_code] = line.version
        return holder

    # =========================================================================
    # OPERATIONS
    # =========================================================================

    def add(self, entry: ExpenditureEntry) -> None:
        """Add a newly registered entry to its item line and all ancestors."""
        self._check_entry(entry)
        staged = {}
        try:
            for code in self._hierarchy.chain(entry.item_code):
                line = self._lines.get(code)
                if line is None:
                    line = SpendingLedgerLine.empty(
                        code,
                        self.target_year_month,
                        parent_item_code=self._hierarchy.parent_of(code),
                    )
                staged[code] = line.add(entry.amount).with_payment_date(entry.payment_date)
        except LedgerDataError as e:
            self._log_failure("add", entry, staged, e)
            raise
        self._store(staged)

    def update(
        self,
        before: ExpenditureEntry,
        after: ExpenditureEntry,
    ) -> DeltaResult[SpendingLedgerLine]:
        """
        Patch the lines by the difference between two versions of an entry.

        Moving an entry to another item is a delete from the old chain plus
        an add to the new one.

        Returns:
            The delta as applied to the entry's own item line
        """
        self._check_entry(before)
        self._check_entry(after)

        if before.item_code != after.item_code:
            snapshot = (dict(self._lines), dict(self._status))
            try:
                self.delete(before)
                self.add(after)
            except LedgerDataError:
                self._lines, self._status = snapshot
                raise
            outcome = DeltaOutcome.UNCHANGED if after.amount.is_zero() else DeltaOutcome.INCREASE
            return DeltaResult(
                outcome=outcome,
                magnitude=after.amount,
                patched_ledger_line=self._lines[after.item_code],
            )

        staged = {}
        own_result = None
        try:
            for code in self._hierarchy.chain(after.item_code):
                result = compute_delta(before.amount, after.amount, self._require_line(code))
                if own_result is None:
                    own_result = result
                line = result.patched_ledger_line.with_payment_date(after.payment_date)
                if result.is_updated or line is not result.patched_ledger_line:
                    staged[code] = line
        except LedgerDataError as e:
            self._log_failure("update", after, staged, e)
            raise
        self._store(staged)

        if own_result.is_updated:
            return own_result.model_copy(
                update={"patched_ledger_line": self._lines[after.item_code]}
            )
        return own_result

    def delete(self, entry: ExpenditureEntry) -> None:
        """Remove an entry's amount from its item line and all ancestors."""
        self._check_entry(entry)
        staged = {}
        try:
            for code in self._hierarchy.chain(entry.item_code):
                staged[code] = self._require_line(code).subtract(entry.amount)
        except LedgerDataError as e:
            self._log_failure("delete", entry, staged, e)
            raise
        self._store(staged)

    # =========================================================================
    # RESULTS
    # =========================================================================

    def added_lines(self) -> list[SpendingLedgerLine]:
        return [
            self._lines[code] for code, status in self._status.items()
            if status == LineStatus.ADDED
        ]

    def updated_lines(self) -> list[SpendingLedgerLine]:
        return [
            self._lines[code] for code, status in self._status.items()
            if status == LineStatus.UPDATED
        ]

    def line_for(self, item_code: str) -> Optional[SpendingLedgerLine]:
        return self._lines.get(item_code)

    def original_version(self, item_code: str) -> Optional[int]:
        """Version the line had when loaded (None for lines created here)."""
        return self._original_versions.get(item_code)

    def has_changes(self) -> bool:
        return any(status != LineStatus.LOADED for status in self._status.values())

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _check_entry(self, entry: ExpenditureEntry) -> None:
        if entry is None:
            raise MissingRequiredComponentError("expenditure entry")
        if entry.target_year_month != self.target_year_month:
            raise CrossFieldInconsistencyError(
                "target_year_month",
                entry.target_year_month,
                f"Entry belongs to another month "
                f"[holder={self.target_year_month}][entry={entry.target_year_month}]",
            )

    def _require_line(self, item_code: str) -> SpendingLedgerLine:
        line = self._lines.get(item_code)
        if line is None:
            raise AggregateNotFoundError(item_code)
        return line

    def _store(self, staged: dict[str, SpendingLedgerLine]) -> None:
        for code, line in staged.items():
            if code not in self._lines:
                self._status[code] = LineStatus.ADDED
            elif self._status[code] == LineStatus.LOADED:
                self._status[code] = LineStatus.UPDATED
            self._lines[code] = line

    def _log_failure(
        self,
        operation: str,
        entry: ExpenditureEntry,
        staged: dict[str, SpendingLedgerLine],
        error: LedgerDataError,
    ) -> None:
        current = self._lines.get(entry.item_code)
        logger.error(
            "aggregate_calculation_failed",
            operation=operation,
            entry_id=str(entry.entry_id),
            item_code=entry.item_code,
            target_year_month=entry.target_year_month,
            entry_amount=str(entry.amount),
            line_amount=str(current.amount) if current else None,
            staged_lines=list(staged),
            error_type=type(error).__name__,
            error=str(error),
        )
