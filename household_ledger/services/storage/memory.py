"""
In-Memory Storage

Reference implementation of the storage interfaces. State lives in dicts
guarded by one ``asyncio.Lock`` per store, so a ``commit_lines`` call is a
single atomic read-check-write over lines and entries alike.
"""

import asyncio
from typing import Iterable, Optional, Sequence
from uuid import UUID

import structlog

from household_ledger.models.audit import LedgerEvent
from household_ledger.models.ledger import ExpenditureEntry, SpendingLedgerLine
from household_ledger.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
    NotFoundError,
    VersionConflictError,
)


logger = structlog.get_logger(__name__)

LineKey = tuple[str, str]


def _key(line: SpendingLedgerLine) -> LineKey:
    return (line.target_year_month, line.item_code)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Entries and aggregate lines kept in process memory."""

    def __init__(
        self,
        lines: Optional[Iterable[SpendingLedgerLine]] = None,
        entries: Optional[Iterable[ExpenditureEntry]] = None,
    ):
        self._lock = asyncio.Lock()
        self._lines: dict[LineKey, SpendingLedgerLine] = {
            _key(line): line for line in (lines or [])
        }
        self._entries: dict[UUID, ExpenditureEntry] = {
            entry.entry_id: entry for entry in (entries or [])
        }

    async def get_entry(self, entry_id: UUID) -> Optional[ExpenditureEntry]:
        return self._entries.get(entry_id)

    async def save_entry(self, entry: ExpenditureEntry) -> bool:
        async with self._lock:
            self._entries[entry.entry_id] = entry
        return True

    async def delete_entry(self, entry_id: UUID) -> bool:
        async with self._lock:
            if entry_id not in self._entries:
                raise NotFoundError(f"Entry not found: {entry_id}")
            del self._entries[entry_id]
        return True

    async def list_lines(self, target_year_month: str) -> list[SpendingLedgerLine]:
        return [
            line for (year_month, _), line in sorted(self._lines.items())
            if year_month == target_year_month
        ]

    async def commit_lines(
        self,
        added: list[SpendingLedgerLine],
        updated: list[SpendingLedgerLine],
        saved_entries: Sequence[ExpenditureEntry] = (),
        deleted_entries: Sequence[ExpenditureEntry] = (),
    ) -> list[SpendingLedgerLine]:
        async with self._lock:
            # Check everything before writing anything
            for line in added:
                if _key(line) in self._lines:
                    raise VersionConflictError(
                        f"Line was created concurrently: {line.item_code}@{line.target_year_month}"
                    )
            for line in updated:
                stored = self._lines.get(_key(line))
                if stored is None or stored.version != line.version:
                    raise VersionConflictError(
                        f"Stale line {line.item_code}@{line.target_year_month} "
                        f"[read={line.version}]"
                        f"[stored={stored.version if stored else None}]"
                    )
            for entry in saved_entries:
                self._check_entry_version(entry, allow_new=True)
            for entry in deleted_entries:
                self._check_entry_version(entry, allow_new=False)

            written = []
            for line in [*added, *updated]:
                new_line = line.model_copy(update={"version": line.version + 1})
                self._lines[_key(new_line)] = new_line
                written.append(new_line)
            for entry in saved_entries:
                self._entries[entry.entry_id] = entry.model_copy(
                    update={"version": entry.version + 1}
                )
            for entry in deleted_entries:
                del self._entries[entry.entry_id]

        logger.debug(
            "ledger_lines_committed",
            added=len(added),
            updated=len(updated),
            saved_entries=len(saved_entries),
            deleted_entries=len(deleted_entries),
        )
        return written

    def _check_entry_version(self, entry: ExpenditureEntry, allow_new: bool) -> None:
        stored = self._entries.get(entry.entry_id)
        if stored is None and allow_new and entry.version == 0:
            return
        if stored is None or stored.version != entry.version:
            raise VersionConflictError(
                f"Stale entry {entry.entry_id} "
                f"[read={entry.version}]"
                f"[stored={stored.version if stored else None}]"
            )

    def line(self, item_code: str, target_year_month: str) -> Optional[SpendingLedgerLine]:
        """Synchronous lookup, for inspection."""
        return self._lines.get((target_year_month, item_code))


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log kept in a list."""

    def __init__(self):
        self._events: list[LedgerEvent] = []

    @property
    def events(self) -> list[LedgerEvent]:
        return list(self._events)

    async def append_event(self, event: LedgerEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[LedgerEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[LedgerEvent]:
        return [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[LedgerEvent]:
        return list(reversed(self._events))[:limit]
