"""Aggregate ledger bookkeeping package."""

from household_ledger.aggregation.holder import (
    AggregateLedgerHolder,
    ItemHierarchy,
    LineStatus,
)

__all__ = ["AggregateLedgerHolder", "ItemHierarchy", "LineStatus"]
