"""
Before/After Delta Engine

When a registered transaction is edited, the monthly aggregate line is
patched by the signed difference instead of being re-summed from every
transaction of the period.
"""

from enum import Enum
from typing import Generic, Protocol, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from household_ledger.exceptions import MissingRequiredComponentError
from household_ledger.models.amounts import ExpenditureAmount
from household_ledger.models.money import Money


class DeltaOutcome(str, Enum):
    UNCHANGED = "unchanged"
    INCREASE = "increase"
    DECREASE = "decrease"


class LedgerLine(Protocol):
    """Anything that can absorb a delta and re-validate itself."""

    def add(self, amount: Money) -> "LedgerLine":
        ...

    def subtract(self, amount: Money) -> "LedgerLine":
        ...


LineT = TypeVar("LineT")


class DeltaResult(BaseModel, Generic[LineT]):
    """Outcome of one edit. Created once, consumed immediately."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    outcome: DeltaOutcome
    magnitude: ExpenditureAmount = Field(
        ...,
        description="Size of the change, never negative"
    )
    patched_ledger_line: LineT

    @property
    def is_updated(self) -> bool:
        return self.outcome != DeltaOutcome.UNCHANGED


def compute_delta(before: Money, after: Money, ledger_line: LineT) -> DeltaResult[LineT]:
    """
    Patch ``ledger_line`` by the difference between ``before`` and ``after``.

    The ledger line does its own validation: a subtraction that would drive
    it negative raises ``NegativeResultNotAllowedError`` and the enclosing
    edit must be aborted.
    """
    if before is None:
        raise MissingRequiredComponentError("amount before edit")
    if after is None:
        raise MissingRequiredComponentError("amount after edit")
    if ledger_line is None:
        raise MissingRequiredComponentError("ledger line")

    direction = before.compare_to(after)
    if direction == 0:
        return DeltaResult(
            outcome=DeltaOutcome.UNCHANGED,
            magnitude=ExpenditureAmount.zero(),
            patched_ledger_line=ledger_line,
        )

    magnitude = ExpenditureAmount.of(abs(before.value - after.value))
    if direction > 0:
        return DeltaResult(
            outcome=DeltaOutcome.DECREASE,
            magnitude=magnitude,
            patched_ledger_line=ledger_line.subtract(magnitude),
        )
    return DeltaResult(
        outcome=DeltaOutcome.INCREASE,
        magnitude=magnitude,
        patched_ledger_line=ledger_line.add(magnitude),
    )
