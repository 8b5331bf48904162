"""
Ledger Entries and Monthly Aggregate Lines

``ExpenditureEntry`` is one registered transaction's contribution to a
spending item. ``SpendingLedgerLine`` is the stored monthly total of one
item, patched incrementally as entries come and go.
"""

from datetime import date
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from household_ledger.models.amounts import ExpenditureAmount, ShoppingCategory
from household_ledger.models.money import Money


def _check_year_month(v: str) -> str:
    if len(v) != 6 or not v.isdigit():
        raise ValueError(f"target_year_month must be YYYYMM, got {v!r}")
    month = int(v[4:])
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range in {v!r}")
    return v


def year_month_of(d: date) -> str:
    return f"{d.year:04d}{d.month:02d}"


def _replace(model: BaseModel, **changes: Any):
    """Copy with changes, re-running field validation."""
    return type(model).model_validate({**dict(model), **changes})


# =============================================================================
# ENTRY
# =============================================================================

class ExpenditureEntry(BaseModel):
    """One registered transaction's amount for one spending item."""
    model_config = ConfigDict(frozen=True)

    entry_id: UUID = Field(default_factory=uuid4)
    item_code: str = Field(..., min_length=1)
    target_year_month: str = Field(
        ...,
        description="Month the entry is booked in (YYYYMM)"
    )
    amount: ExpenditureAmount
    payment_date: Optional[date] = None
    category: Optional[ShoppingCategory] = Field(
        default=None,
        description="Shopping category when the entry came from a shopping registration"
    )
    version: int = Field(
        default=0,
        ge=0,
        description="Optimistic-lock counter of the stored entry (0 = never stored)"
    )

    @field_validator('target_year_month')
    @classmethod
    def validate_year_month(cls, v: str) -> str:
        return _check_year_month(v)

    def with_amount(self, amount: ExpenditureAmount) -> "ExpenditureEntry":
        return _replace(self, amount=amount)


# =============================================================================
# AGGREGATE LINE
# =============================================================================

class SpendingLedgerLine(BaseModel):
    """
    Monthly total of one spending item.

    ``version`` is the optimistic-lock counter of the stored row; storage
    bumps it on every successful write.
    """
    model_config = ConfigDict(frozen=True)

    item_code: str = Field(..., min_length=1)
    parent_item_code: Optional[str] = None
    target_year_month: str
    amount: ExpenditureAmount
    latest_payment_date: Optional[date] = None
    version: int = Field(default=0, ge=0)

    @field_validator('target_year_month')
    @classmethod
    def validate_year_month(cls, v: str) -> str:
        return _check_year_month(v)

    @classmethod
    def empty(
        cls,
        item_code: str,
        target_year_month: str,
        parent_item_code: Optional[str] = None,
    ) -> "SpendingLedgerLine":
        return cls(
            item_code=item_code,
            parent_item_code=parent_item_code,
            target_year_month=target_year_month,
            amount=ExpenditureAmount.zero(),
        )

    def add(self, amount: Money) -> "SpendingLedgerLine":
        return _replace(self, amount=self.amount.add(amount))

    def subtract(self, amount: Money) -> "SpendingLedgerLine":
        """Raises NegativeResultNotAllowedError if the total would go below zero."""
        return _replace(self, amount=self.amount.subtract(amount))

    def with_payment_date(self, payment_date: Optional[date]) -> "SpendingLedgerLine":
        """Keep whichever payment date is later."""
        if payment_date is None:
            return self
        if self.latest_payment_date is not None and self.latest_payment_date >= payment_date:
            return self
        return _replace(self, latest_payment_date=payment_date)

    def is_root(self) -> bool:
        return self.parent_item_code is None
