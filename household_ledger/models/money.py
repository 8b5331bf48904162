"""
Scaled Money Base Types

Every amount in the ledger is a ``Decimal`` with exactly two fractional
digits. Two families sit on that rule:

- ``Money``: always present.
- ``NullableMoney``: may be absent, and absent is NOT the same as 0.00.

DESIGN DECISION: Instead of one subclass per validation rule, each amount
kind declares a small sign/nullability policy as class attributes
(``allow_absent``, ``allow_negative``, ``allow_positive``) and a single
validator enforces it. Concrete kinds stay thin subclasses so they remain
distinct types.

Validation order is fixed: missing value, then precision, then sign.
The first failing rule decides the error raised. Values are never
rounded or corrected.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from household_ledger.config import get_settings
from household_ledger.exceptions import (
    InvalidPrecisionError,
    LedgerDataError,
    MissingRequiredComponentError,
    MissingValueError,
    NegativeNotAllowedError,
    NegativeResultNotAllowedError,
    PositiveNotAllowedError,
)


SCALE = 2
ZERO_AMOUNT = Decimal("0.00")
_CENT = Decimal("0.01")
_INTEGER = Decimal("1")


# =============================================================================
# HELPERS
# =============================================================================

def _coerce_decimal(value: Any, field: str) -> Decimal:
    """Convert raw input to Decimal without touching its scale."""
    if isinstance(value, Decimal):
        return value
    # bool is an int subclass; floats have no fixed scale
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidPrecisionError(field, value)
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, str):
        try:
            return Decimal(value.strip())
        except InvalidOperation:
            raise InvalidPrecisionError(field, value) from None
    raise InvalidPrecisionError(field, value)


def _scale_of(value: Decimal) -> Optional[int]:
    if not value.is_finite():
        return None
    return -value.as_tuple().exponent


def round_to_integer(value: Decimal) -> int:
    """Round half-up to a whole unit."""
    return int(value.quantize(_INTEGER, rounding=ROUND_HALF_UP))


def format_amount(value: Optional[Decimal]) -> str:
    """
    Render an amount for display: whole units, thousands separators,
    currency mark suffix (e.g. ``1,500円``). Absent renders as "".
    """
    if value is None:
        return ""
    mark = get_settings().ledger.currency_mark
    return f"{round_to_integer(value):,}{mark}"


def parse_formatted_amount(text: str) -> Optional[Decimal]:
    """
    Inverse of ``format_amount``.

    Returns a scale-2 Decimal of the whole-unit value, or None for "".
    """
    if text is None:
        raise MissingRequiredComponentError("formatted amount")
    stripped = text.strip()
    if not stripped:
        return None
    mark = get_settings().ledger.currency_mark
    if mark and stripped.endswith(mark):
        stripped = stripped[: -len(mark)]
    digits = stripped.replace(",", "")
    try:
        whole = int(digits)
    except ValueError:
        raise LedgerDataError(
            "formatted amount",
            text,
            f"Not a formatted amount [value={text}]",
        ) from None
    return to_scaled_decimal(whole)


def to_scaled_decimal(value: Optional[int]) -> Optional[Decimal]:
    """Convert a whole-unit form input to a scale-2 Decimal (None stays None)."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidPrecisionError("form amount", value)
    return Decimal(value).quantize(_CENT)


# =============================================================================
# BASE TYPE
# =============================================================================

class ScaledAmount(BaseModel):
    """
    Common validation and arithmetic plumbing for all amount kinds.

    Subclasses set the policy class attributes and a human-readable
    ``label`` used in error messages.
    """
    model_config = ConfigDict(frozen=True)

    label: ClassVar[str] = "amount"
    allow_absent: ClassVar[bool] = False
    allow_negative: ClassVar[bool] = False
    allow_positive: ClassVar[bool] = True

    value: Optional[Decimal] = None

    @field_validator("value", mode="before")
    @classmethod
    def _validate_value(cls, v: Any) -> Optional[Decimal]:
        """Enforce presence, precision and sign, in that order."""
        if v is None:
            if cls.allow_absent:
                return None
            raise MissingValueError(cls.label)

        value = _coerce_decimal(v, cls.label)
        scale = _scale_of(value)
        if scale != SCALE:
            raise InvalidPrecisionError(cls.label, v, scale)

        if value < 0 and not cls.allow_negative:
            raise NegativeNotAllowedError(cls.label, value)
        if value > 0 and not cls.allow_positive:
            raise PositiveNotAllowedError(cls.label, value)
        return value

    def _rebuild(self, value: Optional[Decimal]) -> "ScaledAmount":
        # Keeps any extra fields (e.g. a category tag) and re-validates.
        return type(self)(**{**dict(self), "value": value})

    def _arithmetic_result(self, result: Optional[Decimal]) -> "ScaledAmount":
        if result is not None:
            if result < 0 and not self.allow_negative:
                raise NegativeResultNotAllowedError(self.label, result)
            if result > 0 and not self.allow_positive:
                raise PositiveNotAllowedError(self.label, result)
        return self._rebuild(result)

    def _require_operand(self, other: Any, operation: str, family: type) -> None:
        if other is None:
            raise MissingRequiredComponentError(f"{operation} operand of '{self.label}'")
        if not isinstance(other, family):
            raise TypeError(
                f"Cannot {operation} {type(other).__name__} to/from {type(self).__name__}"
            )
        self._check_compatible(other)

    def _check_compatible(self, other: "ScaledAmount") -> None:
        """Hook for kinds that only combine with matching kinds."""
        pass


# =============================================================================
# NON-NULLABLE MONEY
# =============================================================================

class Money(ScaledAmount):
    """An amount that is always present."""

    value: Decimal

    @classmethod
    def of(cls, value: Any) -> "Money":
        """Validating factory."""
        return cls(value=value)

    @classmethod
    def zero(cls) -> "Money":
        return cls(value=ZERO_AMOUNT)

    def add(self, other: "Money") -> "Money":
        self._require_operand(other, "add", Money)
        return self._arithmetic_result(self.value + other.value)

    def subtract(self, other: "Money") -> "Money":
        """
        Subtract without clamping. A result outside this kind's sign
        policy raises ``NegativeResultNotAllowedError``.
        """
        self._require_operand(other, "subtract", Money)
        return self._arithmetic_result(self.value - other.value)

    def compare_to(self, other: "Money") -> int:
        if other is None:
            raise MissingRequiredComponentError(f"compare operand of '{self.label}'")
        return (self.value > other.value) - (self.value < other.value)

    def is_zero(self) -> bool:
        return self.value == 0

    def is_positive(self) -> bool:
        return self.value > 0

    def is_negative(self) -> bool:
        return self.value < 0

    def to_plain_integer(self) -> int:
        return round_to_integer(self.value)

    def to_integer_string(self) -> str:
        return str(self.to_plain_integer())

    def to_formatted_string(self) -> str:
        return format_amount(self.value)

    def __str__(self) -> str:
        return str(self.value)


# =============================================================================
# NULLABLE MONEY
# =============================================================================

class NullableMoney(ScaledAmount):
    """
    An amount that may be absent.

    Absent means "not part of this record", which is different from an
    explicit 0.00. Comparisons and integer conversion treat absent as zero;
    display formatting renders it as an empty string.
    """
    allow_absent: ClassVar[bool] = True

    value: Optional[Decimal] = None

    @classmethod
    def of(cls, value: Any, **tags: Any) -> "NullableMoney":
        """Validating factory. ``None`` gives an absent amount."""
        return cls(value=value, **tags)

    @classmethod
    def absent(cls, **tags: Any) -> "NullableMoney":
        return cls(value=None, **tags)

    @classmethod
    def zero(cls, **tags: Any) -> "NullableMoney":
        return cls(value=ZERO_AMOUNT, **tags)

    def is_absent(self) -> bool:
        return self.value is None

    @property
    def null_safe_value(self) -> Decimal:
        return ZERO_AMOUNT if self.value is None else self.value

    def add(self, other: "NullableMoney") -> "NullableMoney":
        """Propagating addition: absent + X = X, absent + absent = absent."""
        self._require_operand(other, "add", NullableMoney)
        if self.value is None:
            return self._arithmetic_result(other.value)
        if other.value is None:
            return self._arithmetic_result(self.value)
        return self._arithmetic_result(self.value + other.value)

    def add_treating_absent_as_zero(self, other: "NullableMoney") -> "NullableMoney":
        """Zero-coalescing addition: the result is never absent."""
        self._require_operand(other, "add", NullableMoney)
        return self._arithmetic_result(self.null_safe_value + other.null_safe_value)

    def subtract(self, other: "NullableMoney") -> "NullableMoney":
        """
        Subtract ``other``; an absent ``other`` counts as zero.

        Subtracting from an absent amount is a data error: there is no
        non-negative result to infer from nothing.
        """
        self._require_operand(other, "subtract", NullableMoney)
        if self.value is None:
            raise NegativeResultNotAllowedError(
                self.label,
                None,
                f"Cannot subtract from an absent '{self.label}' [subtrahend={other}]",
            )
        if other.value is None:
            return self._arithmetic_result(self.value)
        return self._arithmetic_result(self.value - other.value)

    def subtract_treating_absent_as_zero(self, other: "NullableMoney") -> "NullableMoney":
        self._require_operand(other, "subtract", NullableMoney)
        return self._arithmetic_result(self.null_safe_value - other.null_safe_value)

    def compare_to(self, other: "NullableMoney") -> int:
        if other is None:
            raise MissingRequiredComponentError(f"compare operand of '{self.label}'")
        left, right = self.null_safe_value, other.null_safe_value
        return (left > right) - (left < right)

    def is_zero(self) -> bool:
        return self.null_safe_value == 0

    def is_positive(self) -> bool:
        return self.null_safe_value > 0

    def is_negative(self) -> bool:
        return self.null_safe_value < 0

    def to_plain_integer(self) -> int:
        return round_to_integer(self.null_safe_value)

    def to_integer_string(self) -> str:
        return str(self.to_plain_integer())

    def to_formatted_string(self) -> str:
        return format_amount(self.value)

    def __str__(self) -> str:
        return "" if self.value is None else str(self.value)
