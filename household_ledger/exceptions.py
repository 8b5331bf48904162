"""
Ledger Data Errors

Every error raised by the money engine signals corrupted or inconsistent
data. None of them is retried or corrected inside the engine: the caller
either rejects the originating input (registration) or aborts the
enclosing edit (update/delete).

DESIGN DECISION: These exceptions derive from ``Exception``, not
``ValueError``. Pydantic wraps ``ValueError`` raised in validators into a
``ValidationError``; other exceptions propagate unchanged, so callers see
the real error kind.
"""

from typing import Any, Optional


class LedgerDataError(Exception):
    """Base exception for data-integrity failures in the money engine."""

    def __init__(self, field: str, value: Any = None, message: Optional[str] = None):
        self.field = field
        self.value = value
        super().__init__(message or f"Invalid value for '{field}' [value={value}]")


class MissingValueError(LedgerDataError):
    """A non-nullable amount was given no value."""

    def __init__(self, field: str):
        super().__init__(
            field,
            None,
            f"'{field}' requires a value but none was given [value=None]",
        )


class MissingRequiredComponentError(LedgerDataError):
    """A required object (not just its value) was not supplied at all."""

    def __init__(self, field: str):
        super().__init__(
            field,
            None,
            f"'{field}' was not supplied",
        )


class InvalidPrecisionError(LedgerDataError):
    """A decimal does not carry exactly two fractional digits."""

    def __init__(self, field: str, value: Any, scale: Optional[int] = None):
        self.scale = scale
        super().__init__(
            field,
            value,
            f"'{field}' must have exactly 2 fractional digits "
            f"[value={value}][scale={scale}]",
        )


class SignPolicyError(LedgerDataError):
    """A value violates the sign policy of its amount kind."""
    pass


class NegativeNotAllowedError(SignPolicyError):
    """A negative value was given to a non-negative amount kind."""

    def __init__(self, field: str, value: Any):
        super().__init__(
            field,
            value,
            f"'{field}' must not be negative [value={value}]",
        )


class PositiveNotAllowedError(SignPolicyError):
    """A positive value was given to a discount kind stored as negative."""

    def __init__(self, field: str, value: Any):
        super().__init__(
            field,
            value,
            f"'{field}' must not be positive [value={value}]",
        )


class CrossFieldInconsistencyError(LedgerDataError):
    """Two fields are individually valid but contradict each other."""
    pass


class NegativeResultNotAllowedError(LedgerDataError):
    """An arithmetic operation would drive a non-negative amount below zero."""

    def __init__(self, field: str, value: Any, message: Optional[str] = None):
        super().__init__(
            field,
            value,
            message or f"'{field}' would become negative [result={value}]",
        )


class AggregateNotFoundError(LedgerDataError):
    """No aggregate ledger line exists for the item being patched."""

    def __init__(self, item_code: str):
        super().__init__(
            "item_code",
            item_code,
            f"No aggregate ledger line to patch [item_code={item_code}]",
        )
