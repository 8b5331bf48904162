"""
Tests for the scaled money bases

Covers the two-digit precision rule, sign policies, absence handling and
display formatting shared by every amount kind.
"""

import pytest
from decimal import Decimal

from pydantic import ValidationError

from household_ledger.exceptions import (
    InvalidPrecisionError,
    LedgerDataError,
    MissingRequiredComponentError,
    MissingValueError,
    NegativeNotAllowedError,
    NegativeResultNotAllowedError,
)
from household_ledger.models.amounts import (
    ExpenditureAmount,
    IncomeAmount,
    TotalPurchasePrice,
)
from household_ledger.models.money import (
    format_amount,
    parse_formatted_amount,
    round_to_integer,
    to_scaled_decimal,
)


class TestPrecision:
    """Only two fractional digits are ever accepted."""

    def test_accepts_two_digit_decimal(self):
        amount = ExpenditureAmount.of(Decimal("1000.00"))
        assert amount.value == Decimal("1000.00")
        assert amount.value.as_tuple().exponent == -2

    def test_accepts_two_digit_string(self):
        """Strings are converted without touching their scale."""
        assert ExpenditureAmount.of("12.30").value == Decimal("12.30")

    @pytest.mark.parametrize("raw", [
        Decimal("1000"),
        Decimal("1000.0"),
        Decimal("1000.000"),
        "1.5",
        1000,
    ])
    def test_rejects_other_scales(self, raw):
        with pytest.raises(InvalidPrecisionError):
            ExpenditureAmount.of(raw)

    def test_rejects_float(self):
        """Binary floats have no reliable scale."""
        with pytest.raises(InvalidPrecisionError):
            ExpenditureAmount.of(10.25)

    def test_rejects_non_finite(self):
        with pytest.raises(InvalidPrecisionError):
            ExpenditureAmount.of(Decimal("NaN"))

    def test_precision_checked_before_sign(self):
        """A negative value with the wrong scale reports the scale."""
        with pytest.raises(InvalidPrecisionError):
            ExpenditureAmount.of("-1.5")

    def test_error_names_field_and_value(self):
        with pytest.raises(InvalidPrecisionError) as exc_info:
            ExpenditureAmount.of("1.5")
        assert exc_info.value.field == "expenditure amount"
        assert "1.5" in str(exc_info.value)

    def test_errors_are_not_wrapped_by_pydantic(self):
        """Domain errors propagate as themselves, not as ValidationError."""
        with pytest.raises(LedgerDataError) as exc_info:
            ExpenditureAmount.of("1.5")
        assert not isinstance(exc_info.value, ValidationError)


class TestMoney:
    """Tests for always-present amounts."""

    def test_missing_value(self):
        with pytest.raises(MissingValueError):
            ExpenditureAmount.of(None)

    def test_negative_rejected(self):
        with pytest.raises(NegativeNotAllowedError):
            ExpenditureAmount.of("-0.01")

    def test_zero_factory(self):
        assert ExpenditureAmount.zero().is_zero()
        assert ExpenditureAmount.zero().value == Decimal("0.00")

    def test_add_returns_receiver_kind(self):
        total = ExpenditureAmount.of("100.00").add(IncomeAmount.of("50.50"))
        assert isinstance(total, ExpenditureAmount)
        assert total.value == Decimal("150.50")

    def test_subtract(self):
        result = ExpenditureAmount.of("100.00").subtract(ExpenditureAmount.of("40.00"))
        assert result.value == Decimal("60.00")

    def test_subtract_below_zero_is_not_clamped(self):
        with pytest.raises(NegativeResultNotAllowedError):
            ExpenditureAmount.of("10.00").subtract(ExpenditureAmount.of("10.01"))

    def test_add_none_operand(self):
        with pytest.raises(MissingRequiredComponentError):
            ExpenditureAmount.of("10.00").add(None)

    def test_add_nullable_operand_is_type_error(self):
        with pytest.raises(TypeError):
            ExpenditureAmount.of("10.00").add(TotalPurchasePrice.of("1.00"))

    def test_compare_to(self):
        small = ExpenditureAmount.of("1.00")
        large = ExpenditureAmount.of("2.00")
        assert small.compare_to(large) == -1
        assert large.compare_to(small) == 1
        assert small.compare_to(ExpenditureAmount.of("1.00")) == 0

    def test_immutable(self):
        amount = ExpenditureAmount.of("1.00")
        with pytest.raises(ValidationError):
            amount.value = Decimal("2.00")

    def test_integer_conversions_round_half_up(self):
        amount = ExpenditureAmount.of("1234.50")
        assert amount.to_plain_integer() == 1235
        assert amount.to_integer_string() == "1235"
        assert ExpenditureAmount.of("1234.49").to_plain_integer() == 1234

    def test_str_is_plain_value(self):
        assert str(ExpenditureAmount.of("1500.00")) == "1500.00"


class TestNullableMoney:
    """Absent is its own state, distinct from 0.00."""

    def test_absent_is_not_zero_value(self):
        absent = TotalPurchasePrice.absent()
        assert absent.is_absent()
        assert absent.value is None
        assert absent != TotalPurchasePrice.zero()

    def test_absent_plus_absent_is_absent(self):
        result = TotalPurchasePrice.absent().add(TotalPurchasePrice.absent())
        assert result.is_absent()

    def test_absent_plus_value_is_value(self):
        value = TotalPurchasePrice.of("250.00")
        assert TotalPurchasePrice.absent().add(value) == value
        assert value.add(TotalPurchasePrice.absent()) == value

    def test_add_treating_absent_as_zero(self):
        result = TotalPurchasePrice.absent().add_treating_absent_as_zero(
            TotalPurchasePrice.absent()
        )
        assert not result.is_absent()
        assert result.value == Decimal("0.00")

    def test_subtract_from_absent(self):
        with pytest.raises(NegativeResultNotAllowedError):
            TotalPurchasePrice.absent().subtract(TotalPurchasePrice.of("1.00"))

    def test_subtract_absent_counts_as_zero(self):
        value = TotalPurchasePrice.of("5.00")
        assert value.subtract(TotalPurchasePrice.absent()) == value

    def test_subtract_treating_absent_as_zero(self):
        result = TotalPurchasePrice.of("5.00").subtract_treating_absent_as_zero(
            TotalPurchasePrice.absent()
        )
        assert result.value == Decimal("5.00")
        with pytest.raises(NegativeResultNotAllowedError):
            TotalPurchasePrice.absent().subtract_treating_absent_as_zero(
                TotalPurchasePrice.of("0.01")
            )

    def test_present_value_still_validated(self):
        with pytest.raises(InvalidPrecisionError):
            TotalPurchasePrice.of("3.1")
        with pytest.raises(NegativeNotAllowedError):
            TotalPurchasePrice.of("-3.10")

    def test_null_safe_comparisons(self):
        absent = TotalPurchasePrice.absent()
        assert absent.compare_to(TotalPurchasePrice.zero()) == 0
        assert absent.compare_to(TotalPurchasePrice.of("1.00")) == -1
        assert absent.is_zero()
        assert absent.to_plain_integer() == 0

    def test_absent_renders_empty(self):
        absent = TotalPurchasePrice.absent()
        assert absent.to_formatted_string() == ""
        assert str(absent) == ""


class TestFormatting:
    """Display formatting and its inverse."""

    def test_format_with_grouping_and_mark(self):
        assert ExpenditureAmount.of("1500.00").to_formatted_string() == "1,500円"
        assert ExpenditureAmount.of("1234567.00").to_formatted_string() == "1,234,567円"

    def test_format_rounds_half_up(self):
        assert format_amount(Decimal("999.50")) == "1,000円"

    def test_format_uses_configured_mark(self, monkeypatch):
        from household_ledger.config import get_settings
        monkeypatch.setenv("LEDGER_CURRENCY_MARK", " JPY")
        get_settings.cache_clear()
        assert format_amount(Decimal("1500.00")) == "1,500 JPY"

    def test_parse(self):
        assert parse_formatted_amount("1,500円") == Decimal("1500.00")
        assert parse_formatted_amount("") is None

    def test_parse_rejects_garbage(self):
        with pytest.raises(LedgerDataError):
            parse_formatted_amount("abc円")

    def test_parse_none(self):
        with pytest.raises(MissingRequiredComponentError):
            parse_formatted_amount(None)

    @pytest.mark.parametrize("raw", ["0.00", "0.49", "0.50", "1499.99", "1234567.50"])
    def test_parse_of_format_is_rounded_value(self, raw):
        value = Decimal(raw)
        parsed = parse_formatted_amount(format_amount(value))
        assert parsed == Decimal(round_to_integer(value))
        assert parsed.as_tuple().exponent == -2

    def test_to_scaled_decimal(self):
        assert to_scaled_decimal(1500) == Decimal("1500.00")
        assert to_scaled_decimal(1500).as_tuple().exponent == -2
        assert to_scaled_decimal(None) is None
