"""Tests for the concrete amount kinds."""

import pytest
from decimal import Decimal

from household_ledger.exceptions import (
    CrossFieldInconsistencyError,
    InvalidPrecisionError,
    MissingRequiredComponentError,
    NegativeNotAllowedError,
    NegativeResultNotAllowedError,
    PositiveNotAllowedError,
)
from household_ledger.models.amounts import (
    COUPON_CATEGORIES,
    BalanceAmount,
    CategoryExpenses,
    CategoryTaxExpenses,
    CouponAmount,
    ExpenditureAmount,
    IncomeAmount,
    RegularIncomeAmount,
    ShoppingCategory,
    ShoppingCouponPrice,
    ShoppingTotalAmount,
)


class TestNonNegativeKinds:
    """Every non-balance money kind refuses negative values."""

    @pytest.mark.parametrize("kind", [
        ExpenditureAmount,
        IncomeAmount,
        RegularIncomeAmount,
        ShoppingTotalAmount,
    ])
    def test_rejects_negative(self, kind):
        with pytest.raises(NegativeNotAllowedError):
            kind.of("-1.00")

    @pytest.mark.parametrize("kind", [
        ExpenditureAmount,
        IncomeAmount,
        RegularIncomeAmount,
        ShoppingTotalAmount,
    ])
    def test_never_negative(self, kind):
        assert not kind.of("0.00").is_negative()
        assert not kind.of("10.00").is_negative()


class TestBalanceAmount:
    """Balance is the only money kind allowed below zero."""

    def test_deficit(self):
        balance = BalanceAmount.calculate(
            IncomeAmount.of("1000.00"),
            ExpenditureAmount.of("1500.00"),
        )
        assert balance.value == Decimal("-500.00")
        assert balance.is_deficit()
        assert not balance.is_surplus()

    def test_surplus(self):
        balance = BalanceAmount.calculate(
            IncomeAmount.of("2000.00"),
            ExpenditureAmount.of("1500.00"),
        )
        assert balance.is_surplus()

    def test_missing_component(self):
        with pytest.raises(MissingRequiredComponentError):
            BalanceAmount.calculate(None, ExpenditureAmount.zero())


class TestCouponAmount:
    """Coupons are entered as a size but stored negative."""

    def test_stored_negative(self):
        coupon = CouponAmount.of("500.00")
        assert coupon.value == Decimal("-500.00")
        assert coupon.discount_amount == Decimal("500.00")
        assert coupon.has_discount()

    def test_zero_coupon(self):
        coupon = CouponAmount.of("0.00")
        assert coupon.value == Decimal("0.00")
        assert not coupon.has_discount()
        assert not coupon.value.is_signed()

    def test_negative_size_rejected(self):
        with pytest.raises(NegativeNotAllowedError):
            CouponAmount.of("-500.00")

    def test_positive_stored_value_rejected(self):
        with pytest.raises(PositiveNotAllowedError):
            CouponAmount(value=Decimal("1.00"))

    def test_formatted_as_size(self):
        assert CouponAmount.of("1500.00").to_formatted_string() == "1,500円"

    def test_apply_coupon(self):
        discounted = ExpenditureAmount.of("1000.00").apply_coupon(CouponAmount.of("300.00"))
        assert discounted.value == Decimal("700.00")

    def test_apply_coupon_larger_than_expense(self):
        with pytest.raises(NegativeResultNotAllowedError):
            ExpenditureAmount.of("100.00").apply_coupon(CouponAmount.of("300.00"))

    def test_coupons_combine(self):
        total = CouponAmount.of("100.00").add(CouponAmount.of("50.00"))
        assert total.discount_amount == Decimal("150.00")


class TestShoppingCouponPrice:
    def test_from_coupon(self):
        price = ShoppingCouponPrice.from_coupon(CouponAmount.of("200.00"))
        assert price.value == Decimal("-200.00")
        assert price.discount_amount == Decimal("200.00")
        assert price.to_formatted_string() == "200円"

    def test_from_discount(self):
        assert ShoppingCouponPrice.from_discount(None).is_absent()
        assert ShoppingCouponPrice.from_discount("80.00").value == Decimal("-80.00")

    @pytest.mark.parametrize("raw", ["NaN", "Infinity", "80", "80.0"])
    def test_from_discount_rejects_bad_precision(self, raw):
        with pytest.raises(InvalidPrecisionError):
            ShoppingCouponPrice.from_discount(raw)

    def test_from_discount_rejects_negative_size(self):
        with pytest.raises(NegativeNotAllowedError):
            ShoppingCouponPrice.from_discount("-1.00")

    def test_positive_rejected(self):
        with pytest.raises(PositiveNotAllowedError):
            ShoppingCouponPrice.of("200.00")


class TestCategoryTaggedKinds:
    """Expense kinds carry their category and refuse to mix."""

    def test_add_same_category(self):
        total = CategoryExpenses.of("100.00", category=ShoppingCategory.FOOD).add(
            CategoryExpenses.of("20.00", category=ShoppingCategory.FOOD)
        )
        assert total.value == Decimal("120.00")
        assert total.category == ShoppingCategory.FOOD

    def test_add_different_categories(self):
        with pytest.raises(CrossFieldInconsistencyError):
            CategoryTaxExpenses.of("10.00", category=ShoppingCategory.FOOD).add(
                CategoryTaxExpenses.of("1.00", category=ShoppingCategory.ALCOHOL)
            )

    def test_absent_keeps_category(self):
        absent = CategoryExpenses.absent(category=ShoppingCategory.WORK)
        assert absent.is_absent()
        assert absent.category == ShoppingCategory.WORK


class TestShoppingCategories:
    def test_all_categories_exist(self):
        expected = {
            "food", "food_waste_b", "alcohol", "dine_out",
            "consumer_goods", "clothes", "work", "house_equipment",
        }
        assert {c.value for c in ShoppingCategory} == expected

    def test_coupon_categories(self):
        assert COUPON_CATEGORIES == {
            ShoppingCategory.CONSUMER_GOODS,
            ShoppingCategory.DINE_OUT,
            ShoppingCategory.ALCOHOL,
            ShoppingCategory.WORK,
        }
