"""Tests for the coupon-adjusted category computation."""

import pytest
from decimal import Decimal

from household_ledger.exceptions import (
    CrossFieldInconsistencyError,
    MissingRequiredComponentError,
)
from household_ledger.models.amounts import (
    CategoryExpenses,
    CategoryTaxExpenses,
    ShoppingCategory,
    ShoppingCouponPrice,
)
from household_ledger.models.category import (
    ShoppingAlcohol,
    ShoppingConsumerGoods,
    ShoppingDineOut,
    ShoppingWork,
    compute_category_amount,
)


GOODS = ShoppingCategory.CONSUMER_GOODS


def expenses(raw, category=GOODS):
    return CategoryExpenses.of(raw, category=category)


def tax(raw, category=GOODS):
    return CategoryTaxExpenses.of(raw, category=category)


class TestComputeCategoryAmount:
    """The four canonical coupon cases plus the absent-expense case."""

    def test_no_discount(self):
        result = compute_category_amount(
            expenses("1000.00"), tax("100.00"), ShoppingCouponPrice.absent()
        )
        assert result.value.value == Decimal("1100.00")
        assert result.residual_coupon_price.is_absent()

    def test_partial_discount(self):
        result = compute_category_amount(
            expenses("1000.00"), tax("100.00"), ShoppingCouponPrice.of("-500.00")
        )
        assert result.value.value == Decimal("600.00")
        assert result.residual_coupon_price.is_absent()

    def test_discount_exceeds_total(self):
        """The category floors at zero and the rest of the coupon is carried."""
        result = compute_category_amount(
            expenses("300.00"), tax("0.00"), ShoppingCouponPrice.of("-500.00")
        )
        assert result.value.value == Decimal("0.00")
        assert result.residual_coupon_price.value == Decimal("-200.00")
        assert not result.has_expenditure()

    def test_exact_cancellation(self):
        result = compute_category_amount(
            expenses("500.00"), tax("0.00"), ShoppingCouponPrice.of("-500.00")
        )
        assert result.value.value == Decimal("0.00")
        assert result.residual_coupon_price.is_absent()

    def test_zero_coupon_same_as_absent(self):
        result = compute_category_amount(
            expenses("500.00"), tax("50.00"), ShoppingCouponPrice.zero()
        )
        assert result.value.value == Decimal("550.00")
        assert result.residual_coupon_price.is_absent()

    def test_absent_tax_counts_as_zero(self):
        result = compute_category_amount(
            expenses("500.00"), tax(None), ShoppingCouponPrice.absent()
        )
        assert result.value.value == Decimal("500.00")

    def test_absent_expenses_pass_coupon_through(self):
        coupon = ShoppingCouponPrice.of("-300.00")
        result = compute_category_amount(expenses(None), tax(None), coupon)
        assert result.value.value == Decimal("0.00")
        assert result.residual_coupon_price == coupon

    def test_tax_without_expense(self):
        with pytest.raises(CrossFieldInconsistencyError):
            compute_category_amount(expenses(None), tax("10.00"), ShoppingCouponPrice.absent())

    def test_tax_of_other_category(self):
        with pytest.raises(CrossFieldInconsistencyError):
            compute_category_amount(
                expenses("10.00"),
                tax("1.00", ShoppingCategory.FOOD),
                ShoppingCouponPrice.absent(),
            )

    @pytest.mark.parametrize("missing", ["expenses", "tax", "coupon"])
    def test_missing_component(self, missing):
        args = {
            "expenses": expenses("10.00"),
            "tax_expenses": tax("1.00"),
            "coupon_price": ShoppingCouponPrice.absent(),
        }
        key = {"expenses": "expenses", "tax": "tax_expenses", "coupon": "coupon_price"}[missing]
        args[key] = None
        with pytest.raises(MissingRequiredComponentError):
            compute_category_amount(**args)


class TestNamedCategories:
    """Each coupon category is its own type over the same computation."""

    @pytest.mark.parametrize("wrapper,category", [
        (ShoppingConsumerGoods, ShoppingCategory.CONSUMER_GOODS),
        (ShoppingDineOut, ShoppingCategory.DINE_OUT),
        (ShoppingAlcohol, ShoppingCategory.ALCOHOL),
        (ShoppingWork, ShoppingCategory.WORK),
    ])
    def test_from_components(self, wrapper, category):
        result = wrapper.from_components(
            expenses("1000.00", category),
            tax("100.00", category),
            ShoppingCouponPrice.of("-500.00"),
        )
        assert isinstance(result, wrapper)
        assert result.category == category
        assert result.value.value == Decimal("600.00")
        assert result.has_expenditure()

    def test_rejects_other_category(self):
        with pytest.raises(CrossFieldInconsistencyError):
            ShoppingDineOut.from_components(
                expenses("10.00", ShoppingCategory.WORK),
                tax(None, ShoppingCategory.WORK),
                ShoppingCouponPrice.absent(),
            )
