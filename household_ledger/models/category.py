"""
Coupon-Adjusted Category Computation

One procedure turns a raw (expenses, tax) pair plus the registration's
coupon into the post-discount amount of a spending category. The named
wrappers below exist only so each coupon category stays its own type.

A coupon larger than the category total does not make the category
negative: the category floors at 0.00 and the unused part of the coupon is
returned as ``residual_coupon_price`` (still negative, never clamped).
"""

from typing import ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field

from household_ledger.exceptions import (
    CrossFieldInconsistencyError,
    MissingRequiredComponentError,
)
from household_ledger.models.amounts import (
    CategoryExpenses,
    CategoryTaxExpenses,
    ExpenditureAmount,
    ShoppingCategory,
    ShoppingCouponPrice,
)


class CategoryAmount(BaseModel):
    """Result of the category computation."""
    model_config = ConfigDict(frozen=True)

    category: ShoppingCategory
    value: ExpenditureAmount = Field(
        ...,
        description="Post-discount amount, floored at zero"
    )
    residual_coupon_price: ShoppingCouponPrice = Field(
        ...,
        description="Coupon left over after flooring (negative) or absent"
    )

    def has_expenditure(self) -> bool:
        return not self.value.is_zero()


def check_category_pair(
    expenses: Optional[CategoryExpenses],
    tax_expenses: Optional[CategoryTaxExpenses],
) -> None:
    """
    Cross-field rules shared by every (expenses, tax) pair:
    both supplied, same category, no tax without an expense.
    """
    if expenses is None:
        raise MissingRequiredComponentError("category expenses")
    if tax_expenses is None:
        raise MissingRequiredComponentError("category tax expenses")
    if tax_expenses.category != expenses.category:
        raise CrossFieldInconsistencyError(
            "category tax expenses",
            tax_expenses.category.value,
            f"Tax belongs to another category "
            f"[expenses={expenses.category.value}][tax={tax_expenses.category.value}]",
        )
    if expenses.is_absent() and not tax_expenses.is_absent():
        raise CrossFieldInconsistencyError(
            "category tax expenses",
            tax_expenses.value,
            f"Tax given without an expense [category={expenses.category.value}]"
            f"[tax={tax_expenses.value}]",
        )


def compute_category_amount(
    expenses: CategoryExpenses,
    tax_expenses: CategoryTaxExpenses,
    coupon_price: ShoppingCouponPrice,
) -> CategoryAmount:
    """
    Apply the coupon to ``expenses + tax`` of one category.

    Raises:
        MissingRequiredComponentError: an argument is None
        CrossFieldInconsistencyError: category mismatch or tax without expense
    """
    check_category_pair(expenses, tax_expenses)
    if coupon_price is None:
        raise MissingRequiredComponentError("shopping coupon price")

    category = expenses.category

    # Category not purchased: nothing absorbs the coupon
    if expenses.is_absent():
        return CategoryAmount(
            category=category,
            value=ExpenditureAmount.zero(),
            residual_coupon_price=coupon_price,
        )

    base = expenses.value + tax_expenses.null_safe_value

    # A 0.00 coupon is the same as no coupon
    if coupon_price.is_absent() or coupon_price.is_zero():
        return CategoryAmount(
            category=category,
            value=ExpenditureAmount.of(base),
            residual_coupon_price=ShoppingCouponPrice.absent(),
        )

    discounted = base + coupon_price.value
    if discounted < 0:
        return CategoryAmount(
            category=category,
            value=ExpenditureAmount.zero(),
            residual_coupon_price=ShoppingCouponPrice.of(discounted),
        )
    return CategoryAmount(
        category=category,
        value=ExpenditureAmount.of(discounted),
        residual_coupon_price=ShoppingCouponPrice.absent(),
    )


# =============================================================================
# NAMED COUPON CATEGORIES
# =============================================================================

class _CouponCategory(CategoryAmount):
    """A ``CategoryAmount`` bound to one fixed category."""

    CATEGORY: ClassVar[ShoppingCategory]

    @classmethod
    def from_components(
        cls,
        expenses: CategoryExpenses,
        tax_expenses: CategoryTaxExpenses,
        coupon_price: ShoppingCouponPrice,
    ):
        if expenses is not None and expenses.category != cls.CATEGORY:
            raise CrossFieldInconsistencyError(
                "category expenses",
                expenses.category.value,
                f"{cls.__name__} only accepts '{cls.CATEGORY.value}' expenses "
                f"[given={expenses.category.value}]",
            )
        result = compute_category_amount(expenses, tax_expenses, coupon_price)
        return cls(
            category=result.category,
            value=result.value,
            residual_coupon_price=result.residual_coupon_price,
        )


class ShoppingConsumerGoods(_CouponCategory):
    CATEGORY: ClassVar[ShoppingCategory] = ShoppingCategory.CONSUMER_GOODS


class ShoppingDineOut(_CouponCategory):
    CATEGORY: ClassVar[ShoppingCategory] = ShoppingCategory.DINE_OUT


class ShoppingAlcohol(_CouponCategory):
    CATEGORY: ClassVar[ShoppingCategory] = ShoppingCategory.ALCOHOL


class ShoppingWork(_CouponCategory):
    CATEGORY: ClassVar[ShoppingCategory] = ShoppingCategory.WORK


COUPON_CATEGORY_TYPES: dict[ShoppingCategory, type[_CouponCategory]] = {
    ShoppingCategory.CONSUMER_GOODS: ShoppingConsumerGoods,
    ShoppingCategory.DINE_OUT: ShoppingDineOut,
    ShoppingCategory.ALCOHOL: ShoppingAlcohol,
    ShoppingCategory.WORK: ShoppingWork,
}
