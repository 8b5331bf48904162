"""
Concrete Amount Kinds

Thin subclasses of ``Money`` / ``NullableMoney``. Each one only names
itself and states its sign policy; validation and arithmetic live in
``household_ledger.models.money``.
"""

from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar

from household_ledger.exceptions import (
    CrossFieldInconsistencyError,
    MissingRequiredComponentError,
    NegativeResultNotAllowedError,
)
from household_ledger.models.money import (
    ZERO_AMOUNT,
    Money,
    NullableMoney,
    ScaledAmount,
    format_amount,
)


# =============================================================================
# ENUMS
# =============================================================================

class ShoppingCategory(str, Enum):
    """
    Spending categories a shopping registration splits into.

    Only the coupon categories absorb a shopping coupon.
    """
    FOOD = "food"
    FOOD_WASTE_B = "food_waste_b"
    ALCOHOL = "alcohol"                  # food C
    DINE_OUT = "dine_out"
    CONSUMER_GOODS = "consumer_goods"
    CLOTHES = "clothes"
    WORK = "work"
    HOUSE_EQUIPMENT = "house_equipment"


COUPON_CATEGORIES = frozenset({
    ShoppingCategory.CONSUMER_GOODS,
    ShoppingCategory.DINE_OUT,
    ShoppingCategory.ALCOHOL,
    ShoppingCategory.WORK,
})


# =============================================================================
# MONEY KINDS (always present)
# =============================================================================

class ExpenditureAmount(Money):
    """Amount spent. Never negative."""
    label: ClassVar[str] = "expenditure amount"

    def apply_coupon(self, coupon: "CouponAmount") -> "ExpenditureAmount":
        """Deduct a coupon; the discounted amount must stay >= 0."""
        if coupon is None:
            raise MissingRequiredComponentError("coupon amount")
        # coupon.value is stored negative, so adding discounts
        result = self.value + coupon.value
        if result < 0:
            raise NegativeResultNotAllowedError(
                self.label,
                result,
                f"Amount after coupon would be negative "
                f"[expenditure={self.to_formatted_string()}]"
                f"[coupon={coupon.to_formatted_string()}]",
            )
        return ExpenditureAmount.of(result)


class IncomeAmount(Money):
    """Amount received. Never negative."""
    label: ClassVar[str] = "income amount"


class RegularIncomeAmount(Money):
    """Regular (non-withdrawal) income. Never negative."""
    label: ClassVar[str] = "regular income amount"


class BalanceAmount(Money):
    """Income minus expenditure; may be negative."""
    label: ClassVar[str] = "balance amount"
    allow_negative: ClassVar[bool] = True

    @classmethod
    def calculate(
        cls,
        income: IncomeAmount,
        expenditure: ExpenditureAmount,
    ) -> "BalanceAmount":
        if income is None:
            raise MissingRequiredComponentError("income amount")
        if expenditure is None:
            raise MissingRequiredComponentError("expenditure amount")
        return cls.of(income.value - expenditure.value)

    def is_deficit(self) -> bool:
        return self.is_negative()

    def is_surplus(self) -> bool:
        return self.is_positive()


class CouponAmount(Money):
    """
    A discount.

    Built from the discount size (>= 0) but stored as its negative, so
    adding it to an expense performs the discount. Display always shows the
    positive size.
    """
    label: ClassVar[str] = "coupon amount"
    allow_negative: ClassVar[bool] = True
    allow_positive: ClassVar[bool] = False

    @classmethod
    def of(cls, discount: Any) -> "CouponAmount":
        """Create from the (non-negative) discount size."""
        size = DiscountSize(value=discount).value
        return cls(value=ZERO_AMOUNT - size)

    @property
    def discount_amount(self) -> Decimal:
        return abs(self.value)

    def has_discount(self) -> bool:
        return not self.is_zero()

    def to_formatted_string(self) -> str:
        return format_amount(self.discount_amount)


class DiscountSize(Money):
    """Input form of a coupon: the positive size of the discount."""
    label: ClassVar[str] = "coupon amount"


class ShoppingTotalAmount(Money):
    label: ClassVar[str] = "shopping total amount"


# =============================================================================
# NULLABLE KINDS
# =============================================================================

class _CategoryTagged(NullableMoney):
    """Nullable amount that belongs to one shopping category."""

    category: ShoppingCategory

    def _check_compatible(self, other: ScaledAmount) -> None:
        other_category = getattr(other, "category", None)
        if other_category is not None and other_category != self.category:
            raise CrossFieldInconsistencyError(
                self.label,
                other,
                f"Cannot combine '{self.label}' of different categories "
                f"[{self.category.value}][{other_category.value}]",
            )


class CategoryExpenses(_CategoryTagged):
    """Pre-tax spend in one category. Absent = category not purchased."""
    label: ClassVar[str] = "category expenses"


class CategoryTaxExpenses(_CategoryTagged):
    """Tax portion of one category's spend."""
    label: ClassVar[str] = "category tax expenses"


class CategoryTotalAmount(NullableMoney):
    """Expenses plus tax of one category."""
    label: ClassVar[str] = "category total amount"


class ShoppingCouponPrice(NullableMoney):
    """
    Coupon price of a shopping registration, stored as a negative value.

    Also used for the residual coupon a category could not absorb.
    """
    label: ClassVar[str] = "shopping coupon price"
    allow_negative: ClassVar[bool] = True
    allow_positive: ClassVar[bool] = False

    @classmethod
    def from_coupon(cls, coupon: CouponAmount) -> "ShoppingCouponPrice":
        if coupon is None:
            raise MissingRequiredComponentError("coupon amount")
        return cls.of(coupon.value)

    @classmethod
    def from_discount(cls, discount: Any) -> "ShoppingCouponPrice":
        """Create from the positive discount size (``None`` = no coupon)."""
        if discount is None:
            return cls.absent()
        return cls.from_coupon(CouponAmount.of(discount))

    @property
    def discount_amount(self) -> Decimal:
        return abs(self.null_safe_value)

    def to_formatted_string(self) -> str:
        if self.value is None:
            return ""
        return format_amount(self.discount_amount)


class TotalPurchasePrice(NullableMoney):
    label: ClassVar[str] = "total purchase price"


class TaxTotalPurchasePrice(NullableMoney):
    label: ClassVar[str] = "tax total purchase price"
