"""
Shopping Registration

One shopping trip split into spending categories, each with an optional
pre-tax expense and tax, plus one coupon for the whole registration.
"""

from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from household_ledger.exceptions import (
    CrossFieldInconsistencyError,
    MissingRequiredComponentError,
)
from household_ledger.models.aggregate import AggregateCategoryItem
from household_ledger.models.amounts import (
    COUPON_CATEGORIES,
    CategoryExpenses,
    CategoryTaxExpenses,
    ShoppingCategory,
    ShoppingCouponPrice,
    ShoppingTotalAmount,
    TaxTotalPurchasePrice,
    TotalPurchasePrice,
)
from household_ledger.models.category import (
    COUPON_CATEGORY_TYPES,
    CategoryAmount,
    check_category_pair,
    compute_category_amount,
)
from household_ledger.models.ledger import ExpenditureEntry, _check_year_month, year_month_of


class CategoryPurchase(BaseModel):
    """Expense and tax bought in one category."""
    model_config = ConfigDict(frozen=True)

    expenses: CategoryExpenses
    tax_expenses: CategoryTaxExpenses

    @model_validator(mode='after')
    def check_pair(self) -> 'CategoryPurchase':
        check_category_pair(self.expenses, self.tax_expenses)
        return self

    @classmethod
    def of(
        cls,
        category: ShoppingCategory,
        expenses: Any,
        tax_expenses: Any = None,
    ) -> "CategoryPurchase":
        """Build from raw decimals (``None`` = absent)."""
        return cls(
            expenses=CategoryExpenses.of(expenses, category=category),
            tax_expenses=CategoryTaxExpenses.of(tax_expenses, category=category),
        )

    @classmethod
    def absent(cls, category: ShoppingCategory) -> "CategoryPurchase":
        return cls.of(category, None, None)

    @property
    def category(self) -> ShoppingCategory:
        return self.expenses.category


class ShoppingRegistration(BaseModel):
    """A shopping trip as entered on the registration form."""
    model_config = ConfigDict(frozen=True)

    target_year_month: str = Field(
        ...,
        description="Month the shopping is booked in (YYYYMM)"
    )
    shopping_date: date
    remarks: str = Field(default="", max_length=100)
    purchases: list[CategoryPurchase] = Field(default_factory=list)
    coupon_price: ShoppingCouponPrice = Field(
        default_factory=ShoppingCouponPrice.absent,
        description="Coupon for the whole registration (stored negative)"
    )

    @field_validator('target_year_month')
    @classmethod
    def validate_year_month(cls, v: str) -> str:
        return _check_year_month(v)

    @model_validator(mode='after')
    def check_consistency(self) -> 'ShoppingRegistration':
        if year_month_of(self.shopping_date) != self.target_year_month:
            raise CrossFieldInconsistencyError(
                "shopping date",
                self.shopping_date,
                f"Shopping date is outside the target month "
                f"[date={self.shopping_date}][month={self.target_year_month}]",
            )
        seen = set()
        for purchase in self.purchases:
            if purchase.category in seen:
                raise CrossFieldInconsistencyError(
                    "purchases",
                    purchase.category.value,
                    f"Category registered twice [category={purchase.category.value}]",
                )
            seen.add(purchase.category)
        return self

    def purchase_for(self, category: ShoppingCategory) -> CategoryPurchase:
        for purchase in self.purchases:
            if purchase.category == category:
                return purchase
        return CategoryPurchase.absent(category)

    def category_amounts(self) -> dict[ShoppingCategory, CategoryAmount]:
        """
        Post-coupon amount of every category.

        Each coupon category applies the full registration coupon on its
        own; the coupon is not shared out between them.
        """
        amounts = {}
        for category in ShoppingCategory:
            purchase = self.purchase_for(category)
            if category in COUPON_CATEGORIES:
                amounts[category] = COUPON_CATEGORY_TYPES[category].from_components(
                    purchase.expenses, purchase.tax_expenses, self.coupon_price,
                )
            else:
                amounts[category] = compute_category_amount(
                    purchase.expenses, purchase.tax_expenses, ShoppingCouponPrice.absent(),
                )
        return amounts

    def aggregate_items(self) -> dict[ShoppingCategory, AggregateCategoryItem]:
        return {
            category: AggregateCategoryItem.from_components(
                self.purchase_for(category).expenses,
                self.purchase_for(category).tax_expenses,
            )
            for category in ShoppingCategory
        }

    def total_purchase_price(self) -> TotalPurchasePrice:
        """Pre-tax total over all categories (absent when nothing was bought)."""
        total = TotalPurchasePrice.absent()
        for purchase in self.purchases:
            total = total.add(TotalPurchasePrice.of(purchase.expenses.value))
        return total

    def tax_total_purchase_price(self) -> TaxTotalPurchasePrice:
        total = TaxTotalPurchasePrice.absent()
        for purchase in self.purchases:
            total = total.add(TaxTotalPurchasePrice.of(purchase.tax_expenses.value))
        return total

    def shopping_total_amount(self) -> ShoppingTotalAmount:
        """Sum of the post-coupon category amounts."""
        total = ShoppingTotalAmount.zero()
        for amount in self.category_amounts().values():
            total = total.add(amount.value)
        return total

    def to_entries(
        self,
        item_codes: dict[ShoppingCategory, str],
        payment_date: Optional[date] = None,
    ) -> list[ExpenditureEntry]:
        """One entry per category with a non-zero post-coupon amount."""
        entries = []
        for category, amount in self.category_amounts().items():
            if not amount.has_expenditure():
                continue
            item_code = item_codes.get(category)
            if item_code is None:
                raise MissingRequiredComponentError(f"item code for '{category.value}'")
            entries.append(ExpenditureEntry(
                item_code=item_code,
                target_year_month=self.target_year_month,
                amount=amount.value,
                payment_date=payment_date or self.shopping_date,
                category=category,
            ))
        return entries
