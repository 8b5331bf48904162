"""
Aggregate Category Items

Per-category totals used by period summaries. An item's ``value`` is
always re-derived from its expense and tax components, never stored
independently.
"""

from functools import reduce
from typing import Iterable

from pydantic import BaseModel, ConfigDict, model_validator

from household_ledger.exceptions import (
    CrossFieldInconsistencyError,
    MissingRequiredComponentError,
)
from household_ledger.models.amounts import (
    CategoryExpenses,
    CategoryTaxExpenses,
    CategoryTotalAmount,
    ShoppingCategory,
)
from household_ledger.models.category import check_category_pair


class AggregateCategoryItem(BaseModel):
    """Expense, tax and their total for one category."""
    model_config = ConfigDict(frozen=True)

    category: ShoppingCategory
    value: CategoryTotalAmount
    expenses: CategoryExpenses
    tax_expenses: CategoryTaxExpenses

    @model_validator(mode='after')
    def check_value_matches_components(self) -> 'AggregateCategoryItem':
        check_category_pair(self.expenses, self.tax_expenses)
        if self.expenses.category != self.category:
            raise CrossFieldInconsistencyError(
                "category expenses",
                self.expenses.category.value,
                f"Expenses tagged with another category "
                f"[item={self.category.value}][expenses={self.expenses.category.value}]",
            )
        expected = _total_of(self.expenses, self.tax_expenses)
        if self.value != expected:
            raise CrossFieldInconsistencyError(
                "category total amount",
                self.value.value,
                f"Total does not match its components "
                f"[total={self.value}][expected={expected}]",
            )
        return self

    @classmethod
    def from_components(
        cls,
        expenses: CategoryExpenses,
        tax_expenses: CategoryTaxExpenses,
    ) -> "AggregateCategoryItem":
        return cls(
            category=expenses.category,
            value=_total_of(expenses, tax_expenses),
            expenses=expenses,
            tax_expenses=tax_expenses,
        )

    @classmethod
    def neutral(cls, category: ShoppingCategory) -> "AggregateCategoryItem":
        """Fold seed: every component absent."""
        return cls.from_components(
            CategoryExpenses.absent(category=category),
            CategoryTaxExpenses.absent(category=category),
        )

    def is_absent(self) -> bool:
        return self.value.is_absent()

    def add(self, other: "AggregateCategoryItem") -> "AggregateCategoryItem":
        if other is None:
            raise MissingRequiredComponentError("aggregate category item")
        if other.category != self.category:
            raise CrossFieldInconsistencyError(
                "aggregate category item",
                other.category.value,
                f"Cannot add items of different categories "
                f"[{self.category.value}][{other.category.value}]",
            )
        if self.value.is_absent():
            return AggregateCategoryItem.from_components(other.expenses, other.tax_expenses)
        if other.value.is_absent():
            return AggregateCategoryItem.from_components(self.expenses, self.tax_expenses)
        return AggregateCategoryItem.from_components(
            self.expenses.add(other.expenses),
            self.tax_expenses.add(other.tax_expenses),
        )


def _total_of(
    expenses: CategoryExpenses,
    tax_expenses: CategoryTaxExpenses,
) -> CategoryTotalAmount:
    if expenses.is_absent():
        return CategoryTotalAmount.absent()
    return CategoryTotalAmount.of(expenses.value + tax_expenses.null_safe_value)


def sum_category_items(
    category: ShoppingCategory,
    items: Iterable[AggregateCategoryItem],
) -> AggregateCategoryItem:
    """Fold items of one category, starting from the absent item."""
    return reduce(
        lambda acc, item: acc.add(item),
        items,
        AggregateCategoryItem.neutral(category),
    )
