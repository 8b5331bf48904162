"""
Data Models Package

Pydantic models for every amount, entry and aggregate line in the ledger.
All data flowing through the system must conform to these schemas.
"""

from household_ledger.models.money import (
    Money,
    NullableMoney,
    ScaledAmount,
    format_amount,
    parse_formatted_amount,
    to_scaled_decimal,
)
from household_ledger.models.amounts import (
    COUPON_CATEGORIES,
    BalanceAmount,
    CategoryExpenses,
    CategoryTaxExpenses,
    CategoryTotalAmount,
    CouponAmount,
    ExpenditureAmount,
    IncomeAmount,
    RegularIncomeAmount,
    ShoppingCategory,
    ShoppingCouponPrice,
    ShoppingTotalAmount,
    TaxTotalPurchasePrice,
    TotalPurchasePrice,
)
from household_ledger.models.category import (
    CategoryAmount,
    ShoppingAlcohol,
    ShoppingConsumerGoods,
    ShoppingDineOut,
    ShoppingWork,
    compute_category_amount,
)
from household_ledger.models.aggregate import (
    AggregateCategoryItem,
    sum_category_items,
)
from household_ledger.models.delta import (
    DeltaOutcome,
    DeltaResult,
    LedgerLine,
    compute_delta,
)
from household_ledger.models.ledger import (
    ExpenditureEntry,
    SpendingLedgerLine,
)
from household_ledger.models.shopping import (
    CategoryPurchase,
    ShoppingRegistration,
)
from household_ledger.models.audit import (
    AuditSeverity,
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventType,
)

__all__ = [
    # Money bases
    "Money",
    "NullableMoney",
    "ScaledAmount",
    "format_amount",
    "parse_formatted_amount",
    "to_scaled_decimal",
    # Amount kinds
    "COUPON_CATEGORIES",
    "BalanceAmount",
    "CategoryExpenses",
    "CategoryTaxExpenses",
    "CategoryTotalAmount",
    "CouponAmount",
    "ExpenditureAmount",
    "IncomeAmount",
    "RegularIncomeAmount",
    "ShoppingCategory",
    "ShoppingCouponPrice",
    "ShoppingTotalAmount",
    "TaxTotalPurchasePrice",
    "TotalPurchasePrice",
    # Category computation
    "CategoryAmount",
    "ShoppingAlcohol",
    "ShoppingConsumerGoods",
    "ShoppingDineOut",
    "ShoppingWork",
    "compute_category_amount",
    # Aggregation
    "AggregateCategoryItem",
    "sum_category_items",
    # Delta engine
    "DeltaOutcome",
    "DeltaResult",
    "LedgerLine",
    "compute_delta",
    # Ledger
    "ExpenditureEntry",
    "SpendingLedgerLine",
    # Shopping
    "CategoryPurchase",
    "ShoppingRegistration",
    # Audit models
    "AuditSeverity",
    "LedgerEvent",
    "LedgerEventBuilder",
    "LedgerEventType",
]
