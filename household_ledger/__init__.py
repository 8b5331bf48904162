"""
Household Ledger - Source Package

The monetary core of a personal household-accounting ledger: scale-checked
amount types, coupon-adjusted category expenses and the delta engine that
patches monthly aggregate lines when a transaction is edited.

DESIGN PRINCIPLES:
1. Amounts carry exactly two fractional digits, always
2. Fail early, fail visibly
3. No silent corrections (no rounding, no clamping)
4. Aggregates are patched, never rescanned
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Household Ledger Team"
