"""
Finance Tracker - Source Package

A personal finance tracker whose core is a daily account ledger: per-day,
per-account inflow, outflow and running balance derived from expenses,
income and transfers.

DESIGN PRINCIPLES:
1. Derived data is computed, never stored
2. One bad record never blanks the ledger
3. No silent corrections: every coercion is reported
4. Every step is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
