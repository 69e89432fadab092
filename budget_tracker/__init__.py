"""
Budget Tracker - Source Package

The budget and spending core of a personal finance tracker: records
transactions, keeps monthly and per-category budgets, and derives
progress and spending insights from them.

DESIGN PRINCIPLES:
1. Progress is derived on every query, never stored
2. Nothing reaches storage without validation
3. No silent corrections
4. Every step must be auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Budget Tracker Team"
