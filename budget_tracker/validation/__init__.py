"""Validation package."""

from budget_tracker.validation.validator import (
    BudgetValidationError,
    BudgetValidator,
    TransactionValidationError,
    TransactionValidator,
    ValidationFailedError,
    get_user_friendly_summary,
    normalize_category,
)

__all__ = [
    "BudgetValidationError",
    "BudgetValidator",
    "TransactionValidationError",
    "TransactionValidator",
    "ValidationFailedError",
    "get_user_friendly_summary",
    "normalize_category",
]
