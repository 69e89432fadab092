"""
Data Models Package

This package contains all Pydantic models used in the Budget Tracker.
All data flowing through the system must conform to these schemas.
"""

from budget_tracker.models.finance import (
    AllCategories,
    Budget,
    BudgetDraft,
    BudgetScope,
    BudgetStatus,
    BudgetWithProgress,
    Category,
    SpecificCategory,
    Transaction,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    month_key,
    scope_for,
)
from budget_tracker.models.insights import (
    BudgetComparison,
    BudgetSummary,
    CategorySpending,
    InsightItem,
    InsightKind,
    InsightReport,
    MonthlyTrend,
    ProgressView,
    SpendingInsights,
)
from budget_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Finance models
    "AllCategories",
    "Budget",
    "BudgetDraft",
    "BudgetScope",
    "BudgetStatus",
    "BudgetWithProgress",
    "Category",
    "SpecificCategory",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "ValidationIssue",
    "ValidationResult",
    "month_key",
    "scope_for",
    # Report models
    "BudgetComparison",
    "BudgetSummary",
    "CategorySpending",
    "InsightItem",
    "InsightKind",
    "InsightReport",
    "MonthlyTrend",
    "ProgressView",
    "SpendingInsights",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
