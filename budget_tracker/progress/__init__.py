"""Budget progress package."""

from budget_tracker.progress.calculator import (
    AT_BUDGET_TOLERANCE,
    classify_status,
    compute_budget_progress,
    compute_progress,
    month_expenses,
    progress_percentage,
    spent_for,
)
from budget_tracker.progress.summary import (
    budget_vs_actual,
    select_view,
    summarize_progress,
)

__all__ = [
    "AT_BUDGET_TOLERANCE",
    "budget_vs_actual",
    "classify_status",
    "compute_budget_progress",
    "compute_progress",
    "month_expenses",
    "progress_percentage",
    "select_view",
    "spent_for",
    "summarize_progress",
]
