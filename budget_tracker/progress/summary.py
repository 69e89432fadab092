"""
Budget summaries over computed progress.

Pure functions; they take the calculator's output and never look at
transactions themselves.
"""

from decimal import Decimal
from typing import Sequence

from budget_tracker.models.finance import BudgetStatus, BudgetWithProgress
from budget_tracker.models.insights import (
    BudgetComparison,
    BudgetSummary,
    ProgressView,
)


def select_view(
    budgets: Sequence[BudgetWithProgress],
    view: ProgressView,
) -> list[BudgetWithProgress]:
    """Keep the budgets a view shows, preserving order."""
    if view == ProgressView.MONTHLY:
        return [b for b in budgets if b.is_monthly]
    if view == ProgressView.CATEGORY:
        return [b for b in budgets if not b.is_monthly]
    return list(budgets)


def summarize_progress(
    budgets: Sequence[BudgetWithProgress],
    view: ProgressView = ProgressView.ALL,
) -> BudgetSummary:
    """Totals and status counts. An empty list gives an all-zero summary."""
    if not budgets:
        return BudgetSummary(view=view)

    total_budget = sum((b.amount for b in budgets), Decimal("0"))
    total_spent = sum((b.spent for b in budgets), Decimal("0"))
    total_percentage = sum((b.percentage for b in budgets), Decimal("0"))

    return BudgetSummary(
        view=view,
        budget_count=len(budgets),
        total_budget=total_budget,
        total_spent=total_spent,
        total_remaining=total_budget - total_spent,
        average_percentage=total_percentage / len(budgets),
        over_count=sum(1 for b in budgets if b.status == BudgetStatus.OVER),
        under_count=sum(1 for b in budgets if b.status == BudgetStatus.UNDER),
        at_count=sum(1 for b in budgets if b.status == BudgetStatus.AT),
        categories=[b.category for b in budgets if b.category is not None],
    )


def budget_vs_actual(
    budgets: Sequence[BudgetWithProgress],
) -> list[BudgetComparison]:
    """One row per budget, labelled by category or, for monthly budgets, by name."""
    return [
        BudgetComparison(
            label=b.category.value if b.category else b.name,
            budget=b.amount,
            actual=b.spent,
            remaining=b.remaining,
        )
        for b in budgets
    ]
