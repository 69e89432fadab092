"""
Budget Progress Calculator

DESIGN DECISION: Progress is DERIVED, never stored.
Every call joins the budgets against the transactions it is handed and
returns fresh records. There is no I/O, no caching and no shared state,
so callers can run it once per month or view without coordination.

Each budget is computed independently:
1. Keep expenses whose date falls in the budget's exact year-month
2. Narrow to the budget's category, unless it covers all categories
3. Sum the magnitudes
4. Derive remaining, percentage and status
"""

from decimal import Decimal
from typing import Iterable, Sequence

from budget_tracker.models.finance import (
    Budget,
    BudgetStatus,
    BudgetWithProgress,
    Transaction,
    TransactionType,
    month_key,
)


ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Spending within a cent of the cap counts as "at" the budget
AT_BUDGET_TOLERANCE = Decimal("0.01")


def month_expenses(
    transactions: Iterable[Transaction],
    month: str,
) -> list[Transaction]:
    """Expenses dated in `month` (YYYY-MM). Year and month must both match."""
    return [
        t for t in transactions
        if t.type == TransactionType.EXPENSE and month_key(t.date) == month
    ]


def spent_for(budget: Budget, transactions: Iterable[Transaction]) -> Decimal:
    """Sum of expense magnitudes counting toward `budget`."""
    return sum(
        (
            abs(t.amount)
            for t in month_expenses(transactions, budget.month)
            if budget.scope.matches(t.category)
        ),
        ZERO,
    )


def progress_percentage(spent: Decimal, amount: Decimal) -> Decimal:
    """Percentage of `amount` used. Zero when there is nothing allocated."""
    if amount > 0:
        return spent / amount * HUNDRED
    return ZERO


def classify_status(spent: Decimal, amount: Decimal) -> BudgetStatus:
    """
    Classify spending against a cap.

    OVER is checked first with a strict comparison, so the AT band only
    covers spending at or just below the cap.
    """
    if spent > amount:
        return BudgetStatus.OVER
    if abs(spent - amount) < AT_BUDGET_TOLERANCE:
        return BudgetStatus.AT
    return BudgetStatus.UNDER


def compute_budget_progress(
    budget: Budget,
    transactions: Iterable[Transaction],
) -> BudgetWithProgress:
    """Progress of a single budget."""
    spent = spent_for(budget, transactions)
    return BudgetWithProgress.model_validate({
        **budget.model_dump(),
        "spent": spent,
        "remaining": budget.amount - spent,
        "percentage": progress_percentage(spent, budget.amount),
        "status": classify_status(spent, budget.amount),
    })


def compute_progress(
    budgets: Sequence[Budget],
    transactions: Sequence[Transaction],
) -> list[BudgetWithProgress]:
    """
    Join budgets against transactions.

    The result follows the order of `budgets`. Empty inputs give an empty
    list or zero-spent progress, never an error.
    """
    # Materialize once so a generator is not exhausted by the first budget
    transactions = list(transactions)
    return [compute_budget_progress(budget, transactions) for budget in budgets]
