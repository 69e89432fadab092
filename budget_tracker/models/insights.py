"""
Derived Report Models

Everything here is computed from transactions and budgets on demand.
None of it is persisted.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from budget_tracker.models.finance import Category


ZERO = Decimal("0")


class ProgressView(str, Enum):
    """Which budgets a progress listing shows."""
    ALL = "all"
    MONTHLY = "monthly"
    CATEGORY = "category"


class BudgetSummary(BaseModel):
    """Totals across a list of budgets with progress."""

    view: ProgressView = ProgressView.ALL
    budget_count: int = Field(default=0, ge=0)
    total_budget: Decimal = ZERO
    total_spent: Decimal = ZERO
    total_remaining: Decimal = ZERO
    average_percentage: Decimal = ZERO
    over_count: int = Field(default=0, ge=0)
    under_count: int = Field(default=0, ge=0)
    at_count: int = Field(default=0, ge=0)
    categories: list[Category] = Field(default_factory=list)

    @property
    def is_over_budget(self) -> bool:
        return self.total_remaining < 0

    @property
    def all_under_budget(self) -> bool:
        return self.over_count == 0 and self.at_count == 0


class BudgetComparison(BaseModel):
    """One budget-vs-actual row."""

    label: str
    budget: Decimal
    actual: Decimal
    remaining: Decimal


class SpendingInsights(BaseModel):
    """Headline figures for a reporting period."""

    total_income: Decimal = ZERO
    total_expenses: Decimal = ZERO
    net_savings: Decimal = ZERO
    average_monthly_income: Decimal = ZERO
    average_monthly_expenses: Decimal = ZERO
    top_category: Optional[Category] = None
    top_category_amount: Decimal = ZERO
    expense_count: int = Field(default=0, ge=0)
    income_count: int = Field(default=0, ge=0)
    months_count: int = Field(default=1, ge=1)

    @property
    def transaction_count(self) -> int:
        return self.expense_count + self.income_count


class CategorySpending(BaseModel):
    """Expense total of one category within a period."""

    category: Category
    amount: Decimal
    percentage: Decimal = Field(
        ...,
        description="Share of total expenses, 0-100"
    )
    transaction_count: int = Field(ge=0)


class MonthlyTrend(BaseModel):
    """Income and expenses of one year-month."""

    month: str = Field(..., description="YYYY-MM")
    income: Decimal = ZERO
    expenses: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.income - self.expenses


class InsightKind(str, Enum):
    POSITIVE = "positive"
    WARNING = "warning"
    INFO = "info"


class InsightItem(BaseModel):
    """A single recommendation derived from spending insights."""

    kind: InsightKind
    title: str
    description: str
    recommendation: str


class InsightReport(BaseModel):
    """Everything the insights view needs for one period."""

    period: str
    insights: SpendingInsights
    top_categories: list[CategorySpending] = Field(default_factory=list)
    trends: list[MonthlyTrend] = Field(default_factory=list)
    analysis: list[InsightItem] = Field(default_factory=list)
