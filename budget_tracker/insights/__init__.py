"""Spending insights package."""

from budget_tracker.insights.analyzer import (
    PeriodError,
    ReportingPeriod,
    analyze_insights,
    compute_spending_insights,
    filter_by_period,
    format_currency,
    monthly_trends,
    subtract_months,
    top_spending_categories,
)

__all__ = [
    "PeriodError",
    "ReportingPeriod",
    "analyze_insights",
    "compute_spending_insights",
    "filter_by_period",
    "format_currency",
    "monthly_trends",
    "subtract_months",
    "top_spending_categories",
]
