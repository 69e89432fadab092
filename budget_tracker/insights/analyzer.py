"""
Spending Insights

DESIGN DECISION: Insights are computed DETERMINISTICALLY from the
transactions handed in. Nothing is estimated: if a period has no data,
every figure is zero and no recommendation is produced.

Like the progress calculator, amounts are aggregated by magnitude and
classified by `type`, never by sign.
"""

import calendar
import re
from datetime import date, datetime, time
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Union

from budget_tracker.config import InsightSettings
from budget_tracker.models.finance import (
    MONTH_KEY_PATTERN,
    Category,
    Transaction,
    TransactionType,
    month_key,
    wall_clock,
)
from budget_tracker.models.insights import (
    CategorySpending,
    InsightItem,
    InsightKind,
    MonthlyTrend,
    SpendingInsights,
)


ZERO = Decimal("0")
HUNDRED = Decimal("100")

_CATEGORY_ORDER = {category: index for index, category in enumerate(Category)}


class PeriodError(ValueError):
    """A reporting period could not be parsed."""
    pass


class ReportingPeriod:
    """
    Either one calendar month or a trailing number of months.

    Parsed from the strings the insights view offers: "2024-03" for a
    month, "3" / "6" / "12" for the last N months.
    """

    def __init__(self, month: Optional[str] = None, months: Optional[int] = None):
        if (month is None) == (months is None):
            raise PeriodError("Give exactly one of a month or a number of months")
        if month is not None and not re.match(MONTH_KEY_PATTERN, month):
            raise PeriodError(f"Invalid month: {month!r}. Expected YYYY-MM")
        if months is not None and months < 1:
            raise PeriodError(f"Number of months must be at least 1, got {months}")
        self.month = month
        self.months = months

    @classmethod
    def parse(cls, value: Union[str, int]) -> "ReportingPeriod":
        if isinstance(value, int):
            return cls(months=value)
        value = value.strip()
        if "-" in value:
            return cls(month=value)
        try:
            return cls(months=int(value))
        except ValueError:
            raise PeriodError(f"Invalid reporting period: {value!r}") from None

    @property
    def is_single_month(self) -> bool:
        return self.month is not None

    @property
    def months_count(self) -> int:
        """How many months averages are spread over."""
        return 1 if self.is_single_month else self.months

    def __str__(self) -> str:
        return self.month if self.is_single_month else str(self.months)

    def __repr__(self) -> str:
        return f"ReportingPeriod({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ReportingPeriod):
            return NotImplemented
        return (self.month, self.months) == (other.month, other.months)


def subtract_months(value: date, months: int) -> date:
    """Same day `months` calendar months earlier, clamped to the month's end."""
    total = value.year * 12 + (value.month - 1) - months
    year, month = divmod(total, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def filter_by_period(
    transactions: Iterable[Transaction],
    period: ReportingPeriod,
    today: Optional[datetime] = None,
) -> list[Transaction]:
    """
    Transactions inside a reporting period.

    A single month matches on the full year-month. A trailing period keeps
    everything dated on or after `today` minus N months.
    """
    if period.is_single_month:
        return [t for t in transactions if month_key(t.date) == period.month]

    today = today or datetime.utcnow()
    if not isinstance(today, datetime):
        today = datetime.combine(today, time.min)
    cutoff = subtract_months(wall_clock(today), period.months)
    return [t for t in transactions if wall_clock(t.date) >= cutoff]


def _category_totals(transactions: Iterable[Transaction]) -> dict[Category, list[Decimal]]:
    groups: dict[Category, list[Decimal]] = {}
    for t in transactions:
        if t.type != TransactionType.EXPENSE:
            continue
        groups.setdefault(t.category, []).append(abs(t.amount))
    return groups


def compute_spending_insights(
    transactions: Sequence[Transaction],
    months_count: int = 1,
) -> SpendingInsights:
    """Headline totals and averages. Empty input gives a zero-filled result."""
    if months_count < 1:
        raise PeriodError(f"months_count must be at least 1, got {months_count}")
    if not transactions:
        return SpendingInsights(months_count=months_count)

    income = [t for t in transactions if t.type == TransactionType.INCOME]
    expenses = [t for t in transactions if t.type == TransactionType.EXPENSE]

    total_income = sum((abs(t.amount) for t in income), ZERO)
    total_expenses = sum((abs(t.amount) for t in expenses), ZERO)

    top_category = None
    top_amount = ZERO
    for category, amounts in _category_totals(expenses).items():
        amount = sum(amounts, ZERO)
        if amount > top_amount:
            top_category, top_amount = category, amount

    return SpendingInsights(
        total_income=total_income,
        total_expenses=total_expenses,
        net_savings=total_income - total_expenses,
        average_monthly_income=total_income / months_count,
        average_monthly_expenses=total_expenses / months_count,
        top_category=top_category,
        top_category_amount=top_amount,
        expense_count=len(expenses),
        income_count=len(income),
        months_count=months_count,
    )


def top_spending_categories(
    transactions: Iterable[Transaction],
    limit: int = 5,
) -> list[CategorySpending]:
    """Expense categories ranked by amount, largest first."""
    groups = _category_totals(transactions)
    if not groups:
        return []

    totals = {category: sum(amounts, ZERO) for category, amounts in groups.items()}
    grand_total = sum(totals.values(), ZERO)

    ranked = sorted(
        totals.items(),
        key=lambda item: (-item[1], _CATEGORY_ORDER[item[0]]),
    )
    return [
        CategorySpending(
            category=category,
            amount=amount,
            percentage=amount / grand_total * HUNDRED if grand_total > 0 else ZERO,
            transaction_count=len(groups[category]),
        )
        for category, amount in ranked[:limit]
    ]


def monthly_trends(transactions: Iterable[Transaction]) -> list[MonthlyTrend]:
    """Income and expenses per year-month, oldest first."""
    months: dict[str, MonthlyTrend] = {}
    for t in transactions:
        key = month_key(t.date)
        if key not in months:
            months[key] = MonthlyTrend(month=key)
        trend = months[key]
        if t.type == TransactionType.INCOME:
            trend.income += abs(t.amount)
        else:
            trend.expenses += abs(t.amount)

    return [months[key] for key in sorted(months)]


def format_currency(amount: Decimal, symbol: str = "$") -> str:
    """Format an amount for people, e.g. -$1,234.50."""
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


def analyze_insights(
    insights: SpendingInsights,
    settings: Optional[InsightSettings] = None,
    currency_symbol: str = "$",
) -> list[InsightItem]:
    """
    Turn headline figures into recommendations.

    Covers cash flow, category concentration, savings rate and
    transaction frequency. No transactions means no recommendations.
    """
    if insights.transaction_count == 0:
        return []

    settings = settings or InsightSettings()
    items = []

    # Cash flow
    if insights.net_savings > 0:
        items.append(InsightItem(
            kind=InsightKind.POSITIVE,
            title="Positive Cash Flow",
            description=(
                f"You're saving {format_currency(insights.net_savings, currency_symbol)} "
                "more than you're spending. Great job!"
            ),
            recommendation="Consider investing your surplus or building an emergency fund.",
        ))
    elif insights.net_savings < 0:
        items.append(InsightItem(
            kind=InsightKind.WARNING,
            title="Negative Cash Flow",
            description=(
                f"You're spending {format_currency(abs(insights.net_savings), currency_symbol)} "
                "more than your income."
            ),
            recommendation="Review your expenses and look for areas to reduce spending.",
        ))
    else:
        items.append(InsightItem(
            kind=InsightKind.POSITIVE,
            title="Balanced Cash Flow",
            description="Your income and expenses are balanced.",
            recommendation="Great job maintaining a balanced budget!",
        ))

    # Category concentration
    if insights.top_category and insights.total_expenses > 0:
        share = insights.top_category_amount / insights.total_expenses * HUNDRED
        if share > Decimal(str(settings.high_concentration_percent)):
            items.append(InsightItem(
                kind=InsightKind.WARNING,
                title="High Category Concentration",
                description=(
                    f"{insights.top_category.value} represents {share:.1f}% "
                    "of your total expenses."
                ),
                recommendation=(
                    "Consider diversifying your spending or setting a budget "
                    "for this category."
                ),
            ))
        else:
            items.append(InsightItem(
                kind=InsightKind.POSITIVE,
                title="Well-Distributed Spending",
                description=(
                    f"Your top category ({insights.top_category.value}) represents "
                    f"{share:.1f}% of expenses."
                ),
                recommendation="Your spending is well-balanced across categories.",
            ))

    # Savings rate
    if insights.average_monthly_expenses > 0:
        if insights.average_monthly_income <= 0:
            items.append(InsightItem(
                kind=InsightKind.WARNING,
                title="No Recorded Income",
                description="You have expenses but no income recorded for this period.",
                recommendation="Record your income to track your savings rate.",
            ))
        else:
            rate = (
                (insights.average_monthly_income - insights.average_monthly_expenses)
                / insights.average_monthly_income * HUNDRED
            )
            if rate > Decimal(str(settings.excellent_savings_rate_percent)):
                items.append(InsightItem(
                    kind=InsightKind.POSITIVE,
                    title="Excellent Savings Rate",
                    description=(
                        f"You're saving {rate:.1f}% of your monthly income on average."
                    ),
                    recommendation=(
                        "Consider increasing your investments or emergency fund "
                        "contributions."
                    ),
                ))
            elif rate < Decimal(str(settings.low_savings_rate_percent)):
                items.append(InsightItem(
                    kind=InsightKind.WARNING,
                    title="Low Savings Rate",
                    description=f"You're saving only {rate:.1f}% of your monthly income.",
                    recommendation=(
                        "Aim to save at least 20% of your income for financial security."
                    ),
                ))

    # Frequency
    per_month = insights.transaction_count / insights.months_count
    if per_month > settings.high_frequency_per_month:
        items.append(InsightItem(
            kind=InsightKind.INFO,
            title="High Transaction Frequency",
            description=f"You have {per_month:.0f} transactions per month on average.",
            recommendation=(
                "Consider consolidating small purchases to reduce transaction fees "
                "and simplify tracking."
            ),
        ))

    return items
