"""
Tests for Budget Tracker

Test strategy:
1. Unit tests for individual components (models, calculator, validators)
2. Integration tests for flows (with in-memory storage)
3. No external services in tests
"""

import pytest
from datetime import date, datetime
from decimal import Decimal
from uuid import uuid4

from budget_tracker.models.finance import (
    AllCategories,
    Budget,
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
    BudgetSummary,
    MonthlyTrend,
    SpendingInsights,
)
from budget_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestTransactionModels:
    """Tests for transaction models."""

    def test_transaction_defaults(self):
        """Category and type default to Other and expense."""
        transaction = Transaction(
            amount=Decimal("12.50"),
            date=datetime(2024, 1, 5),
        )
        assert transaction.category == Category.OTHER
        assert transaction.type == TransactionType.EXPENSE
        assert transaction.is_expense is True
        assert transaction.description == ""

    def test_transaction_strips_whitespace(self):
        """Test that whitespace is stripped from the description."""
        transaction = Transaction(
            amount=Decimal("10"),
            description="  Groceries  ",
            date=datetime(2024, 1, 5),
        )
        assert transaction.description == "Groceries"

    def test_transaction_magnitude_ignores_sign(self):
        """Signed storage of expenses does not change the magnitude."""
        transaction = Transaction(
            amount=Decimal("-42.10"),
            date=datetime(2024, 1, 5),
        )
        assert transaction.magnitude == Decimal("42.10")

    def test_transaction_month(self):
        """Month key comes from the transaction date."""
        transaction = Transaction(
            amount=Decimal("1"),
            date=datetime(2024, 3, 31, 23, 59),
        )
        assert transaction.month == "2024-03"

    def test_transaction_drops_utc_offset(self):
        """Offset timestamps keep their wall-clock time and month."""
        transaction = Transaction(
            amount=Decimal("1"),
            date="2024-01-31T23:30:00-05:00",
        )
        assert transaction.date == datetime(2024, 1, 31, 23, 30)
        assert transaction.date.tzinfo is None
        assert transaction.month == "2024-01"

    def test_draft_drops_utc_offset(self):
        draft = TransactionDraft(date="2024-01-05T10:00:00Z")
        assert draft.date == datetime(2024, 1, 5, 10, 0)

    def test_transaction_accepts_category_value(self):
        """Categories can be given by their display value."""
        transaction = Transaction(
            amount=Decimal("1"),
            date=datetime(2024, 1, 1),
            category="Food & Dining",
            type="income",
        )
        assert transaction.category == Category.FOOD_DINING
        assert transaction.type == TransactionType.INCOME

    def test_transaction_rejects_unknown_category(self):
        """Test that categories outside the closed set are rejected."""
        with pytest.raises(ValueError):
            Transaction(
                amount=Decimal("1"),
                date=datetime(2024, 1, 1),
                category="Gadgets",
            )


class TestBudgetModels:
    """Tests for budget models and their scope."""

    def test_budget_without_category_is_monthly(self):
        """No category means the budget covers every expense of the month."""
        budget = Budget(name="January", amount=Decimal("500"), month="2024-01")
        assert budget.is_monthly is True
        assert budget.category is None
        assert budget.scope == AllCategories()

    def test_budget_category_becomes_scope(self):
        """A plain category is turned into a category scope."""
        budget = Budget(
            name="Rent",
            amount=Decimal("1000"),
            month="2024-01",
            category="Housing",
        )
        assert budget.is_monthly is False
        assert budget.category == Category.HOUSING
        assert budget.scope == SpecificCategory(category=Category.HOUSING)

    def test_budget_blank_category_is_monthly(self):
        """Test that a blank category is normalized to no category."""
        budget = Budget(
            name="Everything",
            amount=Decimal("100"),
            month="2024-01",
            category="   ",
        )
        assert budget.is_monthly is True

    def test_budget_rejects_income_category(self):
        """Test that a budget cannot track income."""
        with pytest.raises(ValueError, match="Income"):
            Budget(
                name="Salary",
                amount=Decimal("100"),
                month="2024-01",
                category="Income",
            )

    def test_budget_rejects_bad_month(self):
        """Test month must be YYYY-MM."""
        for month in ("2024-13", "2024-1", "24-01", "January"):
            with pytest.raises(ValueError):
                Budget(name="Test", amount=Decimal("100"), month=month)

    def test_budget_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            Budget(name="Test", amount=Decimal("-1"), month="2024-01")

    def test_budget_admits_zero_amount(self):
        """Zero amounts are left for the calculator to handle."""
        budget = Budget(name="Test", amount=Decimal("0"), month="2024-01")
        assert budget.amount == Decimal("0")

    def test_budget_scope_from_dict(self):
        """The scope is a tagged variant keyed by `kind`."""
        budget = Budget.model_validate({
            "name": "Food",
            "amount": "200",
            "month": "2024-02",
            "scope": {"kind": "category", "category": "Food & Dining"},
        })
        assert budget.category == Category.FOOD_DINING

    def test_budget_dump_round_trips_scope(self):
        """Dumped budgets validate back to the same scope."""
        budget = Budget(
            name="Travel",
            amount=Decimal("300"),
            month="2024-05",
            category=Category.TRAVEL,
        )
        restored = Budget.model_validate(budget.model_dump())
        assert restored.scope == budget.scope
        assert restored.id == budget.id

    def test_scope_for(self):
        """Test scope_for helper."""
        assert scope_for(None) == AllCategories()
        assert scope_for("") == AllCategories()
        assert scope_for(Category.UTILITIES) == SpecificCategory(category=Category.UTILITIES)
        with pytest.raises(ValueError):
            scope_for(Category.INCOME)

    def test_all_categories_scope_matches_everything(self):
        """Test scope matching."""
        assert AllCategories().matches(Category.TRAVEL) is True
        scope = SpecificCategory(category=Category.TRAVEL)
        assert scope.matches(Category.TRAVEL) is True
        assert scope.matches(Category.HOUSING) is False

    def test_budget_with_progress_extends_budget(self):
        """Progress records carry the budget fields plus the derived ones."""
        progress = BudgetWithProgress(
            name="Rent",
            amount=Decimal("1000"),
            month="2024-01",
            category="Housing",
            spent=Decimal("800"),
            remaining=Decimal("200"),
            percentage=Decimal("80"),
            status=BudgetStatus.UNDER,
        )
        assert progress.category == Category.HOUSING
        assert progress.status == BudgetStatus.UNDER


class TestMonthKey:
    """Tests for the year-month key."""

    def test_month_key_pads_month(self):
        assert month_key(date(2024, 1, 15)) == "2024-01"

    def test_month_key_distinguishes_years(self):
        assert month_key(datetime(2023, 1, 15)) != month_key(datetime(2024, 1, 15))


class TestReportModels:
    """Tests for derived report models."""

    def test_empty_summary(self):
        summary = BudgetSummary()
        assert summary.budget_count == 0
        assert summary.is_over_budget is False
        assert summary.all_under_budget is True

    def test_monthly_trend_net(self):
        trend = MonthlyTrend(month="2024-01", income=Decimal("100"), expenses=Decimal("150"))
        assert trend.net == Decimal("-50")

    def test_spending_insights_transaction_count(self):
        insights = SpendingInsights(expense_count=3, income_count=2)
        assert insights.transaction_count == 5


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.BUDGET_CREATED,
            description="Test budget created",
        )
        assert event.event_type == AuditEventType.BUDGET_CREATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to log dictionary."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_RECORDED,
            description="Transaction recorded",
            details={"category": "Housing", "amount": "1000"},
        )
        log_dict = event.to_log_dict()
        assert "event_id" in log_dict
        assert log_dict["event_type"] == "transaction_recorded"
        assert log_dict["details"]["category"] == "Housing"
        assert log_dict["entity_id"] is None

    def test_audit_event_builder_budget_created(self):
        """Test AuditEventBuilder.budget_created."""
        correlation_id = uuid4()
        budget_id = uuid4()

        event = AuditEventBuilder.budget_created(
            budget_id=budget_id,
            name="Rent",
            month="2024-01",
            category="Housing",
            amount="1000",
            correlation_id=correlation_id,
        )

        assert event.event_type == AuditEventType.BUDGET_CREATED
        assert event.entity_type == "budget"
        assert event.entity_id == budget_id
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True
        assert event.details["category"] == "Housing"

    def test_audit_event_builder_duplicate_rejected(self):
        """Duplicate rejections are warnings."""
        event = AuditEventBuilder.duplicate_budget_rejected(
            month="2024-01",
            category=None,
            correlation_id=uuid4(),
        )
        assert event.event_type == AuditEventType.DUPLICATE_BUDGET_REJECTED
        assert event.severity == AuditSeverity.WARNING
        assert "monthly" in event.description

    def test_audit_event_builder_progress_computed(self):
        """Computed views are logged at debug level."""
        event = AuditEventBuilder.progress_computed(
            month=None,
            view="all",
            budget_count=3,
            over_count=1,
            correlation_id=uuid4(),
        )
        assert event.severity == AuditSeverity.DEBUG
        assert event.details["over_count"] == 1
        assert "all months" in event.description


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(
            draft_id=uuid4(),
            schema_valid=False,
            semantic_valid=False,
            is_valid=False,
            issues=[
                ValidationIssue(
                    field="amount",
                    issue_type="missing",
                    message="Amount is required",
                    severity="error",
                ),
            ],
        )
        assert result.has_errors is True
        assert result.error_count == 1
        assert result.error_messages == ["Amount is required"]

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(
            draft_id=uuid4(),
            schema_valid=True,
            semantic_valid=True,
            is_valid=True,
            issues=[
                ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message="Date in future",
                    severity="warning",
                ),
            ],
        )
        assert result.has_errors is False
        assert result.error_count == 0

    def test_validation_issue_severity_is_closed(self):
        with pytest.raises(ValueError):
            ValidationIssue(
                field="amount",
                issue_type="missing",
                message="x",
                severity="fatal",
            )


class TestCategories:
    """Tests for the category enum."""

    def test_all_categories_exist(self):
        """Test that expected categories exist."""
        expected = [
            "Food & Dining", "Housing", "Transportation", "Utilities",
            "Healthcare", "Entertainment", "Shopping", "Education",
            "Personal Care", "Travel", "Investments", "Income", "Other",
        ]
        assert [c.value for c in Category] == expected


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
