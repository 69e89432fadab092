"""
Tests for the two-stage validation pipeline.
"""

import asyncio

import pytest
from datetime import datetime, timedelta
from decimal import Decimal

from budget_tracker.config import AppSettings
from budget_tracker.models.finance import Budget, BudgetDraft, TransactionDraft
from budget_tracker.services.storage import InMemoryBudgetStorage, StorageError
from budget_tracker.validation import (
    BudgetValidationError,
    BudgetValidator,
    TransactionValidationError,
    TransactionValidator,
    get_user_friendly_summary,
    normalize_category,
)


@pytest.fixture
def settings():
    return AppSettings()


@pytest.fixture
def transaction_validator(settings):
    return TransactionValidator(settings)


def run(coro):
    return asyncio.run(coro)


class FailingBudgetStorage(InMemoryBudgetStorage):
    """Budget storage whose duplicate lookup is unreachable."""

    async def budget_exists(self, month, scope, exclude_id=None):
        raise StorageError("backend unavailable")


class TestTransactionValidator:
    """Tests for transaction drafts."""

    def test_valid_draft(self, transaction_validator):
        draft = TransactionDraft(
            amount=Decimal("42.50"),
            description="Groceries",
            date=datetime(2024, 1, 5),
            category="Food & Dining",
        )
        result = transaction_validator.validate(draft)

        assert result.is_valid is True
        assert result.issues == []
        assert result.draft_id == draft.draft_id

    def test_missing_fields(self, transaction_validator):
        result = transaction_validator.validate(TransactionDraft())

        assert result.schema_valid is False
        assert result.semantic_valid is False
        assert {i.field for i in result.issues} == {"amount", "date"}
        assert all(i.issue_type == "missing" for i in result.issues)

    def test_zero_amount(self, transaction_validator):
        result = transaction_validator.validate(
            TransactionDraft(amount=Decimal("0"), date=datetime(2024, 1, 1))
        )
        assert result.error_messages == ["Amount must be greater than zero"]

    def test_negative_amount(self, transaction_validator):
        result = transaction_validator.validate(
            TransactionDraft(amount=Decimal("-5"), date=datetime(2024, 1, 1))
        )
        assert result.has_errors is True
        assert result.issues[0].suggested_fix is not None

    def test_unknown_category_and_type(self, transaction_validator):
        result = transaction_validator.validate(
            TransactionDraft(
                amount=Decimal("5"),
                date=datetime(2024, 1, 1),
                category="Gadgets",
                type="transfer",
            )
        )
        assert {i.field for i in result.issues} == {"category", "type"}
        assert result.error_count == 2

    def test_long_description(self, transaction_validator):
        result = transaction_validator.validate(
            TransactionDraft(
                amount=Decimal("5"),
                date=datetime(2024, 1, 1),
                description="x" * 201,
            )
        )
        assert result.issues[0].issue_type == "too_long"

    def test_blank_category_falls_back(self, transaction_validator):
        result = transaction_validator.validate(
            TransactionDraft(
                amount=Decimal("5"),
                date=datetime(2024, 1, 1),
                category="  ",
                type="",
            )
        )
        assert result.is_valid is True

    def test_future_date_warning(self, transaction_validator):
        result = transaction_validator.validate(
            TransactionDraft(
                amount=Decimal("5"),
                date=datetime.utcnow() + timedelta(days=30),
            )
        )
        assert result.has_errors is False
        assert result.is_valid is True
        assert len(result.warnings) == 1
        assert result.issues[0].issue_type == "future_date"

    def test_near_future_is_tolerated(self, transaction_validator):
        result = transaction_validator.validate(
            TransactionDraft(
                amount=Decimal("5"),
                date=datetime.utcnow() + timedelta(days=2),
            )
        )
        assert result.warnings == []

    def test_huge_amount_warning(self, transaction_validator):
        result = transaction_validator.validate(
            TransactionDraft(amount=Decimal("2000000"), date=datetime(2024, 1, 1))
        )
        assert result.is_valid is True
        assert result.issues[0].issue_type == "suspicious_value"

    def test_income_category_as_expense_warning(self, transaction_validator):
        result = transaction_validator.validate(
            TransactionDraft(
                amount=Decimal("3000"),
                date=datetime(2024, 1, 1),
                category="Income",
                type="expense",
            )
        )
        assert result.is_valid is True
        assert result.issues[0].issue_type == "inconsistent"

    def test_income_category_as_income(self, transaction_validator):
        result = transaction_validator.validate(
            TransactionDraft(
                amount=Decimal("3000"),
                date=datetime(2024, 1, 1),
                category="Income",
                type="income",
            )
        )
        assert result.issues == []


class TestBudgetValidatorSchema:
    """Stage 1 checks for budget drafts."""

    def test_valid_draft(self, settings):
        draft = BudgetDraft(name="Rent", amount=Decimal("1000"), month="2024-01", category="Housing")
        result = run(BudgetValidator(settings=settings).validate(draft))
        assert result.is_valid is True

    def test_missing_fields(self, settings):
        result = run(BudgetValidator(settings=settings).validate(BudgetDraft()))
        assert {i.field for i in result.issues} == {"name", "amount", "month"}
        assert result.schema_valid is False

    def test_long_name(self, settings):
        draft = BudgetDraft(name="x" * 101, amount=Decimal("10"), month="2024-01")
        result = run(BudgetValidator(settings=settings).validate(draft))
        assert result.issues[0].issue_type == "too_long"

    @pytest.mark.parametrize("amount", ["0", "-10"])
    def test_non_positive_amount(self, settings, amount):
        draft = BudgetDraft(name="x", amount=Decimal(amount), month="2024-01")
        result = run(BudgetValidator(settings=settings).validate(draft))
        assert result.error_messages == ["Amount must be a positive number"]

    def test_bad_month(self, settings):
        draft = BudgetDraft(name="x", amount=Decimal("10"), month="2024-13")
        result = run(BudgetValidator(settings=settings).validate(draft))
        assert result.issues[0].issue_type == "invalid_format"

    def test_income_category_rejected(self, settings):
        draft = BudgetDraft(name="x", amount=Decimal("10"), month="2024-01", category="Income")
        result = run(BudgetValidator(settings=settings).validate(draft))
        assert result.error_messages == ["A budget cannot track the Income category"]

    def test_unknown_category_rejected(self, settings):
        draft = BudgetDraft(name="x", amount=Decimal("10"), month="2024-01", category="Pets")
        result = run(BudgetValidator(settings=settings).validate(draft))
        assert result.has_errors is True

    def test_blank_category_is_monthly(self, settings):
        draft = BudgetDraft(name="x", amount=Decimal("10"), month="2024-01", category="   ")
        result = run(BudgetValidator(settings=settings).validate(draft))
        assert result.is_valid is True

    def test_huge_amount_warning(self, settings):
        draft = BudgetDraft(name="x", amount=Decimal("5000000"), month="2024-01")
        result = run(BudgetValidator(settings=settings).validate(draft))
        assert result.is_valid is True
        assert len(result.warnings) == 1


class TestBudgetValidatorDuplicates:
    """Stage 2 duplicate detection."""

    @pytest.fixture
    def existing(self):
        return [
            Budget(name="Rent", amount=Decimal("1000"), month="2024-01", category="Housing"),
            Budget(name="January", amount=Decimal("2000"), month="2024-01"),
            Budget(name="Old food", amount=Decimal("100"), month="2024-01",
                   category="Food & Dining", is_active=False),
        ]

    @pytest.fixture
    def validator(self, existing, settings):
        return BudgetValidator(InMemoryBudgetStorage(existing), settings)

    def test_duplicate_category(self, validator):
        draft = BudgetDraft(name="Rent 2", amount=Decimal("900"), month="2024-01", category="Housing")
        result = run(validator.validate(draft))

        assert result.schema_valid is True
        assert result.is_valid is False
        assert result.error_messages == [
            'A budget for "Housing" category in this month already exists. '
            "Please update the existing budget or choose a different month."
        ]
        assert BudgetValidationError(result).is_duplicate is True

    def test_duplicate_monthly(self, validator):
        draft = BudgetDraft(name="Again", amount=Decimal("900"), month="2024-01")
        result = run(validator.validate(draft))
        assert result.error_messages == ["A monthly budget for this month already exists"]

    def test_other_month_is_fine(self, validator):
        draft = BudgetDraft(name="Rent", amount=Decimal("1000"), month="2024-02", category="Housing")
        assert run(validator.validate(draft)).is_valid is True

    def test_inactive_budget_does_not_block(self, validator):
        draft = BudgetDraft(name="Food", amount=Decimal("100"), month="2024-01", category="Food & Dining")
        assert run(validator.validate(draft)).is_valid is True

    def test_editing_itself_is_fine(self, validator, existing):
        draft = BudgetDraft(name="Rent", amount=Decimal("1100"), month="2024-01", category="Housing")
        result = run(validator.validate(draft, exclude_id=existing[0].id))
        assert result.is_valid is True

    def test_skip_duplicate_check(self, validator):
        draft = BudgetDraft(name="Again", amount=Decimal("900"), month="2024-01")
        assert run(validator.validate(draft, check_duplicates=False)).is_valid is True

    def test_inactive_draft_skips_check(self, validator):
        draft = BudgetDraft(name="Again", amount=Decimal("900"), month="2024-01", is_active=False)
        assert run(validator.validate(draft)).is_valid is True

    def test_storage_failure_is_a_warning(self, settings):
        validator = BudgetValidator(FailingBudgetStorage(), settings)
        draft = BudgetDraft(name="x", amount=Decimal("10"), month="2024-01")
        result = run(validator.validate(draft))

        assert result.is_valid is True
        assert result.issues[0].issue_type == "check_failed"


class TestErrorsAndSummary:
    """Tests for validation errors and user-facing summaries."""

    def test_error_message(self, transaction_validator):
        result = transaction_validator.validate(TransactionDraft())
        error = TransactionValidationError(result)
        assert error.result is result
        assert "Amount is required" in str(error)

    def test_non_duplicate_error(self, settings):
        result = run(BudgetValidator(settings=settings).validate(BudgetDraft()))
        assert BudgetValidationError(result).is_duplicate is False

    def test_summary_all_passed(self, transaction_validator):
        result = transaction_validator.validate(
            TransactionDraft(amount=Decimal("1"), date=datetime(2024, 1, 1))
        )
        assert get_user_friendly_summary(result) == "All checks passed."

    def test_summary_lists_errors_and_fixes(self, transaction_validator):
        result = transaction_validator.validate(
            TransactionDraft(amount=Decimal("-1"), date=datetime(2024, 1, 1))
        )
        summary = get_user_friendly_summary(result)
        assert summary.startswith("Please fix the following:")
        assert "Amount must be a positive number" in summary
        assert "without a sign" in summary

    def test_summary_lists_warnings(self, transaction_validator):
        result = transaction_validator.validate(
            TransactionDraft(amount=Decimal("2000000"), date=datetime(2024, 1, 1))
        )
        assert get_user_friendly_summary(result).startswith("Please verify the following:")

    def test_normalize_category(self):
        assert normalize_category(None) is None
        assert normalize_category("  ") is None
        assert normalize_category(" Housing ") == "Housing"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
