"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required field presence
- Positive amounts
- Month format
- Category and type within their closed sets

STAGE 2 - SEMANTIC VALIDATION:
- Future date detection
- Absurd amount detection
- Category/type mismatches
- Duplicate budget detection (needs storage)

Stage 2 only runs when stage 1 passes.

IMPORTANT: Validation NEVER silently fixes issues, with one exception
kept from the budget form: a blank budget category is normalized to
"no category" (a monthly budget) rather than reported.
"""

import re
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional
from uuid import UUID

import structlog

from budget_tracker.config import AppSettings, get_settings
from budget_tracker.models.finance import (
    MONTH_KEY_PATTERN,
    BudgetDraft,
    Category,
    TransactionDraft,
    TransactionType,
    ValidationIssue,
    ValidationResult,
    scope_for,
)
from budget_tracker.services.storage import BudgetStorageInterface, StorageError


logger = structlog.get_logger(__name__)

_CATEGORY_VALUES = {category.value for category in Category}
_TYPE_VALUES = {transaction_type.value for transaction_type in TransactionType}

MAX_DESCRIPTION_LENGTH = 200
MAX_NAME_LENGTH = 100


class ValidationFailedError(Exception):
    """Input was rejected by validation. Carries the full result."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__("; ".join(result.error_messages) or "Validation failed")


class TransactionValidationError(ValidationFailedError):
    """A transaction draft was rejected."""
    pass


class BudgetValidationError(ValidationFailedError):
    """A budget draft was rejected."""

    @property
    def is_duplicate(self) -> bool:
        return any(issue.issue_type == "duplicate" for issue in self.result.issues)


def _error(field: str, issue_type: str, message: str, fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="error",
        suggested_fix=fix,
    )


def _warning(field: str, issue_type: str, message: str, fix: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        field=field,
        issue_type=issue_type,
        message=message,
        severity="warning",
        suggested_fix=fix,
    )


def _has_errors(issues: list[ValidationIssue]) -> bool:
    return any(issue.severity == "error" for issue in issues)


def normalize_category(category: Optional[str]) -> Optional[str]:
    """Blank categories mean "no category"."""
    if category is None or not category.strip():
        return None
    return category.strip()


class TransactionValidator:
    """Validates transaction drafts before they are recorded."""

    def __init__(self, settings: Optional[AppSettings] = None):
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        draft: TransactionDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if draft.amount is None:
            issues.append(_error(
                "amount", "missing",
                "Amount is required",
            ))
        elif draft.amount == 0:
            issues.append(_error(
                "amount", "invalid_value",
                "Amount must be greater than zero",
            ))
        elif draft.amount < 0:
            issues.append(_error(
                "amount", "invalid_value",
                "Amount must be a positive number",
                "Enter the amount without a sign and pick expense or income as the type",
            ))

        if draft.date is None:
            issues.append(_error(
                "date", "missing",
                "Date is required",
            ))

        if len(draft.description) > MAX_DESCRIPTION_LENGTH:
            issues.append(_error(
                "description", "too_long",
                f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters",
            ))

        # A blank category falls back to "Other" when the transaction is built
        if draft.category and draft.category not in _CATEGORY_VALUES:
            issues.append(_error(
                "category", "invalid_value",
                f"Unknown category: {draft.category!r}",
                f"Choose one of: {', '.join(sorted(_CATEGORY_VALUES))}",
            ))

        if draft.type and draft.type not in _TYPE_VALUES:
            issues.append(_error(
                "type", "invalid_value",
                f"Unknown transaction type: {draft.type!r}",
                "Use 'expense' or 'income'",
            ))

        return not _has_errors(issues), issues

    def _validate_semantic(
        self,
        draft: TransactionDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        max_future_date = datetime.utcnow() + timedelta(
            days=self._settings.future_date_tolerance_days
        )
        if draft.date and draft.date > max_future_date:
            issues.append(_warning(
                "date", "future_date",
                f"Transaction date ({draft.date.date()}) is in the future",
                "Please verify the date is correct",
            ))

        max_amount = Decimal(str(self._settings.max_transaction_amount))
        if draft.amount and draft.amount > max_amount:
            issues.append(_warning(
                "amount", "suspicious_value",
                f"Amount ({draft.amount:,.2f}) seems unusually high",
                "Please verify this amount is correct",
            ))

        if (
            draft.category == Category.INCOME.value
            and (draft.type or TransactionType.EXPENSE.value) == TransactionType.EXPENSE.value
        ):
            issues.append(_warning(
                "category", "inconsistent",
                "Income category recorded as an expense",
                "Change the type to income or pick a spending category",
            ))

        return not _has_errors(issues), issues

    def validate(self, draft: TransactionDraft) -> ValidationResult:
        """Run the two-stage pipeline on a transaction draft."""
        schema_valid, issues = self._validate_schema(draft)

        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(draft)
            issues.extend(semantic_issues)

        return ValidationResult(
            draft_id=draft.draft_id,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=issues,
            warnings=[i.message for i in issues if i.severity == "warning"],
        )


class BudgetValidator:
    """
    Validates budget drafts through the two-stage pipeline.

    Stage 1 runs without storage. Duplicate detection in stage 2 needs a
    budget source; without one it is skipped.
    """

    def __init__(
        self,
        budget_storage: Optional[BudgetStorageInterface] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._storage = budget_storage
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        draft: BudgetDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not draft.name:
            issues.append(_error(
                "name", "missing",
                "Name is required",
            ))
        elif len(draft.name) > MAX_NAME_LENGTH:
            issues.append(_error(
                "name", "too_long",
                f"Name must be at most {MAX_NAME_LENGTH} characters",
            ))

        if draft.amount is None:
            issues.append(_error(
                "amount", "missing",
                "Amount is required",
            ))
        elif draft.amount <= 0:
            issues.append(_error(
                "amount", "invalid_value",
                "Amount must be a positive number",
            ))

        if not draft.month:
            issues.append(_error(
                "month", "missing",
                "Month is required",
            ))
        elif not re.match(MONTH_KEY_PATTERN, draft.month):
            issues.append(_error(
                "month", "invalid_format",
                f"Month must look like YYYY-MM, got {draft.month!r}",
            ))

        category = normalize_category(draft.category)
        if category == Category.INCOME.value:
            issues.append(_error(
                "category", "invalid_value",
                "A budget cannot track the Income category",
                "Leave the category empty for a monthly budget",
            ))
        elif category is not None and category not in _CATEGORY_VALUES:
            issues.append(_error(
                "category", "invalid_value",
                f"Unknown category: {category!r}",
            ))

        return not _has_errors(issues), issues

    def _validate_semantic(
        self,
        draft: BudgetDraft,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        max_amount = Decimal(str(self._settings.max_budget_amount))
        if draft.amount and draft.amount > max_amount:
            issues.append(_warning(
                "amount", "suspicious_value",
                f"Budget amount ({draft.amount:,.2f}) seems unusually high",
                "Please verify this amount is correct",
            ))

        return not _has_errors(issues), issues

    async def _check_duplicates(
        self,
        draft: BudgetDraft,
        exclude_id: Optional[UUID],
    ) -> list[ValidationIssue]:
        """
        Reject a second active budget for the same month and scope.

        This requires storage access.
        """
        if self._storage is None or draft.is_active is False:
            return []

        category = normalize_category(draft.category)
        try:
            exists = await self._storage.budget_exists(
                month=draft.month,
                scope=scope_for(category),
                exclude_id=exclude_id,
            )
        except StorageError as e:
            logger.warning(
                "duplicate_check_failed",
                month=draft.month,
                category=category,
                error=str(e),
            )
            return [_warning(
                "duplicate", "check_failed",
                "Could not check whether this budget already exists",
                "Please verify there is no other budget for this month",
            )]

        if not exists:
            return []

        if category:
            message = (
                f'A budget for "{category}" category in this month already exists. '
                "Please update the existing budget or choose a different month."
            )
        else:
            message = "A monthly budget for this month already exists"
        return [_error("duplicate", "duplicate", message)]

    async def validate(
        self,
        draft: BudgetDraft,
        exclude_id: Optional[UUID] = None,
        check_duplicates: bool = True,
    ) -> ValidationResult:
        """
        Run full two-stage validation pipeline.

        Args:
            draft: The budget input to validate
            exclude_id: ID of the budget being edited, ignored by duplicate checks
            check_duplicates: Whether to check for duplicates (requires storage)
        """
        schema_valid, issues = self._validate_schema(draft)

        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(draft)
            issues.extend(semantic_issues)

            if check_duplicates:
                duplicate_issues = await self._check_duplicates(draft, exclude_id)
                issues.extend(duplicate_issues)
                semantic_valid = semantic_valid and not _has_errors(duplicate_issues)

        return ValidationResult(
            draft_id=draft.draft_id,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=issues,
            warnings=[i.message for i in issues if i.severity == "warning"],
        )


def get_user_friendly_summary(result: ValidationResult) -> str:
    """
    Summarize validation results for people.
    """
    if result.is_valid and not result.warnings:
        return "All checks passed."

    lines = []

    if result.has_errors:
        lines.append("Please fix the following:")
        for issue in result.issues:
            if issue.severity == "error":
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     {issue.suggested_fix}")

    if result.warnings:
        if lines:
            lines.append("")
        lines.append("Please verify the following:")
        for warning in result.warnings:
            lines.append(f"   • {warning}")

    return "\n".join(lines)
