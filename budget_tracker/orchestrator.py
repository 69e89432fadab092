"""
Main Orchestrator for Budget Tracker

This module ties together all the components and defines the
end-to-end flows for:
1. Transactions (draft → validate → save → audit)
2. Budgets (draft → validate + duplicate check → save → audit)
3. Budget progress (snapshot sources → calculator → view → audit)
4. Spending insights (snapshot → period filter → analysis → audit)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing reaches storage without passing validation
- The progress calculator only ever sees plain snapshots
- Every step is audited
"""

from datetime import datetime
from typing import NamedTuple, Optional, Union
from uuid import UUID

import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from budget_tracker.audit import AuditLogger, create_correlation_id
from budget_tracker.config import get_settings
from budget_tracker.insights import (
    ReportingPeriod,
    analyze_insights,
    compute_spending_insights,
    filter_by_period,
    monthly_trends,
    top_spending_categories,
)
from budget_tracker.models.finance import (
    Budget,
    BudgetDraft,
    BudgetStatus,
    BudgetWithProgress,
    Category,
    Transaction,
    TransactionDraft,
    TransactionType,
    ValidationResult,
    scope_for,
)
from budget_tracker.models.insights import BudgetSummary, InsightReport, ProgressView
from budget_tracker.progress import compute_progress, select_view, summarize_progress
from budget_tracker.services.storage import (
    BudgetStorageInterface,
    ConnectionError,
    InMemoryAuditStorage,
    InMemoryBudgetStorage,
    InMemoryTransactionStorage,
    NotFoundError,
    TransactionStorageInterface,
)
from budget_tracker.validation import (
    BudgetValidationError,
    BudgetValidator,
    TransactionValidationError,
    TransactionValidator,
    normalize_category,
)


logger = structlog.get_logger(__name__)


def _issue_dicts(result: ValidationResult) -> list[dict]:
    return [
        {"field": i.field, "type": i.issue_type, "message": i.message}
        for i in result.issues
    ]


def _changed_fields(before: dict, after: dict, fields: tuple[str, ...]) -> list[str]:
    return [name for name in fields if before.get(name) != after.get(name)]


class TransactionFlow:
    """
    Orchestrates recording, editing and deleting transactions.
    """

    def __init__(
        self,
        storage: TransactionStorageInterface,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or TransactionValidator()
        self._audit_logger = audit_logger

    async def _validate(self, draft: TransactionDraft, correlation_id: UUID) -> ValidationResult:
        result = self._validator.validate(draft)
        if result.has_errors:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    draft_id=draft.draft_id,
                    entity_type="transaction",
                    issues=_issue_dicts(result),
                    correlation_id=correlation_id,
                )
            raise TransactionValidationError(result)
        return result

    @staticmethod
    def _fields_from(draft: TransactionDraft) -> dict:
        return {
            "amount": draft.amount,
            "description": draft.description,
            "date": draft.date,
            "category": draft.category or Category.OTHER,
            "type": draft.type or TransactionType.EXPENSE,
        }

    async def record(
        self,
        draft: TransactionDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Validate and save a new transaction.

        Raises:
            TransactionValidationError: If the draft has errors
        """
        correlation_id = correlation_id or create_correlation_id()

        await self._validate(draft, correlation_id)
        transaction = Transaction(**self._fields_from(draft))

        await self._storage.save_transaction(transaction)

        if self._audit_logger:
            await self._audit_logger.log_transaction_recorded(
                transaction_id=transaction.id,
                transaction_type=transaction.type.value,
                category=transaction.category.value,
                amount=str(transaction.amount),
                correlation_id=correlation_id,
            )

        return transaction

    async def update(
        self,
        transaction_id: UUID,
        draft: TransactionDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Replace the editable fields of a transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
            TransactionValidationError: If the draft has errors
        """
        correlation_id = correlation_id or create_correlation_id()

        existing = await self._storage.get_transaction_by_id(transaction_id)
        if existing is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

        await self._validate(draft, correlation_id)
        updated = Transaction.model_validate({
            **existing.model_dump(),
            **self._fields_from(draft),
        })

        await self._storage.update_transaction(updated)

        if self._audit_logger:
            await self._audit_logger.log_transaction_updated(
                transaction_id=transaction_id,
                changed_fields=_changed_fields(
                    existing.model_dump(),
                    updated.model_dump(),
                    ("amount", "description", "date", "category", "type"),
                ),
                correlation_id=correlation_id,
            )

        return updated

    async def delete(
        self,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        correlation_id = correlation_id or create_correlation_id()

        if not await self._storage.delete_transaction(transaction_id):
            raise NotFoundError(f"Transaction not found: {transaction_id}")

        if self._audit_logger:
            await self._audit_logger.log_transaction_deleted(
                transaction_id=transaction_id,
                correlation_id=correlation_id,
            )


class BudgetFlow:
    """
    Orchestrates creating, editing, deactivating and deleting budgets.

    Only one active budget may cover a given month and scope.
    """

    def __init__(
        self,
        storage: BudgetStorageInterface,
        validator: Optional[BudgetValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or BudgetValidator(storage)
        self._audit_logger = audit_logger

    async def _validate(
        self,
        draft: BudgetDraft,
        correlation_id: UUID,
        exclude_id: Optional[UUID] = None,
    ) -> ValidationResult:
        result = await self._validator.validate(draft, exclude_id=exclude_id)
        if result.has_errors:
            error = BudgetValidationError(result)
            if self._audit_logger:
                if error.is_duplicate:
                    await self._audit_logger.log_duplicate_budget_rejected(
                        month=draft.month,
                        category=normalize_category(draft.category),
                        correlation_id=correlation_id,
                    )
                else:
                    await self._audit_logger.log_validation_failed(
                        draft_id=draft.draft_id,
                        entity_type="budget",
                        issues=_issue_dicts(result),
                        correlation_id=correlation_id,
                    )
            raise error
        return result

    @staticmethod
    def _fields_from(draft: BudgetDraft) -> dict:
        return {
            "name": draft.name,
            "amount": draft.amount,
            "month": draft.month,
            "scope": scope_for(normalize_category(draft.category)),
            "is_active": draft.is_active,
        }

    async def create(
        self,
        draft: BudgetDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Budget:
        """
        Validate and save a new budget.

        Raises:
            BudgetValidationError: If the draft has errors or duplicates
                an existing budget
        """
        correlation_id = correlation_id or create_correlation_id()

        if draft.is_active is None:
            draft = draft.model_copy(update={"is_active": True})

        await self._validate(draft, correlation_id)
        budget = Budget(**self._fields_from(draft))

        await self._storage.save_budget(budget)

        if self._audit_logger:
            await self._audit_logger.log_budget_created(
                budget_id=budget.id,
                name=budget.name,
                month=budget.month,
                category=budget.category.value if budget.category else None,
                amount=str(budget.amount),
                correlation_id=correlation_id,
            )

        return budget

    async def update(
        self,
        budget_id: UUID,
        draft: BudgetDraft,
        correlation_id: Optional[UUID] = None,
    ) -> Budget:
        """
        Replace the editable fields of a budget.

        Raises:
            NotFoundError: If the budget doesn't exist
            BudgetValidationError: If the draft has errors or duplicates
                another budget
        """
        correlation_id = correlation_id or create_correlation_id()

        existing = await self._storage.get_budget_by_id(budget_id)
        if existing is None:
            raise NotFoundError(f"Budget not found: {budget_id}")

        # Edits leave the active flag alone unless the draft sets it
        if draft.is_active is None:
            draft = draft.model_copy(update={"is_active": existing.is_active})

        await self._validate(draft, correlation_id, exclude_id=budget_id)
        updated = Budget.model_validate({
            **existing.model_dump(),
            **self._fields_from(draft),
        })

        await self._storage.update_budget(updated)

        if self._audit_logger:
            await self._audit_logger.log_budget_updated(
                budget_id=budget_id,
                changed_fields=_changed_fields(
                    existing.model_dump(),
                    updated.model_dump(),
                    ("name", "amount", "month", "scope", "is_active"),
                ),
                correlation_id=correlation_id,
            )

        return updated

    async def deactivate(
        self,
        budget_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> Budget:
        """
        Hide a budget from listings without deleting it.

        Raises:
            NotFoundError: If the budget doesn't exist
        """
        correlation_id = correlation_id or create_correlation_id()

        existing = await self._storage.get_budget_by_id(budget_id)
        if existing is None:
            raise NotFoundError(f"Budget not found: {budget_id}")

        deactivated = existing.model_copy(update={"is_active": False})
        await self._storage.update_budget(deactivated)

        if self._audit_logger:
            await self._audit_logger.log_budget_deactivated(
                budget_id=budget_id,
                correlation_id=correlation_id,
            )

        return deactivated

    async def delete(
        self,
        budget_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Raises:
            NotFoundError: If the budget doesn't exist
        """
        correlation_id = correlation_id or create_correlation_id()

        if not await self._storage.delete_budget(budget_id):
            raise NotFoundError(f"Budget not found: {budget_id}")

        if self._audit_logger:
            await self._audit_logger.log_budget_deleted(
                budget_id=budget_id,
                correlation_id=correlation_id,
            )


class ProgressFlow:
    """
    Orchestrates the budget progress view.

    Flow:
    1. Snapshot active budgets (optionally for one month) and transactions
    2. Hand both snapshots to the pure progress calculator
    3. Apply the requested view
    4. Audit what was computed
    """

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        budget_storage: BudgetStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._transaction_storage = transaction_storage
        self._budget_storage = budget_storage
        self._audit_logger = audit_logger

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type(ConnectionError),
        reraise=True,
    )
    async def _load_snapshot(
        self,
        month: Optional[str],
    ) -> tuple[list[Budget], list[Transaction]]:
        budgets = await self._budget_storage.list_budgets(month=month, active_only=True)
        transactions = await self._transaction_storage.list_transactions(month=month)
        return budgets, transactions

    async def budgets_with_progress(
        self,
        month: Optional[str] = None,
        view: ProgressView = ProgressView.ALL,
        correlation_id: Optional[UUID] = None,
    ) -> list[BudgetWithProgress]:
        """
        Active budgets joined with their spending.

        Args:
            month: Only budgets for this YYYY-MM month; all months if None
            view: All budgets, only monthly ones, or only category ones

        Raises:
            ConnectionError: If storage stays unreachable after retries
        """
        correlation_id = correlation_id or create_correlation_id()

        try:
            budgets, transactions = await self._load_snapshot(month)
        except ConnectionError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="load_progress_snapshot",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        progress = select_view(compute_progress(budgets, transactions), view)

        if self._audit_logger:
            await self._audit_logger.log_progress_computed(
                month=month,
                view=view.value,
                budget_count=len(progress),
                over_count=sum(1 for b in progress if b.status == BudgetStatus.OVER),
                correlation_id=correlation_id,
            )

        return progress

    async def summary(
        self,
        month: Optional[str] = None,
        view: ProgressView = ProgressView.ALL,
        correlation_id: Optional[UUID] = None,
    ) -> BudgetSummary:
        """Totals over `budgets_with_progress` for the same month and view."""
        progress = await self.budgets_with_progress(month, view, correlation_id)
        return summarize_progress(progress, view)


class InsightsFlow:
    """
    Orchestrates the spending insights view for a reporting period.
    """

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._transaction_storage = transaction_storage
        self._audit_logger = audit_logger
        self._settings = get_settings()

    async def generate(
        self,
        period: Union[str, int, ReportingPeriod, None] = None,
        today: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> InsightReport:
        """
        Build the insight report for a period.

        Args:
            period: "YYYY-MM", a number of trailing months, or None for
                the configured default
            today: Reference date for trailing periods (defaults to now)

        Raises:
            PeriodError: If the period cannot be parsed
        """
        correlation_id = correlation_id or create_correlation_id()
        insight_settings = self._settings.insights

        if period is None:
            period = insight_settings.default_period
        if not isinstance(period, ReportingPeriod):
            period = ReportingPeriod.parse(period)

        transactions = filter_by_period(
            await self._transaction_storage.list_transactions(),
            period,
            today,
        )

        insights = compute_spending_insights(transactions, period.months_count)
        report = InsightReport(
            period=str(period),
            insights=insights,
            top_categories=top_spending_categories(
                transactions, insight_settings.top_categories_limit
            ),
            trends=monthly_trends(transactions),
            analysis=analyze_insights(
                insights,
                insight_settings,
                self._settings.app.currency_symbol,
            ),
        )

        logger.debug(
            "insights_report_built",
            period=str(period),
            transactions=len(transactions),
            recommendations=len(report.analysis),
        )

        if self._audit_logger:
            await self._audit_logger.log_insights_generated(
                period=str(period),
                transaction_count=len(transactions),
                correlation_id=correlation_id,
            )

        return report


class AppComponents(NamedTuple):
    transactions: TransactionFlow
    budgets: BudgetFlow
    progress: ProgressFlow
    insights: InsightsFlow
    audit_logger: AuditLogger


def create_app_components(
    transaction_storage: Optional[TransactionStorageInterface] = None,
    budget_storage: Optional[BudgetStorageInterface] = None,
    audit_storage: Optional[InMemoryAuditStorage] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Any storage left out is replaced by an empty in-memory one.
    """
    transaction_storage = transaction_storage or InMemoryTransactionStorage()
    budget_storage = budget_storage or InMemoryBudgetStorage()
    audit_logger = AuditLogger(audit_storage or InMemoryAuditStorage())

    return AppComponents(
        transactions=TransactionFlow(transaction_storage, audit_logger=audit_logger),
        budgets=BudgetFlow(budget_storage, audit_logger=audit_logger),
        progress=ProgressFlow(transaction_storage, budget_storage, audit_logger),
        insights=InsightsFlow(transaction_storage, audit_logger),
        audit_logger=audit_logger,
    )
