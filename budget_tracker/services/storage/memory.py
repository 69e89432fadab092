"""
In-Memory Storage Implementation

DESIGN DECISION: The in-memory backend is a complete implementation of the
storage interfaces, not a mock. Tests and local runs use it; a persistent
backend only has to reproduce its filtering and ordering.

Records are copied on the way in and on the way out, so callers always
work with snapshots and can never mutate what is stored.
"""

from datetime import datetime
from typing import Optional, Union
from uuid import UUID

from budget_tracker.models.audit import AuditEvent
from budget_tracker.models.finance import (
    AllCategories,
    Budget,
    SpecificCategory,
    Transaction,
    TransactionType,
    month_key,
)
from budget_tracker.services.storage.interface import (
    AuditStorageInterface,
    BudgetStorageInterface,
    DuplicateError,
    NotFoundError,
    TransactionStorageInterface,
)


def _budget_sort_key(budget: Budget) -> tuple:
    # Monthly budgets (no category) sort before category budgets
    category = budget.category
    return (category is not None, category.value if category else "")


class InMemoryTransactionStorage(TransactionStorageInterface):
    """Transaction storage held in a dict keyed by ID."""

    def __init__(self, transactions: Optional[list[Transaction]] = None):
        self._transactions: dict[UUID, Transaction] = {}
        for transaction in transactions or []:
            self._transactions[transaction.id] = transaction.model_copy(deep=True)

    async def save_transaction(self, transaction: Transaction) -> bool:
        if transaction.id in self._transactions:
            raise DuplicateError(f"Transaction already exists: {transaction.id}")
        self._transactions[transaction.id] = transaction.model_copy(deep=True)
        return True

    async def get_transaction_by_id(self, transaction_id: UUID) -> Optional[Transaction]:
        transaction = self._transactions.get(transaction_id)
        return transaction.model_copy(deep=True) if transaction else None

    async def update_transaction(self, transaction: Transaction) -> bool:
        if transaction.id not in self._transactions:
            raise NotFoundError(f"Transaction not found: {transaction.id}")
        self._transactions[transaction.id] = transaction.model_copy(
            update={"updated_at": datetime.utcnow()},
            deep=True,
        )
        return True

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        return self._transactions.pop(transaction_id, None) is not None

    async def list_transactions(
        self,
        month: Optional[str] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> list[Transaction]:
        transactions = []
        for transaction in self._transactions.values():
            if month and month_key(transaction.date) != month:
                continue
            if transaction_type and transaction.type != transaction_type:
                continue
            transactions.append(transaction.model_copy(deep=True))

        # Newest first
        transactions.sort(key=lambda t: t.date, reverse=True)
        return transactions


class InMemoryBudgetStorage(BudgetStorageInterface):
    """Budget storage held in a dict keyed by ID."""

    def __init__(self, budgets: Optional[list[Budget]] = None):
        self._budgets: dict[UUID, Budget] = {}
        for budget in budgets or []:
            self._budgets[budget.id] = budget.model_copy(deep=True)

    async def save_budget(self, budget: Budget) -> bool:
        if budget.id in self._budgets:
            raise DuplicateError(f"Budget already exists: {budget.id}")
        self._budgets[budget.id] = budget.model_copy(deep=True)
        return True

    async def get_budget_by_id(self, budget_id: UUID) -> Optional[Budget]:
        budget = self._budgets.get(budget_id)
        return budget.model_copy(deep=True) if budget else None

    async def update_budget(self, budget: Budget) -> bool:
        if budget.id not in self._budgets:
            raise NotFoundError(f"Budget not found: {budget.id}")
        self._budgets[budget.id] = budget.model_copy(
            update={"updated_at": datetime.utcnow()},
            deep=True,
        )
        return True

    async def delete_budget(self, budget_id: UUID) -> bool:
        return self._budgets.pop(budget_id, None) is not None

    async def list_budgets(
        self,
        month: Optional[str] = None,
        active_only: bool = True,
    ) -> list[Budget]:
        budgets = []
        for budget in self._budgets.values():
            if active_only and not budget.is_active:
                continue
            if month and budget.month != month:
                continue
            budgets.append(budget.model_copy(deep=True))

        budgets.sort(key=_budget_sort_key)
        return budgets

    async def budget_exists(
        self,
        month: str,
        scope: Union[AllCategories, SpecificCategory],
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        for budget in self._budgets.values():
            if budget.id == exclude_id or not budget.is_active:
                continue
            if budget.month == month and budget.scope == scope:
                return True
        return False


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event.model_copy(deep=True))
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        # Stable sort keeps insertion order for identical timestamps
        events = sorted(self._events, key=lambda e: e.timestamp)
        return list(reversed(events))[:limit]
