"""
Abstract Storage Interface

DESIGN DECISION: The tracker never talks to a database directly.
Transactions, budgets and audit events come from sources behind these
interfaces. This allows us to:
1. Use in-memory storage for testing and local runs
2. Plug in a real backend later without touching business logic
3. Keep the progress calculator fed with plain snapshots

The interface is intentionally simple - just the operations the flows need.
"""

from abc import ABC, abstractmethod
from typing import Optional, Union
from uuid import UUID

from budget_tracker.models.audit import AuditEvent
from budget_tracker.models.finance import (
    AllCategories,
    Budget,
    SpecificCategory,
    Transaction,
    TransactionType,
)


class TransactionStorageInterface(ABC):
    """
    Abstract interface for transaction storage operations.

    Implementations are responsible for persistence only. Validation
    happens before anything reaches them.
    """

    @abstractmethod
    async def save_transaction(self, transaction: Transaction) -> bool:
        """
        Save a new transaction.

        Raises:
            DuplicateError: If a transaction with the same ID exists
        """
        pass

    @abstractmethod
    async def get_transaction_by_id(self, transaction_id: UUID) -> Optional[Transaction]:
        """Retrieve a transaction by its ID, or None."""
        pass

    @abstractmethod
    async def update_transaction(self, transaction: Transaction) -> bool:
        """
        Replace an existing transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: UUID) -> bool:
        """Delete a transaction. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def list_transactions(
        self,
        month: Optional[str] = None,
        transaction_type: Optional[TransactionType] = None,
    ) -> list[Transaction]:
        """
        List transactions, newest first.

        Args:
            month: Only transactions dated in this YYYY-MM month
            transaction_type: Only expenses or only income
        """
        pass


class BudgetStorageInterface(ABC):
    """Abstract interface for budget storage operations."""

    @abstractmethod
    async def save_budget(self, budget: Budget) -> bool:
        """
        Save a new budget.

        Raises:
            DuplicateError: If a budget with the same ID exists
        """
        pass

    @abstractmethod
    async def get_budget_by_id(self, budget_id: UUID) -> Optional[Budget]:
        """Retrieve a budget by its ID, or None."""
        pass

    @abstractmethod
    async def update_budget(self, budget: Budget) -> bool:
        """
        Replace an existing budget.

        Raises:
            NotFoundError: If the budget doesn't exist
        """
        pass

    @abstractmethod
    async def delete_budget(self, budget_id: UUID) -> bool:
        """Delete a budget. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def list_budgets(
        self,
        month: Optional[str] = None,
        active_only: bool = True,
    ) -> list[Budget]:
        """
        List budgets ordered by category, monthly budgets first.

        Args:
            month: Only budgets for this YYYY-MM month
            active_only: Leave out inactive budgets
        """
        pass

    @abstractmethod
    async def budget_exists(
        self,
        month: str,
        scope: Union[AllCategories, SpecificCategory],
        exclude_id: Optional[UUID] = None,
    ) -> bool:
        """
        Check if an active budget already covers this month and scope.

        Args:
            month: YYYY-MM month
            scope: Budget scope to compare
            exclude_id: Budget to ignore (the one being edited)
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event to the log."""
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """All events for a correlation ID, in chronological order."""
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """All events for a specific entity, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """The most recent events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
