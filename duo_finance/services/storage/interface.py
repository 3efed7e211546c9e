"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a document database later
2. Use in-memory storage for testing
3. Keep business logic decoupled from storage implementation

Transactions are only ever filtered server-side by owning user.
Date-range filtering is the aggregation engine's job.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from duo_finance.models.audit import AuditEvent
from duo_finance.models.shopping import ShoppingList
from duo_finance.models.transaction import Transaction
from duo_finance.models.user import UserProfile


class TransactionStorageInterface(ABC):
    """
    Abstract interface for transaction storage operations.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def save_transaction(self, transaction: Transaction) -> bool:
        """
        Save a new transaction.

        Returns:
            True if saved successfully

        Raises:
            DuplicateError: If a transaction with the same ID exists
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        """
        Retrieve a transaction by its ID.

        Returns:
            The transaction if found, None otherwise
        """
        pass

    @abstractmethod
    async def list_transactions(self, user_id: str) -> list[Transaction]:
        """
        All transactions owned by a user, in storage order.

        Raises:
            StorageError: If the store cannot be read
        """
        pass

    @abstractmethod
    async def list_pending_future_payments(self, user_id: str) -> list[Transaction]:
        """Transactions flagged as future payments that are still pending."""
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: UUID) -> bool:
        """
        Delete a transaction by ID.

        Returns:
            True if deleted, False if it did not exist
        """
        pass


class ShoppingListStorageInterface(ABC):
    """
    Storage for the household's shopping lists.

    Lists are shared between partners, so lookups are not scoped
    to a single user.
    """

    @abstractmethod
    async def create_list(self, shopping_list: ShoppingList) -> bool:
        """Persist a new list."""
        pass

    @abstractmethod
    async def get_active_list(self) -> Optional[ShoppingList]:
        """The first list whose status is active, if any."""
        pass

    @abstractmethod
    async def update_list(self, shopping_list: ShoppingList) -> bool:
        """
        Replace a stored list.

        Raises:
            NotFoundError: If the list doesn't exist
        """
        pass


class UserStorageInterface(ABC):
    """Storage for user profiles."""

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[UserProfile]:
        pass

    @abstractmethod
    async def save_user(self, profile: UserProfile) -> bool:
        """Insert or replace a profile."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one chat turn).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
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


class MalformedRowError(StorageError):
    """A stored record could not be parsed."""
    pass
