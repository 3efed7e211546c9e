"""
In-Memory Storage

Dict-backed implementations of every storage interface. Used by the
tests and for running the app without a remote store. Mutable models
(shopping lists, profiles) are deep-copied on the way in and out so
callers cannot change stored state without going through the store.
"""

from typing import Optional
from uuid import UUID

from duo_finance.aggregation.filters import pending_future_payments
from duo_finance.models.audit import AuditEvent
from duo_finance.models.shopping import ShoppingList
from duo_finance.models.transaction import Transaction
from duo_finance.models.user import UserProfile
from duo_finance.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    ShoppingListStorageInterface,
    TransactionStorageInterface,
    UserStorageInterface,
)


class InMemoryTransactionStorage(TransactionStorageInterface):

    def __init__(self, transactions: Optional[list[Transaction]] = None):
        self._transactions: dict[UUID, Transaction] = {}
        for transaction in transactions or []:
            self._transactions[transaction.id] = transaction

    async def save_transaction(self, transaction: Transaction) -> bool:
        if transaction.id in self._transactions:
            raise DuplicateError(f"Transaction already exists: {transaction.id}")
        self._transactions[transaction.id] = transaction
        return True

    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        return self._transactions.get(transaction_id)

    async def list_transactions(self, user_id: str) -> list[Transaction]:
        return [t for t in self._transactions.values() if t.user_id == user_id]

    async def list_pending_future_payments(self, user_id: str) -> list[Transaction]:
        return pending_future_payments(await self.list_transactions(user_id))

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        return self._transactions.pop(transaction_id, None) is not None


class InMemoryShoppingListStorage(ShoppingListStorageInterface):

    def __init__(self):
        self._lists: dict[UUID, ShoppingList] = {}

    async def create_list(self, shopping_list: ShoppingList) -> bool:
        if shopping_list.id in self._lists:
            raise DuplicateError(f"Shopping list already exists: {shopping_list.id}")
        self._lists[shopping_list.id] = shopping_list.model_copy(deep=True)
        return True

    async def get_active_list(self) -> Optional[ShoppingList]:
        for shopping_list in self._lists.values():
            if shopping_list.is_active:
                return shopping_list.model_copy(deep=True)
        return None

    async def update_list(self, shopping_list: ShoppingList) -> bool:
        if shopping_list.id not in self._lists:
            raise NotFoundError(f"Shopping list not found: {shopping_list.id}")
        self._lists[shopping_list.id] = shopping_list.model_copy(deep=True)
        return True


class InMemoryUserStorage(UserStorageInterface):

    def __init__(self):
        self._users: dict[str, UserProfile] = {}

    async def get_user(self, user_id: str) -> Optional[UserProfile]:
        profile = self._users.get(user_id)
        return profile.model_copy(deep=True) if profile else None

    async def save_user(self, profile: UserProfile) -> bool:
        self._users[profile.user_id] = profile.model_copy(deep=True)
        return True


class InMemoryAuditStorage(AuditStorageInterface):

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self._events if e.correlation_id == correlation_id]

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
