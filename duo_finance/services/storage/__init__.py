"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the remote backend; the in-memory backend serves tests
and offline use.
"""

from duo_finance.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    MalformedRowError,
    NotFoundError,
    ShoppingListStorageInterface,
    StorageError,
    TransactionStorageInterface,
    UserStorageInterface,
)
from duo_finance.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryShoppingListStorage,
    InMemoryTransactionStorage,
    InMemoryUserStorage,
)
from duo_finance.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsShoppingListStorage,
    GoogleSheetsTransactionStorage,
    GoogleSheetsUserStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "ShoppingListStorageInterface",
    "TransactionStorageInterface",
    "UserStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "MalformedRowError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryShoppingListStorage",
    "InMemoryTransactionStorage",
    "InMemoryUserStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsShoppingListStorage",
    "GoogleSheetsTransactionStorage",
    "GoogleSheetsUserStorage",
]
