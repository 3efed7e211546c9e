"""Services package."""

from duo_finance.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsShoppingListStorage,
    GoogleSheetsTransactionStorage,
    GoogleSheetsUserStorage,
    InMemoryAuditStorage,
    InMemoryShoppingListStorage,
    InMemoryTransactionStorage,
    InMemoryUserStorage,
    NotFoundError,
    ShoppingListStorageInterface,
    StorageError,
    TransactionStorageInterface,
    UserStorageInterface,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsShoppingListStorage",
    "GoogleSheetsTransactionStorage",
    "GoogleSheetsUserStorage",
    "InMemoryAuditStorage",
    "InMemoryShoppingListStorage",
    "InMemoryTransactionStorage",
    "InMemoryUserStorage",
    "NotFoundError",
    "ShoppingListStorageInterface",
    "StorageError",
    "TransactionStorageInterface",
    "UserStorageInterface",
]
