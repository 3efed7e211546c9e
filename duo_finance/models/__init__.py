"""
Data Models Package

This package contains all Pydantic models used in Duo Finance.
All data flowing through the system must conform to these schemas.
"""

from duo_finance.models.shopping import (
    ShoppingItem,
    ShoppingList,
    ShoppingListStatus,
)
from duo_finance.models.transaction import (
    DateRange,
    Period,
    Summary,
    Transaction,
    TransactionStatus,
)
from duo_finance.models.user import (
    ChatMessage,
    PartnerStatus,
    UserProfile,
)
from duo_finance.models.validation import (
    ValidationIssue,
    ValidationResult,
)
from duo_finance.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Transaction models
    "DateRange",
    "Period",
    "Summary",
    "Transaction",
    "TransactionStatus",
    # Shopping models
    "ShoppingItem",
    "ShoppingList",
    "ShoppingListStatus",
    # User / chat models
    "ChatMessage",
    "PartnerStatus",
    "UserProfile",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
