"""
Audit Models for Duo Finance

Two people edit the same finances, so every write (and every call out
to the assistant) leaves an event behind saying who did what, to which
record, as part of which user action.

Events are append-only: nothing in the app updates or deletes them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_SAVED = "transaction_saved"
    TRANSACTION_VALIDATION_FAILED = "transaction_validation_failed"

    # Aggregation
    OVERVIEW_COMPUTED = "overview_computed"

    # Assistant
    CHAT_CONTEXT_BUILT = "chat_context_built"
    CHAT_RESPONSE_GENERATED = "chat_response_generated"
    PREFERENCES_SAVED = "preferences_saved"

    # Shopping
    SHOPPING_LIST_CREATED = "shopping_list_created"
    SHOPPING_ITEM_ADDED = "shopping_item_added"
    SHOPPING_ITEM_REMOVED = "shopping_item_removed"
    SHOPPING_BUDGET_EXCEEDED = "shopping_budget_exceeded"
    SHOPPING_LIST_COMPLETED = "shopping_list_completed"

    # Partner
    PARTNER_INVITED = "partner_invited"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    One thing that happened.

    Events of a single user action share a correlation_id.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Event ID"
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When it happened, timezone-aware UTC"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Who acted
    user_id: Optional[str] = Field(
        default=None,
        description="User that triggered the event, if any"
    )

    # Subject
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'shopping_list')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the transaction, list or profile involved"
    )

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one chat turn)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="One-line summary for the audit sheet"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Structured payload, serialized as JSON in the sheet"
    )

    # Failures only
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="True when a person, not the system, caused it"
    )

    def to_log_dict(self) -> dict:
        """
        Flat dict for structlog.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Row for the audit sheet, in AUDIT_COLUMNS order.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, user_id, entity_type,
         entity_id, correlation_id, description, details_json,
         error_message, is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.user_id or "",
            self.entity_type or "",
            str(self.entity_id) if self.entity_id else "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Shortcuts for the events the flows emit.

    Usage:
        event = AuditEventBuilder.transaction_saved(user_id, txn_id, amount, correlation_id)
    """

    @staticmethod
    def transaction_saved(
        user_id: str,
        transaction_id: UUID,
        amount: str,
        is_future_payment: bool,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_SAVED,
            user_id=user_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction saved: {amount}",
            details={
                "amount": amount,
                "is_future_payment": is_future_payment,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_validation_failed(
        user_id: str,
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="transaction",
            correlation_id=correlation_id,
            description=f"Transaction rejected with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def overview_computed(
        user_id: str,
        period: str,
        transaction_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.OVERVIEW_COMPUTED,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            entity_type="summary",
            correlation_id=correlation_id,
            description=f"Overview for '{period}' covered {transaction_count} transactions",
            details={
                "period": period,
                "transaction_count": transaction_count,
            },
        )

    @staticmethod
    def chat_context_built(
        user_id: str,
        transaction_count: int,
        category_count: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CHAT_CONTEXT_BUILT,
            severity=AuditSeverity.DEBUG,
            user_id=user_id,
            entity_type="chat",
            correlation_id=correlation_id,
            description="Transaction context prepared for the assistant",
            details={
                "transaction_count": transaction_count,
                "category_count": category_count,
            },
        )

    @staticmethod
    def chat_response_generated(
        user_id: str,
        history_length: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CHAT_RESPONSE_GENERATED,
            user_id=user_id,
            entity_type="chat",
            correlation_id=correlation_id,
            description="Assistant answered a message",
            details={"history_length": history_length},
            is_user_action=True,
        )

    @staticmethod
    def preferences_saved(
        api_key_set: bool,
        context_length: int,
    ) -> AuditEvent:
        # Never log the key itself
        return AuditEvent(
            event_type=AuditEventType.PREFERENCES_SAVED,
            entity_type="preferences",
            description="Chat preferences saved",
            details={
                "api_key_set": api_key_set,
                "context_length": context_length,
            },
            is_user_action=True,
        )

    @staticmethod
    def shopping_list_created(
        user_id: str,
        list_id: UUID,
        title: str,
        budget: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHOPPING_LIST_CREATED,
            user_id=user_id,
            entity_type="shopping_list",
            entity_id=list_id,
            correlation_id=correlation_id,
            description=f"Shopping list created: {title}",
            details={"title": title, "budget": budget},
            is_user_action=True,
        )

    @staticmethod
    def shopping_item_added(
        user_id: str,
        list_id: UUID,
        item_name: str,
        new_total: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHOPPING_ITEM_ADDED,
            user_id=user_id,
            entity_type="shopping_list",
            entity_id=list_id,
            correlation_id=correlation_id,
            description=f"Item added: {item_name}",
            details={"item": item_name, "total": new_total},
            is_user_action=True,
        )

    @staticmethod
    def shopping_item_removed(
        user_id: str,
        list_id: UUID,
        item_name: str,
        new_total: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHOPPING_ITEM_REMOVED,
            user_id=user_id,
            entity_type="shopping_list",
            entity_id=list_id,
            correlation_id=correlation_id,
            description=f"Item removed: {item_name}",
            details={"item": item_name, "total": new_total},
            is_user_action=True,
        )

    @staticmethod
    def shopping_budget_exceeded(
        user_id: str,
        list_id: UUID,
        budget: str,
        total: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHOPPING_BUDGET_EXCEEDED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="shopping_list",
            entity_id=list_id,
            correlation_id=correlation_id,
            description="Shopping list total exceeds its budget",
            details={"budget": budget, "total": total},
            is_user_action=True,
        )

    @staticmethod
    def shopping_list_completed(
        user_id: str,
        list_id: UUID,
        transaction_id: UUID,
        total: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SHOPPING_LIST_COMPLETED,
            user_id=user_id,
            entity_type="shopping_list",
            entity_id=list_id,
            correlation_id=correlation_id,
            description=f"Shopping finished: {total}",
            details={
                "transaction_id": str(transaction_id),
                "total": total,
            },
            is_user_action=True,
        )

    @staticmethod
    def partner_invited(
        user_id: str,
        partner_email: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PARTNER_INVITED,
            user_id=user_id,
            entity_type="user",
            correlation_id=correlation_id,
            description="Partner invitation sent",
            details={"partner_email": partner_email},
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
