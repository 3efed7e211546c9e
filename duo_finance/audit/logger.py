"""
Audit logging for the finance flows.

Each flow hands its user action a correlation ID and reports what it
wrote through one AuditLogger method per event. Events always reach
structlog; persisting them to audit storage is best-effort, so a broken
audit sheet never fails the action being audited.
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from duo_finance.models.audit import AuditEvent, AuditEventBuilder
from duo_finance.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Writes audit events to structlog and, when configured, to audit storage.
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        self._storage = storage
        self._logger = structlog.get_logger("duo_finance.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Record one event.

        Returns False only when a storage write was attempted and failed.
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transaction_saved(
        self,
        user_id: str,
        transaction_id: UUID,
        amount: str,
        is_future_payment: bool,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_saved(
            user_id=user_id,
            transaction_id=transaction_id,
            amount=amount,
            is_future_payment=is_future_payment,
            correlation_id=correlation_id,
        ))

    async def log_transaction_validation_failed(
        self,
        user_id: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_validation_failed(
            user_id=user_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_overview_computed(
        self,
        user_id: str,
        period: str,
        transaction_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.overview_computed(
            user_id=user_id,
            period=period,
            transaction_count=transaction_count,
            correlation_id=correlation_id,
        ))

    async def log_chat_context_built(
        self,
        user_id: str,
        transaction_count: int,
        category_count: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.chat_context_built(
            user_id=user_id,
            transaction_count=transaction_count,
            category_count=category_count,
            correlation_id=correlation_id,
        ))

    async def log_chat_response(
        self,
        user_id: str,
        history_length: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.chat_response_generated(
            user_id=user_id,
            history_length=history_length,
            correlation_id=correlation_id,
        ))

    async def log_preferences_saved(
        self,
        api_key_set: bool,
        context_length: int,
    ) -> None:
        await self.log(AuditEventBuilder.preferences_saved(
            api_key_set=api_key_set,
            context_length=context_length,
        ))

    async def log_shopping_list_created(
        self,
        user_id: str,
        list_id: UUID,
        title: str,
        budget: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.shopping_list_created(
            user_id=user_id,
            list_id=list_id,
            title=title,
            budget=budget,
            correlation_id=correlation_id,
        ))

    async def log_shopping_item_added(
        self,
        user_id: str,
        list_id: UUID,
        item_name: str,
        new_total: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.shopping_item_added(
            user_id=user_id,
            list_id=list_id,
            item_name=item_name,
            new_total=new_total,
            correlation_id=correlation_id,
        ))

    async def log_shopping_item_removed(
        self,
        user_id: str,
        list_id: UUID,
        item_name: str,
        new_total: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.shopping_item_removed(
            user_id=user_id,
            list_id=list_id,
            item_name=item_name,
            new_total=new_total,
            correlation_id=correlation_id,
        ))

    async def log_shopping_budget_exceeded(
        self,
        user_id: str,
        list_id: UUID,
        budget: str,
        total: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.shopping_budget_exceeded(
            user_id=user_id,
            list_id=list_id,
            budget=budget,
            total=total,
            correlation_id=correlation_id,
        ))

    async def log_shopping_list_completed(
        self,
        user_id: str,
        list_id: UUID,
        transaction_id: UUID,
        total: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.shopping_list_completed(
            user_id=user_id,
            list_id=list_id,
            transaction_id=transaction_id,
            total=total,
            correlation_id=correlation_id,
        ))

    async def log_partner_invited(
        self,
        user_id: str,
        partner_email: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.partner_invited(
            user_id=user_id,
            partner_email=partner_email,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: UUID,
        user_id: Optional[str] = None,
    ) -> None:
        """Gemini or Sheets call failed."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
            user_id=user_id,
        ))


def create_correlation_id() -> UUID:
    """One per user action; every event the action emits carries it."""
    return uuid4()
