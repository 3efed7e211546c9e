"""
Main Orchestrator for Duo Finance

This module ties together all the components and defines the
end-to-end flows for:
1. Adding a transaction (input → validate → save)
2. Dashboard overview (load → filter by period → summarize)
3. Assistant chat (load all → summarize → format → ask the model)
4. Shared shopping list (create → add/remove items → finish as expense)
5. Partner invitation

DESIGN DECISION: The orchestrator enforces the boundaries:
- Every flow is told which user it acts for; there is no ambient session
- Nothing is saved unless validation passes
- Every step is audited
- Errors from storage and the AI service are audited, then re-raised
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional, Union
from uuid import UUID

import structlog
from pydantic import ValidationError

from duo_finance.agents import (
    ChatServiceError,
    FinanceChatAgent,
    build_system_instruction,
)
from duo_finance.aggregation import (
    CurrencyFormatter,
    fallback_category_for,
    filter_by_period,
    format_summary,
    parse_period,
    resolve_period,
    summarize,
)
from duo_finance.aggregation.formatting import labels_for
from duo_finance.audit import AuditLogger, create_correlation_id
from duo_finance.config import (
    ChatConfig,
    JsonFilePreferenceStore,
    PreferenceStore,
    get_settings,
)
from duo_finance.models import (
    ChatMessage,
    DateRange,
    PartnerStatus,
    Period,
    ShoppingItem,
    ShoppingList,
    Summary,
    Transaction,
    TransactionStatus,
    UserProfile,
    ValidationIssue,
    ValidationResult,
)
from duo_finance.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsShoppingListStorage,
    GoogleSheetsTransactionStorage,
    GoogleSheetsUserStorage,
    InMemoryShoppingListStorage,
    InMemoryTransactionStorage,
    InMemoryUserStorage,
    ShoppingListStorageInterface,
    TransactionStorageInterface,
    UserStorageInterface,
)
from duo_finance.shopping import (
    BudgetExceededError,
    NoActiveListError,
    add_item,
    build_purchase_transaction,
    complete,
    remove_item,
)
from duo_finance.validation import (
    ShoppingValidator,
    TransactionValidator,
    parse_amount,
)

logger = structlog.get_logger("duo_finance.orchestrator")


def _issue_dicts(result: ValidationResult) -> list[dict]:
    return [
        {"field": i.field, "type": i.issue_type, "message": i.message}
        for i in result.issues
    ]


class TransactionFlow:
    """
    Orchestrates adding a transaction.

    Future payments are saved as PENDING with their due date; everything
    else is COMPLETED and carries no due date.
    """

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        validator: Optional[TransactionValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = transaction_storage
        self._validator = validator or TransactionValidator()
        self._audit_logger = audit_logger

    async def add_transaction(
        self,
        user_id: str,
        description: Optional[str],
        amount: Union[str, Decimal, int, float, None],
        category: Optional[str] = None,
        is_future_payment: bool = False,
        due_date: Optional[Union[date, datetime]] = None,
        when: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[Transaction], ValidationResult]:
        """
        Validate and save a transaction.

        Returns:
            (transaction, validation_result)

        transaction is None when validation failed; nothing was saved.
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate(
            description=description,
            amount=amount,
            is_future_payment=is_future_payment,
            due_date=due_date,
            category=category,
        )

        if not result.is_valid:
            if self._audit_logger:
                await self._audit_logger.log_transaction_validation_failed(
                    user_id=user_id,
                    issues=_issue_dicts(result),
                    correlation_id=correlation_id,
                )
            return None, result

        if is_future_payment and not isinstance(due_date, datetime):
            due_date = datetime.combine(due_date, datetime.min.time())

        now = datetime.now()
        transaction = Transaction(
            user_id=user_id,
            description=description,
            amount=parse_amount(amount),
            category=category.strip() if category and category.strip() else None,
            date=when or now,
            is_future_payment=is_future_payment,
            due_date=due_date if is_future_payment else None,
            status=(
                TransactionStatus.PENDING if is_future_payment
                else TransactionStatus.COMPLETED
            ),
            created_at=now,
        )

        try:
            await self._storage.save_transaction(transaction)
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="storage",
                    error_message=str(e),
                    correlation_id=correlation_id,
                    user_id=user_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_transaction_saved(
                user_id=user_id,
                transaction_id=transaction.id,
                amount=str(transaction.amount),
                is_future_payment=is_future_payment,
                correlation_id=correlation_id,
            )

        return transaction, result


@dataclass
class Overview:
    """Everything the dashboard and transaction list show for one period."""
    period: Period
    date_range: DateRange
    transactions: list[Transaction]
    summary: Summary
    future_payments: list[Transaction] = field(default_factory=list)


class DashboardFlow:
    """
    Orchestrates the dashboard / transaction list.

    Recomputed on every call; callers ask again when the period or
    the underlying transactions change.
    """

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        fallback_category: Optional[str] = None,
    ):
        self._storage = transaction_storage
        self._audit_logger = audit_logger
        self._fallback_category = (
            fallback_category or fallback_category_for(get_settings().formatting)
        )

    async def load_overview(
        self,
        user_id: str,
        period: Union[str, Period, None] = None,
        now: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Overview:
        """
        Load, filter and summarize a user's transactions.

        Raises:
            InvalidPeriodError: If period is not day/week/month/year
            MalformedTransactionError: If a stored record is unusable
        """
        correlation_id = correlation_id or create_correlation_id()
        selected = parse_period(period or get_settings().app.default_period)
        date_range = resolve_period(selected, now=now)

        try:
            transactions = await self._storage.list_transactions(user_id)
            future_payments = await self._storage.list_pending_future_payments(user_id)
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="storage",
                    error_message=str(e),
                    correlation_id=correlation_id,
                    user_id=user_id,
                )
            raise

        in_period = filter_by_period(transactions, date_range)
        summary = summarize(in_period, fallback_category=self._fallback_category)

        if self._audit_logger:
            await self._audit_logger.log_overview_computed(
                user_id=user_id,
                period=selected.value,
                transaction_count=summary.transaction_count,
                correlation_id=correlation_id,
            )

        return Overview(
            period=selected,
            date_range=date_range,
            transactions=in_period,
            summary=summary,
            future_payments=future_payments,
        )


class ChatFlow:
    """
    Orchestrates the assistant chat.

    The context is built from ALL of the user's transactions; the chat
    does not apply a period. The model only ever sees the formatted
    summary, never the records themselves.
    """

    def __init__(
        self,
        transaction_storage: TransactionStorageInterface,
        preference_store: PreferenceStore,
        formatter: Optional[CurrencyFormatter] = None,
        agent_factory: Callable[[ChatConfig], FinanceChatAgent] = FinanceChatAgent,
        audit_logger: Optional[AuditLogger] = None,
        fallback_category: Optional[str] = None,
    ):
        self._storage = transaction_storage
        self._preferences = preference_store
        self._formatter = formatter or CurrencyFormatter.from_settings(
            get_settings().formatting
        )
        self._agent_factory = agent_factory
        self._audit_logger = audit_logger
        self._fallback_category = (
            fallback_category
            or get_settings().formatting.fallback_category
            or labels_for(self._formatter.language).uncategorized
        )

    def load_config(self) -> ChatConfig:
        return ChatConfig.load(self._preferences)

    async def save_preferences(
        self,
        api_key: Optional[str],
        personal_context: str = "",
    ) -> ChatConfig:
        """Persist the API key (if given) and the personal context."""
        current = self.load_config()
        config = ChatConfig(
            api_key=api_key if api_key and api_key.strip() else current.api_key,
            personal_context=personal_context,
        )
        config.save(self._preferences)

        if self._audit_logger:
            await self._audit_logger.log_preferences_saved(
                api_key_set=config.has_api_key,
                context_length=len(config.personal_context),
            )
        return config

    async def build_transactions_context(
        self,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> str:
        """Summary text for every transaction the user owns."""
        correlation_id = correlation_id or create_correlation_id()

        try:
            transactions = await self._storage.list_transactions(user_id)
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="storage",
                    error_message=str(e),
                    correlation_id=correlation_id,
                    user_id=user_id,
                )
            raise

        summary = summarize(transactions, fallback_category=self._fallback_category)
        context = format_summary(summary, self._formatter)

        if self._audit_logger:
            await self._audit_logger.log_chat_context_built(
                user_id=user_id,
                transaction_count=summary.transaction_count,
                category_count=len(summary.category_totals),
                correlation_id=correlation_id,
            )
        return context

    async def send_message(
        self,
        user_id: str,
        text: str,
        history: list[ChatMessage],
        config: Optional[ChatConfig] = None,
        correlation_id: Optional[UUID] = None,
    ) -> ChatMessage:
        """
        Ask the assistant and return its reply as a ChatMessage.

        Raises:
            MissingApiKeyError: If no API key is configured
            ChatServiceError: If the model fails to answer
        """
        correlation_id = correlation_id or create_correlation_id()
        config = config or self.load_config()

        agent = self._agent_factory(config)
        context = await self.build_transactions_context(user_id, correlation_id)
        instruction = build_system_instruction(
            transactions_context=context,
            personal_context=config.personal_context,
            language=self._formatter.language,
        )

        try:
            answer = await agent.reply(text, history, instruction)
        except ChatServiceError as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="gemini",
                    error_message=str(e),
                    correlation_id=correlation_id,
                    user_id=user_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_chat_response(
                user_id=user_id,
                history_length=len(history),
                correlation_id=correlation_id,
            )
        return ChatMessage(text=answer, is_user=False)


class ShoppingFlow:
    """
    Orchestrates the shared shopping list.

    At most one list is active at a time and both partners work on it.
    Going over budget is allowed only when the caller confirms.
    """

    def __init__(
        self,
        shopping_storage: ShoppingListStorageInterface,
        transaction_storage: TransactionStorageInterface,
        validator: Optional[ShoppingValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        category: Optional[str] = None,
    ):
        self._lists = shopping_storage
        self._transactions = transaction_storage
        self._validator = validator or ShoppingValidator()
        self._audit_logger = audit_logger
        self._category = category or get_settings().formatting.shopping_category

    async def get_active_list(self) -> Optional[ShoppingList]:
        return await self._lists.get_active_list()

    async def _require_active_list(self) -> ShoppingList:
        shopping_list = await self._lists.get_active_list()
        if shopping_list is None:
            raise NoActiveListError("No active shopping list")
        return shopping_list

    async def create_list(
        self,
        user_id: str,
        title: Optional[str],
        budget: Union[str, Decimal, int, float, None],
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[ShoppingList], ValidationResult]:
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_list(title, budget)
        if not result.is_valid:
            return None, result

        active = await self._lists.get_active_list()
        if active is not None:
            result.issues.append(ValidationIssue(
                field="title",
                issue_type="already_active",
                message=f'"{active.title}" is still open',
                severity="error",
                suggested_fix="Finish the current list before starting a new one",
            ))
            return None, result

        shopping_list = ShoppingList(
            title=title,
            budget=parse_amount(budget),
            created_by=user_id,
        )
        await self._lists.create_list(shopping_list)

        if self._audit_logger:
            await self._audit_logger.log_shopping_list_created(
                user_id=user_id,
                list_id=shopping_list.id,
                title=shopping_list.title,
                budget=str(shopping_list.budget),
                correlation_id=correlation_id,
            )
        return shopping_list, result

    async def add_item(
        self,
        user_id: str,
        name: Optional[str],
        price: Union[str, Decimal, int, float, None],
        quantity: Union[str, Decimal, int, float, None] = 1,
        unit: str = "un",
        confirm_over_budget: bool = False,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[ShoppingList], ValidationResult]:
        """
        Add an item to the active list.

        Raises:
            NoActiveListError: If there is no active list
            BudgetExceededError: If the item breaks the budget and
                confirm_over_budget is False; nothing is saved
        """
        correlation_id = correlation_id or create_correlation_id()

        result = self._validator.validate_item(name, price, quantity, unit)
        if not result.is_valid:
            return None, result

        shopping_list = await self._require_active_list()
        item = ShoppingItem(
            name=name,
            price=parse_amount(price),
            quantity=parse_amount(quantity),
            unit=unit,
        )

        try:
            updated = add_item(shopping_list, item, confirm_over_budget)
        except BudgetExceededError as e:
            if self._audit_logger:
                await self._audit_logger.log_shopping_budget_exceeded(
                    user_id=user_id,
                    list_id=shopping_list.id,
                    budget=str(e.budget),
                    total=str(e.new_total),
                    correlation_id=correlation_id,
                )
            raise

        await self._lists.update_list(updated)

        if self._audit_logger:
            await self._audit_logger.log_shopping_item_added(
                user_id=user_id,
                list_id=updated.id,
                item_name=item.name,
                new_total=str(updated.total),
                correlation_id=correlation_id,
            )
        return updated, result

    async def remove_item(
        self,
        user_id: str,
        item_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> ShoppingList:
        correlation_id = correlation_id or create_correlation_id()

        shopping_list = await self._require_active_list()
        updated, removed = remove_item(shopping_list, item_id)
        await self._lists.update_list(updated)

        if self._audit_logger:
            await self._audit_logger.log_shopping_item_removed(
                user_id=user_id,
                list_id=updated.id,
                item_name=removed.name,
                new_total=str(updated.total),
                correlation_id=correlation_id,
            )
        return updated

    async def finish_shopping(
        self,
        user_id: str,
        now: Optional[datetime] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Record the active list as an expense and close it.

        The expense is saved first; the list is only marked completed
        once the transaction exists.
        """
        correlation_id = correlation_id or create_correlation_id()

        shopping_list = await self._require_active_list()
        transaction = build_purchase_transaction(
            shopping_list,
            user_id=user_id,
            category=self._category,
            now=now,
        )

        try:
            await self._transactions.save_transaction(transaction)
            await self._lists.update_list(complete(shopping_list))
        except Exception as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="storage",
                    error_message=str(e),
                    correlation_id=correlation_id,
                    user_id=user_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_shopping_list_completed(
                user_id=user_id,
                list_id=shopping_list.id,
                transaction_id=transaction.id,
                total=str(shopping_list.total),
                correlation_id=correlation_id,
            )
        return transaction


class PartnerFlow:
    """Orchestrates inviting a partner to share finances."""

    def __init__(
        self,
        user_storage: UserStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._users = user_storage
        self._audit_logger = audit_logger

    async def invite_partner(
        self,
        user_id: str,
        partner_email: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Optional[UserProfile], ValidationResult]:
        """Store the partner's e-mail on the profile with a pending status."""
        correlation_id = correlation_id or create_correlation_id()

        if partner_email is None or not partner_email.strip():
            return None, ValidationResult(issues=[ValidationIssue(
                field="partner_email",
                issue_type="missing",
                message="Partner e-mail is required",
                severity="error",
            )])

        profile = await self._users.get_user(user_id) or UserProfile(user_id=user_id)
        try:
            updated = UserProfile.model_validate({
                **profile.model_dump(),
                "partner_email": partner_email,
                "partner_status": PartnerStatus.PENDING,
                "updated_at": datetime.now(),
            })
        except ValidationError:
            return None, ValidationResult(issues=[ValidationIssue(
                field="partner_email",
                issue_type="invalid_value",
                message=f"{partner_email.strip()!r} is not a valid e-mail address",
                severity="error",
                suggested_fix="Check the address for typos",
            )])

        await self._users.save_user(updated)

        if self._audit_logger:
            await self._audit_logger.log_partner_invited(
                user_id=user_id,
                partner_email=updated.partner_email,
                correlation_id=correlation_id,
            )
        return updated, ValidationResult()


@dataclass
class AppComponents:
    transaction_flow: TransactionFlow
    dashboard_flow: DashboardFlow
    chat_flow: ChatFlow
    shopping_flow: ShoppingFlow
    partner_flow: PartnerFlow
    sheets_client: Optional[GoogleSheetsClient] = None


def create_app_components(
    use_storage: bool = True,
    preference_store: Optional[PreferenceStore] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to run on in-memory storage.
        preference_store: Where chat preferences live. Defaults to the
                    JSON file named in the app settings.
    """
    settings = get_settings()
    sheets_client = None

    transaction_storage: TransactionStorageInterface = InMemoryTransactionStorage()
    shopping_storage: ShoppingListStorageInterface = InMemoryShoppingListStorage()
    user_storage: UserStorageInterface = InMemoryUserStorage()
    audit_logger = AuditLogger()  # Local-only logging

    if use_storage:
        try:
            client = GoogleSheetsClient()
            client.connect()
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
        else:
            sheets_client = client
            transaction_storage = GoogleSheetsTransactionStorage(client)
            shopping_storage = GoogleSheetsShoppingListStorage(client)
            user_storage = GoogleSheetsUserStorage(client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(client))

    preference_store = preference_store or JsonFilePreferenceStore(
        settings.app.preferences_path
    )

    return AppComponents(
        transaction_flow=TransactionFlow(
            transaction_storage,
            audit_logger=audit_logger,
        ),
        dashboard_flow=DashboardFlow(
            transaction_storage,
            audit_logger=audit_logger,
        ),
        chat_flow=ChatFlow(
            transaction_storage,
            preference_store,
            audit_logger=audit_logger,
        ),
        shopping_flow=ShoppingFlow(
            shopping_storage,
            transaction_storage,
            audit_logger=audit_logger,
        ),
        partner_flow=PartnerFlow(
            user_storage,
            audit_logger=audit_logger,
        ),
        sheets_client=sheets_client,
    )
