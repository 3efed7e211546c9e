"""
Flow tests

All flows run against in-memory storage. The chat model is replaced
by fakes so no request ever leaves the test process.
"""

import asyncio
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from duo_finance.agents import (
    ChatServiceError,
    FinanceChatAgent,
    MissingApiKeyError,
    welcome_message,
)
from duo_finance.aggregation import CurrencyFormatter, InvalidPeriodError
from duo_finance.audit import AuditLogger
from duo_finance.config import (
    ChatConfig,
    GeminiSettings,
    InMemoryPreferenceStore,
    get_settings,
)
from duo_finance.models import (
    AuditEventType,
    ChatMessage,
    PartnerStatus,
    ShoppingListStatus,
    TransactionStatus,
)
from duo_finance.orchestrator import (
    ChatFlow,
    DashboardFlow,
    PartnerFlow,
    ShoppingFlow,
    TransactionFlow,
    create_app_components,
)
from duo_finance.services.storage import (
    InMemoryAuditStorage,
    InMemoryShoppingListStorage,
    InMemoryTransactionStorage,
    InMemoryUserStorage,
    StorageError,
)
from duo_finance.shopping import BudgetExceededError, NoActiveListError


class FailingTransactionStorage(InMemoryTransactionStorage):
    async def save_transaction(self, transaction):
        raise StorageError("sheet unavailable")

    async def list_transactions(self, user_id):
        raise StorageError("sheet unavailable")


class FakeAgent:
    """Stands in for FinanceChatAgent and records what it was asked."""

    def __init__(self, answer="Tudo certo! 😊", error=None):
        self.answer = answer
        self.error = error
        self.calls = []

    async def reply(self, message, history, system_instruction):
        self.calls.append((message, history, system_instruction))
        if self.error:
            raise self.error
        return self.answer


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeChatSession:
    def __init__(self, history, answer):
        self.history = history
        self.answer = answer
        self.sent = []

    async def send_message_async(self, text):
        self.sent.append(text)
        if isinstance(self.answer, Exception):
            raise self.answer
        return FakeResponse(self.answer)


class FakeModel:
    def __init__(self, system_instruction, answer):
        self.system_instruction = system_instruction
        self.answer = answer
        self.session = None

    def start_chat(self, history):
        self.session = FakeChatSession(history, self.answer)
        return self.session


class StubbedChatAgent(FinanceChatAgent):
    """FinanceChatAgent with the Gemini model swapped for a fake."""

    answer = "Resposta"

    def _create_model(self, system_instruction):
        self.model = FakeModel(system_instruction, self.answer)
        return self.model


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage) -> AuditLogger:
    return AuditLogger(audit_storage)


def _event_types(audit_storage) -> list[AuditEventType]:
    return [e.event_type for e in asyncio.run(audit_storage.get_recent_events())]


class TestTransactionFlow:
    """Adding transactions."""

    def test_regular_transaction_is_completed(self, audit_logger, audit_storage):
        storage = InMemoryTransactionStorage()
        flow = TransactionFlow(storage, audit_logger=audit_logger)

        tx, result = asyncio.run(flow.add_transaction(
            "ana", "Lunch", "-32,50",
            category="Food",
            due_date=date.today() + timedelta(days=3),
        ))

        assert result.is_valid
        assert tx.amount == Decimal("-32.50")
        assert tx.status == TransactionStatus.COMPLETED
        assert tx.due_date is None
        assert asyncio.run(storage.list_transactions("ana")) == [tx]
        assert AuditEventType.TRANSACTION_SAVED in _event_types(audit_storage)

    def test_future_payment_is_pending(self):
        storage = InMemoryTransactionStorage()
        flow = TransactionFlow(storage)
        due = date.today() + timedelta(days=10)

        tx, _ = asyncio.run(flow.add_transaction(
            "ana", "Rent", "-1500", is_future_payment=True, due_date=due,
        ))

        assert tx.status == TransactionStatus.PENDING
        assert tx.due_date == datetime.combine(due, datetime.min.time())
        assert asyncio.run(storage.list_pending_future_payments("ana")) == [tx]

    def test_long_category_is_reported(self):
        storage = InMemoryTransactionStorage()
        flow = TransactionFlow(storage)

        tx, result = asyncio.run(flow.add_transaction(
            "ana", "Lunch", "-10", category="x" * 101,
        ))

        assert tx is None
        assert [i.field for i in result.issues] == ["category"]
        assert asyncio.run(storage.list_transactions("ana")) == []

    def test_invalid_input_saves_nothing(self, audit_logger, audit_storage):
        storage = InMemoryTransactionStorage()
        flow = TransactionFlow(storage, audit_logger=audit_logger)

        tx, result = asyncio.run(flow.add_transaction("ana", "", ""))

        assert tx is None
        assert result.error_count == 2
        assert asyncio.run(storage.list_transactions("ana")) == []
        assert _event_types(audit_storage) == [AuditEventType.TRANSACTION_VALIDATION_FAILED]

    def test_storage_failure_is_audited_and_raised(self, audit_logger, audit_storage):
        flow = TransactionFlow(FailingTransactionStorage(), audit_logger=audit_logger)

        with pytest.raises(StorageError):
            asyncio.run(flow.add_transaction("ana", "Lunch", "-10"))
        assert AuditEventType.EXTERNAL_SERVICE_ERROR in _event_types(audit_storage)


class TestDashboardFlow:
    """Overview for a period."""

    def test_overview(self, now, make_transaction, audit_logger, audit_storage):
        rent = make_transaction(
            -1500, now - timedelta(days=40),
            category="Rent",
            is_future_payment=True,
            due_date=now + timedelta(days=5),
            status=TransactionStatus.PENDING,
        )
        storage = InMemoryTransactionStorage([
            make_transaction(1000, now),
            make_transaction(-250, now, category="Food"),
            make_transaction(-50, now - timedelta(days=8)),
            make_transaction(-999, now, user_id="bia"),
            rent,
        ])
        flow = DashboardFlow(storage, audit_logger=audit_logger, fallback_category="Other")

        overview = asyncio.run(flow.load_overview("ana", "week", now=now))

        assert overview.summary.total_income == Decimal("1000")
        assert overview.summary.total_expenses == Decimal("250")
        assert overview.summary.category_totals == {"Food": Decimal("250")}
        assert len(overview.transactions) == 2
        assert overview.future_payments == [rent]
        assert overview.date_range.end == now
        assert AuditEventType.OVERVIEW_COMPUTED in _event_types(audit_storage)

    def test_month_includes_older_expense(self, now, make_transaction):
        storage = InMemoryTransactionStorage([make_transaction(-50, now - timedelta(days=8))])
        overview = asyncio.run(
            DashboardFlow(storage, fallback_category="Other").load_overview("ana", "month", now=now)
        )
        assert overview.summary.category_totals == {"Other": Decimal("50")}

    def test_unknown_period(self, now):
        flow = DashboardFlow(InMemoryTransactionStorage())
        with pytest.raises(InvalidPeriodError):
            asyncio.run(flow.load_overview("ana", "decade", now=now))


class TestChatFlow:
    """The assistant sees a summary of all transactions."""

    @pytest.fixture
    def storage(self, now, make_transaction):
        return InMemoryTransactionStorage([
            make_transaction(1000, now),
            make_transaction(-250, now, category="Food"),
            make_transaction(-50, now - timedelta(days=400)),
        ])

    def _flow(self, storage, agent, audit_logger=None, preferences=None):
        return ChatFlow(
            storage,
            preferences or InMemoryPreferenceStore(),
            formatter=CurrencyFormatter("en_US", "USD"),
            agent_factory=lambda config: agent,
            audit_logger=audit_logger,
            fallback_category="Other",
        )

    def test_context_covers_every_transaction(self, storage):
        flow = self._flow(storage, FakeAgent())
        context = asyncio.run(flow.build_transactions_context("ana"))

        assert "- Total expenses: $300.00" in context
        assert "- Other: $50.00" in context

    def test_portuguese_context_names_uncategorized_spending(self, storage, monkeypatch):
        monkeypatch.delenv("FORMATTING_FALLBACK_CATEGORY", raising=False)
        get_settings.cache_clear()
        flow = ChatFlow(
            storage,
            InMemoryPreferenceStore(),
            formatter=CurrencyFormatter("pt_BR", "BRL"),
            agent_factory=lambda config: FakeAgent(),
        )

        context = asyncio.run(flow.build_transactions_context("ana"))

        assert "Principais categorias de gastos:" in context
        assert "- Outros: R$" in context
        assert "Other" not in context

    def test_send_message(self, storage, audit_logger, audit_storage):
        agent = FakeAgent(answer="You spent most on Food.")
        flow = self._flow(storage, agent, audit_logger)
        history = [
            welcome_message("en"),
            ChatMessage(text="Hi", is_user=True),
            ChatMessage(text="Hello!", is_user=False),
        ]
        config = ChatConfig(api_key="key", personal_context="We are saving for a car")

        reply = asyncio.run(flow.send_message("ana", "Where does my money go?", history, config))

        assert reply.text == "You spent most on Food."
        assert reply.is_user is False
        message, sent_history, instruction = agent.calls[0]
        assert message == "Where does my money go?"
        assert sent_history == history
        assert "- Current balance: $700.00" in instruction
        assert "We are saving for a car" in instruction
        assert "markdown" in instruction
        assert AuditEventType.CHAT_RESPONSE_GENERATED in _event_types(audit_storage)

    def test_service_error_is_audited_and_raised(self, storage, audit_logger, audit_storage):
        flow = self._flow(storage, FakeAgent(error=ChatServiceError("quota")), audit_logger)

        with pytest.raises(ChatServiceError):
            asyncio.run(flow.send_message("ana", "Hi", [], ChatConfig(api_key="key")))
        assert AuditEventType.EXTERNAL_SERVICE_ERROR in _event_types(audit_storage)

    def test_missing_api_key(self, storage):
        flow = ChatFlow(
            storage,
            InMemoryPreferenceStore(),
            formatter=CurrencyFormatter("en_US", "USD"),
        )
        with pytest.raises(MissingApiKeyError):
            asyncio.run(flow.send_message("ana", "Hi", []))

    def test_save_preferences_keeps_existing_key(self, storage):
        preferences = InMemoryPreferenceStore()
        flow = self._flow(storage, FakeAgent(), preferences=preferences)

        asyncio.run(flow.save_preferences("key-1", "first"))
        config = asyncio.run(flow.save_preferences("", "second"))

        assert config.api_key == "key-1"
        assert flow.load_config() == ChatConfig(api_key="key-1", personal_context="second")


class TestFinanceChatAgent:
    """The Gemini agent with its model stubbed out."""

    def test_requires_api_key(self):
        with pytest.raises(MissingApiKeyError):
            FinanceChatAgent(ChatConfig())

    def test_reply_skips_welcome_message(self):
        agent = StubbedChatAgent(ChatConfig(api_key="test-key"), settings=GeminiSettings())
        history = [
            welcome_message("pt"),
            ChatMessage(text="Oi", is_user=True),
            ChatMessage(text="Olá!", is_user=False),
        ]

        answer = asyncio.run(agent.reply("Quanto gastei?", history, "instruction"))

        assert answer == "Resposta"
        assert agent.model.system_instruction == "instruction"
        assert agent.model.session.history == [
            {"role": "user", "parts": ["Oi"]},
            {"role": "model", "parts": ["Olá!"]},
        ]
        assert agent.model.session.sent == ["Quanto gastei?"]

    def test_failures_become_chat_service_errors(self):
        class Broken(StubbedChatAgent):
            answer = RuntimeError("429 quota exceeded")

        agent = Broken(ChatConfig(api_key="test-key"), settings=GeminiSettings())
        with pytest.raises(ChatServiceError, match="quota"):
            asyncio.run(agent.reply("Oi", [], "instruction"))

    def test_empty_answer_is_an_error(self):
        class Silent(StubbedChatAgent):
            answer = "   "

        agent = Silent(ChatConfig(api_key="test-key"), settings=GeminiSettings())
        with pytest.raises(ChatServiceError):
            asyncio.run(agent.reply("Oi", [], "instruction"))


class TestShoppingFlow:
    """The shared list from creation to expense."""

    @pytest.fixture
    def flow_and_storage(self, audit_logger):
        transactions = InMemoryTransactionStorage()
        flow = ShoppingFlow(
            InMemoryShoppingListStorage(),
            transactions,
            audit_logger=audit_logger,
            category="Compras",
        )
        return flow, transactions

    def test_full_cycle(self, flow_and_storage, audit_storage, now):
        flow, transactions = flow_and_storage

        created, result = asyncio.run(flow.create_list("ana", "Feira", "100"))
        assert result.is_valid and created.is_active

        asyncio.run(flow.add_item("ana", "Banana", "0,50", "12", "un"))
        updated, _ = asyncio.run(flow.add_item("bia", "Queijo", "40", "1", "kg"))
        assert updated.total == Decimal("46.00")

        with pytest.raises(BudgetExceededError):
            asyncio.run(flow.add_item("ana", "Vinho", "80"))
        assert asyncio.run(flow.get_active_list()).total == Decimal("46.00")

        over, _ = asyncio.run(flow.add_item("ana", "Vinho", "80", confirm_over_budget=True))
        wine = over.items[-1]
        after_removal = asyncio.run(flow.remove_item("ana", wine.id))
        assert after_removal.total == Decimal("46.00")

        tx = asyncio.run(flow.finish_shopping("ana", now=now))

        assert tx.amount == Decimal("-46.00")
        assert tx.category == "Compras"
        assert tx.description == "Feira"
        assert tx.detailed_description == "12un Banana, 1kg Queijo"
        assert asyncio.run(transactions.list_transactions("ana")) == [tx]
        assert asyncio.run(flow.get_active_list()) is None

        types = _event_types(audit_storage)
        assert AuditEventType.SHOPPING_BUDGET_EXCEEDED in types
        assert AuditEventType.SHOPPING_LIST_COMPLETED in types

    def test_invalid_list(self, flow_and_storage):
        flow, _ = flow_and_storage
        created, result = asyncio.run(flow.create_list("ana", "", "-5"))
        assert created is None
        assert result.error_count == 2

    def test_only_one_active_list(self, flow_and_storage):
        flow, _ = flow_and_storage
        market, _ = asyncio.run(flow.create_list("ana", "Market", "100"))

        pharmacy, result = asyncio.run(flow.create_list("bia", "Pharmacy", "50"))

        assert pharmacy is None
        assert [i.issue_type for i in result.issues] == ["already_active"]
        assert asyncio.run(flow.get_active_list()).id == market.id

    def test_new_list_after_finishing(self, flow_and_storage):
        flow, _ = flow_and_storage
        asyncio.run(flow.create_list("ana", "Market", "100"))
        asyncio.run(flow.finish_shopping("ana"))

        pharmacy, result = asyncio.run(flow.create_list("bia", "Pharmacy", "50"))

        assert result.is_valid
        assert asyncio.run(flow.get_active_list()).id == pharmacy.id

    def test_long_unit_is_reported(self, flow_and_storage):
        flow, _ = flow_and_storage
        asyncio.run(flow.create_list("ana", "Market", "100"))

        updated, result = asyncio.run(flow.add_item("ana", "Rice", "5", "1", "u" * 21))

        assert updated is None
        assert [i.field for i in result.issues] == ["unit"]
        assert asyncio.run(flow.get_active_list()).items == []

    def test_no_active_list(self, flow_and_storage):
        flow, _ = flow_and_storage
        with pytest.raises(NoActiveListError):
            asyncio.run(flow.add_item("ana", "Milk", "5"))
        with pytest.raises(NoActiveListError):
            asyncio.run(flow.finish_shopping("ana"))

    def test_finished_list_status(self, flow_and_storage):
        flow, _ = flow_and_storage
        created, _ = asyncio.run(flow.create_list("ana", "Feira", "100"))
        asyncio.run(flow.finish_shopping("ana"))
        assert created.status == ShoppingListStatus.ACTIVE  # caller's copy untouched


class TestPartnerFlow:

    def test_invite_sets_pending(self, audit_logger, audit_storage):
        users = InMemoryUserStorage()
        flow = PartnerFlow(users, audit_logger=audit_logger)

        profile, result = asyncio.run(flow.invite_partner("ana", " bia@example.com "))

        assert result.is_valid
        assert profile.partner_email == "bia@example.com"
        assert profile.partner_status == PartnerStatus.PENDING
        assert asyncio.run(users.get_user("ana")).partner_status == PartnerStatus.PENDING
        assert _event_types(audit_storage) == [AuditEventType.PARTNER_INVITED]

    @pytest.mark.parametrize("email", ["", "   ", None, "bia-at-example"])
    def test_invalid_email(self, email):
        users = InMemoryUserStorage()
        profile, result = asyncio.run(PartnerFlow(users).invite_partner("ana", email))

        assert profile is None
        assert not result.is_valid
        assert asyncio.run(users.get_user("ana")) is None


class TestCreateAppComponents:

    def test_in_memory_components(self):
        components = create_app_components(
            use_storage=False,
            preference_store=InMemoryPreferenceStore(),
        )
        assert components.sheets_client is None

        tx, _ = asyncio.run(components.transaction_flow.add_transaction("ana", "Salary", "2000"))
        overview = asyncio.run(components.dashboard_flow.load_overview("ana", "day"))
        assert overview.transactions == [tx]
