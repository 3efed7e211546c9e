"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the remote store because:
1. Both partners can view the shared data directly in Sheets
2. No database setup required
3. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (we're fine for a household)
- No transactions (we handle this with careful ordering)
- Limited query capabilities (we filter in Python, by user only)

The implementation follows the abstract interface, so the store can be
swapped without changing business logic.
"""

import json
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from duo_finance.aggregation.filters import pending_future_payments
from duo_finance.config import get_settings
from duo_finance.models.audit import AuditEvent, AuditEventType, AuditSeverity
from duo_finance.models.shopping import ShoppingItem, ShoppingList, ShoppingListStatus
from duo_finance.models.transaction import Transaction, TransactionStatus
from duo_finance.models.user import PartnerStatus, UserProfile
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


TRANSACTION_COLUMNS = [
    "id",
    "user_id",
    "description",
    "amount",
    "category",
    "date",
    "is_future_payment",
    "due_date",
    "status",
    "created_at",
    "detailed_description",
    "items_json",
]

SHOPPING_LIST_COLUMNS = [
    "id",
    "title",
    "budget",
    "total",
    "status",
    "created_by",
    "created_at",
    "items_json",
]

USER_COLUMNS = [
    "user_id",
    "email",
    "partner_email",
    "partner_status",
    "updated_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "user_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]

# Duplicates, missing rows and bad data are answers, not transient failures
_sheets_retry = retry(
    retry=retry_if_not_exception_type((DuplicateError, NotFoundError, MalformedRowError)),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


def _cell(row: list, index: int, default: str = "") -> str:
    """Read a cell, tolerating short rows."""
    try:
        return row[index] if row[index] else default
    except IndexError:
        return default


def _items_to_json(items: list[ShoppingItem]) -> str:
    return json.dumps([item.model_dump(mode="json") for item in items])


def _items_from_json(raw: str) -> list[ShoppingItem]:
    if not raw:
        return []
    return [ShoppingItem(**item) for item in json.loads(raw)]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @_sheets_retry
    def connect(self) -> gspread.Client:
        """Authorize once with the service account and reuse the client."""
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        """Get a worksheet, creating it with a header row if missing."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(
            self._settings.transactions_sheet_name,
            TRANSACTION_COLUMNS,
        )

    def get_shopping_lists_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(
            self._settings.shopping_lists_sheet_name,
            SHOPPING_LIST_COLUMNS,
        )

    def get_users_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(
            self._settings.users_sheet_name,
            USER_COLUMNS,
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self.get_worksheet(
            self._settings.audit_sheet_name,
            AUDIT_COLUMNS,
            rows=5000,  # More rows for audit log
        )


class GoogleSheetsTransactionStorage(TransactionStorageInterface):
    """
    Google Sheets implementation of transaction storage.

    One transaction per row. Shopping items are JSON-serialized.
    A row that cannot be parsed fails the read rather than being skipped,
    because dropping a row would silently change every total.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _transaction_to_row(self, transaction: Transaction) -> list:
        """Convert a Transaction to a spreadsheet row."""
        return [
            str(transaction.id),
            transaction.user_id,
            transaction.description,
            str(transaction.amount),
            transaction.category or "",
            transaction.date.isoformat(),
            str(transaction.is_future_payment),
            transaction.due_date.isoformat() if transaction.due_date else "",
            transaction.status.value,
            transaction.created_at.isoformat(),
            transaction.detailed_description or "",
            _items_to_json(transaction.items) if transaction.items else "",
        ]

    def _row_to_transaction(self, row: list) -> Transaction:
        """Convert a spreadsheet row to a Transaction."""
        due_date = _cell(row, 7)
        return Transaction(
            id=UUID(_cell(row, 0)),
            user_id=_cell(row, 1),
            description=_cell(row, 2),
            amount=Decimal(_cell(row, 3)),
            category=_cell(row, 4) or None,
            date=datetime.fromisoformat(_cell(row, 5)),
            is_future_payment=_cell(row, 6).lower() == "true",
            due_date=datetime.fromisoformat(due_date) if due_date else None,
            status=TransactionStatus(_cell(row, 8, TransactionStatus.COMPLETED.value)),
            created_at=datetime.fromisoformat(_cell(row, 9)),
            detailed_description=_cell(row, 10) or None,
            items=_items_from_json(_cell(row, 11)),
        )

    def _user_rows(self, user_id: str) -> list[Transaction]:
        sheet = self._client.get_transactions_sheet()
        all_rows = sheet.get_all_values()[1:]  # Skip header

        transactions = []
        for row_number, row in enumerate(all_rows, start=2):
            if not row or not row[0]:  # Skip empty rows
                continue
            if _cell(row, 1) != user_id:
                continue
            try:
                transactions.append(self._row_to_transaction(row))
            except Exception as e:
                raise MalformedRowError(
                    f"Malformed transaction in row {row_number}: {e}"
                ) from e
        return transactions

    @_sheets_retry
    async def save_transaction(self, transaction: Transaction) -> bool:
        """Append a transaction row."""
        try:
            sheet = self._client.get_transactions_sheet()
            ids = sheet.col_values(1)[1:]
            if str(transaction.id) in ids:
                raise DuplicateError(f"Transaction already exists: {transaction.id}")
            sheet.append_row(self._transaction_to_row(transaction), value_input_option="RAW")
            return True
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}")

    async def get_transaction(self, transaction_id: UUID) -> Optional[Transaction]:
        try:
            sheet = self._client.get_transactions_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == str(transaction_id):
                    return self._row_to_transaction(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get transaction: {e}")

    @_sheets_retry
    async def list_transactions(self, user_id: str) -> list[Transaction]:
        try:
            return self._user_rows(user_id)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}")

    async def list_pending_future_payments(self, user_id: str) -> list[Transaction]:
        return pending_future_payments(await self.list_transactions(user_id))

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        try:
            sheet = self._client.get_transactions_sheet()
            all_rows = sheet.get_all_values()

            for idx, row in enumerate(all_rows[1:], start=2):  # Row 1 is header
                if row and row[0] == str(transaction_id):
                    sheet.delete_rows(idx)
                    return True

            return False
        except Exception as e:
            raise StorageError(f"Failed to delete transaction: {e}")


class GoogleSheetsShoppingListStorage(ShoppingListStorageInterface):
    """Shopping lists, one per row, with items JSON-serialized."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _list_to_row(self, shopping_list: ShoppingList) -> list:
        return [
            str(shopping_list.id),
            shopping_list.title,
            str(shopping_list.budget),
            str(shopping_list.total),
            shopping_list.status.value,
            shopping_list.created_by,
            shopping_list.created_at.isoformat(),
            _items_to_json(shopping_list.items),
        ]

    def _row_to_list(self, row: list) -> ShoppingList:
        return ShoppingList(
            id=UUID(_cell(row, 0)),
            title=_cell(row, 1),
            budget=Decimal(_cell(row, 2)),
            total=Decimal(_cell(row, 3, "0")),
            status=ShoppingListStatus(_cell(row, 4)),
            created_by=_cell(row, 5),
            created_at=datetime.fromisoformat(_cell(row, 6)),
            items=_items_from_json(_cell(row, 7)),
        )

    @_sheets_retry
    async def create_list(self, shopping_list: ShoppingList) -> bool:
        try:
            sheet = self._client.get_shopping_lists_sheet()
            sheet.append_row(self._list_to_row(shopping_list), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to create shopping list: {e}")

    async def get_active_list(self) -> Optional[ShoppingList]:
        try:
            sheet = self._client.get_shopping_lists_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] and _cell(row, 4) == ShoppingListStatus.ACTIVE.value:
                    return self._row_to_list(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to read shopping lists: {e}")

    @_sheets_retry
    async def update_list(self, shopping_list: ShoppingList) -> bool:
        try:
            sheet = self._client.get_shopping_lists_sheet()
            all_rows = sheet.get_all_values()

            for idx, row in enumerate(all_rows[1:], start=2):
                if row and row[0] == str(shopping_list.id):
                    sheet.update(
                        range_name=f"A{idx}",
                        values=[self._list_to_row(shopping_list)],
                        value_input_option="RAW",
                    )
                    return True

            raise NotFoundError(f"Shopping list not found: {shopping_list.id}")
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update shopping list: {e}")


class GoogleSheetsUserStorage(UserStorageInterface):
    """User profiles keyed by user_id."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _profile_to_row(self, profile: UserProfile) -> list:
        return [
            profile.user_id,
            profile.email or "",
            profile.partner_email or "",
            profile.partner_status.value,
            profile.updated_at.isoformat(),
        ]

    def _row_to_profile(self, row: list) -> UserProfile:
        return UserProfile(
            user_id=_cell(row, 0),
            email=_cell(row, 1) or None,
            partner_email=_cell(row, 2) or None,
            partner_status=PartnerStatus(_cell(row, 3, PartnerStatus.NONE.value)),
            updated_at=datetime.fromisoformat(_cell(row, 4)),
        )

    async def get_user(self, user_id: str) -> Optional[UserProfile]:
        try:
            sheet = self._client.get_users_sheet()
            for row in sheet.get_all_values()[1:]:
                if row and row[0] == user_id:
                    return self._row_to_profile(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get user: {e}")

    @_sheets_retry
    async def save_user(self, profile: UserProfile) -> bool:
        try:
            sheet = self._client.get_users_sheet()
            all_rows = sheet.get_all_values()
            new_row = self._profile_to_row(profile)

            for idx, row in enumerate(all_rows[1:], start=2):
                if row and row[0] == profile.user_id:
                    sheet.update(
                        range_name=f"A{idx}",
                        values=[new_row],
                        value_input_option="RAW",
                    )
                    return True

            sheet.append_row(new_row, value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to save user: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        return AuditEvent(
            event_id=UUID(_cell(row, 0)),
            timestamp=datetime.fromisoformat(_cell(row, 1)),
            event_type=AuditEventType(_cell(row, 2)),
            severity=AuditSeverity(_cell(row, 3)),
            user_id=_cell(row, 4) or None,
            entity_type=_cell(row, 5) or None,
            entity_id=UUID(_cell(row, 6)) if _cell(row, 6) else None,
            correlation_id=UUID(_cell(row, 7)) if _cell(row, 7) else None,
            description=_cell(row, 8),
            details=json.loads(_cell(row, 9)) if _cell(row, 9) else {},
            error_message=_cell(row, 10) or None,
            is_user_action=_cell(row, 11).lower() == "true",
        )

    def _all_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except Exception:
                # Audit history is best-effort; one bad row should not hide the rest
                continue
        return events

    @_sheets_retry
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}")

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID, oldest first."""
        try:
            events = [
                e for e in self._all_events()
                if e.correlation_id == correlation_id
            ]
            events.sort(key=lambda e: e.timestamp)
            return events
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events, newest first."""
        try:
            events = self._all_events()
            events.sort(key=lambda e: e.timestamp, reverse=True)
            return events[:limit]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
