"""
Core Data Models for Duo Finance

These models define the schemas for the data the aggregation engine
consumes and produces. They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging

DESIGN DECISION: Money is Decimal everywhere. Totals must satisfy
income - expenses == net balance exactly, which floats cannot promise.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    model_validator,
)

from duo_finance.models.shopping import ShoppingItem


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionStatus(str, Enum):
    """
    Settlement status of a transaction.

    Future payments stay PENDING until paid; everything else is COMPLETED.
    """
    PENDING = "pending"
    COMPLETED = "completed"


class Period(str, Enum):
    """Named date ranges that end at the moment they are evaluated."""
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


# =============================================================================
# TRANSACTION
# =============================================================================

class Transaction(BaseModel):
    """
    A single signed monetary event.

    Positive amounts are income. Zero and negative amounts are expenses
    of magnitude abs(amount).

    Transactions are immutable values once loaded: the aggregation
    engine never modifies them.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    user_id: str = Field(
        ...,
        min_length=1,
        description="Owning user"
    )
    description: str = Field(
        default="",
        max_length=200,
        description="What the transaction was for"
    )
    amount: Decimal = Field(
        ...,
        description="Signed amount: + income, - expense"
    )
    category: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Free-text category label"
    )
    date: datetime = Field(
        ...,
        description="When the economic event happened"
    )

    # Scheduled payments
    is_future_payment: bool = False
    due_date: Optional[datetime] = None
    status: TransactionStatus = TransactionStatus.COMPLETED

    created_at: datetime = Field(
        default_factory=datetime.now,
        description="When the record was created"
    )

    # Set when the transaction comes from a finished shopping list
    detailed_description: Optional[str] = None
    items: list[ShoppingItem] = Field(default_factory=list)

    @property
    def is_income(self) -> bool:
        return self.amount > 0

    @property
    def is_pending_future_payment(self) -> bool:
        return self.is_future_payment and self.status == TransactionStatus.PENDING


# =============================================================================
# AGGREGATION RESULTS
# =============================================================================

class DateRange(BaseModel):
    """A concrete [start, end] window; both bounds inclusive."""
    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode='after')
    def validate_order(self) -> 'DateRange':
        if self.end < self.start:
            raise ValueError("Date range end cannot be before start")
        return self

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


class Summary(BaseModel):
    """
    Aggregate view of a set of transactions.

    Derived and ephemeral: recomputed on every request, never persisted.
    category_totals keeps the order in which categories first appeared.
    """

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    category_totals: dict[str, Decimal] = Field(default_factory=dict)
    transaction_count: int = Field(default=0, ge=0)

    @computed_field
    @property
    def net_balance(self) -> Decimal:
        return self.total_income - self.total_expenses

    @property
    def is_empty(self) -> bool:
        return self.transaction_count == 0
