"""
Shopping List Models

A shopping list has a budget and a running total. It is either ACTIVE
(being filled) or COMPLETED (finished and recorded as an expense).
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class ShoppingListStatus(str, Enum):
    """Lifecycle of a shopping list. COMPLETED is terminal."""
    ACTIVE = "active"
    COMPLETED = "completed"


class ShoppingItem(BaseModel):
    """One line on a shopping list."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Item name"
    )
    price: Decimal = Field(
        ...,
        ge=0,
        description="Unit price"
    )
    quantity: Decimal = Field(
        default=Decimal("1"),
        gt=0,
        description="How many units"
    )
    unit: str = Field(
        default="un",
        max_length=20,
        description="Unit of measurement (un, kg, l, ...)"
    )

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def describe(self) -> str:
        """Short form used in transaction descriptions, e.g. '2kg Rice'."""
        return f"{self.quantity.normalize():f}{self.unit} {self.name}"


class ShoppingList(BaseModel):
    """
    A collaborative shopping list with a budget.

    total is stored, not derived, because partners edit the same list;
    it is kept in step with items by the shopping service.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    title: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="List title"
    )
    budget: Decimal = Field(
        ...,
        gt=0,
        description="Money available for this list"
    )
    items: list[ShoppingItem] = Field(default_factory=list)
    total: Decimal = Field(default=Decimal("0"))
    status: ShoppingListStatus = ShoppingListStatus.ACTIVE
    created_by: str = Field(..., min_length=1)
    created_at: datetime = Field(default_factory=datetime.now)

    @property
    def remaining_budget(self) -> Decimal:
        return self.budget - self.total

    @property
    def is_over_budget(self) -> bool:
        return self.total > self.budget

    @property
    def is_active(self) -> bool:
        return self.status == ShoppingListStatus.ACTIVE

    def items_description(self) -> str:
        return ", ".join(item.describe() for item in self.items)
