"""
Shopping List Operations

Pure functions over ShoppingList values. Each returns a new list and
leaves its input untouched; persisting the result is the caller's job.

The running total always moves by price * quantity of the item that
was added or removed.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from duo_finance.models.shopping import (
    ShoppingItem,
    ShoppingList,
    ShoppingListStatus,
)
from duo_finance.models.transaction import Transaction, TransactionStatus


class ShoppingListError(Exception):
    """Base exception for shopping list operations."""
    pass


class ShoppingListClosedError(ShoppingListError):
    """The list is already completed and cannot change."""
    pass


class ItemNotFoundError(ShoppingListError):
    """The item is not on the list."""
    pass


class NoActiveListError(ShoppingListError):
    """There is no active shopping list to work on."""
    pass


class BudgetExceededError(ShoppingListError):
    """Adding the item would push the list over budget."""

    def __init__(self, budget: Decimal, new_total: Decimal):
        self.budget = budget
        self.new_total = new_total
        super().__init__(
            f"New total {new_total} would exceed the budget of {budget}"
        )


@dataclass(frozen=True)
class BudgetCheck:
    """What the list total would become if an item were added."""
    new_total: Decimal
    budget: Decimal

    @property
    def exceeds_budget(self) -> bool:
        return self.new_total > self.budget

    @property
    def overflow(self) -> Decimal:
        return max(self.new_total - self.budget, Decimal("0"))


def _ensure_active(shopping_list: ShoppingList) -> None:
    if not shopping_list.is_active:
        raise ShoppingListClosedError(
            f"Shopping list {shopping_list.id} is already completed"
        )


def check_budget(shopping_list: ShoppingList, item: ShoppingItem) -> BudgetCheck:
    return BudgetCheck(
        new_total=shopping_list.total + item.line_total,
        budget=shopping_list.budget,
    )


def add_item(
    shopping_list: ShoppingList,
    item: ShoppingItem,
    confirm_over_budget: bool = False,
) -> ShoppingList:
    """
    Append an item to an active list.

    Raises:
        ShoppingListClosedError: If the list is completed
        BudgetExceededError: If the item breaks the budget and the
            caller has not confirmed
    """
    _ensure_active(shopping_list)

    check = check_budget(shopping_list, item)
    if check.exceeds_budget and not confirm_over_budget:
        raise BudgetExceededError(check.budget, check.new_total)

    return shopping_list.model_copy(update={
        "items": [*shopping_list.items, item],
        "total": check.new_total,
    }, deep=True)


def remove_item(
    shopping_list: ShoppingList,
    item_id: UUID,
) -> tuple[ShoppingList, ShoppingItem]:
    """
    Drop an item from an active list.

    Returns:
        (updated_list, removed_item)
    """
    _ensure_active(shopping_list)

    for index, item in enumerate(shopping_list.items):
        if item.id == item_id:
            remaining = shopping_list.items[:index] + shopping_list.items[index + 1:]
            updated = shopping_list.model_copy(update={
                "items": remaining,
                "total": shopping_list.total - item.line_total,
            }, deep=True)
            return updated, item

    raise ItemNotFoundError(f"Item {item_id} is not on list {shopping_list.id}")


def build_purchase_transaction(
    shopping_list: ShoppingList,
    user_id: str,
    category: str,
    now: Optional[datetime] = None,
) -> Transaction:
    """The expense recorded when shopping is finished."""
    now = now or datetime.now()
    return Transaction(
        user_id=user_id,
        description=shopping_list.title,
        detailed_description=shopping_list.items_description(),
        amount=-shopping_list.total,
        category=category,
        date=now,
        items=[item.model_copy() for item in shopping_list.items],
        status=TransactionStatus.COMPLETED,
        created_at=now,
    )


def complete(shopping_list: ShoppingList) -> ShoppingList:
    _ensure_active(shopping_list)
    return shopping_list.model_copy(
        update={"status": ShoppingListStatus.COMPLETED},
        deep=True,
    )
