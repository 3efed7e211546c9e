"""Shopping list package."""

from duo_finance.shopping.cart import (
    BudgetCheck,
    BudgetExceededError,
    ItemNotFoundError,
    NoActiveListError,
    ShoppingListClosedError,
    ShoppingListError,
    add_item,
    build_purchase_transaction,
    check_budget,
    complete,
    remove_item,
)

__all__ = [
    "BudgetCheck",
    "BudgetExceededError",
    "ItemNotFoundError",
    "NoActiveListError",
    "ShoppingListClosedError",
    "ShoppingListError",
    "add_item",
    "build_purchase_transaction",
    "check_budget",
    "complete",
    "remove_item",
]
