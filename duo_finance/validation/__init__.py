"""Validation package."""

from duo_finance.validation.validator import (
    ShoppingValidator,
    TransactionValidator,
    get_user_friendly_summary,
    parse_amount,
)

__all__ = [
    "ShoppingValidator",
    "TransactionValidator",
    "get_user_friendly_summary",
    "parse_amount",
]
