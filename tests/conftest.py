"""Shared fixtures for Duo Finance tests."""

from datetime import datetime
from decimal import Decimal

import pytest

from duo_finance.models import Transaction


@pytest.fixture
def now() -> datetime:
    """A fixed 'current' instant so period maths is deterministic."""
    return datetime(2024, 6, 15, 14, 30, 0)


@pytest.fixture
def make_transaction():
    """Factory for transactions owned by user 'ana' unless told otherwise."""

    def _make(amount, when, category=None, user_id="ana", **extra) -> Transaction:
        return Transaction(
            user_id=user_id,
            description=extra.pop("description", "test"),
            amount=Decimal(str(amount)),
            category=category,
            date=when,
            **extra,
        )

    return _make
