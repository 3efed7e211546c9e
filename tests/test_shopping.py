"""Tests for shopping list operations."""

from decimal import Decimal
from uuid import uuid4

import pytest

from duo_finance.models import (
    ShoppingItem,
    ShoppingList,
    ShoppingListStatus,
    TransactionStatus,
)
from duo_finance.shopping import (
    BudgetExceededError,
    ItemNotFoundError,
    ShoppingListClosedError,
    add_item,
    build_purchase_transaction,
    check_budget,
    complete,
    remove_item,
)


@pytest.fixture
def market() -> ShoppingList:
    return ShoppingList(title="Mercado do mês", budget=Decimal("100"), created_by="ana")


def _item(name="Rice", price="10", quantity="1", unit="un") -> ShoppingItem:
    return ShoppingItem(name=name, price=Decimal(price), quantity=Decimal(quantity), unit=unit)


class TestAddItem:
    """Totals move by price times quantity."""

    def test_adds_line_total(self, market):
        updated = add_item(market, _item(price="12.50", quantity="2", unit="kg"))

        assert updated.total == Decimal("25.00")
        assert len(updated.items) == 1
        assert market.items == []  # input untouched

    def test_over_budget_needs_confirmation(self, market):
        with pytest.raises(BudgetExceededError) as exc_info:
            add_item(market, _item(price="60", quantity="2"))
        assert exc_info.value.new_total == Decimal("120")
        assert exc_info.value.budget == Decimal("100")

    def test_confirmed_over_budget(self, market):
        updated = add_item(market, _item(price="60", quantity="2"), confirm_over_budget=True)
        assert updated.is_over_budget
        assert updated.remaining_budget == Decimal("-20")

    def test_exactly_at_budget_is_fine(self, market):
        assert add_item(market, _item(price="100")).total == Decimal("100")

    def test_check_budget(self, market):
        check = check_budget(market, _item(price="130"))
        assert check.exceeds_budget
        assert check.overflow == Decimal("30")


class TestRemoveItem:

    def test_removes_and_reduces_total(self, market):
        rice = _item(price="10", quantity="3")
        beans = _item(name="Beans", price="8")
        filled = add_item(add_item(market, rice), beans)

        updated, removed = remove_item(filled, rice.id)

        assert removed.name == "Rice"
        assert [i.name for i in updated.items] == ["Beans"]
        assert updated.total == Decimal("8")

    def test_unknown_item(self, market):
        with pytest.raises(ItemNotFoundError):
            remove_item(market, uuid4())


class TestFinishShopping:
    """A finished list becomes one expense."""

    def test_purchase_transaction(self, market, now):
        filled = add_item(
            add_item(market, _item(name="Arroz", price="6", quantity="2", unit="kg")),
            _item(name="Leite", price="4.5", quantity="3", unit="l"),
        )

        tx = build_purchase_transaction(filled, user_id="ana", category="Compras", now=now)

        assert tx.amount == Decimal("-25.5")
        assert tx.category == "Compras"
        assert tx.description == "Mercado do mês"
        assert tx.detailed_description == "2kg Arroz, 3l Leite"
        assert tx.status == TransactionStatus.COMPLETED
        assert tx.date == now
        assert [i.name for i in tx.items] == ["Arroz", "Leite"]

    def test_complete_closes_list(self, market):
        done = complete(market)
        assert done.status == ShoppingListStatus.COMPLETED
        assert market.is_active

    def test_completed_list_is_frozen(self, market):
        done = complete(market)
        with pytest.raises(ShoppingListClosedError):
            add_item(done, _item())
        with pytest.raises(ShoppingListClosedError):
            complete(done)
