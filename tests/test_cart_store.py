"""Tests for CartStore."""

import pytest

from shopdesk.cart_store import CartStore
from shopdesk.errors import NotFoundError, ValidationFailedError
from shopdesk.models import CartItem


def item(id: str = "p1", quantity: int = 1, stock: int = 5, price: float = 10) -> CartItem:
    return CartItem(id=id, title=f"Product {id}", price=price, quantity=quantity, stock=stock)


class TestAddToCart:
    def test_adds_new_line(self):
        cart = CartStore()
        line = cart.add_to_cart(item(quantity=2))

        assert line.quantity == 2
        assert line.stock == 5
        assert cart.has_new_item

    def test_merges_same_product(self):
        cart = CartStore()
        cart.add_to_cart(item(quantity=2))
        cart.add_to_cart(item(quantity=1))

        assert len(cart.items) == 1
        assert cart.items[0].quantity == 3

    def test_merge_clamps_to_captured_stock(self):
        cart = CartStore()
        cart.add_to_cart(item(quantity=4, stock=5))
        line = cart.add_to_cart(item(quantity=4, stock=50))

        assert line.quantity == 5
        assert line.stock == 5

    def test_new_line_clamped_to_stock(self):
        cart = CartStore()
        assert cart.add_to_cart(item(quantity=9, stock=3)).quantity == 3

    def test_out_of_stock_rejected(self):
        cart = CartStore()
        with pytest.raises(ValidationFailedError):
            cart.add_to_cart(item(stock=0))
        assert cart.is_empty()

    def test_non_positive_quantity_rejected(self):
        cart = CartStore()
        with pytest.raises(ValidationFailedError):
            cart.add_to_cart(item(quantity=0))

    def test_does_not_alias_caller_item(self):
        cart = CartStore()
        original = item(quantity=1)
        cart.add_to_cart(original)
        cart.add_to_cart(item(quantity=1))

        assert original.quantity == 1


class TestUpdateQuantity:
    def test_sets_quantity(self):
        cart = CartStore()
        cart.add_to_cart(item())
        assert cart.update_quantity("p1", 4).quantity == 4

    def test_clamps_to_stock(self):
        cart = CartStore()
        cart.add_to_cart(item(stock=5))
        assert cart.update_quantity("p1", 8).quantity == 5

    def test_rejects_zero(self):
        cart = CartStore()
        cart.add_to_cart(item(quantity=2))
        with pytest.raises(ValidationFailedError):
            cart.update_quantity("p1", 0)
        assert cart.items[0].quantity == 2

    def test_unknown_item(self):
        with pytest.raises(NotFoundError):
            CartStore().update_quantity("nope", 1)


class TestCartMisc:
    def test_remove_and_clear(self):
        cart = CartStore()
        cart.add_to_cart(item("p1"))
        cart.add_to_cart(item("p2"))

        cart.remove_from_cart("p1")
        assert [i.id for i in cart.items] == ["p2"]

        cart.clear_cart()
        assert cart.is_empty()

    def test_totals(self):
        cart = CartStore()
        cart.add_to_cart(item("p1", quantity=2, price=10))
        cart.add_to_cart(item("p2", quantity=1, price=2.5))

        assert cart.total_price == 22.5
        assert cart.item_count == 3

    def test_clear_notification(self):
        cart = CartStore()
        cart.add_to_cart(item())
        cart.clear_notification()
        assert not cart.has_new_item
